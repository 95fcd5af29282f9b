#!/usr/bin/env python3
"""
Tests for static site generation.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from ggst_ratings.core.database import connect
from ggst_ratings.core.glicko2 import glicko_to_glicko2
from ggst_ratings.core.rater import Game, add_game, set_cheater
from ggst_ratings.web.file_generator import generate_complete_web_ui

T0 = 1_650_000_000


class FileGeneratorTests(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp(prefix="ggst_web_test_"))
        self.db_path = str(self.temp_dir / "ratings.sqlite")
        self.output_dir = self.temp_dir / "web"

        conn = connect(self.db_path)
        for i in range(5):
            add_game(conn, Game(T0 + i * 60, 100, 'Alice', 0, 200, 'Bob', 1, 1, 10))
        conn.executemany('''
            INSERT INTO player_ratings (id, char_id, wins, losses, value, deviation, volatility)
            VALUES (?, ?, ?, ?, ?, ?, 0.06)
        ''', [
            (100, 0, 5, 0, glicko_to_glicko2(1600), 60 / 173.7178),
            (200, 1, 0, 5, glicko_to_glicko2(1400), 60 / 173.7178),
        ])
        conn.commit()
        self.conn = conn

    def tearDown(self):
        self.conn.close()
        shutil.rmtree(self.temp_dir)

    def generate(self, **kwargs):
        return generate_complete_web_ui(self.db_path, self.output_dir, max_workers=2, **kwargs)

    def test_writes_pages_and_assets(self):
        result = self.generate(page_size=2)

        self.assertEqual(result['player_pages'], 2)
        self.assertTrue((self.output_dir / "player" / "100" / "SO.html").exists())
        self.assertTrue((self.output_dir / "player" / "200" / "KY.html").exists())
        self.assertTrue((self.output_dir / "styles.css").exists())
        scripts = (self.output_dir / "scripts.js").read_text(encoding='utf-8')
        self.assertIn('function load_history', scripts)
        self.assertIn('function increment_page', scripts)

    def test_history_pages(self):
        self.generate(page_size=2)
        history_dir = self.output_dir / "history" / "100" / "SO"

        self.assertEqual(sorted(p.name for p in history_dir.iterdir()), ['0.json', '1.json', '2.json'])
        first = json.loads((history_dir / "0.json").read_text(encoding='utf-8'))
        self.assertEqual(first['page_count'], 3)
        self.assertEqual(len(first['games']), 2)
        self.assertEqual(first['games'][0]['result'], 'W')
        self.assertEqual(first['games'][0]['opponent_name'], 'Bob')

    def test_history_page_limit(self):
        self.generate(page_size=2, max_pages=1)
        history_dir = self.output_dir / "history" / "100" / "SO"

        self.assertEqual([p.name for p in history_dir.iterdir()], ['0.json'])
        first = json.loads((history_dir / "0.json").read_text(encoding='utf-8'))
        self.assertEqual(first['page_count'], 1)

    def test_flagged_player_has_no_history(self):
        set_cheater(self.conn, 200, 'Rating manipulation')

        self.generate()

        self.assertTrue((self.output_dir / "player" / "200" / "KY.html").exists())
        self.assertFalse((self.output_dir / "history" / "200").exists())

    def test_stats_file(self):
        self.generate()

        stats = json.loads((self.output_dir / "stats.json").read_text(encoding='utf-8'))
        self.assertIn('distribution', stats)
        self.assertEqual(set(stats['matchups']), {'global', 'high_rated', 'versus'})


if __name__ == "__main__":
    unittest.main()
