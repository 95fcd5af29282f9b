#!/usr/bin/env python3
"""
Tests for player profile lookups and match history paging.
"""

import os
import shutil
import tempfile
import unittest

from ggst_ratings.core.database import connect
from ggst_ratings.core.glicko2 import glicko_to_glicko2
from ggst_ratings.core.player_profile import (
    PlayerProfileGenerator, matchup_display_class, matchup_rating_offset,
)
from ggst_ratings.core.rater import Game, add_game, set_cheater, set_vip, update_player

T0 = 1_650_000_000


def seed_rating(conn, player_id, char_id, rating, rd, wins=0, losses=0):
    conn.execute('''
        INSERT INTO player_ratings (id, char_id, wins, losses, value, deviation, volatility)
        VALUES (?, ?, ?, ?, ?, ?, 0.06)
    ''', (player_id, char_id, wins, losses, glicko_to_glicko2(rating), rd / 173.7178))


class PlayerProfileTests(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp(prefix="ggst_profile_test_")
        self.db_path = os.path.join(self.temp_dir, "ratings.sqlite")
        conn = connect(self.db_path)

        update_player(conn, 100, 'Alice', 10, '3')
        update_player(conn, 100, 'Alicia', 10)
        update_player(conn, 200, 'Bob', 10)
        update_player(conn, 300, 'Carol', 10)
        update_player(conn, 400, 'Dan', 10)
        update_player(conn, 500, 'Eve', 10)

        seed_rating(conn, 100, 0, 1650, 50, wins=6, losses=4)
        seed_rating(conn, 100, 2, 1400, 80, wins=1, losses=2)
        seed_rating(conn, 200, 1, 1500, 60)
        seed_rating(conn, 300, 0, 1700, 50)
        seed_rating(conn, 400, 1, 1800, 50)
        seed_rating(conn, 500, 0, 1900, 200)

        conn.execute("INSERT INTO player_matchups VALUES (100, 0, 1, 8, 2.0, 4, 0.5)")
        conn.execute("INSERT INTO player_matchups VALUES (100, 0, 3, 1, 0.0, 1, 0.0)")
        conn.commit()
        self.conn = conn

    def tearDown(self):
        self.conn.close()
        shutil.rmtree(self.temp_dir)

    def profile(self, player_id=100, char_id=0):
        with PlayerProfileGenerator(self.db_path) as generator:
            return generator.get_player(player_id, char_id)

    def test_unknown_player_or_character(self):
        self.assertIsNone(self.profile(999, 0))
        self.assertIsNone(self.profile(100, 5))

    def test_basic_fields(self):
        player = self.profile()

        self.assertEqual(player.id, 100)
        self.assertEqual(player.name, 'Alicia')
        self.assertEqual(player.platform, 'PC')
        self.assertEqual(player.other_names, ['Alice'])
        self.assertFalse(player.vip_status)
        self.assertFalse(player.cheater_status)

        data = player.data
        self.assertEqual(data.character_name, 'Sol')
        self.assertEqual(data.character_short, 'SO')
        self.assertEqual((data.rating_value, data.rating_deviation), (1650, 50))
        self.assertEqual(data.game_count, 10)
        self.assertAlmostEqual(data.win_rate, 0.6)
        self.assertIsNone(data.top_rating_value)
        self.assertIsNone(data.top_defeated_id)

    def test_ranks_skip_unestablished_ratings(self):
        data = self.profile().data

        self.assertEqual(data.character_rank, 2)
        self.assertEqual(data.global_rank, 3)

    def test_ranks_skip_flagged_players(self):
        set_cheater(self.conn, 300, 'Rating manipulation')

        data = self.profile().data

        self.assertEqual(data.character_rank, 1)
        self.assertEqual(data.global_rank, 2)

    def test_unestablished_rating_has_no_rank(self):
        data = self.profile(500, 0).data

        self.assertIsNone(data.character_rank)
        self.assertIsNone(data.global_rank)

    def test_flagged_player(self):
        set_cheater(self.conn, 100, 'Rating manipulation')
        set_vip(self.conn, 100, 'Was VIP')

        player = self.profile()

        self.assertTrue(player.cheater_status)
        self.assertEqual(player.cheater_type, 'Rating manipulation')
        self.assertTrue(player.vip_status)
        self.assertIsNone(player.data.character_rank)
        self.assertIsNone(player.data.global_rank)

    def test_matchups(self):
        matchups = self.profile().data.matchups

        self.assertEqual([m.character_short for m in matchups], ['KY', 'AX'])
        ky = matchups[0]
        self.assertEqual(ky.game_count, 12)
        self.assertAlmostEqual(ky.win_rate, 8 / 12)
        self.assertEqual(ky.rating_offset, round(4 * 173.7178 * 1.5 / 12))
        self.assertEqual(ky.display_class, 'matchup-good')
        self.assertEqual(matchups[1].display_class, 'matchup-unsure')

    def test_other_characters(self):
        others = self.profile().other_characters

        self.assertEqual(len(others), 1)
        self.assertEqual(others[0].shortname, 'MA')
        self.assertEqual(others[0].name, 'May')
        self.assertEqual((others[0].rating_value, others[0].rating_deviation), (1400, 80))
        self.assertEqual(others[0].game_count, 3)

    def test_top_rating_and_top_defeated(self):
        self.conn.execute('''
            UPDATE player_ratings SET
                top_rating_value = ?, top_rating_deviation = ?, top_rating_timestamp = ?,
                top_defeated_id = 400, top_defeated_char_id = 1, top_defeated_name = 'Dan',
                top_defeated_value = ?, top_defeated_deviation = ?, top_defeated_timestamp = ?
            WHERE id = 100 AND char_id = 0
        ''', (glicko_to_glicko2(1700), 45 / 173.7178, T0,
              glicko_to_glicko2(1800), 50 / 173.7178, T0 + 60))
        self.conn.commit()

        data = self.profile().data

        self.assertEqual((data.top_rating_value, data.top_rating_deviation), (1700, 45))
        self.assertEqual(data.top_rating_timestamp, '2022-04-15 05:20')
        self.assertEqual(data.top_defeated_id, 400)
        self.assertEqual(data.top_defeated_char_short, 'KY')
        self.assertEqual(data.top_defeated_character, 'Ky')
        self.assertEqual(data.top_defeated_name, 'Dan')
        self.assertEqual((data.top_defeated_value, data.top_defeated_deviation), (1800, 50))
        self.assertEqual(data.top_defeated_timestamp, '2022-04-15 05:21')

    def test_rated_players(self):
        with PlayerProfileGenerator(self.db_path) as generator:
            players = generator.get_rated_players()

        self.assertEqual(players[:2], [(100, 0), (100, 2)])
        self.assertEqual(len(players), 6)


class HistoryTests(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp(prefix="ggst_history_test_")
        self.db_path = os.path.join(self.temp_dir, "ratings.sqlite")
        conn = connect(self.db_path)
        for i in range(5):
            add_game(conn, Game(T0 + i * 60, 100, 'Alice', 0, 200, 'Bob', 1, 1 if i % 2 == 0 else 2, 99))
        conn.execute(
            "INSERT INTO game_ratings VALUES (?, 100, ?, ?, 200, ?, ?)",
            (T0 + 4 * 60, glicko_to_glicko2(1600), 40 / 173.7178, glicko_to_glicko2(1550), 70 / 173.7178)
        )
        conn.commit()
        conn.close()
        self.generator = PlayerProfileGenerator(self.db_path)

    def tearDown(self):
        self.generator.close()
        shutil.rmtree(self.temp_dir)

    def test_pages_newest_first(self):
        first = self.generator.get_history(100, 0, 0, page_size=2)

        self.assertEqual(first['page'], 0)
        self.assertEqual(first['page_count'], 3)
        self.assertEqual(len(first['games']), 2)
        newest = first['games'][0]
        self.assertEqual(newest['timestamp'], '2022-04-15 05:24')
        self.assertEqual(newest['floor'], 'Celestial')
        self.assertEqual(newest['result'], 'W')
        self.assertEqual((newest['own_rating'], newest['own_deviation']), (1600, 40))
        self.assertEqual((newest['opponent_rating'], newest['opponent_deviation']), (1550, 70))
        self.assertEqual(newest['opponent_id'], 200)
        self.assertEqual(newest['opponent_name'], 'Bob')
        self.assertEqual(newest['opponent_char_short'], 'KY')
        self.assertEqual(first['games'][1]['result'], 'L')
        self.assertIsNone(first['games'][1]['own_rating'])

        last = self.generator.get_history(100, 0, 2, page_size=2)
        self.assertEqual(len(last['games']), 1)

    def test_opponent_perspective(self):
        history = self.generator.get_history(200, 1, 0, page_size=10)

        self.assertEqual(len(history['games']), 5)
        newest = history['games'][0]
        self.assertEqual(newest['result'], 'L')
        self.assertEqual(newest['own_rating'], 1550)
        self.assertEqual(newest['opponent_name'], 'Alice')

    def test_page_past_end_is_empty(self):
        history = self.generator.get_history(100, 0, 5, page_size=2)

        self.assertEqual(history['games'], [])
        self.assertEqual(history['page_count'], 3)

    def test_other_character_has_no_games(self):
        history = self.generator.get_history(100, 4)

        self.assertEqual(history['games'], [])
        self.assertEqual(history['page_count'], 0)

    def test_negative_page_raises(self):
        with self.assertRaises(ValueError):
            self.generator.get_history(100, 0, -1)


class MatchupHelperTests(unittest.TestCase):

    def test_rating_offset(self):
        self.assertEqual(matchup_rating_offset(0.0, 0.0, 0), 0)
        self.assertEqual(matchup_rating_offset(1.0, 1.0, 10), 0)
        self.assertLess(matchup_rating_offset(0.5, 2.0, 10), 0)

    def test_display_class(self):
        self.assertEqual(matchup_display_class(100, 5), 'matchup-unsure')
        self.assertEqual(matchup_display_class(25, 10), 'matchup-good')
        self.assertEqual(matchup_display_class(-25, 10), 'matchup-bad')
        self.assertEqual(matchup_display_class(10, 50), 'matchup-even')


if __name__ == "__main__":
    unittest.main()
