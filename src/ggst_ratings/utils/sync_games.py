#!/usr/bin/env python3
"""
Replay synchronization for the GGST rating database.
Fetches new replays from the configured replay API, stores them and keeps the
ratings updated while running as a service.
"""

import argparse
import json
import logging
import os
import sqlite3
import threading
import time
from typing import Dict, List, Optional, Tuple

import requests

from ..core.characters import CELESTIAL_FLOOR
from ..core.database import connect
from ..core.rater import (
    Game, add_game, calc_versus_matchups, parse_raw_game,
    update_player_distribution, update_ratings_until,
)

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_CONFIG = {
    "database_path": "ratings.sqlite",
    "replay_api_url": "http://localhost:8000/replays",
    "initial_pages": 100,
    "pages_per_pull": 10,
    "poll_interval": 60,
    "min_floor": 1,
    "max_floor": CELESTIAL_FLOOR,
    "web_ui_output": "web_ui_output",
    "history_page_size": 100,
    "history_pages": 5,
}

CONFIG_FILE = "rating_config.json"


def load_config(config_path: str = CONFIG_FILE) -> Dict:
    """Load configuration from file, filling in defaults."""
    config = dict(DEFAULT_CONFIG)
    if not os.path.exists(config_path):
        return config
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config.update(json.load(f))
    except (json.JSONDecodeError, IOError) as e:
        print(f"Error loading config: {e}")
    return config


def save_config(config: Dict, config_path: str = CONFIG_FILE) -> Optional[Dict]:
    """Save configuration to file."""
    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2)
        print(f"Configuration saved to {config_path}")
        return config
    except IOError as e:
        print(f"Error saving config: {e}")
        return None


class ReplayClient:
    """Reads replay pages from the replay API."""

    def __init__(self, base_url: str, min_floor: int = 1, max_floor: int = CELESTIAL_FLOOR,
                 session: requests.Session = None, timeout: int = 30):
        self.base_url = base_url
        self.min_floor = min_floor
        self.max_floor = max_floor
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_page(self, page: int) -> List[Dict]:
        response = self.session.get(
            self.base_url,
            params={"page": page, "min_floor": self.min_floor, "max_floor": self.max_floor},
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()
        if isinstance(data, dict):
            data = data.get("replays", [])
        return data

    def get_replays(self, pages: int) -> Tuple[List[Game], List[str]]:
        """
        Fetch up to `pages` pages of replays.
        Returns the parsed games and a description of every entry that failed to parse.
        """
        games = []
        errors = []
        for page in range(pages):
            entries = self.get_page(page)
            if not entries:
                break
            for raw in entries:
                if not isinstance(raw, dict):
                    errors.append(f"page {page}: not a replay object: {raw!r}")
                    continue
                try:
                    game = parse_raw_game(raw)
                except (KeyError, ValueError, TypeError) as e:
                    errors.append(f"page {page}: {e}")
                    continue
                if game is not None:
                    games.append(game)
        return games, errors


def count_games(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM games").fetchone()[0]


def grab_games(conn: sqlite3.Connection, client: ReplayClient, pages: int) -> int:
    """Fetch replays and store them. Returns the number of new games."""
    replays, errors = client.get_replays(pages)

    old_count = count_games(conn)
    with conn:
        for game in replays:
            add_game(conn, game)
    count = count_games(conn)
    new_games = count - old_count

    logger.info(f"Grabbed {len(replays)} games - new games: {new_games} ({count} total)")

    if replays and new_games == len(replays):
        logger.error("Only new replays! We're probably missing some, try increasing the page count.")
    elif new_games > len(replays) / 2:
        logger.warning("Over half the grabbed replays are new, consider increasing page count.")

    if errors:
        logger.warning(f"{len(errors)} replays failed to parse!")

    return new_games


def rate_pending(conn: sqlite3.Connection, now: int = None) -> int:
    """Rate every finished period, then refresh distributions and matchups."""
    if now is None:
        now = int(time.time())
    rated = update_ratings_until(conn, now)
    if rated:
        update_player_distribution(conn)
        calc_versus_matchups(conn)
    return rated


class RatingService:
    """Pulls replays and rates them on two threads until stopped."""

    def __init__(self, config: Dict, client: ReplayClient = None):
        self.db_path = config["database_path"]
        self.initial_pages = config["initial_pages"]
        self.pages_per_pull = config["pages_per_pull"]
        self.poll_interval = config["poll_interval"]
        self.client = client or ReplayClient(
            config["replay_api_url"], config["min_floor"], config["max_floor"]
        )
        self.stop_event = threading.Event()
        self.threads: List[threading.Thread] = []

    def _pull(self, conn: sqlite3.Connection, pages: int):
        try:
            grab_games(conn, self.client, pages)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch replays: {e}")

    def _run_step(self, loop: str, conn: sqlite3.Connection, step, *args):
        # One failed iteration must not end the loop
        try:
            step(conn, *args)
        except Exception as e:
            logger.exception(f"{loop} loop error: {e}")
            conn.rollback()

    def pull_continuous(self):
        conn = connect(self.db_path)
        try:
            self._run_step("pull", conn, self._pull, self.initial_pages)
            while not self.stop_event.wait(self.poll_interval):
                self._run_step("pull", conn, self._pull, self.pages_per_pull)
        finally:
            conn.close()

    def rate_pending(self, conn: sqlite3.Connection, now: int = None) -> int:
        return rate_pending(conn, now)

    def update_ratings_continuous(self):
        conn = connect(self.db_path)
        try:
            self._run_step("rating", conn, calc_versus_matchups)
            while not self.stop_event.wait(self.poll_interval):
                self._run_step("rating", conn, self.rate_pending)
        finally:
            conn.close()

    def start(self):
        self.stop_event.clear()
        self.threads = [
            threading.Thread(target=self.pull_continuous, name="pull", daemon=True),
            threading.Thread(target=self.update_ratings_continuous, name="rate", daemon=True),
        ]
        for thread in self.threads:
            thread.start()

    def stop(self):
        self.stop_event.set()
        for thread in self.threads:
            thread.join()

    def run(self):
        """Run until interrupted."""
        self.start()
        try:
            while any(thread.is_alive() for thread in self.threads):
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Stopping rating service")
        finally:
            self.stop()


def main():
    """CLI interface for replay synchronization."""
    parser = argparse.ArgumentParser(description='Fetch GGST replays and keep ratings updated')
    parser.add_argument('--config', default=CONFIG_FILE, help='Configuration file')
    subparsers = parser.add_subparsers(dest='command', required=True)

    pull_parser = subparsers.add_parser('pull', help='Fetch replays once')
    pull_parser.add_argument('--pages', type=int, help='Number of pages to fetch')
    subparsers.add_parser('run', help='Fetch and rate continuously')
    subparsers.add_parser('config', help='Write the configuration file with defaults')

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    config = load_config(args.config)

    if args.command == 'config':
        return 0 if save_config(config, args.config) else 1

    if args.command == 'run':
        RatingService(config).run()
        return 0

    client = ReplayClient(config["replay_api_url"], config["min_floor"], config["max_floor"])
    conn = connect(config["database_path"])
    try:
        new_games = grab_games(conn, client, args.pages or config["initial_pages"])
        print(f"✅ Stored {new_games} new games")
    except requests.exceptions.RequestException as e:
        print(f"❌ Error fetching replays: {e}")
        return 1
    finally:
        conn.close()

    return 0


if __name__ == '__main__':
    exit(main())
