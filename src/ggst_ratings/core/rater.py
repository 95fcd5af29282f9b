#!/usr/bin/env python3
"""
Rating pipeline for GGST replays.
Stores games, rates them in hourly Glicko-2 periods and keeps the matchup and
distribution tables used by the player pages up to date.
"""

import argparse
import glob
import json
import logging
import sqlite3
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .characters import CHARACTERS, FLOORS
from .database import DB_NAME, connect, init_database, reset_database
from .glicko2 import Glicko2Rating, GameResult, glicko_to_glicko2, new_rating, win_probability

logger = logging.getLogger(__name__)

SYS_CONSTANT = 0.1
MAX_DEVIATION = 100.0 / 173.7178
HIGH_RATING = glicko_to_glicko2(1800.0)
RATING_PERIOD = 1 * 60 * 60

RATING_BUCKET_SIZE = 50
RATING_BUCKET_COUNT = 60
MIN_BUCKET_PLAYERS = 10


@dataclass
class Game:
    timestamp: int
    id_a: int
    name_a: str
    char_a: int
    id_b: int
    name_b: str
    char_b: int
    winner: int
    game_floor: int
    platform_a: Optional[str] = None
    platform_b: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> 'Game':
        return cls(*row[:9])


@dataclass
class RatedPlayer:
    id: int
    char_id: int
    win_count: int = 0
    loss_count: int = 0
    rating: Glicko2Rating = field(default_factory=Glicko2Rating.unrated)
    top_rating: Optional[Tuple[float, float, int]] = None
    top_defeated: Optional[Tuple[int, int, str, float, float, int]] = None

    @classmethod
    def from_row(cls, row) -> 'RatedPlayer':
        top_rating = None
        if row[7] is not None:
            top_rating = (row[7], row[8], row[9])
        top_defeated = None
        if row[10] is not None:
            top_defeated = tuple(row[10:16])
        return cls(
            id=row[0],
            char_id=row[1],
            win_count=row[2],
            loss_count=row[3],
            rating=Glicko2Rating(row[4], row[5], row[6]),
            top_rating=top_rating,
            top_defeated=top_defeated,
        )


PLAYER_RATING_COLUMNS = '''
    id, char_id, wins, losses, value, deviation, volatility,
    top_rating_value, top_rating_deviation, top_rating_timestamp,
    top_defeated_id, top_defeated_char_id, top_defeated_name,
    top_defeated_value, top_defeated_deviation, top_defeated_timestamp
'''


def parse_raw_game(raw: Dict) -> Optional[Game]:
    """
    Parse one raw replay entry as exported by the replay API.
    Returns None for entries without a timestamp.
    """
    if not raw.get('time'):
        return None

    played_at = datetime.strptime(raw['time'], '%Y-%m-%d %H:%M:%S').replace(tzinfo=timezone.utc)

    winner = int(raw['winner'])
    if winner not in (1, 2):
        raise ValueError(f"Bad winner: {raw['winner']}")

    char_a = int(raw['playerACharCode'])
    char_b = int(raw['playerBCharCode'])
    for char in (char_a, char_b):
        if not 0 <= char < len(CHARACTERS):
            raise ValueError(f"Unknown character code: {char}")

    platform_a = raw.get('playerAPlatform')
    platform_b = raw.get('playerBPlatform')

    return Game(
        timestamp=int(played_at.timestamp()),
        id_a=int(raw['playerAID']),
        name_a=raw['playerAName'],
        char_a=char_a,
        id_b=int(raw['playerBID']),
        name_b=raw['playerBName'],
        char_b=char_b,
        winner=winner,
        game_floor=int(raw['floor']),
        platform_a=str(platform_a) if platform_a is not None else None,
        platform_b=str(platform_b) if platform_b is not None else None,
    )


def update_player(conn: sqlite3.Connection, player_id: int, name: str, floor: int, platform: str = None):
    """Store the latest name and floor of a player and remember the name as an alias."""
    conn.execute('''
        INSERT INTO players (id, name, platform, floor) VALUES (?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            floor = excluded.floor,
            platform = COALESCE(excluded.platform, players.platform)
    ''', (player_id, name, platform, floor))

    conn.execute(
        "INSERT OR IGNORE INTO player_names (id, name) VALUES (?, ?)",
        (player_id, name)
    )


def add_game(conn: sqlite3.Connection, game: Game):
    """Insert a game and its players. Already known games are ignored."""
    update_player(conn, game.id_a, game.name_a, game.game_floor, game.platform_a)
    update_player(conn, game.id_b, game.name_b, game.game_floor, game.platform_b)

    conn.execute('''
        INSERT OR IGNORE INTO games (
            timestamp, id_a, name_a, char_a, id_b, name_b, char_b, winner, game_floor
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    ''', (
        game.timestamp, game.id_a, game.name_a, game.char_a,
        game.id_b, game.name_b, game.char_b, game.winner, game.game_floor
    ))


def load_json_data(conn: sqlite3.Connection, path: str) -> int:
    """Load every '<path>*.json' replay dump, one transaction per file."""
    loaded = 0
    for file_path in sorted(glob.glob(f"{path}*.json")):
        logger.info(f"Loading replays from: {file_path}")
        with open(file_path, 'r', encoding='utf-8') as f:
            raw_games = json.load(f)

        with conn:
            for raw in raw_games:
                game = parse_raw_game(raw)
                if game is None:
                    continue
                add_game(conn, game)
                loaded += 1

    return loaded


def reset_names(conn: sqlite3.Connection):
    """Rebuild player names and aliases by replaying every game in order."""
    cursor = conn.execute("SELECT * FROM games ORDER BY timestamp ASC")
    games = [Game.from_row(row) for row in cursor.fetchall()]

    with conn:
        for g in games:
            update_player(conn, g.id_a, g.name_a, g.game_floor)
            update_player(conn, g.id_b, g.name_b, g.game_floor)


def get_last_update(conn: sqlite3.Connection) -> Optional[int]:
    row = conn.execute("SELECT last_update FROM config").fetchone()
    return row[0] if row else None


def get_period_start(conn: sqlite3.Connection) -> Optional[int]:
    """Start of the next period to rate; before the first update this is the first game's period."""
    last_timestamp = get_last_update(conn)
    if last_timestamp is not None:
        return last_timestamp
    first = conn.execute("SELECT MIN(timestamp) FROM games").fetchone()[0]
    if first is None:
        return None
    return first - first % RATING_PERIOD


def _ensure_matchup_rows(conn: sqlite3.Connection, game: Game):
    conn.execute(
        "INSERT OR IGNORE INTO player_matchups VALUES (?, ?, ?, 0, 0, 0, 0)",
        (game.id_a, game.char_a, game.char_b)
    )
    conn.execute(
        "INSERT OR IGNORE INTO player_matchups VALUES (?, ?, ?, 0, 0, 0, 0)",
        (game.id_b, game.char_b, game.char_a)
    )
    for table in ('global_matchups', 'high_rated_matchups'):
        conn.execute(
            f"INSERT OR IGNORE INTO {table} VALUES (?, ?, 0, 0, 0, 0)",
            (game.char_a, game.char_b)
        )
        conn.execute(
            f"INSERT OR IGNORE INTO {table} VALUES (?, ?, 0, 0, 0, 0)",
            (game.char_b, game.char_a)
        )


def _record_char_matchup(conn: sqlite3.Connection, table: str, winner_char: int, loser_char: int, surprise: float):
    conn.execute(f'''
        UPDATE {table}
        SET wins_real = wins_real + 1, wins_adjusted = wins_adjusted + ?
        WHERE char_id = ? AND opp_char_id = ?
    ''', (surprise, winner_char, loser_char))
    conn.execute(f'''
        UPDATE {table}
        SET losses_real = losses_real + 1, losses_adjusted = losses_adjusted + ?
        WHERE char_id = ? AND opp_char_id = ?
    ''', (surprise, loser_char, winner_char))


def _record_result(conn: sqlite3.Connection, game: Game, winner: RatedPlayer, winner_rating: Glicko2Rating,
                   loser: RatedPlayer, loser_rating: Glicko2Rating, loser_name: str,
                   winner_results: List[GameResult], loser_results: List[GameResult]):
    # Adjusted counts credit the winner with the loser's chance of winning
    surprise = win_probability(loser_rating.value, winner_rating.value)
    established = winner_rating.deviation < MAX_DEVIATION and loser_rating.deviation < MAX_DEVIATION

    winner_results.append(GameResult.win(loser_rating))
    loser_results.append(GameResult.loss(winner_rating))
    winner.win_count += 1
    loser.loss_count += 1

    conn.execute('''
        UPDATE player_matchups
        SET wins_real = wins_real + 1, wins_adjusted = wins_adjusted + ?
        WHERE id = ? AND char_id = ? AND opp_char_id = ?
    ''', (surprise if established else 0.0, winner.id, winner.char_id, loser.char_id))
    conn.execute('''
        UPDATE player_matchups
        SET losses_real = losses_real + 1, losses_adjusted = losses_adjusted + ?
        WHERE id = ? AND char_id = ? AND opp_char_id = ?
    ''', (surprise if established else 0.0, loser.id, loser.char_id, winner.char_id))

    if established:
        _record_char_matchup(conn, 'global_matchups', winner.char_id, loser.char_id, surprise)
        if winner_rating.value > HIGH_RATING and loser_rating.value > HIGH_RATING:
            _record_char_matchup(conn, 'high_rated_matchups', winner.char_id, loser.char_id, surprise)

    if loser_rating.deviation < MAX_DEVIATION:
        if winner.top_defeated is None or loser_rating.value > winner.top_defeated[3]:
            winner.top_defeated = (
                loser.id, loser.char_id, loser_name,
                loser_rating.value, loser_rating.deviation, game.timestamp
            )


def update_ratings(conn: sqlite3.Connection) -> Optional[int]:
    """
    Rate the next rating period and return its end timestamp.
    Returns None when there is nothing to rate yet.
    """
    last_timestamp = get_period_start(conn)
    if last_timestamp is None:
        logger.info("No games to rate yet")
        return None
    next_timestamp = last_timestamp + RATING_PERIOD

    logger.info(
        "Calculating ratings between %s and %s...",
        datetime.fromtimestamp(last_timestamp, timezone.utc).strftime('%Y-%m-%d %H:%M'),
        datetime.fromtimestamp(next_timestamp, timezone.utc).strftime('%Y-%m-%d %H:%M'),
    )

    cursor = conn.execute(
        "SELECT * FROM games WHERE timestamp >= ? AND timestamp < ? ORDER BY timestamp ASC",
        (last_timestamp, next_timestamp)
    )
    games = [Game.from_row(row) for row in cursor.fetchall()]

    players: Dict[Tuple[int, int], Tuple[RatedPlayer, List[GameResult]]] = {}
    cursor = conn.execute(f"SELECT {PLAYER_RATING_COLUMNS} FROM player_ratings")
    for row in cursor.fetchall():
        player = RatedPlayer.from_row(row)
        players[(player.id, player.char_id)] = (player, [])

    with conn:
        for g in games:
            update_player(conn, g.id_a, g.name_a, g.game_floor)
            update_player(conn, g.id_b, g.name_b, g.game_floor)

            player_a, results_a = players.setdefault(
                (g.id_a, g.char_a), (RatedPlayer(g.id_a, g.char_a), [])
            )
            player_b, results_b = players.setdefault(
                (g.id_b, g.char_b), (RatedPlayer(g.id_b, g.char_b), [])
            )
            # Ratings stay at their period-start value until the period is rated
            rating_a = player_a.rating
            rating_b = player_b.rating

            _ensure_matchup_rows(conn, g)

            if g.winner == 1:
                _record_result(conn, g, player_a, rating_a, player_b, rating_b, g.name_b, results_a, results_b)
            elif g.winner == 2:
                _record_result(conn, g, player_b, rating_b, player_a, rating_a, g.name_a, results_b, results_a)
            else:
                raise ValueError(f"Bad winner: {g.winner}")

            conn.execute(
                "INSERT OR REPLACE INTO game_ratings VALUES (?, ?, ?, ?, ?, ?, ?)",
                (g.timestamp, g.id_a, rating_a.value, rating_a.deviation,
                 g.id_b, rating_b.value, rating_b.deviation)
            )

        for player, results in players.values():
            player.rating = new_rating(player.rating, results, SYS_CONSTANT)

            if player.rating.deviation < 0.0:
                logger.error("Negative rating deviation for %s/%s", player.id, player.char_id)

            if player.rating.deviation < MAX_DEVIATION:
                if player.top_rating is None or player.rating.value > player.top_rating[0]:
                    player.top_rating = (player.rating.value, player.rating.deviation, next_timestamp)

            top_rating = player.top_rating or (None, None, None)
            top_defeated = player.top_defeated or (None, None, None, None, None, None)
            conn.execute(f'''
                REPLACE INTO player_ratings ({PLAYER_RATING_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                player.id, player.char_id, player.win_count, player.loss_count,
                player.rating.value, player.rating.deviation, player.rating.volatility,
                *top_rating, *top_defeated
            ))

        conn.execute("UPDATE config SET last_update = ?", (next_timestamp,))

    logger.info("Rated %d games for %d characters", len(games), len(players))
    return next_timestamp


def update_ratings_until(conn: sqlite3.Connection, now: int, max_periods: int = None) -> int:
    """Rate every complete period that ended more than a minute before now."""
    rated = 0
    while max_periods is None or rated < max_periods:
        period_start = get_period_start(conn)
        if period_start is None or now - period_start <= RATING_PERIOD + 60:
            break
        update_ratings(conn)
        rated += 1
    return rated


def update_player_distribution(conn: sqlite3.Connection):
    """Recompute floor and rating distributions."""
    with conn:
        conn.execute("DELETE FROM player_floor_distribution")
        conn.execute("DELETE FROM player_rating_distribution")

        for f in FLOORS:
            player_count = conn.execute(
                "SELECT COUNT(*) FROM players WHERE floor = ?", (f,)
            ).fetchone()[0]
            game_count = conn.execute(
                "SELECT COUNT(*) FROM games WHERE game_floor = ?", (f,)
            ).fetchone()[0]
            conn.execute('''
                INSERT INTO player_floor_distribution (floor, player_count, game_count)
                VALUES (?, ?, ?)
            ''', (f, player_count, game_count))

        for r in range(RATING_BUCKET_COUNT):
            r_min = r * RATING_BUCKET_SIZE
            r_max = (r + 1) * RATING_BUCKET_SIZE

            player_count = conn.execute('''
                SELECT COUNT(*) FROM player_ratings
                WHERE value >= ? AND value < ? AND deviation < ?
            ''', (glicko_to_glicko2(r_min), glicko_to_glicko2(r_max), MAX_DEVIATION)).fetchone()[0]

            if player_count < MIN_BUCKET_PLAYERS:
                continue

            player_count_cum = conn.execute('''
                SELECT COUNT(*) FROM player_ratings
                WHERE value < ? AND deviation < ?
            ''', (glicko_to_glicko2(r_max), MAX_DEVIATION)).fetchone()[0]

            conn.execute('''
                INSERT INTO player_rating_distribution
                (min_rating, max_rating, player_count, player_count_cum)
                VALUES (?, ?, ?, ?)
            ''', (r_min, r_max, player_count, player_count_cum))


def calc_versus_matchups(conn: sqlite3.Connection):
    """
    Character-vs-character win rates from games between high rated players.
    Each (player, character) pair is weighted equally regardless of how often they met.
    """
    logger.info("Calculating matchups")
    pairs = defaultdict(lambda: [0.0, 0.0, 0])

    cursor = conn.execute('''
        SELECT id_a, char_a, value_a, id_b, char_b, value_b, winner
        FROM games NATURAL JOIN game_ratings
        WHERE value_a > ? AND deviation_a < ? AND value_b > ? AND deviation_b < ?
    ''', (HIGH_RATING, MAX_DEVIATION, HIGH_RATING, MAX_DEVIATION))

    for id_a, char_a, value_a, id_b, char_b, value_b, winner in cursor.fetchall():
        if char_a == char_b:
            continue
        if char_b < char_a:
            id_a, char_a, value_a, id_b, char_b, value_b = id_b, char_b, value_b, id_a, char_a, value_a
            winner = 2 if winner == 1 else 1

        pair = pairs[((id_a, char_a), (id_b, char_b))]
        win_chance = win_probability(value_a, value_b)
        if winner == 1:
            pair[0] += 1.0 - win_chance
        elif winner == 2:
            pair[1] += win_chance
        else:
            raise ValueError(f"Bad winner: {winner}")
        pair[2] += 1

    by_chars = defaultdict(list)
    for ((_, char_a), (_, char_b)), (wins, losses, games) in pairs.items():
        if wins + losses > 0:
            by_chars[(char_a, char_b)].append((wins / (wins + losses), games))

    with conn:
        conn.execute("DELETE FROM versus_matchups")
        for a in range(len(CHARACTERS) - 1):
            for b in range(a + 1, len(CHARACTERS)):
                entries = by_chars.get((a, b), [])
                pair_count = len(entries)
                game_count = sum(games for _, games in entries)
                probability = sum(p for p, _ in entries) / pair_count if pair_count else None
                conn.execute('''
                    INSERT INTO versus_matchups (char_a, char_b, game_count, pair_count, win_rate)
                    VALUES (?, ?, ?, ?, ?)
                ''', (a, b, game_count, pair_count, probability))
                conn.execute('''
                    INSERT INTO versus_matchups (char_a, char_b, game_count, pair_count, win_rate)
                    VALUES (?, ?, ?, ?, ?)
                ''', (b, a, game_count, pair_count, 1.0 - probability if probability is not None else None))

    logger.info("Done")


def set_vip(conn: sqlite3.Connection, player_id: int, notes: str = None):
    with conn:
        conn.execute("REPLACE INTO vip_status (id, notes) VALUES (?, ?)", (player_id, notes))


def set_cheater(conn: sqlite3.Connection, player_id: int, cheater_type: str, notes: str = None):
    """Flag a player; flagged players are left out of rankings and their ratings are hidden."""
    with conn:
        conn.execute(
            "REPLACE INTO cheater_status (id, cheater_type, notes) VALUES (?, ?, ?)",
            (player_id, cheater_type, notes)
        )


def clear_flags(conn: sqlite3.Connection, player_id: int):
    with conn:
        conn.execute("DELETE FROM vip_status WHERE id = ?", (player_id,))
        conn.execute("DELETE FROM cheater_status WHERE id = ?", (player_id,))


def main():
    """CLI interface for database maintenance and rating updates."""
    parser = argparse.ArgumentParser(description='Maintain the GGST rating database')
    parser.add_argument('--database', default=DB_NAME, help='SQLite database file')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('init', help='Create the database tables')
    subparsers.add_parser('reset', help='Drop all data and recreate the tables')
    subparsers.add_parser('reset-names', help='Rebuild player names from stored games')
    subparsers.add_parser('reset-distribution', help='Recompute floor and rating distributions')
    subparsers.add_parser('matchups', help='Recompute character vs character matchups')

    load_parser = subparsers.add_parser('load-json', help='Load replay dumps matching PREFIX*.json')
    load_parser.add_argument('prefix', help='Path prefix of the JSON dumps')

    update_parser = subparsers.add_parser('update', help='Rate all complete rating periods')
    update_parser.add_argument('--periods', type=int, help='Maximum number of periods to rate')

    flag_parser = subparsers.add_parser('flag', help='Set or clear player flags')
    flag_parser.add_argument('player_id', type=int, help='Player ID')
    flag_group = flag_parser.add_mutually_exclusive_group(required=True)
    flag_group.add_argument('--vip', action='store_true', help='Mark player as VIP')
    flag_group.add_argument('--cheater', metavar='TYPE', help='Mark player as cheater')
    flag_group.add_argument('--clear', action='store_true', help='Remove all flags')
    flag_parser.add_argument('--notes', help='Optional notes')

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        if args.command == 'init':
            init_database(args.database)
            print(f"✅ Database ready: {args.database}")
            return 0
        if args.command == 'reset':
            reset_database(args.database)
            print(f"✅ Database reset: {args.database}")
            return 0

        conn = connect(args.database)
        try:
            if args.command == 'reset-names':
                reset_names(conn)
                print("✅ Player names rebuilt")
            elif args.command == 'reset-distribution':
                update_player_distribution(conn)
                print("✅ Distributions recomputed")
            elif args.command == 'matchups':
                calc_versus_matchups(conn)
                print("✅ Matchups recomputed")
            elif args.command == 'load-json':
                count = load_json_data(conn, args.prefix)
                print(f"✅ Loaded {count} games")
            elif args.command == 'update':
                now = int(datetime.now(timezone.utc).timestamp())
                rated = update_ratings_until(conn, now, args.periods)
                if rated:
                    update_player_distribution(conn)
                    calc_versus_matchups(conn)
                print(f"✅ Rated {rated} periods")
            elif args.command == 'flag':
                if args.vip:
                    set_vip(conn, args.player_id, args.notes)
                elif args.cheater:
                    set_cheater(conn, args.player_id, args.cheater, args.notes)
                else:
                    clear_flags(conn, args.player_id)
                print(f"✅ Updated flags for {args.player_id}")
        finally:
            conn.close()

    except (sqlite3.Error, ValueError, OSError) as e:
        print(f"❌ Error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    exit(main())
