#!/usr/bin/env python3
"""
Player profile data for the GGST rating pages.
Resolves a player + character to everything the player page shows, and pages
through a character's match history.
"""

import math
import sqlite3
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional, Tuple

from .characters import CHARACTERS, character_name, character_short, floor_name, platform_name
from .glicko2 import GLICKO2_SCALE, glicko2_to_glicko, deviation_to_glicko
from .rater import MAX_DEVIATION

HISTORY_PAGE_SIZE = 100

# Matchup coloring thresholds (Glicko points / games)
MATCHUP_OFFSET_THRESHOLD = 25
MATCHUP_MIN_GAMES = 10


@dataclass
class Matchup:
    """Aggregate results of one character against one opponent character."""
    character_name: str
    character_short: str
    game_count: int
    win_rate: float
    rating_offset: int
    display_class: str


@dataclass
class CharacterSummary:
    """Sibling character entry for the navigation list."""
    shortname: str
    name: str
    rating_value: int
    rating_deviation: int
    game_count: int


@dataclass
class CharacterRatingData:
    character_name: str
    character_short: str
    rating_value: int
    rating_deviation: int
    game_count: int
    win_rate: float
    character_rank: Optional[int] = None
    global_rank: Optional[int] = None
    top_rating_value: Optional[int] = None
    top_rating_deviation: Optional[int] = None
    top_rating_timestamp: Optional[str] = None
    top_defeated_id: Optional[int] = None
    top_defeated_char_short: Optional[str] = None
    top_defeated_character: Optional[str] = None
    top_defeated_name: Optional[str] = None
    top_defeated_value: Optional[int] = None
    top_defeated_deviation: Optional[int] = None
    top_defeated_timestamp: Optional[str] = None
    matchups: List[Matchup] = field(default_factory=list)


@dataclass
class Player:
    id: int
    name: str
    platform: str
    vip_status: bool
    cheater_status: bool
    data: CharacterRatingData
    cheater_type: Optional[str] = None
    vip_notes: Optional[str] = None
    other_names: List[str] = field(default_factory=list)
    other_characters: List[CharacterSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def format_timestamp(timestamp: Optional[int]) -> Optional[str]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, timezone.utc).strftime('%Y-%m-%d %H:%M')


def display_rating(value: Optional[float], deviation: Optional[float]) -> Tuple[Optional[int], Optional[int]]:
    """Glicko-2 value/deviation to rounded Glicko numbers."""
    if value is None or deviation is None:
        return None, None
    return round(glicko2_to_glicko(value)), round(deviation_to_glicko(deviation))


def matchup_rating_offset(wins_adjusted: float, losses_adjusted: float, game_count: int) -> int:
    """
    Rating difference implied by the average surprise in a matchup.
    The win probability curve has slope 1/4 at even odds on the Glicko-2 scale.
    """
    if game_count == 0:
        return 0
    return round(4 * GLICKO2_SCALE * (wins_adjusted - losses_adjusted) / game_count)


def matchup_display_class(rating_offset: int, game_count: int) -> str:
    if game_count < MATCHUP_MIN_GAMES:
        return 'matchup-unsure'
    if rating_offset >= MATCHUP_OFFSET_THRESHOLD:
        return 'matchup-good'
    if rating_offset <= -MATCHUP_OFFSET_THRESHOLD:
        return 'matchup-bad'
    return 'matchup-even'


class PlayerProfileGenerator:
    """Reads player profiles and match history from the rating database."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row

    def close(self):
        """Close database connection."""
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def get_player(self, player_id: int, char_id: int) -> Optional[Player]:
        """Profile of a player on one character, or None if they never played it."""
        cursor = self.conn.cursor()

        cursor.execute("SELECT id, name, platform FROM players WHERE id = ?", (player_id,))
        player_row = cursor.fetchone()
        if not player_row:
            return None

        cursor.execute('''
            SELECT * FROM player_ratings WHERE id = ? AND char_id = ?
        ''', (player_id, char_id))
        rating_row = cursor.fetchone()
        if not rating_row:
            return None

        cursor.execute("SELECT notes FROM vip_status WHERE id = ?", (player_id,))
        vip_row = cursor.fetchone()
        cursor.execute("SELECT cheater_type FROM cheater_status WHERE id = ?", (player_id,))
        cheater_row = cursor.fetchone()

        cursor.execute('''
            SELECT name FROM player_names WHERE id = ? AND name != ? ORDER BY rowid
        ''', (player_id, player_row['name']))
        other_names = [row['name'] for row in cursor.fetchall()]

        data = self._character_data(rating_row, is_cheater=cheater_row is not None)

        return Player(
            id=player_row['id'],
            name=player_row['name'],
            platform=platform_name(player_row['platform']),
            vip_status=vip_row is not None,
            vip_notes=vip_row['notes'] if vip_row else None,
            cheater_status=cheater_row is not None,
            cheater_type=cheater_row['cheater_type'] if cheater_row else None,
            data=data,
            other_names=other_names,
            other_characters=self._other_characters(player_id, char_id),
        )

    def _character_data(self, row: sqlite3.Row, is_cheater: bool) -> CharacterRatingData:
        game_count = row['wins'] + row['losses']
        value, deviation = display_rating(row['value'], row['deviation'])

        data = CharacterRatingData(
            character_name=character_name(row['char_id']),
            character_short=character_short(row['char_id']),
            rating_value=value,
            rating_deviation=deviation,
            game_count=game_count,
            win_rate=row['wins'] / game_count if game_count else 0.0,
        )

        if not is_cheater and row['deviation'] < MAX_DEVIATION:
            data.character_rank, data.global_rank = self._ranks(row['char_id'], row['value'])

        if row['top_rating_value'] is not None:
            data.top_rating_value, data.top_rating_deviation = display_rating(
                row['top_rating_value'], row['top_rating_deviation']
            )
            data.top_rating_timestamp = format_timestamp(row['top_rating_timestamp'])

        if row['top_defeated_id'] is not None:
            data.top_defeated_id = row['top_defeated_id']
            data.top_defeated_char_short = character_short(row['top_defeated_char_id'])
            data.top_defeated_character = character_name(row['top_defeated_char_id'])
            data.top_defeated_name = row['top_defeated_name']
            data.top_defeated_value, data.top_defeated_deviation = display_rating(
                row['top_defeated_value'], row['top_defeated_deviation']
            )
            data.top_defeated_timestamp = format_timestamp(row['top_defeated_timestamp'])

        data.matchups = self._matchups(row['id'], row['char_id'])
        return data

    def _ranks(self, char_id: int, value: float) -> Tuple[int, int]:
        """Character and global rank among established, unflagged ratings."""
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT COUNT(*) FROM player_ratings
            WHERE char_id = ? AND deviation < ? AND value > ?
            AND id NOT IN (SELECT id FROM cheater_status)
        ''', (char_id, MAX_DEVIATION, value))
        character_rank = cursor.fetchone()[0] + 1

        cursor.execute('''
            SELECT COUNT(*) FROM player_ratings
            WHERE deviation < ? AND value > ?
            AND id NOT IN (SELECT id FROM cheater_status)
        ''', (MAX_DEVIATION, value))
        global_rank = cursor.fetchone()[0] + 1

        return character_rank, global_rank

    def _matchups(self, player_id: int, char_id: int) -> List[Matchup]:
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT opp_char_id, wins_real, wins_adjusted, losses_real, losses_adjusted
            FROM player_matchups
            WHERE id = ? AND char_id = ?
            ORDER BY wins_real + losses_real DESC, opp_char_id ASC
        ''', (player_id, char_id))

        matchups = []
        for row in cursor.fetchall():
            game_count = row['wins_real'] + row['losses_real']
            if game_count == 0:
                continue
            offset = matchup_rating_offset(row['wins_adjusted'], row['losses_adjusted'], game_count)
            matchups.append(Matchup(
                character_name=character_name(row['opp_char_id']),
                character_short=character_short(row['opp_char_id']),
                game_count=game_count,
                win_rate=row['wins_real'] / game_count,
                rating_offset=offset,
                display_class=matchup_display_class(offset, game_count),
            ))
        return matchups

    def _other_characters(self, player_id: int, char_id: int) -> List[CharacterSummary]:
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT char_id, value, deviation, wins, losses
            FROM player_ratings
            WHERE id = ? AND char_id != ?
            ORDER BY wins + losses DESC, char_id ASC
        ''', (player_id, char_id))

        summaries = []
        for row in cursor.fetchall():
            value, deviation = display_rating(row['value'], row['deviation'])
            summaries.append(CharacterSummary(
                shortname=character_short(row['char_id']),
                name=character_name(row['char_id']),
                rating_value=value,
                rating_deviation=deviation,
                game_count=row['wins'] + row['losses'],
            ))
        return summaries

    def get_history(self, player_id: int, char_id: int, page: int = 0,
                    page_size: int = HISTORY_PAGE_SIZE) -> Dict[str, Any]:
        """
        One page of a character's games, newest first.

        Returns:
            Dict with structure: {
                'page': int,
                'page_count': int,
                'games': [
                    {'timestamp': 'YYYY-MM-DD HH:MM', 'floor': str, 'own_rating': int,
                     'own_deviation': int, 'opponent_id': int, 'opponent_name': str,
                     'opponent_character': str, 'opponent_char_short': str,
                     'opponent_rating': int, 'opponent_deviation': int, 'result': 'W' | 'L'},
                    ...
                ]
            }
        """
        if page < 0:
            raise ValueError(f"Invalid history page: {page}")
        if page_size <= 0:
            raise ValueError(f"Invalid history page size: {page_size}")

        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT COUNT(*) FROM games
            WHERE (id_a = ? AND char_a = ?) OR (id_b = ? AND char_b = ?)
        ''', (player_id, char_id, player_id, char_id))
        total = cursor.fetchone()[0]

        cursor.execute('''
            SELECT g.timestamp, g.id_a, g.name_a, g.char_a, g.id_b, g.name_b, g.char_b,
                   g.winner, g.game_floor, r.value_a, r.deviation_a, r.value_b, r.deviation_b
            FROM games g
            LEFT JOIN game_ratings r
                ON r.timestamp = g.timestamp AND r.id_a = g.id_a AND r.id_b = g.id_b
            WHERE (g.id_a = ? AND g.char_a = ?) OR (g.id_b = ? AND g.char_b = ?)
            ORDER BY g.timestamp DESC
            LIMIT ? OFFSET ?
        ''', (player_id, char_id, player_id, char_id, page_size, page * page_size))

        games = []
        for row in cursor.fetchall():
            if row['id_a'] == player_id and row['char_a'] == char_id:
                side, opp = 'a', 'b'
                won = row['winner'] == 1
            else:
                side, opp = 'b', 'a'
                won = row['winner'] == 2

            own_rating, own_deviation = display_rating(row[f'value_{side}'], row[f'deviation_{side}'])
            opp_rating, opp_deviation = display_rating(row[f'value_{opp}'], row[f'deviation_{opp}'])
            games.append({
                'timestamp': format_timestamp(row['timestamp']),
                'floor': floor_name(row['game_floor']),
                'own_rating': own_rating,
                'own_deviation': own_deviation,
                'opponent_id': row[f'id_{opp}'],
                'opponent_name': row[f'name_{opp}'],
                'opponent_character': character_name(row[f'char_{opp}']),
                'opponent_char_short': character_short(row[f'char_{opp}']),
                'opponent_rating': opp_rating,
                'opponent_deviation': opp_deviation,
                'result': 'W' if won else 'L',
            })

        return {
            'page': page,
            'page_count': math.ceil(total / page_size),
            'games': games,
        }

    def get_rated_players(self) -> List[Tuple[int, int]]:
        """Every (player id, character) with a rating."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, char_id FROM player_ratings ORDER BY id, char_id")
        return [(row['id'], row['char_id']) for row in cursor.fetchall()]

    def get_distribution(self) -> Dict[str, List[Dict]]:
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT floor, player_count, game_count FROM player_floor_distribution ORDER BY floor
        ''')
        floors = [
            {'floor': floor_name(row['floor']), 'player_count': row['player_count'], 'game_count': row['game_count']}
            for row in cursor.fetchall()
        ]

        cursor.execute('''
            SELECT min_rating, max_rating, player_count, player_count_cum
            FROM player_rating_distribution ORDER BY min_rating
        ''')
        ratings = [dict(row) for row in cursor.fetchall()]

        return {'floors': floors, 'ratings': ratings}

    def get_global_matchups(self) -> Dict[str, Any]:
        """Character matchup tables keyed by character shortname."""
        result = {}
        for table in ('global_matchups', 'high_rated_matchups'):
            cursor = self.conn.cursor()
            cursor.execute(f'''
                SELECT char_id, opp_char_id, wins_real, wins_adjusted, losses_real, losses_adjusted
                FROM {table}
            ''')
            matchups = {short: {} for short, _ in CHARACTERS}
            for row in cursor.fetchall():
                game_count = row['wins_real'] + row['losses_real']
                if game_count == 0:
                    continue
                matchups[character_short(row['char_id'])][character_short(row['opp_char_id'])] = {
                    'game_count': game_count,
                    'win_rate': row['wins_real'] / game_count,
                    'rating_offset': matchup_rating_offset(row['wins_adjusted'], row['losses_adjusted'], game_count),
                }
            result[table.replace('_matchups', '')] = matchups

        cursor = self.conn.cursor()
        cursor.execute("SELECT char_a, char_b, game_count, pair_count, win_rate FROM versus_matchups")
        versus = {short: {} for short, _ in CHARACTERS}
        for row in cursor.fetchall():
            versus[character_short(row['char_a'])][character_short(row['char_b'])] = {
                'game_count': row['game_count'],
                'pair_count': row['pair_count'],
                'win_rate': row['win_rate'],
            }
        result['versus'] = versus

        return result
