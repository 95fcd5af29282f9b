"""
SQLite schema and connection helpers for the rating database.
"""

import sqlite3
import logging

logger = logging.getLogger(__name__)

DB_NAME = "ratings.sqlite"

SCHEMA = """
CREATE TABLE IF NOT EXISTS config (
    last_update INTEGER
);

CREATE TABLE IF NOT EXISTS games (
    timestamp INTEGER NOT NULL,
    id_a INTEGER NOT NULL,
    name_a TEXT NOT NULL,
    char_a INTEGER NOT NULL,
    id_b INTEGER NOT NULL,
    name_b TEXT NOT NULL,
    char_b INTEGER NOT NULL,
    winner INTEGER NOT NULL,
    game_floor INTEGER NOT NULL,
    PRIMARY KEY (timestamp, id_a, id_b)
);

CREATE INDEX IF NOT EXISTS games_id_a ON games(id_a, char_a);
CREATE INDEX IF NOT EXISTS games_id_b ON games(id_b, char_b);

CREATE TABLE IF NOT EXISTS game_ratings (
    timestamp INTEGER NOT NULL,
    id_a INTEGER NOT NULL,
    value_a REAL NOT NULL,
    deviation_a REAL NOT NULL,
    id_b INTEGER NOT NULL,
    value_b REAL NOT NULL,
    deviation_b REAL NOT NULL,
    PRIMARY KEY (timestamp, id_a, id_b)
);

CREATE TABLE IF NOT EXISTS players (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    platform TEXT,
    floor INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS player_names (
    id INTEGER NOT NULL,
    name TEXT NOT NULL,
    PRIMARY KEY (id, name)
);

CREATE TABLE IF NOT EXISTS player_ratings (
    id INTEGER NOT NULL,
    char_id INTEGER NOT NULL,
    wins INTEGER NOT NULL,
    losses INTEGER NOT NULL,
    value REAL NOT NULL,
    deviation REAL NOT NULL,
    volatility REAL NOT NULL,
    top_rating_value REAL,
    top_rating_deviation REAL,
    top_rating_timestamp INTEGER,
    top_defeated_id INTEGER,
    top_defeated_char_id INTEGER,
    top_defeated_name TEXT,
    top_defeated_value REAL,
    top_defeated_deviation REAL,
    top_defeated_timestamp INTEGER,
    PRIMARY KEY (id, char_id)
);

CREATE INDEX IF NOT EXISTS player_ratings_value ON player_ratings(value);

CREATE TABLE IF NOT EXISTS player_matchups (
    id INTEGER NOT NULL,
    char_id INTEGER NOT NULL,
    opp_char_id INTEGER NOT NULL,
    wins_real INTEGER NOT NULL,
    wins_adjusted REAL NOT NULL,
    losses_real INTEGER NOT NULL,
    losses_adjusted REAL NOT NULL,
    PRIMARY KEY (id, char_id, opp_char_id)
);

CREATE TABLE IF NOT EXISTS global_matchups (
    char_id INTEGER NOT NULL,
    opp_char_id INTEGER NOT NULL,
    wins_real INTEGER NOT NULL,
    wins_adjusted REAL NOT NULL,
    losses_real INTEGER NOT NULL,
    losses_adjusted REAL NOT NULL,
    PRIMARY KEY (char_id, opp_char_id)
);

CREATE TABLE IF NOT EXISTS high_rated_matchups (
    char_id INTEGER NOT NULL,
    opp_char_id INTEGER NOT NULL,
    wins_real INTEGER NOT NULL,
    wins_adjusted REAL NOT NULL,
    losses_real INTEGER NOT NULL,
    losses_adjusted REAL NOT NULL,
    PRIMARY KEY (char_id, opp_char_id)
);

CREATE TABLE IF NOT EXISTS versus_matchups (
    char_a INTEGER NOT NULL,
    char_b INTEGER NOT NULL,
    game_count INTEGER NOT NULL,
    pair_count INTEGER NOT NULL,
    win_rate REAL,
    PRIMARY KEY (char_a, char_b)
);

CREATE TABLE IF NOT EXISTS player_floor_distribution (
    floor INTEGER PRIMARY KEY,
    player_count INTEGER NOT NULL,
    game_count INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS player_rating_distribution (
    min_rating INTEGER PRIMARY KEY,
    max_rating INTEGER NOT NULL,
    player_count INTEGER NOT NULL,
    player_count_cum INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS vip_status (
    id INTEGER PRIMARY KEY,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS cheater_status (
    id INTEGER PRIMARY KEY,
    cheater_type TEXT NOT NULL,
    notes TEXT
);
"""

TABLES = [
    'config', 'games', 'game_ratings', 'players', 'player_names', 'player_ratings',
    'player_matchups', 'global_matchups', 'high_rated_matchups', 'versus_matchups',
    'player_floor_distribution', 'player_rating_distribution', 'vip_status', 'cheater_status',
]


def connect(db_path: str = DB_NAME) -> sqlite3.Connection:
    """Open a connection with the schema in place."""
    conn = sqlite3.connect(db_path)
    conn.executescript(SCHEMA)
    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(*) FROM config")
    if cursor.fetchone()[0] == 0:
        cursor.execute("INSERT INTO config (last_update) VALUES (NULL)")
        conn.commit()
    return conn


def init_database(db_path: str = DB_NAME):
    """Create all tables if they don't exist."""
    logger.info("Initializing database")
    conn = connect(db_path)
    conn.close()


def reset_database(db_path: str = DB_NAME):
    """Drop every table and recreate the empty schema."""
    logger.info("Resetting database")
    conn = sqlite3.connect(db_path)
    for table in TABLES:
        conn.execute(f"DROP TABLE IF EXISTS {table}")
    conn.commit()
    conn.close()
    init_database(db_path)
