"""
SQLite schema for league, round, table and seat entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def users_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT UNIQUE,
        created_at TEXT NOT NULL
    );
    """


def leagues_schema() -> str:
    """status: active | completed."""
    return """
    CREATE TABLE IF NOT EXISTS leagues (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (created_by) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_leagues_created_by ON leagues(created_by);
    """


def league_members_schema() -> str:
    """Who may do what in a league. role: admin | scorer | viewer. One row per user per league."""
    return """
    CREATE TABLE IF NOT EXISTS league_members (
        league_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        role TEXT NOT NULL,
        joined_at TEXT NOT NULL,
        PRIMARY KEY (league_id, user_id),
        FOREIGN KEY (league_id) REFERENCES leagues(id),
        FOREIGN KEY (user_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_league_members_user ON league_members(user_id);
    """


def players_schema() -> str:
    """Players are enrolled in exactly one league; user_id links an account when claimed."""
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        league_id TEXT NOT NULL,
        name TEXT NOT NULL,
        user_id TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (league_id) REFERENCES leagues(id),
        FOREIGN KEY (user_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_players_league ON players(league_id);
    """


def rounds_schema() -> str:
    """One row per round. (league_id, round_number) is unique; concurrent creation loses on insert."""
    return """
    CREATE TABLE IF NOT EXISTS rounds (
        id TEXT PRIMARY KEY,
        league_id TEXT NOT NULL,
        round_number INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (league_id) REFERENCES leagues(id)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_rounds_league_number ON rounds(league_id, round_number);
    """


def round_tables_schema() -> str:
    """table_type: first | upper | lower."""
    return """
    CREATE TABLE IF NOT EXISTS round_tables (
        id TEXT PRIMARY KEY,
        round_id TEXT NOT NULL,
        table_number INTEGER NOT NULL,
        table_type TEXT NOT NULL CHECK (table_type IN ('first', 'upper', 'lower')),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (round_id) REFERENCES rounds(id)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_round_tables_round_number ON round_tables(round_id, table_number);
    """


def seats_schema() -> str:
    """
    Score fields stay NULL until the table is scored.
    score_pt and total_pt are one-decimal text (e.g. '12.3').
    """
    return """
    CREATE TABLE IF NOT EXISTS seats (
        id TEXT PRIMARY KEY,
        table_id TEXT NOT NULL,
        player_id TEXT NOT NULL,
        wind TEXT NOT NULL CHECK (wind IN ('east', 'south', 'west', 'north')),
        final_score INTEGER,
        score_pt TEXT,
        rank INTEGER,
        rank_pt INTEGER,
        total_pt TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (table_id) REFERENCES round_tables(id),
        FOREIGN KEY (player_id) REFERENCES players(id)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_seats_table_wind ON seats(table_id, wind);
    CREATE UNIQUE INDEX IF NOT EXISTS ix_seats_table_player ON seats(table_id, player_id);
    CREATE INDEX IF NOT EXISTS ix_seats_player ON seats(player_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Parents before children."""
    return "\n".join([
        users_schema(),
        leagues_schema(),
        league_members_schema(),
        players_schema(),
        rounds_schema(),
        round_tables_schema(),
        seats_schema(),
    ])
