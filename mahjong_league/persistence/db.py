"""
Database connection, initialization and transactions.
"""
from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .schema import all_schema_sql

logger = logging.getLogger(__name__)

DB_PATH_ENV = "MAHJONG_DB_PATH"
DB_TIMEOUT_ENV = "MAHJONG_DB_TIMEOUT"
DEFAULT_TIMEOUT_SECONDS = 5.0


# Default DB path (project root / data / league.db)
def _default_db_path() -> Path:
    return Path(__file__).resolve().parent.parent.parent / "data" / "league.db"


_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Set the database path. Call before first get_connection if not using default."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Return the current database path: set_db_path, then $MAHJONG_DB_PATH, then default."""
    if _db_path is not None:
        return _db_path
    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        return Path(env_path)
    return _default_db_path()


def get_lock_timeout() -> float:
    """Seconds to wait for a write lock before sqlite3 raises 'database is locked'."""
    raw = os.environ.get(DB_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %.1fs", DB_TIMEOUT_ENV, raw, DEFAULT_TIMEOUT_SECONDS)
        return DEFAULT_TIMEOUT_SECONDS


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection with foreign keys on.
    One connection per thread. Use as context manager or ensure close() is called.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=get_lock_timeout())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str | Path | None = None) -> None:
    """Create or ensure all tables exist."""
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
    finally:
        conn.close()
    logger.debug("Database schema ready at %s", path)


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    All-or-nothing unit of work. BEGIN IMMEDIATE takes the write lock up front,
    so reads inside the block cannot interleave with another writer.
    Nested use joins the outer transaction; only the outermost block commits.
    """
    if conn.in_transaction:
        yield conn
        return
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()
