"""
Persistence layer for league data.
No business logic; only read/write interfaces.
"""
from .db import get_connection, init_db, set_db_path, transaction
from .repositories import (
    LeagueMemberRepository,
    LeagueRepository,
    PlayerRepository,
    RoundRepository,
    SeatRepository,
    TableRepository,
    UserRepository,
)
from .store import SessionStore

__all__ = [
    "get_connection",
    "init_db",
    "set_db_path",
    "transaction",
    "LeagueMemberRepository",
    "LeagueRepository",
    "PlayerRepository",
    "RoundRepository",
    "SeatRepository",
    "TableRepository",
    "UserRepository",
    "SessionStore",
]
