"""
Data models for the mahjong league backend.
Domain objects only. No persistence or matching logic.

A league has 16 players; the league is played in numbered rounds; each round
has 4 tables of 4 seats. Seats carry the final score and derived points.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


# ---------- Wind (seat order, also the tie-break order) ----------
class Wind(str, Enum):
    EAST = "east"
    SOUTH = "south"
    WEST = "west"
    NORTH = "north"


# Seating order for a new table; index is also tie-break priority (lower wins).
WIND_ORDER: tuple[Wind, ...] = (Wind.EAST, Wind.SOUTH, Wind.WEST, Wind.NORTH)


def parse_wind(value: str | Wind) -> Wind:
    """Parse a wind from its stored string. Raises ValueError if unknown."""
    if isinstance(value, Wind):
        return value
    try:
        return Wind(value.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown wind: {value!r}") from None


# ---------- Table type (governs rank point scale) ----------
class TableType(str, Enum):
    FIRST = "first"  # round 1 only
    UPPER = "upper"  # promoted players, rounds 2+
    LOWER = "lower"  # relegated players, rounds 2+


def parse_table_type(value: str | TableType) -> TableType:
    if isinstance(value, TableType):
        return value
    try:
        return TableType(value.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown table type: {value!r}") from None


# ---------- Member role ----------
class MemberRole(str, Enum):
    ADMIN = "admin"    # creates rounds, enters scores
    SCORER = "scorer"  # enters scores
    VIEWER = "viewer"


class LeagueStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


def _decimal_str(value: Decimal | None) -> str | None:
    return None if value is None else f"{value:.1f}"


# ---------- League ----------
@dataclass
class League:
    id: str
    name: str
    created_by: str
    status: str  # LeagueStatus value
    created_at: datetime
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "created_by": self.created_by,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }
        if self.description is not None:
            d["description"] = self.description
        return d


# ---------- Player ----------
@dataclass(frozen=True)
class Player:
    """A league participant. Belongs to exactly one league; optionally linked to a user."""
    id: str
    name: str
    league_id: str | None = None
    user_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


# ---------- LeagueMember (join: league_id, user_id, role) ----------
@dataclass
class LeagueMember:
    league_id: str
    user_id: str
    role: str  # MemberRole value
    joined_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "user_id": self.user_id,
            "role": self.role,
            "joined_at": self.joined_at.isoformat(),
        }


# ---------- Seat ----------
@dataclass
class Seat:
    """
    One player's position at a table.
    final_score is None until entered; the derived fields are None until scored.
    """
    id: str
    table_id: str
    player_id: str
    wind: Wind
    final_score: int | None = None
    score_pt: Decimal | None = None
    rank: int | None = None
    rank_pt: int | None = None
    total_pt: Decimal | None = None
    player_name: str | None = None

    @property
    def is_scored(self) -> bool:
        return self.rank is not None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "player_id": self.player_id,
            "wind": self.wind.value,
            "final_score": self.final_score,
            "score_pt": _decimal_str(self.score_pt),
            "rank": self.rank,
            "rank_pt": self.rank_pt,
            "total_pt": _decimal_str(self.total_pt),
        }
        if self.player_name is not None:
            d["player"] = {"id": self.player_id, "name": self.player_name}
        return d


# ---------- Table ----------
@dataclass
class Table:
    """One four-player match within a round. Seats are ordered by wind."""
    id: str
    round_id: str
    table_number: int  # 1-4
    table_type: TableType
    seats: list[Seat] = field(default_factory=list)
    league_id: str | None = None

    @property
    def is_scored(self) -> bool:
        return bool(self.seats) and all(s.is_scored for s in self.seats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "round_id": self.round_id,
            "table_number": self.table_number,
            "table_type": self.table_type.value,
            "seats": [s.to_dict() for s in self.seats],
        }


# ---------- Round (a.k.a. session) ----------
@dataclass
class Round:
    """
    One numbered cycle within a league. Owns exactly four tables.
    round_number is unique per league and starts at 1.
    """
    id: str
    league_id: str
    round_number: int
    created_at: datetime
    tables: list[Table] = field(default_factory=list)

    @property
    def is_fully_scored(self) -> bool:
        return bool(self.tables) and all(t.is_scored for t in self.tables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "league_id": self.league_id,
            "round_number": self.round_number,
            "created_at": self.created_at.isoformat(),
            "tables": [t.to_dict() for t in self.tables],
        }


# ---------- Matching plan (no ids yet; nothing persisted) ----------
@dataclass(frozen=True)
class SeatPlan:
    player_id: str
    wind: Wind


@dataclass(frozen=True)
class TablePlan:
    table_number: int
    table_type: TableType
    seats: tuple[SeatPlan, ...]

    @property
    def player_ids(self) -> list[str]:
        return [s.player_id for s in self.seats]


# ---------- Score engine input/output ----------
@dataclass(frozen=True)
class SeatScoreInput:
    """One submitted final score, joined with the seat's wind."""
    seat_id: str
    wind: Wind
    final_score: int


@dataclass(frozen=True)
class SeatScoreResult:
    """Complete replacement values for one seat after a submission."""
    seat_id: str
    final_score: int
    rank: int
    score_pt: Decimal
    rank_pt: int
    total_pt: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "seat_id": self.seat_id,
            "final_score": self.final_score,
            "rank": self.rank,
            "score_pt": _decimal_str(self.score_pt),
            "rank_pt": self.rank_pt,
            "total_pt": _decimal_str(self.total_pt),
        }
