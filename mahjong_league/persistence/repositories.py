"""
Repository interfaces for league data.
No business logic; only read/write operations.

Every write runs inside transaction(conn): called alone it commits on its own,
called inside an outer transaction it joins that unit of work.
"""
from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Sequence

from mahjong_league.models import (
    League,
    LeagueMember,
    LeagueStatus,
    MemberRole,
    Player,
    Round,
    Seat,
    SeatScoreResult,
    Table,
    parse_table_type,
    parse_wind,
)

from .db import transaction


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _parse_decimal(s: str | None) -> Decimal | None:
    return None if s is None else Decimal(s)


def _placeholders(n: int) -> str:
    return ", ".join("?" for _ in range(n))


# ---------- UserRepository ----------


class UserRepository:
    """Accounts that act on leagues. Authentication lives outside this package."""

    def create(self, conn: sqlite3.Connection, name: str, email: str | None = None, id: str | None = None) -> str:
        uid = id or str(uuid.uuid4())
        with transaction(conn):
            conn.execute(
                "INSERT INTO users (id, name, email, created_at) VALUES (?, ?, ?, ?)",
                (uid, name, email, _now_iso()),
            )
        return uid


# ---------- LeagueRepository ----------


class LeagueRepository:
    """CRUD for leagues. No business logic."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        created_by: str,
        description: str | None = None,
        id: str | None = None,
    ) -> League:
        lid = id or str(uuid.uuid4())
        now = _now_iso()
        with transaction(conn):
            conn.execute(
                "INSERT INTO leagues (id, name, description, status, created_by, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                (lid, name, description, LeagueStatus.ACTIVE.value, created_by, now),
            )
        return League(
            id=lid, name=name, created_by=created_by, status=LeagueStatus.ACTIVE.value,
            created_at=_parse_datetime(now), description=description,
        )

    def create_with_players(
        self,
        conn: sqlite3.Connection,
        name: str,
        created_by: str,
        player_names: Sequence[str],
        description: str | None = None,
    ) -> tuple[League, list[Player]]:
        """League, its players and the creator's admin membership, all or nothing."""
        member_repo = LeagueMemberRepository()
        player_repo = PlayerRepository()
        with transaction(conn):
            league = self.create(conn, name, created_by, description=description)
            member_repo.create(conn, league.id, created_by, MemberRole.ADMIN)
            players = [player_repo.create(conn, league.id, pname) for pname in player_names]
        return league, players

    def get(self, conn: sqlite3.Connection, league_id: str) -> League | None:
        row = conn.execute(
            "SELECT id, name, description, status, created_by, created_at FROM leagues WHERE id = ?",
            (league_id,),
        ).fetchone()
        if row is None:
            return None
        return League(
            id=row["id"],
            name=row["name"],
            created_by=row["created_by"],
            status=row["status"],
            created_at=_parse_datetime(row["created_at"]),
            description=row["description"],
        )


# ---------- LeagueMemberRepository ----------


class LeagueMemberRepository:
    """league_members rows: one role per user per league."""

    def create(self, conn: sqlite3.Connection, league_id: str, user_id: str, role: MemberRole | str) -> LeagueMember:
        now = _now_iso()
        role_value = MemberRole(role).value
        with transaction(conn):
            conn.execute(
                "INSERT INTO league_members (league_id, user_id, role, joined_at) VALUES (?, ?, ?, ?)",
                (league_id, user_id, role_value, now),
            )
        return LeagueMember(league_id=league_id, user_id=user_id, role=role_value, joined_at=_parse_datetime(now))

    def get(self, conn: sqlite3.Connection, league_id: str, user_id: str) -> LeagueMember | None:
        row = conn.execute(
            "SELECT league_id, user_id, role, joined_at FROM league_members WHERE league_id = ? AND user_id = ?",
            (league_id, user_id),
        ).fetchone()
        if row is None:
            return None
        return LeagueMember(
            league_id=row["league_id"],
            user_id=row["user_id"],
            role=row["role"],
            joined_at=_parse_datetime(row["joined_at"]),
        )


# ---------- PlayerRepository ----------


class PlayerRepository:
    def create(
        self, conn: sqlite3.Connection, league_id: str, name: str, user_id: str | None = None, id: str | None = None
    ) -> Player:
        pid = id or str(uuid.uuid4())
        with transaction(conn):
            conn.execute(
                "INSERT INTO players (id, league_id, name, user_id, created_at) VALUES (?, ?, ?, ?, ?)",
                (pid, league_id, name, user_id, _now_iso()),
            )
        return Player(id=pid, name=name, league_id=league_id, user_id=user_id)

    def list_by_league(self, conn: sqlite3.Connection, league_id: str) -> list[Player]:
        rows = conn.execute(
            "SELECT id, name, league_id, user_id FROM players WHERE league_id = ? ORDER BY created_at, id",
            (league_id,),
        ).fetchall()
        return [Player(id=r["id"], name=r["name"], league_id=r["league_id"], user_id=r["user_id"]) for r in rows]


# ---------- RoundRepository ----------


class RoundRepository:
    """rounds rows. Insert raises sqlite3.IntegrityError if the round number is taken."""

    def create(self, conn: sqlite3.Connection, league_id: str, round_number: int, id: str | None = None) -> Round:
        rid = id or str(uuid.uuid4())
        now = _now_iso()
        with transaction(conn):
            conn.execute(
                "INSERT INTO rounds (id, league_id, round_number, created_at) VALUES (?, ?, ?, ?)",
                (rid, league_id, round_number, now),
            )
        return Round(id=rid, league_id=league_id, round_number=round_number, created_at=_parse_datetime(now))

    def get_latest_number(self, conn: sqlite3.Connection, league_id: str) -> int | None:
        row = conn.execute(
            "SELECT MAX(round_number) AS n FROM rounds WHERE league_id = ?", (league_id,)
        ).fetchone()
        return row["n"] if row is not None else None

    def get_by_league_and_number(self, conn: sqlite3.Connection, league_id: str, round_number: int) -> Round | None:
        row = conn.execute(
            "SELECT id, league_id, round_number, created_at FROM rounds WHERE league_id = ? AND round_number = ?",
            (league_id, round_number),
        ).fetchone()
        return self._from_row(row) if row is not None else None

    def list_by_league(self, conn: sqlite3.Connection, league_id: str) -> list[Round]:
        """Newest first."""
        rows = conn.execute(
            "SELECT id, league_id, round_number, created_at FROM rounds WHERE league_id = ? ORDER BY round_number DESC",
            (league_id,),
        ).fetchall()
        return [self._from_row(r) for r in rows]

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Round:
        return Round(
            id=row["id"],
            league_id=row["league_id"],
            round_number=row["round_number"],
            created_at=_parse_datetime(row["created_at"]),
        )


# ---------- TableRepository ----------


class TableRepository:
    def create(
        self, conn: sqlite3.Connection, round_id: str, table_number: int, table_type: str, id: str | None = None
    ) -> Table:
        tid = id or str(uuid.uuid4())
        tt = parse_table_type(table_type)
        now = _now_iso()
        with transaction(conn):
            conn.execute(
                "INSERT INTO round_tables (id, round_id, table_number, table_type, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (tid, round_id, table_number, tt.value, now, now),
            )
        return Table(id=tid, round_id=round_id, table_number=table_number, table_type=tt)

    def get(self, conn: sqlite3.Connection, table_id: str) -> Table | None:
        """Table with its league id (joined through the round); seats not loaded."""
        row = conn.execute(
            "SELECT t.id, t.round_id, t.table_number, t.table_type, r.league_id "
            "FROM round_tables t JOIN rounds r ON r.id = t.round_id WHERE t.id = ?",
            (table_id,),
        ).fetchone()
        if row is None:
            return None
        return Table(
            id=row["id"],
            round_id=row["round_id"],
            table_number=row["table_number"],
            table_type=parse_table_type(row["table_type"]),
            league_id=row["league_id"],
        )

    def list_by_round(self, conn: sqlite3.Connection, round_id: str) -> list[Table]:
        rows = conn.execute(
            "SELECT id, round_id, table_number, table_type FROM round_tables WHERE round_id = ? ORDER BY table_number",
            (round_id,),
        ).fetchall()
        return [
            Table(
                id=r["id"],
                round_id=r["round_id"],
                table_number=r["table_number"],
                table_type=parse_table_type(r["table_type"]),
            )
            for r in rows
        ]


# ---------- SeatRepository ----------

_WIND_SORT = "CASE s.wind WHEN 'east' THEN 0 WHEN 'south' THEN 1 WHEN 'west' THEN 2 ELSE 3 END"


class SeatRepository:
    def create(
        self, conn: sqlite3.Connection, table_id: str, player_id: str, wind: str, id: str | None = None
    ) -> Seat:
        sid = id or str(uuid.uuid4())
        w = parse_wind(wind)
        now = _now_iso()
        with transaction(conn):
            conn.execute(
                "INSERT INTO seats (id, table_id, player_id, wind, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                (sid, table_id, player_id, w.value, now, now),
            )
        return Seat(id=sid, table_id=table_id, player_id=player_id, wind=w)

    def list_by_tables(self, conn: sqlite3.Connection, table_ids: Iterable[str]) -> dict[str, list[Seat]]:
        """table_id -> seats in wind order, with player names."""
        ids = list(table_ids)
        result: dict[str, list[Seat]] = {tid: [] for tid in ids}
        if not ids:
            return result
        rows = conn.execute(
            "SELECT s.id, s.table_id, s.player_id, s.wind, s.final_score, s.score_pt, s.rank, s.rank_pt, "
            "s.total_pt, p.name AS player_name "
            "FROM seats s LEFT JOIN players p ON p.id = s.player_id "
            f"WHERE s.table_id IN ({_placeholders(len(ids))}) ORDER BY s.table_id, {_WIND_SORT}",
            ids,
        ).fetchall()
        for r in rows:
            result[r["table_id"]].append(
                Seat(
                    id=r["id"],
                    table_id=r["table_id"],
                    player_id=r["player_id"],
                    wind=parse_wind(r["wind"]),
                    final_score=r["final_score"],
                    score_pt=_parse_decimal(r["score_pt"]),
                    rank=r["rank"],
                    rank_pt=r["rank_pt"],
                    total_pt=_parse_decimal(r["total_pt"]),
                    player_name=r["player_name"],
                )
            )
        return result

    def list_by_table(self, conn: sqlite3.Connection, table_id: str) -> list[Seat]:
        return self.list_by_tables(conn, [table_id])[table_id]

    def update_scores(self, conn: sqlite3.Connection, table_id: str, result: SeatScoreResult) -> bool:
        """Overwrite all score fields of one seat. False if the seat is not at this table."""
        with transaction(conn):
            cur = conn.execute(
                "UPDATE seats SET final_score = ?, score_pt = ?, rank = ?, rank_pt = ?, total_pt = ?, updated_at = ? "
                "WHERE id = ? AND table_id = ?",
                (
                    result.final_score,
                    f"{result.score_pt:.1f}",
                    result.rank,
                    result.rank_pt,
                    f"{result.total_pt:.1f}",
                    _now_iso(),
                    result.seat_id,
                    table_id,
                ),
            )
        return cur.rowcount == 1
