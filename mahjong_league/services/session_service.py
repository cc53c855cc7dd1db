"""
Round-centric service: creates the next round and records table scores.
Matching and scoring are pure; this layer checks access, loads what they need
and writes their output as one atomic unit.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable

from mahjong_league.access import LeagueAccessControl
from mahjong_league.errors import (
    ConflictError,
    ForbiddenError,
    LeagueSessionError,
    NotFoundError,
)
from mahjong_league.models import League, Round, SeatScoreInput, TablePlan
from mahjong_league.persistence.db import transaction
from mahjong_league.persistence.store import SessionStore
from mahjong_league.schemas import TableScoresRequest, parse_score_entries
from mahjong_league.services.matching import SessionMatcher
from mahjong_league.services.scoring import ScoreEngine
from mahjong_league.shuffle import Shuffle

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """
    Orchestrates round creation and score submission.
    Store, access control, matcher and engine are injectable; defaults are the
    sqlite store, membership-based access control and an unseeded shuffle.
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        access: LeagueAccessControl | None = None,
        matcher: SessionMatcher | None = None,
        engine: ScoreEngine | None = None,
        shuffle: Shuffle | None = None,
    ) -> None:
        self._store = store or SessionStore()
        self._access = access or LeagueAccessControl()
        self._matcher = matcher or SessionMatcher(shuffle)
        self._engine = engine or ScoreEngine()

    # ---------- Guards ----------

    def _get_league(self, conn: sqlite3.Connection, league_id: str) -> League:
        league = self._store.load_league(conn, league_id)
        if league is None:
            raise NotFoundError("League", league_id)
        return league

    def assert_league_admin(self, conn: sqlite3.Connection, league_id: str, actor_id: str | None) -> League:
        """Raise NotFoundError for an unknown league, ForbiddenError unless actor is its admin."""
        league = self._get_league(conn, league_id)
        if not self._access.is_league_admin(conn, league_id, actor_id):
            raise ForbiddenError("Only a league admin can create rounds")
        return league

    def next_round_number(self, conn: sqlite3.Connection, league_id: str) -> int:
        latest = self._store.load_latest_round_number(conn, league_id)
        return 1 if latest is None else latest + 1

    # ---------- Create next round ----------

    def plan_next_round(self, conn: sqlite3.Connection, league_id: str, round_number: int) -> list[TablePlan]:
        """Seat round 1 at random; seat later rounds by promotion/relegation."""
        if round_number == 1:
            players = self._store.load_league_players(conn, league_id)
            return self._matcher.match_first_round(players)
        previous = self._store.load_round_with_tables_and_seats(conn, league_id, round_number - 1)
        if previous is None:
            raise NotFoundError("Round", f"{league_id}/{round_number - 1}")
        return self._matcher.match_next_round(previous.tables)

    def create_next_round(self, conn: sqlite3.Connection, league_id: str, actor_id: str | None) -> Round:
        """
        Create round N+1 with its 4 tables and 16 unscored seats.
        Nothing is written unless every check passes. Loses a concurrent race with
        ConflictError; a retry recomputes against the new latest round.
        """
        try:
            self.assert_league_admin(conn, league_id, actor_id)
            round_number = self.next_round_number(conn, league_id)
            plans = self.plan_next_round(conn, league_id, round_number)
            rnd = self._store.create_round_atomic(conn, league_id, round_number, plans)
        except ConflictError as e:
            logger.warning("Round creation conflict in league %s: %s", league_id, e.detail)
            raise
        except LeagueSessionError as e:
            logger.warning("Round creation rejected for league %s (%s): %s", league_id, e.kind, e.detail)
            raise
        logger.info(
            "Created round %d for league %s: %s",
            rnd.round_number, league_id, ", ".join(f"{t.table_number}:{t.table_type.value}" for t in rnd.tables),
        )
        return rnd

    # ---------- Submit table scores ----------

    def submit_table_scores(
        self,
        conn: sqlite3.Connection,
        table_id: str,
        actor_id: str | None,
        entries: TableScoresRequest | Iterable[Any],
    ) -> None:
        """
        Validate and score one table, then overwrite its four seats together.
        Load, check and write happen under one write lock, so concurrent
        submissions for a table apply one after the other.
        """
        try:
            with transaction(conn):
                table = self._store.load_table_with_seats(conn, table_id)
                if table is None:
                    raise NotFoundError("Table", table_id)
                if not self._access.can_submit_scores(conn, table.league_id, actor_id):
                    raise ForbiddenError("Only a league admin or scorer can enter scores")
                parsed = parse_score_entries(entries)
                seats_by_id = {s.id: s for s in table.seats}
                for entry in parsed:
                    if entry.seat_id not in seats_by_id:
                        raise NotFoundError("Seat", entry.seat_id)
                inputs = [
                    SeatScoreInput(seat_id=e.seat_id, wind=seats_by_id[e.seat_id].wind, final_score=e.final_score)
                    for e in parsed
                ]
                results = self._engine.submit_scores(table.table_type, inputs)
                self._store.update_seat_scores_atomic(conn, table_id, results)
        except LeagueSessionError as e:
            logger.warning("Score submission rejected for table %s (%s): %s", table_id, e.kind, e.detail)
            raise
        logger.info(
            "Scored table %s: %s",
            table_id, ", ".join(f"{r.seat_id}=#{r.rank}/{r.total_pt:.1f}" for r in results),
        )

    # ---------- Read ----------

    def list_rounds(self, conn: sqlite3.Connection, league_id: str, actor_id: str | None) -> list[Round]:
        """All rounds of a league, newest first, with tables, seats and player names. Members only."""
        self._get_league(conn, league_id)
        if not self._access.is_league_member(conn, league_id, actor_id):
            raise ForbiddenError("Only league members can view rounds")
        return self._store.list_rounds_with_tables_and_seats(conn, league_id)
