"""
Persistence collaborator for the session service.
Loads rounds/tables/seats as domain objects and writes round creation and
table scoring as single atomic units.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Sequence

from mahjong_league.models import League, Player, Round, SeatScoreResult, Table, TablePlan
from mahjong_league.errors import ConflictError, NotFoundError

from .db import transaction
from .repositories import (
    LeagueRepository,
    PlayerRepository,
    RoundRepository,
    SeatRepository,
    TableRepository,
)

logger = logging.getLogger(__name__)


class SessionStore:
    """sqlite3-backed implementation of the round/table/seat persistence contract."""

    def __init__(self) -> None:
        self._league_repo = LeagueRepository()
        self._player_repo = PlayerRepository()
        self._round_repo = RoundRepository()
        self._table_repo = TableRepository()
        self._seat_repo = SeatRepository()

    # ---------- Reads ----------

    def load_league(self, conn: sqlite3.Connection, league_id: str) -> League | None:
        return self._league_repo.get(conn, league_id)

    def load_league_players(self, conn: sqlite3.Connection, league_id: str) -> list[Player]:
        return self._player_repo.list_by_league(conn, league_id)

    def load_latest_round_number(self, conn: sqlite3.Connection, league_id: str) -> int | None:
        return self._round_repo.get_latest_number(conn, league_id)

    def load_round_with_tables_and_seats(
        self, conn: sqlite3.Connection, league_id: str, round_number: int
    ) -> Round | None:
        rnd = self._round_repo.get_by_league_and_number(conn, league_id, round_number)
        if rnd is None:
            return None
        self._attach_tables(conn, [rnd])
        return rnd

    def list_rounds_with_tables_and_seats(self, conn: sqlite3.Connection, league_id: str) -> list[Round]:
        rounds = self._round_repo.list_by_league(conn, league_id)
        self._attach_tables(conn, rounds)
        return rounds

    def load_table_with_seats(self, conn: sqlite3.Connection, table_id: str) -> Table | None:
        table = self._table_repo.get(conn, table_id)
        if table is None:
            return None
        table.seats = self._seat_repo.list_by_table(conn, table_id)
        return table

    def _attach_tables(self, conn: sqlite3.Connection, rounds: Sequence[Round]) -> None:
        for rnd in rounds:
            rnd.tables = self._table_repo.list_by_round(conn, rnd.id)
            for t in rnd.tables:
                t.league_id = rnd.league_id
        seats_by_table = self._seat_repo.list_by_tables(
            conn, [t.id for rnd in rounds for t in rnd.tables]
        )
        for rnd in rounds:
            for t in rnd.tables:
                t.seats = seats_by_table[t.id]

    # ---------- Atomic writes ----------

    def create_round_atomic(
        self, conn: sqlite3.Connection, league_id: str, round_number: int, plans: Sequence[TablePlan]
    ) -> Round:
        """
        Insert the round, its tables and their seats (scores NULL) in one transaction.
        Raises ConflictError if the round number already exists for the league;
        nothing is written in that case.
        """
        with transaction(conn):
            try:
                rnd = self._round_repo.create(conn, league_id, round_number)
            except sqlite3.IntegrityError as e:
                if "UNIQUE" not in str(e):
                    raise
                logger.debug("Round %s insert rejected for league %s: %s", round_number, league_id, e)
                raise ConflictError(
                    f"Round {round_number} already exists for league {league_id}; reload and retry"
                ) from e
            for plan in plans:
                table = self._table_repo.create(conn, rnd.id, plan.table_number, plan.table_type.value)
                table.league_id = league_id
                table.seats = [
                    self._seat_repo.create(conn, table.id, seat.player_id, seat.wind.value)
                    for seat in plan.seats
                ]
                rnd.tables.append(table)
        # Re-read so the returned round carries player names.
        return self.load_round_with_tables_and_seats(conn, league_id, round_number) or rnd

    def update_seat_scores_atomic(
        self, conn: sqlite3.Connection, table_id: str, results: Sequence[SeatScoreResult]
    ) -> None:
        """Overwrite the score fields of every given seat, all or nothing."""
        with transaction(conn):
            for result in results:
                if not self._seat_repo.update_scores(conn, table_id, result):
                    raise NotFoundError("Seat", result.seat_id)
