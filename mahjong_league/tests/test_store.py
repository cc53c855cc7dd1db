"""
Tests for the sqlite persistence collaborator: atomic round creation,
atomic seat score updates, round/table loading.
"""
from __future__ import annotations

import sqlite3
import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from mahjong_league.errors import ConflictError, NotFoundError
from mahjong_league.models import (
    WIND_ORDER,
    SeatPlan,
    SeatScoreResult,
    TablePlan,
    TableType,
    Wind,
)
from mahjong_league.persistence import (
    LeagueRepository,
    SessionStore,
    UserRepository,
    get_connection,
    init_db,
    set_db_path,
    transaction,
)


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the full schema."""
    db_path = tmp_path / "store_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def league_and_players(db_conn):
    admin_id = UserRepository().create(db_conn, "Admin", id="admin")
    return LeagueRepository().create_with_players(
        db_conn, "Store League", admin_id, [f"Player {i:02d}" for i in range(1, 17)]
    )


def _plans(player_ids: list[str], table_type: TableType = TableType.FIRST) -> list[TablePlan]:
    return [
        TablePlan(
            table_number=t + 1,
            table_type=table_type,
            seats=tuple(SeatPlan(player_id=pid, wind=w) for pid, w in zip(player_ids[t * 4 : t * 4 + 4], WIND_ORDER)),
        )
        for t in range(4)
    ]


def _count(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _result(seat_id: str, final_score: int, rank: int) -> SeatScoreResult:
    return SeatScoreResult(
        seat_id=seat_id, final_score=final_score, rank=rank,
        score_pt=Decimal("0.0"), rank_pt=40, total_pt=Decimal("40.0"),
    )


def test_create_with_players_makes_creator_admin(db_conn, league_and_players):
    league, players = league_and_players
    assert len(players) == 16
    row = db_conn.execute(
        "SELECT role FROM league_members WHERE league_id = ? AND user_id = 'admin'", (league.id,)
    ).fetchone()
    assert row["role"] == "admin"
    assert SessionStore().load_league(db_conn, league.id).name == "Store League"


def test_create_round_atomic_persists_round_tables_seats(db_conn, league_and_players):
    league, players = league_and_players
    store = SessionStore()
    rnd = store.create_round_atomic(db_conn, league.id, 1, _plans([p.id for p in players]))
    assert rnd.round_number == 1
    assert [t.table_number for t in rnd.tables] == [1, 2, 3, 4]
    assert all(t.table_type == TableType.FIRST for t in rnd.tables)
    first = rnd.tables[0]
    assert [s.wind for s in first.seats] == [Wind.EAST, Wind.SOUTH, Wind.WEST, Wind.NORTH]
    assert [s.player_name for s in first.seats] == ["Player 01", "Player 02", "Player 03", "Player 04"]
    assert all(s.final_score is None and s.rank is None and s.total_pt is None for s in first.seats)
    assert _count(db_conn, "rounds") == 1
    assert _count(db_conn, "round_tables") == 4
    assert _count(db_conn, "seats") == 16
    assert store.load_latest_round_number(db_conn, league.id) == 1


def test_latest_round_number_none_without_rounds(db_conn, league_and_players):
    league, _ = league_and_players
    assert SessionStore().load_latest_round_number(db_conn, league.id) is None


def test_duplicate_round_number_is_conflict_and_writes_nothing(db_conn, league_and_players):
    league, players = league_and_players
    store = SessionStore()
    ids = [p.id for p in players]
    store.create_round_atomic(db_conn, league.id, 1, _plans(ids))
    with pytest.raises(ConflictError):
        store.create_round_atomic(db_conn, league.id, 1, _plans(ids))
    assert _count(db_conn, "rounds") == 1
    assert _count(db_conn, "round_tables") == 4
    assert _count(db_conn, "seats") == 16


def test_failed_seat_insert_rolls_back_whole_round(db_conn, league_and_players):
    league, players = league_and_players
    ids = [p.id for p in players]
    ids[3] = ids[0]  # same player twice at table 1
    with pytest.raises(sqlite3.IntegrityError):
        SessionStore().create_round_atomic(db_conn, league.id, 1, _plans(ids))
    assert _count(db_conn, "rounds") == 0
    assert _count(db_conn, "round_tables") == 0
    assert _count(db_conn, "seats") == 0


def test_load_table_with_seats_carries_league(db_conn, league_and_players):
    league, players = league_and_players
    store = SessionStore()
    rnd = store.create_round_atomic(db_conn, league.id, 1, _plans([p.id for p in players]))
    table = store.load_table_with_seats(db_conn, rnd.tables[2].id)
    assert table.league_id == league.id
    assert table.table_number == 3
    assert len(table.seats) == 4
    assert store.load_table_with_seats(db_conn, "no-such-table") is None


def test_update_seat_scores_atomic_writes_all(db_conn, league_and_players):
    league, players = league_and_players
    store = SessionStore()
    rnd = store.create_round_atomic(db_conn, league.id, 1, _plans([p.id for p in players]))
    table = rnd.tables[0]
    results = [_result(s.id, 25000, i + 1) for i, s in enumerate(table.seats)]
    store.update_seat_scores_atomic(db_conn, table.id, results)
    reloaded = store.load_table_with_seats(db_conn, table.id)
    assert [s.rank for s in reloaded.seats] == [1, 2, 3, 4]
    assert all(s.score_pt == Decimal("0.0") and s.total_pt == Decimal("40.0") for s in reloaded.seats)
    raw = db_conn.execute("SELECT score_pt, total_pt FROM seats WHERE id = ?", (table.seats[0].id,)).fetchone()
    assert (raw["score_pt"], raw["total_pt"]) == ("0.0", "40.0")


def test_update_seat_scores_atomic_is_all_or_nothing(db_conn, league_and_players):
    league, players = league_and_players
    store = SessionStore()
    rnd = store.create_round_atomic(db_conn, league.id, 1, _plans([p.id for p in players]))
    table, other = rnd.tables[0], rnd.tables[1]
    results = [_result(s.id, 25000, i + 1) for i, s in enumerate(table.seats[:3])]
    results.append(_result(other.seats[0].id, 25000, 4))  # seat belongs to another table
    with pytest.raises(NotFoundError):
        store.update_seat_scores_atomic(db_conn, table.id, results)
    reloaded = store.load_table_with_seats(db_conn, table.id)
    assert all(s.final_score is None and s.rank is None for s in reloaded.seats)
    assert store.load_table_with_seats(db_conn, other.id).seats[0].rank is None


def test_list_rounds_newest_first(db_conn, league_and_players):
    league, players = league_and_players
    store = SessionStore()
    ids = [p.id for p in players]
    store.create_round_atomic(db_conn, league.id, 1, _plans(ids))
    store.create_round_atomic(db_conn, league.id, 2, _plans(ids, TableType.UPPER))
    rounds = store.list_rounds_with_tables_and_seats(db_conn, league.id)
    assert [r.round_number for r in rounds] == [2, 1]
    assert all(len(r.tables) == 4 and all(len(t.seats) == 4 for t in r.tables) for r in rounds)


def test_nested_transaction_joins_outer(db_conn, league_and_players):
    assert league_and_players
    users = UserRepository()
    with pytest.raises(RuntimeError):
        with transaction(db_conn):
            users.create(db_conn, "Inner", id="inner")
            raise RuntimeError("abort")
    assert _count(db_conn, "users WHERE id = 'inner'") == 0
    assert _count(db_conn, "users WHERE id = 'admin'") == 1


def test_round_to_dict_includes_player_names(db_conn, league_and_players):
    league, players = league_and_players
    rnd = SessionStore().create_round_atomic(db_conn, league.id, 1, _plans([p.id for p in players]))
    d = rnd.to_dict()
    assert d["round_number"] == 1
    assert [t["table_type"] for t in d["tables"]] == ["first"] * 4
    seat = d["tables"][0]["seats"][0]
    assert seat["wind"] == "east"
    assert seat["player"] == {"id": players[0].id, "name": "Player 01"}
    assert seat["final_score"] is None and seat["total_pt"] is None
