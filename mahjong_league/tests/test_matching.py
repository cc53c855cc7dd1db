"""
Tests for table matching.
Round 1: 16 players, 4 "first" tables. Rounds 2+: ranks 1-2 to upper tables 1-2,
ranks 3-4 to lower tables 3-4. Every table: 4 distinct players, one of each wind.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from mahjong_league.errors import IncompleteScoresError, MatchingInvariantError, PlayerCountError
from mahjong_league.models import WIND_ORDER, Player, Seat, Table, TableType, Wind
from mahjong_league.services.matching import SessionMatcher, split_into_tables
from mahjong_league.shuffle import FisherYatesShuffle, identity_shuffle


def reverse_shuffle(items):
    return list(reversed(items))


def _players(n: int = 16) -> list[Player]:
    return [Player(id=f"P{i}", name=f"Player {i}") for i in range(1, n + 1)]


def _scored_tables(ranks: list[list[int | None]]) -> list[Table]:
    """Previous round: table t seats P(4t-3)..P(4t) at east..north with the given ranks."""
    tables = []
    for t, table_ranks in enumerate(ranks, start=1):
        seats = [
            Seat(
                id=f"s{t}{j}",
                table_id=f"t{t}",
                player_id=f"P{(t - 1) * 4 + j + 1}",
                wind=WIND_ORDER[j],
                rank=rank,
            )
            for j, rank in enumerate(table_ranks)
        ]
        tables.append(Table(id=f"t{t}", round_id="r1", table_number=t, table_type=TableType.FIRST, seats=seats))
    return tables


def _assert_valid_round(plans):
    assert [p.table_number for p in plans] == [1, 2, 3, 4]
    all_players = []
    for plan in plans:
        assert [s.wind for s in plan.seats] == [Wind.EAST, Wind.SOUTH, Wind.WEST, Wind.NORTH]
        assert len(set(plan.player_ids)) == 4
        all_players.extend(plan.player_ids)
    assert len(all_players) == 16
    assert len(set(all_players)) == 16


# ---------- Round 1 ----------


def test_first_round_identity_shuffle_slices_in_order():
    plans = SessionMatcher(identity_shuffle).match_first_round(_players())
    _assert_valid_round(plans)
    assert all(p.table_type == TableType.FIRST for p in plans)
    assert plans[0].player_ids == ["P1", "P2", "P3", "P4"]
    assert plans[3].player_ids == ["P13", "P14", "P15", "P16"]
    assert plans[0].seats[0].wind == Wind.EAST and plans[0].seats[0].player_id == "P1"
    assert plans[0].seats[3].wind == Wind.NORTH and plans[0].seats[3].player_id == "P4"


def test_first_round_follows_shuffle_output():
    plans = SessionMatcher(reverse_shuffle).match_first_round(_players())
    assert plans[0].player_ids == ["P16", "P15", "P14", "P13"]
    assert plans[3].player_ids == ["P4", "P3", "P2", "P1"]


@pytest.mark.parametrize("seed", range(20))
def test_first_round_random_is_valid_partition(seed):
    plans = SessionMatcher(FisherYatesShuffle(seed)).match_first_round(_players())
    _assert_valid_round(plans)
    assert {pid for p in plans for pid in p.player_ids} == {f"P{i}" for i in range(1, 17)}


def test_first_round_same_seed_same_plan():
    a = SessionMatcher(FisherYatesShuffle(9)).match_first_round(_players())
    b = SessionMatcher(FisherYatesShuffle(9)).match_first_round(_players())
    assert a == b


@pytest.mark.parametrize("count", [0, 4, 15, 17])
def test_first_round_wrong_player_count(count):
    with pytest.raises(PlayerCountError) as exc_info:
        SessionMatcher(identity_shuffle).match_first_round(_players(count))
    assert exc_info.value.found == count
    assert exc_info.value.kind == "player_count"


def test_first_round_duplicate_players_rejected():
    players = _players(15) + [Player(id="P1", name="Player 1 again")]
    with pytest.raises(PlayerCountError) as exc_info:
        SessionMatcher(identity_shuffle).match_first_round(players)
    assert exc_info.value.found == 15


# ---------- Round 2+ ----------


def test_next_round_identity_shuffle_exact_tables():
    # Table 1: P1 1st, P2 4th, P3 2nd, P4 3rd; other tables rank by seat order.
    ranks = [[1, 4, 2, 3], [1, 2, 3, 4], [4, 3, 2, 1], [2, 1, 4, 3]]
    plans = SessionMatcher(identity_shuffle).match_next_round(_scored_tables(ranks))
    _assert_valid_round(plans)
    assert [p.table_type for p in plans] == [TableType.UPPER, TableType.UPPER, TableType.LOWER, TableType.LOWER]
    assert plans[0].player_ids == ["P1", "P3", "P5", "P6"]
    assert plans[1].player_ids == ["P11", "P12", "P13", "P14"]
    assert plans[2].player_ids == ["P2", "P4", "P7", "P8"]
    assert plans[3].player_ids == ["P9", "P10", "P15", "P16"]


def test_next_round_shuffles_each_pool_separately():
    ranks = [[1, 2, 3, 4]] * 4
    calls = []

    def recording_shuffle(items):
        calls.append(list(items))
        return list(reversed(items))

    plans = SessionMatcher(recording_shuffle).match_next_round(_scored_tables(ranks))
    assert len(calls) == 2
    assert calls[0] == ["P1", "P2", "P5", "P6", "P9", "P10", "P13", "P14"]
    assert calls[1] == ["P3", "P4", "P7", "P8", "P11", "P12", "P15", "P16"]
    assert plans[0].player_ids == ["P14", "P13", "P10", "P9"]
    assert plans[2].player_ids == ["P16", "P15", "P12", "P11"]


@pytest.mark.parametrize("seed", range(20))
def test_next_round_promotes_and_relegates(seed):
    ranks = [[1, 2, 3, 4], [4, 3, 2, 1], [2, 4, 1, 3], [3, 1, 4, 2]]
    previous = _scored_tables(ranks)
    plans = SessionMatcher(FisherYatesShuffle(seed)).match_next_round(previous)
    _assert_valid_round(plans)
    upper_players = {pid for p in plans if p.table_type == TableType.UPPER for pid in p.player_ids}
    lower_players = {pid for p in plans if p.table_type == TableType.LOWER for pid in p.player_ids}
    for table in previous:
        for seat in table.seats:
            if seat.rank in (1, 2):
                assert seat.player_id in upper_players
            else:
                assert seat.player_id in lower_players
    assert [p.table_number for p in plans if p.table_type == TableType.UPPER] == [1, 2]
    assert [p.table_number for p in plans if p.table_type == TableType.LOWER] == [3, 4]


def test_next_round_incomplete_scores():
    ranks = [[1, 2, 3, 4], [1, 2, 3, 4], [1, None, None, None], [1, 2, 3, 4]]
    with pytest.raises(IncompleteScoresError) as exc_info:
        SessionMatcher(identity_shuffle).match_next_round(_scored_tables(ranks))
    assert exc_info.value.unscored_seats == 3


def test_next_round_inconsistent_ranks_is_internal_fault():
    ranks = [[1, 1, 3, 4], [1, 2, 3, 4], [1, 2, 3, 4], [1, 2, 3, 4]]
    with pytest.raises(MatchingInvariantError):
        SessionMatcher(identity_shuffle).match_next_round(_scored_tables(ranks))


def test_next_round_repeated_ranks_with_full_pools_is_internal_fault():
    # Pools still come out 8/8, but tables 1-2 each repeat a rank.
    ranks = [[1, 1, 3, 4], [2, 2, 3, 4], [1, 2, 3, 4], [1, 2, 3, 4]]
    with pytest.raises(MatchingInvariantError) as exc_info:
        SessionMatcher(identity_shuffle).match_next_round(_scored_tables(ranks))
    assert "Table 1" in str(exc_info.value)


def test_next_round_rank_out_of_range_is_internal_fault():
    ranks = [[1, 2, 3, 5], [1, 2, 3, 4], [1, 2, 3, 4], [1, 2, 3, 4]]
    with pytest.raises(MatchingInvariantError):
        SessionMatcher(identity_shuffle).match_next_round(_scored_tables(ranks))


def test_next_round_missing_table_is_internal_fault():
    ranks = [[1, 2, 3, 4]] * 3
    with pytest.raises(MatchingInvariantError):
        SessionMatcher(identity_shuffle).match_next_round(_scored_tables(ranks))


def test_split_into_tables_rejects_partial_table():
    with pytest.raises(MatchingInvariantError):
        split_into_tables(["a", "b", "c", "d", "e"], TableType.UPPER, first_table_number=1)
