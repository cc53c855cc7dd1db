"""
Table assignment for league rounds.

Round 1: the 16 league players are shuffled and sliced into 4 tables of 4, all of
type "first". Rounds 2+: promotion/relegation. In every table of the previous round
ranks 1-2 go to the upper pool and ranks 3-4 to the lower pool; each pool of 8 is
reshuffled (not reseated by rank) and split into 2 tables. Upper tables are 1-2,
lower tables are 3-4.

Winds are assigned east, south, west, north in group order. The result is a plan
only; nothing is persisted here. Given a deterministic Shuffle the plan is fully
reproducible.
"""
from __future__ import annotations

from typing import Sequence

from mahjong_league.models import (
    WIND_ORDER,
    Player,
    SeatPlan,
    Table,
    TablePlan,
    TableType,
)
from mahjong_league.errors import (
    IncompleteScoresError,
    MatchingInvariantError,
    PlayerCountError,
)
from mahjong_league.shuffle import FisherYatesShuffle, Shuffle

PLAYERS_PER_LEAGUE = 16
TABLES_PER_ROUND = 4
SEATS_PER_TABLE = 4
POOL_SIZE = PLAYERS_PER_LEAGUE // 2

UPPER_RANKS = frozenset({1, 2})
TABLE_RANKS = (1, 2, 3, 4)


def _seat_group(table_number: int, table_type: TableType, player_ids: Sequence[str]) -> TablePlan:
    seats = tuple(SeatPlan(player_id=pid, wind=wind) for pid, wind in zip(player_ids, WIND_ORDER))
    return TablePlan(table_number=table_number, table_type=table_type, seats=seats)


def split_into_tables(
    player_ids: Sequence[str], table_type: TableType, first_table_number: int
) -> list[TablePlan]:
    """Slice an already shuffled id list into consecutive tables of four."""
    if len(player_ids) % SEATS_PER_TABLE != 0:
        raise MatchingInvariantError(
            f"Cannot seat {len(player_ids)} players at tables of {SEATS_PER_TABLE}"
        )
    tables: list[TablePlan] = []
    for i in range(len(player_ids) // SEATS_PER_TABLE):
        group = player_ids[i * SEATS_PER_TABLE : (i + 1) * SEATS_PER_TABLE]
        tables.append(_seat_group(first_table_number + i, table_type, group))
    return tables


class SessionMatcher:
    """
    Builds table/seat plans for a new round.
    The shuffle is injected; default is an unseeded Fisher-Yates shuffle.
    """

    def __init__(self, shuffle: Shuffle | None = None) -> None:
        self._shuffle: Shuffle = shuffle or FisherYatesShuffle()

    def match_first_round(self, players: Sequence[Player]) -> list[TablePlan]:
        """
        Random seating for round 1.
        Requires exactly 16 distinct players; raises PlayerCountError otherwise.
        """
        distinct_ids = {p.id for p in players}
        if len(players) != PLAYERS_PER_LEAGUE or len(distinct_ids) != PLAYERS_PER_LEAGUE:
            raise PlayerCountError(len(distinct_ids), required=PLAYERS_PER_LEAGUE)
        shuffled = self._shuffle([p.id for p in players])
        return split_into_tables(shuffled, TableType.FIRST, first_table_number=1)

    def match_next_round(self, previous_tables: Sequence[Table]) -> list[TablePlan]:
        """
        Promotion/relegation seating from the previous round's ranks.
        Raises IncompleteScoresError if any previous seat is still unranked.
        """
        unscored = sum(1 for t in previous_tables for s in t.seats if s.rank is None)
        if unscored:
            raise IncompleteScoresError(unscored_seats=unscored)

        upper: list[str] = []
        lower: list[str] = []
        for table in previous_tables:
            ranks = sorted(seat.rank for seat in table.seats)
            if ranks != list(TABLE_RANKS):
                raise MatchingInvariantError(
                    f"Table {table.table_number} has ranks {ranks}; expected each of {list(TABLE_RANKS)} once"
                )
            for seat in table.seats:
                (upper if seat.rank in UPPER_RANKS else lower).append(seat.player_id)
        if len(upper) != POOL_SIZE or len(lower) != POOL_SIZE:
            raise MatchingInvariantError(
                f"Expected {POOL_SIZE} upper and {POOL_SIZE} lower players, got {len(upper)} and {len(lower)}"
            )
        if len(set(upper) | set(lower)) != PLAYERS_PER_LEAGUE:
            raise MatchingInvariantError("Previous round seats the same player more than once")

        shuffled_upper = self._shuffle(upper)
        shuffled_lower = self._shuffle(lower)
        upper_tables = split_into_tables(shuffled_upper, TableType.UPPER, first_table_number=1)
        lower_tables = split_into_tables(
            shuffled_lower, TableType.LOWER, first_table_number=len(upper_tables) + 1
        )
        return upper_tables + lower_tables
