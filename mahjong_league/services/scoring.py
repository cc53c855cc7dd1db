"""
Table scoring: ranks and point values from four final scores.

Pure functions only. The session service loads the table's type and seat winds,
calls submit_scores, and persists the returned records as one unit.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from mahjong_league.models import (
    WIND_ORDER,
    SeatScoreInput,
    SeatScoreResult,
    TableType,
    Wind,
    parse_table_type,
)
from mahjong_league.errors import (
    DUPLICATE_SEAT,
    ENTRY_COUNT,
    MALFORMED_ENTRY,
    SCORE_OUT_OF_RANGE,
    TOTAL_MISMATCH,
    ValidationError,
)

# ---------- Table totals ----------
SEATS_PER_TABLE = 4
TOTAL_SCORE = 100000
RETURN_SCORE = 25000  # score_pt is measured from here, in thousands

# Sanity bound on a single final score; not a game rule.
MIN_FINAL_SCORE = 0
MAX_FINAL_SCORE = 200000

# ---------- Rank points by table type (index = rank - 1) ----------
RANK_POINTS: dict[TableType, tuple[int, int, int, int]] = {
    TableType.FIRST: (40, 30, 20, 10),
    TableType.UPPER: (80, 70, 40, 30),
    TableType.LOWER: (60, 50, 20, 10),
}

# Tie-break on equal score: east > south > west > north
WIND_PRIORITY: dict[Wind, int] = {wind: i for i, wind in enumerate(WIND_ORDER)}

_ONE_DECIMAL = Decimal("0.1")


def _one_decimal(value: Decimal) -> Decimal:
    return value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def calculate_score_pt(final_score: int) -> Decimal:
    """(final_score - 25000) / 1000, kept to one decimal place."""
    return _one_decimal((Decimal(final_score) - RETURN_SCORE) / 1000)


def calculate_ranks(seats: Sequence[SeatScoreInput]) -> dict[str, int]:
    """
    Map seat_id -> rank (1 best). Higher final score ranks better; equal scores
    go to the wind closer to east.
    """
    ordered = sorted(seats, key=lambda s: (-s.final_score, WIND_PRIORITY[s.wind]))
    return {s.seat_id: i + 1 for i, s in enumerate(ordered)}


def calculate_rank_pt(rank: int, table_type: TableType | str) -> int:
    points = RANK_POINTS[parse_table_type(table_type)]
    if not 1 <= rank <= len(points):
        raise ValueError(f"Rank must be 1-{len(points)}, got {rank}")
    return points[rank - 1]


def calculate_total_pt(rank_pt: int, score_pt: Decimal) -> Decimal:
    return _one_decimal(Decimal(rank_pt) + score_pt)


def table_total_points(table_type: TableType | str) -> int:
    """Sum of rank points. Equals the table's total_pt sum when every final score is a whole hundred."""
    return sum(RANK_POINTS[parse_table_type(table_type)])


def validate_entries(seats: Sequence[SeatScoreInput]) -> None:
    """Raise ValidationError unless the four entries form a valid table result."""
    if len(seats) != SEATS_PER_TABLE:
        raise ValidationError(
            ENTRY_COUNT, f"Exactly {SEATS_PER_TABLE} scores are required, got {len(seats)}"
        )
    seat_ids = [s.seat_id for s in seats]
    if len(set(seat_ids)) != SEATS_PER_TABLE:
        raise ValidationError(DUPLICATE_SEAT, "All four seat ids must be different")
    for s in seats:
        if isinstance(s.final_score, bool) or not isinstance(s.final_score, int):
            raise ValidationError(
                MALFORMED_ENTRY, f"Final score for seat {s.seat_id} must be an integer"
            )
        if not MIN_FINAL_SCORE <= s.final_score <= MAX_FINAL_SCORE:
            raise ValidationError(
                SCORE_OUT_OF_RANGE,
                f"Final score {s.final_score} for seat {s.seat_id} is outside "
                f"{MIN_FINAL_SCORE}-{MAX_FINAL_SCORE}",
            )
    total = sum(s.final_score for s in seats)
    if total != TOTAL_SCORE:
        raise ValidationError(
            TOTAL_MISMATCH, f"The four final scores must total {TOTAL_SCORE:,}, got {total:,}"
        )


def submit_scores(
    table_type: TableType | str, seats: Sequence[SeatScoreInput]
) -> list[SeatScoreResult]:
    """
    Validate one table's final scores and compute rank, score_pt, rank_pt and
    total_pt for every seat. Results come back in input order and fully replace
    any previous values; identical input always gives identical output.
    """
    table_type = parse_table_type(table_type)
    validate_entries(seats)
    ranks = calculate_ranks(seats)
    results: list[SeatScoreResult] = []
    for s in seats:
        rank = ranks[s.seat_id]
        score_pt = calculate_score_pt(s.final_score)
        rank_pt = calculate_rank_pt(rank, table_type)
        results.append(
            SeatScoreResult(
                seat_id=s.seat_id,
                final_score=s.final_score,
                rank=rank,
                score_pt=score_pt,
                rank_pt=rank_pt,
                total_pt=calculate_total_pt(rank_pt, score_pt),
            )
        )
    return results


class ScoreEngine:
    """Object seam around submit_scores for injection into the session service."""

    def submit_scores(
        self, table_type: TableType | str, seats: Sequence[SeatScoreInput]
    ) -> list[SeatScoreResult]:
        return submit_scores(table_type, seats)
