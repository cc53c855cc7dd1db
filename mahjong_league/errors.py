"""
Business-rule failures raised by matching, scoring and the session service.
Each carries a stable `kind` and a human-readable `detail` for the caller to render.
None of these are retried by the service.
"""
from __future__ import annotations

from typing import Any


class LeagueSessionError(ValueError):
    """Base for all league session business errors."""

    kind = "error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "detail": self.detail}


class PlayerCountError(LeagueSessionError):
    """Round 1 requested with a number of eligible players other than 16."""

    kind = "player_count"

    def __init__(self, found: int, required: int = 16) -> None:
        super().__init__(f"Round 1 requires exactly {required} players; league has {found}")
        self.found = found
        self.required = required


class IncompleteScoresError(LeagueSessionError):
    """Next round requested before every seat of the previous round has a rank."""

    kind = "incomplete_scores"

    def __init__(self, round_number: int | None = None, unscored_seats: int = 0) -> None:
        where = f"round {round_number}" if round_number is not None else "previous round"
        super().__init__(f"All scores of {where} must be entered first ({unscored_seats} seat(s) unscored)")
        self.round_number = round_number
        self.unscored_seats = unscored_seats


# ValidationError reasons
ENTRY_COUNT = "entry_count"
DUPLICATE_SEAT = "duplicate_seat"
TOTAL_MISMATCH = "total_mismatch"
SCORE_OUT_OF_RANGE = "score_out_of_range"
MALFORMED_ENTRY = "malformed_entry"


class ValidationError(LeagueSessionError):
    """Score submission rejected. `reason` tells which rule failed."""

    kind = "validation"

    def __init__(self, reason: str, detail: str) -> None:
        super().__init__(detail)
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["reason"] = self.reason
        return d


class NotFoundError(LeagueSessionError):
    kind = "not_found"

    def __init__(self, resource: str, resource_id: Any) -> None:
        super().__init__(f"{resource} not found: {resource_id}")
        self.resource = resource
        self.resource_id = resource_id


class ForbiddenError(LeagueSessionError):
    kind = "forbidden"


class ConflictError(LeagueSessionError):
    """Round number already taken, e.g. two round creations raced for the same league."""

    kind = "conflict"


class MatchingInvariantError(RuntimeError):
    """Internal consistency fault during matching (not a user error)."""
