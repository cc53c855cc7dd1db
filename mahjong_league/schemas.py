"""
Request models for score entry.
Only shape and types are checked here; table rules (count, duplicates, total,
bounds) belong to the score engine.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt
from pydantic import ValidationError as PydanticValidationError

from mahjong_league.errors import MALFORMED_ENTRY, ValidationError


class ScoreEntry(BaseModel):
    """One submitted final score. Accepts seat_id/final_score or seatId/finalScore."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    seat_id: str = Field(..., min_length=1, validation_alias=AliasChoices("seat_id", "seatId"))
    final_score: StrictInt = Field(..., validation_alias=AliasChoices("final_score", "finalScore"))


class TableScoresRequest(BaseModel):
    """Body of a table score submission: the four seats' final scores."""

    entries: list[ScoreEntry] = Field(..., validation_alias=AliasChoices("entries", "scores"))


def parse_score_entries(entries: TableScoresRequest | Iterable[Any]) -> list[ScoreEntry]:
    """Normalize caller input to ScoreEntry objects. Raises ValidationError(malformed_entry)."""
    if isinstance(entries, TableScoresRequest):
        return list(entries.entries)
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
        raise ValidationError(MALFORMED_ENTRY, "Score entries must be a list")
    parsed: list[ScoreEntry] = []
    for i, item in enumerate(entries):
        if isinstance(item, ScoreEntry):
            parsed.append(item)
            continue
        try:
            parsed.append(ScoreEntry.model_validate(item))
        except PydanticValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "entry" for err in e.errors())
            raise ValidationError(MALFORMED_ENTRY, f"Score entry {i + 1} is invalid ({fields})") from e
    return parsed
