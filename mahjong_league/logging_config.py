"""
Logging setup for scripts and host applications.
Library modules only create loggers; nothing is configured on import.
"""
from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "MAHJONG_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_level(level: str | int | None = None) -> int:
    """Explicit level, then $MAHJONG_LOG_LEVEL, then INFO. Unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str | int | None = None) -> None:
    logging.basicConfig(level=resolve_level(level), format=LOG_FORMAT)
    logging.getLogger("mahjong_league").setLevel(resolve_level(level))
