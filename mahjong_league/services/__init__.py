"""
Service layer: table matching, table scoring, round orchestration.
No persistence writes in matching or scoring; session_service orchestrates persistence.
"""
from .matching import SessionMatcher
from .scoring import ScoreEngine, submit_scores
from .session_service import SessionCoordinator

__all__ = [
    "SessionMatcher",
    "ScoreEngine",
    "submit_scores",
    "SessionCoordinator",
]
