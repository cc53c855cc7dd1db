"""
Shuffle capability for table assignment.
Matching takes a Shuffle by injection so tests can fix the permutation.
"""
from __future__ import annotations

import random
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")

# Returns a new list holding a permutation of the input; never mutates it.
Shuffle = Callable[[Sequence[T]], list[T]]


class FisherYatesShuffle:
    """Uniform Fisher-Yates shuffle over a private random.Random."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def __call__(self, items: Sequence[T]) -> list[T]:
        shuffled = list(items)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self._rng.randint(0, i)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled


def identity_shuffle(items: Sequence[T]) -> list[T]:
    """Keeps input order. For deterministic tests and replays."""
    return list(items)
