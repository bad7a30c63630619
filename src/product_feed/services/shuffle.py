from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


def time_bucket(now: float, window_seconds: float) -> int:
    """Nummer des Zeitfensters, in dem `now` liegt. Dient als Shuffle-Seed."""
    return math.floor(now / window_seconds)


def _sine_random(seed: int) -> Callable[[], float]:
    # Einfacher Zähler-basierter Generator: frac(sin(counter) * 10000).
    # Nicht statistisch stark, aber reproduzierbar.
    counter = seed

    def draw() -> float:
        nonlocal counter
        x = math.sin(counter) * 10000
        counter += 1
        return x - math.floor(x)

    return draw


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """
    Fisher-Yates (rückwärts) auf einer Kopie von `items`.
    Gleiche Eingabe und gleicher Seed ergeben immer dieselbe Reihenfolge.
    """
    shuffled = list(items)
    random = _sine_random(seed)

    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled
