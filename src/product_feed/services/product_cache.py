from __future__ import annotations

import time
from collections.abc import Callable

from product_feed.core.metrics import CACHE_EVICTIONS
from product_feed.domain.models import CacheEntry, CacheInfo, ProductRecord


class ProductCache:
    """
    Größenbeschränkter In-Memory Cache für Kategorie-Produktlisten.
    Verdrängung nach Einfügereihenfolge (FIFO), Treffer ändern die
    Reihenfolge nicht. Die Frische wird vom Aufrufer geprüft.
    """

    def __init__(self, max_size: int, clock: Callable[[], float] = time.time) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._clock = clock
        # dict hält die Einfügereihenfolge; Überschreiben eines Keys behält seine Position
        self._storage: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        """Liefert den Eintrag unabhängig von seinem Alter."""
        return self._storage.get(key)

    def put(self, key: str, data: list[ProductRecord]) -> None:
        """Speichert die Liste mit aktuellem Zeitstempel, verdrängt ggf. den ältesten Eintrag."""
        if len(self._storage) >= self._max_size:
            oldest_key = next(iter(self._storage))
            del self._storage[oldest_key]
            CACHE_EVICTIONS.inc()

        self._storage[key] = CacheEntry(data=data, timestamp=self._clock())

    def clear(self) -> None:
        self._storage.clear()

    def info(self) -> CacheInfo:
        return CacheInfo(size=len(self._storage), keys=list(self._storage))

    def __len__(self) -> int:
        return len(self._storage)
