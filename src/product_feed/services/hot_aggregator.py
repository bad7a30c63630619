from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

from product_feed.core.metrics import HOT_SUBFETCH_FAILURES
from product_feed.domain.models import Category, ProductRecord
from product_feed.services.shuffle import seeded_shuffle, time_bucket

logger = logging.getLogger(__name__)

CategoryFetcher = Callable[[str], Awaitable[list[ProductRecord]]]


class HotAggregator:
    """
    Erzeugt die synthetische Hot-Kategorie aus allen anderen Kategorien.
    Fehlschläge einzelner Kategorien werden geloggt und als leere Liste
    gewertet, die Aggregation selbst schlägt nie fehl.
    """

    def __init__(
        self,
        fetch_category: CategoryFetcher,
        categories: Sequence[Category],
        hot_category: str,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetch_category = fetch_category
        self._categories = categories
        self._hot_category = hot_category
        self._window = window_seconds
        self._clock = clock

    def source_endpoints(self) -> list[str]:
        # Hot aggregiert nie sich selbst
        return [
            c.endpoint
            for c in self._categories
            if c.name != self._hot_category and c.endpoint != self._hot_category
        ]

    async def generate(self) -> list[ProductRecord]:
        seed = time_bucket(self._clock(), self._window)
        logger.info("Generating Hot products with seed: %d", seed)

        endpoints = self.source_endpoints()
        if not endpoints:
            return []

        # gather behält die Reihenfolge der Kategorien bei
        results = await asyncio.gather(*(self._fetch_isolated(e) for e in endpoints))
        merged = [product for products in results for product in products]

        return seeded_shuffle(merged, seed)

    async def _fetch_isolated(self, endpoint: str) -> list[ProductRecord]:
        try:
            return await self._fetch_category(endpoint)
        except Exception:
            HOT_SUBFETCH_FAILURES.labels(category=endpoint).inc()
            logger.warning("Failed to fetch %s for Hot page", endpoint, exc_info=True)
            return []
