# src/product_feed/services/product_service.py
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from urllib.parse import quote

from product_feed.core.metrics import CACHE_HITS, CACHE_MISSES
from product_feed.domain.errors import (
    ErrorMessages,
    FeedError,
    InvalidPayloadError,
    classify_error,
)
from product_feed.domain.models import CacheInfo, Category, FetchResult, ProductRecord
from product_feed.domain.ports import FeedSourcePort
from product_feed.services.hot_aggregator import HotAggregator
from product_feed.services.product_cache import ProductCache
from product_feed.services.validator import filter_valid

logger = logging.getLogger(__name__)


class ProductService:
    """
    Einstiegspunkt für Kategorie-Abfragen.
    Prüft den Cache, delegiert an den Hot-Aggregator oder an den
    Upstream-Feed und klassifiziert Fehler direkter Kategorien.
    """

    def __init__(
        self,
        feed_source: FeedSourcePort,
        cache: ProductCache,
        categories: Sequence[Category],
        base_url: str,
        error_messages: ErrorMessages,
        cache_enabled: bool = True,
        cache_expiry_seconds: float = 300.0,
        hot_category: str = "Hot",
        hot_window_seconds: float = 259_200,
        url_builder: Callable[[str], str] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._feed = feed_source
        self._cache = cache
        self._base_url = base_url.rstrip("/")
        self._messages = error_messages
        self._cache_enabled = cache_enabled
        self._expiry = cache_expiry_seconds
        self._hot_category = hot_category
        self._url_builder = url_builder
        self._clock = clock
        self._hot = HotAggregator(
            fetch_category=self.fetch_products,
            categories=categories,
            hot_category=hot_category,
            window_seconds=hot_window_seconds,
            clock=clock,
        )

    async def fetch_products(self, category: str) -> list[ProductRecord]:
        """
        Liefert die Produktliste einer Kategorie.

        Raises:
            FeedError: Timeout-, Netzwerk- oder Ladefehler bei direkten Kategorien.
                Die Hot-Kategorie wirft nie, sie liefert höchstens eine leere Liste.
        """
        cached = self._get_fresh(category)
        if cached is not None:
            return cached

        if category == self._hot_category:
            products = await self._hot.generate()
        else:
            products = await self._fetch_direct(category)

        if self._cache_enabled:
            self._cache.put(category, products)
        return products

    async def fetch_products_result(self, category: str) -> FetchResult:
        """Wie fetch_products, aber mit explizitem Ergebnis statt Exception."""
        try:
            return FetchResult(products=await self.fetch_products(category))
        except FeedError as e:
            return FetchResult(error=e)

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_info(self) -> CacheInfo:
        return self._cache.info()

    def build_url(self, category: str) -> str:
        if self._url_builder is not None:
            return self._url_builder(category)
        return f"{self._base_url}/{quote(category, safe='')}"

    # ------------------------------------------------------------------
    # Private Hilfsmethoden
    # ------------------------------------------------------------------

    def _get_fresh(self, category: str) -> list[ProductRecord] | None:
        if not self._cache_enabled:
            return None

        entry = self._cache.get(category)
        if entry is None or self._clock() - entry.timestamp >= self._expiry:
            CACHE_MISSES.inc()
            return None

        CACHE_HITS.inc()
        logger.debug("Using cached data for %s", category)
        return entry.data

    async def _fetch_direct(self, category: str) -> list[ProductRecord]:
        url = self.build_url(category)
        try:
            data = await self._feed.fetch_with_retry(url)
            if not isinstance(data, list):
                raise InvalidPayloadError(url, type(data).__name__)
        except Exception as e:
            logger.error("Error fetching products for %s: %s", category, e)
            raise classify_error(e, self._messages) from e

        return filter_valid(data)
