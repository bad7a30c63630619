# src/product_feed/adapters/feed_client.py
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from product_feed.core.metrics import (
    UPSTREAM_REQUEST_COUNT,
    UPSTREAM_REQUEST_DURATION,
    UPSTREAM_RETRIES,
)
from product_feed.domain.ports import FeedSourcePort

logger = logging.getLogger(__name__)


class ResilientFeedClient(FeedSourcePort):
    """
    HTTP-Client für die Upstream-Kategorie-Feeds.
    Jeder Versuch hat ein eigenes Timeout-Fenster; Fehlversuche werden mit
    linearem Backoff (delay * Versuchsnummer) wiederholt.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_seconds: float,
        retry_count: int,
        retry_delay_seconds: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = http_client
        self._timeout = timeout_seconds
        self._retry_count = retry_count
        self._retry_delay = retry_delay_seconds
        self._sleep = sleep

    async def fetch_with_retry(self, url: str, retry_count: int = 0) -> Any:
        attempt = retry_count
        while True:
            try:
                return await self._fetch_once(url)
            except Exception:
                if attempt >= self._retry_count:
                    raise
                attempt += 1
                UPSTREAM_RETRIES.inc()
                logger.info("Retrying request (%d/%d) for %s", attempt, self._retry_count, url)
                await self._sleep(self._retry_delay * attempt)

    async def _fetch_once(self, url: str) -> Any:
        started = time.perf_counter()
        status = "error"
        try:
            # Abbruch nach Ablauf des Fensters gilt als Fehlschlag dieses Versuchs
            async with asyncio.timeout(self._timeout):
                response = await self._client.get(url, timeout=self._timeout)
                response.raise_for_status()
            data = response.json()
            status = "success"
            return data
        except TimeoutError:
            status = "timeout"
            raise
        finally:
            UPSTREAM_REQUEST_COUNT.labels(status=status).inc()
            UPSTREAM_REQUEST_DURATION.observe(time.perf_counter() - started)
