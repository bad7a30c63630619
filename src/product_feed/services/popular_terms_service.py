from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable

from pydantic import ValidationError

from product_feed.domain.errors import TermRequiredError
from product_feed.domain.models import PopularTerm, SearchTermDocument, SearchTermStats
from product_feed.repositories.term_repository import AbstractTermRepository

logger = logging.getLogger(__name__)

_LIST_LIMIT = 1000

# Führende Ganzzahl wie bei parseInt: "10abc" -> 10, "2.5" -> 2
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _prefix(site_id: str) -> str:
    return f"site:{site_id}:term:"


def clamp_limit(value: str | int | None, default: int, minimum: int, maximum: int) -> int:
    if value is None:
        return default
    match = _LEADING_INT.match(str(value))
    if match is None:
        return default
    n = int(match.group(1))
    return max(minimum, min(maximum, n))


class PopularTermsService:
    """
    Zählt Suchbegriffe pro Site und liefert die beliebtesten Begriffe.
    Begriffe werden getrimmt und kleingeschrieben gezählt, die erste
    Schreibweise bleibt als Anzeigeform erhalten.
    """

    def __init__(
        self,
        repository: AbstractTermRepository,
        default_site: str = "hacoo",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._repo = repository
        self._default_site = default_site
        self._clock = clock

    def normalize_site(self, site_id: str | None) -> str:
        return str(site_id or self._default_site).lower()

    async def record_search(self, site_id: str | None, raw_term: str | None) -> SearchTermStats:
        """
        Erhöht den Zähler eines Suchbegriffs.

        Raises:
            TermRequiredError: Wenn der Begriff nach dem Trimmen leer ist.
        """
        site = self.normalize_site(site_id)
        raw = str(raw_term or "").strip()
        term = raw.lower()
        if not term:
            raise TermRequiredError()

        key = f"{_prefix(site)}{term}"
        doc = self._load(await self._repo.get(key)) or SearchTermDocument(display=raw)
        doc.count += 1
        doc.last_at = int(self._clock() * 1000)
        if not doc.display:
            doc.display = raw
        await self._repo.put(key, doc.model_dump_json(by_alias=True))

        return SearchTermStats(site_id=site, term=term, count=doc.count, last_at=doc.last_at)

    async def top_terms(self, site_id: str | None, limit: int) -> list[PopularTerm]:
        prefix = _prefix(self.normalize_site(site_id))
        keys = await self._repo.list_keys(prefix, limit=_LIST_LIMIT)
        values = await asyncio.gather(*(self._repo.get(k) for k in keys))

        items: list[PopularTerm] = []
        for key, value in zip(keys, values):
            doc = self._load(value)
            if doc is None:
                continue
            term = key[len(prefix):]
            items.append(
                PopularTerm(
                    term=term,
                    count=doc.count,
                    last_at=doc.last_at,
                    display=doc.display or term,
                )
            )

        items.sort(key=lambda t: (t.count, t.last_at), reverse=True)
        return items[:limit]

    @staticmethod
    def _load(value: str | None) -> SearchTermDocument | None:
        if not value:
            return None
        try:
            return SearchTermDocument.model_validate_json(value)
        except ValidationError:
            logger.warning("Skipping unparseable search term document", exc_info=True)
            return None
