from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from product_feed.domain.models import ProductRecord

# Pflichtfelder mit ihren akzeptierten Feldnamen (Upstream liefert beide Varianten)
REQUIRED_FIELD_ALIASES: tuple[tuple[str, str], ...] = (
    ("title_clean", "spbt"),
    ("media_urls", "ztURL"),
    ("converted_link", "spURL"),
)


def is_valid_record(record: Any) -> bool:
    if not isinstance(record, Mapping):
        return False
    return all(
        any(record.get(name) for name in aliases) for aliases in REQUIRED_FIELD_ALIASES
    )


def filter_valid(records: Iterable[Any]) -> list[ProductRecord]:
    """Behält nur vollständige Datensätze. Datensätze werden weder kopiert noch repariert."""
    return [record for record in records if is_valid_record(record)]
