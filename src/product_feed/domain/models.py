# src/product_feed/domain/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeAlias

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from product_feed.domain.errors import FeedError

# Upstream-Datensätze bleiben opak: nur die Pflichtfelder werden geprüft,
# alle weiteren Felder werden unverändert durchgereicht.
ProductRecord: TypeAlias = dict[str, Any]


class ErrorKind(StrEnum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    LOADING = "loading"


# ---------------------------------------------------------------------------
# Kategorien & Cache
# ---------------------------------------------------------------------------


class Category(BaseModel):
    name: str = Field(min_length=1)
    endpoint: str = Field(min_length=1, description="Literaler Endpoint-String, zugleich Cache-Key")

    model_config = {"frozen": True}


@dataclass(frozen=True)
class CacheEntry:
    """
    Ein Cache-Eintrag. Gehört exklusiv dem ProductCache.
    Bewusst kein Pydantic-Modell: die Datensätze sollen per Identität
    erhalten bleiben und nicht beim Validieren kopiert werden.
    """

    data: list[ProductRecord]
    timestamp: float


class CacheInfo(BaseModel):
    size: int
    keys: list[str]


# ---------------------------------------------------------------------------
# Ergebnis-Typ für Kategorie-Abfragen
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetchResult:
    """Entweder eine Produktliste oder genau ein klassifizierter Fehler."""

    products: list[ProductRecord] = field(default_factory=list)
    error: FeedError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> list[ProductRecord]:
        if self.error is not None:
            raise self.error
        return self.products


# ---------------------------------------------------------------------------
# Populäre Suchbegriffe
# ---------------------------------------------------------------------------


class SearchTermDocument(BaseModel):
    """Gespeicherter Zähler-Zustand eines Suchbegriffs."""

    count: int = 0
    last_at: int = Field(default=0, alias="lastAt")
    display: str = ""

    model_config = {"populate_by_name": True}


class SearchTermStats(BaseModel):
    ok: bool = True
    site_id: str
    term: str
    count: int
    last_at: int = Field(serialization_alias="lastAt")


class PopularTerm(BaseModel):
    term: str
    count: int
    last_at: int = Field(serialization_alias="lastAt")
    display: str


class PopularTermsResponse(BaseModel):
    terms: list[PopularTerm]
    site_id: str
