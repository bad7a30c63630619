from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractTermRepository(ABC):
    """Key-Value-Speicher mit Präfix-Listing für Suchbegriff-Zähler."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Returns the raw stored value or None."""
        ...

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Stores a raw value, replacing any previous one."""
        ...

    @abstractmethod
    async def list_keys(self, prefix: str, limit: int = 1000) -> list[str]:
        """Lists up to `limit` keys starting with `prefix`, in lexicographic order."""
        ...


class InMemoryTermRepository(AbstractTermRepository):
    """In-memory Implementierung; Inhalte gehen beim Neustart verloren."""

    def __init__(self) -> None:
        self._storage: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._storage.get(key)

    async def put(self, key: str, value: str) -> None:
        self._storage[key] = value

    async def list_keys(self, prefix: str, limit: int = 1000) -> list[str]:
        keys = sorted(k for k in self._storage if k.startswith(prefix))
        return keys[:limit]
