# src/product_feed/domain/ports.py
from abc import ABC, abstractmethod
from typing import Any


class FeedSourcePort(ABC):
    """
    Abstrakte Schnittstelle für Upstream-Kategorie-Feeds.
    Die Services kennen ausschließlich dieses Interface.
    """

    @abstractmethod
    async def fetch_with_retry(self, url: str, retry_count: int = 0) -> Any:
        """
        Ruft die URL per GET ab und gibt den geparsten JSON-Body zurück.

        Fehlgeschlagene Versuche werden lokal wiederholt. Nach Ausschöpfen
        der Versuche wird der letzte Fehler unverändert weitergereicht
        (Timeout, Transportfehler, HTTP-Status oder Parse-Fehler), damit der
        Aufrufer ihn klassifizieren kann.
        """
        ...
