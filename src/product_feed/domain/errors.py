# src/product_feed/domain/errors.py
from __future__ import annotations

from dataclasses import dataclass

import httpx

from product_feed.domain.models import ErrorKind

# ---------------------------------------------------------------------------
# Benutzerseitige Fehlerarten
# ---------------------------------------------------------------------------


class FeedError(Exception):
    """
    Basisklasse aller klassifizierten Fehler.
    Die Nachricht stammt ausschließlich aus der Konfiguration, Details des
    ursprünglichen Fehlers werden nur über __cause__ verkettet.
    """

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FeedTimeoutError(FeedError):
    kind = ErrorKind.TIMEOUT


class FeedNetworkError(FeedError):
    kind = ErrorKind.NETWORK


class FeedLoadingError(FeedError):
    kind = ErrorKind.LOADING


class InvalidPayloadError(Exception):
    """Upstream-Antwort ist kein JSON-Array."""

    def __init__(self, url: str, payload_type: str):
        super().__init__(f"Expected a JSON array from '{url}', got {payload_type}")
        self.url = url
        self.payload_type = payload_type


class TermRequiredError(ValueError):
    def __init__(self) -> None:
        super().__init__("term_required")


# ---------------------------------------------------------------------------
# Klassifizierung
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ErrorMessages:
    timeout: str
    network: str
    loading: str


def classify_error(error: BaseException, messages: ErrorMessages) -> FeedError:
    """
    Bildet einen beliebigen Fehler auf genau eine der drei Fehlerarten ab.
    Reihenfolge: Timeout, dann Transportfehler, sonst Ladefehler.
    """
    if isinstance(error, FeedError):
        return error
    # httpx.TimeoutException ist selbst ein TransportError, daher zuerst prüfen
    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return FeedTimeoutError(messages.timeout)
    if isinstance(error, httpx.TransportError):
        return FeedNetworkError(messages.network)
    return FeedLoadingError(messages.loading)
