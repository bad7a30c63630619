# tests/unit/test_product_service.py
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from product_feed.adapters.feed_client import ResilientFeedClient
from product_feed.domain.errors import (
    ErrorMessages,
    FeedLoadingError,
    FeedNetworkError,
    FeedTimeoutError,
    InvalidPayloadError,
)
from product_feed.domain.models import Category, ErrorKind
from product_feed.domain.ports import FeedSourcePort
from product_feed.services.product_cache import ProductCache
from product_feed.services.product_service import ProductService

_BASE_URL = "http://upstream.test/products"
_MESSAGES = ErrorMessages(timeout="too slow", network="offline", loading="broken")
_CATEGORIES = [
    Category(name="Hot", endpoint="Hot"),
    Category(name="Shoes", endpoint="Shoes"),
    Category(name="Bags", endpoint="Bags"),
]

_SHOE = {"title_clean": "A", "media_urls": "u", "converted_link": "l"}
_BAG = {"spbt": "Bag", "ztURL": "u", "spURL": "l"}
_INCOMPLETE = {"spbt": "B"}


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _make_service(
    feed: FeedSourcePort,
    clock: FakeClock | None = None,
    cache_enabled: bool = True,
    max_size: int = 10,
    **kwargs,
) -> ProductService:
    clock = clock or FakeClock()
    return ProductService(
        feed_source=feed,
        cache=ProductCache(max_size=max_size, clock=clock),
        categories=_CATEGORIES,
        base_url=_BASE_URL,
        error_messages=_MESSAGES,
        cache_enabled=cache_enabled,
        cache_expiry_seconds=60,
        clock=clock,
        **kwargs,
    )


def _feed_by_url(responses: dict[str, object]) -> AsyncMock:
    async def fetch(url: str, retry_count: int = 0) -> object:
        value = responses[url]
        if isinstance(value, BaseException):
            raise value
        return value

    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.side_effect = fetch
    return feed


@pytest.mark.asyncio  # type: ignore[misc]
async def test_direct_category_is_fetched_and_validated() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = [_SHOE, _INCOMPLETE]
    service = _make_service(feed)

    result = await service.fetch_products("Shoes")

    assert result == [_SHOE]
    assert result[0] is _SHOE
    feed.fetch_with_retry.assert_awaited_once_with(f"{_BASE_URL}/Shoes")


@pytest.mark.asyncio  # type: ignore[misc]
async def test_cache_hit_skips_network() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = [_SHOE]
    service = _make_service(feed)

    first = await service.fetch_products("Shoes")
    second = await service.fetch_products("Shoes")

    assert second is first
    assert feed.fetch_with_retry.await_count == 1
    assert service.get_cache_info().keys == ["Shoes"]


@pytest.mark.asyncio  # type: ignore[misc]
async def test_entry_expires_exactly_at_expiry_time() -> None:
    clock = FakeClock()
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = [_SHOE]
    service = _make_service(feed, clock=clock)

    await service.fetch_products("Shoes")

    clock.now += 59.5
    await service.fetch_products("Shoes")
    assert feed.fetch_with_retry.await_count == 1

    clock.now += 0.5
    await service.fetch_products("Shoes")
    assert feed.fetch_with_retry.await_count == 2


@pytest.mark.asyncio  # type: ignore[misc]
async def test_cache_disabled_always_fetches_and_stores_nothing() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = [_SHOE]
    service = _make_service(feed, cache_enabled=False)

    await service.fetch_products("Shoes")
    await service.fetch_products("Shoes")

    assert feed.fetch_with_retry.await_count == 2
    assert service.get_cache_info().size == 0


@pytest.mark.asyncio  # type: ignore[misc]
async def test_clear_cache() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = [_SHOE]
    service = _make_service(feed)

    await service.fetch_products("Shoes")
    service.clear_cache()
    await service.fetch_products("Shoes")

    assert feed.fetch_with_retry.await_count == 2


@pytest.mark.asyncio  # type: ignore[misc]
async def test_failures_are_not_cached() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.side_effect = httpx.ConnectError("Connection refused")
    service = _make_service(feed)

    with pytest.raises(FeedNetworkError):
        await service.fetch_products("Shoes")

    assert service.get_cache_info().size == 0


@pytest.mark.asyncio  # type: ignore[misc]
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (TimeoutError(), FeedTimeoutError),
        (httpx.ConnectError("Connection refused"), FeedNetworkError),
        (
            httpx.HTTPStatusError(
                "500 Internal Server Error",
                request=httpx.Request("GET", f"{_BASE_URL}/Shoes"),
                response=MagicMock(spec=httpx.Response),
            ),
            FeedLoadingError,
        ),
        (ValueError("Expecting value"), FeedLoadingError),
    ],
)
async def test_direct_failures_are_classified(error: Exception, expected: type) -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.side_effect = error
    service = _make_service(feed)

    with pytest.raises(expected) as excinfo:
        await service.fetch_products("Shoes")

    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio  # type: ignore[misc]
async def test_non_list_body_is_a_loading_error() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = {"error": "maintenance"}
    service = _make_service(feed)

    with pytest.raises(FeedLoadingError) as excinfo:
        await service.fetch_products("Shoes")

    assert str(excinfo.value) == "broken"
    assert isinstance(excinfo.value.__cause__, InvalidPayloadError)


@pytest.mark.asyncio  # type: ignore[misc]
async def test_fetch_products_result() -> None:
    feed = _feed_by_url(
        {
            f"{_BASE_URL}/Shoes": [_SHOE],
            f"{_BASE_URL}/Bags": httpx.ConnectError("Connection refused"),
        }
    )
    service = _make_service(feed)

    ok = await service.fetch_products_result("Shoes")
    assert ok.ok is True
    assert ok.unwrap() == [_SHOE]

    failed = await service.fetch_products_result("Bags")
    assert failed.ok is False
    assert failed.products == []
    assert failed.error is not None
    assert failed.error.kind == ErrorKind.NETWORK
    with pytest.raises(FeedNetworkError):
        failed.unwrap()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_hot_isolates_failing_category_and_caches_results() -> None:
    feed = _feed_by_url(
        {
            f"{_BASE_URL}/Shoes": httpx.ConnectError("Connection refused"),
            f"{_BASE_URL}/Bags": [_BAG, _INCOMPLETE],
        }
    )
    service = _make_service(feed)

    result = await service.fetch_products("Hot")

    assert result == [_BAG]
    # Hot und die erfolgreiche Kategorie liegen im Cache, die fehlgeschlagene nicht
    assert sorted(service.get_cache_info().keys) == ["Bags", "Hot"]

    await service.fetch_products("Hot")
    assert feed.fetch_with_retry.await_count == 2


@pytest.mark.asyncio  # type: ignore[misc]
async def test_hot_reuses_cached_categories() -> None:
    feed = _feed_by_url({f"{_BASE_URL}/Shoes": [_SHOE], f"{_BASE_URL}/Bags": [_BAG]})
    service = _make_service(feed)

    await service.fetch_products("Shoes")
    await service.fetch_products("Bags")
    result = await service.fetch_products("Hot")

    assert sorted(r["title_clean"] if "title_clean" in r else r["spbt"] for r in result) == [
        "A",
        "Bag",
    ]
    assert feed.fetch_with_retry.await_count == 2


@pytest.mark.asyncio  # type: ignore[misc]
async def test_hot_never_fails() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.side_effect = httpx.ConnectError("Connection refused")
    service = _make_service(feed)

    assert await service.fetch_products("Hot") == []


@pytest.mark.asyncio  # type: ignore[misc]
async def test_cache_respects_max_size() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = [_SHOE]
    service = _make_service(feed, max_size=2)

    for category in ("a", "b", "c"):
        await service.fetch_products(category)

    assert service.get_cache_info().keys == ["b", "c"]


def test_default_url_is_percent_encoded() -> None:
    service = _make_service(AsyncMock(spec=FeedSourcePort))
    assert service.build_url("Men Shoes") == f"{_BASE_URL}/Men%20Shoes"
    assert service.build_url("a/b&c") == f"{_BASE_URL}/a%2Fb%26c"


@pytest.mark.asyncio  # type: ignore[misc]
async def test_custom_url_builder() -> None:
    feed = AsyncMock(spec=FeedSourcePort)
    feed.fetch_with_retry.return_value = []
    service = _make_service(feed, url_builder=lambda c: f"https://cdn.test/{c.lower()}.json")

    await service.fetch_products("Shoes")

    feed.fetch_with_retry.assert_awaited_once_with("https://cdn.test/shoes.json")


@pytest.mark.asyncio  # type: ignore[misc]
async def test_shoes_end_to_end_with_retries() -> None:
    """Upstream fails twice, then delivers; the incomplete record is dropped."""
    good = {"title_clean": "A", "media_urls": "u", "converted_link": "l"}
    response = MagicMock(spec=httpx.Response)
    response.status_code = 200
    response.json.return_value = [good, {"spbt": "B"}]
    response.raise_for_status = MagicMock()

    http_client = AsyncMock(spec=httpx.AsyncClient)
    http_client.get.side_effect = [
        httpx.ConnectError("Connection refused"),
        httpx.ConnectError("Connection refused"),
        response,
    ]
    sleep = AsyncMock()
    feed = ResilientFeedClient(
        http_client=http_client,
        timeout_seconds=0.5,
        retry_count=2,
        retry_delay_seconds=0.1,
        sleep=sleep,
    )
    service = _make_service(feed)

    result = await service.fetch_products("Shoes")

    assert result == [good]
    assert result[0] is good
    assert http_client.get.await_count == 3
    total_backoff = sum(c.args[0] for c in sleep.await_args_list)
    assert total_backoff == pytest.approx(0.3)


@pytest.mark.asyncio  # type: ignore[misc]
async def test_persistently_failing_upstream_end_to_end() -> None:
    http_client = AsyncMock(spec=httpx.AsyncClient)
    http_client.get.side_effect = httpx.ConnectError("Connection refused")
    feed = ResilientFeedClient(
        http_client=http_client,
        timeout_seconds=0.5,
        retry_count=2,
        retry_delay_seconds=0.1,
        sleep=AsyncMock(),
    )
    service = _make_service(feed)

    with pytest.raises(FeedNetworkError) as excinfo:
        await service.fetch_products("Shoes")

    assert http_client.get.await_count == 3
    assert excinfo.value.message == "offline"
