# tests/conftest.py
from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

import product_feed.api.dependencies as _deps
from product_feed.core.config import Settings, get_settings
from product_feed.domain.models import Category
from product_feed.domain.ports import FeedSourcePort
from product_feed.main import app


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        base_url="http://upstream.test/products",
        api_retry_count=0,
        api_retry_delay_seconds=0,
        cache_max_size=10,
        categories=[
            Category(name="Hot", endpoint="Hot"),
            Category(name="Shoes", endpoint="Shoes"),
            Category(name="Bags", endpoint="Bags"),
        ],
    )


@pytest.fixture
def feed_source() -> AsyncMock:
    return AsyncMock(spec=FeedSourcePort)


@pytest.fixture
def client(
    test_settings: Settings, feed_source: AsyncMock
) -> Generator[TestClient, None, None]:
    # Singletons zurücksetzen, damit jeder Test mit leerem Cache und leerem
    # Term-Speicher startet.
    _deps._product_cache = None
    _deps._term_repository = None
    # Override über die DI-Map von FastAPI; patch allein erreicht Depends() nicht.
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[_deps.get_feed_client] = lambda: feed_source
    try:
        with patch("product_feed.core.config.get_settings", return_value=test_settings), TestClient(
            app
        ) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
        _deps._product_cache = None
        _deps._term_repository = None
