# src/product_feed/api/dependencies.py
from functools import lru_cache

import httpx
from fastapi import Depends

from product_feed.adapters.feed_client import ResilientFeedClient
from product_feed.core.config import Settings, get_settings
from product_feed.domain.errors import ErrorMessages
from product_feed.domain.ports import FeedSourcePort
from product_feed.repositories.term_repository import (
    AbstractTermRepository,
    InMemoryTermRepository,
)
from product_feed.services.popular_terms_service import PopularTermsService
from product_feed.services.product_cache import ProductCache
from product_feed.services.product_service import ProductService


# Shared HTTP Client (Connection Pooling)
@lru_cache
def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": "ProductFeed/1.0", "Accept": "application/json"},
        follow_redirects=True,
    )


def get_feed_client(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> FeedSourcePort:
    return ResilientFeedClient(
        http_client=client,
        timeout_seconds=settings.api_timeout_seconds,
        retry_count=settings.api_retry_count,
        retry_delay_seconds=settings.api_retry_delay_seconds,
    )


def get_error_messages(settings: Settings = Depends(get_settings)) -> ErrorMessages:
    return ErrorMessages(
        timeout=settings.timeout_error_message,
        network=settings.network_error_message,
        loading=settings.loading_error_message,
    )


# Singleton Product Cache (lebt für die Dauer des Prozesses)
_product_cache: ProductCache | None = None


def get_product_cache(
    settings: Settings = Depends(get_settings),
) -> ProductCache:
    global _product_cache
    if _product_cache is None:
        _product_cache = ProductCache(max_size=settings.cache_max_size)
    return _product_cache


def get_product_service(
    feed: FeedSourcePort = Depends(get_feed_client),
    cache: ProductCache = Depends(get_product_cache),
    messages: ErrorMessages = Depends(get_error_messages),
    settings: Settings = Depends(get_settings),
) -> ProductService:
    return ProductService(
        feed_source=feed,
        cache=cache,
        categories=settings.categories,
        base_url=settings.base_url,
        error_messages=messages,
        cache_enabled=settings.cache_enabled,
        cache_expiry_seconds=settings.cache_expiry_seconds,
        hot_category=settings.hot_category,
        hot_window_seconds=settings.hot_window_seconds,
    )


# Singleton Term Repository
_term_repository: AbstractTermRepository | None = None


def get_term_repository() -> AbstractTermRepository:
    global _term_repository
    if _term_repository is None:
        _term_repository = InMemoryTermRepository()
    return _term_repository


def get_popular_terms_service(
    repository: AbstractTermRepository = Depends(get_term_repository),
    settings: Settings = Depends(get_settings),
) -> PopularTermsService:
    return PopularTermsService(repository=repository, default_site=settings.popular_default_site)
