# src/product_feed/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from product_feed.domain.models import Category

# 3 Tage: 3 * 24 * 60 * 60
_THREE_DAYS_SECONDS = 259_200

_DEFAULT_CATEGORIES = [
    Category(name="Hot", endpoint="Hot"),
    Category(name="Shoes", endpoint="Shoes"),
    Category(name="Clothing", endpoint="Clothing"),
    Category(name="Bags", endpoint="Bags"),
    Category(name="Accessories", endpoint="Accessories"),
]


class Settings(BaseSettings):
    # App
    app_name: str = "Product Feed API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Upstream Feeds
    base_url: str = "http://localhost:8787/products"
    api_timeout_seconds: float = Field(default=10.0, gt=0)
    api_retry_count: int = Field(default=3, ge=0)
    api_retry_delay_seconds: float = Field(default=1.0, ge=0)

    # Cache
    cache_enabled: bool = True
    cache_expiry_seconds: float = Field(default=300.0, gt=0)
    cache_max_size: int = Field(default=50, ge=1)

    # Kategorien: Reihenfolge bestimmt auch die Reihenfolge beim Hot-Merge
    # Format (Env-Var): '[{"name": "Shoes", "endpoint": "Shoes"}]'
    categories: list[Category] = Field(default_factory=lambda: list(_DEFAULT_CATEGORIES))
    hot_category: str = "Hot"
    hot_window_seconds: int = Field(default=_THREE_DAYS_SECONDS, gt=0)

    # Benutzerfreundliche Fehlermeldungen
    timeout_error_message: str = "The request timed out. Please try again later."
    network_error_message: str = "Network error. Please check your connection."
    loading_error_message: str = "Failed to load products. Please try again later."

    # CORS
    cors_origins: list[str] = Field(default=["*"])

    # Rate Limiting
    rate_limit_search_events: str = "60/minute"

    # Popular Search Terms
    popular_default_site: str = "hacoo"
    popular_default_limit: int = 15
    popular_max_limit: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
