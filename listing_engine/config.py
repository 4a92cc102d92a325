"""Centralized configuration using Pydantic Settings.

This module provides a single source of truth for all configuration:
backend endpoints, listing defaults, curation autosave and logging.

Configuration can be overridden via environment variables:
- LST_API_BASE_URL=https://example.org/api/v1
- LST_LISTING_DEFAULT_PAGE_SIZE=24
- LST_CURATION_AUTOSAVE_DELAY_SECONDS=0.5
- LST_LOG_LEVEL=DEBUG
- etc.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.errors import ConfigurationError


class ApiConfig(BaseSettings):
    """REST backend configuration.

    Environment variables prefixed with LST_API_.
    """

    model_config = SettingsConfigDict(env_prefix="LST_API_")

    base_url: str = "https://admin.umrahgo.net/api/v1"
    offices_path: str = "/public/offices"
    packages_path: str = "/public/packages"
    gallery_path: str = "/office/gallery"
    gallery_reorder_path: str = "/office/gallery/reorder"
    gallery_featured_path: str = "/office/gallery/{item_id}/featured"
    package_path: str = "/office/packages/{owner_id}"
    package_images_reorder_path: str = "/office/packages/{owner_id}/reorder-images"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_factor: float = 0.5
    auth_token: Optional[str] = None

    def url(self, path: str, **params: str) -> str:
        """Join the base URL with a path template.

        Raises:
            ConfigurationError: If the base URL is blank or the template
                needs a parameter that was not given.
        """
        if not self.base_url.strip():
            raise ConfigurationError("API base URL is not set", setting_name="LST_API_BASE_URL")
        try:
            return self.base_url.rstrip("/") + path.format(**params)
        except KeyError as e:
            raise ConfigurationError(
                f"Path template {path!r} needs parameter {e.args[0]!r}",
                cause=e,
                setting_name=path,
                expected_type="path template",
            ) from e


class ListingConfig(BaseSettings):
    """Listing view defaults.

    Environment variables prefixed with LST_LISTING_.
    """

    model_config = SettingsConfigDict(env_prefix="LST_LISTING_")

    default_page_size: int = Field(default=12, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    search_debounce_seconds: float = Field(default=0.3, ge=0)
    locale: str = "ar"
    fallback_locale: str = "ar"


class CurationConfig(BaseSettings):
    """Curated media editing.

    Environment variables prefixed with LST_CURATION_.
    """

    model_config = SettingsConfigDict(env_prefix="LST_CURATION_")

    autosave_delay_seconds: Optional[float] = Field(default=None, ge=0)


class GeocodingConfig(BaseSettings):
    """Geocoding configuration for place-name reference points.

    Environment variables prefixed with LST_GEO_.
    """

    model_config = SettingsConfigDict(env_prefix="LST_GEO_")

    place: Optional[str] = None  # Resolve the reference point from this place name
    user_agent: str = "listing-engine"
    timeout_seconds: int = 10
    rate_limit_delay: float = 1.0
    max_retries: int = 2
    error_wait_seconds: float = 2.0


class ObservabilityConfig(BaseSettings):
    """Logging and observability configuration.

    Environment variables prefixed with LST_LOG_.
    """

    model_config = SettingsConfigDict(env_prefix="LST_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False  # Set True for JSON logging


class AppConfig(BaseSettings):
    """Main application configuration aggregating all sub-configs.

    Sub-configurations can be accessed via attributes:

        config = get_config()
        print(config.api.base_url)
        print(config.listing.default_page_size)

    Environment variables prefixed with LST_.
    """

    model_config = SettingsConfigDict(env_prefix="LST_")

    api: ApiConfig = Field(default_factory=ApiConfig)
    listing: ListingConfig = Field(default_factory=ListingConfig)
    curation: CurationConfig = Field(default_factory=CurationConfig)
    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the singleton application configuration.

    Configuration is loaded once and cached. To reload configuration
    (e.g., in tests), use reset_config() first.

    Returns:
        The application configuration instance.
    """
    return AppConfig()


def reset_config() -> None:
    """Reset the configuration cache.

    Call this in tests to ensure a fresh configuration is loaded.
    """
    get_config.cache_clear()
