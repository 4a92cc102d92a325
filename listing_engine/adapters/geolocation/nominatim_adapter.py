"""Nominatim reference point adapter.

Resolves a place name (a city, a hotel address) to the reference point
used for distance sorting, with:
- Caching via CachePort
- Configuration injection
- Rate limiting
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from geopy.exc import GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim

from ...config import GeocodingConfig, get_config
from ...domain.errors import GeolocationUnavailableError
from ...domain.models import GeoPoint
from ...ports.cache import CachePort
from ..cache.memory_cache import InMemoryCache


@dataclass
class NominatimGeolocation:
    """GeolocationPort backed by OpenStreetMap's Nominatim.

    Attributes:
        place: Place name to resolve
        language: Language of the lookup
        config: Geocoding configuration
        cache: Cache for resolved points
    """

    place: str = ""
    language: str = "ar"
    config: GeocodingConfig = field(default_factory=lambda: get_config().geocoding)
    cache: CachePort[GeoPoint] = field(
        default_factory=lambda: InMemoryCache(name="geolocation")
    )

    _geocode_fn: Optional[Any] = field(default=None, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _get_geocoder(self) -> Any:
        """Get or initialize the geocoder with rate limiting."""
        if self._geocode_fn is not None:
            return self._geocode_fn

        self._logger.debug(
            "Initializing Nominatim geocoder",
            extra={
                "user_agent": self.config.user_agent,
                "timeout": self.config.timeout_seconds,
            },
        )
        geolocator = Nominatim(
            user_agent=self.config.user_agent,
            timeout=self.config.timeout_seconds,
        )
        # Errors must reach us so they become GeolocationUnavailableError.
        self._geocode_fn = RateLimiter(
            geolocator.geocode,
            min_delay_seconds=self.config.rate_limit_delay,
            max_retries=self.config.max_retries,
            error_wait_seconds=self.config.error_wait_seconds,
            swallow_exceptions=False,
        )
        return self._geocode_fn

    def reference_point(self) -> GeoPoint:
        """Resolve the configured place to a point.

        Raises:
            GeolocationUnavailableError: If the place is empty, unknown, or
                the service cannot be reached.
        """
        query = self.place.strip()
        if not query:
            raise GeolocationUnavailableError("No place configured for geolocation")

        cache_key = f"{query.lower()}:{self.language}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            self._logger.debug("Geolocation cache hit", extra={"query": query})
            return cached

        try:
            location = self._get_geocoder()(query, language=self.language)
        except GeopyError as e:
            self._logger.warning(
                "Geocode service error", extra={"query": query, "error": str(e)}
            )
            raise GeolocationUnavailableError(
                "Geocoding service unavailable", cause=e, query=query
            ) from e

        if location is None:
            self._logger.info("Place not found", extra={"query": query})
            raise GeolocationUnavailableError(f"Place not found: {query}", query=query)

        point = GeoPoint(lat=float(location.latitude), lng=float(location.longitude))
        self.cache.set(cache_key, point)
        self._logger.debug(
            "Geocode success",
            extra={"query": query, "lat": point.lat, "lng": point.lng},
        )
        return point
