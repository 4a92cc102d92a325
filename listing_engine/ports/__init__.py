"""Ports layer - Abstract interfaces (Protocols) for the engine.

Ports define the contracts between the engine core and external
adapters: the REST backend, the host's geolocation and caching.
"""

from .cache import CachePort
from .curation import CurationSourcePort, FeaturedPersistencePort, OrderPersistencePort
from .geolocation import GeolocationPort
from .listing import ListingSourcePort

__all__ = [
    # Listing
    "ListingSourcePort",
    # Curation
    "CurationSourcePort",
    "OrderPersistencePort",
    "FeaturedPersistencePort",
    # Geolocation
    "GeolocationPort",
    # Cache
    "CachePort",
]
