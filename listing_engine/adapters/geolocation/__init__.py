"""Geolocation adapters - Implementations of GeolocationPort.

Available implementations:
- StaticGeolocation: A point the host already knows
- NominatimGeolocation: A place name resolved through OpenStreetMap
"""

from .nominatim_adapter import NominatimGeolocation
from .static_adapter import StaticGeolocation

__all__ = ["NominatimGeolocation", "StaticGeolocation"]
