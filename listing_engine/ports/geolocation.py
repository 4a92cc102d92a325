"""Geolocation port - Source of the reference point for distance sorting.

The host environment owns geolocation; the engine only asks for a point
and treats its absence as "distance sorting unavailable".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..domain.models import GeoPoint


class GeolocationPort(Protocol):
    """Port for reference point providers.

    Implementations:
    - adapters/geolocation/static_adapter.py (StaticGeolocation)
    - adapters/geolocation/nominatim_adapter.py (NominatimGeolocation)
    """

    def reference_point(self) -> GeoPoint:
        """Return the current reference point.

        Raises:
            GeolocationUnavailableError: If no point can be provided.
        """
        ...
