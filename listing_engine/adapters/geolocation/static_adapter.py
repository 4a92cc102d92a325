"""Fixed reference point, for hosts that already know where the user is."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...domain.errors import GeolocationUnavailableError
from ...domain.models import GeoPoint


@dataclass
class StaticGeolocation:
    """GeolocationPort returning a configured point.

    Attributes:
        point: The reference point; None behaves like denied permission
    """

    point: Optional[GeoPoint] = None

    def reference_point(self) -> GeoPoint:
        if self.point is None or not self.point.is_finite:
            raise GeolocationUnavailableError("No reference point configured")
        return self.point
