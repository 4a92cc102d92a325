"""Great-circle distances between a reference point and listings.

Distances use the haversine formula on a spherical Earth. Anything that
cannot be measured (missing point, NaN or unparsable coordinates) is
infinitely far away, so it sorts last and never raises.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..domain.models import GeoPoint, ListingItem

EARTH_RADIUS_KM = 6371.0


def _coordinate(value: object) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def distance_km(a: Optional[GeoPoint], b: Optional[GeoPoint]) -> float:
    """Calculate the distance in km between two points.

    Returns ``math.inf`` when either point is missing or has a
    non-finite coordinate.
    """
    if a is None or b is None:
        return math.inf

    lat1, lon1 = _coordinate(a.lat), _coordinate(a.lng)
    lat2, lon2 = _coordinate(b.lat), _coordinate(b.lng)
    if lat1 is None or lon1 is None or lat2 is None or lon2 is None:
        return math.inf

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    h = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push h marginally outside [0, 1] for antipodal points.
    h = min(max(h, 0.0), 1.0)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_KM * c


@dataclass(frozen=True)
class GeoRanker:
    """Distance helper bound to one reference point.

    Attributes:
        reference_point: Where distances are measured from; None means
            geolocation is unavailable and every distance is infinite.
    """

    reference_point: Optional[GeoPoint] = None

    @property
    def available(self) -> bool:
        return self.reference_point is not None and self.reference_point.is_finite

    def distance_to(self, item: ListingItem) -> float:
        return distance_km(self.reference_point, item.location)

    def rank(self, items: Iterable[ListingItem]) -> list[tuple[ListingItem, float]]:
        """Pair items with their distance, nearest first, stable on ties."""
        pairs = [(item, self.distance_to(item)) for item in items]
        return sorted(pairs, key=lambda pair: pair[1])

    def nearby(
        self, items: Sequence[ListingItem], radius_km: float
    ) -> list[ListingItem]:
        """Items within radius_km of the reference point, in input order.

        Items without usable coordinates are never "near".
        """
        if not self.available:
            return []
        return [item for item in items if self.distance_to(item) <= radius_km]
