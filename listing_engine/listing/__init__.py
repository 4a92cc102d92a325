"""Listing pipeline: normalize, filter, sort and paginate.

Each stage is a plain, independently testable component; the listing
query service wires them into one fetch cycle per view.
"""

from .filters import FilterBounds, FilterEngine, derive_bounds
from .geo import EARTH_RADIUS_KM, GeoRanker, distance_km
from .normalizer import ResponseNormalizer, ResponseShape, SHAPE_HANDLERS
from .pagination import PaginationCoordinator, Reconciliation, RequestTicket
from .sorting import SortEngine

__all__ = [
    "EARTH_RADIUS_KM",
    "FilterBounds",
    "FilterEngine",
    "GeoRanker",
    "PaginationCoordinator",
    "Reconciliation",
    "RequestTicket",
    "ResponseNormalizer",
    "ResponseShape",
    "SHAPE_HANDLERS",
    "SortEngine",
    "derive_bounds",
    "distance_km",
]
