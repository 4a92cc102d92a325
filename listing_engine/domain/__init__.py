"""Domain layer - Core models and errors.

This module contains immutable domain models and typed errors
used throughout the engine. No external dependencies.
"""

from .errors import (
    ConfigurationError,
    GeolocationUnavailableError,
    InvalidStateError,
    ListingEngineError,
    MalformedResponseError,
    NetworkFailureError,
    PersistenceError,
    UnknownItemError,
)
from .models import (
    CollectionKind,
    CollectionRef,
    EditorState,
    FilterState,
    GeoPoint,
    ListingItem,
    ListingKind,
    ListingQuery,
    MoveCommand,
    NumericRange,
    OrderableItem,
    Page,
    ReorderEntry,
    SortKey,
    SortState,
    ViewStatus,
    clamp_page,
    page_count,
)

__all__ = [
    # Models
    "CollectionKind",
    "CollectionRef",
    "EditorState",
    "FilterState",
    "GeoPoint",
    "ListingItem",
    "ListingKind",
    "ListingQuery",
    "MoveCommand",
    "NumericRange",
    "OrderableItem",
    "Page",
    "ReorderEntry",
    "SortKey",
    "SortState",
    "ViewStatus",
    "clamp_page",
    "page_count",
    # Errors
    "ListingEngineError",
    "MalformedResponseError",
    "NetworkFailureError",
    "PersistenceError",
    "GeolocationUnavailableError",
    "InvalidStateError",
    "UnknownItemError",
    "ConfigurationError",
]
