"""Immutable domain models for the listing and curation engine.

All models are frozen dataclasses with slots. They have no external
dependencies and describe the canonical shapes every adapter and engine
component agrees on, whatever the backend happened to send.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

MIN_RATING = 0.0
MAX_RATING = 5.0


class ListingKind(Enum):
    """Discriminator for listing records."""

    OFFICE = "office"
    PACKAGE = "package"


class SortKey(Enum):
    """The sort options a listing view can offer."""

    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DURATION_ASC = "duration_asc"
    DURATION_DESC = "duration_desc"
    RATING_DESC = "rating_desc"
    DISTANCE_ASC = "distance_asc"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"


class EditorState(Enum):
    """Lifecycle of a curated collection draft."""

    CLEAN = auto()
    DIRTY = auto()
    SAVING = auto()


class ViewStatus(Enum):
    """What a listing view should render.

    EMPTY is a successful query with zero matches, ERROR is a failed fetch.
    """

    IDLE = auto()
    LOADING = auto()
    READY = auto()
    EMPTY = auto()
    ERROR = auto()


class CollectionKind(Enum):
    """Kinds of curated media collections."""

    OFFICE_GALLERY = "gallery"
    PACKAGE_IMAGES = "package_images"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """GPS coordinates of a reference point or listing."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        """Validate coordinate ranges for finite values."""
        if math.isfinite(self.lat) and not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude must be between -90 and 90, got {self.lat}")
        if math.isfinite(self.lng) and not -180 <= self.lng <= 180:
            raise ValueError(
                f"Longitude must be between -180 and 180, got {self.lng}"
            )

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)


@dataclass(frozen=True, slots=True)
class ListingItem:
    """A travel office or package as shown in a listing.

    Numeric fields are None when the backend did not provide a usable
    value; 0 is a legitimate price or rating and is kept as such.

    Attributes:
        id: Opaque identifier
        kind: Office or package
        name: Display name (already resolved for the active locale)
        description: Free text used by the search filter
        price: Package price, if known
        duration_days: Package duration, if known
        rating: Rating clamped to [0, 5], if known
        lat: Latitude, if known
        lng: Longitude, if known
        city: City name, if known
        is_featured: Whether the backend flags the record as featured
    """

    id: str
    kind: ListingKind
    name: str
    description: str = ""
    price: Optional[float] = None
    duration_days: Optional[int] = None
    rating: Optional[float] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    city: Optional[str] = None
    is_featured: bool = False

    def __post_init__(self) -> None:
        if self.rating is not None:
            clamped = min(max(self.rating, MIN_RATING), MAX_RATING)
            object.__setattr__(self, "rating", clamped)

    @property
    def location(self) -> Optional[GeoPoint]:
        """Return the coordinates when both are present and in range, else None."""
        if self.lat is None or self.lng is None:
            return None
        if abs(self.lat) > 90 or abs(self.lng) > 180:
            return None
        return GeoPoint(lat=self.lat, lng=self.lng)


def page_count(total_items: int, page_size: int) -> int:
    """Number of pages needed for total_items at page_size per page."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return math.ceil(max(total_items, 0) / page_size)


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp a 1-based page number into [1, max(total_pages, 1)]."""
    return min(max(page, 1), max(total_pages, 1))


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """Canonical page of results, independent of the backend shape.

    Use Page.build() to get derived totals and a clamped current page.
    """

    items: tuple[T, ...] = field(default_factory=tuple)
    total_items: int = 0
    page_size: int = 1
    current_page: int = 1
    total_pages: int = 0

    @classmethod
    def build(
        cls,
        items: tuple[T, ...] | list[T],
        total_items: int,
        page_size: int,
        current_page: int = 1,
        total_pages: Optional[int] = None,
    ) -> "Page[T]":
        """Create a page, deriving total_pages when the source gave none."""
        if total_pages is None:
            total_pages = page_count(total_items, page_size)
        return cls(
            items=tuple(items),
            total_items=max(total_items, 0),
            page_size=page_size,
            current_page=clamp_page(current_page, total_pages),
            total_pages=max(total_pages, 0),
        )

    @classmethod
    def empty(cls, page_size: int, current_page: int = 1) -> "Page[T]":
        """Return the empty page used when a payload cannot be understood."""
        return cls.build((), 0, page_size, current_page)

    @property
    def is_empty(self) -> bool:
        return self.total_items == 0

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1


@dataclass(frozen=True, slots=True)
class NumericRange:
    """Inclusive numeric range; infinite bounds mean no constraint."""

    minimum: float = -math.inf
    maximum: float = math.inf

    def __post_init__(self) -> None:
        if self.minimum > self.maximum:
            raise ValueError(
                f"Range minimum {self.minimum} is greater than maximum {self.maximum}"
            )

    @classmethod
    def full(cls) -> "NumericRange":
        return cls()

    @property
    def is_unbounded(self) -> bool:
        return self.maximum == math.inf

    def contains(self, value: Optional[float]) -> bool:
        """Check membership, reading a missing value as +inf."""
        effective = math.inf if value is None else value
        return self.minimum <= effective <= self.maximum

    def intersect(self, other: "NumericRange") -> "NumericRange":
        return NumericRange(
            minimum=max(self.minimum, other.minimum),
            maximum=min(self.maximum, other.maximum),
        )


@dataclass(frozen=True, slots=True)
class FilterState:
    """User-selected constraints on a listing; None means no constraint.

    Attributes:
        search_text: Substring matched against name or description
        price_range: Inclusive price range
        duration_range: Inclusive duration range in days
        min_rating: Rating floor
        city: City, matched exactly ignoring case
    """

    search_text: Optional[str] = None
    price_range: Optional[NumericRange] = None
    duration_range: Optional[NumericRange] = None
    min_rating: Optional[float] = None
    city: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self == FilterState()

    def intersect(self, other: "FilterState") -> "FilterState":
        """Combine two filter states into their conjunction.

        Raises:
            ValueError: If both states constrain text or city differently.
        """
        return FilterState(
            search_text=_merge_exact("search_text", self.search_text, other.search_text),
            price_range=_merge_range(self.price_range, other.price_range),
            duration_range=_merge_range(self.duration_range, other.duration_range),
            min_rating=_merge_floor(self.min_rating, other.min_rating),
            city=_merge_exact("city", self.city, other.city),
        )


def _merge_exact(name: str, left: Optional[str], right: Optional[str]) -> Optional[str]:
    if not left:
        return right
    if not right or left.casefold() == right.casefold():
        return left
    raise ValueError(f"Cannot combine conflicting {name} constraints")


def _merge_range(
    left: Optional[NumericRange], right: Optional[NumericRange]
) -> Optional[NumericRange]:
    if left is None:
        return right
    if right is None:
        return left
    return left.intersect(right)


def _merge_floor(left: Optional[float], right: Optional[float]) -> Optional[float]:
    if left is None:
        return right
    if right is None:
        return left
    return max(left, right)


@dataclass(frozen=True, slots=True)
class SortState:
    """Active sort key plus the reference point used by distance sorting.

    Equal keys keep their input order unless tie_break_by_id is set; then
    ties, including records missing the key, are ordered by ascending id
    (numeric ids first) and input order no longer matters.
    """

    key: SortKey = SortKey.NAME_ASC
    reference_point: Optional[GeoPoint] = None
    tie_break_by_id: bool = False


@dataclass(frozen=True, slots=True)
class ListingQuery:
    """Everything a listing source needs to issue one fetch."""

    kind: ListingKind
    filters: FilterState = field(default_factory=FilterState)
    sort: SortState = field(default_factory=SortState)
    page: int = 1
    page_size: int = 12
    locale: str = "ar"


@dataclass(frozen=True, slots=True)
class CollectionRef:
    """Identifies one curated collection.

    Attributes:
        kind: Office gallery or package image set
        owner_id: Package id for package images; None for the
            authenticated office's own gallery
    """

    kind: CollectionKind
    owner_id: Optional[str] = None

    def __str__(self) -> str:
        if self.owner_id is None:
            return self.kind.value
        return f"{self.kind.value}:{self.owner_id}"


@dataclass(frozen=True, slots=True)
class OrderableItem:
    """An image inside a curated collection.

    Attributes:
        id: Opaque identifier
        display_order: 1-based rank within the collection
        is_featured: Whether this is the collection's featured image
        image_url: Image location, if known
        title: Optional caption
    """

    id: str
    display_order: int
    is_featured: bool = False
    image_url: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MoveCommand:
    """A single drag-and-drop move inside an ordered collection."""

    item_id: str
    from_index: int
    to_index: int

    @property
    def is_noop(self) -> bool:
        return self.from_index == self.to_index


@dataclass(frozen=True, slots=True)
class ReorderEntry:
    """One line of a reorder payload."""

    item_id: str
    display_order: int
