"""Client-side filtering of listing items.

Filtering is a pure function over a collection: every predicate must pass,
and items that pass keep their relative order. Predicates run in a fixed
order (text, price, duration, rating, city) so the cheapest rejection
usually happens first.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from ..domain.models import FilterState, ListingItem, NumericRange

Predicate = Callable[[ListingItem], bool]


def _normalize_text(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


def text_predicate(search_text: Optional[str]) -> Optional[Predicate]:
    """Case-insensitive substring match on name or description."""
    needle = _normalize_text(search_text)
    if not needle:
        return None

    def matches(item: ListingItem) -> bool:
        return needle in item.name.casefold() or needle in item.description.casefold()

    return matches


def range_predicate(
    value_of: Callable[[ListingItem], Optional[float]],
    bounds: Optional[NumericRange],
) -> Optional[Predicate]:
    """Inclusive range check; a missing value only passes unbounded ranges."""
    if bounds is None or bounds == NumericRange.full():
        return None
    return lambda item: bounds.contains(value_of(item))


def rating_predicate(min_rating: Optional[float]) -> Optional[Predicate]:
    """Rating floor, reading a missing rating as 0."""
    if min_rating is None:
        return None
    return lambda item: (item.rating or 0.0) >= min_rating


def city_predicate(city: Optional[str]) -> Optional[Predicate]:
    """Exact city match ignoring case and surrounding whitespace."""
    wanted = _normalize_text(city)
    if not wanted:
        return None
    return lambda item: _normalize_text(item.city) == wanted


def build_predicates(state: FilterState) -> list[Predicate]:
    """Translate a filter state into its active predicates, in order."""
    candidates = (
        text_predicate(state.search_text),
        range_predicate(lambda item: item.price, state.price_range),
        range_predicate(
            lambda item: None if item.duration_days is None else float(item.duration_days),
            state.duration_range,
        ),
        rating_predicate(state.min_rating),
        city_predicate(state.city),
    )
    return [predicate for predicate in candidates if predicate is not None]


@dataclass(frozen=True)
class FilterBounds:
    """Observed value domains used to seed range widgets.

    Attributes:
        price: Observed price range, or the full domain when nothing was seen
        duration: Observed duration range, or the full domain
        cities: Distinct city names in first-seen order
    """

    price: NumericRange = field(default_factory=NumericRange.full)
    duration: NumericRange = field(default_factory=NumericRange.full)
    cities: tuple[str, ...] = ()


def _observed_range(values: Iterable[Optional[float]]) -> NumericRange:
    present = [v for v in values if v is not None and math.isfinite(v)]
    if not present:
        return NumericRange.full()
    return NumericRange(minimum=min(present), maximum=max(present))


def derive_bounds(items: Sequence[ListingItem]) -> FilterBounds:
    """Derive default filter bounds from an unfiltered result set.

    An empty result set yields the full theoretical domain instead of
    [0, 0], which would filter everything out.
    """
    cities: dict[str, None] = {}
    for item in items:
        if item.city and item.city.strip():
            cities.setdefault(item.city.strip(), None)
    return FilterBounds(
        price=_observed_range(item.price for item in items),
        duration=_observed_range(
            None if item.duration_days is None else float(item.duration_days)
            for item in items
        ),
        cities=tuple(cities),
    )


class FilterEngine:
    """Applies filter states to listing collections."""

    def apply(self, items: Sequence[ListingItem], state: FilterState) -> list[ListingItem]:
        """Return the items passing every active predicate, in input order."""
        predicates = build_predicates(state)
        if not predicates:
            return list(items)
        return [item for item in items if all(p(item) for p in predicates)]

    def apply_all(
        self, items: Sequence[ListingItem], states: Iterable[FilterState]
    ) -> list[ListingItem]:
        """Apply several filter states as one conjunction."""
        result = list(items)
        for state in states:
            result = self.apply(result, state)
        return result
