"""Single-key sorting of listing items.

Sorting is stable: items with equal keys keep their input order. Records
missing the sorted value are moved below every record that has it, for
ascending and descending keys alike, again in input order.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from ..domain.models import GeoPoint, ListingItem, SortKey, SortState
from .geo import distance_km

_DIGITS = re.compile(r"^\d+$")


def id_sort_key(item_id: str) -> tuple[int, int, str]:
    """Natural ordering for opaque ids: numeric ids first, by value."""
    if _DIGITS.match(item_id):
        return (0, int(item_id), item_id)
    return (1, 0, item_id)


@dataclass(frozen=True)
class _Comparator:
    """How to read a key from an item and in which direction to order it."""

    value_of: Callable[[ListingItem], Any]
    descending: bool = False


def _comparator(key: SortKey, reference_point: Optional[GeoPoint]) -> _Comparator:
    if key is SortKey.PRICE_ASC:
        return _Comparator(lambda item: item.price)
    if key is SortKey.PRICE_DESC:
        return _Comparator(lambda item: item.price, descending=True)
    if key is SortKey.DURATION_ASC:
        return _Comparator(lambda item: item.duration_days)
    if key is SortKey.DURATION_DESC:
        return _Comparator(lambda item: item.duration_days, descending=True)
    if key is SortKey.RATING_DESC:
        # Missing rating is 0, the worst value under a descending sort.
        return _Comparator(lambda item: item.rating or 0.0, descending=True)
    if key is SortKey.DISTANCE_ASC:
        return _Comparator(
            lambda item: _finite_or_none(distance_km(reference_point, item.location))
        )
    if key is SortKey.NAME_ASC:
        return _Comparator(lambda item: item.name.casefold())
    if key is SortKey.NAME_DESC:
        return _Comparator(lambda item: item.name.casefold(), descending=True)
    raise ValueError(f"Unsupported sort key: {key}")


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


@dataclass
class SortEngine:
    """Applies a SortState to listing collections."""

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @staticmethod
    def available_keys(reference_point: Optional[GeoPoint]) -> tuple[SortKey, ...]:
        """Sort keys a view may offer; distance needs a reference point."""
        if reference_point is None or not reference_point.is_finite:
            return tuple(key for key in SortKey if key is not SortKey.DISTANCE_ASC)
        return tuple(SortKey)

    def effective_key(self, sort: SortState) -> SortKey:
        """The key actually applied, after the distance fallback."""
        if sort.key is SortKey.DISTANCE_ASC and sort.key not in self.available_keys(
            sort.reference_point
        ):
            self._logger.warning(
                "Distance sort requested without reference point, using name",
                extra={"fallback": SortKey.NAME_ASC.value},
            )
            return SortKey.NAME_ASC
        return sort.key

    def apply(self, items: Sequence[ListingItem], sort: SortState) -> list[ListingItem]:
        """Return a new list ordered by the active key.

        Args:
            items: Items to sort; not modified.
            sort: Active key, reference point and tie-break policy.

        Returns:
            Sorted items, records missing the key last.
        """
        key = self.effective_key(sort)
        comparator = _comparator(key, sort.reference_point)

        ordered = list(items)
        if sort.tie_break_by_id:
            ordered.sort(key=lambda item: id_sort_key(item.id))

        present: list[tuple[Any, ListingItem]] = []
        missing: list[ListingItem] = []
        for item in ordered:
            value = comparator.value_of(item)
            if value is None:
                missing.append(item)
            else:
                present.append((value, item))

        # list.sort stays stable with reverse=True
        present.sort(key=lambda pair: pair[0], reverse=comparator.descending)
        return [item for _, item in present] + missing
