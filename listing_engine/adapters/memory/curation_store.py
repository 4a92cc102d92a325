"""In-memory curation store.

Keeps collections in a dict and records every persistence call. Failures
can be switched on to exercise rollback paths without a backend.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from ...domain.errors import NetworkFailureError
from ...domain.models import CollectionRef, OrderableItem, ReorderEntry


@dataclass
class InMemoryCurationStore:
    """Curation source and persistence backed by a dict.

    Attributes:
        fail_orders: Reject save_order calls (return False)
        fail_featured: Reject set_featured calls (return False)
        raise_errors: Raise NetworkFailureError instead of returning False
        latency_seconds: Simulated round trip for every call
    """

    fail_orders: bool = False
    fail_featured: bool = False
    raise_errors: bool = False
    latency_seconds: float = 0.0

    saved_orders: list[tuple[CollectionRef, tuple[ReorderEntry, ...]]] = field(
        default_factory=list
    )
    featured_calls: list[tuple[CollectionRef, str]] = field(default_factory=list)
    _collections: dict[CollectionRef, list[OrderableItem]] = field(
        default_factory=dict, repr=False
    )
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def seed(self, collection: CollectionRef, items: Sequence[OrderableItem]) -> None:
        self._collections[collection] = list(items)

    def snapshot(self, collection: CollectionRef) -> list[OrderableItem]:
        """Stored items ordered by display_order."""
        return sorted(self._collections.get(collection, []), key=lambda i: i.display_order)

    async def _round_trip(self) -> None:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

    def _reject(self, operation: str) -> bool:
        if self.raise_errors:
            raise NetworkFailureError(f"Simulated {operation} failure")
        return False

    async def load(self, collection: CollectionRef) -> list[OrderableItem]:
        await self._round_trip()
        return list(self._collections.get(collection, []))

    async def save_order(
        self, collection: CollectionRef, entries: Sequence[ReorderEntry]
    ) -> bool:
        await self._round_trip()
        self.saved_orders.append((collection, tuple(entries)))
        if self.fail_orders:
            return self._reject("reorder")

        ranks = {entry.item_id: entry.display_order for entry in entries}
        self._collections[collection] = [
            replace(item, display_order=ranks.get(item.id, item.display_order))
            for item in self._collections.get(collection, [])
        ]
        self._logger.debug("Order stored", extra={"collection": str(collection)})
        return True

    async def set_featured(self, collection: CollectionRef, item_id: str) -> bool:
        await self._round_trip()
        self.featured_calls.append((collection, item_id))
        if self.fail_featured:
            return self._reject("featured")

        self._collections[collection] = [
            replace(item, is_featured=item.id == item_id)
            for item in self._collections.get(collection, [])
        ]
        return True

    def last_order(self, collection: CollectionRef) -> Optional[tuple[ReorderEntry, ...]]:
        for ref, entries in reversed(self.saved_orders):
            if ref == collection:
                return entries
        return None
