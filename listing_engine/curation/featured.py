"""Single featured item per curated collection.

Setting a featured item flips the whole featured vector at once: the
target becomes featured and every sibling is cleared. Because that
optimistic update may clear a previously featured sibling, a failure
restores the entire prior vector rather than only the target.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from ..domain.errors import PersistenceError, UnknownItemError
from ..domain.models import CollectionRef, OrderableItem
from ..ports.curation import FeaturedPersistencePort


@dataclass
class FeaturedSelector:
    """Featured state of one curated collection.

    Toggles are serialized: a second call waits for the first to settle so
    a rollback can never overwrite a newer successful toggle.

    Attributes:
        collection: The owning collection
        persistence: Where the featured choice is saved
        initial_items: Server state the session starts from
    """

    collection: CollectionRef
    persistence: FeaturedPersistencePort
    initial_items: Sequence[OrderableItem] = ()

    _items: list[OrderableItem] = field(default_factory=list, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._items = list(self.initial_items)

    @property
    def items(self) -> tuple[OrderableItem, ...]:
        return tuple(self._items)

    @property
    def featured_id(self) -> Optional[str]:
        for item in self._items:
            if item.is_featured:
                return item.id
        return None

    @property
    def featured_vector(self) -> tuple[bool, ...]:
        return tuple(item.is_featured for item in self._items)

    @property
    def pending(self) -> bool:
        return self._lock.locked()

    def reload(self, items: Sequence[OrderableItem]) -> None:
        """Replace the local state with freshly loaded server items."""
        self._items = list(items)

    async def set_featured(self, item_id: str) -> None:
        """Make item_id the only featured item of the collection.

        Raises:
            UnknownItemError: If the item is not in the collection.
            PersistenceError: If the backend did not acknowledge; the prior
                featured vector has been restored.
        """
        async with self._lock:
            if all(item.id != item_id for item in self._items):
                raise UnknownItemError(
                    f"Item {item_id} is not part of {self.collection}", item_id=item_id
                )
            if self.featured_vector == tuple(item.id == item_id for item in self._items):
                self._logger.debug(
                    "Item already featured",
                    extra={"collection": str(self.collection), "item_id": item_id},
                )
                return

            previous = list(self._items)
            self._items = [
                replace(item, is_featured=item.id == item_id) for item in self._items
            ]

            cause: Optional[Exception] = None
            try:
                acknowledged = await self.persistence.set_featured(self.collection, item_id)
            except Exception as e:
                acknowledged = False
                cause = e

            if acknowledged:
                self._logger.info(
                    "Featured item set",
                    extra={"collection": str(self.collection), "item_id": item_id},
                )
                return

            self._items = previous
            self._logger.warning(
                "Featured toggle failed, rolled back",
                extra={
                    "collection": str(self.collection),
                    "item_id": item_id,
                    "error": str(cause or "rejected"),
                },
            )
            raise PersistenceError(
                f"Could not set featured item of {self.collection}",
                cause=cause,
                operation="featured",
                collection=str(self.collection),
            )
