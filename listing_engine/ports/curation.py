"""Curation ports - Loading and persisting curated media collections.

Persistence calls report success with a boolean or raise
NetworkFailureError; either kind of failure triggers the caller's rollback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from ..domain.models import CollectionRef, OrderableItem, ReorderEntry


class CurationSourcePort(Protocol):
    """Port for loading the acknowledged state of a collection.

    Implementations:
    - adapters/http/rest_curation_store.py (RestCurationStore)
    - adapters/memory/curation_store.py (InMemoryCurationStore)
    """

    async def load(self, collection: CollectionRef) -> Sequence[OrderableItem]:
        """Load the items of a collection as the server knows them.

        Args:
            collection: The collection to load.

        Returns:
            Items in any order; callers sort by display_order.
        """
        ...


class OrderPersistencePort(Protocol):
    """Port for persisting a complete collection order."""

    async def save_order(
        self, collection: CollectionRef, entries: Sequence[ReorderEntry]
    ) -> bool:
        """Persist the full ordered list of a collection.

        Args:
            collection: The owning collection.
            entries: Every item of the collection with its new rank.

        Returns:
            True if the backend acknowledged the order.
        """
        ...


class FeaturedPersistencePort(Protocol):
    """Port for persisting the featured item of a collection."""

    async def set_featured(self, collection: CollectionRef, item_id: str) -> bool:
        """Mark one item as the collection's featured item.

        Args:
            collection: The owning collection.
            item_id: The item to feature.

        Returns:
            True if the backend acknowledged the change.
        """
        ...
