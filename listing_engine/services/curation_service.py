"""Curation service - Open editing sessions on curated collections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from ..config import CurationConfig, get_config
from ..curation.featured import FeaturedSelector
from ..curation.ordering import OrderingEditor
from ..domain.models import CollectionRef, EditorState, OrderableItem
from ..ports.curation import (
    CurationSourcePort,
    FeaturedPersistencePort,
    OrderPersistencePort,
)


@dataclass
class CurationSession:
    """Ordering and featured state of one collection, edited together.

    The editor owns the order and the selector owns the featured flag;
    ``items`` merges both into what the view renders.
    """

    collection: CollectionRef
    editor: OrderingEditor
    featured: FeaturedSelector

    @property
    def items(self) -> tuple[OrderableItem, ...]:
        featured_id = self.featured.featured_id
        return tuple(
            replace(item, is_featured=item.id == featured_id) for item in self.editor.items
        )

    @property
    def state(self) -> EditorState:
        return self.editor.state

    @property
    def featured_id(self) -> Optional[str]:
        return self.featured.featured_id

    def move_item(self, item_id: str, to_index: int) -> None:
        self.editor.move_item(item_id, to_index)

    async def commit(self) -> None:
        await self.editor.commit()

    async def set_featured(self, item_id: str) -> None:
        await self.featured.set_featured(item_id)

    async def close(self) -> None:
        """Flush a pending autosave before the session goes away."""
        await self.editor.flush()


@dataclass
class CurationService:
    """Factory for curation sessions.

    Attributes:
        source: Loads the acknowledged state of a collection
        orders: Persists complete orders
        featured: Persists the featured item
        config: Autosave settings
    """

    source: CurationSourcePort
    orders: OrderPersistencePort
    featured: FeaturedPersistencePort
    config: CurationConfig = field(default_factory=lambda: get_config().curation)

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    async def open(self, collection: CollectionRef) -> CurationSession:
        """Load a collection and start editing it.

        Raises:
            NetworkFailureError: If the collection could not be loaded.
        """
        items = list(await self.source.load(collection))
        self._logger.info(
            "Curation session opened",
            extra={"collection": str(collection), "items": len(items)},
        )
        editor = OrderingEditor(
            collection=collection,
            persistence=self.orders,
            initial_items=items,
            autosave_delay_seconds=self.config.autosave_delay_seconds,
        )
        selector = FeaturedSelector(
            collection=collection,
            persistence=self.featured,
            initial_items=items,
        )
        return CurationSession(collection=collection, editor=editor, featured=selector)

    async def reload(self, session: CurationSession) -> None:
        """Replace a session's state with the server's, dropping any draft."""
        items = list(await self.source.load(session.collection))
        session.editor.reload(items)
        session.featured.reload(items)
