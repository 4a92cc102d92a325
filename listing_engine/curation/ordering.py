"""Optimistic reordering of a curated media collection.

The editor keeps two orders: the one the server last acknowledged and a
local draft. Moves only touch the draft. A commit sends the complete
ordered list, never a diff, and either becomes the new acknowledged order
or is rolled back to it.

States::

    CLEAN --move--> DIRTY --commit--> SAVING --ok--> CLEAN
                      ^                  |
                      +----failure-------+

Moves that arrive while SAVING are queued and replayed on the draft once
the commit resolves, so they never leak into the payload in flight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from ..debounce import Debouncer
from ..domain.errors import InvalidStateError, PersistenceError, UnknownItemError
from ..domain.models import (
    CollectionRef,
    EditorState,
    MoveCommand,
    OrderableItem,
    ReorderEntry,
)
from ..ports.curation import OrderPersistencePort


def renumber(items: Sequence[OrderableItem]) -> list[OrderableItem]:
    """Assign display_order 1..N following the sequence order."""
    return [
        item if item.display_order == rank else replace(item, display_order=rank)
        for rank, item in enumerate(items, start=1)
    ]


def _initial_order(items: Sequence[OrderableItem]) -> tuple[OrderableItem, ...]:
    # Server ranks may have gaps or duplicates; order by rank, then id.
    ordered = sorted(items, key=lambda item: (item.display_order, item.id))
    return tuple(renumber(ordered))


@dataclass
class OrderingEditor:
    """Draft ordering of one curated collection.

    Attributes:
        collection: The owning collection
        persistence: Where complete orders are saved
        initial_items: Server state the session starts from
        autosave_delay_seconds: Commit automatically after this quiet
            period following a move; None disables autosave
    """

    collection: CollectionRef
    persistence: OrderPersistencePort
    initial_items: Sequence[OrderableItem] = ()
    autosave_delay_seconds: Optional[float] = None

    state: EditorState = field(default=EditorState.CLEAN, init=False)
    rejected_draft: Optional[tuple[OrderableItem, ...]] = field(default=None, init=False)
    _acknowledged: tuple[OrderableItem, ...] = field(default=(), init=False, repr=False)
    _draft: list[OrderableItem] = field(default_factory=list, init=False, repr=False)
    _queued: list[tuple[str, int]] = field(default_factory=list, init=False, repr=False)
    _autosave: Optional[Debouncer] = field(default=None, init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._acknowledged = _initial_order(self.initial_items)
        self._draft = list(self._acknowledged)
        if self.autosave_delay_seconds is not None:
            self._autosave = Debouncer(
                self.autosave_delay_seconds,
                self._autosave_commit,
                name=f"autosave:{self.collection}",
            )

    # ----------------------------------------------------------------- views

    @property
    def items(self) -> tuple[OrderableItem, ...]:
        """The draft order as currently shown."""
        return tuple(self._draft)

    @property
    def acknowledged(self) -> tuple[OrderableItem, ...]:
        """The order the server last acknowledged."""
        return self._acknowledged

    @property
    def order(self) -> tuple[str, ...]:
        return tuple(item.id for item in self._draft)

    @property
    def queued_moves(self) -> int:
        return len(self._queued)

    def index_of(self, item_id: str) -> int:
        for index, item in enumerate(self._draft):
            if item.id == item_id:
                return index
        raise UnknownItemError(
            f"Item {item_id} is not part of {self.collection}", item_id=item_id
        )

    # ----------------------------------------------------------------- moves

    def move_item(self, item_id: str, to_index: int) -> Optional[MoveCommand]:
        """Move an item to a new position in the draft.

        Args:
            item_id: Item being dragged.
            to_index: Target position, clamped into the list bounds.

        Returns:
            The applied command, or None when the move was queued because a
            commit is in flight.

        Raises:
            UnknownItemError: If the item is not in the collection.
        """
        if self.state is EditorState.SAVING:
            self.index_of(item_id)
            self._queued.append((item_id, to_index))
            self._logger.debug(
                "Move queued during save",
                extra={"collection": str(self.collection), "item_id": item_id},
            )
            return None
        return self._apply_move(item_id, to_index)

    def apply(self, command: MoveCommand) -> Optional[MoveCommand]:
        """Apply a command produced by a drag interaction.

        Raises:
            InvalidStateError: If the item is no longer at command.from_index.
        """
        saving = self.state is EditorState.SAVING
        if not saving and self.index_of(command.item_id) != command.from_index:
            raise InvalidStateError(
                f"Item {command.item_id} is no longer at index {command.from_index}",
                state=self.state.name,
                operation="apply",
            )
        return self.move_item(command.item_id, command.to_index)

    def _apply_move(self, item_id: str, to_index: int) -> MoveCommand:
        from_index = self.index_of(item_id)
        target = min(max(to_index, 0), len(self._draft) - 1)
        command = MoveCommand(item_id=item_id, from_index=from_index, to_index=target)
        if command.is_noop:
            return command

        draft = list(self._draft)
        draft.insert(target, draft.pop(from_index))
        self._draft = renumber(draft)
        self.state = EditorState.DIRTY
        self._logger.debug(
            "Item moved",
            extra={
                "collection": str(self.collection),
                "item_id": item_id,
                "from": from_index,
                "to": target,
            },
        )
        if self._autosave is not None:
            self._autosave.trigger()
        return command

    def _drain_queue(self) -> None:
        queued, self._queued = self._queued, []
        for item_id, to_index in queued:
            try:
                self._apply_move(item_id, to_index)
            except UnknownItemError:
                self._logger.warning(
                    "Dropping queued move for missing item",
                    extra={"collection": str(self.collection), "item_id": item_id},
                )

    # ---------------------------------------------------------------- commit

    async def commit(self) -> None:
        """Persist the complete draft order.

        On failure the draft is restored to the acknowledged order, the
        rejected draft is kept for retry(), the editor returns to DIRTY and
        the error is raised.

        Raises:
            InvalidStateError: If the editor is not DIRTY.
            PersistenceError: If the backend did not acknowledge the order.
        """
        if self.state is not EditorState.DIRTY:
            raise InvalidStateError(
                f"Cannot commit {self.collection} while {self.state.name}",
                state=self.state.name,
                operation="commit",
            )

        snapshot = self._acknowledged
        payload = tuple(self._draft)
        entries = [ReorderEntry(item.id, item.display_order) for item in payload]
        self.state = EditorState.SAVING
        self._logger.info(
            "Saving order",
            extra={"collection": str(self.collection), "items": len(entries)},
        )

        cause: Optional[Exception] = None
        try:
            acknowledged = await self.persistence.save_order(self.collection, entries)
        except Exception as e:
            acknowledged = False
            cause = e

        if acknowledged:
            self._acknowledged = payload
            self.rejected_draft = None
            self.state = EditorState.CLEAN
            self._logger.info("Order saved", extra={"collection": str(self.collection)})
            self._drain_queue()
            return

        self._draft = list(snapshot)
        self.rejected_draft = payload
        self.state = EditorState.DIRTY
        self._logger.warning(
            "Order save failed, rolled back",
            extra={"collection": str(self.collection), "error": str(cause or "rejected")},
        )
        self._drain_queue()
        raise PersistenceError(
            f"Could not save order of {self.collection}",
            cause=cause,
            operation="reorder",
            collection=str(self.collection),
        )

    async def retry(self) -> None:
        """Re-apply the draft rejected by the last failed commit and save it.

        Raises:
            InvalidStateError: If there is nothing to retry or a save is running.
            PersistenceError: If the backend rejects the order again.
        """
        if self.rejected_draft is None or self.state is EditorState.SAVING:
            raise InvalidStateError(
                f"Nothing to retry for {self.collection}",
                state=self.state.name,
                operation="retry",
            )
        self._draft = list(self.rejected_draft)
        self.state = EditorState.DIRTY
        await self.commit()

    def discard(self) -> None:
        """Drop the draft and any rejected draft, back to the server order."""
        if self.state is EditorState.SAVING:
            raise InvalidStateError(
                f"Cannot discard {self.collection} while saving",
                state=self.state.name,
                operation="discard",
            )
        if self._autosave is not None:
            self._autosave.cancel()
        self._draft = list(self._acknowledged)
        self.rejected_draft = None
        self.state = EditorState.CLEAN

    def reload(self, items: Sequence[OrderableItem]) -> None:
        """Replace the acknowledged state with freshly loaded server items."""
        if self.state is EditorState.SAVING:
            raise InvalidStateError(
                f"Cannot reload {self.collection} while saving",
                state=self.state.name,
                operation="reload",
            )
        self._acknowledged = _initial_order(items)
        self.discard()

    async def flush(self) -> None:
        """Run a pending autosave immediately."""
        if self._autosave is not None:
            await self._autosave.flush()

    async def _autosave_commit(self) -> None:
        # After a failed save the draft equals the server order until the
        # next move; there is nothing new to send then.
        if self.state is EditorState.DIRTY and tuple(self._draft) != self._acknowledged:
            await self.commit()
