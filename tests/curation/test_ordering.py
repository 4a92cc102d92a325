from __future__ import annotations

import asyncio

import pytest

from conftest import make_images
from listing_engine.adapters.memory import InMemoryCurationStore
from listing_engine.curation.ordering import OrderingEditor
from listing_engine.domain.errors import (
    InvalidStateError,
    NetworkFailureError,
    PersistenceError,
    UnknownItemError,
)
from listing_engine.domain.models import (
    CollectionKind,
    CollectionRef,
    EditorState,
    MoveCommand,
    OrderableItem,
)

GALLERY = CollectionRef(CollectionKind.OFFICE_GALLERY)


def orders(editor: OrderingEditor) -> list[int]:
    return [item.display_order for item in editor.items]


class TestMoves:
    @pytest.fixture
    def editor(self) -> OrderingEditor:
        return OrderingEditor(GALLERY, InMemoryCurationStore(), make_images("A", "B", "C", "D"))

    def test_initial_state_is_clean(self, editor):
        assert editor.state is EditorState.CLEAN
        assert editor.order == ("A", "B", "C", "D")

    def test_move_renumbers_and_marks_dirty(self, editor):
        command = editor.move_item("D", 0)

        assert command == MoveCommand("D", 3, 0)
        assert editor.order == ("D", "A", "B", "C")
        assert orders(editor) == [1, 2, 3, 4]
        assert editor.state is EditorState.DIRTY
        # The server order is untouched until a commit succeeds.
        assert [item.id for item in editor.acknowledged] == ["A", "B", "C", "D"]

    def test_target_index_is_clamped(self, editor):
        editor.move_item("A", 99)
        assert editor.order == ("B", "C", "D", "A")
        editor.move_item("A", -5)
        assert editor.order == ("A", "B", "C", "D")

    def test_noop_move_keeps_state(self, editor):
        command = editor.move_item("B", 1)
        assert command is not None and command.is_noop
        assert editor.state is EditorState.CLEAN

    def test_unknown_item_raises(self, editor):
        with pytest.raises(UnknownItemError) as exc_info:
            editor.move_item("Z", 0)
        assert exc_info.value.item_id == "Z"

    def test_apply_checks_source_index(self, editor):
        editor.apply(MoveCommand("C", 2, 0))
        assert editor.order == ("C", "A", "B", "D")
        with pytest.raises(InvalidStateError):
            editor.apply(MoveCommand("C", 2, 3))

    def test_initial_order_follows_display_order(self):
        items = [
            OrderableItem("x", display_order=5),
            OrderableItem("y", display_order=2),
            OrderableItem("z", display_order=2),
        ]
        editor = OrderingEditor(GALLERY, InMemoryCurationStore(), items)
        assert editor.order == ("y", "z", "x")
        assert orders(editor) == [1, 2, 3]


class TestCommit:
    def test_commit_sends_complete_order_and_cleans(self):
        store = InMemoryCurationStore()
        store.seed(GALLERY, make_images("A", "B", "C", "D"))
        editor = OrderingEditor(GALLERY, store, make_images("A", "B", "C", "D"))

        editor.move_item("D", 0)
        asyncio.run(editor.commit())

        sent = store.last_order(GALLERY)
        assert sent is not None
        assert [(e.item_id, e.display_order) for e in sent] == [
            ("D", 1),
            ("A", 2),
            ("B", 3),
            ("C", 4),
        ]
        assert editor.state is EditorState.CLEAN
        assert [item.id for item in editor.acknowledged] == ["D", "A", "B", "C"]
        assert sorted(item.display_order for item in editor.items) == [1, 2, 3, 4]
        assert [item.id for item in store.snapshot(GALLERY)] == ["D", "A", "B", "C"]

    def test_failed_commit_reverts_to_original_order(self):
        store = InMemoryCurationStore(fail_orders=True)
        editor = OrderingEditor(GALLERY, store, make_images("A", "B", "C", "D"))
        before = editor.items

        editor.move_item("D", 0)
        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(editor.commit())

        assert exc_info.value.operation == "reorder"
        assert editor.order == ("A", "B", "C", "D")
        assert editor.items == before
        assert editor.state is EditorState.DIRTY
        assert editor.rejected_draft is not None
        assert [item.id for item in editor.rejected_draft] == ["D", "A", "B", "C"]

    def test_transport_error_is_wrapped_after_rollback(self):
        store = InMemoryCurationStore(fail_orders=True, raise_errors=True)
        editor = OrderingEditor(GALLERY, store, make_images("A", "B", "C"))

        editor.move_item("C", 0)
        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(editor.commit())

        assert isinstance(exc_info.value.cause, NetworkFailureError)
        assert editor.order == ("A", "B", "C")

    def test_commit_requires_dirty_state(self):
        editor = OrderingEditor(GALLERY, InMemoryCurationStore(), make_images("A", "B"))
        with pytest.raises(InvalidStateError):
            asyncio.run(editor.commit())

    def test_retry_resends_rejected_draft(self):
        store = InMemoryCurationStore(fail_orders=True)
        editor = OrderingEditor(GALLERY, store, make_images("A", "B", "C"))
        editor.move_item("C", 0)
        with pytest.raises(PersistenceError):
            asyncio.run(editor.commit())

        store.fail_orders = False
        asyncio.run(editor.retry())

        assert editor.state is EditorState.CLEAN
        assert editor.order == ("C", "A", "B")
        assert editor.rejected_draft is None

    def test_retry_without_failure_raises(self):
        editor = OrderingEditor(GALLERY, InMemoryCurationStore(), make_images("A"))
        with pytest.raises(InvalidStateError):
            asyncio.run(editor.retry())

    def test_discard_returns_to_acknowledged(self):
        editor = OrderingEditor(GALLERY, InMemoryCurationStore(), make_images("A", "B", "C"))
        editor.move_item("C", 0)
        editor.discard()
        assert editor.state is EditorState.CLEAN
        assert editor.order == ("A", "B", "C")

    def test_reload_replaces_server_state(self):
        editor = OrderingEditor(GALLERY, InMemoryCurationStore(), make_images("A", "B"))
        editor.move_item("B", 0)
        editor.reload(make_images("X", "Y", "Z"))
        assert editor.order == ("X", "Y", "Z")
        assert editor.state is EditorState.CLEAN


class TestMovesDuringSave:
    def test_moves_while_saving_are_queued_then_applied(self):
        store = InMemoryCurationStore(latency_seconds=0.01)
        editor = OrderingEditor(GALLERY, store, make_images("A", "B", "C", "D"))

        async def scenario() -> None:
            editor.move_item("D", 0)
            commit = asyncio.create_task(editor.commit())
            await asyncio.sleep(0)
            assert editor.state is EditorState.SAVING
            assert editor.move_item("A", 3) is None
            assert editor.queued_moves == 1
            # Queued moves never leak into the payload in flight.
            assert editor.order == ("D", "A", "B", "C")
            await commit

        asyncio.run(scenario())

        sent = store.last_order(GALLERY)
        assert sent is not None
        assert [e.item_id for e in sent] == ["D", "A", "B", "C"]
        assert editor.order == ("D", "B", "C", "A")
        assert editor.state is EditorState.DIRTY
        assert editor.queued_moves == 0

    def test_queued_moves_replay_on_rolled_back_order(self):
        store = InMemoryCurationStore(fail_orders=True, latency_seconds=0.01)
        editor = OrderingEditor(GALLERY, store, make_images("A", "B", "C"))

        async def scenario() -> None:
            editor.move_item("C", 0)
            commit = asyncio.create_task(editor.commit())
            await asyncio.sleep(0)
            editor.move_item("A", 2)
            with pytest.raises(PersistenceError):
                await commit

        asyncio.run(scenario())

        assert editor.order == ("B", "C", "A")
        assert editor.state is EditorState.DIRTY


class TestAutosave:
    def test_autosave_commits_after_quiet_period(self):
        store = InMemoryCurationStore()
        editor = OrderingEditor(
            GALLERY, store, make_images("A", "B", "C"), autosave_delay_seconds=0.01
        )

        async def scenario() -> None:
            editor.move_item("C", 0)
            editor.move_item("B", 0)
            await asyncio.sleep(0.05)

        asyncio.run(scenario())

        assert len(store.saved_orders) == 1
        assert editor.state is EditorState.CLEAN
        assert editor.order == ("B", "C", "A")

    def test_flush_saves_immediately(self):
        store = InMemoryCurationStore()
        editor = OrderingEditor(
            GALLERY, store, make_images("A", "B"), autosave_delay_seconds=60
        )

        async def scenario() -> None:
            editor.move_item("B", 0)
            await editor.flush()

        asyncio.run(scenario())

        assert len(store.saved_orders) == 1
        assert editor.state is EditorState.CLEAN
