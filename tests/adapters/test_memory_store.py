from __future__ import annotations

import asyncio

import pytest

from conftest import make_images
from listing_engine.adapters.memory import InMemoryCurationStore
from listing_engine.domain.errors import NetworkFailureError
from listing_engine.domain.models import CollectionKind, CollectionRef, ReorderEntry

GALLERY = CollectionRef(CollectionKind.OFFICE_GALLERY)


def test_save_order_updates_ranks():
    store = InMemoryCurationStore()
    store.seed(GALLERY, make_images("A", "B"))

    assert asyncio.run(store.save_order(GALLERY, [ReorderEntry("B", 1), ReorderEntry("A", 2)]))
    assert [item.id for item in store.snapshot(GALLERY)] == ["B", "A"]


def test_set_featured_is_exclusive():
    store = InMemoryCurationStore()
    store.seed(GALLERY, make_images("A", "B", featured="A"))

    asyncio.run(store.set_featured(GALLERY, "B"))

    assert [item.is_featured for item in store.snapshot(GALLERY)] == [False, True]


def test_failures_return_false_or_raise():
    store = InMemoryCurationStore(fail_orders=True, fail_featured=True)
    assert asyncio.run(store.save_order(GALLERY, [])) is False
    assert asyncio.run(store.set_featured(GALLERY, "A")) is False

    store.raise_errors = True
    with pytest.raises(NetworkFailureError):
        asyncio.run(store.set_featured(GALLERY, "A"))
    assert len(store.featured_calls) == 2
