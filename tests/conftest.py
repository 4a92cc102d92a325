"""Shared fixtures and builders for the listing engine tests."""

from __future__ import annotations

from typing import Any

import pytest

from listing_engine.config import reset_config
from listing_engine.container import reset_container
from listing_engine.domain.models import ListingItem, ListingKind, OrderableItem


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    for name in ("LST_CURATION_AUTOSAVE_DELAY_SECONDS", "LST_GEO_PLACE", "LST_API_AUTH_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    reset_container()
    yield
    reset_config()
    reset_container()


def make_item(item_id: str, **fields: Any) -> ListingItem:
    fields.setdefault("kind", ListingKind.PACKAGE)
    fields.setdefault("name", f"Item {item_id}")
    return ListingItem(id=item_id, **fields)


def make_images(*ids: str, featured: str | None = None) -> list[OrderableItem]:
    return [
        OrderableItem(id=item_id, display_order=rank, is_featured=item_id == featured)
        for rank, item_id in enumerate(ids, start=1)
    ]
