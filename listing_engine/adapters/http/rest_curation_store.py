"""REST curation store for office galleries and package image sets.

Endpoints:

- office gallery: ``GET /office/gallery``, ``POST /office/gallery/reorder``
  with ``{"images": [{"id", "display_order"}]}`` and
  ``PUT /office/gallery/{id}/featured``
- package images: ``GET /office/packages/{id}`` and
  ``POST /office/packages/{id}/reorder-images`` with
  ``{"images": [{"id", "order"}], "featured_image_id"}``

Package images have no featured endpoint of their own: the featured image
travels with the reorder payload, so the store remembers the last order it
loaded or saved for each package.
Writes to one collection are serialized so a featured change never
re-sends an order that a concurrent reorder is replacing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Sequence

import requests

from ...config import ApiConfig, get_config
from ...domain.models import CollectionKind, CollectionRef, OrderableItem, ReorderEntry
from ...listing.normalizer import SHAPE_HANDLERS, parse_bool, parse_int
from .session import acknowledged, build_session, send


def wire_id(item_id: str) -> Any:
    """Numeric ids go over the wire as integers."""
    return int(item_id) if item_id.isdigit() else item_id


def _gallery_records(payload: Any) -> Sequence[Any]:
    for handler in SHAPE_HANDLERS:
        if handler.detect(payload):
            return handler.extract(payload).records
    return []


def _package_records(payload: Any) -> tuple[Sequence[Any], Optional[str]]:
    package = payload.get("data", payload) if isinstance(payload, Mapping) else None
    if not isinstance(package, Mapping):
        return [], None
    images = package.get("images")
    featured = package.get("featured_image_id")
    return (
        images if isinstance(images, list) else [],
        None if featured is None else str(featured),
    )


def parse_orderable(raw: Any, position: int) -> Optional[OrderableItem]:
    """Map one image record; records without an id are skipped."""
    if not isinstance(raw, Mapping) or raw.get("id") in (None, ""):
        return None
    rank = parse_int(raw.get("display_order"))
    if rank is None:
        rank = parse_int(raw.get("order"))
    return OrderableItem(
        id=str(raw["id"]),
        display_order=rank if rank is not None else position,
        is_featured=parse_bool(raw.get("is_featured", raw.get("featured", False))),
        image_url=raw.get("image_url") or raw.get("url") or raw.get("path"),
        title=raw.get("title") or raw.get("caption"),
    )


@dataclass
class RestCurationStore:
    """Curation source and persistence over the office REST endpoints.

    Implements CurationSourcePort, OrderPersistencePort and
    FeaturedPersistencePort.

    Attributes:
        config: Endpoint, timeout and auth settings
        session: HTTP session; one is built from config when None
    """

    config: ApiConfig = field(default_factory=lambda: get_config().api)
    session: Optional[requests.Session] = None

    _orders: dict[str, list[ReorderEntry]] = field(default_factory=dict, repr=False)
    _featured: dict[str, Optional[str]] = field(default_factory=dict, repr=False)
    _write_locks: dict[str, asyncio.Lock] = field(default_factory=dict, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if self.session is None:
            self.session = build_session(self.config)

    async def _send(self, method: str, url: str, json: Any = None) -> Any:
        return await asyncio.to_thread(
            send,
            self.session,  # type: ignore[arg-type]
            method,
            url,
            timeout=self.config.timeout_seconds,
            json=json,
        )

    def _write_lock(self, collection: CollectionRef) -> asyncio.Lock:
        key = str(collection)
        if key not in self._write_locks:
            self._write_locks[key] = asyncio.Lock()
        return self._write_locks[key]

    def _remember(self, collection: CollectionRef, items: Sequence[OrderableItem]) -> None:
        key = str(collection)
        self._orders[key] = [ReorderEntry(item.id, item.display_order) for item in items]
        self._featured[key] = next((item.id for item in items if item.is_featured), None)

    # ------------------------------------------------------------------ load

    async def load(self, collection: CollectionRef) -> list[OrderableItem]:
        """Load a collection as the server knows it.

        Raises:
            NetworkFailureError: On transport or HTTP status failures.
        """
        if collection.kind is CollectionKind.OFFICE_GALLERY:
            payload = await self._send("GET", self.config.url(self.config.gallery_path))
            records, featured_id = _gallery_records(payload), None
        else:
            url = self.config.url(self.config.package_path, owner_id=str(collection.owner_id))
            payload = await self._send("GET", url)
            records, featured_id = _package_records(payload)

        items = [
            item
            for position, raw in enumerate(records, start=1)
            if (item := parse_orderable(raw, position)) is not None
        ]
        if featured_id is not None:
            items = [replace(item, is_featured=item.id == featured_id) for item in items]
        self._remember(collection, items)
        self._logger.debug(
            "Collection loaded",
            extra={"collection": str(collection), "items": len(items)},
        )
        return items

    # ------------------------------------------------------------- mutations

    async def save_order(
        self, collection: CollectionRef, entries: Sequence[ReorderEntry]
    ) -> bool:
        """Send the complete order of a collection.

        Raises:
            NetworkFailureError: On transport or HTTP status failures.
        """
        key = str(collection)
        async with self._write_lock(collection):
            if collection.kind is CollectionKind.OFFICE_GALLERY:
                url = self.config.url(self.config.gallery_reorder_path)
                body: dict[str, Any] = {
                    "images": [
                        {"id": wire_id(e.item_id), "display_order": e.display_order}
                        for e in entries
                    ]
                }
            else:
                url = self._package_reorder_url(collection)
                body = self._package_body(entries, self._featured.get(key))

            ok = acknowledged(await self._send("POST", url, json=body))
            if ok:
                self._orders[key] = list(entries)
        self._logger.info(
            "Order sent", extra={"collection": key, "items": len(entries), "acknowledged": ok}
        )
        return ok

    async def set_featured(self, collection: CollectionRef, item_id: str) -> bool:
        """Mark one image as featured.

        Raises:
            NetworkFailureError: On transport or HTTP status failures.
        """
        key = str(collection)
        async with self._write_lock(collection):
            if collection.kind is CollectionKind.OFFICE_GALLERY:
                url = self.config.url(self.config.gallery_featured_path, item_id=item_id)
                ok = acknowledged(await self._send("PUT", url))
            else:
                if key not in self._orders:
                    await self.load(collection)
                body = self._package_body(self._orders[key], item_id)
                ok = acknowledged(
                    await self._send("POST", self._package_reorder_url(collection), json=body)
                )
            if ok:
                self._featured[key] = item_id
        self._logger.info(
            "Featured sent", extra={"collection": key, "item_id": item_id, "acknowledged": ok}
        )
        return ok

    def _package_reorder_url(self, collection: CollectionRef) -> str:
        return self.config.url(
            self.config.package_images_reorder_path, owner_id=str(collection.owner_id)
        )

    @staticmethod
    def _package_body(
        entries: Sequence[ReorderEntry], featured_id: Optional[str]
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "images": [{"id": wire_id(e.item_id), "order": e.display_order} for e in entries]
        }
        if featured_id is not None:
            body["featured_image_id"] = wire_id(featured_id)
        return body
