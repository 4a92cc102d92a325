from __future__ import annotations

import asyncio
import time
from unittest.mock import MagicMock

import pytest

from listing_engine.adapters.http import RestCurationStore
from listing_engine.config import ApiConfig
from listing_engine.domain.errors import NetworkFailureError
from listing_engine.domain.models import CollectionKind, CollectionRef, ReorderEntry

BASE = "https://api.example.test/v1"
GALLERY = CollectionRef(CollectionKind.OFFICE_GALLERY)
PACKAGE = CollectionRef(CollectionKind.PACKAGE_IMAGES, owner_id="42")


def ok(body=None) -> MagicMock:
    resp = MagicMock()
    resp.ok = True
    resp.status_code = 200
    resp.json.return_value = {"status": True} if body is None else body
    return resp


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store(session) -> RestCurationStore:
    return RestCurationStore(ApiConfig(base_url=BASE), session=session)


def sent(session: MagicMock):
    call = session.request.call_args
    return call.args[0], call.args[1], call.kwargs["json"]


def test_load_gallery(store, session):
    session.request.return_value = ok(
        {
            "data": [
                {"id": 7, "display_order": 2, "image_url": "b.jpg", "is_featured": True},
                {"id": 5, "display_order": 1, "url": "a.jpg"},
                {"title": "no id"},
            ]
        }
    )

    items = asyncio.run(store.load(GALLERY))

    assert [(i.id, i.display_order, i.is_featured) for i in items] == [
        ("7", 2, True),
        ("5", 1, False),
    ]
    assert items[1].image_url == "a.jpg"
    assert session.request.call_args.args == ("GET", f"{BASE}/office/gallery")


def test_gallery_reorder_payload(store, session):
    session.request.return_value = ok()

    result = asyncio.run(
        store.save_order(GALLERY, [ReorderEntry("7", 1), ReorderEntry("5", 2)])
    )

    assert result is True
    assert sent(session) == (
        "POST",
        f"{BASE}/office/gallery/reorder",
        {"images": [{"id": 7, "display_order": 1}, {"id": 5, "display_order": 2}]},
    )


def test_gallery_featured_uses_put(store, session):
    session.request.return_value = ok()

    assert asyncio.run(store.set_featured(GALLERY, "7")) is True
    assert session.request.call_args.args == ("PUT", f"{BASE}/office/gallery/7/featured")


def test_rejected_status_is_not_acknowledged(store, session):
    session.request.return_value = ok({"status": False, "message": "denied"})
    assert asyncio.run(store.set_featured(GALLERY, "7")) is False


def test_package_featured_travels_with_the_order(store, session):
    session.request.return_value = ok(
        {
            "data": {
                "id": 42,
                "featured_image_id": 11,
                "images": [{"id": 10, "order": 1}, {"id": 11, "order": 2}],
            }
        }
    )
    items = asyncio.run(store.load(PACKAGE))
    assert [i.is_featured for i in items] == [False, True]

    session.request.return_value = ok()
    asyncio.run(store.set_featured(PACKAGE, "10"))

    assert sent(session) == (
        "POST",
        f"{BASE}/office/packages/42/reorder-images",
        {"images": [{"id": 10, "order": 1}, {"id": 11, "order": 2}], "featured_image_id": 10},
    )


def test_package_reorder_keeps_featured_image(store, session):
    session.request.return_value = ok(
        {"data": {"featured_image_id": 11, "images": [{"id": 10, "order": 1}, {"id": 11, "order": 2}]}}
    )
    asyncio.run(store.load(PACKAGE))

    session.request.return_value = ok()
    asyncio.run(store.save_order(PACKAGE, [ReorderEntry("11", 1), ReorderEntry("10", 2)]))

    _, url, body = sent(session)
    assert url.endswith("/office/packages/42/reorder-images")
    assert body == {
        "images": [{"id": 11, "order": 1}, {"id": 10, "order": 2}],
        "featured_image_id": 11,
    }


def test_package_featured_loads_order_first_when_unknown(store, session):
    session.request.side_effect = [
        ok({"data": {"images": [{"id": 3, "order": 1}]}}),
        ok(),
    ]

    asyncio.run(store.set_featured(PACKAGE, "3"))

    methods = [call.args[0] for call in session.request.call_args_list]
    assert methods == ["GET", "POST"]


def test_http_failure_propagates(store, session):
    failed = MagicMock(ok=False, status_code=500)
    session.request.return_value = failed

    with pytest.raises(NetworkFailureError):
        asyncio.run(store.save_order(GALLERY, [ReorderEntry("1", 1)]))


def slow_first_write(log: list):
    """Respond to every call, holding the first write open for a while."""

    def respond(method, url, **kwargs):
        if method != "GET":
            log.append(("start", method, kwargs.get("json")))
            if len([entry for entry in log if entry[0] == "start"]) == 1:
                time.sleep(0.2)
            log.append(("end", method, None))
        return ok()

    return respond


def test_package_featured_waits_for_in_flight_reorder(store, session):
    session.request.return_value = ok(
        {"data": {"images": [{"id": 10, "order": 1}, {"id": 11, "order": 2}]}}
    )
    asyncio.run(store.load(PACKAGE))
    log: list = []
    session.request.side_effect = slow_first_write(log)

    async def scenario() -> None:
        reorder = asyncio.create_task(
            store.save_order(PACKAGE, [ReorderEntry("11", 1), ReorderEntry("10", 2)])
        )
        await asyncio.sleep(0.05)
        await asyncio.gather(reorder, store.set_featured(PACKAGE, "10"))

    asyncio.run(scenario())

    assert [entry[0] for entry in log] == ["start", "end", "start", "end"]
    assert log[2][2] == {
        "images": [{"id": 11, "order": 1}, {"id": 10, "order": 2}],
        "featured_image_id": 10,
    }


def test_package_reorder_waits_for_in_flight_featured(store, session):
    session.request.return_value = ok(
        {"data": {"images": [{"id": 10, "order": 1}, {"id": 11, "order": 2}]}}
    )
    asyncio.run(store.load(PACKAGE))
    log: list = []
    session.request.side_effect = slow_first_write(log)

    async def scenario() -> None:
        featured = asyncio.create_task(store.set_featured(PACKAGE, "11"))
        await asyncio.sleep(0.05)
        await asyncio.gather(
            featured,
            store.save_order(PACKAGE, [ReorderEntry("11", 1), ReorderEntry("10", 2)]),
        )

    asyncio.run(scenario())

    assert log[2][2]["featured_image_id"] == 11


def test_gallery_writes_do_not_overlap(store, session):
    log: list = []
    session.request.side_effect = slow_first_write(log)

    async def scenario() -> None:
        reorder = asyncio.create_task(
            store.save_order(GALLERY, [ReorderEntry("7", 1), ReorderEntry("5", 2)])
        )
        await asyncio.sleep(0.05)
        await asyncio.gather(reorder, store.set_featured(GALLERY, "5"))

    asyncio.run(scenario())

    assert [(entry[0], entry[1]) for entry in log] == [
        ("start", "POST"),
        ("end", "POST"),
        ("start", "PUT"),
        ("end", "PUT"),
    ]
