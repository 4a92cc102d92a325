from __future__ import annotations

import logging

import pytest

from conftest import make_item
from listing_engine.domain.models import GeoPoint, ListingKind, SortKey, SortState
from listing_engine.listing.normalizer import ResponseNormalizer
from listing_engine.listing.sorting import SortEngine, id_sort_key


@pytest.fixture
def engine() -> SortEngine:
    return SortEngine()


def ids(items):
    return [item.id for item in items]


ITEMS = [
    make_item("a", name="Bravo", price=300, duration_days=10, rating=4.0),
    make_item("b", name="alpha", price=None, duration_days=7, rating=None),
    make_item("c", name="Charlie", price=100, duration_days=None, rating=4.0),
    make_item("d", name="Delta", price=None, duration_days=14, rating=5.0),
    make_item("e", name="echo", price=200, duration_days=7, rating=3.0),
]


def test_price_ascending_puts_missing_last_in_input_order(engine):
    result = engine.apply(ITEMS, SortState(SortKey.PRICE_ASC))
    assert ids(result) == ["c", "e", "a", "b", "d"]


def test_price_descending_also_puts_missing_last(engine):
    result = engine.apply(ITEMS, SortState(SortKey.PRICE_DESC))
    assert ids(result) == ["a", "e", "c", "b", "d"]


def test_equal_keys_keep_input_order(engine):
    assert ids(engine.apply(ITEMS, SortState(SortKey.DURATION_ASC))) == ["b", "e", "a", "d", "c"]
    assert ids(engine.apply(ITEMS, SortState(SortKey.RATING_DESC))) == ["d", "a", "c", "e", "b"]


def test_sorting_sorted_input_is_a_noop(engine):
    state = SortState(SortKey.NAME_ASC)
    once = engine.apply(ITEMS, state)
    assert engine.apply(once, state) == once
    assert ids(once) == ["b", "a", "c", "d", "e"]


def test_name_descending(engine):
    assert ids(engine.apply(ITEMS, SortState(SortKey.NAME_DESC))) == ["e", "d", "c", "a", "b"]


def test_input_is_not_modified(engine):
    items = list(ITEMS)
    engine.apply(items, SortState(SortKey.PRICE_DESC))
    assert items == ITEMS


def test_tie_break_by_id_orders_equal_keys_naturally(engine):
    items = [
        make_item("10", rating=4.0),
        make_item("2", rating=4.0),
        make_item("1", rating=5.0),
    ]
    result = engine.apply(items, SortState(SortKey.RATING_DESC, tie_break_by_id=True))
    assert ids(result) == ["1", "2", "10"]


def test_id_sort_key_numeric_first():
    assert sorted(["b", "10", "2", "a"], key=id_sort_key) == ["2", "10", "a", "b"]


def test_distance_sort_with_reference_point(engine):
    ref = GeoPoint(24.0, 39.0)
    items = [
        make_item("far", lat=21.0, lng=39.0),
        make_item("none"),
        make_item("here", lat=24.0, lng=39.0),
    ]
    result = engine.apply(items, SortState(SortKey.DISTANCE_ASC, reference_point=ref))
    assert ids(result) == ["here", "far", "none"]


def test_distance_sort_without_reference_point_falls_back_to_name(engine, caplog):
    with caplog.at_level(logging.WARNING):
        result = engine.apply(ITEMS, SortState(SortKey.DISTANCE_ASC))

    assert result == engine.apply(ITEMS, SortState(SortKey.NAME_ASC))
    assert "Distance sort requested without reference point" in caplog.text


def test_available_keys_depend_on_reference_point():
    assert SortKey.DISTANCE_ASC not in SortEngine.available_keys(None)
    assert SortKey.DISTANCE_ASC in SortEngine.available_keys(GeoPoint(1.0, 2.0))


def test_distance_sort_survives_out_of_range_coordinates(engine):
    page, _ = ResponseNormalizer().normalize(
        [
            {"id": 1, "name": "Valid", "lat": 24, "lng": 39},
            {"id": 2, "name": "Bad latitude", "lat": 95, "lng": 39},
            {"id": 3, "name": "Bad longitude", "lat": 21, "lng": 200},
            {"id": 4, "name": "Nearby", "lat": 24.1, "lng": 39},
        ],
        page_size=10,
        kind=ListingKind.OFFICE,
    )

    result = engine.apply(
        page.items, SortState(SortKey.DISTANCE_ASC, reference_point=GeoPoint(24.0, 39.0))
    )

    assert ids(result) == ["1", "4", "2", "3"]
