from __future__ import annotations

import math

import pytest

from conftest import make_item
from listing_engine.domain.models import FilterState, NumericRange
from listing_engine.listing.filters import FilterEngine, derive_bounds

ITEMS = [
    make_item("1", name="Umrah Economy", price=1500, duration_days=10, rating=4.0, city="Riyadh"),
    make_item("2", name="Umrah VIP", description="Five star hotel", price=5000, duration_days=14, rating=4.9, city="Jeddah"),
    make_item("3", name="Hajj Package", price=None, duration_days=21, rating=None, city="riyadh"),
    make_item("4", name="Short Umrah", price=800, duration_days=None, rating=3.5, city=None),
]


@pytest.fixture
def engine() -> FilterEngine:
    return FilterEngine()


def ids(items):
    return [item.id for item in items]


def test_empty_state_keeps_everything_in_order(engine):
    assert ids(engine.apply(ITEMS, FilterState())) == ["1", "2", "3", "4"]


def test_search_matches_name_or_description_case_insensitively(engine):
    assert ids(engine.apply(ITEMS, FilterState(search_text="umrah"))) == ["1", "2", "4"]
    assert ids(engine.apply(ITEMS, FilterState(search_text="  FIVE star "))) == ["2"]


def test_missing_price_fails_a_finite_range(engine):
    state = FilterState(price_range=NumericRange(0, 6000))
    assert ids(engine.apply(ITEMS, state)) == ["1", "2", "4"]


def test_missing_price_passes_an_unbounded_range(engine):
    state = FilterState(price_range=NumericRange(minimum=1000))
    assert ids(engine.apply(ITEMS, state)) == ["1", "2", "3"]


def test_rating_floor_treats_missing_as_zero(engine):
    assert ids(engine.apply(ITEMS, FilterState(min_rating=3.5))) == ["1", "2", "4"]
    assert ids(engine.apply(ITEMS, FilterState(min_rating=0))) == ["1", "2", "3", "4"]


def test_city_matches_exactly_ignoring_case(engine):
    assert ids(engine.apply(ITEMS, FilterState(city="RIYADH"))) == ["1", "3"]


def test_filters_combine_as_conjunction(engine):
    f1 = FilterState(search_text="umrah", duration_range=NumericRange(0, 12))
    f2 = FilterState(price_range=NumericRange(1000, 2000), min_rating=3.0)

    sequential = engine.apply(engine.apply(ITEMS, f1), f2)

    assert sequential == engine.apply(ITEMS, f1.intersect(f2))
    assert sequential == engine.apply_all(ITEMS, [f1, f2])
    assert ids(sequential) == ["1"]


def test_intersect_rejects_conflicting_cities():
    with pytest.raises(ValueError):
        FilterState(city="Riyadh").intersect(FilterState(city="Jeddah"))


def test_inverted_range_is_rejected():
    with pytest.raises(ValueError):
        NumericRange(10, 5)


def test_derive_bounds_from_items():
    bounds = derive_bounds(ITEMS)

    assert bounds.price == NumericRange(800, 5000)
    assert bounds.duration == NumericRange(10, 21)
    assert bounds.cities == ("Riyadh", "Jeddah", "riyadh")


def test_derive_bounds_without_values_is_full_domain():
    bounds = derive_bounds([])

    assert bounds.price.minimum == -math.inf
    assert bounds.price.maximum == math.inf
    assert bounds.cities == ()
