from __future__ import annotations

import math

import pytest

from listing_engine.domain.errors import ListingEngineError, PersistenceError
from listing_engine.domain.models import (
    CollectionKind,
    CollectionRef,
    GeoPoint,
    ListingItem,
    ListingKind,
    NumericRange,
    Page,
)


def test_geo_point_validates_finite_coordinates():
    with pytest.raises(ValueError):
        GeoPoint(91.0, 0.0)
    with pytest.raises(ValueError):
        GeoPoint(0.0, -181.0)
    assert not GeoPoint(math.nan, 0.0).is_finite


def test_listing_item_location():
    item = ListingItem(id="1", kind=ListingKind.OFFICE, name="x", lat=21.0, lng=39.0)
    assert item.location == GeoPoint(21.0, 39.0)
    assert ListingItem(id="2", kind=ListingKind.OFFICE, name="y", lat=21.0).location is None


def test_negative_rating_is_clamped_to_zero():
    item = ListingItem(id="1", kind=ListingKind.OFFICE, name="x", rating=-2)
    assert item.rating == 0.0


def test_page_build_clamps_current_page():
    page = Page.build(["a"], total_items=25, page_size=10, current_page=9)
    assert page.total_pages == 3
    assert page.current_page == 3
    assert page.has_previous and not page.has_next


def test_numeric_range_contains_missing_as_infinity():
    assert NumericRange().contains(None)
    assert not NumericRange(0, 100).contains(None)
    assert NumericRange(0, 100).contains(100)


def test_collection_ref_str():
    assert str(CollectionRef(CollectionKind.OFFICE_GALLERY)) == "gallery"
    assert str(CollectionRef(CollectionKind.PACKAGE_IMAGES, "7")) == "package_images:7"


def test_error_message_includes_cause():
    error = PersistenceError("Could not save", cause=ValueError("bad"), operation="reorder")

    assert isinstance(error, ListingEngineError)
    assert str(error) == "Could not save: bad"
    assert error.operation == "reorder"


@pytest.mark.parametrize("lat,lng", [(95.0, 39.0), (21.0, 200.0), (-91.0, -181.0)])
def test_out_of_range_coordinates_have_no_location(lat, lng):
    item = ListingItem(id="1", kind=ListingKind.OFFICE, name="x", lat=lat, lng=lng)
    assert item.location is None
