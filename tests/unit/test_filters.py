"""Tests for the filter compiler."""

import pytest
from listing_api.errors import InvalidArgument
from listing_api.filters import compile_filters, resolve_sort_field
from listing_api.models import ListingFilters, ListingStatus
from listing_api.predicates import Eq, OrderBy, Range, TextSearch


@pytest.mark.unit
def test_empty_filters_compile_to_defaults():
    query = compile_filters(None)

    assert query.where == ()
    assert query.skip == 0
    assert query.take == 10
    assert query.order_by == OrderBy("created_at", "desc")


@pytest.mark.unit
@pytest.mark.parametrize("field", ["search", "city", "locality", "owner_id", "project_id"])
def test_empty_string_equals_omitted(field):
    """An empty or blank string compiles exactly like a missing filter."""
    omitted = compile_filters({})
    for blank in ("", "   "):
        assert compile_filters({field: blank}) == omitted


@pytest.mark.unit
def test_blank_enum_filters_are_ignored():
    query = compile_filters({"status": "", "listingType": "", "propertyType": " "})
    assert query.where == ()


@pytest.mark.unit
def test_search_compiles_to_one_case_insensitive_or():
    query = compile_filters({"search": "Indira"})

    assert query.where == (TextSearch(fields=("title", "city", "locality"), text="Indira"),)


@pytest.mark.unit
def test_price_bounds_merge_into_one_range():
    query = compile_filters({"minPrice": 100, "maxPrice": 500})

    ranges = [p for p in query.where if isinstance(p, Range)]
    assert ranges == [Range("price", gte=100, lte=500)]
    assert not [p for p in query.where if isinstance(p, Eq) and p.field == "price"]


@pytest.mark.unit
def test_single_price_bound():
    assert compile_filters({"minPrice": 100}).where == (Range("price", gte=100, lte=None),)
    assert compile_filters({"maxPrice": 500}).where == (Range("price", gte=None, lte=500),)


@pytest.mark.unit
def test_inverted_price_bounds_rejected():
    with pytest.raises(InvalidArgument):
        compile_filters({"minPrice": 500, "maxPrice": 100})


@pytest.mark.unit
def test_false_booleans_still_filter():
    query = compile_filters({"isFeatured": False, "isVerified": False})

    assert Eq("is_featured", False) in query.where
    assert Eq("is_verified", False) in query.where


@pytest.mark.unit
def test_zero_bedrooms_still_filters():
    assert compile_filters({"bedrooms": 0}).where == (Eq("bedrooms", 0),)


@pytest.mark.unit
def test_enums_compile_to_plain_values():
    query = compile_filters(ListingFilters(status=ListingStatus.ACTIVE, listing_type="RENT"))

    assert Eq("status", "ACTIVE") in query.where
    assert Eq("listing_type", "RENT") in query.where
    assert all(not isinstance(p.value, ListingStatus) for p in query.where if isinstance(p, Eq))


@pytest.mark.unit
def test_pagination_resolves_skip_and_take():
    query = compile_filters({"page": 3, "limit": 25})

    assert query.skip == 50
    assert query.take == 25


@pytest.mark.unit
@pytest.mark.parametrize("bad", [{"page": 0}, {"limit": 0}, {"limit": -5}, {"status": "GONE"}, {"sortOrder": "up"}])
def test_invalid_values_raise_invalid_argument(bad):
    with pytest.raises(InvalidArgument):
        compile_filters(bad)


@pytest.mark.unit
@pytest.mark.parametrize("sort_by,expected", [
    ("price", "price"),
    ("createdAt", "created_at"),
    ("pricePerSqft", "price_per_sqft"),
    ("boost_expiry", "boost_expiry"),
    (None, "created_at"),
    ("", "created_at"),
])
def test_resolve_sort_field(sort_by, expected):
    assert resolve_sort_field(sort_by) == expected


@pytest.mark.unit
def test_unknown_sort_field_falls_back_to_created_at(caplog):
    query = compile_filters({"sortBy": "passwordHash", "sortOrder": "ASC"})

    assert query.order_by == OrderBy("created_at", "asc")
    assert "Unknown sort field" in caplog.text
