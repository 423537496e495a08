import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from listing_api.errors import InvalidArgument
from listing_api.models import ListingFilters
from listing_api.predicates import CompiledQuery, Eq, OrderBy, Predicate, Range, TextSearch

LOG = logging.getLogger("filters")

DEFAULT_SORT = "created_at"

_ALLOWED_SORT = {
    "created_at", "updated_at", "price", "price_per_sqft", "bedrooms",
    "bathrooms", "area", "views", "clicks", "title", "boost_expiry",
}

SEARCH_FIELDS = ("title", "city", "locality")

# filter attribute -> listing field, compiled to equality when provided
_EQUALITY_FILTERS = (
    "city", "locality", "listing_type", "property_type", "status",
    "bedrooms", "owner_id", "project_id", "is_featured", "is_verified",
)


def coerce_filters(filters: Union[ListingFilters, Dict[str, Any], None]) -> ListingFilters:
    """Accept a ListingFilters or a plain dict (camelCase or snake_case keys)."""
    if filters is None:
        return ListingFilters()
    if isinstance(filters, ListingFilters):
        return filters
    try:
        return ListingFilters.model_validate(filters)
    except ValidationError as e:
        raise InvalidArgument(f"Invalid listing filters: {e}") from e


def resolve_sort_field(sort_by: Optional[str]) -> str:
    """Whitelisted sort column; unknown names fall back to createdAt."""
    if not sort_by:
        return DEFAULT_SORT
    field = to_snake(sort_by)
    if field not in _ALLOWED_SORT:
        LOG.warning("Unknown sort field %r, falling back to %s", sort_by, DEFAULT_SORT)
        return DEFAULT_SORT
    return field


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def compile_predicates(f: ListingFilters) -> List[Predicate]:
    """Predicates for the filters that are present; unset filters add nothing."""
    where: List[Predicate] = []

    if f.search is not None:
        where.append(TextSearch(fields=SEARCH_FIELDS, text=f.search))

    for name in _EQUALITY_FILTERS:
        value = getattr(f, name)
        if value is not None:
            where.append(Eq(name, _plain(value)))

    # one range object so both bounds apply together
    if f.min_price is not None or f.max_price is not None:
        if f.min_price is not None and f.max_price is not None and f.min_price > f.max_price:
            raise InvalidArgument(
                f"minPrice ({f.min_price}) must not exceed maxPrice ({f.max_price})"
            )
        where.append(Range("price", gte=f.min_price, lte=f.max_price))

    return where


def compile_filters(filters: Union[ListingFilters, Dict[str, Any], None]) -> CompiledQuery:
    f = coerce_filters(filters)
    query = CompiledQuery(
        where=tuple(compile_predicates(f)),
        skip=(f.page - 1) * f.limit,
        take=f.limit,
        order_by=OrderBy(resolve_sort_field(f.sort_by), f.sort_order),
    )
    LOG.debug("Compiled listing filters: %s", query)
    return query
