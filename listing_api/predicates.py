"""
Backend-neutral predicate vocabulary.

The filter compiler and the soft-delete normalizer emit these small value
objects; each gateway translates them into its own query language
(SQLAlchemy Core clauses or MongoDB filter documents). Field names are the
snake_case attribute names of `listing_api.models.Listing`.
"""
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Range:
    """Inclusive range; either bound may be None."""
    field: str
    gte: Optional[float] = None
    lte: Optional[float] = None


@dataclass(frozen=True)
class TextSearch:
    """Case-insensitive substring match on any of `fields`."""
    fields: Tuple[str, ...]
    text: str


@dataclass(frozen=True)
class IsNull:
    """Field holds an explicit null. On document stores an absent field does NOT match."""
    field: str


@dataclass(frozen=True)
class NullOrAbsent:
    """Field is missing from the record or holds null."""
    field: str


@dataclass(frozen=True)
class IdIn:
    ids: Tuple[str, ...]


Predicate = Union[Eq, Range, TextSearch, IsNull, NullOrAbsent, IdIn]


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: str = "desc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


@dataclass(frozen=True)
class CompiledQuery:
    where: Tuple[Predicate, ...]
    skip: int
    take: int
    order_by: OrderBy
