"""
Persistence gateway contract used by the listing query engine.

Two flavours implement it: `relational.SqlListingGateway` (every column exists,
NULL by default) and `document.MongoListingGateway` (unset fields are absent).
Records come back as plain dicts keyed by the snake_case names of
`listing_api.models.Listing`, with relations already attached when
`include=True`.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

from listing_api.predicates import OrderBy, Predicate


class BackendKind(str, Enum):
    RELATIONAL = "relational"
    DOCUMENT = "document"

    @classmethod
    def from_url(cls, url: str) -> "BackendKind":
        if url.startswith(("mongodb://", "mongodb+srv://")):
            return cls.DOCUMENT
        return cls.RELATIONAL


class ListingGateway(Protocol):
    kind: BackendKind
    # False when find_many/count/find_first cannot express NullOrAbsent
    supports_null_or_absent: bool

    def find_many(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
        include: bool = True,
    ) -> List[Dict[str, Any]]: ...

    def count(self, where: Sequence[Predicate]) -> int: ...

    def find_first(self, where: Sequence[Predicate], *, include: bool = True) -> Optional[Dict[str, Any]]: ...

    def raw_query(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Dict[str, Any]]: ...

    def raw_count(self, where: Sequence[Predicate]) -> int: ...

    def mark_deleted(self, where: Sequence[Predicate], when: datetime) -> bool:
        """
        Set deleted_at on the record matching `where` (an id predicate plus the
        live predicate) in one conditional write; False when none matched.
        """
        ...
