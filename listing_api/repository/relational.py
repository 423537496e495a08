import logging
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, or_, asc, desc, func, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import OperationalError, TimeoutError as SqlTimeoutError

from listing_api.errors import BackendUnavailable, InvalidArgument
from listing_api.predicates import Eq, IdIn, IsNull, NullOrAbsent, OrderBy, Predicate, Range, TextSearch
from listing_api.repository.gateway import BackendKind
from listing_api.sql import (
    listings,
    listing_select,
    owners_select,
    projects_select,
    images_select,
    amenities_select,
)

LOG = logging.getLogger("repo.sql")


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _column(field: str):
    try:
        return listings.c[field]
    except KeyError:
        raise InvalidArgument(f"Unknown listing field: {field}") from None


def to_condition(p: Predicate):
    """Translate one predicate into a SQLAlchemy Core clause."""
    if isinstance(p, Eq):
        return _column(p.field) == p.value
    if isinstance(p, Range):
        col = _column(p.field)
        bounds = []
        if p.gte is not None:
            bounds.append(col >= p.gte)
        if p.lte is not None:
            bounds.append(col <= p.lte)
        return and_(*bounds)
    if isinstance(p, TextSearch):
        pattern = _like_pattern(p.text)
        return or_(*(_column(f).ilike(pattern, escape="\\") for f in p.fields))
    if isinstance(p, (IsNull, NullOrAbsent)):
        # a column always exists here, absent == NULL
        return _column(p.field).is_(None)
    if isinstance(p, IdIn):
        return listings.c.id.in_(p.ids)
    raise TypeError(f"Unsupported predicate: {p!r}")


@contextmanager
def backend_errors():
    """Connectivity failures and pool/statement timeouts become BackendUnavailable."""
    try:
        yield
    except (OperationalError, SqlTimeoutError) as e:
        reason = getattr(e, "orig", None) or e
        LOG.error("Relational backend unavailable: %s", reason)
        raise BackendUnavailable(f"Relational backend unavailable: {reason}") from e


def _apply_where(stmt, where: Sequence[Predicate]):
    conds = [to_condition(p) for p in where]
    if conds:
        stmt = stmt.where(and_(*conds))
    return stmt


class SqlListingGateway:
    """Listing reads over SQLAlchemy Core; one gateway per Connection."""

    kind = BackendKind.RELATIONAL
    supports_null_or_absent = True

    def __init__(self, conn: Connection):
        self.conn = conn

    def _errors(self):
        return backend_errors()

    def find_many(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
        include: bool = True,
    ) -> List[Dict[str, Any]]:
        stmt = _apply_where(listing_select(), where)
        if order_by is not None:
            col = _column(order_by.field)
            # id breaks ties so pages never overlap
            stmt = stmt.order_by(desc(col) if order_by.descending else asc(col), listings.c.id.asc())
        if skip:
            stmt = stmt.offset(skip)
        if take is not None:
            stmt = stmt.limit(take)

        with self._errors():
            rows = self.conn.execute(stmt).mappings().all()
        records = [dict(r) for r in rows]
        if include and records:
            self._attach_relations(records)
        return records

    def count(self, where: Sequence[Predicate]) -> int:
        stmt = _apply_where(select(func.count()).select_from(listings), where)
        with self._errors():
            return self.conn.execute(stmt).scalar_one()

    def find_first(self, where: Sequence[Predicate], *, include: bool = True) -> Optional[Dict[str, Any]]:
        rows = self.find_many(where, take=1, include=include)
        return rows[0] if rows else None

    def raw_query(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Dict[str, Any]]:
        """Ids only, shaped like a document-store projection (`_id`)."""
        rows = self.find_many(where, skip=skip, take=take, order_by=order_by, include=False)
        return [{"_id": r["id"]} for r in rows]

    def raw_count(self, where: Sequence[Predicate]) -> int:
        return self.count(where)

    def mark_deleted(self, where: Sequence[Predicate], when: datetime) -> bool:
        # one statement: `where` is re-checked on the row being updated, so a
        # concurrent delete that got there first leaves nothing to match
        stmt = _apply_where(update(listings), where).values(deleted_at=when, updated_at=when)
        with self._errors():
            result = self.conn.execute(stmt)
            self.conn.commit()
        if result.rowcount < 1:
            return False
        LOG.info("Soft-deleted listing matching %s", where)
        return True

    # ---------- relations ----------

    def _attach_relations(self, records: List[Dict[str, Any]]) -> None:
        listing_ids = [r["id"] for r in records]
        owner_ids = {r["owner_id"] for r in records if r.get("owner_id")}
        project_ids = {r["project_id"] for r in records if r.get("project_id")}

        with self._errors():
            owners = {o["id"]: dict(o) for o in self.conn.execute(owners_select(owner_ids)).mappings()} if owner_ids else {}
            projects = {p["id"]: dict(p) for p in self.conn.execute(projects_select(project_ids)).mappings()} if project_ids else {}

            images = defaultdict(list)
            for img in self.conn.execute(images_select(listing_ids)).mappings():
                images[img["listing_id"]].append(
                    {"id": img["id"], "url": img["url"], "is_primary": img["is_primary"], "order": img["order"]}
                )

            amenities = defaultdict(list)
            for a in self.conn.execute(amenities_select(listing_ids)).mappings():
                amenities[a["listing_id"]].append({"id": a["id"], "name": a["name"], "icon": a["icon"]})

        for r in records:
            r["owner"] = owners.get(r.get("owner_id"))
            r["project"] = projects.get(r.get("project_id"))
            r["images"] = images.get(r["id"], [])
            r["amenities"] = amenities.get(r["id"], [])
