"""In-memory gateway with document-store semantics (absent field != null field)."""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from listing_api.predicates import Eq, IdIn, IsNull, NullOrAbsent, OrderBy, Predicate, Range, TextSearch
from listing_api.repository.gateway import BackendKind

_MISSING = object()


def _matches(record: Dict[str, Any], p: Predicate) -> bool:
    value = record.get(getattr(p, "field", "id"), _MISSING)
    if isinstance(p, Eq):
        return value is not _MISSING and value == p.value
    if isinstance(p, Range):
        if value is _MISSING or value is None:
            return False
        return (p.gte is None or value >= p.gte) and (p.lte is None or value <= p.lte)
    if isinstance(p, TextSearch):
        needle = p.text.lower()
        return any(needle in str(record.get(f) or "").lower() for f in p.fields)
    if isinstance(p, IsNull):
        # null-equality never matches a missing field on this backend
        return value is None
    if isinstance(p, NullOrAbsent):
        return value is _MISSING or value is None
    if isinstance(p, IdIn):
        return record["id"] in p.ids
    raise TypeError(f"Unsupported predicate: {p!r}")


class InMemoryDocumentGateway:
    kind = BackendKind.DOCUMENT

    def __init__(self, records: Iterable[Dict[str, Any]] = (), supports_null_or_absent: bool = True):
        self.records: List[Dict[str, Any]] = [dict(r) for r in records]
        self.supports_null_or_absent = supports_null_or_absent
        self.raw_calls = 0
        # ids the raw path sees but the typed re-fetch does not
        self.hidden_ids: set = set()

    def add(self, *records: Dict[str, Any]) -> None:
        self.records.extend(dict(r) for r in records)

    def _select(self, where, skip=0, take=None, order_by: Optional[OrderBy] = None):
        rows = [r for r in self.records if all(_matches(r, p) for p in where)]
        if order_by is not None:
            rows.sort(key=lambda r: r["id"])
            rows.sort(key=lambda r: r[order_by.field], reverse=order_by.descending)
        rows = rows[skip:]
        if take is not None:
            rows = rows[:take]
        return rows

    def find_many(self, where: Sequence[Predicate], *, skip=0, take=None, order_by=None, include=True):
        if not self.supports_null_or_absent and any(isinstance(p, NullOrAbsent) for p in where):
            raise AssertionError("find path cannot express NullOrAbsent on this gateway")
        rows = [dict(r) for r in self._select(where, skip, take, order_by) if r["id"] not in self.hidden_ids]
        if include:
            for r in rows:
                r.setdefault("owner", None)
                r.setdefault("images", [])
                r.setdefault("amenities", [])
        return rows

    def count(self, where: Sequence[Predicate]) -> int:
        if not self.supports_null_or_absent and any(isinstance(p, NullOrAbsent) for p in where):
            raise AssertionError("count cannot express NullOrAbsent on this gateway")
        return len(self._select(where))

    def find_first(self, where: Sequence[Predicate], *, include=True):
        rows = self.find_many(where, take=1, include=include)
        return rows[0] if rows else None

    def raw_query(self, where: Sequence[Predicate], *, skip=0, take=None, order_by=None):
        self.raw_calls += 1
        return [{"_id": r["id"]} for r in self._select(where, skip, take, order_by)]

    def raw_count(self, where: Sequence[Predicate]) -> int:
        self.raw_calls += 1
        return len(self._select(where))

    def mark_deleted(self, where: Sequence[Predicate], when: datetime) -> bool:
        rows = self._select(where, take=1)
        if not rows:
            return False
        rows[0]["deleted_at"] = when
        return True
