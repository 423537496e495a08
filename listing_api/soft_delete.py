"""
Soft-delete normalizer.

A listing is live when `deleted_at` is absent or null. Relational stores only
have the null case; document stores need "absent OR null", because a plain
null-equality filter misses documents that never had the field. Every read
path goes through one of the readers below so list, find and nearby cannot
disagree about what "live" means.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from listing_api.errors import InconsistentSchema
from listing_api.predicates import Eq, IdIn, IsNull, NullOrAbsent, OrderBy, Predicate
from listing_api.repository.gateway import BackendKind, ListingGateway

LOG = logging.getLogger("soft_delete")

DELETED_AT = "deleted_at"


def live_predicate(kind: BackendKind) -> Predicate:
    if kind == BackendKind.DOCUMENT:
        return NullOrAbsent(DELETED_AT)
    return IsNull(DELETED_AT)


def is_live(record: Mapping[str, Any]) -> bool:
    return record.get(DELETED_AT) is None


class PredicateReader:
    """ANDs the live predicate into every gateway call."""

    def __init__(self, gateway: ListingGateway):
        self.gateway = gateway
        self.live = live_predicate(gateway.kind)

    def _where(self, where: Sequence[Predicate]) -> List[Predicate]:
        return [*where, self.live]

    def find_many(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Dict[str, Any]]:
        return self.gateway.find_many(self._where(where), skip=skip, take=take, order_by=order_by)

    def count(self, where: Sequence[Predicate]) -> int:
        return self.gateway.count(self._where(where))

    def find_first(self, where: Sequence[Predicate]) -> Optional[Dict[str, Any]]:
        record = self.gateway.find_first(self._where(where))
        if record is None or not is_live(record):
            return None
        return record

    def mark_deleted(self, where: Sequence[Predicate], when: datetime) -> bool:
        return self.gateway.mark_deleted(self._where(where), when)


class AggregateReader:
    """
    For document gateways whose find path cannot say "absent OR null".

    Matching ids come from the raw aggregation escape hatch, then the records
    are re-fetched through find_many so relations load the usual way.
    """

    def __init__(self, gateway: ListingGateway):
        self.gateway = gateway
        self.live = NullOrAbsent(DELETED_AT)

    def _raw_ids(self, raw: Sequence[Mapping[str, Any]]) -> List[str]:
        ids = []
        for record in raw:
            raw_id = record.get("_id")
            if raw_id is None:
                LOG.error("Raw listing record without _id: %r", record)
                raise InconsistentSchema("raw listing record has no _id")
            ids.append(str(raw_id))
        return ids

    def find_many(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Dict[str, Any]]:
        raw = self.gateway.raw_query([*where, self.live], skip=skip, take=take, order_by=order_by)
        ids = self._raw_ids(raw)
        if not ids:
            return []

        rows = self.gateway.find_many([IdIn(tuple(ids))], take=len(ids))
        by_id = {row["id"]: row for row in rows}
        missing = [i for i in ids if i not in by_id]
        if missing:
            LOG.error("Raw ids not found by typed re-fetch: %s", missing)
            raise InconsistentSchema(f"{len(missing)} raw listing id(s) could not be re-fetched: {missing}")
        # raw order carries the sort
        return [by_id[i] for i in ids]

    def count(self, where: Sequence[Predicate]) -> int:
        return self.gateway.raw_count([*where, self.live])

    def find_first(self, where: Sequence[Predicate]) -> Optional[Dict[str, Any]]:
        rows = self.find_many(where, take=1)
        return rows[0] if rows else None

    def mark_deleted(self, where: Sequence[Predicate], when: datetime) -> bool:
        record = self.find_first(where)
        if record is None:
            return False
        # keep the live predicate: the record may have been deleted since it was read
        return self.gateway.mark_deleted([Eq("id", record["id"]), self.live], when)


LiveReader = Union[PredicateReader, AggregateReader]


def make_reader(gateway: ListingGateway) -> LiveReader:
    if gateway.kind == BackendKind.DOCUMENT and not gateway.supports_null_or_absent:
        return AggregateReader(gateway)
    return PredicateReader(gateway)
