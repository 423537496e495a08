import logging
import re
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from pydantic.alias_generators import to_camel, to_snake
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ExecutionTimeout

from listing_api.errors import BackendUnavailable
from listing_api.predicates import Eq, IdIn, IsNull, NullOrAbsent, OrderBy, Predicate, Range, TextSearch
from listing_api.repository.gateway import BackendKind

LOG = logging.getLogger("repo.mongo")

LISTINGS = "Listing"
USERS = "User"
PROJECTS = "Project"
IMAGES = "ListingImage"
AMENITIES = "Amenity"
AMENITY_LINKS = "AmenityOnListing"

_ID_FIELDS = {"id", "owner_id", "project_id"}


def _doc_field(field: str) -> str:
    return "_id" if field == "id" else to_camel(field)


def _oid(value: Any) -> Any:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _clause(p: Predicate) -> Dict[str, Any]:
    if isinstance(p, Eq):
        value = _oid(p.value) if p.field in _ID_FIELDS else p.value
        return {_doc_field(p.field): value}
    if isinstance(p, Range):
        bounds = {}
        if p.gte is not None:
            bounds["$gte"] = p.gte
        if p.lte is not None:
            bounds["$lte"] = p.lte
        return {_doc_field(p.field): bounds}
    if isinstance(p, TextSearch):
        pattern = re.escape(p.text)
        return {"$or": [{_doc_field(f): {"$regex": pattern, "$options": "i"}} for f in p.fields]}
    if isinstance(p, IsNull):
        # explicit null only; a missing field does not match
        return {_doc_field(p.field): {"$type": "null"}}
    if isinstance(p, NullOrAbsent):
        name = _doc_field(p.field)
        return {"$or": [{name: {"$exists": False}}, {name: None}]}
    if isinstance(p, IdIn):
        return {"_id": {"$in": [_oid(i) for i in p.ids]}}
    raise TypeError(f"Unsupported predicate: {p!r}")


def to_filter(where: Sequence[Predicate]) -> Dict[str, Any]:
    """MongoDB filter document for a predicate list (ANDed)."""
    clauses = [_clause(p) for p in where]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def to_sort(order_by: OrderBy) -> List[tuple]:
    direction = DESCENDING if order_by.descending else ASCENDING
    return [(_doc_field(order_by.field), direction), ("_id", ASCENDING)]


def from_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """camelCase document -> snake_case record; ObjectIds become strings."""
    out = {}
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            value = str(value)
        out["id" if key == "_id" else to_snake(key)] = value
    return out


class MongoListingGateway:
    """
    Listing reads over pymongo.

    With `aggregate_liveness=True` the gateway reports that its find path
    cannot express "absent OR null", so the engine routes live-filtered reads
    through `raw_query` (an aggregation pipeline) and re-fetches by id.
    """

    kind = BackendKind.DOCUMENT

    def __init__(self, db: Database, aggregate_liveness: bool = False):
        self.db = db
        self.supports_null_or_absent = not aggregate_liveness

    @property
    def listings(self):
        return self.db[LISTINGS]

    @contextmanager
    def _errors(self):
        try:
            yield
        except (ConnectionFailure, ExecutionTimeout) as e:
            LOG.error("Document backend read failed: %s", e)
            raise BackendUnavailable(f"Document backend unavailable: {e}") from e

    def find_many(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
        include: bool = True,
    ) -> List[Dict[str, Any]]:
        flt = to_filter(where)
        LOG.debug("find %s", flt)
        with self._errors():
            cursor = self.listings.find(flt)
            if order_by is not None:
                cursor = cursor.sort(to_sort(order_by))
            if skip:
                cursor = cursor.skip(skip)
            if take is not None:
                cursor = cursor.limit(take)
            records = [from_document(d) for d in cursor]
        if include and records:
            self._attach_relations(records)
        return records

    def count(self, where: Sequence[Predicate]) -> int:
        with self._errors():
            return self.listings.count_documents(to_filter(where))

    def find_first(self, where: Sequence[Predicate], *, include: bool = True) -> Optional[Dict[str, Any]]:
        rows = self.find_many(where, take=1, include=include)
        return rows[0] if rows else None

    # ---------- raw escape hatch ----------

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        LOG.debug("aggregate %s", pipeline)
        with self._errors():
            return list(self.listings.aggregate(pipeline))

    def raw_query(
        self,
        where: Sequence[Predicate],
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Dict[str, Any]]:
        pipeline: List[Dict[str, Any]] = [{"$match": to_filter(where)}]
        if order_by is not None:
            pipeline.append({"$sort": dict(to_sort(order_by))})
        if skip:
            pipeline.append({"$skip": skip})
        if take is not None:
            pipeline.append({"$limit": take})
        pipeline.append({"$project": {"_id": 1}})
        return self.aggregate(pipeline)

    def raw_count(self, where: Sequence[Predicate]) -> int:
        result = self.aggregate([{"$match": to_filter(where)}, {"$count": "total"}])
        return result[0]["total"] if result else 0

    def mark_deleted(self, where: Sequence[Predicate], when: datetime) -> bool:
        with self._errors():
            doc = self.listings.find_one_and_update(
                to_filter(where),
                {"$set": {"deletedAt": when, "updatedAt": when}},
                projection={"_id": 1},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            return False
        LOG.info("Soft-deleted listing %s", doc["_id"])
        return True

    # ---------- relations ----------

    def _find(self, collection: str, flt: Dict[str, Any], sort: Optional[List[tuple]] = None) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(flt)
        if sort:
            cursor = cursor.sort(sort)
        return [from_document(d) for d in cursor]

    def _attach_relations(self, records: List[Dict[str, Any]]) -> None:
        listing_oids = [_oid(r["id"]) for r in records]
        owner_oids = list({_oid(r["owner_id"]) for r in records if r.get("owner_id")})
        project_oids = list({_oid(r["project_id"]) for r in records if r.get("project_id")})

        with self._errors():
            owners = {o["id"]: o for o in self._find(USERS, {"_id": {"$in": owner_oids}})} if owner_oids else {}
            projects = {p["id"]: p for p in self._find(PROJECTS, {"_id": {"$in": project_oids}})} if project_oids else {}

            images = defaultdict(list)
            for img in self._find(IMAGES, {"listingId": {"$in": listing_oids}}, sort=[("order", ASCENDING)]):
                images[img.pop("listing_id")].append(img)

            links = self._find(AMENITY_LINKS, {"listingId": {"$in": listing_oids}})
            amenity_oids = list({_oid(link["amenity_id"]) for link in links})
            catalog = {a["id"]: a for a in self._find(AMENITIES, {"_id": {"$in": amenity_oids}})} if amenity_oids else {}

        amenities = defaultdict(list)
        for link in links:
            amenity = catalog.get(link["amenity_id"])
            if amenity is not None:
                amenities[link["listing_id"]].append(amenity)

        for r in records:
            r["owner"] = owners.get(r.get("owner_id"))
            r["project"] = projects.get(r.get("project_id"))
            r["images"] = images.get(r["id"], [])
            r["amenities"] = amenities.get(r["id"], [])
