import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from listing_api.errors import InvalidArgument
from listing_api.filters import coerce_filters, compile_filters
from listing_api.geo import bounding_box, candidate_cap, haversine_km
from listing_api.models import (
    Listing,
    ListingFilters,
    ListingStats,
    ListingStatus,
    ListingsResponse,
    NearbyListing,
    NearbyResponse,
)
from listing_api.pagination import paginate
from listing_api.predicates import Eq, Range
from listing_api.repository.gateway import ListingGateway
from listing_api.soft_delete import make_reader

LOG = logging.getLogger("repo")

DEFAULT_RADIUS_KM = 10.0
DEFAULT_NEARBY_LIMIT = 20


def _finite(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidArgument(f"{name} must be a finite number, got {value!r}")
    return float(value)


def _positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgument(f"{name} must be a positive integer, got {value!r}")
    return value


class ListingQueryEngine:
    """
    Stateless read façade over a listing gateway.

    The soft-delete strategy is fixed when the engine is built, from the
    gateway's backend kind and capabilities; every read goes through it.
    """

    def __init__(self, gateway: ListingGateway):
        self.gateway = gateway
        self.reader = make_reader(gateway)
        LOG.debug("Listing engine on %s backend using %s", gateway.kind.value, type(self.reader).__name__)

    def list(self, filters: Union[ListingFilters, Dict[str, Any], None] = None) -> ListingsResponse:
        """Filtered, sorted page of live listings plus pagination metadata."""
        f = coerce_filters(filters)
        query = compile_filters(f)

        rows = self.reader.find_many(query.where, skip=query.skip, take=query.take, order_by=query.order_by)
        total = self.reader.count(query.where)
        LOG.debug("list: %d rows on page %d, %d total", len(rows), f.page, total)

        return ListingsResponse(
            data=[Listing.model_validate(row) for row in rows],
            meta=paginate(total, f.page, f.limit),
        )

    def find_by_id(self, listing_id: str) -> Optional[Listing]:
        """The live listing with this id, or None when absent or soft-deleted."""
        if not listing_id or not listing_id.strip():
            return None
        row = self.reader.find_first([Eq("id", listing_id)])
        return Listing.model_validate(row) if row is not None else None

    def find_by_slug(self, slug: str) -> Optional[Listing]:
        if not slug or not slug.strip():
            return None
        row = self.reader.find_first([Eq("slug", slug)])
        return Listing.model_validate(row) if row is not None else None

    def nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = DEFAULT_RADIUS_KM,
        limit: int = DEFAULT_NEARBY_LIMIT,
    ) -> NearbyResponse:
        """
        Active listings within `radius_km`, nearest first, at most `limit`.

        A bounding box narrows candidates in the store (at most
        min(limit*3, 200) of them), then haversine distance decides:
        candidates in a box corner farther than `radius_km` are dropped, not
        just sorted last. The returned meta.total counts this window only.
        """
        latitude = _finite("latitude", latitude)
        longitude = _finite("longitude", longitude)
        radius_km = _finite("radiusKm", radius_km)
        limit = _positive_int("limit", limit)
        if not -90 <= latitude <= 90:
            raise InvalidArgument(f"latitude must be within [-90, 90], got {latitude}")
        if not -180 <= longitude <= 180:
            raise InvalidArgument(f"longitude must be within [-180, 180], got {longitude}")
        if radius_km <= 0:
            raise InvalidArgument(f"radiusKm must be positive, got {radius_km}")

        box = bounding_box(latitude, longitude, radius_km)
        where = [
            Eq("status", ListingStatus.ACTIVE.value),
            Range("latitude", gte=box.min_lat, lte=box.max_lat),
            Range("longitude", gte=box.min_lng, lte=box.max_lng),
        ]
        candidates = self.reader.find_many(where, take=candidate_cap(limit))

        in_range: List[NearbyListing] = []
        for row in candidates:
            distance = haversine_km(latitude, longitude, float(row["latitude"]), float(row["longitude"]))
            if distance <= radius_km:
                in_range.append(NearbyListing.model_validate({**row, "distance_km": distance}))

        # sorted() is stable: exact ties keep fetch order
        data = sorted(in_range, key=lambda item: item.distance_km)[:limit]
        LOG.debug("nearby: %d candidates, %d in range, %d returned", len(candidates), len(in_range), len(data))

        return NearbyResponse(data=data, meta=paginate(len(data), 1, limit))

    def stats(self) -> ListingStats:
        """Live listing counts, overall and for the main statuses."""
        def by_status(status: ListingStatus) -> int:
            return self.reader.count([Eq("status", status.value)])

        return ListingStats(
            total=self.reader.count([]),
            active=by_status(ListingStatus.ACTIVE),
            pending=by_status(ListingStatus.PENDING_APPROVAL),
            sold=by_status(ListingStatus.SOLD),
            rented=by_status(ListingStatus.RENTED),
        )

    def soft_delete(self, listing_id: str) -> bool:
        """Mark a live listing deleted; the record itself is kept."""
        if not listing_id or not listing_id.strip():
            return False
        return self.reader.mark_deleted([Eq("id", listing_id)], datetime.now(timezone.utc))
