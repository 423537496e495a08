"""Great-circle helpers for proximity search (no geospatial index required)."""
import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0  # rough, ignores longitude shrink toward the poles
MAX_CANDIDATES = 200


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


def bounding_box(latitude: float, longitude: float, radius_km: float) -> BoundingBox:
    """Rectangle that contains the circle of `radius_km` around the point (at city scale)."""
    delta = radius_km / KM_PER_DEGREE
    return BoundingBox(
        min_lat=latitude - delta,
        max_lat=latitude + delta,
        min_lng=longitude - delta,
        max_lng=longitude + delta,
    )


def candidate_cap(limit: int) -> int:
    return min(limit * 3, MAX_CANDIDATES)


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
