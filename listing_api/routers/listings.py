# listing_api/routers/listings.py
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, HTTPException

from listing_api.deps import get_query_engine
from listing_api.models import Listing, ListingsResponse, ListingStats, NearbyResponse
from listing_api.repository.listings import ListingQueryEngine

router = APIRouter(prefix="/api", tags=["listings"])

@router.get("/listings", response_model=ListingsResponse)
def list_listings(
    # filters (all optional; blank values mean "no filter")
    search: Optional[str]        = Query(None, description="Substring of title, city or locality"),
    city: Optional[str]          = Query(None),
    locality: Optional[str]      = Query(None),
    listing_type: Optional[str]  = Query(None, alias="listingType", description="SALE, RENT or LEASE"),
    property_type: Optional[str] = Query(None, alias="propertyType", description="APARTMENT, VILLA, ..."),
    status: Optional[str]        = Query(None, description="DRAFT, ACTIVE, SOLD, ..."),

    min_price: Optional[float]   = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float]   = Query(None, alias="maxPrice", ge=0),
    bedrooms: Optional[int]      = Query(None, ge=0),
    owner_id: Optional[str]      = Query(None, alias="ownerId"),
    project_id: Optional[str]    = Query(None, alias="projectId"),
    is_featured: Optional[bool]  = Query(None, alias="isFeatured"),
    is_verified: Optional[bool]  = Query(None, alias="isVerified"),

    # paging & sorting
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),

    engine: ListingQueryEngine = Depends(get_query_engine),
):
    """Live listings page; blank or unknown-enum values are handled by the engine's filter coercion."""
    q: Dict[str, Any] = {
        "search": search,
        "city": city,
        "locality": locality,
        "listing_type": listing_type,
        "property_type": property_type,
        "status": status,
        "min_price": min_price,
        "max_price": max_price,
        "bedrooms": bedrooms,
        "owner_id": owner_id,
        "project_id": project_id,
        "is_featured": is_featured,
        "is_verified": is_verified,
        "page": page,
        "limit": limit,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    return engine.list(q)

@router.get("/listings/stats", response_model=ListingStats)
def listing_stats(engine: ListingQueryEngine = Depends(get_query_engine)):
    return engine.stats()

@router.get("/listings/nearby", response_model=NearbyResponse)
def nearby_listings(
    latitude: float,
    longitude: float,
    radius_km: float = Query(10, alias="radiusKm", gt=0),
    limit: int = Query(20, ge=1, le=100),
    engine: ListingQueryEngine = Depends(get_query_engine),
):
    """meta.total is the size of the returned window, not a count of every listing in range."""
    return engine.nearby(latitude, longitude, radius_km, limit)

@router.get("/listings/slug/{slug}", response_model=Listing)
def get_listing_by_slug(slug: str, engine: ListingQueryEngine = Depends(get_query_engine)):
    listing = engine.find_by_slug(slug)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return listing

@router.get("/listings/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, engine: ListingQueryEngine = Depends(get_query_engine)):
    listing = engine.find_by_id(listing_id)
    if listing is None:
        raise HTTPException(status_code=404, detail="Listing not found")
    return listing

@router.delete("/listings/{listing_id}", status_code=204)
def delete_listing(listing_id: str, engine: ListingQueryEngine = Depends(get_query_engine)):
    if not engine.soft_delete(listing_id):
        raise HTTPException(status_code=404, detail="Listing not found")
