from enum import Enum
from typing import Optional, List, Literal
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListingType(str, Enum):
    SALE = "SALE"
    RENT = "RENT"
    LEASE = "LEASE"


class PropertyType(str, Enum):
    APARTMENT = "APARTMENT"
    INDEPENDENT_HOUSE = "INDEPENDENT_HOUSE"
    VILLA = "VILLA"
    STUDIO_APARTMENT = "STUDIO_APARTMENT"
    PENTHOUSE = "PENTHOUSE"
    BUILDER_FLOOR = "BUILDER_FLOOR"
    OFFICE_SPACE = "OFFICE_SPACE"
    SHOP = "SHOP"
    SHOWROOM = "SHOWROOM"
    WAREHOUSE = "WAREHOUSE"
    INDUSTRIAL_BUILDING = "INDUSTRIAL_BUILDING"
    CO_WORKING = "CO_WORKING"
    RESIDENTIAL_PLOT = "RESIDENTIAL_PLOT"
    COMMERCIAL_PLOT = "COMMERCIAL_PLOT"
    AGRICULTURAL_LAND = "AGRICULTURAL_LAND"
    PG = "PG"
    HOSTEL = "HOSTEL"


class ListingStatus(str, Enum):
    """DRAFT -> PENDING_APPROVAL -> ACTIVE -> {SOLD, RENTED, EXPIRED, REJECTED, BLOCKED, ARCHIVED}."""
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    UNDER_REVIEW = "UNDER_REVIEW"
    SOLD = "SOLD"
    RENTED = "RENTED"
    EXPIRED = "EXPIRED"
    REJECTED = "REJECTED"
    BLOCKED = "BLOCKED"
    ARCHIVED = "ARCHIVED"


# ---------- Relations ----------

class Owner(CamelModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class Project(CamelModel):
    id: str
    name: Optional[str] = None
    slug: Optional[str] = None
    city: Optional[str] = None


class ListingImage(CamelModel):
    id: str
    url: str
    is_primary: bool = False
    order: int = 0


class Amenity(CamelModel):
    id: str
    name: str
    icon: Optional[str] = None


# ---------- Listing ----------

class Listing(CamelModel):
    id: str = Field(..., description="Opaque listing id")
    title: str
    slug: Optional[str] = None
    description: Optional[str] = None

    price: float
    price_per_sqft: Optional[float] = None
    listing_type: ListingType
    property_type: PropertyType
    status: ListingStatus = ListingStatus.DRAFT
    condition: Optional[str] = None
    furnishing: Optional[str] = None
    facing: Optional[str] = None

    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    balconies: Optional[int] = None
    floor: Optional[int] = None
    total_floors: Optional[int] = None
    area: Optional[float] = None
    carpet_area: Optional[float] = None
    built_up_area: Optional[float] = None

    city: str
    locality: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    latitude: float
    longitude: float

    is_verified: bool = False
    is_featured: bool = False
    boost_expiry: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    views: int = 0
    clicks: int = 0

    owner_id: str
    project_id: Optional[str] = None
    owner: Optional[Owner] = None
    project: Optional[Project] = None
    images: List[ListingImage] = Field(default_factory=list)
    amenities: List[Amenity] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class NearbyListing(Listing):
    distance_km: float = Field(..., description="Great-circle distance from the query point")


# ---------- Envelopes ----------

class PaginationMeta(CamelModel):
    total: int = Field(..., description="Rows that match the filters")
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ListingsResponse(CamelModel):
    data: List[Listing]
    meta: PaginationMeta


class NearbyResponse(CamelModel):
    data: List[NearbyListing]
    meta: PaginationMeta = Field(
        ...,
        description="meta.total counts the returned window only, not every listing in the radius",
    )


class ListingStats(CamelModel):
    total: int
    active: int
    pending: int
    sold: int
    rented: int


# ---------- Filter request ----------

_OPTIONAL_FIELDS = (
    "search", "city", "locality", "listing_type", "property_type", "status",
    "owner_id", "project_id", "sort_by",
)


class ListingFilters(CamelModel):
    search: Optional[str] = Field(None, description="Substring of title, city or locality")
    city: Optional[str] = None
    locality: Optional[str] = None
    listing_type: Optional[ListingType] = None
    property_type: Optional[PropertyType] = None
    status: Optional[ListingStatus] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    owner_id: Optional[str] = None
    project_id: Optional[str] = None
    is_featured: Optional[bool] = None
    is_verified: Optional[bool] = None

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    sort_by: Optional[str] = Field(None, description="Defaults to createdAt")
    sort_order: Literal["asc", "desc"] = "desc"

    @field_validator(*_OPTIONAL_FIELDS, mode="before")
    @classmethod
    def blank_is_unset(cls, v):
        # "" from a query string means "no filter", same as omitting it
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("sort_order", mode="before")
    @classmethod
    def normalize_sort_order(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return "desc"
        return v.lower() if isinstance(v, str) else v
