from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Text, Numeric, Float, Boolean, DateTime, ForeignKey,
)
from sqlalchemy.sql import select

metadata = MetaData()

# ---------- Tables ----------
users = Table(
    "users", metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String),
    Column("email", String),
    Column("phone", String),
    Column("avatar_url", String),
)

projects = Table(
    "projects", metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String),
    Column("slug", String),
    Column("city", String),
)

listings = Table(
    "listings", metadata,
    Column("id", String(36), primary_key=True),
    Column("title", String, nullable=False),
    Column("slug", String, unique=True),
    Column("description", Text),

    Column("price", Numeric(14, 2, asdecimal=False), nullable=False),
    Column("price_per_sqft", Numeric(14, 2, asdecimal=False)),
    Column("listing_type", String(16), nullable=False),
    Column("property_type", String(32), nullable=False),
    Column("status", String(32), nullable=False, default="DRAFT"),
    Column("condition", String(32)),
    Column("furnishing", String(32)),
    Column("facing", String(32)),

    Column("bedrooms", Integer),
    Column("bathrooms", Integer),
    Column("balconies", Integer),
    Column("floor", Integer),
    Column("total_floors", Integer),
    Column("area", Float),
    Column("carpet_area", Float),
    Column("built_up_area", Float),

    Column("city", String, nullable=False),
    Column("locality", String),
    Column("state", String),
    Column("pincode", String(12)),
    Column("latitude", Float, nullable=False),
    Column("longitude", Float, nullable=False),

    Column("is_verified", Boolean, nullable=False, default=False),
    Column("is_featured", Boolean, nullable=False, default=False),
    Column("boost_expiry", DateTime(timezone=True)),
    Column("expiry_date", DateTime(timezone=True)),
    Column("views", Integer, nullable=False, default=0),
    Column("clicks", Integer, nullable=False, default=0),

    Column("owner_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("project_id", String(36), ForeignKey("projects.id")),

    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Column("deleted_at", DateTime(timezone=True)),
)

listing_images = Table(
    "listing_images", metadata,
    Column("id", String(36), primary_key=True),
    Column("listing_id", String(36), ForeignKey("listings.id"), nullable=False),
    Column("url", String, nullable=False),
    Column("is_primary", Boolean, nullable=False, default=False),
    Column("order", Integer, nullable=False, default=0),
)

amenities = Table(
    "amenities", metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String, nullable=False),
    Column("icon", String),
)

amenity_on_listing = Table(
    "amenity_on_listing", metadata,
    Column("listing_id", String(36), ForeignKey("listings.id"), primary_key=True),
    Column("amenity_id", String(36), ForeignKey("amenities.id"), primary_key=True),
)

# ---------- Public selectors ----------

def listing_select():
    """Listing rows only; relations are loaded in follow-up queries keyed by id."""
    return select(listings)


def owners_select(ids):
    return select(users).where(users.c.id.in_(ids))


def projects_select(ids):
    return select(projects).where(projects.c.id.in_(ids))


def images_select(listing_ids):
    return (
        select(listing_images)
        .where(listing_images.c.listing_id.in_(listing_ids))
        .order_by(listing_images.c.listing_id, listing_images.c.order.asc())
    )


def amenities_select(listing_ids):
    """Amenities flattened through the join table."""
    return (
        select(amenity_on_listing.c.listing_id, amenities.c.id, amenities.c.name, amenities.c.icon)
        .select_from(amenity_on_listing.join(amenities, amenities.c.id == amenity_on_listing.c.amenity_id))
        .where(amenity_on_listing.c.listing_id.in_(listing_ids))
        .order_by(amenities.c.name)
    )
