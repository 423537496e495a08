"""Test helper functions."""

from typing import Any, Dict, Iterable, List

from sqlalchemy import insert, select
from sqlalchemy.engine import Connection

from listing_api.sql import amenities, amenity_on_listing, listing_images, listings, users
from tests.utils.factories import create_owner_data


def insert_listings(conn: Connection, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Insert listing rows (and any missing owners) one by one; keys may differ per row."""
    rows = list(rows)
    for owner_id in {r["owner_id"] for r in rows}:
        exists = conn.execute(select(users.c.id).where(users.c.id == owner_id)).first()
        if exists is None:
            conn.execute(insert(users).values(**create_owner_data(owner_id)))
    for row in rows:
        conn.execute(insert(listings).values(**row))
    conn.commit()
    return rows


def insert_image(conn: Connection, listing_id: str, image_id: str, url: str, order: int, is_primary: bool = False) -> None:
    conn.execute(insert(listing_images).values(
        id=image_id, listing_id=listing_id, url=url, order=order, is_primary=is_primary,
    ))
    conn.commit()


def insert_amenity(conn: Connection, listing_id: str, amenity_id: str, name: str) -> None:
    if conn.execute(select(amenities.c.id).where(amenities.c.id == amenity_id)).first() is None:
        conn.execute(insert(amenities).values(id=amenity_id, name=name, icon=None))
    conn.execute(insert(amenity_on_listing).values(listing_id=listing_id, amenity_id=amenity_id))
    conn.commit()


def ids(items) -> List[str]:
    """Ids of models or dicts, in order."""
    return [i["id"] if isinstance(i, dict) else i.id for i in items]
