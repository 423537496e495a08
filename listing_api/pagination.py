import math

from listing_api.errors import InvalidArgument
from listing_api.models import PaginationMeta


def paginate(total: int, page: int, limit: int) -> PaginationMeta:
    """
    Page metadata for `total` matching rows.

    `total_pages` is 0 when nothing matched, so `has_next` is False and
    `has_prev` still reflects the requested page.
    """
    if limit < 1:
        raise InvalidArgument(f"limit must be >= 1, got {limit}")
    if page < 1:
        raise InvalidArgument(f"page must be >= 1, got {page}")
    if total < 0:
        raise InvalidArgument(f"total must be >= 0, got {total}")

    total_pages = math.ceil(total / limit)
    return PaginationMeta(
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
