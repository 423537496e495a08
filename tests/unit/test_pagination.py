"""Tests for pagination metadata."""

import math
import pytest
from listing_api.errors import InvalidArgument
from listing_api.pagination import paginate


@pytest.mark.unit
def test_paginate_last_page():
    """25 rows, 10 per page, page 3 is the last one."""
    meta = paginate(25, 3, 10)

    assert meta.total == 25
    assert meta.total_pages == 3
    assert meta.has_next is False
    assert meta.has_prev is True


@pytest.mark.unit
def test_paginate_first_page():
    meta = paginate(12, 1, 10)

    assert meta.total_pages == 2
    assert meta.has_next is True
    assert meta.has_prev is False


@pytest.mark.unit
@pytest.mark.parametrize("page", [1, 2, 7])
def test_paginate_empty_result(page):
    """No rows: zero pages, never a next page, previous page depends on the request only."""
    meta = paginate(0, page, 10)

    assert meta.total_pages == 0
    assert meta.has_next is False
    assert meta.has_prev is (page > 1)


@pytest.mark.unit
@pytest.mark.parametrize("total,page,limit", [
    (1, 1, 1), (10, 1, 10), (11, 2, 10), (99, 4, 25), (100, 5, 20), (7, 9, 3),
])
def test_paginate_invariants(total, page, limit):
    meta = paginate(total, page, limit)

    assert meta.total_pages == math.ceil(total / limit)
    assert meta.has_next == (page < meta.total_pages)
    assert meta.has_prev == (page > 1)


@pytest.mark.unit
def test_paginate_serializes_camel_case():
    payload = paginate(25, 3, 10).model_dump(by_alias=True)

    assert payload == {
        "total": 25, "page": 3, "limit": 10,
        "totalPages": 3, "hasNext": False, "hasPrev": True,
    }


@pytest.mark.unit
@pytest.mark.parametrize("total,page,limit", [(10, 1, 0), (10, 0, 10), (-1, 1, 10)])
def test_paginate_rejects_invalid_input(total, page, limit):
    with pytest.raises(InvalidArgument):
        paginate(total, page, limit)
