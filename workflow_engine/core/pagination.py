"""
Paging for list endpoints.

Page numbers are 1-based. The page size requested by a client is capped by
``API_MAX_PAGE_SIZE`` so one request cannot pull an entire history table.
"""

from __future__ import annotations

import os
from typing import Any, Iterable, Optional, Tuple

from fastapi import Response
from sqlalchemy.orm import Query


DEFAULT_PAGE_SIZE = 20
DEFAULT_MAX_PAGE_SIZE = 200


def get_max_page_size() -> int:
    try:
        cap = int(os.getenv("API_MAX_PAGE_SIZE", str(DEFAULT_MAX_PAGE_SIZE)))
    except ValueError:
        return DEFAULT_MAX_PAGE_SIZE
    return cap if cap >= 1 else DEFAULT_MAX_PAGE_SIZE


def clamp_page_size(page_size: int) -> int:
    return max(1, min(page_size, get_max_page_size()))


def page_offset(page: int, page_size: int) -> int:
    return (max(page, 1) - 1) * page_size


def paginate(query: Query, page: int, page_size: int) -> Tuple[list, int]:
    """Count the filtered query, then fetch one ordered page of it."""
    total = query.count()
    items = query.offset(page_offset(page, page_size)).limit(page_size).all()
    return items, total


def page_envelope(
    response: Optional[Response],
    items: Iterable[Any],
    *,
    total: int,
    page: int,
    page_size: int,
) -> dict:
    """JSON body for a list endpoint; mirrors the counts into X-* headers."""
    if response is not None:
        response.headers["X-Total-Count"] = str(total)
        response.headers["X-Page"] = str(page)
        response.headers["X-Page-Size"] = str(page_size)
    return {"items": list(items), "total": total, "page": page, "page_size": page_size}
