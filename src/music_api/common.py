"""
Small helpers shared by the route modules: id parsing, paging and applying
partial-update DTOs to ORM rows.
"""

from __future__ import annotations

import math
import uuid
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from fastapi import HTTPException
from pydantic import BaseModel

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


# PUBLIC_INTERFACE
def parse_id(raw: str, detail: str = "Not found") -> uuid.UUID:
    """Parse a path id; malformed ids are reported as 404 like unknown ones."""
    try:
        return uuid.UUID(str(raw))
    except (ValueError, AttributeError, TypeError):
        raise HTTPException(status_code=404, detail=detail)


# PUBLIC_INTERFACE
def page_window(page: int, limit: int) -> Tuple[int, int]:
    """Return (offset, limit) for a 1-based page number."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return (page - 1) * limit, limit


# PUBLIC_INTERFACE
def total_pages(total: int, limit: int) -> int:
    if total <= 0 or limit <= 0:
        return 0
    return math.ceil(total / limit)


# PUBLIC_INTERFACE
def page_payload(results: list, *, total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "results": results,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages(total, limit),
    }


# PUBLIC_INTERFACE
def dto_changes(dto: BaseModel, *, required: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Return the fields the client actually sent.

    Fields listed in `required` may be omitted but not set to null.
    """
    changes = dto.model_dump(exclude_unset=True)
    for name in required:
        if name in changes and changes[name] is None:
            raise HTTPException(status_code=400, detail=f"{name} cannot be null")
    return changes


# PUBLIC_INTERFACE
def apply_changes(row: Any, changes: Mapping[str, Any], *, rename: Optional[Mapping[str, str]] = None) -> None:
    """Copy DTO changes onto an ORM row (`rename` maps DTO names to column attributes)."""
    rename = rename or {}
    for name, value in changes.items():
        setattr(row, rename.get(name, name), value)
