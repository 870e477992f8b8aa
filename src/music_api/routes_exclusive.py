"""
Exclusive content endpoints:
- GET /api/exclusive-content/artist/{artist_id}   (optional auth; only items the caller may access)
- GET /api/exclusive-content/{content_id}         (403 when gated; counts a view)
- POST /api/exclusive-content                     (artist manager)
- PATCH /api/exclusive-content/{content_id}       (artist manager)
- DELETE /api/exclusive-content/{content_id}      (artist manager)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext, as_utc, can_access_content
from src.music_api.auth import get_auth_context, get_optional_auth_context
from src.music_api.common import apply_changes, dto_changes
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404, require_artist_manager, viewer_state
from src.music_api.models import Artist, ExclusiveContent, SubscriptionTier
from src.music_api.schemas import (
    ExclusiveContentCreate,
    ExclusiveContentResponse,
    ExclusiveContentUpdate,
    MessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exclusive-content", tags=["Exclusive Content"])

_NOT_FOUND = "Content not found"


def _check_tier(db: Session, tier_id: Optional[uuid.UUID], artist_id: uuid.UUID) -> None:
    if tier_id is None:
        return
    tier = db.get(SubscriptionTier, tier_id)
    if tier is None or tier.artist_id != artist_id:
        raise HTTPException(status_code=400, detail="Minimum tier must be one of this artist's tiers")


def _expired(item: ExclusiveContent, now: datetime) -> bool:
    return item.expires_at is not None and as_utc(item.expires_at) < now


@router.get(
    "/artist/{artist_id}",
    response_model=List[ExclusiveContentResponse],
    summary="Exclusive content of an artist",
    description="Artist managers see every item; other callers see the items the gate lets them access.",
    operation_id="artist_exclusive_content",
)
def artist_content(
    artist_id: str,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: Session = Depends(db_session_dep),
) -> List[ExclusiveContentResponse]:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    is_manager, sub = viewer_state(db, ctx, artist.id)
    now = datetime.now(timezone.utc)

    items = db.execute(
        select(ExclusiveContent)
        .where(ExclusiveContent.artist_id == artist.id)
        .order_by(ExclusiveContent.release_date.desc())
    ).scalars()
    visible = [
        item
        for item in items
        if is_manager
        or (
            not _expired(item, now)
            and can_access_content(
                is_public=item.is_public, minimum_tier_id=item.minimum_tier_id, subscription=sub, now=now
            )
        )
    ]
    return [ExclusiveContentResponse.model_validate(item) for item in visible]


@router.get("/{content_id}", response_model=ExclusiveContentResponse, summary="Exclusive content item", operation_id="get_exclusive_content")
def get_content(
    content_id: str,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
) -> ExclusiveContentResponse:
    with get_db_session() as db:
        item = get_or_404(db, ExclusiveContent, content_id, _NOT_FOUND)
        is_manager, sub = viewer_state(db, ctx, item.artist_id)
        if not is_manager:
            now = datetime.now(timezone.utc)
            if _expired(item, now):
                raise HTTPException(status_code=404, detail=_NOT_FOUND)
            allowed = can_access_content(
                is_public=item.is_public, minimum_tier_id=item.minimum_tier_id, subscription=sub, now=now
            )
            if not allowed:
                raise HTTPException(status_code=403, detail="Subscription required to access this content")

        item.view_count = (item.view_count or 0) + 1
        db.flush()
        return ExclusiveContentResponse.model_validate(item)


@router.post(
    "",
    response_model=ExclusiveContentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create exclusive content",
    operation_id="create_exclusive_content",
)
def create_content(req: ExclusiveContentCreate, ctx: AuthContext = Depends(get_auth_context)) -> ExclusiveContentResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, req.artist_id, "Artist not found")
        require_artist_manager(db, ctx, artist.id)
        _check_tier(db, req.minimum_tier_id, artist.id)

        data = req.model_dump(exclude={"artist_id", "release_date"})
        item = ExclusiveContent(artist_id=artist.id, **data)
        if req.release_date is not None:
            item.release_date = req.release_date
        db.add(item)
        db.flush()
        logger.info("exclusive_content_created: content_id=%s artist_id=%s", item.id, artist.id)
        return ExclusiveContentResponse.model_validate(item)


@router.patch(
    "/{content_id}",
    response_model=ExclusiveContentResponse,
    summary="Update exclusive content",
    operation_id="update_exclusive_content",
)
def update_content(
    content_id: str,
    req: ExclusiveContentUpdate,
    ctx: AuthContext = Depends(get_auth_context),
) -> ExclusiveContentResponse:
    changes = dto_changes(
        req, required=("title", "content_type", "content_url", "release_date", "is_public", "tags")
    )
    with get_db_session() as db:
        item = get_or_404(db, ExclusiveContent, content_id, _NOT_FOUND)
        require_artist_manager(db, ctx, item.artist_id)
        if "minimum_tier_id" in changes:
            _check_tier(db, changes["minimum_tier_id"], item.artist_id)
        apply_changes(item, changes)
        db.flush()
        return ExclusiveContentResponse.model_validate(item)


@router.delete(
    "/{content_id}",
    response_model=MessageResponse,
    summary="Delete exclusive content",
    operation_id="delete_exclusive_content",
)
def delete_content(content_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        item = get_or_404(db, ExclusiveContent, content_id, _NOT_FOUND)
        require_artist_manager(db, ctx, item.artist_id)
        db.delete(item)
        logger.info("exclusive_content_deleted: content_id=%s", content_id)
    return MessageResponse(message="Content deleted successfully")
