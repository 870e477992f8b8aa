"""
Artist event endpoints:
- GET /api/artist-events/artist/{artist_id}?upcoming=true
- GET /api/artist-events/{event_id}
- POST /api/artist-events                  (artist manager)
- PATCH /api/artist-events/{event_id}      (artist manager)
- DELETE /api/artist-events/{event_id}     (artist manager)

Events are gated like exclusive content, but are public unless marked otherwise.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext, as_utc, can_access_content
from src.music_api.auth import get_auth_context, get_optional_auth_context
from src.music_api.common import apply_changes, dto_changes
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404, require_artist_manager, viewer_state
from src.music_api.models import Artist, ArtistEvent, SubscriptionTier
from src.music_api.schemas import ArtistEventCreate, ArtistEventResponse, ArtistEventUpdate, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artist-events", tags=["Artist Events"])

_NOT_FOUND = "Event not found"


def _check_tier(db: Session, tier_id: Optional[uuid.UUID], artist_id: uuid.UUID) -> None:
    if tier_id is None:
        return
    tier = db.get(SubscriptionTier, tier_id)
    if tier is None or tier.artist_id != artist_id:
        raise HTTPException(status_code=400, detail="Minimum tier must be one of this artist's tiers")


def _check_dates(start: datetime, end: Optional[datetime]) -> None:
    if end is not None and as_utc(end) < as_utc(start):
        raise HTTPException(status_code=400, detail="End date cannot be before the event date")


@router.get(
    "/artist/{artist_id}",
    response_model=List[ArtistEventResponse],
    summary="Events of an artist",
    description="Sorted by date. `upcoming=true` hides past events.",
    operation_id="artist_events",
)
def artist_events(
    artist_id: str,
    upcoming: bool = Query(False),
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: Session = Depends(db_session_dep),
) -> List[ArtistEventResponse]:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    is_manager, sub = viewer_state(db, ctx, artist.id)

    stmt = select(ArtistEvent).where(ArtistEvent.artist_id == artist.id)
    if upcoming:
        stmt = stmt.where(ArtistEvent.date >= datetime.now(timezone.utc))
    events = db.execute(stmt.order_by(ArtistEvent.date)).scalars()
    return [
        ArtistEventResponse.model_validate(e)
        for e in events
        if is_manager
        or can_access_content(is_public=e.is_public, minimum_tier_id=e.minimum_tier_id, subscription=sub)
    ]


@router.get("/{event_id}", response_model=ArtistEventResponse, summary="Event detail", operation_id="get_artist_event")
def get_event(
    event_id: str,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: Session = Depends(db_session_dep),
) -> ArtistEventResponse:
    event = get_or_404(db, ArtistEvent, event_id, _NOT_FOUND)
    is_manager, sub = viewer_state(db, ctx, event.artist_id)
    if not is_manager and not can_access_content(
        is_public=event.is_public, minimum_tier_id=event.minimum_tier_id, subscription=sub
    ):
        raise HTTPException(status_code=403, detail="Subscription required to access this event")
    return ArtistEventResponse.model_validate(event)


@router.post(
    "",
    response_model=ArtistEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an event",
    operation_id="create_artist_event",
)
def create_event(req: ArtistEventCreate, ctx: AuthContext = Depends(get_auth_context)) -> ArtistEventResponse:
    _check_dates(req.date, req.end_date)
    with get_db_session() as db:
        artist = get_or_404(db, Artist, req.artist_id, "Artist not found")
        require_artist_manager(db, ctx, artist.id)
        _check_tier(db, req.minimum_tier_id, artist.id)

        event = ArtistEvent(artist_id=artist.id, **req.model_dump(exclude={"artist_id"}))
        db.add(event)
        db.flush()
        logger.info("artist_event_created: event_id=%s artist_id=%s", event.id, artist.id)
        return ArtistEventResponse.model_validate(event)


@router.patch("/{event_id}", response_model=ArtistEventResponse, summary="Update an event", operation_id="update_artist_event")
def update_event(event_id: str, req: ArtistEventUpdate, ctx: AuthContext = Depends(get_auth_context)) -> ArtistEventResponse:
    changes = dto_changes(req, required=("title", "event_type", "date", "is_virtual", "is_public"))
    with get_db_session() as db:
        event = get_or_404(db, ArtistEvent, event_id, _NOT_FOUND)
        require_artist_manager(db, ctx, event.artist_id)
        if "minimum_tier_id" in changes:
            _check_tier(db, changes["minimum_tier_id"], event.artist_id)
        apply_changes(event, changes)
        _check_dates(event.date, event.end_date)
        db.flush()
        return ArtistEventResponse.model_validate(event)


@router.delete("/{event_id}", response_model=MessageResponse, summary="Delete an event", operation_id="delete_artist_event")
def delete_event(event_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        event = get_or_404(db, ArtistEvent, event_id, _NOT_FOUND)
        require_artist_manager(db, ctx, event.artist_id)
        db.delete(event)
        logger.info("artist_event_deleted: event_id=%s", event_id)
    return MessageResponse(message="Event deleted successfully")
