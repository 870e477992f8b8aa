"""
Artist endpoints:
- GET /api/artists
- GET /api/artists/featured
- GET /api/artists/{artist_id}
- GET /api/artists/{artist_id}/tracks
- GET /api/artists/{artist_id}/albums
- GET /api/artists/{artist_id}/tiers
- GET /api/artists/{artist_id}/dashboard  (admin or artist member)
- POST /api/artists                (admin; schedules Last.fm enrichment)
- POST /api/artists/apply          (any user; creates an artist profile they manage)
- PATCH /api/artists/{artist_id}   (admin or artist member)
- DELETE /api/artists/{artist_id}  (admin)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext
from src.music_api.auth import get_auth_context, require_admin
from src.music_api.catalog import album_track_counts, delete_tracks, remove_stored_files
from src.music_api.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, apply_changes, dto_changes, page_payload, page_window
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lastfm import enrich_artist
from src.music_api.lookups import get_or_404, require_artist_manager
from src.music_api.models import (
    Album,
    Artist,
    ArtistEvent,
    ArtistMember,
    ExclusiveContent,
    MemberRole,
    SubscriptionTier,
    TierStatus,
    Track,
    User,
    utcnow,
)
from src.music_api.schemas import (
    AlbumResponse,
    ArtistApplication,
    ArtistCreate,
    ArtistDashboardResponse,
    ArtistDetailResponse,
    ArtistResponse,
    ArtistUpdate,
    MessageResponse,
    Page,
    TierResponse,
    TrackResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artists", tags=["Artists"])

FEATURED_LIMIT = 10
LATEST_TRACKS = 10


def _albums_with_counts(db: Session, albums: List[Album]) -> List[AlbumResponse]:
    counts = album_track_counts(db, [a.id for a in albums])
    return [AlbumResponse.model_validate(a).model_copy(update={"track_count": counts.get(a.id, 0)}) for a in albums]


@router.get("", response_model=Page[ArtistResponse], summary="List artists", operation_id="list_artists")
def list_artists(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(db_session_dep),
) -> Page[ArtistResponse]:
    offset, limit = page_window(page, limit)
    total = db.execute(select(func.count(Artist.id))).scalar_one()
    rows = db.execute(select(Artist).order_by(Artist.name).offset(offset).limit(limit)).scalars().all()
    results = [ArtistResponse.model_validate(a) for a in rows]
    return Page[ArtistResponse](**page_payload(results, total=total, page=page, limit=limit))


@router.get(
    "/featured",
    response_model=List[ArtistResponse],
    summary="Featured artists",
    description="Up to 10 featured artists, most monthly listeners first.",
    operation_id="featured_artists",
)
def featured_artists(db: Session = Depends(db_session_dep)) -> List[ArtistResponse]:
    rows = db.execute(
        select(Artist)
        .where(Artist.featured.is_(True))
        .order_by(Artist.monthly_listeners.desc(), Artist.name)
        .limit(FEATURED_LIMIT)
    ).scalars()
    return [ArtistResponse.model_validate(a) for a in rows]


@router.get("/{artist_id}", response_model=ArtistDetailResponse, summary="Artist detail", operation_id="get_artist")
def get_artist(artist_id: str, db: Session = Depends(db_session_dep)) -> ArtistDetailResponse:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    tracks = db.execute(
        select(Track).where(Track.artist_id == artist.id).order_by(Track.created_at.desc()).limit(LATEST_TRACKS)
    ).scalars()
    albums = db.execute(
        select(Album).where(Album.artist_id == artist.id).order_by(Album.release_date.desc())
    ).scalars().all()
    return ArtistDetailResponse.model_validate(artist).model_copy(
        update={
            "latest_tracks": [TrackResponse.model_validate(t) for t in tracks],
            "albums": _albums_with_counts(db, albums),
        }
    )


@router.get(
    "/{artist_id}/tracks",
    response_model=Page[TrackResponse],
    summary="Tracks of an artist",
    operation_id="artist_tracks",
)
def artist_tracks(
    artist_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(db_session_dep),
) -> Page[TrackResponse]:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    offset, limit = page_window(page, limit)
    total = db.execute(select(func.count(Track.id)).where(Track.artist_id == artist.id)).scalar_one()
    rows = db.execute(
        select(Track)
        .where(Track.artist_id == artist.id)
        .order_by(Track.created_at.desc())
        .offset(offset)
        .limit(limit)
    ).scalars()
    results = [TrackResponse.model_validate(t) for t in rows]
    return Page[TrackResponse](**page_payload(results, total=total, page=page, limit=limit))


@router.get(
    "/{artist_id}/albums",
    response_model=List[AlbumResponse],
    summary="Albums of an artist",
    operation_id="artist_albums",
)
def artist_albums(artist_id: str, db: Session = Depends(db_session_dep)) -> List[AlbumResponse]:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    albums = db.execute(
        select(Album).where(Album.artist_id == artist.id).order_by(Album.release_date.desc())
    ).scalars().all()
    return _albums_with_counts(db, albums)


@router.get(
    "/{artist_id}/tiers",
    response_model=List[TierResponse],
    summary="Active subscription tiers of an artist",
    operation_id="artist_tiers",
)
def artist_tiers(artist_id: str, db: Session = Depends(db_session_dep)) -> List[TierResponse]:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    tiers = db.execute(
        select(SubscriptionTier)
        .where(SubscriptionTier.artist_id == artist.id, SubscriptionTier.status == TierStatus.ACTIVE)
        .order_by(SubscriptionTier.order)
    ).scalars()
    return [TierResponse.model_validate(t) for t in tiers]


@router.get(
    "/{artist_id}/dashboard",
    response_model=ArtistDashboardResponse,
    summary="Artist dashboard",
    description="Admin or artist member. Exclusive catalog figures, tiers, upcoming events and audience counts.",
    operation_id="artist_dashboard",
)
def artist_dashboard(
    artist_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(db_session_dep),
) -> ArtistDashboardResponse:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    require_artist_manager(db, ctx, artist.id)

    track_count, plays, last_upload = db.execute(
        select(func.count(Track.id), func.coalesce(func.sum(Track.plays), 0), func.max(Track.created_at)).where(
            Track.artist_id == artist.id, Track.is_exclusive.is_(True)
        )
    ).one()

    def _count(model, *criteria) -> int:
        return db.execute(select(func.count(model.id)).where(model.artist_id == artist.id, *criteria)).scalar_one()

    return ArtistDashboardResponse(
        artist_id=artist.id,
        exclusive_track_count=track_count,
        exclusive_track_plays=plays,
        last_exclusive_upload=last_upload,
        exclusive_content_count=_count(ExclusiveContent),
        upcoming_event_count=_count(ArtistEvent, ArtistEvent.date >= datetime.now(timezone.utc)),
        active_tier_count=_count(SubscriptionTier, SubscriptionTier.status == TierStatus.ACTIVE),
        subscriber_count=artist.subscriber_count,
        follower_count=artist.follower_count,
    )


@router.post(
    "",
    response_model=ArtistResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an artist",
    description="Admin only. Bio and genres left empty are filled from Last.fm in the background.",
    operation_id="create_artist",
)
def create_artist(
    req: ArtistCreate,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(require_admin),
) -> ArtistResponse:
    name = req.name.strip()
    with get_db_session() as db:
        if db.execute(select(Artist.id).where(func.lower(Artist.name) == name.lower())).first():
            raise HTTPException(status_code=400, detail="Artist with this name already exists")

        artist = Artist(
            name=name,
            bio=req.bio,
            genres=list(req.genres),
            social_links=dict(req.social_links),
            cover_art=req.cover_art,
            featured=req.featured,
        )
        db.add(artist)
        db.flush()
        result = ArtistResponse.model_validate(artist)

    logger.info("artist_created: artist_id=%s by=%s", result.id, ctx.user_id)
    if not (result.bio and result.genres):
        background_tasks.add_task(enrich_artist, result.id)
    return result


@router.post(
    "/apply",
    response_model=ArtistResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply for an artist profile",
    description=(
        "Creates an unverified artist profile managed by the caller and flags the caller as an artist. "
        "Users already linked to an artist are rejected."
    ),
    operation_id="apply_for_artist",
)
def apply_for_artist(
    req: ArtistApplication,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(get_auth_context),
) -> ArtistResponse:
    name = req.artist_name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Artist name is required")

    with get_db_session() as db:
        if db.execute(select(ArtistMember.id).where(ArtistMember.user_id == ctx.user_id)).first():
            raise HTTPException(status_code=400, detail="You are already linked to an artist profile")
        if db.execute(select(Artist.id).where(func.lower(Artist.name) == name.lower())).first():
            raise HTTPException(status_code=400, detail="Artist with this name already exists")

        artist = Artist(name=name, bio=req.bio, genres=[g.strip() for g in req.genres if g.strip()])
        db.add(artist)
        db.flush()
        db.add(
            ArtistMember(artist_id=artist.id, user_id=ctx.user_id, role=MemberRole.MANAGEMENT, added_by=ctx.username)
        )
        get_or_404(db, User, ctx.user_id, "User not found").is_artist = True
        db.flush()
        result = ArtistResponse.model_validate(artist)

    logger.info("artist_application: artist_id=%s user_id=%s", result.id, ctx.user_id)
    if not (result.bio and result.genres):
        background_tasks.add_task(enrich_artist, result.id)
    return result


@router.patch("/{artist_id}", response_model=ArtistResponse, summary="Update an artist", operation_id="update_artist")
def update_artist(artist_id: str, req: ArtistUpdate, ctx: AuthContext = Depends(get_auth_context)) -> ArtistResponse:
    changes = dto_changes(req, required=("name", "genres", "social_links", "featured", "accepts_subscriptions"))

    with get_db_session() as db:
        artist = get_or_404(db, Artist, artist_id, "Artist not found")
        require_artist_manager(db, ctx, artist.id)

        if "name" in changes:
            changes["name"] = changes["name"].strip()
            clash = db.execute(
                select(Artist.id).where(and_(func.lower(Artist.name) == changes["name"].lower(), Artist.id != artist.id))
            ).first()
            if clash:
                raise HTTPException(status_code=400, detail="Artist with this name already exists")

        if "verified_by" in changes and not ctx.is_admin:
            raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")

        apply_changes(artist, changes)
        if changes.get("verified_by"):
            artist.verification_date = utcnow()
        db.flush()
        return ArtistResponse.model_validate(artist)


@router.delete(
    "/{artist_id}",
    response_model=MessageResponse,
    summary="Delete an artist",
    description="Admin only. Removes the artist with its albums, tracks, tiers, subscriptions, content and events.",
    operation_id="delete_artist",
)
def delete_artist(artist_id: str, ctx: AuthContext = Depends(require_admin)) -> MessageResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, artist_id, "Artist not found")
        urls = delete_tracks(db, list(artist.tracks))
        db.expire(artist)
        db.delete(artist)
        logger.info("artist_deleted: artist_id=%s by=%s", artist.id, ctx.user_id)
    remove_stored_files(urls)
    return MessageResponse(message="Artist deleted successfully")
