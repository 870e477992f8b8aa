"""
Track endpoints:
- GET /api/tracks
- GET /api/tracks/{track_id}
- POST /api/tracks/upload           (multipart; artist manager)
- PATCH /api/tracks/{track_id}      (artist manager)
- DELETE /api/tracks/{track_id}     (artist manager)
- POST /api/tracks/{track_id}/play
- GET /api/tracks/{track_id}/stream (Range support; exclusive tracks are gated)
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, UploadFile, status
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from starlette.responses import StreamingResponse

from src.music_api.access import AuthContext, subscription_grants_access
from src.music_api.audio_tags import read_audio_tags
from src.music_api.auth import get_auth_context, get_optional_auth_context
from src.music_api.catalog import adjust_track_duration, delete_tracks, remove_stored_files
from src.music_api.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, apply_changes, dto_changes, page_payload, page_window
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import can_manage_artist, get_or_404, require_artist_manager, user_subscription
from src.music_api.models import Album, Artist, Track
from src.music_api.schemas import MessageResponse, Page, PlayResponse, TrackResponse, TrackUpdate
from src.music_api.storage import TRACKS_DIR, delete_media, store_file, stream_file, validate_mp3

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracks", tags=["Tracks"])

DEFAULT_GENRE = "Unknown"


@router.get("", response_model=Page[TrackResponse], summary="List tracks", operation_id="list_tracks")
def list_tracks(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    genre: Optional[str] = Query(None),
    db: Session = Depends(db_session_dep),
) -> Page[TrackResponse]:
    offset, limit = page_window(page, limit)
    stmt = select(Track)
    count_stmt = select(func.count(Track.id))
    if genre:
        stmt = stmt.where(func.lower(Track.genre) == genre.lower())
        count_stmt = count_stmt.where(func.lower(Track.genre) == genre.lower())

    total = db.execute(count_stmt).scalar_one()
    rows = db.execute(stmt.order_by(Track.created_at.desc()).offset(offset).limit(limit)).scalars()
    results = [TrackResponse.model_validate(t) for t in rows]
    return Page[TrackResponse](**page_payload(results, total=total, page=page, limit=limit))


@router.get("/{track_id}", response_model=TrackResponse, summary="Track detail", operation_id="get_track")
def get_track(track_id: str, db: Session = Depends(db_session_dep)) -> TrackResponse:
    return TrackResponse.model_validate(get_or_404(db, Track, track_id, "Track not found"))


@router.post(
    "/upload",
    response_model=TrackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an mp3 track",
    description=(
        "Multipart upload with fields: file (mp3), artistId, and optional title, albumId, trackNumber, "
        "discNumber, genre, isExclusive, allowDownload, duration. The duration read from the file wins "
        "over the form value."
    ),
    operation_id="upload_track",
)
def upload_track(
    file: UploadFile = File(..., description="MP3 file upload (multipart/form-data)"),
    artist_id: str = Form(..., alias="artistId"),
    title: Optional[str] = Form(None),
    album_id: Optional[str] = Form(None, alias="albumId"),
    track_number: int = Form(1, alias="trackNumber", ge=1),
    disc_number: int = Form(1, alias="discNumber", ge=1),
    genre: Optional[str] = Form(None),
    is_exclusive: bool = Form(False, alias="isExclusive"),
    allow_download: bool = Form(False, alias="allowDownload"),
    duration: Optional[int] = Form(None, ge=0),
    ctx: AuthContext = Depends(get_auth_context),
) -> TrackResponse:
    content = file.file.read()
    safe_name, size = validate_mp3(file, content)
    return _create_uploaded_track(
        ctx=ctx,
        content=content,
        safe_name=safe_name,
        size=size,
        content_type=file.content_type or "audio/mpeg",
        artist_id=artist_id,
        title=title,
        album_id=album_id,
        track_number=track_number,
        disc_number=disc_number,
        genre=genre,
        is_exclusive=is_exclusive,
        allow_download=allow_download,
        duration=duration,
    )


def _create_uploaded_track(
    *,
    ctx: AuthContext,
    content: bytes,
    safe_name: str,
    size: int,
    content_type: str,
    artist_id: str,
    title: Optional[str],
    album_id: Optional[str],
    track_number: int,
    disc_number: int,
    genre: Optional[str],
    is_exclusive: bool,
    allow_download: bool,
    duration: Optional[int],
) -> TrackResponse:
    stored_url: Optional[str] = None
    try:
        with get_db_session() as db:
            artist = get_or_404(db, Artist, artist_id, "Artist not found")
            require_artist_manager(db, ctx, artist.id)

            album: Optional[Album] = None
            if album_id:
                album = get_or_404(db, Album, album_id, "Album not found")
                if album.artist_id != artist.id:
                    raise HTTPException(status_code=400, detail="Album does not belong to this artist")

            stored_url, stored_path = store_file(content, safe_name, TRACKS_DIR)
            tags = read_audio_tags(stored_path)

            track_duration = tags.duration if tags and tags.duration > 0 else (duration or 0)
            track = Track(
                title=(title or "").strip() or (tags.title if tags and tags.title else PurePath(safe_name).stem),
                artist_id=artist.id,
                album_id=album.id if album else None,
                track_number=track_number,
                disc_number=disc_number,
                duration=track_duration,
                file_url=stored_url,
                content_type=content_type,
                size_bytes=size,
                cover_art=album.cover_art if album else "/images/default-cover.jpg",
                genre=(genre or "").strip() or (tags.genre if tags and tags.genre else DEFAULT_GENRE),
                is_exclusive=is_exclusive,
                allow_download=allow_download,
                uploaded_by_id=ctx.user_id,
            )
            db.add(track)
            if album is not None:
                album.total_duration = (album.total_duration or 0) + track_duration
            db.flush()

            logger.info("track_uploaded: track_id=%s artist_id=%s size=%s", track.id, artist.id, size)
            return TrackResponse.model_validate(track)
    except Exception:
        if stored_url:
            delete_media(stored_url)
        raise


@router.patch("/{track_id}", response_model=TrackResponse, summary="Update a track", operation_id="update_track")
def update_track(track_id: str, req: TrackUpdate, ctx: AuthContext = Depends(get_auth_context)) -> TrackResponse:
    changes = dto_changes(
        req, required=("title", "track_number", "disc_number", "duration", "cover_art", "is_exclusive", "allow_download")
    )
    with get_db_session() as db:
        track = get_or_404(db, Track, track_id, "Track not found")
        require_artist_manager(db, ctx, track.artist_id)

        old_album = track.album
        new_album = old_album
        if "album_id" in changes:
            new_album = None
            if changes["album_id"] is not None:
                new_album = get_or_404(db, Album, changes["album_id"], "Album not found")
                if new_album.artist_id != track.artist_id:
                    raise HTTPException(status_code=400, detail="Album does not belong to this artist")

        old_duration = track.duration or 0
        apply_changes(track, changes)
        new_duration = track.duration or 0
        adjust_track_duration(track, new_duration - old_duration)

        if old_album is not None:
            old_album.total_duration = max(0, (old_album.total_duration or 0) - old_duration)
        if new_album is not None:
            new_album.total_duration = (new_album.total_duration or 0) + new_duration
        db.flush()
        db.refresh(track)
        return TrackResponse.model_validate(track)


@router.delete("/{track_id}", response_model=MessageResponse, summary="Delete a track", operation_id="delete_track")
def delete_track(track_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        track = get_or_404(db, Track, track_id, "Track not found")
        require_artist_manager(db, ctx, track.artist_id)
        urls = delete_tracks(db, [track])
    remove_stored_files(urls)
    return MessageResponse(message="Track deleted successfully")


@router.post(
    "/{track_id}/play",
    response_model=PlayResponse,
    summary="Record a play",
    description="Increments the play counters of the track, its artist and its album.",
    operation_id="play_track",
)
def play_track(track_id: str) -> PlayResponse:
    with get_db_session() as db:
        track = get_or_404(db, Track, track_id, "Track not found")
        db.execute(update(Track).where(Track.id == track.id).values(plays=Track.plays + 1))
        db.execute(update(Artist).where(Artist.id == track.artist_id).values(total_plays=Artist.total_plays + 1))
        if track.album_id is not None:
            db.execute(update(Album).where(Album.id == track.album_id).values(total_plays=Album.total_plays + 1))
        plays = db.execute(select(Track.plays).where(Track.id == track.id)).scalar_one()
        return PlayResponse(id=track.id, plays=plays)


@router.get(
    "/{track_id}/stream",
    summary="Stream a track",
    description=(
        "Streams the stored audio with HTTP Range support. Exclusive tracks require the caller to manage the "
        "artist or to hold a subscription that currently grants access."
    ),
    operation_id="stream_track",
    responses={
        200: {"content": {"audio/mpeg": {}}, "description": "Full audio stream"},
        206: {"content": {"audio/mpeg": {}}, "description": "Partial content for range requests"},
        403: {"description": "Exclusive track"},
        404: {"description": "Track or audio file not found"},
    },
)
def stream_track(
    track_id: str,
    range_header: Optional[str] = Header(None, alias="Range"),
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
) -> StreamingResponse:
    with get_db_session() as db:
        track = get_or_404(db, Track, track_id, "Track not found")
        if track.is_exclusive and not can_manage_artist(db, ctx, track.artist_id):
            sub = user_subscription(db, ctx.user_id if ctx else None, track.artist_id)
            if not subscription_grants_access(sub):
                raise HTTPException(status_code=403, detail="This track is exclusive to subscribers")
        file_url = track.file_url
        media_type = track.content_type or "audio/mpeg"
        download_name = f"{track.title}.mp3"

    return stream_file(file_url, range_header=range_header, media_type=media_type, download_name=download_name)
