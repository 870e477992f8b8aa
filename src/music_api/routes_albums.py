"""
Album endpoints:
- GET /api/albums
- GET /api/albums/{album_id}
- POST /api/albums               (artist manager)
- PATCH /api/albums/{album_id}   (artist manager)
- DELETE /api/albums/{album_id}  (artist manager; tracks are unlinked, not deleted)
- POST /api/albums/{album_id}/cover   (artist manager; multipart image)
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext
from src.music_api.auth import get_auth_context
from src.music_api.catalog import album_track_counts
from src.music_api.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, apply_changes, dto_changes, page_payload, page_window
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404, require_artist_manager
from src.music_api.models import Album, Artist, Track
from src.music_api.schemas import (
    AlbumCreate,
    AlbumDetailResponse,
    AlbumResponse,
    AlbumUpdate,
    ArtistSummary,
    MessageResponse,
    Page,
    TrackResponse,
)
from src.music_api.storage import COVERS_DIR, delete_media, store_file, validate_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/albums", tags=["Albums"])

DEFAULT_COVER = "/images/default-cover.jpg"
DEFAULT_DISTRIBUTOR = "User Upload"


def _detail(album: Album) -> AlbumDetailResponse:
    tracks = sorted(album.tracks, key=lambda t: (t.disc_number, t.track_number))
    return AlbumDetailResponse.model_validate(album).model_copy(
        update={
            "artist": ArtistSummary.model_validate(album.artist),
            "tracks": [TrackResponse.model_validate(t) for t in tracks],
            "track_count": len(tracks),
        }
    )


@router.get("", response_model=Page[AlbumResponse], summary="List albums", operation_id="list_albums")
def list_albums(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(db_session_dep),
) -> Page[AlbumResponse]:
    offset, limit = page_window(page, limit)
    total = db.execute(select(func.count(Album.id))).scalar_one()
    albums = db.execute(
        select(Album).order_by(Album.release_date.desc(), Album.title).offset(offset).limit(limit)
    ).scalars().all()
    counts = album_track_counts(db, [a.id for a in albums])
    results = [AlbumResponse.model_validate(a).model_copy(update={"track_count": counts.get(a.id, 0)}) for a in albums]
    return Page[AlbumResponse](**page_payload(results, total=total, page=page, limit=limit))


@router.get(
    "/{album_id}",
    response_model=AlbumDetailResponse,
    summary="Album detail",
    description="Album with its artist and tracks sorted by disc then track number.",
    operation_id="get_album",
)
def get_album(album_id: str, db: Session = Depends(db_session_dep)) -> AlbumDetailResponse:
    album = get_or_404(db, Album, album_id, "Album not found")
    return _detail(album)


@router.post(
    "",
    response_model=AlbumDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an album",
    operation_id="create_album",
)
def create_album(req: AlbumCreate, ctx: AuthContext = Depends(get_auth_context)) -> AlbumDetailResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, req.artist_id, "Artist not found")
        require_artist_manager(db, ctx, artist.id)

        album = Album(
            title=req.title.strip(),
            artist_id=artist.id,
            release_date=req.release_date,
            cover_art=req.cover_art or DEFAULT_COVER,
            album_type=req.album_type,
            genre=req.genre,
            description=req.description,
            distributor_name=req.distributor_name or DEFAULT_DISTRIBUTOR,
            is_exclusive=req.is_exclusive,
            label=req.label,
            upc=req.upc,
            copyright=req.copyright,
            language=req.language,
        )
        db.add(album)
        db.flush()
        logger.info("album_created: album_id=%s artist_id=%s", album.id, artist.id)
        return _detail(album)


@router.patch("/{album_id}", response_model=AlbumDetailResponse, summary="Update an album", operation_id="update_album")
def update_album(album_id: str, req: AlbumUpdate, ctx: AuthContext = Depends(get_auth_context)) -> AlbumDetailResponse:
    changes = dto_changes(req, required=("title", "release_date", "cover_art", "album_type", "is_exclusive"))
    with get_db_session() as db:
        album = get_or_404(db, Album, album_id, "Album not found")
        require_artist_manager(db, ctx, album.artist_id)
        apply_changes(album, changes)
        db.flush()
        return _detail(album)


@router.delete("/{album_id}", response_model=MessageResponse, summary="Delete an album", operation_id="delete_album")
def delete_album(album_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        album = get_or_404(db, Album, album_id, "Album not found")
        require_artist_manager(db, ctx, album.artist_id)

        db.execute(update(Track).where(Track.album_id == album.id).values(album_id=None))
        db.expire(album)
        db.delete(album)
        logger.info("album_deleted: album_id=%s by=%s", album.id, ctx.user_id)
    return MessageResponse(message="Album deleted successfully")


@router.post(
    "/{album_id}/cover",
    response_model=AlbumDetailResponse,
    summary="Upload an album cover",
    description="Multipart upload with field `cover` (image/*). The previous uploaded cover file is removed.",
    operation_id="upload_album_cover",
)
def upload_album_cover(
    album_id: str,
    cover: UploadFile = File(..., description="Cover image (multipart/form-data)"),
    ctx: AuthContext = Depends(get_auth_context),
) -> AlbumDetailResponse:
    content = cover.file.read()
    safe_name, _size = validate_image(cover, content)
    stored_url: Optional[str] = None
    try:
        with get_db_session() as db:
            album = get_or_404(db, Album, album_id, "Album not found")
            require_artist_manager(db, ctx, album.artist_id)

            stored_url, _path = store_file(content, safe_name, COVERS_DIR)
            previous = album.cover_art
            album.cover_art = stored_url
            # Tracks keep showing their album's artwork.
            db.execute(
                update(Track).where(Track.album_id == album.id, Track.cover_art == previous).values(cover_art=stored_url)
            )
            db.flush()
            db.expire(album)
            response = _detail(album)
    except Exception:
        if stored_url:
            delete_media(stored_url)
        raise

    if previous and previous != DEFAULT_COVER:
        delete_media(previous)
    return response
