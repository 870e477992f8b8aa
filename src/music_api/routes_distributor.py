"""
Distributor ingestion:
- POST /api/distributor/upload   (X-API-Key)

The uploaded file's tags decide where the track lands: the artist and album are
found by name (and created when missing); files without an album tag go into
the artist's "Single" album of type single.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy import func, select

from src.music_api.audio_tags import read_audio_tags
from src.music_api.auth import require_distributor_key
from src.music_api.db import get_db_session
from src.music_api.models import Album, AlbumType, Artist, Track, utcnow
from src.music_api.schemas import DistributorUploadResponse, TrackResponse
from src.music_api.storage import TRACKS_DIR, delete_media, store_file, validate_audio

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/distributor", tags=["Distributor"])

DEFAULT_DISTRIBUTOR = "User Upload"
DEFAULT_GENRE = "Unknown"
SINGLE_TITLE = "Single"


def _release_date(year: Optional[int]) -> datetime:
    if year and 1000 <= year <= 9999:
        return datetime(year, 1, 1, tzinfo=timezone.utc)
    return utcnow()


@router.post(
    "/upload",
    response_model=DistributorUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest a tagged audio file",
    description=(
        "Requires the X-API-Key header. Title and artist are read from the file tags; the duration comes "
        "from the decoded audio stream."
    ),
    operation_id="distributor_upload",
    dependencies=[Depends(require_distributor_key)],
)
def distributor_upload(
    file: UploadFile = File(..., description="Audio file (any audio/* type)"),
    distributor_name: Optional[str] = Form(None, alias="distributorName"),
) -> DistributorUploadResponse:
    content = file.file.read()
    safe_name, size = validate_audio(file, content)
    distributor = (distributor_name or "").strip() or DEFAULT_DISTRIBUTOR

    stored_url, stored_path = store_file(content, safe_name, TRACKS_DIR)
    try:
        tags = read_audio_tags(stored_path)
        if tags is None or not tags.title or not tags.artist:
            raise HTTPException(
                status_code=400,
                detail="Could not extract required metadata (title and artist) from the audio file",
            )

        with get_db_session() as db:
            artist = db.execute(
                select(Artist).where(func.lower(Artist.name) == tags.artist.lower())
            ).scalars().first()
            if artist is None:
                artist = Artist(name=tags.artist, genres=[tags.genre] if tags.genre else [])
                db.add(artist)
                db.flush()
                logger.info("distributor_artist_created: artist_id=%s", artist.id)

            album_title = tags.album or SINGLE_TITLE
            album_type = AlbumType.ALBUM if tags.album else AlbumType.SINGLE
            album_query = select(Album).where(
                Album.artist_id == artist.id, func.lower(Album.title) == album_title.lower()
            )
            if not tags.album:
                album_query = album_query.where(Album.album_type == AlbumType.SINGLE)
            album = db.execute(album_query.order_by(Album.created_at)).scalars().first()
            if album is None:
                album = Album(
                    title=album_title,
                    artist_id=artist.id,
                    release_date=_release_date(tags.year),
                    album_type=album_type,
                    genre=tags.genre,
                    distributor_name=distributor,
                )
                db.add(album)
                db.flush()

            track = Track(
                title=tags.title,
                artist_id=artist.id,
                album_id=album.id,
                track_number=tags.track_number or 1,
                duration=tags.duration,
                file_url=stored_url,
                content_type=(file.content_type or "audio/mpeg").lower(),
                size_bytes=size,
                cover_art=album.cover_art,
                genre=tags.genre or DEFAULT_GENRE,
                distributor_name=distributor,
            )
            db.add(track)
            album.total_duration = (album.total_duration or 0) + tags.duration
            db.flush()

            logger.info(
                "distributor_track_ingested: track_id=%s artist_id=%s album_id=%s distributor=%s",
                track.id,
                artist.id,
                album.id,
                distributor,
            )
            return DistributorUploadResponse(
                message="Track uploaded successfully",
                metadata=tags.as_dict(),
                track=TrackResponse.model_validate(track),
            )
    except Exception:
        delete_media(stored_url)
        raise
