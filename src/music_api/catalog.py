"""Catalog bookkeeping shared by track, album, artist and admin routes."""

from __future__ import annotations

import logging
import uuid
from typing import Dict, Iterable, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.music_api.models import Track
from src.music_api.storage import delete_media

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def delete_tracks(db: Session, tracks: Iterable[Track]) -> List[str]:
    """
    Delete track rows together with their playlist entries.

    Playlist and album total durations are reduced by each track's duration
    (never below zero). Stored files are left on disk: the caller passes the
    returned URLs to `remove_stored_files` once the session has committed.

    Returns:
        Public URLs of the deleted tracks' files.
    """
    urls: List[str] = []
    for track in list(tracks):
        for entry in list(track.playlist_entries):
            playlist = entry.playlist
            playlist.total_duration = max(0, (playlist.total_duration or 0) - (track.duration or 0))
        if track.album is not None:
            track.album.total_duration = max(0, (track.album.total_duration or 0) - (track.duration or 0))
        urls.append(track.file_url)
        db.delete(track)
    db.flush()
    logger.info("tracks_deleted: count=%s", len(urls))
    return urls


# PUBLIC_INTERFACE
def remove_stored_files(urls: Iterable[str]) -> int:
    """Unlink stored media after the rows referencing it are gone."""
    return sum(1 for url in urls if url and delete_media(url))


# PUBLIC_INTERFACE
def adjust_track_duration(track: Track, delta: int) -> None:
    """Shift every playlist holding the track by `delta` seconds (clamped at zero)."""
    if not delta:
        return
    for entry in track.playlist_entries:
        playlist = entry.playlist
        playlist.total_duration = max(0, (playlist.total_duration or 0) + delta)


# PUBLIC_INTERFACE
def album_track_counts(db: Session, album_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
    ids = list(album_ids)
    if not ids:
        return {}
    rows = db.execute(
        select(Track.album_id, func.count(Track.id)).where(Track.album_id.in_(ids)).group_by(Track.album_id)
    ).all()
    return {album_id: count for album_id, count in rows}
