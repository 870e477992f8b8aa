"""
Best-effort Last.fm lookups.

Every call has a bounded timeout and returns None instead of raising, so a
slow or failing Last.fm never fails the request that asked for it.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from src.music_api.config import get_settings
from src.music_api.db import get_db_session
from src.music_api.models import Artist

logger = logging.getLogger(__name__)

MAX_ENRICH_GENRES = 5


@dataclass(frozen=True)
class ArtistInfo:
    name: str
    bio: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    listeners: int = 0
    playcount: int = 0


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _get(params: Dict[str, Any], client: Optional[httpx.Client]) -> Optional[Dict[str, Any]]:
    settings = get_settings()
    if not settings.lastfm_api_key:
        logger.debug("lastfm_skipped: reason=no_api_key method=%s", params.get("method"))
        return None

    query = {**params, "api_key": settings.lastfm_api_key, "format": "json"}
    owns_client = client is None
    http = client or httpx.Client(timeout=settings.lastfm_timeout_seconds)
    try:
        response = http.get(settings.lastfm_api_url, params=query)
    except httpx.HTTPError as exc:
        logger.warning("lastfm_request_failed: method=%s exc=%s", params.get("method"), exc.__class__.__name__)
        return None
    finally:
        if owns_client:
            http.close()

    if response.status_code != 200:
        logger.warning("lastfm_bad_status: method=%s status=%s", params.get("method"), response.status_code)
        return None
    try:
        payload = response.json()
    except ValueError:
        logger.warning("lastfm_bad_payload: method=%s", params.get("method"))
        return None
    if not isinstance(payload, dict) or "error" in payload:
        logger.info("lastfm_error_reply: method=%s", params.get("method"))
        return None
    return payload


# PUBLIC_INTERFACE
def get_artist_info(name: str, *, client: Optional[httpx.Client] = None) -> Optional[ArtistInfo]:
    """Fetch bio, tags and listener stats for an artist name."""
    payload = _get({"method": "artist.getinfo", "artist": name}, client)
    if payload is None:
        return None
    try:
        artist = payload["artist"]
        tags = (artist.get("tags") or {}).get("tag") or []
        if isinstance(tags, dict):
            tags = [tags]
        stats = artist.get("stats") or {}
        bio = ((artist.get("bio") or {}).get("content") or "").strip() or None
        return ArtistInfo(
            name=str(artist.get("name") or name),
            bio=bio,
            tags=[str(t["name"]) for t in tags if isinstance(t, dict) and t.get("name")],
            listeners=_to_int(stats.get("listeners")),
            playcount=_to_int(stats.get("playcount")),
        )
    except (KeyError, TypeError, AttributeError):
        logger.warning("lastfm_bad_payload: method=artist.getinfo artist=%s", name)
        return None


# PUBLIC_INTERFACE
def search_tracks(query: str, limit: int = 10, *, client: Optional[httpx.Client] = None) -> Optional[List[Dict[str, Any]]]:
    """Search Last.fm tracks; returns plain dicts (title, artist, listeners, url)."""
    payload = _get({"method": "track.search", "track": query, "limit": limit}, client)
    if payload is None:
        return None
    try:
        matches = payload["results"]["trackmatches"]["track"]
        if isinstance(matches, dict):
            matches = [matches]
        return [
            {
                "title": m.get("name"),
                "artist": m.get("artist"),
                "listeners": _to_int(m.get("listeners")),
                "url": m.get("url"),
                "source": "lastfm",
            }
            for m in matches
            if isinstance(m, dict)
        ]
    except (KeyError, TypeError):
        logger.warning("lastfm_bad_payload: method=track.search")
        return None


# PUBLIC_INTERFACE
def enrich_artist(artist_id: uuid.UUID, *, client: Optional[httpx.Client] = None) -> None:
    """
    Background task: fill an artist's empty bio and genres from Last.fm.

    Existing values are never overwritten. Failures are logged and dropped.
    """
    try:
        with get_db_session() as db:
            artist = db.execute(select(Artist).where(Artist.id == artist_id)).scalar_one_or_none()
            if artist is None:
                return
            name = artist.name
            if artist.bio and artist.genres:
                return

        info = get_artist_info(name, client=client)
        if info is None:
            return

        with get_db_session() as db:
            artist = db.execute(select(Artist).where(Artist.id == artist_id)).scalar_one_or_none()
            if artist is None:
                return
            if not artist.bio and info.bio:
                artist.bio = info.bio[:1000]
            if not artist.genres and info.tags:
                artist.genres = info.tags[:MAX_ENRICH_GENRES]
        logger.info("artist_enriched: artist_id=%s", artist_id)
    except (SQLAlchemyError, RuntimeError) as exc:
        logger.warning("artist_enrich_failed: artist_id=%s exc=%s", artist_id, exc.__class__.__name__)
