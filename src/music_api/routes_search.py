"""
Search endpoints:
- GET /api/search?q=&limit=&external=false
- GET /api/search/tracks?q=&page=&limit=&genre=&sort=
- GET /api/search/albums?...
- GET /api/search/artists?...
- GET /api/search/playlists?...
- GET /api/search/users?...

Matching is a case-insensitive substring test on the entity's name fields.
`sort` is one of plays, date or name (default name).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import Text, cast, func, or_, select
from sqlalchemy.orm import Session

from src.music_api.catalog import album_track_counts
from src.music_api.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, page_payload, page_window
from src.music_api.db import db_session_dep
from src.music_api.lastfm import search_tracks
from src.music_api.models import Album, Artist, Playlist, Track, User
from src.music_api.schemas import (
    AlbumResponse,
    ArtistResponse,
    ExternalTrackResult,
    GlobalSearchResponse,
    Page,
    PlaylistResponse,
    PublicUserResponse,
    SearchCounts,
    SearchResults,
    TrackResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])

SortKey = Literal["plays", "date", "name"]


@dataclass(frozen=True)
class _Target:
    model: Any
    match: Callable[[str], Any]
    sorts: Dict[str, Sequence[Any]]
    genre: Optional[Callable[[str], Any]] = None
    base: Tuple[Any, ...] = ()


def _like(column: Any, text: str) -> Any:
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return func.lower(column).like(f"%{escaped}%", escape="\\")


_TARGETS: Dict[str, _Target] = {
    "tracks": _Target(
        model=Track,
        match=lambda q: _like(Track.title, q),
        sorts={
            "plays": (Track.plays.desc(), Track.title),
            "date": (Track.created_at.desc(),),
            "name": (Track.title,),
        },
        genre=lambda g: _like(Track.genre, g),
    ),
    "albums": _Target(
        model=Album,
        match=lambda q: _like(Album.title, q),
        sorts={
            "plays": (Album.total_plays.desc(), Album.title),
            "date": (Album.release_date.desc(),),
            "name": (Album.title,),
        },
        genre=lambda g: _like(Album.genre, g),
    ),
    "artists": _Target(
        model=Artist,
        match=lambda q: or_(_like(Artist.name, q), _like(cast(Artist.genres, Text), q)),
        sorts={
            "plays": (Artist.total_plays.desc(), Artist.name),
            "date": (Artist.created_at.desc(),),
            "name": (Artist.name,),
        },
        genre=lambda g: _like(cast(Artist.genres, Text), g),
    ),
    "playlists": _Target(
        model=Playlist,
        match=lambda q: or_(_like(Playlist.name, q), _like(Playlist.description, q)),
        sorts={
            "plays": (Playlist.plays.desc(), Playlist.follower_count.desc(), Playlist.name),
            "date": (Playlist.created_at.desc(),),
            "name": (Playlist.name,),
        },
        base=(Playlist.is_public.is_(True), Playlist.is_system.is_(False)),
    ),
    "users": _Target(
        model=User,
        match=lambda q: or_(_like(User.username, q), _like(User.first_name, q), _like(User.last_name, q)),
        sorts={
            "plays": (User.follower_count.desc(), User.username),
            "date": (User.created_at.desc(),),
            "name": (User.username,),
        },
    ),
}


def _query(q: str) -> str:
    text = (q or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Search query is required")
    return text


def _run(
    db: Session,
    kind: str,
    q: str,
    *,
    offset: int,
    limit: int,
    genre: Optional[str] = None,
    sort: str = "name",
) -> Tuple[List[Any], int]:
    target = _TARGETS[kind]
    conditions = [*target.base, target.match(q)]
    if genre and target.genre is not None:
        conditions.append(target.genre(genre))

    total = db.execute(select(func.count()).select_from(target.model).where(*conditions)).scalar_one()
    rows = db.execute(
        select(target.model).where(*conditions).order_by(*target.sorts[sort]).offset(offset).limit(limit)
    ).scalars().all()
    return rows, total


def _albums(db: Session, rows: List[Album]) -> List[AlbumResponse]:
    counts = album_track_counts(db, [a.id for a in rows])
    return [AlbumResponse.model_validate(a).model_copy(update={"track_count": counts.get(a.id, 0)}) for a in rows]


def _playlists(rows: List[Playlist]) -> List[PlaylistResponse]:
    return [PlaylistResponse.model_validate(p).model_copy(update={"track_count": len(p.entries)}) for p in rows]


def _serialize(db: Session, kind: str, rows: List[Any]) -> List[Any]:
    if kind == "tracks":
        return [TrackResponse.model_validate(t) for t in rows]
    if kind == "albums":
        return _albums(db, rows)
    if kind == "artists":
        return [ArtistResponse.model_validate(a) for a in rows]
    if kind == "playlists":
        return _playlists(rows)
    return [PublicUserResponse.model_validate(u) for u in rows]


def _paged(db: Session, kind: str, q: str, page: int, limit: int, genre: Optional[str], sort: str) -> Dict[str, Any]:
    text = _query(q)
    offset, limit = page_window(page, limit)
    rows, total = _run(db, kind, text, offset=offset, limit=limit, genre=genre, sort=sort)
    return page_payload(_serialize(db, kind, rows), total=total, page=page, limit=limit)


@router.get(
    "",
    response_model=GlobalSearchResponse,
    summary="Search every entity type",
    description="Runs each entity search with the shared limit. `external=true` adds Last.fm track matches.",
    operation_id="global_search",
)
def global_search(
    q: str = Query("", description="Search text."),
    limit: int = Query(5, ge=1, le=MAX_PAGE_SIZE),
    external: bool = Query(False),
    db: Session = Depends(db_session_dep),
) -> GlobalSearchResponse:
    text = _query(q)
    results: Dict[str, Any] = {}
    counts: Dict[str, int] = {}
    for kind in _TARGETS:
        rows, total = _run(db, kind, text, offset=0, limit=limit)
        results[kind] = _serialize(db, kind, rows)
        counts[kind] = total

    if external:
        matches = search_tracks(text, limit) or []
        results["external"] = [ExternalTrackResult(**m) for m in matches]

    logger.info("search: q=%r total=%s external=%s", text, sum(counts.values()), external)
    return GlobalSearchResponse(
        query=text,
        results=SearchResults(**results),
        counts=SearchCounts(**counts, total=sum(counts.values())),
    )


@router.get("/tracks", response_model=Page[TrackResponse], summary="Search tracks", operation_id="search_tracks")
def search_tracks_route(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    genre: Optional[str] = Query(None),
    sort: SortKey = Query("name"),
    db: Session = Depends(db_session_dep),
) -> Page[TrackResponse]:
    return Page[TrackResponse](**_paged(db, "tracks", q, page, limit, genre, sort))


@router.get("/albums", response_model=Page[AlbumResponse], summary="Search albums", operation_id="search_albums")
def search_albums(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    genre: Optional[str] = Query(None),
    sort: SortKey = Query("name"),
    db: Session = Depends(db_session_dep),
) -> Page[AlbumResponse]:
    return Page[AlbumResponse](**_paged(db, "albums", q, page, limit, genre, sort))


@router.get(
    "/artists",
    response_model=Page[ArtistResponse],
    summary="Search artists",
    description="Matches the artist name or any of its genres.",
    operation_id="search_artists",
)
def search_artists(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    genre: Optional[str] = Query(None),
    sort: SortKey = Query("name"),
    db: Session = Depends(db_session_dep),
) -> Page[ArtistResponse]:
    return Page[ArtistResponse](**_paged(db, "artists", q, page, limit, genre, sort))


@router.get(
    "/playlists",
    response_model=Page[PlaylistResponse],
    summary="Search public playlists",
    operation_id="search_playlists",
)
def search_playlists(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: SortKey = Query("name"),
    db: Session = Depends(db_session_dep),
) -> Page[PlaylistResponse]:
    return Page[PlaylistResponse](**_paged(db, "playlists", q, page, limit, None, sort))


@router.get("/users", response_model=Page[PublicUserResponse], summary="Search users", operation_id="search_users")
def search_users(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: SortKey = Query("name"),
    db: Session = Depends(db_session_dep),
) -> Page[PublicUserResponse]:
    return Page[PublicUserResponse](**_paged(db, "users", q, page, limit, None, sort))
