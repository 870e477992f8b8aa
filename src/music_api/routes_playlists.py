"""
Playlist endpoints:
- GET /api/playlists/public
- GET /api/playlists/me
- GET /api/playlists/{playlist_id}
- POST /api/playlists
- PATCH /api/playlists/batch
- PATCH /api/playlists/{playlist_id}
- DELETE /api/playlists/{playlist_id}
- POST /api/playlists/{playlist_id}/tracks
- DELETE /api/playlists/{playlist_id}/tracks/{track_id}
- POST /api/playlists/{playlist_id}/follow       (toggle)
- POST /api/playlists/{playlist_id}/duplicate

Private playlists are visible to their owner and followers only. The owner's
Liked Songs playlist is a system playlist: it cannot be deleted, renamed or
made public.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext
from src.music_api.auth import get_auth_context, get_optional_auth_context
from src.music_api.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, apply_changes, dto_changes, page_payload, page_window, parse_id
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404, liked_playlist
from src.music_api.models import Playlist, PlaylistFolder, PlaylistTrack, Track, User, playlist_followers
from src.music_api.schemas import (
    FollowToggleResponse,
    MessageResponse,
    MyPlaylistsResponse,
    Page,
    PlaylistBatchUpdate,
    PlaylistCreate,
    PlaylistDetailResponse,
    PlaylistDuplicateRequest,
    PlaylistEntryResponse,
    PlaylistResponse,
    PlaylistTrackAdd,
    PlaylistUpdate,
    PublicUserResponse,
    TrackResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/playlists", tags=["Playlists"])

_NOT_FOUND = "Playlist not found"


def _summary(playlist: Playlist) -> PlaylistResponse:
    return PlaylistResponse.model_validate(playlist).model_copy(update={"track_count": len(playlist.entries)})


def _follower_ids(playlist: Playlist) -> set:
    return {u.id for u in playlist.followers}


def _can_view(playlist: Playlist, ctx: Optional[AuthContext]) -> bool:
    if playlist.is_public:
        return True
    if ctx is None:
        return False
    return playlist.owner_id == ctx.user_id or ctx.user_id in _follower_ids(playlist)


def _require_owner(playlist: Playlist, ctx: AuthContext) -> None:
    if playlist.owner_id != ctx.user_id:
        raise HTTPException(status_code=403, detail="Not authorized to modify this playlist")


def _detail(playlist: Playlist, ctx: Optional[AuthContext]) -> PlaylistDetailResponse:
    entries = sorted(playlist.entries, key=lambda e: e.position)
    return PlaylistDetailResponse.model_validate(playlist).model_copy(
        update={
            "owner": PublicUserResponse.model_validate(playlist.owner),
            "tracks": [
                PlaylistEntryResponse(
                    position=e.position,
                    added_at=e.added_at,
                    track=TrackResponse.model_validate(e.track),
                )
                for e in entries
            ],
            "track_count": len(entries),
            "is_following": bool(ctx) and ctx.user_id in _follower_ids(playlist),
        }
    )


def _check_folder(db: Session, folder_id: Optional[uuid.UUID], ctx: AuthContext) -> None:
    if folder_id is None:
        return
    folder = get_or_404(db, PlaylistFolder, folder_id, "Folder not found")
    if folder.owner_id != ctx.user_id:
        raise HTTPException(status_code=403, detail="Not authorized to use this folder")


def _apply_update(db: Session, playlist: Playlist, changes: Dict[str, Any], ctx: AuthContext) -> None:
    if playlist.is_system:
        if "name" in changes and changes["name"] != playlist.name:
            raise HTTPException(status_code=400, detail="System playlists cannot be renamed")
        if changes.get("is_public"):
            raise HTTPException(status_code=400, detail="System playlists cannot be made public")
    if "folder_id" in changes:
        _check_folder(db, changes["folder_id"], ctx)
    apply_changes(playlist, changes)


@router.get(
    "/public",
    response_model=Page[PlaylistResponse],
    summary="Public playlists",
    description="Public playlists, most followed first.",
    operation_id="public_playlists",
)
def public_playlists(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(db_session_dep),
) -> Page[PlaylistResponse]:
    offset, limit = page_window(page, limit)
    visible = (Playlist.is_public.is_(True), Playlist.is_system.is_(False))
    total = db.execute(select(func.count(Playlist.id)).where(*visible)).scalar_one()
    rows = db.execute(
        select(Playlist)
        .where(*visible)
        .order_by(Playlist.follower_count.desc(), Playlist.created_at.desc())
        .offset(offset)
        .limit(limit)
    ).scalars()
    results = [_summary(p) for p in rows]
    return Page[PlaylistResponse](**page_payload(results, total=total, page=page, limit=limit))


@router.get("/me", response_model=MyPlaylistsResponse, summary="My playlists", operation_id="my_playlists")
def my_playlists(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(db_session_dep)) -> MyPlaylistsResponse:
    created = db.execute(
        select(Playlist)
        .where(Playlist.owner_id == ctx.user_id, Playlist.is_system.is_(False))
        .order_by(Playlist.created_at.desc())
    ).scalars()
    followed = db.execute(
        select(Playlist)
        .join(playlist_followers, playlist_followers.c.playlist_id == Playlist.id)
        .where(playlist_followers.c.user_id == ctx.user_id)
        .order_by(Playlist.name)
    ).scalars()
    liked = liked_playlist(db, ctx.user_id)
    return MyPlaylistsResponse(
        created=[_summary(p) for p in created],
        liked=_summary(liked) if liked else None,
        followed=[_summary(p) for p in followed],
    )


@router.get("/{playlist_id}", response_model=PlaylistDetailResponse, summary="Playlist detail", operation_id="get_playlist")
def get_playlist(
    playlist_id: str,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: Session = Depends(db_session_dep),
) -> PlaylistDetailResponse:
    playlist = get_or_404(db, Playlist, playlist_id, _NOT_FOUND)
    if not _can_view(playlist, ctx):
        raise HTTPException(status_code=403, detail="This playlist is private")
    return _detail(playlist, ctx)


@router.post(
    "",
    response_model=PlaylistDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a playlist",
    operation_id="create_playlist",
)
def create_playlist(req: PlaylistCreate, ctx: AuthContext = Depends(get_auth_context)) -> PlaylistDetailResponse:
    with get_db_session() as db:
        _check_folder(db, req.folder_id, ctx)
        playlist = Playlist(
            name=req.name.strip(),
            description=req.description,
            is_public=req.is_public,
            color=req.color,
            folder_id=req.folder_id,
            owner_id=ctx.user_id,
        )
        db.add(playlist)
        db.flush()
        logger.info("playlist_created: playlist_id=%s owner_id=%s", playlist.id, ctx.user_id)
        return _detail(playlist, ctx)


@router.patch(
    "/batch",
    response_model=List[PlaylistResponse],
    summary="Update several playlists",
    description="Applies the same partial update to every listed playlist after one ownership check.",
    operation_id="batch_update_playlists",
)
def batch_update_playlists(req: PlaylistBatchUpdate, ctx: AuthContext = Depends(get_auth_context)) -> List[PlaylistResponse]:
    changes = dto_changes(req.updates, required=("name", "is_public"))
    ids = list(dict.fromkeys(req.playlist_ids))

    with get_db_session() as db:
        playlists = db.execute(select(Playlist).where(Playlist.id.in_(ids))).scalars().all()
        if len(playlists) != len(ids):
            raise HTTPException(status_code=404, detail="One or more playlists not found")
        if any(p.owner_id != ctx.user_id for p in playlists):
            raise HTTPException(status_code=403, detail="Not authorized to modify one or more playlists")

        for playlist in playlists:
            _apply_update(db, playlist, changes, ctx)
        db.flush()
        logger.info("playlists_batch_updated: count=%s owner_id=%s", len(playlists), ctx.user_id)
        return [_summary(p) for p in playlists]


@router.patch(
    "/{playlist_id}",
    response_model=PlaylistDetailResponse,
    summary="Update a playlist",
    operation_id="update_playlist",
)
def update_playlist(
    playlist_id: str,
    req: PlaylistUpdate,
    ctx: AuthContext = Depends(get_auth_context),
) -> PlaylistDetailResponse:
    changes = dto_changes(req, required=("name", "is_public"))
    with get_db_session() as db:
        playlist = get_or_404(db, Playlist, playlist_id, _NOT_FOUND)
        _require_owner(playlist, ctx)
        _apply_update(db, playlist, changes, ctx)
        db.flush()
        return _detail(playlist, ctx)


@router.delete("/{playlist_id}", response_model=MessageResponse, summary="Delete a playlist", operation_id="delete_playlist")
def delete_playlist(playlist_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        playlist = get_or_404(db, Playlist, playlist_id, _NOT_FOUND)
        _require_owner(playlist, ctx)
        if playlist.is_system:
            raise HTTPException(status_code=403, detail="System playlists cannot be deleted")
        db.delete(playlist)
        logger.info("playlist_deleted: playlist_id=%s owner_id=%s", playlist.id, ctx.user_id)
    return MessageResponse(message="Playlist deleted successfully")


@router.post(
    "/{playlist_id}/tracks",
    response_model=PlaylistDetailResponse,
    summary="Add a track",
    description="Appends a track. A track can appear in a playlist only once.",
    operation_id="add_playlist_track",
)
def add_track(playlist_id: str, req: PlaylistTrackAdd, ctx: AuthContext = Depends(get_auth_context)) -> PlaylistDetailResponse:
    with get_db_session() as db:
        playlist = get_or_404(db, Playlist, playlist_id, _NOT_FOUND)
        _require_owner(playlist, ctx)
        track = get_or_404(db, Track, req.track_id, "Track not found")

        if any(e.track_id == track.id for e in playlist.entries):
            raise HTTPException(status_code=400, detail="Track already in playlist")

        next_position = max((e.position for e in playlist.entries), default=-1) + 1
        playlist.entries.append(PlaylistTrack(track_id=track.id, position=next_position))
        playlist.total_duration = (playlist.total_duration or 0) + (track.duration or 0)
        db.flush()
        db.refresh(playlist)
        return _detail(playlist, ctx)


@router.delete(
    "/{playlist_id}/tracks/{track_id}",
    response_model=PlaylistDetailResponse,
    summary="Remove a track",
    operation_id="remove_playlist_track",
)
def remove_track(playlist_id: str, track_id: str, ctx: AuthContext = Depends(get_auth_context)) -> PlaylistDetailResponse:
    with get_db_session() as db:
        playlist = get_or_404(db, Playlist, playlist_id, _NOT_FOUND)
        _require_owner(playlist, ctx)
        tid = parse_id(track_id, "Track not in playlist")

        entry = next((e for e in playlist.entries if e.track_id == tid), None)
        if entry is None:
            raise HTTPException(status_code=404, detail="Track not in playlist")

        duration = entry.track.duration or 0
        playlist.entries.remove(entry)
        for position, remaining in enumerate(sorted(playlist.entries, key=lambda e: e.position)):
            remaining.position = position
        playlist.total_duration = max(0, (playlist.total_duration or 0) - duration)
        db.flush()
        return _detail(playlist, ctx)


@router.post(
    "/{playlist_id}/follow",
    response_model=FollowToggleResponse,
    summary="Follow or unfollow a playlist",
    operation_id="toggle_playlist_follow",
)
def toggle_follow(playlist_id: str, ctx: AuthContext = Depends(get_auth_context)) -> FollowToggleResponse:
    with get_db_session() as db:
        playlist = get_or_404(db, Playlist, playlist_id, _NOT_FOUND)
        if playlist.owner_id == ctx.user_id:
            raise HTTPException(status_code=400, detail="Cannot follow your own playlist")

        user = get_or_404(db, User, ctx.user_id, "User not found")
        if user in playlist.followers:
            playlist.followers.remove(user)
            playlist.follower_count = max(0, (playlist.follower_count or 0) - 1)
            following = False
        else:
            if not playlist.is_public:
                raise HTTPException(status_code=403, detail="This playlist is private")
            playlist.followers.append(user)
            playlist.follower_count = (playlist.follower_count or 0) + 1
            following = True
        db.flush()
        logger.info("playlist_follow_toggled: playlist_id=%s user_id=%s following=%s", playlist.id, user.id, following)
        return FollowToggleResponse(following=following, follower_count=playlist.follower_count)


@router.post(
    "/{playlist_id}/duplicate",
    response_model=PlaylistDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate a playlist",
    description="Copies name, description and ordered tracks into a new private playlist owned by the caller.",
    operation_id="duplicate_playlist",
)
def duplicate_playlist(
    playlist_id: str,
    req: Optional[PlaylistDuplicateRequest] = Body(None),
    ctx: AuthContext = Depends(get_auth_context),
) -> PlaylistDetailResponse:
    with get_db_session() as db:
        source = get_or_404(db, Playlist, playlist_id, _NOT_FOUND)
        if not _can_view(source, ctx):
            raise HTTPException(status_code=403, detail="This playlist is private")

        name = (req.name if req and req.name else f"{source.name} (Copy)")[:100]
        copy = Playlist(
            name=name,
            description=source.description,
            color=source.color,
            cover_image=source.cover_image,
            owner_id=ctx.user_id,
            is_public=False,
            is_system=False,
            total_duration=source.total_duration,
        )
        for entry in sorted(source.entries, key=lambda e: e.position):
            copy.entries.append(PlaylistTrack(track_id=entry.track_id, position=entry.position))
        db.add(copy)
        db.flush()
        db.refresh(copy)
        logger.info("playlist_duplicated: source_id=%s playlist_id=%s", source.id, copy.id)
        return _detail(copy, ctx)
