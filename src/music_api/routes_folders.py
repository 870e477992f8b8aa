"""
Playlist folder endpoints:
- GET /api/folders                            (caller's folder tree)
- GET /api/folders/{folder_id}
- POST /api/folders
- PATCH /api/folders/{folder_id}              (re-parenting is cycle checked)
- DELETE /api/folders/{folder_id}?orphan=false
- POST /api/folders/{folder_id}/playlists
- POST /api/folders/{folder_id}/remove-playlists
- GET /api/folders/{folder_id}/stats
- GET /api/folders/{folder_id}/search?query=

Deleting a folder never deletes playlists: its playlists and child folders move
to the folder's parent, or to the root with orphan=true.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext
from src.music_api.auth import get_auth_context, get_optional_auth_context
from src.music_api.common import apply_changes, dto_changes
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.folder_tree import build_tree, find_cycle
from src.music_api.lookups import get_or_404
from src.music_api.models import Playlist, PlaylistFolder
from src.music_api.schemas import (
    FolderCreate,
    FolderDetailResponse,
    FolderResponse,
    FolderSearchResponse,
    FolderStatsResponse,
    FolderUpdate,
    MessageResponse,
    PlaylistIdsRequest,
    PlaylistResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/folders", tags=["Folders"])

_NOT_FOUND = "Folder not found"


def _require_owner(folder: PlaylistFolder, ctx: AuthContext) -> None:
    if folder.owner_id != ctx.user_id:
        raise HTTPException(status_code=403, detail="Not authorized to modify this folder")


def _require_visible(folder: PlaylistFolder, ctx: Optional[AuthContext]) -> bool:
    """Return True when the caller owns the folder; 403 unless it is public."""
    is_owner = ctx is not None and folder.owner_id == ctx.user_id
    if not is_owner and not folder.is_public:
        raise HTTPException(status_code=403, detail="This folder is private")
    return is_owner


def _playlist_summary(playlist: Playlist) -> PlaylistResponse:
    return PlaylistResponse.model_validate(playlist).model_copy(update={"track_count": len(playlist.entries)})


def _children(db: Session, folder: PlaylistFolder) -> List[PlaylistFolder]:
    return list(
        db.execute(
            select(PlaylistFolder).where(PlaylistFolder.parent_id == folder.id).order_by(PlaylistFolder.name)
        ).scalars()
    )


def _detail(db: Session, folder: PlaylistFolder, *, is_owner: bool = True) -> FolderDetailResponse:
    playlists = [p for p in folder.playlists if is_owner or p.is_public]
    children = [c for c in _children(db, folder) if is_owner or c.is_public]
    return FolderDetailResponse.model_validate(folder).model_copy(
        update={
            "children": [FolderResponse.model_validate(c) for c in children],
            "playlists": [_playlist_summary(p) for p in playlists],
        }
    )


def _owned_playlists(db: Session, ids: List[uuid.UUID], ctx: AuthContext) -> List[Playlist]:
    ids = list(dict.fromkeys(ids))
    playlists = db.execute(select(Playlist).where(Playlist.id.in_(ids))).scalars().all()
    if len(playlists) != len(ids):
        raise HTTPException(status_code=404, detail="One or more playlists not found")
    if any(p.owner_id != ctx.user_id for p in playlists):
        raise HTTPException(status_code=403, detail="Not authorized to move one or more playlists")
    return list(playlists)


def _owned_parent(db: Session, parent_id: Optional[uuid.UUID], ctx: AuthContext) -> None:
    if parent_id is None:
        return
    parent = get_or_404(db, PlaylistFolder, parent_id, "Parent folder not found")
    if parent.owner_id != ctx.user_id:
        raise HTTPException(status_code=403, detail="Not authorized to use this parent folder")


@router.get(
    "",
    summary="Folder tree",
    description="The caller's folders nested under `children`, each with its playlists.",
    operation_id="folder_tree",
)
def folder_tree(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(db_session_dep)) -> List[Dict[str, Any]]:
    folders = db.execute(select(PlaylistFolder).where(PlaylistFolder.owner_id == ctx.user_id)).scalars().all()
    nodes = []
    for folder in folders:
        node = FolderResponse.model_validate(folder).model_dump(mode="json", by_alias=True)
        node["playlists"] = [_playlist_summary(p).model_dump(mode="json", by_alias=True) for p in folder.playlists]
        nodes.append(node)
    return build_tree(nodes)


@router.get("/{folder_id}", response_model=FolderDetailResponse, summary="Folder detail", operation_id="get_folder")
def get_folder(
    folder_id: str,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: Session = Depends(db_session_dep),
) -> FolderDetailResponse:
    folder = get_or_404(db, PlaylistFolder, folder_id, _NOT_FOUND)
    is_owner = _require_visible(folder, ctx)
    return _detail(db, folder, is_owner=is_owner)


@router.post(
    "",
    response_model=FolderDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a folder",
    operation_id="create_folder",
)
def create_folder(req: FolderCreate, ctx: AuthContext = Depends(get_auth_context)) -> FolderDetailResponse:
    with get_db_session() as db:
        _owned_parent(db, req.parent_folder_id, ctx)
        folder = PlaylistFolder(
            name=req.name.strip(),
            description=req.description,
            parent_id=req.parent_folder_id,
            is_public=req.is_public,
            owner_id=ctx.user_id,
        )
        db.add(folder)
        db.flush()
        logger.info("folder_created: folder_id=%s owner_id=%s", folder.id, ctx.user_id)
        return _detail(db, folder)


@router.patch(
    "/{folder_id}",
    response_model=FolderDetailResponse,
    summary="Update a folder",
    description="`parentFolderId: null` moves the folder to the root. Moves that would create a cycle are rejected.",
    operation_id="update_folder",
)
def update_folder(folder_id: str, req: FolderUpdate, ctx: AuthContext = Depends(get_auth_context)) -> FolderDetailResponse:
    changes = dto_changes(req, required=("name", "is_public"))
    with get_db_session() as db:
        folder = get_or_404(db, PlaylistFolder, folder_id, _NOT_FOUND)
        _require_owner(folder, ctx)

        if "parent_folder_id" in changes:
            new_parent = changes["parent_folder_id"]
            _owned_parent(db, new_parent, ctx)
            arena = dict(
                db.execute(
                    select(PlaylistFolder.id, PlaylistFolder.parent_id).where(PlaylistFolder.owner_id == ctx.user_id)
                ).all()
            )
            reason = find_cycle(folder.id, new_parent, arena)
            if reason:
                logger.info("folder_move_rejected: folder_id=%s parent_id=%s reason=%s", folder.id, new_parent, reason)
                raise HTTPException(status_code=400, detail=reason)

        apply_changes(folder, changes, rename={"parent_folder_id": "parent_id"})
        db.flush()
        return _detail(db, folder)


@router.delete("/{folder_id}", response_model=MessageResponse, summary="Delete a folder", operation_id="delete_folder")
def delete_folder(
    folder_id: str,
    orphan: bool = Query(False, description="Move contents to the root instead of the parent folder."),
    ctx: AuthContext = Depends(get_auth_context),
) -> MessageResponse:
    with get_db_session() as db:
        folder = get_or_404(db, PlaylistFolder, folder_id, _NOT_FOUND)
        _require_owner(folder, ctx)

        target = None if orphan else folder.parent_id
        db.execute(update(Playlist).where(Playlist.folder_id == folder.id).values(folder_id=target))
        db.execute(update(PlaylistFolder).where(PlaylistFolder.parent_id == folder.id).values(parent_id=target))
        db.expire(folder)
        db.delete(folder)
        logger.info("folder_deleted: folder_id=%s moved_to=%s", folder_id, target)
    return MessageResponse(message="Folder deleted successfully")


@router.post(
    "/{folder_id}/playlists",
    response_model=FolderDetailResponse,
    summary="Move playlists into a folder",
    operation_id="add_folder_playlists",
)
def add_playlists(folder_id: str, req: PlaylistIdsRequest, ctx: AuthContext = Depends(get_auth_context)) -> FolderDetailResponse:
    with get_db_session() as db:
        folder = get_or_404(db, PlaylistFolder, folder_id, _NOT_FOUND)
        _require_owner(folder, ctx)
        for playlist in _owned_playlists(db, req.playlist_ids, ctx):
            playlist.folder_id = folder.id
        db.flush()
        db.expire(folder, ["playlists"])
        return _detail(db, folder)


@router.post(
    "/{folder_id}/remove-playlists",
    response_model=FolderDetailResponse,
    summary="Move playlists out of a folder",
    operation_id="remove_folder_playlists",
)
def remove_playlists(folder_id: str, req: PlaylistIdsRequest, ctx: AuthContext = Depends(get_auth_context)) -> FolderDetailResponse:
    with get_db_session() as db:
        folder = get_or_404(db, PlaylistFolder, folder_id, _NOT_FOUND)
        _require_owner(folder, ctx)
        for playlist in _owned_playlists(db, req.playlist_ids, ctx):
            if playlist.folder_id == folder.id:
                playlist.folder_id = None
        db.flush()
        db.expire(folder, ["playlists"])
        return _detail(db, folder)


@router.get("/{folder_id}/stats", response_model=FolderStatsResponse, summary="Folder statistics", operation_id="folder_stats")
def folder_stats(
    folder_id: str,
    ctx: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: Session = Depends(db_session_dep),
) -> FolderStatsResponse:
    folder = get_or_404(db, PlaylistFolder, folder_id, _NOT_FOUND)
    is_owner = _require_visible(folder, ctx)
    playlists = [p for p in folder.playlists if is_owner or p.is_public]
    children = [c for c in _children(db, folder) if is_owner or c.is_public]
    return FolderStatsResponse(
        playlist_count=len(playlists),
        child_folder_count=len(children),
        track_count=sum(len(p.entries) for p in playlists),
        total_duration=sum(p.total_duration or 0 for p in playlists),
        total_followers=sum(p.follower_count or 0 for p in playlists),
    )


@router.get(
    "/{folder_id}/search",
    response_model=FolderSearchResponse,
    summary="Search inside a folder",
    description="Playlists and child folders whose name or description contains the query.",
    operation_id="search_folder",
)
def search_folder(
    folder_id: str,
    query: str = Query(..., min_length=1),
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(db_session_dep),
) -> FolderSearchResponse:
    folder = get_or_404(db, PlaylistFolder, folder_id, _NOT_FOUND)
    _require_owner(folder, ctx)
    needle = query.strip().lower()

    def _matches(name: Optional[str], description: Optional[str]) -> bool:
        return needle in (name or "").lower() or needle in (description or "").lower()

    return FolderSearchResponse(
        playlists=[_playlist_summary(p) for p in folder.playlists if _matches(p.name, p.description)],
        folders=[FolderResponse.model_validate(c) for c in _children(db, folder) if _matches(c.name, c.description)],
    )
