"""
Admin endpoints (all require an admin token):
- DELETE /api/admin/tracks/all
- DELETE /api/admin/tracks/artist/{artist_id}
- POST /api/admin/tracks/delete
- POST /api/admin/link-user-artist
- POST /api/admin/unlink-user-artist
- GET /api/admin/artist-members/{artist_id}
- PATCH /api/admin/users/{user_id}/roles
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select

from src.music_api.access import AuthContext
from src.music_api.auth import require_admin
from src.music_api.catalog import delete_tracks, remove_stored_files
from src.music_api.common import apply_changes, dto_changes
from src.music_api.db import get_db_session
from src.music_api.lookups import get_or_404
from src.music_api.models import Artist, ArtistMember, Track, User
from src.music_api.schemas import (
    ArtistMemberResponse,
    DeleteResultResponse,
    LinkUserArtistRequest,
    MessageResponse,
    PublicUserResponse,
    RoleUpdate,
    TrackIdsRequest,
    UnlinkUserArtistRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


def _member_response(member: ArtistMember) -> ArtistMemberResponse:
    return ArtistMemberResponse(
        user=PublicUserResponse.model_validate(member.user),
        role=member.role,
        added_at=member.added_at,
        added_by=member.added_by,
    )


@router.delete(
    "/tracks/all",
    response_model=DeleteResultResponse,
    summary="Delete every track",
    description="Removes all tracks, their playlist entries and their stored audio files.",
    operation_id="admin_delete_all_tracks",
)
def delete_all_tracks() -> DeleteResultResponse:
    with get_db_session() as db:
        urls = delete_tracks(db, db.execute(select(Track)).scalars().all())
    remove_stored_files(urls)
    count = len(urls)
    logger.warning("admin_tracks_purged: count=%s", count)
    return DeleteResultResponse(message=f"Successfully deleted {count} tracks", deleted_count=count)


@router.delete(
    "/tracks/artist/{artist_id}",
    response_model=DeleteResultResponse,
    summary="Delete all tracks of an artist",
    operation_id="admin_delete_artist_tracks",
)
def delete_artist_tracks(artist_id: str) -> DeleteResultResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, artist_id, "Artist not found")
        urls = delete_tracks(db, db.execute(select(Track).where(Track.artist_id == artist.id)).scalars().all())
    remove_stored_files(urls)
    count = len(urls)
    return DeleteResultResponse(message=f"Successfully deleted {count} tracks from artist", deleted_count=count)


@router.post(
    "/tracks/delete",
    response_model=DeleteResultResponse,
    summary="Delete tracks by id",
    description="Unknown ids are ignored.",
    operation_id="admin_delete_tracks",
)
def delete_selected_tracks(req: TrackIdsRequest) -> DeleteResultResponse:
    with get_db_session() as db:
        urls = delete_tracks(db, db.execute(select(Track).where(Track.id.in_(req.track_ids))).scalars().all())
    remove_stored_files(urls)
    count = len(urls)
    return DeleteResultResponse(message=f"Successfully deleted {count} tracks", deleted_count=count)


@router.post(
    "/link-user-artist",
    response_model=ArtistMemberResponse,
    summary="Link a user to an artist",
    description="The user becomes a member (band-member or management) and is flagged as an artist.",
    operation_id="link_user_artist",
)
def link_user_artist(req: LinkUserArtistRequest, ctx: AuthContext = Depends(require_admin)) -> ArtistMemberResponse:
    with get_db_session() as db:
        user = get_or_404(db, User, req.user_id, "User not found")
        artist = get_or_404(db, Artist, req.artist_id, "Artist not found")

        existing = db.execute(
            select(ArtistMember).where(ArtistMember.artist_id == artist.id, ArtistMember.user_id == user.id)
        ).scalar_one_or_none()
        if existing is not None:
            raise HTTPException(status_code=400, detail="User is already linked to this artist")

        member = ArtistMember(artist_id=artist.id, user_id=user.id, role=req.role, added_by=ctx.username)
        db.add(member)
        user.is_artist = True
        db.flush()
        db.refresh(member)
        logger.info("artist_member_linked: artist_id=%s user_id=%s role=%s", artist.id, user.id, req.role.value)
        return _member_response(member)


@router.post(
    "/unlink-user-artist",
    response_model=MessageResponse,
    summary="Unlink a user from an artist",
    description="The artist flag is cleared once the user is no longer a member of any artist.",
    operation_id="unlink_user_artist",
)
def unlink_user_artist(req: UnlinkUserArtistRequest) -> MessageResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, req.artist_id, "Artist not found")
        member = db.execute(
            select(ArtistMember).where(ArtistMember.artist_id == artist.id, ArtistMember.user_id == req.user_id)
        ).scalar_one_or_none()
        if member is None:
            raise HTTPException(status_code=404, detail="User is not linked to this artist")

        user = member.user
        db.delete(member)
        db.flush()
        remaining = db.execute(
            select(func.count(ArtistMember.id)).where(ArtistMember.user_id == user.id)
        ).scalar_one()
        if remaining == 0:
            user.is_artist = False
        logger.info("artist_member_unlinked: artist_id=%s user_id=%s", artist.id, user.id)
    return MessageResponse(message="User successfully unlinked from artist")


@router.get(
    "/artist-members/{artist_id}",
    response_model=List[ArtistMemberResponse],
    summary="Members of an artist",
    operation_id="artist_members",
)
def artist_members(artist_id: str) -> List[ArtistMemberResponse]:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, artist_id, "Artist not found")
        members = db.execute(
            select(ArtistMember).where(ArtistMember.artist_id == artist.id).order_by(ArtistMember.added_at)
        ).scalars()
        return [_member_response(m) for m in members]


@router.patch(
    "/users/{user_id}/roles",
    response_model=UserResponse,
    summary="Set role flags of a user",
    operation_id="update_user_roles",
)
def update_roles(user_id: str, req: RoleUpdate, ctx: AuthContext = Depends(require_admin)) -> UserResponse:
    changes = dto_changes(req, required=("is_admin", "is_artist", "is_distributor"))
    with get_db_session() as db:
        user = get_or_404(db, User, user_id, "User not found")
        if user.id == ctx.user_id and changes.get("is_admin") is False:
            raise HTTPException(status_code=400, detail="Admins cannot remove their own admin role")
        apply_changes(user, changes)
        db.flush()
        logger.info("user_roles_updated: user_id=%s changes=%s", user.id, sorted(changes))
        return UserResponse.model_validate(user)
