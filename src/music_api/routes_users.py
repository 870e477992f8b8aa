"""
User profile endpoints:
- GET /api/users/me
- PATCH /api/users/me
- PUT /api/users/me/password
- GET /api/users/{user_id}
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext
from src.music_api.auth import get_auth_context, hash_password, verify_password
from src.music_api.common import apply_changes, dto_changes
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404, liked_playlist
from src.music_api.models import User, artist_follows, user_follows
from src.music_api.schemas import MeResponse, MessageResponse, PasswordChangeRequest, PublicUserResponse, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _me(db: Session, user: User) -> MeResponse:
    liked = liked_playlist(db, user.id)
    following_users = db.execute(
        select(user_follows.c.followed_id).where(user_follows.c.follower_id == user.id)
    ).scalars()
    following_artists = db.execute(
        select(artist_follows.c.artist_id).where(artist_follows.c.user_id == user.id)
    ).scalars()
    base = MeResponse.model_validate(user)
    return base.model_copy(
        update={
            "liked_playlist_id": liked.id if liked else None,
            "following_user_ids": list(following_users),
            "following_artist_ids": list(following_artists),
        }
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current user profile",
    operation_id="get_me",
)
def get_me(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(db_session_dep)) -> MeResponse:
    user = get_or_404(db, User, ctx.user_id, "User not found")
    return _me(db, user)


@router.patch(
    "/me",
    response_model=MeResponse,
    summary="Update current user profile",
    description="Partial update of name, username and email. Username and email stay unique.",
    operation_id="update_me",
)
def update_me(req: UserUpdate, ctx: AuthContext = Depends(get_auth_context)) -> MeResponse:
    changes = dto_changes(req, required=("first_name", "last_name", "username", "email"))
    if "email" in changes:
        changes["email"] = str(changes["email"]).lower().strip()
    if "username" in changes:
        changes["username"] = changes["username"].strip()

    with get_db_session() as db:
        user = get_or_404(db, User, ctx.user_id, "User not found")

        if "username" in changes:
            taken = db.execute(
                select(User.id).where(
                    and_(func.lower(User.username) == changes["username"].lower(), User.id != user.id)
                )
            ).first()
            if taken:
                raise HTTPException(status_code=400, detail="Username already taken")
        if "email" in changes:
            taken = db.execute(select(User.id).where(and_(User.email == changes["email"], User.id != user.id))).first()
            if taken:
                raise HTTPException(status_code=400, detail="Email already in use")

        apply_changes(user, changes)
        db.flush()
        logger.info("user_updated: user_id=%s fields=%s", user.id, ",".join(sorted(changes)))
        return _me(db, user)


@router.put(
    "/me/password",
    response_model=MessageResponse,
    summary="Change password",
    operation_id="change_password",
)
def change_password(req: PasswordChangeRequest, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        user = get_or_404(db, User, ctx.user_id, "User not found")
        if not verify_password(req.current_password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
        user.password_hash = hash_password(req.new_password)
    logger.info("password_changed: user_id=%s", ctx.user_id)
    return MessageResponse(message="Password updated successfully")


@router.get(
    "/{user_id}",
    response_model=PublicUserResponse,
    summary="Public user profile",
    operation_id="get_user",
)
def get_user(user_id: str, db: Session = Depends(db_session_dep)) -> PublicUserResponse:
    user = get_or_404(db, User, user_id, "User not found")
    return PublicUserResponse.model_validate(user)
