"""
Social graph endpoints:
- POST /api/follows/users/{user_id}
- DELETE /api/follows/users/{user_id}
- POST /api/follows/artists/{artist_id}
- DELETE /api/follows/artists/{artist_id}
- GET /api/follows/status
- GET /api/follows/counts/{target_id}

Follower counters move by exactly one per successful call and never drop
below zero.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext
from src.music_api.auth import get_auth_context
from src.music_api.common import parse_id
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404
from src.music_api.models import Artist, User
from src.music_api.schemas import (
    ArtistSummary,
    FollowCountsResponse,
    FollowStatusResponse,
    MessageResponse,
    PublicUserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/follows", tags=["Follows"])


@router.post("/users/{user_id}", response_model=MessageResponse, summary="Follow a user", operation_id="follow_user")
def follow_user(user_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    target_id = parse_id(user_id, "User not found")
    if target_id == ctx.user_id:
        raise HTTPException(status_code=400, detail="You cannot follow yourself")

    with get_db_session() as db:
        target = get_or_404(db, User, target_id, "User not found")
        me = get_or_404(db, User, ctx.user_id, "User not found")
        if target in me.following_users:
            raise HTTPException(status_code=400, detail="You are already following this user")
        me.following_users.append(target)
        target.follower_count = (target.follower_count or 0) + 1
        logger.info("user_followed: follower_id=%s followed_id=%s", me.id, target.id)
    return MessageResponse(message="User followed successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Unfollow a user", operation_id="unfollow_user")
def unfollow_user(user_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        target = get_or_404(db, User, user_id, "User not found")
        me = get_or_404(db, User, ctx.user_id, "User not found")
        if target not in me.following_users:
            raise HTTPException(status_code=400, detail="You are not following this user")
        me.following_users.remove(target)
        target.follower_count = max(0, (target.follower_count or 0) - 1)
        logger.info("user_unfollowed: follower_id=%s followed_id=%s", me.id, target.id)
    return MessageResponse(message="User unfollowed successfully")


@router.post("/artists/{artist_id}", response_model=MessageResponse, summary="Follow an artist", operation_id="follow_artist")
def follow_artist(artist_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, artist_id, "Artist not found")
        me = get_or_404(db, User, ctx.user_id, "User not found")
        if artist in me.following_artists:
            raise HTTPException(status_code=400, detail="You are already following this artist")
        me.following_artists.append(artist)
        artist.follower_count = (artist.follower_count or 0) + 1
        logger.info("artist_followed: user_id=%s artist_id=%s", me.id, artist.id)
    return MessageResponse(message="Artist followed successfully")


@router.delete(
    "/artists/{artist_id}",
    response_model=MessageResponse,
    summary="Unfollow an artist",
    operation_id="unfollow_artist",
)
def unfollow_artist(artist_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, artist_id, "Artist not found")
        me = get_or_404(db, User, ctx.user_id, "User not found")
        if artist not in me.following_artists:
            raise HTTPException(status_code=400, detail="You are not following this artist")
        me.following_artists.remove(artist)
        artist.follower_count = max(0, (artist.follower_count or 0) - 1)
        logger.info("artist_unfollowed: user_id=%s artist_id=%s", me.id, artist.id)
    return MessageResponse(message="Artist unfollowed successfully")


@router.get("/status", response_model=FollowStatusResponse, summary="Who the caller follows", operation_id="follow_status")
def follow_status(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(db_session_dep)) -> FollowStatusResponse:
    me = get_or_404(db, User, ctx.user_id, "User not found")
    return FollowStatusResponse(
        users=[PublicUserResponse.model_validate(u) for u in sorted(me.following_users, key=lambda u: u.username)],
        artists=[ArtistSummary.model_validate(a) for a in sorted(me.following_artists, key=lambda a: a.name)],
    )


@router.get(
    "/counts/{target_id}",
    response_model=FollowCountsResponse,
    summary="Follower counts of a user or artist",
    operation_id="follow_counts",
)
def follow_counts(target_id: str, db: Session = Depends(db_session_dep)) -> FollowCountsResponse:
    tid = parse_id(target_id, "User or artist not found")
    user = db.execute(select(User).where(User.id == tid)).scalar_one_or_none()
    if user is not None:
        return FollowCountsResponse(id=user.id, kind="user", follower_count=user.follower_count)
    artist = db.execute(select(Artist).where(Artist.id == tid)).scalar_one_or_none()
    if artist is not None:
        return FollowCountsResponse(
            id=artist.id,
            kind="artist",
            follower_count=artist.follower_count,
            subscriber_count=artist.subscriber_count,
        )
    raise HTTPException(status_code=404, detail="User or artist not found")
