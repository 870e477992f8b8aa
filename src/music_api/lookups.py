"""Row lookups and ownership checks shared by the route modules."""

from __future__ import annotations

import uuid
from typing import List, Optional, Tuple, Type, TypeVar, Union

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext, is_artist_manager
from src.music_api.common import parse_id
from src.music_api.models import ArtistMember, Playlist, UserSubscription

M = TypeVar("M")


# PUBLIC_INTERFACE
def get_or_404(db: Session, model: Type[M], raw_id: Union[str, uuid.UUID], detail: str) -> M:
    """Load a row by primary key or raise 404 (also for malformed ids)."""
    row_id = raw_id if isinstance(raw_id, uuid.UUID) else parse_id(raw_id, detail)
    row = db.get(model, row_id)
    if row is None:
        raise HTTPException(status_code=404, detail=detail)
    return row


def member_user_ids(db: Session, artist_id: uuid.UUID) -> List[uuid.UUID]:
    return list(db.execute(select(ArtistMember.user_id).where(ArtistMember.artist_id == artist_id)).scalars())


# PUBLIC_INTERFACE
def can_manage_artist(db: Session, ctx: Optional[AuthContext], artist_id: uuid.UUID) -> bool:
    if ctx is None:
        return False
    if ctx.is_admin:
        return True
    return is_artist_manager(ctx, member_user_ids(db, artist_id))


# PUBLIC_INTERFACE
def require_artist_manager(db: Session, ctx: AuthContext, artist_id: uuid.UUID) -> None:
    """403 unless the caller is an admin or a member of the artist."""
    if not can_manage_artist(db, ctx, artist_id):
        raise HTTPException(status_code=403, detail="Not authorized to manage this artist")


# PUBLIC_INTERFACE
def liked_playlist(db: Session, user_id: uuid.UUID) -> Optional[Playlist]:
    """The user's Liked Songs playlist (their only system playlist)."""
    return db.execute(
        select(Playlist).where(Playlist.owner_id == user_id, Playlist.is_system.is_(True))
    ).scalar_one_or_none()


# PUBLIC_INTERFACE
def user_subscription(db: Session, user_id: Optional[uuid.UUID], artist_id: uuid.UUID) -> Optional[UserSubscription]:
    """The (user, artist) subscription row in any status, or None."""
    if user_id is None:
        return None
    return db.execute(
        select(UserSubscription).where(
            UserSubscription.user_id == user_id,
            UserSubscription.artist_id == artist_id,
        )
    ).scalar_one_or_none()


# PUBLIC_INTERFACE
def viewer_state(
    db: Session, ctx: Optional[AuthContext], artist_id: uuid.UUID
) -> Tuple[bool, Optional[UserSubscription]]:
    """(is_manager, subscription) of the caller towards an artist's gated items."""
    if ctx is None:
        return False, None
    return can_manage_artist(db, ctx, artist_id), user_subscription(db, ctx.user_id, artist_id)
