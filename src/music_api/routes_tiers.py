"""
Subscription tier endpoints:
- GET /api/subscription-tiers/{tier_id}
- POST /api/subscription-tiers               (artist manager)
- PATCH /api/subscription-tiers/{tier_id}    (artist manager)
- DELETE /api/subscription-tiers/{tier_id}   (artist manager; retires the tier)

An artist has at most three active tiers. Retired tiers stay in the database
so existing subscriptions keep pointing at them.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext
from src.music_api.auth import get_auth_context
from src.music_api.common import apply_changes, dto_changes
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404, require_artist_manager
from src.music_api.models import Artist, SubscriptionTier, TierStatus
from src.music_api.schemas import MessageResponse, TierCreate, TierResponse, TierUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscription-tiers", tags=["Subscription Tiers"])

MAX_ACTIVE_TIERS = 3


def _active_count(db: Session, artist_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count(SubscriptionTier.id)).where(
            SubscriptionTier.artist_id == artist_id,
            SubscriptionTier.status == TierStatus.ACTIVE,
        )
    ).scalar_one()


def _first_free_order(db: Session, artist_id: uuid.UUID) -> int:
    taken = set(
        db.execute(
            select(SubscriptionTier.order).where(
                SubscriptionTier.artist_id == artist_id,
                SubscriptionTier.status == TierStatus.ACTIVE,
            )
        ).scalars()
    )
    return next(order for order in range(1, MAX_ACTIVE_TIERS + 1) if order not in taken)


def _check_order_free(db: Session, artist_id: uuid.UUID, order: int, exclude: Optional[uuid.UUID] = None) -> None:
    stmt = select(SubscriptionTier.id).where(
        SubscriptionTier.artist_id == artist_id,
        SubscriptionTier.status == TierStatus.ACTIVE,
        SubscriptionTier.order == order,
    )
    if exclude is not None:
        stmt = stmt.where(SubscriptionTier.id != exclude)
    if db.execute(stmt).first():
        raise HTTPException(status_code=400, detail=f"Tier order {order} is already in use")


@router.get("/{tier_id}", response_model=TierResponse, summary="Tier detail", operation_id="get_tier")
def get_tier(tier_id: str, db: Session = Depends(db_session_dep)) -> TierResponse:
    return TierResponse.model_validate(get_or_404(db, SubscriptionTier, tier_id, "Subscription tier not found"))


@router.post(
    "",
    response_model=TierResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a subscription tier",
    description="At most three active tiers per artist; price must be between 0.99 and 99.99.",
    operation_id="create_tier",
)
def create_tier(req: TierCreate, ctx: AuthContext = Depends(get_auth_context)) -> TierResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, req.artist_id, "Artist not found")
        require_artist_manager(db, ctx, artist.id)

        active = _active_count(db, artist.id)
        if active >= MAX_ACTIVE_TIERS:
            raise HTTPException(
                status_code=400,
                detail=f"Artists can have at most {MAX_ACTIVE_TIERS} active subscription tiers",
            )

        order = req.order or _first_free_order(db, artist.id)
        _check_order_free(db, artist.id, order)

        tier = SubscriptionTier(
            artist_id=artist.id,
            name=req.name.strip(),
            price=round(req.price, 2),
            features=list(req.features),
            description=req.description,
            is_recommended=req.is_recommended,
            order=order,
            status=TierStatus.ACTIVE,
        )
        db.add(tier)
        artist.accepts_subscriptions = True
        db.flush()
        logger.info("tier_created: tier_id=%s artist_id=%s order=%s", tier.id, artist.id, order)
        return TierResponse.model_validate(tier)


@router.patch("/{tier_id}", response_model=TierResponse, summary="Update a subscription tier", operation_id="update_tier")
def update_tier(tier_id: str, req: TierUpdate, ctx: AuthContext = Depends(get_auth_context)) -> TierResponse:
    changes = dto_changes(req, required=("name", "price", "features", "is_recommended", "order"))
    with get_db_session() as db:
        tier = get_or_404(db, SubscriptionTier, tier_id, "Subscription tier not found")
        require_artist_manager(db, ctx, tier.artist_id)

        if "order" in changes and tier.status == TierStatus.ACTIVE:
            _check_order_free(db, tier.artist_id, changes["order"], exclude=tier.id)
        if "price" in changes:
            changes["price"] = round(changes["price"], 2)

        apply_changes(tier, changes)
        db.flush()
        return TierResponse.model_validate(tier)


@router.delete(
    "/{tier_id}",
    response_model=MessageResponse,
    summary="Retire a subscription tier",
    description="Soft delete: the tier is retired and disappears from the artist's active tiers.",
    operation_id="retire_tier",
)
def retire_tier(tier_id: str, ctx: AuthContext = Depends(get_auth_context)) -> MessageResponse:
    with get_db_session() as db:
        tier = get_or_404(db, SubscriptionTier, tier_id, "Subscription tier not found")
        require_artist_manager(db, ctx, tier.artist_id)
        if tier.status == TierStatus.RETIRED:
            raise HTTPException(status_code=400, detail="Subscription tier is already retired")

        tier.status = TierStatus.RETIRED
        db.flush()
        if _active_count(db, tier.artist_id) == 0:
            tier.artist.accepts_subscriptions = False
        logger.info("tier_retired: tier_id=%s artist_id=%s", tier.id, tier.artist_id)
    return MessageResponse(message="Subscription tier retired successfully")
