"""
Artist subscription endpoints:
- POST /api/subscriptions
- GET /api/subscriptions/my
- GET /api/subscriptions/check/{artist_id}
- GET /api/subscriptions/artist/{artist_id}     (artist manager)
- GET /api/subscriptions/{subscription_id}
- PUT /api/subscriptions/{subscription_id}/cancel
- PUT /api/subscriptions/{subscription_id}/change-tier

A user holds at most one subscription row per artist. Subscribing again after a
cancel re-activates that row with the newly chosen tier. The subscription write
and the artist's subscriber counter commit in the same transaction.
"""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.music_api.access import AuthContext, subscription_grants_access
from src.music_api.auth import get_auth_context
from src.music_api.common import parse_id
from src.music_api.db import db_session_dep, get_db_session
from src.music_api.lookups import get_or_404, require_artist_manager, user_subscription
from src.music_api.models import Artist, SubscriptionStatus, SubscriptionTier, TierStatus, UserSubscription, utcnow
from src.music_api.schemas import (
    ArtistSubscribersResponse,
    CancelSubscriptionRequest,
    ChangeTierRequest,
    PublicUserResponse,
    SubscribeRequest,
    SubscriberEntry,
    SubscriptionCheckResponse,
    SubscriptionResponse,
    TierStats,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])

_NOT_FOUND = "Subscription not found"
_TIER_NOT_FOUND = "Subscription tier not found"
_BLOCKING_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.PAUSED)


# PUBLIC_INTERFACE
def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _active_tier_of(db: Session, tier_id, artist_id) -> SubscriptionTier:
    tier = db.get(SubscriptionTier, tier_id)
    if tier is None or tier.artist_id != artist_id or tier.status != TierStatus.ACTIVE:
        raise HTTPException(status_code=404, detail=_TIER_NOT_FOUND)
    return tier


def _owned(db: Session, subscription_id: str, ctx: AuthContext, *, allow_admin: bool = False) -> UserSubscription:
    sub = get_or_404(db, UserSubscription, subscription_id, _NOT_FOUND)
    if sub.user_id != ctx.user_id and not (allow_admin and ctx.is_admin):
        raise HTTPException(status_code=403, detail="Not authorized to access this subscription")
    return sub


@router.post(
    "",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to an artist tier",
    description="Starts a one-month period. Fails while an active or paused subscription to the artist exists.",
    operation_id="subscribe",
)
def subscribe(req: SubscribeRequest, ctx: AuthContext = Depends(get_auth_context)) -> SubscriptionResponse:
    with get_db_session() as db:
        artist = get_or_404(db, Artist, req.artist_id, "Artist not found")
        if not artist.accepts_subscriptions:
            raise HTTPException(status_code=400, detail="This artist does not accept subscriptions")
        tier = _active_tier_of(db, req.tier_id, artist.id)

        sub = user_subscription(db, ctx.user_id, artist.id)
        if sub is not None and sub.status in _BLOCKING_STATUSES:
            raise HTTPException(status_code=400, detail="You already have an active subscription to this artist")

        now = utcnow()
        if sub is None:
            sub = UserSubscription(user_id=ctx.user_id, artist_id=artist.id)
            db.add(sub)
        sub.tier_id = tier.id
        sub.status = SubscriptionStatus.ACTIVE
        sub.payment_method = req.payment_method
        sub.start_date = now
        sub.current_period_start = now
        sub.current_period_end = add_months(now, 1)
        sub.canceled_at = None
        sub.cancel_reason = None
        sub.auto_renew = True

        artist.subscriber_count = (artist.subscriber_count or 0) + 1
        db.flush()
        db.refresh(sub)
        logger.info("subscription_started: subscription_id=%s artist_id=%s tier_id=%s", sub.id, artist.id, tier.id)
        return SubscriptionResponse.model_validate(sub)


@router.get("/my", response_model=List[SubscriptionResponse], summary="My subscriptions", operation_id="my_subscriptions")
def my_subscriptions(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(db_session_dep)) -> List[SubscriptionResponse]:
    rows = db.execute(
        select(UserSubscription)
        .where(UserSubscription.user_id == ctx.user_id)
        .order_by(UserSubscription.created_at.desc())
    ).scalars()
    return [SubscriptionResponse.model_validate(s) for s in rows]


@router.get(
    "/check/{artist_id}",
    response_model=SubscriptionCheckResponse,
    summary="Subscription status for one artist",
    operation_id="check_subscription",
)
def check_subscription(
    artist_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(db_session_dep),
) -> SubscriptionCheckResponse:
    aid = parse_id(artist_id, "Artist not found")
    sub = user_subscription(db, ctx.user_id, aid)
    return SubscriptionCheckResponse(
        subscribed=sub is not None and sub.status == SubscriptionStatus.ACTIVE,
        has_access=subscription_grants_access(sub),
        subscription=SubscriptionResponse.model_validate(sub) if sub else None,
    )


@router.get(
    "/artist/{artist_id}",
    response_model=ArtistSubscribersResponse,
    summary="Subscribers of an artist",
    description="Active subscribers and per-tier counts and monthly revenue. Artist managers only.",
    operation_id="artist_subscribers",
)
def artist_subscribers(
    artist_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(db_session_dep),
) -> ArtistSubscribersResponse:
    artist = get_or_404(db, Artist, artist_id, "Artist not found")
    require_artist_manager(db, ctx, artist.id)

    subs = db.execute(
        select(UserSubscription)
        .where(UserSubscription.artist_id == artist.id, UserSubscription.status == SubscriptionStatus.ACTIVE)
        .order_by(UserSubscription.start_date.desc())
    ).scalars().all()

    per_tier: Dict[object, List[UserSubscription]] = defaultdict(list)
    for sub in subs:
        per_tier[sub.tier_id].append(sub)

    tiers = db.execute(
        select(SubscriptionTier).where(SubscriptionTier.artist_id == artist.id).order_by(SubscriptionTier.order)
    ).scalars()
    stats = [
        TierStats(
            tier_id=t.id,
            name=t.name,
            price=t.price,
            count=len(per_tier.get(t.id, [])),
            revenue=round(len(per_tier.get(t.id, [])) * t.price, 2),
        )
        for t in tiers
        if t.status == TierStatus.ACTIVE or per_tier.get(t.id)
    ]
    return ArtistSubscribersResponse(
        subscribers=[
            SubscriberEntry(user=PublicUserResponse.model_validate(s.user), tier_id=s.tier_id, since=s.start_date)
            for s in subs
        ],
        tiers=stats,
        total_subscribers=len(subs),
        monthly_revenue=round(sum(s.revenue for s in stats), 2),
    )


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Subscription detail",
    operation_id="get_subscription",
)
def get_subscription(
    subscription_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(db_session_dep),
) -> SubscriptionResponse:
    return SubscriptionResponse.model_validate(_owned(db, subscription_id, ctx, allow_admin=True))


@router.put(
    "/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel a subscription",
    description="Stops auto-renewal. Access continues until the current period ends.",
    operation_id="cancel_subscription",
)
def cancel_subscription(
    subscription_id: str,
    req: Optional[CancelSubscriptionRequest] = Body(None),
    ctx: AuthContext = Depends(get_auth_context),
) -> SubscriptionResponse:
    with get_db_session() as db:
        sub = _owned(db, subscription_id, ctx)
        if sub.status == SubscriptionStatus.CANCELED:
            raise HTTPException(status_code=400, detail="Subscription is already canceled")

        sub.status = SubscriptionStatus.CANCELED
        sub.auto_renew = False
        sub.canceled_at = utcnow()
        sub.cancel_reason = req.cancel_reason if req else None
        sub.artist.subscriber_count = max(0, (sub.artist.subscriber_count or 0) - 1)
        db.flush()
        logger.info("subscription_canceled: subscription_id=%s artist_id=%s", sub.id, sub.artist_id)
        return SubscriptionResponse.model_validate(sub)


@router.put(
    "/{subscription_id}/change-tier",
    response_model=SubscriptionResponse,
    summary="Change the tier of a subscription",
    operation_id="change_subscription_tier",
)
def change_tier(
    subscription_id: str,
    req: ChangeTierRequest,
    ctx: AuthContext = Depends(get_auth_context),
) -> SubscriptionResponse:
    with get_db_session() as db:
        sub = _owned(db, subscription_id, ctx)
        if sub.status == SubscriptionStatus.CANCELED:
            raise HTTPException(status_code=400, detail="Cannot change the tier of a canceled subscription")
        tier = _active_tier_of(db, req.new_tier_id, sub.artist_id)
        if tier.id == sub.tier_id:
            raise HTTPException(status_code=400, detail="Already subscribed to this tier")

        sub.tier_id = tier.id
        db.flush()
        db.refresh(sub)
        logger.info("subscription_tier_changed: subscription_id=%s tier_id=%s", sub.id, tier.id)
        return SubscriptionResponse.model_validate(sub)
