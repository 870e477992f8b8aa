"""
Access rules shared by the route modules.

- `AuthContext`: per-request caller identity and role flags.
- Subscription-gated content: whether a caller may see tier-restricted
  exclusive content or events.
- Artist management: admins and linked artist members may manage an artist.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from src.music_api.models import SubscriptionStatus, UserSubscription

_ACCESS_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED})


@dataclass(frozen=True)
class AuthContext:
    """Caller identity for one request, built from a verified bearer token."""

    user_id: uuid.UUID
    username: str
    is_admin: bool = False
    is_artist: bool = False
    is_distributor: bool = False


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# PUBLIC_INTERFACE
def subscription_grants_access(subscription: Optional[UserSubscription], now: Optional[datetime] = None) -> bool:
    """
    Return True while a subscription unlocks its artist's gated content.

    Canceled subscriptions keep access until the paid period ends; paused and
    past-due ones do not.
    """
    if subscription is None:
        return False
    now = as_utc(now or datetime.now(timezone.utc))
    if subscription.status not in _ACCESS_STATUSES:
        return False
    return now <= as_utc(subscription.current_period_end)


# PUBLIC_INTERFACE
def can_access_content(
    *,
    is_public: bool,
    minimum_tier_id: Optional[uuid.UUID],
    subscription: Optional[UserSubscription],
    now: Optional[datetime] = None,
) -> bool:
    """
    Gate predicate for exclusive content and artist events.

    Args:
        is_public: free preview flag of the item.
        minimum_tier_id: tier the item is restricted to, if any.
        subscription: the caller's subscription to the item's artist; None for
            anonymous callers and callers without a subscription.
        now: evaluation time, defaults to the current UTC time.
    """
    if is_public or minimum_tier_id is None:
        return True
    if not subscription_grants_access(subscription, now):
        return False
    return subscription.tier_id == minimum_tier_id


# PUBLIC_INTERFACE
def is_artist_manager(ctx: Optional[AuthContext], member_user_ids: Iterable[uuid.UUID]) -> bool:
    """Admins and users linked to the artist may manage it."""
    if ctx is None:
        return False
    if ctx.is_admin:
        return True
    return ctx.user_id in set(member_user_ids)
