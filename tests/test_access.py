from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from src.music_api.access import (
    AuthContext,
    can_access_content,
    is_artist_manager,
    subscription_grants_access,
)
from src.music_api.models import SubscriptionStatus, UserSubscription

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _sub(status: SubscriptionStatus, *, tier_id=None, ends_in_days: int = 10) -> UserSubscription:
    return UserSubscription(
        user_id=uuid.uuid4(),
        artist_id=uuid.uuid4(),
        tier_id=tier_id or uuid.uuid4(),
        status=status,
        current_period_end=NOW + timedelta(days=ends_in_days),
    )


@pytest.mark.parametrize(
    "status, ends_in_days, expected",
    [
        (SubscriptionStatus.ACTIVE, 10, True),
        (SubscriptionStatus.CANCELED, 10, True),
        (SubscriptionStatus.CANCELED, -1, False),
        (SubscriptionStatus.ACTIVE, -1, False),
        (SubscriptionStatus.PAUSED, 10, False),
        (SubscriptionStatus.PAST_DUE, 10, False),
    ],
)
def test_subscription_grants_access(status, ends_in_days, expected) -> None:
    assert subscription_grants_access(_sub(status, ends_in_days=ends_in_days), NOW) is expected


@pytest.mark.parametrize("status", [SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELED])
def test_access_ends_exactly_at_period_end(status) -> None:
    gold = uuid.uuid4()
    sub = _sub(status, tier_id=gold, ends_in_days=0)
    end = sub.current_period_end

    assert subscription_grants_access(sub, end) is True
    assert can_access_content(is_public=False, minimum_tier_id=gold, subscription=sub, now=end)
    assert subscription_grants_access(sub, end + timedelta(microseconds=1)) is False
    assert not can_access_content(
        is_public=False, minimum_tier_id=gold, subscription=sub, now=end + timedelta(microseconds=1)
    )


def test_no_subscription_grants_nothing() -> None:
    assert subscription_grants_access(None, NOW) is False


def test_naive_period_end_is_treated_as_utc() -> None:
    sub = _sub(SubscriptionStatus.ACTIVE)
    sub.current_period_end = (NOW + timedelta(hours=1)).replace(tzinfo=None)
    assert subscription_grants_access(sub, NOW) is True


def test_public_or_untiered_items_are_open() -> None:
    tier = uuid.uuid4()
    assert can_access_content(is_public=True, minimum_tier_id=tier, subscription=None, now=NOW)
    assert can_access_content(is_public=False, minimum_tier_id=None, subscription=None, now=NOW)


def test_tiered_item_needs_matching_tier() -> None:
    gold = uuid.uuid4()
    matching = _sub(SubscriptionStatus.ACTIVE, tier_id=gold)
    other = _sub(SubscriptionStatus.ACTIVE)
    expired = _sub(SubscriptionStatus.ACTIVE, tier_id=gold, ends_in_days=-2)

    assert can_access_content(is_public=False, minimum_tier_id=gold, subscription=matching, now=NOW)
    assert not can_access_content(is_public=False, minimum_tier_id=gold, subscription=other, now=NOW)
    assert not can_access_content(is_public=False, minimum_tier_id=gold, subscription=expired, now=NOW)
    assert not can_access_content(is_public=False, minimum_tier_id=gold, subscription=None, now=NOW)


def test_is_artist_manager() -> None:
    member = uuid.uuid4()
    admin = AuthContext(user_id=uuid.uuid4(), username="root", is_admin=True)
    linked = AuthContext(user_id=member, username="member")
    stranger = AuthContext(user_id=uuid.uuid4(), username="stranger")

    assert is_artist_manager(admin, [])
    assert is_artist_manager(linked, [member])
    assert not is_artist_manager(stranger, [member])
    assert not is_artist_manager(None, [member])
