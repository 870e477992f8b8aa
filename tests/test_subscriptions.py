from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from src.music_api.routes_subscriptions import add_months


@pytest.fixture
def band(make_artist):
    return make_artist("Band")


@pytest.fixture
def manager(make_user, link_member, band):
    user = make_user("manager")
    link_member(user, band["id"])
    return user


def _tier(client: TestClient, user, artist_id: str, name: str, price: float = 4.99, **extra):
    return client.post(
        "/api/subscription-tiers",
        json={"artistId": artist_id, "name": name, "price": price, **extra},
        headers=user.headers,
    )


def _subscribe(client: TestClient, user, artist_id: str, tier_id: str):
    return client.post("/api/subscriptions", json={"artistId": artist_id, "tierId": tier_id}, headers=user.headers)


def test_add_months_clamps_day() -> None:
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2023, 1, 31), 1) == datetime(2023, 2, 28)
    assert add_months(datetime(2023, 12, 15), 1) == datetime(2024, 1, 15)


# ---------------------------------------------------------------------------
# tiers
# ---------------------------------------------------------------------------


def test_tier_limits_and_ordering(client: TestClient, band, manager) -> None:
    orders = [_tier(client, manager, band["id"], f"T{i}").json()["order"] for i in range(3)]
    assert orders == [1, 2, 3]

    fourth = _tier(client, manager, band["id"], "T4")
    assert fourth.status_code == 400
    assert fourth.json()["detail"] == "Artists can have at most 3 active subscription tiers"

    listed = client.get(f"/api/artists/{band['id']}/tiers").json()
    assert [t["name"] for t in listed] == ["T0", "T1", "T2"]
    assert client.get(f"/api/artists/{band['id']}").json()["acceptsSubscriptions"] is True


def test_tier_order_clash(client: TestClient, band, manager) -> None:
    _tier(client, manager, band["id"], "Basic", order=1)
    clash = _tier(client, manager, band["id"], "Gold", order=1)
    assert clash.status_code == 400
    assert clash.json()["detail"] == "Tier order 1 is already in use"


def test_tier_price_bounds_and_manager_check(client: TestClient, make_user, band, manager) -> None:
    assert _tier(client, manager, band["id"], "Cheap", price=0.5).status_code == 400
    outsider = make_user("outsider")
    assert _tier(client, outsider, band["id"], "Basic").status_code == 403


def test_retire_tier(client: TestClient, band, manager) -> None:
    tier = _tier(client, manager, band["id"], "Basic").json()

    first = client.delete(f"/api/subscription-tiers/{tier['id']}", headers=manager.headers)
    assert first.status_code == 200
    second = client.delete(f"/api/subscription-tiers/{tier['id']}", headers=manager.headers)
    assert second.status_code == 400
    assert second.json()["detail"] == "Subscription tier is already retired"

    assert client.get(f"/api/subscription-tiers/{tier['id']}").json()["status"] == "retired"
    assert client.get(f"/api/artists/{band['id']}/tiers").json() == []
    assert client.get(f"/api/artists/{band['id']}").json()["acceptsSubscriptions"] is False


def test_retiring_middle_tier_keeps_the_others_in_order(client: TestClient, band, manager) -> None:
    tiers = [_tier(client, manager, band["id"], name).json() for name in ("Bronze", "Silver", "Gold")]

    assert client.delete(f"/api/subscription-tiers/{tiers[1]['id']}", headers=manager.headers).status_code == 200

    listed = client.get(f"/api/artists/{band['id']}/tiers").json()
    assert [(t["name"], t["order"]) for t in listed] == [("Bronze", 1), ("Gold", 3)]
    assert client.get(f"/api/artists/{band['id']}").json()["acceptsSubscriptions"] is True


def test_new_tier_takes_lowest_free_order_after_retirement(client: TestClient, band, manager) -> None:
    tiers = [_tier(client, manager, band["id"], f"T{i}").json() for i in range(3)]
    client.delete(f"/api/subscription-tiers/{tiers[0]['id']}", headers=manager.headers)

    replacement = _tier(client, manager, band["id"], "Fresh")

    assert replacement.status_code == 201, replacement.text
    assert replacement.json()["order"] == 1
    listed = client.get(f"/api/artists/{band['id']}/tiers").json()
    assert [t["name"] for t in listed] == ["Fresh", "T1", "T2"]


# ---------------------------------------------------------------------------
# subscriptions
# ---------------------------------------------------------------------------


def test_subscribe_requires_accepting_artist(client: TestClient, make_user, band, manager) -> None:
    tier = _tier(client, manager, band["id"], "Basic").json()
    client.patch(f"/api/artists/{band['id']}", json={"acceptsSubscriptions": False}, headers=manager.headers)

    fan = make_user("fan")
    response = _subscribe(client, fan, band["id"], tier["id"])
    assert response.status_code == 400
    assert response.json()["detail"] == "This artist does not accept subscriptions"


def test_subscription_lifecycle(client: TestClient, make_user, band, manager) -> None:
    basic = _tier(client, manager, band["id"], "Basic", price=2.5).json()
    gold = _tier(client, manager, band["id"], "Gold", price=9.99).json()
    fan = make_user("fan")

    created = _subscribe(client, fan, band["id"], basic["id"])
    assert created.status_code == 201
    sub = created.json()
    assert sub["status"] == "active"
    assert sub["autoRenew"] is True
    assert sub["tier"]["name"] == "Basic"
    assert client.get(f"/api/follows/counts/{band['id']}").json()["subscriberCount"] == 1

    duplicate = _subscribe(client, fan, band["id"], gold["id"])
    assert duplicate.status_code == 400

    check = client.get(f"/api/subscriptions/check/{band['id']}", headers=fan.headers).json()
    assert check["subscribed"] is True
    assert check["hasAccess"] is True

    same_tier = client.put(
        f"/api/subscriptions/{sub['id']}/change-tier", json={"newTierId": basic["id"]}, headers=fan.headers
    )
    assert same_tier.status_code == 400
    changed = client.put(
        f"/api/subscriptions/{sub['id']}/change-tier", json={"newTierId": gold["id"]}, headers=fan.headers
    )
    assert changed.json()["tierId"] == gold["id"]

    canceled = client.put(
        f"/api/subscriptions/{sub['id']}/cancel", json={"cancelReason": "too pricey"}, headers=fan.headers
    ).json()
    assert canceled["status"] == "canceled"
    assert canceled["autoRenew"] is False
    assert canceled["cancelReason"] == "too pricey"
    assert client.get(f"/api/follows/counts/{band['id']}").json()["subscriberCount"] == 0

    still_paid = client.get(f"/api/subscriptions/check/{band['id']}", headers=fan.headers).json()
    assert still_paid["subscribed"] is False
    assert still_paid["hasAccess"] is True

    assert client.put(f"/api/subscriptions/{sub['id']}/cancel", headers=fan.headers).status_code == 400

    renewed = _subscribe(client, fan, band["id"], basic["id"])
    assert renewed.status_code == 201
    assert renewed.json()["id"] == sub["id"]
    assert renewed.json()["canceledAt"] is None
    assert len(client.get("/api/subscriptions/my", headers=fan.headers).json()) == 1


def test_subscription_is_private_to_its_owner(client: TestClient, make_user, admin, band, manager) -> None:
    tier = _tier(client, manager, band["id"], "Basic").json()
    fan = make_user("fan")
    other = make_user("other")
    sub = _subscribe(client, fan, band["id"], tier["id"]).json()

    assert client.get(f"/api/subscriptions/{sub['id']}", headers=other.headers).status_code == 403
    assert client.put(f"/api/subscriptions/{sub['id']}/cancel", headers=other.headers).status_code == 403
    assert client.get(f"/api/subscriptions/{sub['id']}", headers=admin.headers).status_code == 200


def test_artist_subscriber_stats(client: TestClient, make_user, band, manager) -> None:
    basic = _tier(client, manager, band["id"], "Basic", price=2.5).json()
    gold = _tier(client, manager, band["id"], "Gold", price=10).json()
    for name, tier in (("ann", basic), ("ben", basic), ("cat", gold)):
        assert _subscribe(client, make_user(name), band["id"], tier["id"]).status_code == 201

    fan = make_user("fan")
    assert client.get(f"/api/subscriptions/artist/{band['id']}", headers=fan.headers).status_code == 403

    stats = client.get(f"/api/subscriptions/artist/{band['id']}", headers=manager.headers).json()
    assert stats["totalSubscribers"] == 3
    assert {t["name"]: t["count"] for t in stats["tiers"]} == {"Basic": 2, "Gold": 1}
    assert stats["monthlyRevenue"] == 15.0
    assert {s["user"]["username"] for s in stats["subscribers"]} == {"ann", "ben", "cat"}
