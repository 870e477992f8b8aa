from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def band(make_artist):
    return make_artist("Band")


@pytest.fixture
def manager(make_user, link_member, band):
    user = make_user("manager")
    link_member(user, band["id"], "management")
    return user


@pytest.fixture
def tiers(client: TestClient, band, manager):
    created = {}
    for name, price in (("basic", 2.99), ("gold", 9.99)):
        response = client.post(
            "/api/subscription-tiers",
            json={"artistId": band["id"], "name": name, "price": price},
            headers=manager.headers,
        )
        assert response.status_code == 201, response.text
        created[name] = response.json()
    return created


def _subscriber(client: TestClient, make_user, band, tier, name: str):
    user = make_user(name)
    response = client.post(
        "/api/subscriptions", json={"artistId": band["id"], "tierId": tier["id"]}, headers=user.headers
    )
    assert response.status_code == 201, response.text
    return user


def _content(client: TestClient, manager, band, title: str, **extra) -> dict:
    payload = {"artistId": band["id"], "title": title, "contentType": "video", "contentUrl": "https://x/v.mp4", **extra}
    response = client.post("/api/exclusive-content", json=payload, headers=manager.headers)
    assert response.status_code == 201, response.text
    return response.json()


def _event(client: TestClient, manager, band, title: str, date: str, **extra):
    payload = {"artistId": band["id"], "title": title, "date": date, **extra}
    return client.post("/api/artist-events", json=payload, headers=manager.headers)


# ---------------------------------------------------------------------------
# exclusive content
# ---------------------------------------------------------------------------


def test_gated_content_needs_the_tier(client: TestClient, make_user, band, manager, tiers) -> None:
    item = _content(client, manager, band, "Backstage", minimumTierId=tiers["gold"]["id"])
    url = f"/api/exclusive-content/{item['id']}"

    gold_fan = _subscriber(client, make_user, band, tiers["gold"], "goldie")
    basic_fan = _subscriber(client, make_user, band, tiers["basic"], "basil")

    assert client.get(url, headers=gold_fan.headers).status_code == 200
    denied = client.get(url, headers=basic_fan.headers)
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Subscription required to access this content"
    assert client.get(url).status_code == 403
    assert client.get(url, headers=manager.headers).status_code == 200


def test_listing_filters_per_viewer(client: TestClient, make_user, band, manager, tiers) -> None:
    _content(client, manager, band, "Teaser", isPublic=True)
    _content(client, manager, band, "Gold only", minimumTierId=tiers["gold"]["id"])
    _content(client, manager, band, "Old", isPublic=True, expiresAt="2000-01-01T00:00:00Z")

    url = f"/api/exclusive-content/artist/{band['id']}"
    anonymous = {c["title"] for c in client.get(url).json()}
    assert anonymous == {"Teaser"}

    gold_fan = _subscriber(client, make_user, band, tiers["gold"], "goldie")
    assert {c["title"] for c in client.get(url, headers=gold_fan.headers).json()} == {"Teaser", "Gold only"}
    assert len(client.get(url, headers=manager.headers).json()) == 3


def test_expired_content_is_hidden_from_fans(client: TestClient, make_user, band, manager) -> None:
    item = _content(client, manager, band, "Old", isPublic=True, expiresAt="2000-01-01T00:00:00Z")
    fan = make_user("fan")

    assert client.get(f"/api/exclusive-content/{item['id']}", headers=fan.headers).status_code == 404
    assert client.get(f"/api/exclusive-content/{item['id']}", headers=manager.headers).status_code == 200


def test_views_are_counted(client: TestClient, band, manager) -> None:
    item = _content(client, manager, band, "Teaser", isPublic=True)
    client.get(f"/api/exclusive-content/{item['id']}")
    second = client.get(f"/api/exclusive-content/{item['id']}").json()
    assert second["viewCount"] == 2


def test_content_management_rules(client: TestClient, make_user, make_artist, band, manager, tiers) -> None:
    other = make_artist("Other")
    foreign_tier = client.post(
        "/api/exclusive-content",
        json={
            "artistId": other["id"],
            "title": "x",
            "contentType": "text",
            "contentUrl": "u",
            "minimumTierId": tiers["gold"]["id"],
        },
        headers=manager.headers,
    )
    assert foreign_tier.status_code == 403

    item = _content(client, manager, band, "Draft")
    bad_tier = client.patch(
        f"/api/exclusive-content/{item['id']}", json={"minimumTierId": other["id"]}, headers=manager.headers
    )
    assert bad_tier.status_code == 400

    fan = make_user("fan")
    assert client.delete(f"/api/exclusive-content/{item['id']}", headers=fan.headers).status_code == 403
    deleted = client.delete(f"/api/exclusive-content/{item['id']}", headers=manager.headers)
    assert deleted.json() == {"message": "Content deleted successfully"}
    assert client.get(f"/api/exclusive-content/{item['id']}").status_code == 404


# ---------------------------------------------------------------------------
# events
# ---------------------------------------------------------------------------


def test_events_are_public_by_default_and_sorted(client: TestClient, band, manager) -> None:
    _event(client, manager, band, "Later", "2099-06-01T20:00:00Z")
    _event(client, manager, band, "Sooner", "2099-01-01T20:00:00Z")
    _event(client, manager, band, "Past", "2001-01-01T20:00:00Z")

    everything = client.get(f"/api/artist-events/artist/{band['id']}").json()
    assert [e["title"] for e in everything] == ["Past", "Sooner", "Later"]
    assert all(e["isPublic"] for e in everything)

    upcoming = client.get(f"/api/artist-events/artist/{band['id']}", params={"upcoming": "true"}).json()
    assert [e["title"] for e in upcoming] == ["Sooner", "Later"]


def test_gated_event(client: TestClient, make_user, band, manager, tiers) -> None:
    created = _event(
        client, manager, band, "Meet and greet", "2099-01-01T18:00:00Z",
        isPublic=False, minimumTierId=tiers["basic"]["id"],
    )
    assert created.status_code == 201
    url = f"/api/artist-events/{created.json()['id']}"

    assert client.get(url).status_code == 403
    fan = _subscriber(client, make_user, band, tiers["basic"], "basil")
    assert client.get(url, headers=fan.headers).status_code == 200
    assert client.get(f"/api/artist-events/artist/{band['id']}").json() == []


def test_event_date_validation(client: TestClient, band, manager) -> None:
    backwards = _event(
        client, manager, band, "Tour", "2099-05-02T00:00:00Z", endDate="2099-05-01T00:00:00Z"
    )
    assert backwards.status_code == 400
    assert backwards.json()["detail"] == "End date cannot be before the event date"

    event = _event(client, manager, band, "Tour", "2099-05-02T00:00:00Z").json()
    patch = client.patch(
        f"/api/artist-events/{event['id']}", json={"endDate": "2099-04-01T00:00:00Z"}, headers=manager.headers
    )
    assert patch.status_code == 400

    moved = client.patch(f"/api/artist-events/{event['id']}", json={"venue": "Arena"}, headers=manager.headers)
    assert moved.json()["venue"] == "Arena"

    assert client.delete(f"/api/artist-events/{event['id']}", headers=manager.headers).json() == {
        "message": "Event deleted successfully"
    }
