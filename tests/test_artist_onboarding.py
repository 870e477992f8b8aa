from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.music_api import routes_artists, routes_tracks


@pytest.fixture(autouse=True)
def _quiet(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(routes_tracks, "read_audio_tags", lambda path: None)
    monkeypatch.setattr(routes_artists, "enrich_artist", lambda artist_id: None)


def _apply(client: TestClient, user, name: str, **extra):
    return client.post("/api/artists/apply", json={"artistName": name, **extra}, headers=user.headers)


def test_apply_creates_unverified_artist_managed_by_caller(client: TestClient, make_user) -> None:
    singer = make_user("singer")

    response = _apply(client, singer, "  Solo Act ", genres=["Folk", " "], bio="Quiet songs")

    assert response.status_code == 201, response.text
    artist = response.json()
    assert artist["name"] == "Solo Act"
    assert artist["genres"] == ["Folk"]
    assert artist["verifiedBy"] is None
    assert client.get("/api/users/me", headers=singer.headers).json()["isArtist"] is True

    update = client.patch(f"/api/artists/{artist['id']}", json={"bio": "Louder songs"}, headers=singer.headers)
    assert update.status_code == 200
    assert update.json()["bio"] == "Louder songs"


def test_apply_rules(client: TestClient, make_user) -> None:
    singer = make_user("singer")
    rival = make_user("rival")
    _apply(client, singer, "Solo Act")

    second = _apply(client, singer, "Side Project")
    assert second.status_code == 400
    assert second.json()["detail"] == "You are already linked to an artist profile"

    clash = _apply(client, rival, "solo act")
    assert clash.status_code == 400
    assert clash.json()["detail"] == "Artist with this name already exists"

    assert client.post("/api/artists/apply", json={"artistName": "Anon"}).status_code == 401


def test_dashboard_summarises_exclusive_catalog(client: TestClient, make_user, upload_track) -> None:
    singer = make_user("singer")
    artist = _apply(client, singer, "Solo Act").json()

    exclusive = upload_track(artist["id"], title="Secret", headers=singer.headers, isExclusive="true")
    upload_track(artist["id"], title="Open", headers=singer.headers)
    for _ in range(2):
        client.post(f"/api/tracks/{exclusive['id']}/play")

    client.post(
        "/api/exclusive-content",
        json={"artistId": artist["id"], "title": "Demo", "contentType": "audio", "contentUrl": "https://x/demo.mp3"},
        headers=singer.headers,
    )
    for title, date in (("Next", "2999-01-01T20:00:00Z"), ("Past", "2001-01-01T20:00:00Z")):
        client.post(
            "/api/artist-events",
            json={"artistId": artist["id"], "title": title, "date": date},
            headers=singer.headers,
        )
    client.post(
        "/api/subscription-tiers",
        json={"artistId": artist["id"], "name": "Fan club", "price": 3.5},
        headers=singer.headers,
    )

    response = client.get(f"/api/artists/{artist['id']}/dashboard", headers=singer.headers)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["exclusiveTrackCount"] == 1
    assert body["exclusiveTrackPlays"] == 2
    assert body["lastExclusiveUpload"] is not None
    assert body["exclusiveContentCount"] == 1
    assert body["upcomingEventCount"] == 1
    assert body["activeTierCount"] == 1
    assert body["subscriberCount"] == 0


def test_dashboard_is_for_managers_only(client: TestClient, admin, make_user) -> None:
    singer = make_user("singer")
    artist = _apply(client, singer, "Solo Act").json()
    url = f"/api/artists/{artist['id']}/dashboard"

    assert client.get(url, headers=make_user("fan").headers).status_code == 403
    assert client.get(url).status_code == 401
    assert client.get(url, headers=admin.headers).status_code == 200
    empty = client.get(url, headers=singer.headers).json()
    assert empty["exclusiveTrackCount"] == 0
    assert empty["lastExclusiveUpload"] is None
