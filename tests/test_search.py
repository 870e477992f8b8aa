from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.music_api import routes_search, routes_tracks


@pytest.fixture(autouse=True)
def _no_tags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(routes_tracks, "read_audio_tags", lambda path: None)


@pytest.fixture
def catalog(client: TestClient, admin, make_artist, upload_track):
    artist = make_artist("Night Drive", genres=["Synthwave"])
    make_artist("Daylight")
    tracks = {
        "slow": upload_track(artist["id"], title="Night Slow", genre="Ambient"),
        "fast": upload_track(artist["id"], title="Night Fast", genre="Synthwave"),
        "noon": upload_track(artist["id"], title="Noon", genre="Synthwave"),
    }
    for _ in range(3):
        client.post(f"/api/tracks/{tracks['fast']['id']}/play")
    client.post(
        "/api/albums",
        json={"title": "Nights", "artistId": artist["id"], "releaseDate": "2021-01-01T00:00:00Z"},
        headers=admin.headers,
    )
    return tracks


def test_track_search_matches_substring_case_insensitively(client: TestClient, catalog) -> None:
    page = client.get("/api/search/tracks", params={"q": "NIGHT"}).json()
    assert [t["title"] for t in page["results"]] == ["Night Fast", "Night Slow"]
    assert page["total"] == 2
    assert page["totalPages"] == 1


def test_track_search_sort_and_genre(client: TestClient, catalog) -> None:
    by_plays = client.get("/api/search/tracks", params={"q": "n", "sort": "plays"}).json()
    assert by_plays["results"][0]["title"] == "Night Fast"

    synth = client.get("/api/search/tracks", params={"q": "n", "genre": "synthwave"}).json()
    assert {t["title"] for t in synth["results"]} == {"Night Fast", "Noon"}

    assert client.get("/api/search/tracks", params={"q": "n", "sort": "random"}).status_code == 400


def test_search_pagination(client: TestClient, catalog) -> None:
    first = client.get("/api/search/tracks", params={"q": "n", "limit": 2}).json()
    second = client.get("/api/search/tracks", params={"q": "n", "limit": 2, "page": 2}).json()
    assert first["totalPages"] == 2
    assert len(first["results"]) == 2
    assert len(second["results"]) == 1


def test_artist_search_matches_genres(client: TestClient, catalog) -> None:
    page = client.get("/api/search/artists", params={"q": "synth"}).json()
    assert [a["name"] for a in page["results"]] == ["Night Drive"]


def test_album_search_reports_track_counts(client: TestClient, catalog) -> None:
    page = client.get("/api/search/albums", params={"q": "nights"}).json()
    assert [a["title"] for a in page["results"]] == ["Nights"]
    assert page["results"][0]["trackCount"] == 0


def test_playlist_and_user_search(client: TestClient, make_user) -> None:
    owner = make_user("nightowl")
    client.post("/api/playlists", json={"name": "Night mix"}, headers=owner.headers)
    client.post("/api/playlists", json={"name": "Night secret", "isPublic": False}, headers=owner.headers)

    playlists = client.get("/api/search/playlists", params={"q": "night"}).json()
    assert [p["name"] for p in playlists["results"]] == ["Night mix"]

    liked = client.get("/api/search/playlists", params={"q": "liked"}).json()
    assert liked["total"] == 0

    users = client.get("/api/search/users", params={"q": "OWL"}).json()
    assert [u["username"] for u in users["results"]] == ["nightowl"]
    assert "email" not in users["results"][0]


def test_empty_query_is_rejected(client: TestClient) -> None:
    for url in ("/api/search", "/api/search/tracks", "/api/search/users"):
        response = client.get(url, params={"q": "   "})
        assert response.status_code == 400
        assert response.json()["detail"] == "Search query is required"


def test_global_search_counts(client: TestClient, catalog) -> None:
    body = client.get("/api/search", params={"q": "night", "limit": 1}).json()

    assert body["query"] == "night"
    assert len(body["results"]["tracks"]) == 1
    assert body["counts"]["tracks"] == 2
    assert body["counts"]["artists"] == 1
    assert body["counts"]["albums"] == 1
    assert body["counts"]["total"] == sum(v for k, v in body["counts"].items() if k != "total")
    assert body["results"]["external"] is None


def test_global_search_with_external_results(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_search(query, limit):
        calls.append((query, limit))
        return [{"title": "Night Call", "artist": "Kavinsky", "listeners": 10, "url": "https://last.fm/x"}]

    monkeypatch.setattr(routes_search, "search_tracks", fake_search)

    body = client.get("/api/search", params={"q": "night", "external": "true"}).json()

    assert calls == [("night", 5)]
    assert body["results"]["external"] == [
        {"title": "Night Call", "artist": "Kavinsky", "listeners": 10, "url": "https://last.fm/x", "source": "lastfm"}
    ]


def test_external_lookup_failure_yields_empty_list(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(routes_search, "search_tracks", lambda query, limit: None)
    body = client.get("/api/search", params={"q": "night", "external": "true"}).json()
    assert body["results"]["external"] == []
