from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.music_api import routes_tracks


@pytest.fixture(autouse=True)
def _no_tags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(routes_tracks, "read_audio_tags", lambda path: None)


@pytest.fixture
def tracks(make_artist, upload_track):
    artist = make_artist("Band")
    return [upload_track(artist["id"], title=f"T{i}", duration=60 * (i + 1)) for i in range(3)]


def _create(client: TestClient, user, name: str = "Mix", **extra) -> dict:
    response = client.post("/api/playlists", json={"name": name, **extra}, headers=user.headers)
    assert response.status_code == 201, response.text
    return response.json()


def _liked_id(client: TestClient, user) -> str:
    return client.get("/api/users/me", headers=user.headers).json()["likedPlaylistId"]


def test_add_and_remove_tracks_keeps_positions_dense(client: TestClient, make_user, tracks) -> None:
    owner = make_user("owner")
    playlist = _create(client, owner)

    for track in tracks:
        response = client.post(
            f"/api/playlists/{playlist['id']}/tracks", json={"trackId": track["id"]}, headers=owner.headers
        )
        assert response.status_code == 200

    detail = client.get(f"/api/playlists/{playlist['id']}").json()
    assert [e["position"] for e in detail["tracks"]] == [0, 1, 2]
    assert detail["totalDuration"] == 60 + 120 + 180

    removed = client.delete(f"/api/playlists/{playlist['id']}/tracks/{tracks[0]['id']}", headers=owner.headers)
    assert removed.status_code == 200
    body = removed.json()
    assert [e["track"]["title"] for e in body["tracks"]] == ["T1", "T2"]
    assert [e["position"] for e in body["tracks"]] == [0, 1]
    assert body["totalDuration"] == 300


def test_track_duration_change_follows_into_playlists(client: TestClient, admin, make_user, tracks) -> None:
    owner = make_user("owner")
    playlist = _create(client, owner)
    url = f"/api/playlists/{playlist['id']}/tracks"
    client.post(url, json={"trackId": tracks[1]["id"]}, headers=owner.headers)
    client.post(url, json={"trackId": tracks[2]["id"]}, headers=owner.headers)

    patched = client.patch(f"/api/tracks/{tracks[1]['id']}", json={"duration": 30}, headers=admin.headers)
    assert patched.status_code == 200
    assert client.get(f"/api/playlists/{playlist['id']}", headers=owner.headers).json()["totalDuration"] == 30 + 180

    client.delete(f"{url}/{tracks[1]['id']}", headers=owner.headers)
    emptied = client.delete(f"{url}/{tracks[2]['id']}", headers=owner.headers).json()
    assert emptied["tracks"] == []
    assert emptied["totalDuration"] == 0


def test_duplicate_track_is_rejected(client: TestClient, make_user, tracks) -> None:
    owner = make_user("owner")
    playlist = _create(client, owner)
    url = f"/api/playlists/{playlist['id']}/tracks"

    client.post(url, json={"trackId": tracks[0]["id"]}, headers=owner.headers)
    again = client.post(url, json={"trackId": tracks[0]["id"]}, headers=owner.headers)

    assert again.status_code == 400
    assert again.json()["detail"] == "Track already in playlist"


def test_removing_missing_track_is_not_found(client: TestClient, make_user, tracks) -> None:
    owner = make_user("owner")
    playlist = _create(client, owner)
    response = client.delete(f"/api/playlists/{playlist['id']}/tracks/{tracks[0]['id']}", headers=owner.headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Track not in playlist"


def test_only_owner_modifies(client: TestClient, make_user, tracks) -> None:
    owner = make_user("owner")
    other = make_user("other")
    playlist = _create(client, owner)

    assert client.patch(f"/api/playlists/{playlist['id']}", json={"name": "X"}, headers=other.headers).status_code == 403
    assert client.delete(f"/api/playlists/{playlist['id']}", headers=other.headers).status_code == 403
    add = client.post(
        f"/api/playlists/{playlist['id']}/tracks", json={"trackId": tracks[0]["id"]}, headers=other.headers
    )
    assert add.status_code == 403


def test_private_playlist_visibility(client: TestClient, make_user) -> None:
    owner = make_user("owner")
    other = make_user("other")
    playlist = _create(client, owner, isPublic=False)

    assert client.get(f"/api/playlists/{playlist['id']}").status_code == 403
    assert client.get(f"/api/playlists/{playlist['id']}", headers=other.headers).status_code == 403
    assert client.get(f"/api/playlists/{playlist['id']}", headers=owner.headers).status_code == 200

    follow = client.post(f"/api/playlists/{playlist['id']}/follow", headers=other.headers)
    assert follow.status_code == 403


def test_system_playlist_rules(client: TestClient, make_user) -> None:
    user = make_user("owner")
    liked = _liked_id(client, user)

    rename = client.patch(f"/api/playlists/{liked}", json={"name": "Faves"}, headers=user.headers)
    assert rename.status_code == 400
    assert rename.json()["detail"] == "System playlists cannot be renamed"

    publish = client.patch(f"/api/playlists/{liked}", json={"isPublic": True}, headers=user.headers)
    assert publish.status_code == 400

    delete = client.delete(f"/api/playlists/{liked}", headers=user.headers)
    assert delete.status_code == 403
    assert delete.json()["detail"] == "System playlists cannot be deleted"

    describe = client.patch(f"/api/playlists/{liked}", json={"description": "mine"}, headers=user.headers)
    assert describe.status_code == 200


def test_update_rejects_unknown_and_null_fields(client: TestClient, make_user) -> None:
    user = make_user("owner")
    playlist = _create(client, user)

    unknown = client.patch(f"/api/playlists/{playlist['id']}", json={"ownerId": user.id}, headers=user.headers)
    assert unknown.status_code == 400

    null_name = client.patch(f"/api/playlists/{playlist['id']}", json={"name": None}, headers=user.headers)
    assert null_name.status_code == 400


def test_follow_toggle(client: TestClient, make_user) -> None:
    owner = make_user("owner")
    fan = make_user("fan")
    playlist = _create(client, owner)
    url = f"/api/playlists/{playlist['id']}/follow"

    own = client.post(url, headers=owner.headers)
    assert own.status_code == 400
    assert own.json()["detail"] == "Cannot follow your own playlist"

    first = client.post(url, headers=fan.headers).json()
    assert first == {"following": True, "followerCount": 1}
    mine = client.get("/api/playlists/me", headers=fan.headers).json()
    assert [p["id"] for p in mine["followed"]] == [playlist["id"]]
    detail = client.get(f"/api/playlists/{playlist['id']}", headers=fan.headers).json()
    assert detail["isFollowing"] is True

    second = client.post(url, headers=fan.headers).json()
    assert second == {"following": False, "followerCount": 0}


def test_duplicate_copies_tracks_as_private(client: TestClient, make_user, tracks) -> None:
    owner = make_user("owner")
    fan = make_user("fan")
    playlist = _create(client, owner, description="summer")
    for track in tracks[:2]:
        client.post(f"/api/playlists/{playlist['id']}/tracks", json={"trackId": track["id"]}, headers=owner.headers)

    response = client.post(f"/api/playlists/{playlist['id']}/duplicate", headers=fan.headers)

    assert response.status_code == 201
    copy = response.json()
    assert copy["name"] == "Mix (Copy)"
    assert copy["isPublic"] is False
    assert copy["ownerId"] == fan.id
    assert copy["description"] == "summer"
    assert [e["track"]["title"] for e in copy["tracks"]] == ["T0", "T1"]


def test_batch_update(client: TestClient, make_user) -> None:
    owner = make_user("owner")
    other = make_user("other")
    a = _create(client, owner, name="A")
    b = _create(client, owner, name="B")
    foreign = _create(client, other, name="C")

    ok = client.patch(
        "/api/playlists/batch",
        json={"playlistIds": [a["id"], b["id"]], "updates": {"color": "#ff0000"}},
        headers=owner.headers,
    )
    assert ok.status_code == 200
    assert {p["color"] for p in ok.json()} == {"#ff0000"}

    mixed = client.patch(
        "/api/playlists/batch",
        json={"playlistIds": [a["id"], foreign["id"]], "updates": {"color": "#000000"}},
        headers=owner.headers,
    )
    assert mixed.status_code == 403
    assert client.get(f"/api/playlists/{a['id']}").json()["color"] == "#ff0000"


def test_public_listing_excludes_private_and_system(client: TestClient, make_user) -> None:
    owner = make_user("owner")
    _create(client, owner, name="Open")
    _create(client, owner, name="Closed", isPublic=False)

    page = client.get("/api/playlists/public").json()
    assert [p["name"] for p in page["results"]] == ["Open"]
    assert page["total"] == 1
