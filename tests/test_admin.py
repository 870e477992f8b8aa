from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.music_api import routes_tracks


@pytest.fixture(autouse=True)
def _no_tags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(routes_tracks, "read_audio_tags", lambda path: None)


def test_admin_routes_reject_regular_users(client: TestClient, make_user) -> None:
    user = make_user("plain")

    response = client.delete("/api/admin/tracks/all", headers=user.headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Admin privileges required."
    assert client.delete("/api/admin/tracks/all").status_code == 401


def test_bulk_track_deletes(client: TestClient, admin, make_artist, upload_track) -> None:
    first = make_artist("First")
    second = make_artist("Second")
    a1 = upload_track(first["id"], title="A1")
    upload_track(first["id"], title="A2")
    b1 = upload_track(second["id"], title="B1")
    b2 = upload_track(second["id"], title="B2")

    by_artist = client.delete(f"/api/admin/tracks/artist/{first['id']}", headers=admin.headers).json()
    assert by_artist == {"message": "Successfully deleted 2 tracks from artist", "deletedCount": 2}
    assert client.get(f"/api/tracks/{a1['id']}").status_code == 404

    selected = client.post(
        "/api/admin/tracks/delete",
        json={"trackIds": [b1["id"], "00000000-0000-0000-0000-000000000000"]},
        headers=admin.headers,
    ).json()
    assert selected["deletedCount"] == 1

    everything = client.delete("/api/admin/tracks/all", headers=admin.headers).json()
    assert everything == {"message": "Successfully deleted 1 tracks", "deletedCount": 1}
    assert client.get(f"/api/tracks/{b2['id']}").status_code == 404


def test_link_and_unlink_members(client: TestClient, admin, make_user, make_artist) -> None:
    user = make_user("member")
    band = make_artist("Band")
    side = make_artist("Side Project")
    payload = {"userId": user.id, "artistId": band["id"], "role": "management"}

    linked = client.post("/api/admin/link-user-artist", json=payload, headers=admin.headers)
    assert linked.status_code == 200
    assert linked.json()["role"] == "management"
    assert linked.json()["addedBy"] == "root"
    assert client.get("/api/users/me", headers=user.headers).json()["isArtist"] is True

    again = client.post("/api/admin/link-user-artist", json=payload, headers=admin.headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "User is already linked to this artist"

    client.post(
        "/api/admin/link-user-artist", json={"userId": user.id, "artistId": side["id"]}, headers=admin.headers
    )
    members = client.get(f"/api/admin/artist-members/{side['id']}", headers=admin.headers).json()
    assert [(m["user"]["username"], m["role"]) for m in members] == [("member", "band-member")]

    unlink = {"userId": user.id, "artistId": band["id"]}
    assert client.post("/api/admin/unlink-user-artist", json=unlink, headers=admin.headers).json() == {
        "message": "User successfully unlinked from artist"
    }
    assert client.get("/api/users/me", headers=user.headers).json()["isArtist"] is True

    client.post("/api/admin/unlink-user-artist", json={"userId": user.id, "artistId": side["id"]}, headers=admin.headers)
    assert client.get("/api/users/me", headers=user.headers).json()["isArtist"] is False

    missing = client.post("/api/admin/unlink-user-artist", json=unlink, headers=admin.headers)
    assert missing.status_code == 404


def test_role_changes_apply_to_the_next_request(client: TestClient, admin, make_user) -> None:
    user = make_user("helper")

    assert client.delete("/api/admin/tracks/all", headers=user.headers).status_code == 403

    promoted = client.patch(f"/api/admin/users/{user.id}/roles", json={"isAdmin": True}, headers=admin.headers)
    assert promoted.status_code == 200
    assert promoted.json()["isAdmin"] is True

    # same token, fresh role flags
    assert client.delete("/api/admin/tracks/all", headers=user.headers).status_code == 200


def test_admin_cannot_drop_own_admin_role(client: TestClient, admin) -> None:
    response = client.patch(f"/api/admin/users/{admin.id}/roles", json={"isAdmin": False}, headers=admin.headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Admins cannot remove their own admin role"

    null_flag = client.patch(f"/api/admin/users/{admin.id}/roles", json={"isArtist": None}, headers=admin.headers)
    assert null_flag.status_code == 400
