from __future__ import annotations

from fastapi.testclient import TestClient


def test_follow_and_unfollow_user(client: TestClient, make_user) -> None:
    ada = make_user("ada")
    bob = make_user("bob")

    follow = client.post(f"/api/follows/users/{bob.id}", headers=ada.headers)
    assert follow.status_code == 200
    assert client.get(f"/api/follows/counts/{bob.id}").json() == {
        "id": bob.id,
        "kind": "user",
        "followerCount": 1,
        "subscriberCount": None,
    }

    again = client.post(f"/api/follows/users/{bob.id}", headers=ada.headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "You are already following this user"

    status = client.get("/api/follows/status", headers=ada.headers).json()
    assert [u["username"] for u in status["users"]] == ["bob"]

    assert client.delete(f"/api/follows/users/{bob.id}", headers=ada.headers).status_code == 200
    assert client.get(f"/api/follows/counts/{bob.id}").json()["followerCount"] == 0

    not_following = client.delete(f"/api/follows/users/{bob.id}", headers=ada.headers)
    assert not_following.status_code == 400
    assert not_following.json()["detail"] == "You are not following this user"


def test_cannot_follow_self(client: TestClient, make_user) -> None:
    ada = make_user("ada")
    response = client.post(f"/api/follows/users/{ada.id}", headers=ada.headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot follow yourself"


def test_follow_artist_updates_counter(client: TestClient, make_user, make_artist) -> None:
    fan = make_user("fan")
    artist = make_artist("Band")

    assert client.post(f"/api/follows/artists/{artist['id']}", headers=fan.headers).status_code == 200
    assert client.post(f"/api/follows/artists/{artist['id']}", headers=fan.headers).status_code == 400

    counts = client.get(f"/api/follows/counts/{artist['id']}").json()
    assert counts["kind"] == "artist"
    assert counts["followerCount"] == 1
    assert counts["subscriberCount"] == 0

    status = client.get("/api/follows/status", headers=fan.headers).json()
    assert [a["name"] for a in status["artists"]] == ["Band"]

    assert client.delete(f"/api/follows/artists/{artist['id']}", headers=fan.headers).status_code == 200
    assert client.get(f"/api/artists/{artist['id']}").json()["followerCount"] == 0


def test_follow_unknown_targets(client: TestClient, make_user) -> None:
    fan = make_user("fan")
    missing = "00000000-0000-0000-0000-000000000000"

    assert client.post(f"/api/follows/users/{missing}", headers=fan.headers).status_code == 404
    assert client.post(f"/api/follows/artists/{missing}", headers=fan.headers).status_code == 404
    assert client.get(f"/api/follows/counts/{missing}").status_code == 404
    assert client.get("/api/follows/counts/garbage").status_code == 404
    assert client.post(f"/api/follows/artists/{missing}").status_code == 401
