from __future__ import annotations

import uuid
from pathlib import Path
from typing import Callable, Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update

from src.music_api.auth import _pwd_context
from src.music_api.config import get_settings
from src.music_api.db import get_db_session, reset_engine_for_tests
from src.music_api.main import app
from src.music_api.models import User
from tests.helpers import DISTRIBUTOR_KEY, FAKE_MP3, ApiUser


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'music.db'}")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("MEDIA_ROOT", str(tmp_path / "media"))
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("DISTRIBUTOR_API_KEY", DISTRIBUTOR_KEY)
    monkeypatch.delenv("LASTFM_API_KEY", raising=False)

    get_settings.cache_clear()
    _pwd_context.cache_clear()
    reset_engine_for_tests()
    yield tmp_path
    reset_engine_for_tests()
    get_settings.cache_clear()
    _pwd_context.cache_clear()


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client: TestClient) -> Callable[..., ApiUser]:
    counter = {"n": 0}

    def _make(username: str = "", *, password: str = "secret123", admin: bool = False) -> ApiUser:
        counter["n"] += 1
        name = username or f"user{counter['n']}"
        response = client.post(
            "/api/auth/register",
            json={
                "firstName": name.title(),
                "lastName": "Tester",
                "username": name,
                "email": f"{name}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        user = ApiUser(id=body["user"]["id"], username=name, token=body["token"])
        if admin:
            with get_db_session() as db:
                db.execute(update(User).where(User.id == uuid.UUID(user.id)).values(is_admin=True))
        return user

    return _make


@pytest.fixture
def admin(make_user: Callable[..., ApiUser]) -> ApiUser:
    return make_user("root", admin=True)


@pytest.fixture
def make_artist(client: TestClient, admin: ApiUser) -> Callable[..., Dict]:
    def _make(name: str, **extra) -> Dict:
        payload = {"name": name, "bio": f"{name} bio", "genres": ["Rock"], **extra}
        response = client.post("/api/artists", json=payload, headers=admin.headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def link_member(client: TestClient, admin: ApiUser) -> Callable[[ApiUser, str], None]:
    def _link(user: ApiUser, artist_id: str, role: str = "band-member") -> None:
        response = client.post(
            "/api/admin/link-user-artist",
            json={"userId": user.id, "artistId": artist_id, "role": role},
            headers=admin.headers,
        )
        assert response.status_code == 200, response.text

    return _link


@pytest.fixture
def upload_track(client: TestClient, admin: ApiUser) -> Callable[..., Dict]:
    def _upload(artist_id: str, *, title: str = "Song", headers: Dict[str, str] = None, **form) -> Dict:
        data = {"artistId": artist_id, "title": title, **{k: str(v) for k, v in form.items()}}
        response = client.post(
            "/api/tracks/upload",
            data=data,
            files={"file": (f"{title}.mp3", FAKE_MP3, "audio/mpeg")},
            headers=headers or admin.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _upload
