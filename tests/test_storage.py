from __future__ import annotations

from pathlib import Path

import pytest

from src.music_api.storage import (
    TRACKS_DIR,
    delete_media,
    parse_range_header,
    resolve_media_url,
    sanitize_filename,
    store_file,
)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("bytes=0-99", (0, 99)),
        ("bytes=100-", (100, 999)),
        ("bytes=-200", (800, 999)),
        ("bytes=900-5000", (900, 999)),
        ("bytes=-5000", (0, 999)),
        ("bytes=1000-", None),
        ("bytes=50-10", None),
        ("bytes=0-1,5-9", None),
        ("items=0-9", None),
        ("bytes=abc-", None),
        ("", None),
    ],
)
def test_parse_range_header(header: str, expected) -> None:
    assert parse_range_header(header, 1000) == expected


def test_sanitize_filename() -> None:
    assert sanitize_filename("../../etc/passwd") == ".._.._etc_passwd"
    assert sanitize_filename("my song (live).mp3") == "my_song_live_.mp3"
    assert sanitize_filename("   ") == "upload.mp3"


def test_store_resolve_and_delete(_isolated_env: Path) -> None:
    url, path = store_file(b"ID3data", "song.mp3", TRACKS_DIR)

    assert url.startswith("/media/tracks/")
    assert url.endswith("_song.mp3")
    assert path.read_bytes() == b"ID3data"
    assert resolve_media_url(url) == path.resolve()

    assert delete_media(url) is True
    assert not path.exists()
    assert delete_media(url) is False


def test_resolve_rejects_foreign_and_escaping_urls() -> None:
    assert resolve_media_url("https://cdn.example.com/a.mp3") is None
    assert resolve_media_url("/media/../secrets.txt") is None
    assert resolve_media_url("") is None
