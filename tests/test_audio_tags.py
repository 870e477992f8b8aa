from __future__ import annotations

from pathlib import Path

import pytest

from src.music_api.audio_tags import AudioTags, _leading_int, read_audio_tags


@pytest.mark.parametrize(
    "raw, expected",
    [("3/12", 3), ("2019-05-01", 2019), ("07", 7), ("side A", None), ("", None), (None, None)],
)
def test_leading_int(raw, expected) -> None:
    assert _leading_int(raw) == expected


def test_unrecognised_file_yields_none(tmp_path: Path) -> None:
    path = tmp_path / "notes.mp3"
    path.write_bytes(b"definitely not audio")
    assert read_audio_tags(path) is None


def test_missing_file_yields_none(tmp_path: Path) -> None:
    assert read_audio_tags(tmp_path / "gone.mp3") is None


def test_as_dict_uses_camel_case_keys() -> None:
    tags = AudioTags(title="Song", artist="Band", track_number=4, duration=180)
    assert tags.as_dict() == {
        "title": "Song",
        "artist": "Band",
        "album": None,
        "genre": None,
        "trackNumber": 4,
        "year": None,
        "duration": 180,
    }
