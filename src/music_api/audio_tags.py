"""Embedded tag and stream-info reading for uploaded audio files (mutagen)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import mutagen

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioTags:
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    genre: Optional[str] = None
    track_number: Optional[int] = None
    year: Optional[int] = None
    duration: int = 0

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "genre": self.genre,
            "trackNumber": self.track_number,
            "year": self.year,
            "duration": self.duration,
        }


def _first(tags: Any, key: str) -> Optional[str]:
    if tags is None:
        return None
    try:
        values = tags.get(key)
    except (KeyError, ValueError):
        return None
    if not values:
        return None
    value = values[0] if isinstance(values, (list, tuple)) else values
    text = str(value).strip()
    return text or None


def _leading_int(value: Optional[str]) -> Optional[int]:
    # "3/12" -> 3, "2019-05-01" -> 2019
    if not value:
        return None
    digits = ""
    for ch in value.strip():
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else None


# PUBLIC_INTERFACE
def read_audio_tags(path: Path) -> Optional[AudioTags]:
    """
    Read easy tags and the decoded stream length of an audio file.

    Returns None when mutagen cannot identify or parse the file.
    """
    try:
        audio = mutagen.File(str(path), easy=True)
    except Exception as exc:  # mutagen raises format specific errors
        logger.info("audio_tags_unreadable: path=%s exc=%s", str(path), exc.__class__.__name__)
        return None

    if audio is None:
        logger.info("audio_tags_unknown_format: path=%s", str(path))
        return None

    length = getattr(getattr(audio, "info", None), "length", 0) or 0
    tags = audio.tags
    return AudioTags(
        title=_first(tags, "title"),
        artist=_first(tags, "artist") or _first(tags, "albumartist"),
        album=_first(tags, "album"),
        genre=_first(tags, "genre"),
        track_number=_leading_int(_first(tags, "tracknumber")),
        year=_leading_int(_first(tags, "date")),
        duration=int(round(length)),
    )
