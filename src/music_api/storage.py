"""
Local media storage for uploaded audio and cover images.

Files live under MEDIA_ROOT (tracks/ and covers/ subdirectories) and are
served back as static files under MEDIA_URL_PREFIX, e.g. /media/tracks/<name>.
Streaming goes through `stream_file`, which supports single HTTP Range
requests.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Iterator, Optional, Tuple

from fastapi import HTTPException, UploadFile
from starlette.responses import StreamingResponse

from src.music_api.config import get_settings

logger = logging.getLogger(__name__)

TRACKS_DIR = "tracks"
COVERS_DIR = "covers"
STREAM_CHUNK_BYTES = 1024 * 1024

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_RANGE = re.compile(r"^bytes=(\d*)-(\d*)$")
_MP3_CONTENT_TYPES = ("audio/mpeg", "application/octet-stream")


# PUBLIC_INTERFACE
def media_root() -> Path:
    """Absolute media directory; a relative MEDIA_ROOT is anchored at the project root."""
    configured = Path(get_settings().media_root)
    if not configured.is_absolute():
        configured = _PROJECT_ROOT / configured
    return configured.resolve()


# PUBLIC_INTERFACE
def sanitize_filename(name: str, default: str = "upload.mp3") -> str:
    """Reduce a client filename to letters, digits, dot, dash and underscore."""
    flat = name.strip().replace("\\", "_").replace("/", "_")
    return _UNSAFE_CHARS.sub("_", flat) or default


def _check_size(content: bytes, limit: int) -> None:
    if not content:
        raise HTTPException(status_code=400, detail="Empty file.")
    if len(content) > limit:
        raise HTTPException(status_code=413, detail="File too large.")


def _looks_like_mp3(content: bytes) -> bool:
    # ID3v2 tag or an MPEG frame sync word
    if content.startswith(b"ID3"):
        return True
    return len(content) >= 2 and content[0] == 0xFF and (content[1] & 0xE0) == 0xE0


# PUBLIC_INTERFACE
def validate_mp3(upload: UploadFile, content: bytes) -> Tuple[str, int]:
    """
    Check an artist track upload and return (safe filename, size).

    The filename must end in .mp3, the declared content type (when present)
    must be audio/mpeg or application/octet-stream, and the bytes must start
    with an ID3 tag or an MPEG frame header.
    """
    safe_name = sanitize_filename(upload.filename or "upload.mp3")
    if not safe_name.lower().endswith(".mp3"):
        raise HTTPException(status_code=400, detail="Only .mp3 files are supported.")

    declared = (upload.content_type or "").lower()
    if declared and not any(ct in declared for ct in _MP3_CONTENT_TYPES):
        raise HTTPException(status_code=400, detail="Invalid content type; expected audio/mpeg.")

    _check_size(content, get_settings().max_upload_bytes)
    if not _looks_like_mp3(content):
        raise HTTPException(status_code=400, detail="File does not look like a valid mp3.")
    return safe_name, len(content)


# PUBLIC_INTERFACE
def validate_audio(upload: UploadFile, content: bytes) -> Tuple[str, int]:
    """Looser check used for distributor ingestion: any audio/* content type."""
    if not (upload.content_type or "").lower().startswith("audio/"):
        raise HTTPException(status_code=400, detail="Only audio files are allowed!")
    _check_size(content, get_settings().max_upload_bytes)
    return sanitize_filename(upload.filename or "upload.mp3"), len(content)


# PUBLIC_INTERFACE
def validate_image(upload: UploadFile, content: bytes) -> Tuple[str, int]:
    """Cover images: image/* content type within MAX_IMAGE_BYTES."""
    if not (upload.content_type or "").lower().startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed!")
    _check_size(content, get_settings().max_image_bytes)
    return sanitize_filename(upload.filename or "cover.jpg", default="cover.jpg"), len(content)


# PUBLIC_INTERFACE
def store_file(content: bytes, safe_name: str, subdir: str) -> Tuple[str, Path]:
    """
    Write bytes under MEDIA_ROOT/<subdir> with a unique prefix.

    Returns:
        (public_url, absolute_path)
    """
    directory = media_root() / subdir
    directory.mkdir(parents=True, exist_ok=True)

    stored_name = f"{uuid.uuid4()}_{safe_name}"
    path = directory / stored_name
    try:
        path.write_bytes(content)
    except OSError:
        logger.exception("store_file_failed: path=%s", str(path))
        raise HTTPException(status_code=500, detail="Failed to store file.")
    return f"{get_settings().media_url_prefix}/{subdir}/{stored_name}", path


# PUBLIC_INTERFACE
def resolve_media_url(public_url: str) -> Optional[Path]:
    """
    Map a public media URL back to its on-disk path.

    Returns None for URLs outside the media prefix or paths that would escape
    MEDIA_ROOT.
    """
    prefix = get_settings().media_url_prefix + "/"
    if not public_url or not public_url.startswith(prefix):
        return None

    root = media_root()
    candidate = (root / public_url[len(prefix) :]).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    return candidate


# PUBLIC_INTERFACE
def delete_media(public_url: str) -> bool:
    """Remove a stored file; missing files are not an error."""
    path = resolve_media_url(public_url)
    if path is None or not path.is_file():
        return False
    try:
        path.unlink()
    except OSError as exc:
        logger.warning("delete_media_failed: path=%s exc=%s", str(path), exc.__class__.__name__)
        return False
    return True


# PUBLIC_INTERFACE
def parse_range_header(range_header: str, file_size: int) -> Optional[Tuple[int, int]]:
    """
    Resolve a single-range header against a file size.

    Supports "bytes=start-end", "bytes=start-" and the suffix form "bytes=-N".
    Multiple ranges and unsatisfiable ranges yield None (the caller then sends
    the whole file).

    Returns:
        (start, end) inclusive byte offsets, or None.
    """
    match = _RANGE.match((range_header or "").strip())
    if match is None:
        return None
    first, last = match.groups()

    if not first:
        if not last or int(last) == 0:
            return None
        return max(file_size - int(last), 0), file_size - 1

    start = int(first)
    end = int(last) if last else file_size - 1
    if start >= file_size or end < start:
        return None
    return start, min(end, file_size - 1)


def _read_span(path: Path, start: int, end: int) -> Iterator[bytes]:
    remaining = end - start + 1
    with path.open("rb") as handle:
        handle.seek(start)
        while remaining > 0:
            chunk = handle.read(min(STREAM_CHUNK_BYTES, remaining))
            if not chunk:
                return
            remaining -= len(chunk)
            yield chunk


# PUBLIC_INTERFACE
def stream_file(
    public_url: str,
    *,
    range_header: Optional[str],
    media_type: str,
    download_name: str,
) -> StreamingResponse:
    """Stream a stored file, honouring a single Range request (200 or 206)."""
    path = resolve_media_url(public_url)
    try:
        size = path.stat().st_size if path is not None and path.is_file() else 0
    except OSError as exc:
        logger.warning("stream_file_stat_failed: path=%s exc=%s", str(path), exc.__class__.__name__)
        size = 0
    if size <= 0:
        logger.warning("stream_file_missing: url=%s", public_url)
        raise HTTPException(status_code=404, detail="Audio file not found")

    span = parse_range_header(range_header or "", size)
    start, end = span if span else (0, size - 1)
    headers = {
        "Accept-Ranges": "bytes",
        "Content-Disposition": f'inline; filename="{sanitize_filename(download_name)}"',
        "Content-Length": str(end - start + 1),
    }
    if span:
        headers["Content-Range"] = f"bytes {start}-{end}/{size}"

    return StreamingResponse(
        _read_span(path, start, end),
        status_code=206 if span else 200,
        media_type=media_type,
        headers=headers,
    )
