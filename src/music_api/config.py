"""
Process configuration read from environment variables.

Values are read once per process through `get_settings()`; tests call
`get_settings.cache_clear()` after changing the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_list(*names: str) -> List[str]:
    for name in names:
        raw = os.getenv(name)
        if raw:
            return [item.strip() for item in raw.split(",") if item.strip()]
    return []


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the streaming backend."""

    jwt_secret: Optional[str]
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 4320  # 3 days
    bcrypt_rounds: int = 12

    distributor_api_key: Optional[str] = None

    media_root: str = "media"
    media_url_prefix: str = "/media"
    max_upload_bytes: int = 50 * 1024 * 1024
    max_image_bytes: int = 5 * 1024 * 1024

    lastfm_api_key: Optional[str] = None
    lastfm_api_url: str = "https://ws.audioscrobbler.com/2.0/"
    lastfm_timeout_seconds: float = 3.0

    cors_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process settings, reading the environment on first use."""
    prefix = (os.getenv("MEDIA_URL_PREFIX", "/media").strip() or "/media").rstrip("/")
    if not prefix.startswith("/"):
        prefix = "/" + prefix

    return Settings(
        jwt_secret=os.getenv("JWT_SECRET") or None,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_expires_minutes=_env_int("JWT_EXPIRES_MINUTES", 4320),
        bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 12),
        distributor_api_key=os.getenv("DISTRIBUTOR_API_KEY") or None,
        media_root=os.getenv("MEDIA_ROOT", "media").strip() or "media",
        media_url_prefix=prefix,
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 50 * 1024 * 1024),
        max_image_bytes=_env_int("MAX_IMAGE_BYTES", 5 * 1024 * 1024),
        lastfm_api_key=os.getenv("LASTFM_API_KEY") or None,
        lastfm_api_url=os.getenv("LASTFM_API_URL", "https://ws.audioscrobbler.com/2.0/"),
        lastfm_timeout_seconds=_env_float("LASTFM_TIMEOUT_SECONDS", 3.0),
        cors_origins=_env_list("CORS_ALLOW_ORIGINS", "ALLOWED_ORIGINS"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
