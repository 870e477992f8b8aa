"""
FastAPI application entrypoint for the music streaming backend.

All API routes live under /api:
- /api/auth, /api/users, /api/follows
- /api/artists, /api/albums, /api/tracks, /api/distributor
- /api/playlists, /api/folders
- /api/subscription-tiers, /api/subscriptions, /api/exclusive-content, /api/artist-events
- /api/search, /api/admin

Protected routes take `Authorization: Bearer <token>` (see POST /api/auth/login).
Stored media is served under MEDIA_URL_PREFIX (default /media); tracks should be
played through GET /api/tracks/{track_id}/stream, which supports range requests.

Allowed CORS origins default to the local frontend dev server; more can be added
through CORS_ALLOW_ORIGINS or ALLOWED_ORIGINS.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.music_api.config import get_settings
from src.music_api.db import init_db
from src.music_api.errors import configure_logging, setup_exception_handlers
from src.music_api.routes_admin import router as admin_router
from src.music_api.routes_albums import router as albums_router
from src.music_api.routes_artists import router as artists_router
from src.music_api.routes_auth import router as auth_router
from src.music_api.routes_distributor import router as distributor_router
from src.music_api.routes_events import router as events_router
from src.music_api.routes_exclusive import router as exclusive_router
from src.music_api.routes_folders import router as folders_router
from src.music_api.routes_follows import router as follows_router
from src.music_api.routes_playlists import router as playlists_router
from src.music_api.routes_search import router as search_router
from src.music_api.routes_subscriptions import router as subscriptions_router
from src.music_api.routes_tiers import router as tiers_router
from src.music_api.routes_tracks import router as tracks_router
from src.music_api.routes_users import router as users_router
from src.music_api.storage import media_root

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Auth", "description": "Register and log in; returns JWT bearer tokens."},
    {"name": "Users", "description": "Current user profile and public profiles."},
    {"name": "Artists", "description": "Artist profiles, their albums, tracks and tiers."},
    {"name": "Albums", "description": "Album catalog."},
    {"name": "Tracks", "description": "Upload, list, play and stream tracks."},
    {"name": "Distributor", "description": "Tag-driven ingestion for distributors (API key)."},
    {"name": "Playlists", "description": "Playlists, Liked Songs, follows and duplication."},
    {"name": "Folders", "description": "Nested playlist folders."},
    {"name": "Follows", "description": "Follow users and artists."},
    {"name": "Subscription Tiers", "description": "Priced artist support tiers."},
    {"name": "Subscriptions", "description": "User subscriptions to artist tiers."},
    {"name": "Exclusive Content", "description": "Tier-gated artist content."},
    {"name": "Artist Events", "description": "Concerts, releases and live streams."},
    {"name": "Search", "description": "Substring search across the catalog."},
    {"name": "Admin", "description": "Catalog maintenance and role management."},
    {"name": "Health", "description": "Service health and basic runtime info."},
]


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db()
    logger.info("startup: media_root=%s media_url_prefix=%s", media_root(), settings.media_url_prefix)
    yield


app = FastAPI(
    title="Music Streaming Backend API",
    description=(
        "Backend for a music streaming platform: catalog, playlists, follows and "
        "artist subscriptions.\n\n"
        "Authentication: JWT bearer token (POST /api/auth/login)\n\n"
        "Streaming:\n"
        "- GET /api/tracks/{track_id}/stream supports range requests for efficient playback."
    ),
    version="3.0.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Credentials require explicit origins (not '*'), so local dev URLs are always listed.
# Add more via CORS_ALLOW_ORIGINS or ALLOWED_ORIGINS (comma-separated).
cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
cors_origins.extend(o for o in get_settings().cors_origins if o not in cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

for _router in (
    auth_router,
    users_router,
    artists_router,
    albums_router,
    tracks_router,
    distributor_router,
    playlists_router,
    folders_router,
    follows_router,
    tiers_router,
    subscriptions_router,
    exclusive_router,
    events_router,
    search_router,
    admin_router,
):
    app.include_router(_router, prefix="/api")

app.mount(
    get_settings().media_url_prefix,
    StaticFiles(directory=str(media_root()), check_dir=False),
    name="media",
)


@app.get(
    "/",
    summary="Health check",
    description="Simple health check endpoint.",
    tags=["Health"],
)
def health_check():
    """Return basic service health information."""
    return {"status": "ok"}


@app.get("/health", summary="Health check", tags=["Health"], operation_id="health")
def health():
    return {"status": "ok", "version": app.version}
