"""
Pydantic models (request/response shapes) for API endpoints.

JSON bodies use camelCase keys (`firstName`, `artistId`, ...); snake_case names
are accepted on input as well. `*Update` models are the partial-update DTOs:
every field is optional and unknown keys are rejected.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from src.music_api.models import (
    AlbumType,
    ContentType,
    EventType,
    MemberRole,
    SubscriptionStatus,
    TierStatus,
)

T = TypeVar("T")

_TYPE_ALIAS = AliasChoices("type", "album_type", "albumType")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UpdateModel(ApiModel):
    """Base for partial updates: only known fields, all optional."""

    model_config = ConfigDict(extra="forbid")


class Page(ApiModel, Generic[T]):
    results: List[T] = Field(..., description="Items of the requested page.")
    total: int = Field(..., description="Total number of matching items.")
    page: int = Field(..., description="1-based page number.")
    limit: int = Field(..., description="Page size.")
    total_pages: int = Field(..., description="Number of pages for this page size.")


class MessageResponse(ApiModel):
    message: str


# ---------------------------------------------------------------------------
# Users / auth
# ---------------------------------------------------------------------------


class AuthRegisterRequest(ApiModel):
    first_name: str = Field(..., min_length=1, max_length=100, description="Given name.")
    last_name: str = Field(..., min_length=1, max_length=100, description="Family name.")
    username: str = Field(..., min_length=3, max_length=64, description="Unique username.")
    email: EmailStr = Field(..., description="User email address (unique).")
    password: str = Field(..., min_length=6, description="User password (min 6 chars).")


class AuthLoginRequest(ApiModel):
    login: str = Field(..., min_length=1, description="Email address or username.")
    password: str = Field(..., description="User password.")


class PublicUserResponse(ApiModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    username: str
    follower_count: int = 0
    created_at: datetime


class UserResponse(PublicUserResponse):
    email: str
    is_admin: bool = False
    is_artist: bool = False
    is_distributor: bool = False


class MeResponse(UserResponse):
    liked_playlist_id: Optional[uuid.UUID] = Field(None, description="Id of the Liked Songs playlist.")
    following_user_ids: List[uuid.UUID] = Field(default_factory=list)
    following_artist_ids: List[uuid.UUID] = Field(default_factory=list)


class AuthTokenResponse(ApiModel):
    token: str = Field(..., description="JWT access token.")
    token_type: str = Field("bearer", description="Token type for Authorization header.")
    user: UserResponse


class UserUpdate(UpdateModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    username: Optional[str] = Field(None, min_length=3, max_length=64)
    email: Optional[EmailStr] = None


class PasswordChangeRequest(ApiModel):
    current_password: str = Field(..., description="Password currently set on the account.")
    new_password: str = Field(..., min_length=6, description="New password (min 6 chars).")


class RoleUpdate(UpdateModel):
    is_admin: Optional[bool] = None
    is_artist: Optional[bool] = None
    is_distributor: Optional[bool] = None


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ArtistSummary(ApiModel):
    id: uuid.UUID
    name: str
    cover_art: Optional[str] = None


class ArtistResponse(ApiModel):
    id: uuid.UUID = Field(..., description="Artist UUID.")
    name: str = Field(..., description="Unique artist name.")
    bio: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    social_links: Dict[str, str] = Field(default_factory=dict)
    cover_art: Optional[str] = None
    verified_by: Optional[str] = None
    verification_date: Optional[datetime] = None
    featured: bool = False
    accepts_subscriptions: bool = False
    monthly_listeners: int = 0
    total_plays: int = 0
    follower_count: int = 0
    subscriber_count: int = 0
    created_at: datetime


class ArtistCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=300, description="Unique artist name.")
    bio: Optional[str] = Field(None, max_length=1000)
    genres: List[str] = Field(default_factory=list)
    social_links: Dict[str, str] = Field(default_factory=dict)
    cover_art: Optional[str] = None
    featured: bool = False


class ArtistUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1, max_length=300)
    bio: Optional[str] = Field(None, max_length=1000)
    genres: Optional[List[str]] = None
    social_links: Optional[Dict[str, str]] = None
    cover_art: Optional[str] = None
    featured: Optional[bool] = None
    verified_by: Optional[str] = None
    accepts_subscriptions: Optional[bool] = None
    monthly_listeners: Optional[int] = Field(None, ge=0)


class ArtistApplication(ApiModel):
    artist_name: str = Field(..., min_length=1, max_length=300, description="Name of the new artist profile.")
    genres: List[str] = Field(default_factory=list)
    bio: Optional[str] = Field(None, max_length=1000)


class ArtistDashboardResponse(ApiModel):
    """Manager overview of an artist's exclusive catalog and audience."""

    artist_id: uuid.UUID
    exclusive_track_count: int = 0
    exclusive_track_plays: int = 0
    last_exclusive_upload: Optional[datetime] = None
    exclusive_content_count: int = 0
    upcoming_event_count: int = 0
    active_tier_count: int = 0
    subscriber_count: int = 0
    follower_count: int = 0


class TrackResponse(ApiModel):
    id: uuid.UUID = Field(..., description="Track UUID.")
    title: str = Field(..., description="Track title.")
    artist_id: uuid.UUID
    album_id: Optional[uuid.UUID] = None
    artist: Optional[ArtistSummary] = None
    track_number: int = 1
    disc_number: int = 1
    duration: int = Field(0, description="Duration in seconds.")
    file_url: str = Field(..., description="Public URL of the stored audio file.")
    content_type: str = Field(..., description="Content type stored at upload time.")
    size_bytes: int = Field(0, description="File size in bytes.")
    cover_art: Optional[str] = None
    genre: Optional[str] = None
    plays: int = 0
    is_exclusive: bool = False
    allow_download: bool = False
    distributor_name: str
    created_at: datetime = Field(..., description="Creation timestamp.")


class TrackUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    album_id: Optional[uuid.UUID] = None
    track_number: Optional[int] = Field(None, ge=1)
    disc_number: Optional[int] = Field(None, ge=1)
    duration: Optional[int] = Field(None, ge=0)
    cover_art: Optional[str] = None
    genre: Optional[str] = None
    is_exclusive: Optional[bool] = None
    allow_download: Optional[bool] = None


class PlayResponse(ApiModel):
    id: uuid.UUID
    plays: int


class AlbumResponse(ApiModel):
    id: uuid.UUID = Field(..., description="Album UUID.")
    title: str
    artist_id: uuid.UUID
    release_date: datetime
    cover_art: str
    album_type: AlbumType = Field(AlbumType.ALBUM, validation_alias=_TYPE_ALIAS, serialization_alias="type")
    genre: Optional[str] = None
    description: Optional[str] = None
    distributor_name: str
    distributor_upload_date: datetime
    total_duration: int = 0
    is_exclusive: bool = False
    label: Optional[str] = None
    upc: Optional[str] = None
    copyright: Optional[str] = None
    language: Optional[str] = None
    total_plays: int = 0
    track_count: Optional[int] = None
    created_at: datetime


class AlbumDetailResponse(AlbumResponse):
    artist: ArtistSummary
    tracks: List[TrackResponse] = Field(default_factory=list, description="Sorted by disc then track number.")


class AlbumCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=300)
    artist_id: uuid.UUID
    release_date: datetime
    cover_art: Optional[str] = None
    album_type: AlbumType = Field(AlbumType.ALBUM, validation_alias=_TYPE_ALIAS, serialization_alias="type")
    genre: Optional[str] = None
    description: Optional[str] = None
    distributor_name: Optional[str] = None
    is_exclusive: bool = False
    label: Optional[str] = None
    upc: Optional[str] = None
    copyright: Optional[str] = None
    language: Optional[str] = None


class AlbumUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    release_date: Optional[datetime] = None
    cover_art: Optional[str] = None
    album_type: Optional[AlbumType] = Field(None, validation_alias=_TYPE_ALIAS, serialization_alias="type")
    genre: Optional[str] = None
    description: Optional[str] = None
    is_exclusive: Optional[bool] = None
    label: Optional[str] = None
    upc: Optional[str] = None
    copyright: Optional[str] = None
    language: Optional[str] = None


class ArtistDetailResponse(ArtistResponse):
    latest_tracks: List[TrackResponse] = Field(default_factory=list)
    albums: List[AlbumResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Playlists / folders
# ---------------------------------------------------------------------------


class PlaylistResponse(ApiModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    cover_image: Optional[str] = None
    owner_id: uuid.UUID
    folder_id: Optional[uuid.UUID] = None
    is_public: bool = True
    is_system: bool = False
    follower_count: int = 0
    total_duration: int = 0
    plays: int = 0
    track_count: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class PlaylistEntryResponse(ApiModel):
    position: int
    added_at: datetime
    track: TrackResponse


class PlaylistDetailResponse(PlaylistResponse):
    owner: PublicUserResponse
    tracks: List[PlaylistEntryResponse] = Field(default_factory=list)
    is_following: bool = False


class MyPlaylistsResponse(ApiModel):
    created: List[PlaylistResponse]
    liked: Optional[PlaylistResponse] = None
    followed: List[PlaylistResponse]


class PlaylistCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    is_public: bool = True
    color: Optional[str] = Field(None, max_length=16)
    folder_id: Optional[uuid.UUID] = None


class PlaylistUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    is_public: Optional[bool] = None
    color: Optional[str] = Field(None, max_length=16)
    cover_image: Optional[str] = None
    folder_id: Optional[uuid.UUID] = None


class PlaylistBatchUpdate(ApiModel):
    playlist_ids: List[uuid.UUID] = Field(..., min_length=1)
    updates: PlaylistUpdate


class PlaylistTrackAdd(ApiModel):
    track_id: uuid.UUID


class PlaylistDuplicateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class FollowToggleResponse(ApiModel):
    following: bool
    follower_count: int


class PlaylistIdsRequest(ApiModel):
    playlist_ids: List[uuid.UUID] = Field(..., min_length=1)


class FolderResponse(ApiModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    owner_id: uuid.UUID
    parent_folder_id: Optional[uuid.UUID] = Field(
        None,
        validation_alias=AliasChoices("parentFolderId", "parent_folder_id", "parent_id"),
        serialization_alias="parentFolderId",
    )
    is_public: bool = False
    created_at: datetime
    updated_at: datetime


class FolderDetailResponse(FolderResponse):
    children: List[FolderResponse] = Field(default_factory=list)
    playlists: List[PlaylistResponse] = Field(default_factory=list)


class FolderCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    parent_folder_id: Optional[uuid.UUID] = None
    is_public: bool = False


class FolderUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    parent_folder_id: Optional[uuid.UUID] = None
    is_public: Optional[bool] = None


class FolderStatsResponse(ApiModel):
    playlist_count: int
    child_folder_count: int
    track_count: int
    total_duration: int
    total_followers: int


class FolderSearchResponse(ApiModel):
    playlists: List[PlaylistResponse]
    folders: List[FolderResponse]


# ---------------------------------------------------------------------------
# Social graph / monetization
# ---------------------------------------------------------------------------


class FollowStatusResponse(ApiModel):
    users: List[PublicUserResponse]
    artists: List[ArtistSummary]


class FollowCountsResponse(ApiModel):
    id: uuid.UUID
    kind: str = Field(..., description='"user" or "artist".')
    follower_count: int
    subscriber_count: Optional[int] = None


class TierResponse(ApiModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    name: str
    price: float
    features: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    is_recommended: bool = False
    order: int
    status: TierStatus
    created_at: datetime


class TierCreate(ApiModel):
    artist_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=50)
    price: float = Field(..., ge=0.99, le=99.99, description="Monthly price, 0.99 to 99.99.")
    features: List[str] = Field(default_factory=list)
    description: Optional[str] = Field(None, max_length=500)
    is_recommended: bool = False
    order: Optional[int] = Field(None, ge=1, le=3)


class TierUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    price: Optional[float] = Field(None, ge=0.99, le=99.99)
    features: Optional[List[str]] = None
    description: Optional[str] = Field(None, max_length=500)
    is_recommended: Optional[bool] = None
    order: Optional[int] = Field(None, ge=1, le=3)


class SubscriptionResponse(ApiModel):
    id: uuid.UUID
    user_id: uuid.UUID
    artist_id: uuid.UUID
    tier_id: uuid.UUID
    status: SubscriptionStatus
    payment_method: str
    start_date: datetime
    current_period_start: datetime
    current_period_end: datetime
    canceled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    auto_renew: bool = True
    created_at: datetime
    artist: Optional[ArtistSummary] = None
    tier: Optional[TierResponse] = None


class SubscribeRequest(ApiModel):
    artist_id: uuid.UUID
    tier_id: uuid.UUID
    payment_method: str = Field("default", min_length=1, max_length=64)


class CancelSubscriptionRequest(ApiModel):
    cancel_reason: Optional[str] = Field(None, max_length=500)


class ChangeTierRequest(ApiModel):
    new_tier_id: uuid.UUID


class SubscriptionCheckResponse(ApiModel):
    subscribed: bool
    has_access: bool
    subscription: Optional[SubscriptionResponse] = None


class SubscriberEntry(ApiModel):
    user: PublicUserResponse
    tier_id: uuid.UUID
    since: datetime


class TierStats(ApiModel):
    tier_id: uuid.UUID
    name: str
    price: float
    count: int
    revenue: float


class ArtistSubscribersResponse(ApiModel):
    subscribers: List[SubscriberEntry]
    tiers: List[TierStats]
    total_subscribers: int
    monthly_revenue: float


class ExclusiveContentResponse(ApiModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    title: str
    description: Optional[str] = None
    content_type: ContentType
    content_url: str
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None
    file_size: Optional[int] = None
    release_date: datetime
    minimum_tier_id: Optional[uuid.UUID] = None
    is_public: bool = False
    expires_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    view_count: int = 0
    created_at: datetime


class ExclusiveContentCreate(ApiModel):
    artist_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    content_type: ContentType
    content_url: str = Field(..., min_length=1)
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    file_size: Optional[int] = Field(None, ge=0)
    release_date: Optional[datetime] = None
    minimum_tier_id: Optional[uuid.UUID] = None
    is_public: bool = False
    expires_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)


class ExclusiveContentUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    content_type: Optional[ContentType] = None
    content_url: Optional[str] = Field(None, min_length=1)
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    file_size: Optional[int] = Field(None, ge=0)
    release_date: Optional[datetime] = None
    minimum_tier_id: Optional[uuid.UUID] = None
    is_public: Optional[bool] = None
    expires_at: Optional[datetime] = None
    tags: Optional[List[str]] = None


class ArtistEventResponse(ApiModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    title: str
    description: Optional[str] = None
    event_type: EventType
    date: datetime
    end_date: Optional[datetime] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None
    is_virtual: bool = False
    stream_url: Optional[str] = None
    minimum_tier_id: Optional[uuid.UUID] = None
    is_public: bool = True
    created_at: datetime


class ArtistEventCreate(ApiModel):
    artist_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    event_type: EventType = EventType.CONCERT
    date: datetime
    end_date: Optional[datetime] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None
    is_virtual: bool = False
    stream_url: Optional[str] = None
    minimum_tier_id: Optional[uuid.UUID] = None
    is_public: bool = True


class ArtistEventUpdate(UpdateModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    event_type: Optional[EventType] = None
    date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None
    is_virtual: Optional[bool] = None
    stream_url: Optional[str] = None
    minimum_tier_id: Optional[uuid.UUID] = None
    is_public: Optional[bool] = None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class ExternalTrackResult(ApiModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    listeners: int = 0
    url: Optional[str] = None
    source: str = "lastfm"


class SearchResults(ApiModel):
    tracks: List[TrackResponse]
    albums: List[AlbumResponse]
    artists: List[ArtistResponse]
    playlists: List[PlaylistResponse]
    users: List[PublicUserResponse]
    external: Optional[List[ExternalTrackResult]] = Field(None, description="Last.fm matches when requested.")


class SearchCounts(ApiModel):
    tracks: int
    albums: int
    artists: int
    playlists: int
    users: int
    total: int


class GlobalSearchResponse(ApiModel):
    query: str
    results: SearchResults
    counts: SearchCounts


# ---------------------------------------------------------------------------
# Admin / ingestion
# ---------------------------------------------------------------------------


class TrackIdsRequest(ApiModel):
    track_ids: List[uuid.UUID] = Field(..., min_length=1)


class DeleteResultResponse(ApiModel):
    message: str
    deleted_count: int


class LinkUserArtistRequest(ApiModel):
    user_id: uuid.UUID
    artist_id: uuid.UUID
    role: MemberRole = MemberRole.BAND_MEMBER


class UnlinkUserArtistRequest(ApiModel):
    user_id: uuid.UUID
    artist_id: uuid.UUID


class ArtistMemberResponse(ApiModel):
    user: PublicUserResponse
    role: MemberRole
    added_at: datetime
    added_by: Optional[str] = None


class DistributorUploadResponse(ApiModel):
    message: str
    metadata: Dict[str, Any]
    track: TrackResponse
