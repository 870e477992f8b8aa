"""
SQLAlchemy models for the streaming platform.

One table per entity. Ownership is a foreign key on the child; the owner's
collections are relationships over that key (or over an association table for
follows, followers and playlist entries).
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    BIGINT,
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def _enum_column(enum_cls: type[enum.Enum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class AlbumType(str, enum.Enum):
    ALBUM = "album"
    SINGLE = "single"
    EP = "ep"


class MemberRole(str, enum.Enum):
    BAND_MEMBER = "band-member"
    MANAGEMENT = "management"


class TierStatus(str, enum.Enum):
    """Lifecycle of a subscription tier; deleting a tier retires it."""

    ACTIVE = "active"
    RETIRED = "retired"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAUSED = "paused"
    PAST_DUE = "past_due"


class ContentType(str, enum.Enum):
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"
    TEXT = "text"
    LIVESTREAM = "livestream"
    DOWNLOAD = "download"


class EventType(str, enum.Enum):
    CONCERT = "concert"
    RELEASE = "release"
    LIVESTREAM = "livestream"
    SIGNING = "signing"
    INTERVIEW = "interview"
    OTHER = "other"


user_follows = Table(
    "user_follows",
    Base.metadata,
    Column("follower_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("followed_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

artist_follows = Table(
    "artist_follows",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("artist_id", Uuid, ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True),
)

playlist_followers = Table(
    "playlist_followers",
    Base.metadata,
    Column("playlist_id", Uuid, ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """User account row. Role flags gate admin, artist and distributor features."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_artist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_distributor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    follower_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    playlists: Mapped[List["Playlist"]] = relationship(
        "Playlist", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
    folders: Mapped[List["PlaylistFolder"]] = relationship(
        "PlaylistFolder", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
    following_users: Mapped[List["User"]] = relationship(
        "User",
        secondary=user_follows,
        primaryjoin=lambda: User.id == user_follows.c.follower_id,
        secondaryjoin=lambda: User.id == user_follows.c.followed_id,
    )
    following_artists: Mapped[List["Artist"]] = relationship("Artist", secondary=artist_follows)
    subscriptions: Mapped[List["UserSubscription"]] = relationship(
        "UserSubscription", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class Artist(Base):
    """Artist profile; owns albums, tracks, tiers, exclusive content and events."""

    __tablename__ = "artists"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(300), nullable=False, unique=True, index=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    genres: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    social_links: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    cover_art: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    verified_by: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verification_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accepts_subscriptions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    monthly_listeners: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_plays: Mapped[int] = mapped_column(BIGINT, nullable=False, default=0)
    follower_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subscriber_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    members: Mapped[List["ArtistMember"]] = relationship(
        "ArtistMember", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True
    )
    albums: Mapped[List["Album"]] = relationship(
        "Album", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True
    )
    tracks: Mapped[List["Track"]] = relationship(
        "Track", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True
    )
    tiers: Mapped[List["SubscriptionTier"]] = relationship(
        "SubscriptionTier", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True
    )
    subscriptions: Mapped[List["UserSubscription"]] = relationship(
        "UserSubscription", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True
    )
    exclusive_content: Mapped[List["ExclusiveContent"]] = relationship(
        "ExclusiveContent", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True
    )
    events: Mapped[List["ArtistEvent"]] = relationship(
        "ArtistEvent", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True
    )


class ArtistMember(Base):
    """A user linked to an artist profile (band member or management)."""

    __tablename__ = "artist_members"
    __table_args__ = (UniqueConstraint("artist_id", "user_id", name="uq_artist_members_artist_user"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[MemberRole] = mapped_column(_enum_column(MemberRole), nullable=False, default=MemberRole.BAND_MEMBER)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    added_by: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    artist: Mapped[Artist] = relationship("Artist", back_populates="members")
    user: Mapped[User] = relationship("User")


class Album(Base):
    __tablename__ = "albums"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    release_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    cover_art: Mapped[str] = mapped_column(Text, nullable=False, default="/images/default-cover.jpg")
    album_type: Mapped[AlbumType] = mapped_column(_enum_column(AlbumType), nullable=False, default=AlbumType.ALBUM)
    genre: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    distributor_name: Mapped[str] = mapped_column(Text, nullable=False, default="User Upload")
    distributor_upload_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    total_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_exclusive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    label: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    upc: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    copyright: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    language: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_plays: Mapped[int] = mapped_column(BIGINT, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    artist: Mapped[Artist] = relationship("Artist", back_populates="albums")
    tracks: Mapped[List["Track"]] = relationship(
        "Track",
        back_populates="album",
        order_by=lambda: [Track.disc_number, Track.track_number],
    )


class Track(Base):
    """Track row with catalog metadata and a reference to the stored audio file."""

    __tablename__ = "tracks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    album_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("albums.id", ondelete="SET NULL"), nullable=True, index=True
    )
    track_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    disc_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(Text, nullable=False, default="audio/mpeg")
    size_bytes: Mapped[int] = mapped_column(BIGINT, nullable=False, default=0)
    cover_art: Mapped[str] = mapped_column(Text, nullable=False, default="/images/default-cover.jpg")
    genre: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    plays: Mapped[int] = mapped_column(BIGINT, nullable=False, default=0)
    is_exclusive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allow_download: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    distributor_name: Mapped[str] = mapped_column(Text, nullable=False, default="User Upload")
    uploaded_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    artist: Mapped[Artist] = relationship("Artist", back_populates="tracks")
    album: Mapped[Optional[Album]] = relationship("Album", back_populates="tracks")
    playlist_entries: Mapped[List["PlaylistTrack"]] = relationship(
        "PlaylistTrack", back_populates="track", cascade="all, delete-orphan", passive_deletes=True
    )


class Playlist(Base):
    __tablename__ = "playlists"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    cover_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    folder_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("playlist_folders.id", ondelete="SET NULL"), nullable=True, index=True
    )

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # "Liked Songs": created with the user, never deleted, never re-owned.
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    follower_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    plays: Mapped[int] = mapped_column(BIGINT, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owner: Mapped[User] = relationship("User", back_populates="playlists")
    folder: Mapped[Optional["PlaylistFolder"]] = relationship("PlaylistFolder", back_populates="playlists")
    entries: Mapped[List["PlaylistTrack"]] = relationship(
        "PlaylistTrack",
        back_populates="playlist",
        order_by=lambda: PlaylistTrack.position,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    followers: Mapped[List[User]] = relationship("User", secondary=playlist_followers)


class PlaylistTrack(Base):
    """Ordered entry of a track inside a playlist."""

    __tablename__ = "playlist_tracks"
    __table_args__ = (UniqueConstraint("playlist_id", "track_id", name="uq_playlist_tracks_playlist_track"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    playlist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    track_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    playlist: Mapped[Playlist] = relationship("Playlist", back_populates="entries")
    track: Mapped[Track] = relationship("Track", back_populates="playlist_entries")


class PlaylistFolder(Base):
    """Folder in a user's playlist tree; `parent_id` is None for root folders."""

    __tablename__ = "playlist_folders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("playlist_folders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owner: Mapped[User] = relationship("User", back_populates="folders")
    playlists: Mapped[List[Playlist]] = relationship(
        "Playlist", back_populates="folder", order_by=lambda: Playlist.name
    )


class SubscriptionTier(Base):
    """Priced support level of an artist. At most three are active per artist."""

    __tablename__ = "subscription_tiers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_recommended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order: Mapped[int] = mapped_column("tier_order", Integer, nullable=False)
    status: Mapped[TierStatus] = mapped_column(_enum_column(TierStatus), nullable=False, default=TierStatus.ACTIVE)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    artist: Mapped[Artist] = relationship("Artist", back_populates="tiers")


class UserSubscription(Base):
    """A user's subscription to one tier of one artist; one row per (user, artist)."""

    __tablename__ = "user_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "artist_id", name="uq_user_subscriptions_user_artist"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("subscription_tiers.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        _enum_column(SubscriptionStatus), nullable=False, default=SubscriptionStatus.ACTIVE
    )
    payment_method: Mapped[str] = mapped_column(Text, nullable=False, default="default")

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    current_period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    current_period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    canceled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship("User", back_populates="subscriptions")
    artist: Mapped[Artist] = relationship("Artist", back_populates="subscriptions")
    tier: Mapped[SubscriptionTier] = relationship("SubscriptionTier")


class ExclusiveContent(Base):
    __tablename__ = "exclusive_content"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content_type: Mapped[ContentType] = mapped_column(_enum_column(ContentType), nullable=False)
    content_url: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BIGINT, nullable=True)
    release_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    minimum_tier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("subscription_tiers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    artist: Mapped[Artist] = relationship("Artist", back_populates="exclusive_content")
    minimum_tier: Mapped[Optional[SubscriptionTier]] = relationship("SubscriptionTier")


class ArtistEvent(Base):
    """Concerts, releases, live streams etc. shown on an artist page."""

    __tablename__ = "artist_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_type: Mapped[EventType] = mapped_column(_enum_column(EventType), nullable=False, default=EventType.CONCERT)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    venue: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ticket_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_virtual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stream_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    minimum_tier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("subscription_tiers.id", ondelete="SET NULL"), nullable=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    artist: Mapped[Artist] = relationship("Artist", back_populates="events")
    minimum_tier: Mapped[Optional[SubscriptionTier]] = relationship("SubscriptionTier")
