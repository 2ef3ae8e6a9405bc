"""SQLAlchemy ORM models for Rankify."""

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# Hey future me, utc_now() ensures ALL timestamps are UTC! Never use datetime.now() without
# timezone - that's a naive datetime and comparisons across servers go wrong.
def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite doesn't preserve timezone info! Datetimes come back naive.
# Attach UTC before comparing with datetime.now(UTC) or you get
# "can't compare offset-naive and offset-aware datetimes".
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def new_uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Hey future me - profile id is the identity provider's subject id, NOT a uuid we generate.
# friend_code is unique and always stored uppercase.
class ProfileModel(Base):
    """SQLAlchemy model for Profile."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    friend_code: Mapped[str] = mapped_column(String(8), nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    rankings: Mapped[list["RankingModel"]] = relationship(
        "RankingModel", back_populates="owner", cascade="all, delete-orphan"
    )


class FollowModel(Base):
    """Directed follow edge. Friendship = both directions present."""

    __tablename__ = "follows"

    follower_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    following_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("follower_id <> following_id", name="ck_follows_no_self_follow"),
        Index("ix_follows_following_id", "following_id"),
    )


class FriendRequestModel(Base):
    """Friend request between two profiles."""

    __tablename__ = "friend_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    requester_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    target_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')",
            name="ck_friend_requests_status",
        ),
        CheckConstraint("requester_id <> target_id", name="ck_friend_requests_no_self"),
        Index("ix_friend_requests_pair", "requester_id", "target_id"),
        Index("ix_friend_requests_target_status", "target_id", "status"),
    )


# Hey future me - source_type/source_id/source_variant are the "fixed pool" provenance!
# The unique constraint turns the read-then-write variant race into an IntegrityError the
# service can retry instead of two rankings silently sharing "variant 2".
# pool_item_ids is a JSON list of catalog ids (SQLite + Postgres compatible).
class RankingModel(Base):
    """SQLAlchemy model for Ranking."""

    __tablename__ = "rankings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    ranking_type: Mapped[str] = mapped_column(String(20), nullable=False)
    visibility: Mapped[str] = mapped_column(String(20), nullable=False, default="public")
    source_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    source_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source_variant: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pool_item_ids: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    owner: Mapped["ProfileModel"] = relationship("ProfileModel", back_populates="rankings")
    items: Mapped[list["RankingItemModel"]] = relationship(
        "RankingItemModel",
        back_populates="ranking",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RankingItemModel.position",
    )

    __table_args__ = (
        CheckConstraint(
            "ranking_type IN ('albums', 'songs', 'artists')", name="ck_rankings_type"
        ),
        CheckConstraint(
            "visibility IN ('public', 'friends', 'private')", name="ck_rankings_visibility"
        ),
        CheckConstraint(
            "source_type IS NULL OR source_type IN ('artist', 'album')",
            name="ck_rankings_source_type",
        ),
        UniqueConstraint(
            "user_id",
            "source_type",
            "source_id",
            "source_variant",
            name="uq_rankings_source_variant",
        ),
        Index("ix_rankings_visibility_updated", "visibility", "updated_at"),
        Index("ix_rankings_source", "source_type", "source_id"),
    )


class RankingItemModel(Base):
    """Positioned item of a ranking. (ranking_id, position) is the key - no gaps, no dupes."""

    __tablename__ = "ranking_items"

    ranking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rankings.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    ranking: Mapped["RankingModel"] = relationship("RankingModel", back_populates="items")

    __table_args__ = (CheckConstraint("position >= 1", name="ck_ranking_items_position"),)


class RankingLikeModel(Base):
    """A user's like of a ranking (one per user per ranking)."""

    __tablename__ = "ranking_likes"

    ranking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rankings.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )


# Hey future me - the catalog tables are a CACHE of Spotify metadata keyed by Spotify's own ids.
# They are upserted whenever a ranking references something; never authoritative, never
# invalidated except by the next upsert. No FKs from ranking_items on purpose - an item row
# must survive a failed cache upsert.
class ArtistModel(Base):
    """Cached catalog artist."""

    __tablename__ = "artists"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    genres: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    popularity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    spotify_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class AlbumModel(Base):
    """Cached catalog album."""

    __tablename__ = "albums"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    release_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    total_tracks: Mapped[int | None] = mapped_column(Integer, nullable=True)
    spotify_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class TrackModel(Base):
    """Cached catalog track."""

    __tablename__ = "tracks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    album_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    track_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    spotify_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class NotificationModel(Base):
    """In-app notification. `data` is the opaque structured payload."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "type IN ('friend_request', 'ranking_like')", name="ck_notifications_type"
        ),
        Index("ix_notifications_user_read_created", "user_id", "is_read", "created_at"),
    )


# Hey future me - rows here are written by the identity integration (OAuth callback), not by
# this service. We only READ them to turn a cookie/bearer into a user id. No FK to profiles:
# a user can be signed in before their profile is lazily created.
class UserSessionModel(Base):
    """Server-side session issued by the identity integration."""

    __tablename__ = "user_sessions"

    session_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
