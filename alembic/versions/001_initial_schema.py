"""initial schema: profiles, friend graph, rankings, catalog cache, notifications

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 12:00:00.000000

Hey future me - the whole Rankify schema in one go.

- profiles: one per signed-in user, id = identity provider subject id,
  friend_code unique (8 chars, uppercase A-Z0-9)
- follows: directed edges, friendship = both directions present
- friend_requests: pending -> accepted | declined
- rankings + ranking_items: items keyed by (ranking_id, position), cascade on delete
- ranking_likes: one like per user per ranking
- artists / albums / tracks: catalog metadata cache keyed by Spotify ids
- notifications: append-only, JSON payload, only is_read changes
- user_sessions: written by the identity integration, read for auth
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.Column("friend_code", sa.String(8), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_profiles_friend_code", "profiles", ["friend_code"], unique=True)

    op.create_table(
        "follows",
        sa.Column(
            "follower_id",
            sa.String(64),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "following_id",
            sa.String(64),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _timestamp("created_at"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_follows_no_self_follow"),
    )
    op.create_index("ix_follows_following_id", "follows", ["following_id"])

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "requester_id",
            sa.String(64),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "target_id",
            sa.String(64),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')", name="ck_friend_requests_status"
        ),
        sa.CheckConstraint("requester_id <> target_id", name="ck_friend_requests_no_self"),
    )
    op.create_index("ix_friend_requests_pair", "friend_requests", ["requester_id", "target_id"])
    op.create_index(
        "ix_friend_requests_target_status", "friend_requests", ["target_id", "status"]
    )

    op.create_table(
        "rankings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("ranking_type", sa.String(20), nullable=False),
        sa.Column("visibility", sa.String(20), nullable=False, server_default="public"),
        sa.Column("source_type", sa.String(20), nullable=True),
        sa.Column("source_id", sa.String(64), nullable=True),
        sa.Column("source_variant", sa.Integer, nullable=True),
        sa.Column("pool_item_ids", sa.JSON, nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "ranking_type IN ('albums', 'songs', 'artists')", name="ck_rankings_type"
        ),
        sa.CheckConstraint(
            "visibility IN ('public', 'friends', 'private')", name="ck_rankings_visibility"
        ),
        sa.CheckConstraint(
            "source_type IS NULL OR source_type IN ('artist', 'album')",
            name="ck_rankings_source_type",
        ),
        sa.UniqueConstraint(
            "user_id",
            "source_type",
            "source_id",
            "source_variant",
            name="uq_rankings_source_variant",
        ),
    )
    op.create_index("ix_rankings_user_id", "rankings", ["user_id"])
    op.create_index("ix_rankings_visibility_updated", "rankings", ["visibility", "updated_at"])
    op.create_index("ix_rankings_source", "rankings", ["source_type", "source_id"])

    op.create_table(
        "ranking_items",
        sa.Column(
            "ranking_id",
            sa.String(36),
            sa.ForeignKey("rankings.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer, primary_key=True),
        sa.Column("item_id", sa.String(64), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.CheckConstraint("position >= 1", name="ck_ranking_items_position"),
    )

    op.create_table(
        "ranking_likes",
        sa.Column(
            "ranking_id",
            sa.String(36),
            sa.ForeignKey("rankings.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _timestamp("created_at"),
    )

    op.create_table(
        "artists",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("genres", sa.JSON, nullable=False),
        sa.Column("popularity", sa.Integer, nullable=True),
        sa.Column("spotify_url", sa.String(512), nullable=True),
        _timestamp("updated_at"),
    )

    op.create_table(
        "albums",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("artist_id", sa.String(64), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("release_date", sa.String(10), nullable=True),
        sa.Column("total_tracks", sa.Integer, nullable=True),
        sa.Column("spotify_url", sa.String(512), nullable=True),
        _timestamp("updated_at"),
    )
    op.create_index("ix_albums_artist_id", "albums", ["artist_id"])

    op.create_table(
        "tracks",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("artist_id", sa.String(64), nullable=True),
        sa.Column("album_id", sa.String(64), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("duration_ms", sa.Integer, nullable=True),
        sa.Column("track_number", sa.Integer, nullable=True),
        sa.Column("spotify_url", sa.String(512), nullable=True),
        _timestamp("updated_at"),
    )
    op.create_index("ix_tracks_artist_id", "tracks", ["artist_id"])
    op.create_index("ix_tracks_album_id", "tracks", ["album_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("data", sa.JSON, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "type IN ('friend_request', 'ranking_like')", name="ck_notifications_type"
        ),
    )
    op.create_index(
        "ix_notifications_user_read_created",
        "notifications",
        ["user_id", "is_read", "created_at"],
    )

    op.create_table(
        "user_sessions",
        sa.Column("session_id", sa.String(128), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        _timestamp("created_at"),
        _timestamp("expires_at"),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])


def downgrade() -> None:
    op.drop_table("user_sessions")
    op.drop_table("notifications")
    op.drop_table("tracks")
    op.drop_table("albums")
    op.drop_table("artists")
    op.drop_table("ranking_likes")
    op.drop_table("ranking_items")
    op.drop_table("rankings")
    op.drop_table("friend_requests")
    op.drop_table("follows")
    op.drop_table("profiles")
