"""Domain ports (interfaces) for repositories and outbound channels.

Hey future me - application services depend on THESE, never on SQLAlchemy
directly. The SQLAlchemy implementations live in
rankify.infrastructure.persistence.repositories.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from rankify.domain.entities import (
    CatalogAlbum,
    CatalogArtist,
    CatalogTrack,
    FriendRequest,
    FriendRequestStatus,
    Notification,
    Profile,
    Ranking,
    RankingSummary,
    SourceType,
    Visibility,
)


class IProfileRepository(ABC):
    """Repository interface for profiles."""

    @abstractmethod
    async def add(self, profile: Profile) -> None:
        """Add a new profile."""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Profile | None:
        """Get a profile by user id."""
        pass

    @abstractmethod
    async def get_by_friend_code(self, friend_code: str) -> Profile | None:
        """Get a profile by its (already normalized) friend code."""
        pass

    @abstractmethod
    async def get_many(self, user_ids: Sequence[str]) -> list[Profile]:
        """Get all profiles whose id is in user_ids."""
        pass

    @abstractmethod
    async def friend_code_exists(self, friend_code: str) -> bool:
        """Check whether a friend code is taken."""
        pass


class IFollowRepository(ABC):
    """Repository interface for directed follow edges."""

    @abstractmethod
    async def add_mutual(self, user_a: str, user_b: str) -> None:
        """Upsert both a->b and b->a edges."""
        pass

    @abstractmethod
    async def following_ids(self, user_id: str) -> list[str]:
        """Ids that user_id follows."""
        pass

    @abstractmethod
    async def followers_among(self, user_id: str, candidate_ids: Sequence[str]) -> list[str]:
        """Subset of candidate_ids that follow user_id."""
        pass

    @abstractmethod
    async def exists(self, follower_id: str, following_id: str) -> bool:
        """Check a single directed edge."""
        pass


class IFriendRequestRepository(ABC):
    """Repository interface for friend requests."""

    @abstractmethod
    async def add(self, request: FriendRequest) -> None:
        pass

    @abstractmethod
    async def get_by_id(self, request_id: str) -> FriendRequest | None:
        pass

    @abstractmethod
    async def find_between(self, user_a: str, user_b: str) -> list[FriendRequest]:
        """All requests for the unordered pair, newest first."""
        pass

    @abstractmethod
    async def update_status(self, request_id: str, status: FriendRequestStatus) -> None:
        pass


class IRankingRepository(ABC):
    """Repository interface for rankings and their items."""

    @abstractmethod
    async def add(self, ranking: Ranking) -> None:
        """Insert the ranking row (items are written by replace_items)."""
        pass

    @abstractmethod
    async def update(self, ranking: Ranking) -> None:
        """Update the ranking row's mutable fields."""
        pass

    @abstractmethod
    async def delete(self, ranking_id: str) -> None:
        """Delete the ranking; items cascade."""
        pass

    @abstractmethod
    async def get_by_id(self, ranking_id: str) -> Ranking | None:
        """Get a ranking with its items ordered by position."""
        pass

    @abstractmethod
    async def replace_items(self, ranking: Ranking) -> None:
        """Delete all stored items of the ranking and insert ranking.items."""
        pass

    @abstractmethod
    async def update_visibility(self, ranking_id: str, visibility: Visibility) -> None:
        pass

    @abstractmethod
    async def max_source_variant(
        self, owner_id: str, source_type: SourceType, source_id: str
    ) -> int | None:
        """Highest source_variant for (owner, source_type, source_id), None if none."""
        pass

    @abstractmethod
    async def list_summaries(
        self,
        owner_ids: Sequence[str] | None = None,
        visibilities: Sequence[Visibility] | None = None,
        source_type: SourceType | None = None,
        source_id: str | None = None,
        fixed_pool_only: bool = False,
        limit: int | None = None,
    ) -> list[RankingSummary]:
        """List rankings with item/like counts, most recently updated first."""
        pass

    @abstractmethod
    async def add_like(self, ranking_id: str, user_id: str) -> bool:
        """Record a like. Returns False if the user already liked it."""
        pass

    @abstractmethod
    async def count_likes_received(
        self, owner_id: str, visibilities: Sequence[Visibility] | None = None
    ) -> int:
        """Likes on owner_id's rankings, optionally only rankings with these visibilities."""
        pass


class ICatalogRepository(ABC):
    """Repository interface for the denormalized catalog cache."""

    @abstractmethod
    async def upsert_artists(
        self, artists: Sequence[CatalogArtist], overwrite: bool = True
    ) -> None:
        """Upsert artists. overwrite=False only inserts missing ids (stub refs)."""
        pass

    @abstractmethod
    async def upsert_albums(self, albums: Sequence[CatalogAlbum]) -> None:
        pass

    @abstractmethod
    async def upsert_tracks(self, tracks: Sequence[CatalogTrack]) -> None:
        pass

    @abstractmethod
    async def get_artists(self, ids: Sequence[str]) -> list[CatalogArtist]:
        pass

    @abstractmethod
    async def get_albums(self, ids: Sequence[str]) -> list[tuple[CatalogAlbum, str | None]]:
        """Albums with their artist_id (parent reference)."""
        pass

    @abstractmethod
    async def get_tracks(self, ids: Sequence[str]) -> list[CatalogTrack]:
        pass


class INotificationRepository(ABC):
    """Repository interface for in-app notifications."""

    @abstractmethod
    async def add(self, notification: Notification) -> None:
        pass

    @abstractmethod
    async def list_for_user(
        self, user_id: str, limit: int, unread_only: bool = False
    ) -> list[Notification]:
        """Newest first."""
        pass

    @abstractmethod
    async def mark_read(self, user_id: str, notification_ids: Sequence[str]) -> int:
        pass

    @abstractmethod
    async def mark_all_read(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def mark_friend_request_read(self, user_id: str, friend_request_id: str) -> int:
        """Mark the friend_request notification carrying this request id read."""
        pass


class ISessionRepository(ABC):
    """Repository interface for server-side sessions written by the identity integration."""

    @abstractmethod
    async def add(self, session_id: str, user_id: str, expires_at: datetime) -> None:
        pass

    @abstractmethod
    async def get_user_id(self, session_id: str, now: datetime) -> str | None:
        """User id for a live session, None if unknown or expired."""
        pass


class INotificationPublisher(ABC):
    """Outbound push channel for freshly created notifications."""

    @abstractmethod
    def publish(self, notification: Notification) -> int:
        """Deliver to the recipient's open subscriptions; returns delivery count."""
        pass


__all__ = [
    "ICatalogRepository",
    "IFollowRepository",
    "IFriendRequestRepository",
    "INotificationPublisher",
    "INotificationRepository",
    "IProfileRepository",
    "IRankingRepository",
    "ISessionRepository",
]
