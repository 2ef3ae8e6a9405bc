"""Domain entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from rankify.domain.entities.catalog import (
    ArtistRef,
    CatalogAlbum,
    CatalogArtist,
    CatalogItem,
    CatalogItemKind,
    CatalogTrack,
)


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


class RankingType(str, Enum):
    """What a ranking orders."""

    ALBUMS = "albums"
    SONGS = "songs"
    ARTISTS = "artists"

    @property
    def item_kind(self) -> CatalogItemKind:
        """Catalog item kind that this ranking type holds."""
        return {
            RankingType.ALBUMS: CatalogItemKind.ALBUM,
            RankingType.SONGS: CatalogItemKind.TRACK,
            RankingType.ARTISTS: CatalogItemKind.ARTIST,
        }[self]


# Hey future me - visibility has no state machine! Any value can move to any other value,
# always by the owner. private = owner only, friends = owner + mutual follows, public = everyone.
class Visibility(str, Enum):
    """Per-ranking access scope."""

    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class SourceType(str, Enum):
    """Provenance of a fixed-pool ranking."""

    ARTIST = "artist"
    ALBUM = "album"


class FriendRequestStatus(str, Enum):
    """Friend request lifecycle. pending -> accepted | declined, exactly once."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class FriendRequestAction(str, Enum):
    """What the target of a friend request can do with it."""

    ACCEPT = "accept"
    DECLINE = "decline"

    @property
    def resulting_status(self) -> FriendRequestStatus:
        return (
            FriendRequestStatus.ACCEPTED
            if self is FriendRequestAction.ACCEPT
            else FriendRequestStatus.DECLINED
        )


class NotificationType(str, Enum):
    """Kinds of in-app notifications."""

    FRIEND_REQUEST = "friend_request"
    RANKING_LIKE = "ranking_like"


@dataclass
class Profile:
    """One profile per authenticated user; id is the identity provider's subject id."""

    id: str
    friend_code: str
    display_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def name(self) -> str:
        """Best human-readable name for messages."""
        return self.display_name or self.username or "Unknown user"


@dataclass
class FriendRequest:
    """Pending/accepted/declined friend request between two profiles."""

    id: str
    requester_id: str
    target_id: str
    status: FriendRequestStatus = FriendRequestStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_pending(self) -> bool:
        return self.status is FriendRequestStatus.PENDING


@dataclass
class RankingItem:
    """One positioned entry of a ranking. Positions are 1-based and dense."""

    item_id: str
    position: int
    notes: str | None = None


# Hey future me, Ranking.items is ALWAYS rebuilt in full via replace_items()! We never patch
# a single position - the whole 1..N sequence is rewritten so there can't be gaps or dupes.
@dataclass
class Ranking:
    """An ordered personal ranking of catalog items."""

    id: str
    owner_id: str
    title: str
    ranking_type: RankingType
    visibility: Visibility = Visibility.PUBLIC
    description: str | None = None
    source_type: SourceType | None = None
    source_id: str | None = None
    source_variant: int | None = None
    pool_item_ids: list[str] = field(default_factory=list)
    items: list[RankingItem] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_fixed_pool(self) -> bool:
        return self.source_type is not None and self.source_id is not None

    def replace_items(self, item_ids: list[str]) -> None:
        """Replace the full ordered item list, positions = index + 1."""
        self.items = [
            RankingItem(item_id=item_id, position=index + 1)
            for index, item_id in enumerate(item_ids)
        ]

    def ordered_item_ids(self) -> list[str]:
        return [item.item_id for item in sorted(self.items, key=lambda i: i.position)]

    def is_visible_to(self, viewer_id: str | None, viewer_friend_ids: set[str]) -> bool:
        """Visibility check for a viewer (None = anonymous)."""
        if self.visibility is Visibility.PUBLIC:
            return True
        if viewer_id is None:
            return False
        if viewer_id == self.owner_id:
            return True
        return self.visibility is Visibility.FRIENDS and self.owner_id in viewer_friend_ids


@dataclass
class RankingSummary:
    """Ranking row annotated with aggregates for list views."""

    ranking: Ranking
    item_count: int = 0
    like_count: int = 0
    owner_username: str | None = None
    owner_display_name: str | None = None


@dataclass
class ItemMeta:
    """Display metadata for one ranked item, resolved from the catalog cache."""

    id: str
    name: str
    image_url: str | None = None
    duration_ms: int | None = None
    artist_name: str | None = None


@dataclass
class FullRanking:
    """A ranking with its owner and resolved item metadata.

    `items` is unordered and keyed by id - use ordered_items() to join it back
    to the positional item list.
    """

    ranking: Ranking
    owner: Profile | None
    items: list[ItemMeta] = field(default_factory=list)

    def ordered_items(self) -> list[tuple[RankingItem, ItemMeta | None]]:
        meta_by_id = {meta.id: meta for meta in self.items}
        return [
            (item, meta_by_id.get(item.item_id))
            for item in sorted(self.ranking.items, key=lambda i: i.position)
        ]


@dataclass
class RankingDraft:
    """Input for creating or updating a ranking."""

    title: str
    ranking_type: RankingType
    items: list[CatalogItem]
    visibility: Visibility = Visibility.PUBLIC
    description: str | None = None
    pool_items: list[CatalogItem] = field(default_factory=list)
    source_type: SourceType | None = None
    source_id: str | None = None

    @property
    def is_fixed_pool(self) -> bool:
        return self.source_type is not None and bool(self.source_id)


@dataclass
class Notification:
    """In-app notification for one recipient."""

    id: str
    user_id: str
    type: NotificationType
    data: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    created_at: datetime = field(default_factory=utc_now)


__all__ = [
    "ArtistRef",
    "CatalogAlbum",
    "CatalogArtist",
    "CatalogItem",
    "CatalogItemKind",
    "CatalogTrack",
    "FriendRequest",
    "FriendRequestAction",
    "FriendRequestStatus",
    "FullRanking",
    "ItemMeta",
    "Notification",
    "NotificationType",
    "Profile",
    "Ranking",
    "RankingDraft",
    "RankingItem",
    "RankingSummary",
    "RankingType",
    "SourceType",
    "Visibility",
    "utc_now",
]
