"""Infrastructure persistence layer."""

from .database import Database
from .models import (
    AlbumModel,
    ArtistModel,
    Base,
    FollowModel,
    FriendRequestModel,
    NotificationModel,
    ProfileModel,
    RankingItemModel,
    RankingLikeModel,
    RankingModel,
    TrackModel,
    UserSessionModel,
)
from .repositories import (
    CatalogRepository,
    FollowRepository,
    FriendRequestRepository,
    NotificationRepository,
    ProfileRepository,
    RankingRepository,
    SessionRepository,
)

__all__ = [
    # Database
    "Database",
    "Base",
    # Models
    "AlbumModel",
    "ArtistModel",
    "FollowModel",
    "FriendRequestModel",
    "NotificationModel",
    "ProfileModel",
    "RankingItemModel",
    "RankingLikeModel",
    "RankingModel",
    "TrackModel",
    "UserSessionModel",
    # Repositories
    "CatalogRepository",
    "FollowRepository",
    "FriendRequestRepository",
    "NotificationRepository",
    "ProfileRepository",
    "RankingRepository",
    "SessionRepository",
]
