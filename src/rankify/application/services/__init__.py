"""Application services - business logic on top of the repositories."""

from rankify.application.services.catalog_cache_service import CatalogCacheService
from rankify.application.services.friend_service import (
    FriendRequestOutcome,
    FriendService,
    FriendsPage,
)
from rankify.application.services.notification_service import NotificationService
from rankify.application.services.profile_service import ProfileService
from rankify.application.services.ranking_query_service import ProfileStats, RankingQueryService
from rankify.application.services.ranking_service import RankingService, validate_draft
from rankify.application.services.side_effects import run_best_effort

__all__ = [
    "CatalogCacheService",
    "FriendRequestOutcome",
    "FriendService",
    "FriendsPage",
    "NotificationService",
    "ProfileService",
    "ProfileStats",
    "RankingQueryService",
    "RankingService",
    "run_best_effort",
    "validate_draft",
]
