"""Read side for rankings: detail view with catalog metadata and list views."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from rankify.application.services.friend_service import FriendService
from rankify.domain.entities import (
    FullRanking,
    ItemMeta,
    Ranking,
    RankingSummary,
    RankingType,
    Visibility,
)
from rankify.infrastructure.persistence.repositories import (
    CatalogRepository,
    ProfileRepository,
    RankingRepository,
)

logger = logging.getLogger(__name__)

PUBLIC_RANKINGS_LIMIT = 20


@dataclass
class ProfileStats:
    """Counters shown on the own-profile card."""

    friend_count: int = 0
    total_likes: int = 0


class RankingQueryService:
    """Visibility-scoped ranking lookups."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.ranking_repository = RankingRepository(session)
        self.profile_repository = ProfileRepository(session)
        self.catalog_repository = CatalogRepository(session)
        self.friends = FriendService(session)

    async def _can_view(self, ranking: Ranking, viewer_id: str | None) -> bool:
        # Only pay for the friend lookup when it can change the answer.
        if ranking.visibility is not Visibility.FRIENDS or viewer_id in (None, ranking.owner_id):
            return ranking.is_visible_to(viewer_id, set())
        friend_ids = await self.friends.get_friend_ids(viewer_id)  # type: ignore[arg-type]
        return ranking.is_visible_to(viewer_id, friend_ids)

    async def _resolve_items(self, ranking: Ranking) -> list[ItemMeta]:
        # Hey future me - ONE batch query per table, never per item. Items that are not in
        # the cache (best-effort upsert failed) just have no metadata; the caller renders
        # a placeholder for them.
        item_ids = ranking.ordered_item_ids()
        if not item_ids:
            return []

        if ranking.ranking_type is RankingType.ARTISTS:
            return [
                ItemMeta(id=a.id, name=a.name, image_url=a.image_url)
                for a in await self.catalog_repository.get_artists(item_ids)
            ]

        if ranking.ranking_type is RankingType.ALBUMS:
            albums = await self.catalog_repository.get_albums(item_ids)
            artist_ids = sorted({artist_id for _, artist_id in albums if artist_id})
            artist_names = {
                a.id: a.name for a in await self.catalog_repository.get_artists(artist_ids)
            }
            return [
                ItemMeta(
                    id=album.id,
                    name=album.name,
                    image_url=album.image_url,
                    artist_name=artist_names.get(artist_id) if artist_id else None,
                )
                for album, artist_id in albums
            ]

        return [
            ItemMeta(
                id=t.id,
                name=t.name,
                image_url=t.image_url,
                duration_ms=t.duration_ms,
            )
            for t in await self.catalog_repository.get_tracks(item_ids)
        ]

    async def get_full_ranking(
        self, ranking_id: str, viewer_id: str | None = None
    ) -> FullRanking | None:
        """Ranking + owner + item metadata, or None if missing or not visible to viewer.

        Missing and not-visible are deliberately the same answer.
        """
        ranking = await self.ranking_repository.get_by_id(ranking_id)
        if ranking is None:
            return None
        if not await self._can_view(ranking, viewer_id):
            logger.debug("Ranking %s hidden from viewer %s", ranking_id, viewer_id)
            return None

        owner = await self.profile_repository.get_by_id(ranking.owner_id)
        return FullRanking(ranking=ranking, owner=owner, items=await self._resolve_items(ranking))

    async def get_user_rankings(self, user_id: str) -> list[RankingSummary]:
        return await self.ranking_repository.list_summaries(owner_ids=[user_id])

    async def get_public_rankings(self, limit: int = PUBLIC_RANKINGS_LIMIT) -> list[RankingSummary]:
        return await self.ranking_repository.list_summaries(
            visibilities=[Visibility.PUBLIC], limit=limit
        )

    async def get_friends_rankings(self, user_id: str) -> list[RankingSummary]:
        friend_ids = await self.friends.get_friend_ids(user_id)
        return await self.ranking_repository.list_summaries(
            owner_ids=sorted(friend_ids),
            visibilities=[Visibility.PUBLIC, Visibility.FRIENDS],
        )

    async def get_user_fixed_rankings(self, user_id: str) -> list[RankingSummary]:
        """The user's own fixed-pool rankings (comparison base picker)."""
        return await self.ranking_repository.list_summaries(
            owner_ids=[user_id], fixed_pool_only=True
        )

    async def get_profile_stats(self, user_id: str) -> ProfileStats:
        """Friend count plus likes received on the user's PUBLIC rankings."""
        friend_ids = await self.friends.get_friend_ids(user_id)
        total_likes = await self.ranking_repository.count_likes_received(
            user_id, visibilities=[Visibility.PUBLIC]
        )
        return ProfileStats(friend_count=len(friend_ids), total_likes=total_likes)
