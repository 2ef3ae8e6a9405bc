"""Ranking lifecycle: create, update, delete, visibility, likes.

Hey future me - a save is TWO writes: the ranking row, then a full rewrite of
its items (delete all + insert 1..N). We never diff positions. Both run in
the request transaction, so a failed item insert rolls the row back too.

Ownership is checked here (AuthorizationError, which the API reports as 404)
on top of whatever row policy the database layer enforces.
"""

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rankify.application.services.catalog_cache_service import CatalogCacheService
from rankify.application.services.friend_service import FriendService
from rankify.application.services.notification_service import NotificationService
from rankify.application.services.profile_service import ProfileService
from rankify.application.services.side_effects import run_best_effort
from rankify.domain.entities import (
    NotificationType,
    Ranking,
    RankingDraft,
    Visibility,
    utc_now,
)
from rankify.domain.exceptions import (
    AuthorizationError,
    EntityNotFoundException,
    ValidationException,
)
from rankify.domain.ports import INotificationPublisher
from rankify.infrastructure.persistence.repositories import (
    NotificationRepository,
    RankingRepository,
)

logger = logging.getLogger(__name__)

# one retry after a (owner, source, variant) unique violation
VARIANT_ATTEMPTS = 2


def validate_draft(draft: RankingDraft) -> None:
    """Boundary validation for create/update input.

    Raises:
        ValidationException: blank title, no items, duplicate items, items of the
            wrong kind, or half-specified source fields
    """
    if not draft.title or not draft.title.strip():
        raise ValidationException("Title is required")
    if not draft.items:
        raise ValidationException("At least one item is required")

    expected_kind = draft.ranking_type.item_kind
    wrong = [item.id for item in draft.items if item.kind is not expected_kind]
    if wrong:
        raise ValidationException(
            f"A {draft.ranking_type.value} ranking can only hold {expected_kind.value} items"
        )

    ids = [item.id for item in draft.items]
    if len(set(ids)) != len(ids):
        raise ValidationException("A ranking cannot contain the same item twice")

    if (draft.source_type is None) != (not draft.source_id):
        raise ValidationException("source_type and source_id must be given together")


class RankingService:
    """Create/update/delete rankings owned by the caller."""

    def __init__(
        self,
        session: AsyncSession,
        publisher: INotificationPublisher | None = None,
    ) -> None:
        self.session = session
        self.ranking_repository = RankingRepository(session)
        self.profiles = ProfileService(session)
        self.catalog_cache = CatalogCacheService(session)
        self.friends = FriendService(session, publisher)
        self.notifications = NotificationService(NotificationRepository(session), publisher)

    async def _get_owned(self, owner_id: str, ranking_id: str) -> Ranking:
        ranking = await self.ranking_repository.get_by_id(ranking_id)
        if ranking is None:
            raise EntityNotFoundException("Ranking", ranking_id)
        if ranking.owner_id != owner_id:
            raise AuthorizationError("Ranking", ranking_id)
        return ranking

    async def _next_variant(self, ranking: Ranking) -> int:
        """max + 1 over the owner's rankings of this pool.

        Variants are never renumbered: deleting a ranking, or moving it to another pool
        on update, leaves a gap in the old pool and the next save there still gets max + 1.
        """
        assert ranking.source_type is not None and ranking.source_id is not None
        current = await self.ranking_repository.max_source_variant(
            ranking.owner_id, ranking.source_type, ranking.source_id
        )
        return (current or 0) + 1

    async def _insert_with_variant(self, ranking: Ranking) -> None:
        # Read-then-write max+1. The unique constraint on (owner, source, variant) catches a
        # concurrent save that grabbed the same number; recompute once and retry.
        for attempt in range(1, VARIANT_ATTEMPTS + 1):
            ranking.source_variant = await self._next_variant(ranking)
            try:
                async with self.session.begin_nested():
                    await self.ranking_repository.add(ranking)
                return
            except IntegrityError:
                if attempt == VARIANT_ATTEMPTS:
                    raise
                logger.warning(
                    "Source variant %d for %s/%s taken concurrently, retrying",
                    ranking.source_variant,
                    ranking.source_type,
                    ranking.source_id,
                )

    async def create(self, owner_id: str, draft: RankingDraft) -> Ranking:
        """Create a ranking and its items. Returns the stored ranking."""
        validate_draft(draft)
        await self.profiles.ensure_profile(owner_id)
        await self.catalog_cache.cache_items([*draft.items, *draft.pool_items])

        now = utc_now()
        ranking = Ranking(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=draft.title.strip(),
            description=draft.description,
            ranking_type=draft.ranking_type,
            visibility=draft.visibility,
            source_type=draft.source_type,
            source_id=draft.source_id or None,
            pool_item_ids=[item.id for item in draft.pool_items],
            created_at=now,
            updated_at=now,
        )
        ranking.replace_items([item.id for item in draft.items])

        if ranking.is_fixed_pool:
            await self._insert_with_variant(ranking)
        else:
            await self.ranking_repository.add(ranking)
        await self.ranking_repository.replace_items(ranking)

        logger.info(
            "Created %s ranking %s for %s with %d items%s",
            ranking.ranking_type.value,
            ranking.id,
            owner_id,
            len(ranking.items),
            f" (variant {ranking.source_variant})" if ranking.is_fixed_pool else "",
        )
        return ranking

    async def update(self, owner_id: str, ranking_id: str, draft: RankingDraft) -> Ranking:
        """Update fields in place and rewrite the full item list.

        Moving the ranking to another pool takes that pool's next variant (see _next_variant).
        """
        validate_draft(draft)
        ranking = await self._get_owned(owner_id, ranking_id)
        await self.catalog_cache.cache_items([*draft.items, *draft.pool_items])

        same_pool = (
            ranking.is_fixed_pool
            and ranking.source_type == draft.source_type
            and ranking.source_id == draft.source_id
        )
        ranking.title = draft.title.strip()
        ranking.description = draft.description
        ranking.ranking_type = draft.ranking_type
        ranking.visibility = draft.visibility
        ranking.source_type = draft.source_type
        ranking.source_id = draft.source_id or None
        ranking.pool_item_ids = [item.id for item in draft.pool_items]
        ranking.updated_at = utc_now()
        ranking.replace_items([item.id for item in draft.items])

        if not ranking.is_fixed_pool:
            ranking.source_variant = None
        elif not same_pool:
            # moved to a different pool: becomes the next variant of that pool
            ranking.source_variant = await self._next_variant(ranking)

        await self.ranking_repository.update(ranking)
        await self.ranking_repository.replace_items(ranking)
        logger.info("Updated ranking %s (%d items)", ranking.id, len(ranking.items))
        return ranking

    async def delete(self, owner_id: str, ranking_id: str) -> None:
        await self._get_owned(owner_id, ranking_id)
        await self.ranking_repository.delete(ranking_id)
        logger.info("Deleted ranking %s", ranking_id)

    async def change_visibility(
        self, owner_id: str, ranking_id: str, visibility: Visibility | str
    ) -> Ranking:
        try:
            visibility = Visibility(visibility)
        except ValueError as e:
            raise ValidationException(f"Invalid visibility: {visibility!r}") from e

        ranking = await self._get_owned(owner_id, ranking_id)
        await self.ranking_repository.update_visibility(ranking_id, visibility)
        ranking.visibility = visibility
        return ranking

    async def like(self, user_id: str, ranking_id: str) -> bool:
        """Like a ranking the user can see. Returns False if already liked.

        The owner gets a ranking_like notification unless they liked their own.
        """
        ranking = await self.ranking_repository.get_by_id(ranking_id)
        if ranking is None:
            raise EntityNotFoundException("Ranking", ranking_id)
        friend_ids = await self.friends.get_friend_ids(user_id)
        if not ranking.is_visible_to(user_id, friend_ids):
            raise AuthorizationError("Ranking", ranking_id)

        liker = await self.profiles.ensure_profile(user_id)
        added = await self.ranking_repository.add_like(ranking_id, user_id)
        if not added:
            return False

        if ranking.owner_id != user_id:
            await run_best_effort(
                self.session,
                f"Like notification for ranking {ranking_id}",
                lambda: self.notifications.create(
                    ranking.owner_id,
                    NotificationType.RANKING_LIKE,
                    {
                        "ranking_id": ranking.id,
                        "ranking_title": ranking.title,
                        "liker_id": user_id,
                        "liker_name": liker.name,
                    },
                ),
            )
        return True
