"""Tests for RankingService (create/update/delete/visibility/like)."""

from unittest.mock import AsyncMock, patch

import pytest
from factories import make_album, make_artist, make_track
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rankify.application.services import (
    FriendService,
    NotificationService,
    ProfileService,
    RankingService,
    validate_draft,
)
from rankify.domain.entities import (
    NotificationType,
    RankingDraft,
    RankingType,
    SourceType,
    Visibility,
)
from rankify.domain.exceptions import (
    AuthorizationError,
    EntityNotFoundException,
    ValidationException,
)
from rankify.infrastructure.persistence import CatalogRepository, NotificationRepository


def album_draft(
    *album_ids: str,
    title: str = "My albums",
    visibility: Visibility = Visibility.PUBLIC,
    source_id: str | None = None,
) -> RankingDraft:
    return RankingDraft(
        title=title,
        ranking_type=RankingType.ALBUMS,
        items=[make_album(album_id) for album_id in album_ids],
        visibility=visibility,
        source_type=SourceType.ARTIST if source_id else None,
        source_id=source_id,
    )


class TestValidateDraft:
    def test_valid_draft_passes(self) -> None:
        validate_draft(album_draft("a", "b"))

    @pytest.mark.parametrize("title", ["", "   "])
    def test_blank_title(self, title: str) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_draft(album_draft("a", title=title))
        assert exc_info.value.message == "Title is required"

    def test_no_items(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            validate_draft(album_draft())
        assert exc_info.value.message == "At least one item is required"

    def test_wrong_item_kind(self) -> None:
        draft = RankingDraft(
            title="Songs", ranking_type=RankingType.SONGS, items=[make_album("a")]
        )
        with pytest.raises(ValidationException) as exc_info:
            validate_draft(draft)
        assert exc_info.value.message == "A songs ranking can only hold track items"

    def test_duplicate_items(self) -> None:
        with pytest.raises(ValidationException):
            validate_draft(album_draft("a", "a"))

    def test_half_specified_source(self) -> None:
        draft = album_draft("a")
        draft.source_type = SourceType.ARTIST
        with pytest.raises(ValidationException):
            validate_draft(draft)


class TestRankingService:
    @pytest.fixture
    def service(self, session: AsyncSession) -> RankingService:
        return RankingService(session)

    async def test_create_stores_items_in_order(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        ranking = await service.create("alice", album_draft("a", "b", "c", title="  Top 3  "))

        stored = await service.ranking_repository.get_by_id(ranking.id)
        assert stored is not None
        assert stored.title == "Top 3"
        assert stored.owner_id == "alice"
        assert [(i.item_id, i.position) for i in stored.items] == [("a", 1), ("b", 2), ("c", 3)]
        assert stored.source_variant is None

    async def test_create_ensures_owner_profile(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        await service.create("alice", album_draft("a"))
        assert (await ProfileService(session).get_profile("alice")).friend_code

    async def test_create_caches_catalog_metadata(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        await service.create("alice", album_draft("a"))

        catalog = CatalogRepository(session)
        albums = await catalog.get_albums(["a"])
        assert [album.name for album, _ in albums] == ["Album a"]
        # the album's credited artist is cached as a stub
        assert [artist.name for artist in await catalog.get_artists(["ar1"])] == ["Radiohead"]

    async def test_stub_artist_does_not_overwrite_full_artist(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        await service.create(
            "alice",
            RankingDraft(
                title="Artists", ranking_type=RankingType.ARTISTS, items=[make_artist("ar1")]
            ),
        )
        await service.create("alice", album_draft("a"))

        artists = await CatalogRepository(session).get_artists(["ar1"])
        assert artists[0].image_url == "https://img.example/ar1.jpg"
        assert artists[0].genres == ["rock"]

    async def test_cache_failure_does_not_fail_save(self, service: RankingService) -> None:
        with patch.object(
            service.catalog_cache.catalog_repository,
            "upsert_albums",
            AsyncMock(side_effect=RuntimeError("cache down")),
        ):
            ranking = await service.create("alice", album_draft("a"))

        stored = await service.ranking_repository.get_by_id(ranking.id)
        assert stored is not None
        assert stored.ordered_item_ids() == ["a"]

    async def test_fixed_pool_rankings_get_increasing_variants(
        self, service: RankingService
    ) -> None:
        first = await service.create("alice", album_draft("a", source_id="ar1"))
        second = await service.create("alice", album_draft("b", "a", source_id="ar1"))
        other_pool = await service.create("alice", album_draft("c", source_id="ar2"))

        assert first.source_variant == 1
        assert second.source_variant == 2
        assert other_pool.source_variant == 1

    async def test_variants_are_per_owner(self, service: RankingService) -> None:
        await service.create("alice", album_draft("a", source_id="ar1"))
        bobs = await service.create("bob", album_draft("a", source_id="ar1"))
        assert bobs.source_variant == 1

    async def test_variant_collision_is_retried_once(self, service: RankingService) -> None:
        await service.create("alice", album_draft("a", source_id="ar1"))

        # first read sees a stale max, the retry sees the real one
        real_max = service.ranking_repository.max_source_variant
        stale = AsyncMock(side_effect=[0, 1])
        with patch.object(service.ranking_repository, "max_source_variant", stale):
            ranking = await service.create("alice", album_draft("b", source_id="ar1"))

        assert ranking.source_variant == 2
        assert stale.await_count == 2
        assert await real_max("alice", SourceType.ARTIST, "ar1") == 2

    async def test_variant_collision_gives_up_after_retry(self, service: RankingService) -> None:
        await service.create("alice", album_draft("a", source_id="ar1"))

        with patch.object(
            service.ranking_repository, "max_source_variant", AsyncMock(return_value=0)
        ):
            with pytest.raises(IntegrityError):
                await service.create("alice", album_draft("b", source_id="ar1"))

    async def test_update_rewrites_items(self, service: RankingService) -> None:
        ranking = await service.create("alice", album_draft("a", "b", "c"))

        await service.update("alice", ranking.id, album_draft("c", "a", title="Reordered"))

        stored = await service.ranking_repository.get_by_id(ranking.id)
        assert stored is not None
        assert stored.title == "Reordered"
        assert [(i.item_id, i.position) for i in stored.items] == [("c", 1), ("a", 2)]

    async def test_update_keeps_variant_for_same_pool(self, service: RankingService) -> None:
        await service.create("alice", album_draft("a", source_id="ar1"))
        second = await service.create("alice", album_draft("b", source_id="ar1"))

        updated = await service.update("alice", second.id, album_draft("a", "b", source_id="ar1"))

        assert updated.source_variant == 2

    async def test_update_to_other_pool_takes_next_variant_and_leaves_gap(
        self, service: RankingService
    ) -> None:
        first = await service.create("alice", album_draft("a", source_id="ar1"))
        second = await service.create("alice", album_draft("b", source_id="ar1"))

        moved = await service.update("alice", first.id, album_draft("c", source_id="ar2"))
        third = await service.create("alice", album_draft("a", "b", source_id="ar1"))

        assert moved.source_id == "ar2"
        assert moved.source_variant == 1
        # variant 1 of ar1 is not reused: variants only grow
        assert third.source_variant == 3
        remaining = await service.ranking_repository.list_summaries(
            owner_ids=["alice"], source_type=SourceType.ARTIST, source_id="ar1"
        )
        assert {s.ranking.id for s in remaining} == {second.id, third.id}
        assert {s.ranking.source_variant for s in remaining} == {2, 3}

    async def test_update_to_free_ranking_clears_variant(self, service: RankingService) -> None:
        ranking = await service.create("alice", album_draft("a", source_id="ar1"))

        updated = await service.update("alice", ranking.id, album_draft("a"))

        assert updated.source_variant is None
        assert not updated.is_fixed_pool

    async def test_update_someone_elses_ranking_is_hidden(self, service: RankingService) -> None:
        ranking = await service.create("alice", album_draft("a"))

        with pytest.raises(AuthorizationError):
            await service.update("mallory", ranking.id, album_draft("b"))

    async def test_update_missing_ranking(self, service: RankingService) -> None:
        with pytest.raises(EntityNotFoundException):
            await service.update("alice", "nope", album_draft("a"))

    async def test_delete_removes_ranking_and_items(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        ranking = await service.create("alice", album_draft("a", "b"))

        await service.delete("alice", ranking.id)

        assert await service.ranking_repository.get_by_id(ranking.id) is None
        assert await service.ranking_repository.list_summaries(owner_ids=["alice"]) == []

    async def test_delete_requires_ownership(self, service: RankingService) -> None:
        ranking = await service.create("alice", album_draft("a"))

        with pytest.raises(AuthorizationError):
            await service.delete("mallory", ranking.id)

    async def test_change_visibility(self, service: RankingService) -> None:
        ranking = await service.create("alice", album_draft("a"))

        updated = await service.change_visibility("alice", ranking.id, "private")

        assert updated.visibility is Visibility.PRIVATE
        stored = await service.ranking_repository.get_by_id(ranking.id)
        assert stored is not None and stored.visibility is Visibility.PRIVATE

    async def test_change_visibility_rejects_unknown_value(self, service: RankingService) -> None:
        ranking = await service.create("alice", album_draft("a"))

        with pytest.raises(ValidationException):
            await service.change_visibility("alice", ranking.id, "secret")

    async def test_like_notifies_owner_once(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        ranking = await service.create("alice", album_draft("a", title="Best of"))

        assert await service.like("bob", ranking.id) is True
        assert await service.like("bob", ranking.id) is False

        notifications = await NotificationService(NotificationRepository(session)).list("alice")
        assert len(notifications) == 1
        assert notifications[0].type is NotificationType.RANKING_LIKE
        assert notifications[0].data["ranking_title"] == "Best of"
        assert notifications[0].data["liker_id"] == "bob"

    async def test_liking_own_ranking_does_not_notify(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        ranking = await service.create("alice", album_draft("a"))

        assert await service.like("alice", ranking.id) is True
        assert await NotificationService(NotificationRepository(session)).list("alice") == []

    async def test_cannot_like_private_ranking_of_someone_else(
        self, service: RankingService
    ) -> None:
        ranking = await service.create("alice", album_draft("a", visibility=Visibility.PRIVATE))

        with pytest.raises(AuthorizationError):
            await service.like("bob", ranking.id)

    async def test_friend_can_like_friends_only_ranking(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        ranking = await service.create("alice", album_draft("a", visibility=Visibility.FRIENDS))
        friends = FriendService(session)
        alice = await ProfileService(session).get_profile("alice")
        outcome = await friends.send_request("bob", alice.friend_code)
        await friends.respond_to_request("alice", outcome.request_id, "accept")

        assert await service.like("bob", ranking.id) is True

    async def test_songs_ranking_caches_tracks(
        self, service: RankingService, session: AsyncSession
    ) -> None:
        album = make_album("al1")
        draft = RankingDraft(
            title="Songs",
            ranking_type=RankingType.SONGS,
            items=[make_track("t1", album=album), make_track("t2", album=album)],
        )

        await service.create("alice", draft)

        tracks = await CatalogRepository(session).get_tracks(["t1", "t2"])
        assert {t.id for t in tracks} == {"t1", "t2"}
        assert all(t.image_url == album.image_url for t in tracks)
