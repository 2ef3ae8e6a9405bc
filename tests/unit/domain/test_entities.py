"""Tests for domain entities: rankings, visibility, friend requests, profiles."""

import pytest

from rankify.domain.entities import (
    CatalogItemKind,
    FriendRequestAction,
    FriendRequestStatus,
    FullRanking,
    ItemMeta,
    Profile,
    Ranking,
    RankingType,
    Visibility,
)


def _ranking(visibility: Visibility = Visibility.PUBLIC) -> Ranking:
    return Ranking(
        id="r1",
        owner_id="owner",
        title="Best albums",
        ranking_type=RankingType.ALBUMS,
        visibility=visibility,
    )


class TestRanking:
    def test_replace_items_assigns_dense_positions(self) -> None:
        ranking = _ranking()
        ranking.replace_items(["c", "a", "b"])

        assert [(i.item_id, i.position) for i in ranking.items] == [
            ("c", 1),
            ("a", 2),
            ("b", 3),
        ]

    def test_replace_items_discards_previous_list(self) -> None:
        ranking = _ranking()
        ranking.replace_items(["a", "b", "c"])
        ranking.replace_items(["b"])

        assert ranking.ordered_item_ids() == ["b"]

    def test_is_fixed_pool_needs_both_source_fields(self) -> None:
        ranking = _ranking()
        assert not ranking.is_fixed_pool
        ranking.source_id = "ar1"
        assert not ranking.is_fixed_pool


class TestVisibility:
    def test_public_is_visible_to_anyone(self) -> None:
        ranking = _ranking(Visibility.PUBLIC)
        assert ranking.is_visible_to(None, set())
        assert ranking.is_visible_to("stranger", set())

    def test_private_is_owner_only(self) -> None:
        ranking = _ranking(Visibility.PRIVATE)
        assert ranking.is_visible_to("owner", set())
        assert not ranking.is_visible_to("friend", {"owner"})
        assert not ranking.is_visible_to(None, set())

    def test_friends_needs_mutual_follow(self) -> None:
        ranking = _ranking(Visibility.FRIENDS)
        assert ranking.is_visible_to("owner", set())
        assert ranking.is_visible_to("friend", {"owner"})
        assert not ranking.is_visible_to("stranger", {"someone-else"})
        assert not ranking.is_visible_to(None, {"owner"})


class TestRankingType:
    @pytest.mark.parametrize(
        ("ranking_type", "kind"),
        [
            (RankingType.ALBUMS, CatalogItemKind.ALBUM),
            (RankingType.SONGS, CatalogItemKind.TRACK),
            (RankingType.ARTISTS, CatalogItemKind.ARTIST),
        ],
    )
    def test_item_kind(self, ranking_type: RankingType, kind: CatalogItemKind) -> None:
        assert ranking_type.item_kind is kind


class TestFriendRequestAction:
    def test_action_maps_to_status(self) -> None:
        assert FriendRequestAction.ACCEPT.resulting_status is FriendRequestStatus.ACCEPTED
        assert FriendRequestAction.DECLINE.resulting_status is FriendRequestStatus.DECLINED


class TestProfile:
    def test_name_prefers_display_name(self) -> None:
        assert Profile(id="u", friend_code="AAAA1111", display_name="A", username="a").name == "A"
        assert Profile(id="u", friend_code="AAAA1111", username="a").name == "a"
        assert Profile(id="u", friend_code="AAAA1111").name == "Unknown user"


class TestFullRanking:
    def test_ordered_items_joins_metadata_by_position(self) -> None:
        ranking = _ranking()
        ranking.replace_items(["x", "y", "missing"])
        full = FullRanking(
            ranking=ranking,
            owner=None,
            items=[ItemMeta(id="y", name="Y"), ItemMeta(id="x", name="X")],
        )

        ordered = full.ordered_items()

        assert [(item.item_id, meta.name if meta else None) for item, meta in ordered] == [
            ("x", "X"),
            ("y", "Y"),
            ("missing", None),
        ]
