"""Tests for FriendService against an in-memory database."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rankify.application.services import FriendService, NotificationService, ProfileService
from rankify.domain.entities import FriendRequestStatus, NotificationType, SourceType
from rankify.domain.exceptions import (
    ConflictError,
    EntityNotFoundException,
    ValidationException,
)
from rankify.infrastructure.persistence import NotificationRepository


class TestFriendService:
    """Friend requests and the derived friend graph."""

    @pytest.fixture
    def publisher(self) -> MagicMock:
        mock = MagicMock()
        mock.publish.return_value = 1
        return mock

    @pytest.fixture
    def service(self, session: AsyncSession, publisher: MagicMock) -> FriendService:
        return FriendService(session, publisher)

    @pytest.fixture
    async def bob_code(self, session: AsyncSession) -> str:
        profile = await ProfileService(session).ensure_profile("bob", display_name="Bob")
        return profile.friend_code

    async def _befriend(self, service: FriendService, a: str, b: str) -> None:
        target = await ProfileService(service.session).ensure_profile(b)
        outcome = await service.send_request(a, target.friend_code)
        await service.respond_to_request(b, outcome.request_id, "accept")

    async def test_send_request_creates_pending_request_and_notification(
        self, service: FriendService, session: AsyncSession, bob_code: str, publisher: MagicMock
    ) -> None:
        outcome = await service.send_request("alice", bob_code.lower())

        assert outcome.status is FriendRequestStatus.PENDING
        assert outcome.message == "Friend request sent to Bob"

        notifications = await NotificationService(NotificationRepository(session)).list("bob")
        assert len(notifications) == 1
        assert notifications[0].type is NotificationType.FRIEND_REQUEST
        assert notifications[0].data["friend_request_id"] == outcome.request_id
        assert notifications[0].data["requester_id"] == "alice"
        publisher.publish.assert_called_once()

    async def test_send_request_creates_requester_profile_lazily(
        self, service: FriendService, session: AsyncSession, bob_code: str
    ) -> None:
        await service.send_request("alice", bob_code)

        profile = await ProfileService(session).get_profile("alice")
        assert profile.id == "alice"

    async def test_unknown_code_is_not_found(self, service: FriendService) -> None:
        with pytest.raises(EntityNotFoundException) as exc_info:
            await service.send_request("alice", "ZZZZZZZZ")
        assert exc_info.value.message == "Invalid friend code"

    async def test_malformed_code_is_not_found(self, service: FriendService) -> None:
        with pytest.raises(EntityNotFoundException):
            await service.send_request("alice", "abc")

    async def test_blank_code_is_invalid(self, service: FriendService) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await service.send_request("alice", "   ")
        assert exc_info.value.message == "Friend code is required"

    async def test_cannot_add_yourself(self, service: FriendService, bob_code: str) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await service.send_request("bob", bob_code)
        assert exc_info.value.message == "Cannot add yourself as a friend"

    async def test_duplicate_pending_request_conflicts(
        self, service: FriendService, bob_code: str
    ) -> None:
        await service.send_request("alice", bob_code)

        with pytest.raises(ConflictError) as exc_info:
            await service.send_request("alice", bob_code)
        assert exc_info.value.message == "Friend request already sent"

    async def test_pending_request_in_reverse_direction_conflicts(
        self, service: FriendService, session: AsyncSession, bob_code: str
    ) -> None:
        await service.send_request("alice", bob_code)
        alice = await ProfileService(session).get_profile("alice")

        with pytest.raises(ConflictError):
            await service.send_request("bob", alice.friend_code)

    async def test_request_after_accept_conflicts(
        self, service: FriendService, bob_code: str
    ) -> None:
        outcome = await service.send_request("alice", bob_code)
        await service.respond_to_request("bob", outcome.request_id, "accept")

        with pytest.raises(ConflictError) as exc_info:
            await service.send_request("alice", bob_code)
        assert exc_info.value.message == "Already friends"

    async def test_request_after_decline_is_allowed(
        self, service: FriendService, bob_code: str
    ) -> None:
        first = await service.send_request("alice", bob_code)
        await service.respond_to_request("bob", first.request_id, "decline")

        second = await service.send_request("alice", bob_code)
        assert second.request_id != first.request_id

    async def test_accept_makes_users_mutual_friends(
        self, service: FriendService, bob_code: str
    ) -> None:
        outcome = await service.send_request("alice", bob_code)

        result = await service.respond_to_request("bob", outcome.request_id, "accept")

        assert result.status is FriendRequestStatus.ACCEPTED
        assert result.message == "Friend request accepted"
        assert await service.are_friends("alice", "bob")
        assert await service.get_friend_ids("alice") == {"bob"}
        assert await service.get_friend_ids("bob") == {"alice"}

    async def test_accept_marks_the_request_notification_read(
        self, service: FriendService, session: AsyncSession, bob_code: str
    ) -> None:
        outcome = await service.send_request("alice", bob_code)
        await service.respond_to_request("bob", outcome.request_id, "accept")

        unread = await NotificationService(NotificationRepository(session)).list(
            "bob", unread_only=True
        )
        assert unread == []

    async def test_accept_succeeds_when_follow_write_fails(
        self, service: FriendService, session: AsyncSession, bob_code: str
    ) -> None:
        outcome = await service.send_request("alice", bob_code)

        with patch.object(
            service.follow_repository,
            "add_mutual",
            AsyncMock(side_effect=RuntimeError("follow write failed")),
        ):
            result = await service.respond_to_request("bob", outcome.request_id, "accept")

        assert result.status is FriendRequestStatus.ACCEPTED
        stored = await service.request_repository.get_by_id(outcome.request_id)
        assert stored is not None
        assert stored.status is FriendRequestStatus.ACCEPTED
        # accepted without follow edges until the mutual follow is written again
        assert not await service.are_friends("alice", "bob")
        unread = await NotificationService(NotificationRepository(session)).list(
            "bob", unread_only=True
        )
        assert unread == []

    async def test_send_request_succeeds_when_notification_insert_fails(
        self, service: FriendService, session: AsyncSession, bob_code: str, publisher: MagicMock
    ) -> None:
        with patch.object(
            NotificationRepository,
            "add",
            AsyncMock(side_effect=SQLAlchemyError("insert failed")),
        ):
            outcome = await service.send_request("alice", bob_code)

        assert outcome.status is FriendRequestStatus.PENDING
        stored = await service.request_repository.get_by_id(outcome.request_id)
        assert stored is not None
        assert stored.is_pending
        assert await NotificationService(NotificationRepository(session)).list("bob") == []
        publisher.publish.assert_not_called()

    async def test_decline_does_not_create_friendship(
        self, service: FriendService, bob_code: str
    ) -> None:
        outcome = await service.send_request("alice", bob_code)

        result = await service.respond_to_request("bob", outcome.request_id, "decline")

        assert result.status is FriendRequestStatus.DECLINED
        assert not await service.are_friends("alice", "bob")

    async def test_only_target_can_respond(self, service: FriendService, bob_code: str) -> None:
        outcome = await service.send_request("alice", bob_code)

        with pytest.raises(EntityNotFoundException) as exc_info:
            await service.respond_to_request("alice", outcome.request_id, "accept")
        assert exc_info.value.message == "Friend request not found"

    async def test_answered_request_cannot_be_answered_again(
        self, service: FriendService, bob_code: str
    ) -> None:
        outcome = await service.send_request("alice", bob_code)
        await service.respond_to_request("bob", outcome.request_id, "accept")

        with pytest.raises(EntityNotFoundException):
            await service.respond_to_request("bob", outcome.request_id, "decline")

    async def test_unknown_action_is_invalid(self, service: FriendService, bob_code: str) -> None:
        outcome = await service.send_request("alice", bob_code)

        with pytest.raises(ValidationException):
            await service.respond_to_request("bob", outcome.request_id, "maybe")

    async def test_list_friends_page(self, service: FriendService, session: AsyncSession) -> None:
        profiles = ProfileService(session)
        await profiles.ensure_profile("alice", display_name="Alice")
        for user_id, name in [("c", "Carol"), ("d", "Dave"), ("e", "Eve")]:
            await profiles.ensure_profile(user_id, display_name=name)
            await self._befriend(service, "alice", user_id)

        page = await service.list_friends_page("alice", page=1, page_size=2)

        assert [p.name for p in page.friends] == ["Carol", "Dave"]
        assert page.total == 3
        assert page.total_pages == 2

        second = await service.list_friends_page("alice", page=2, page_size=2)
        assert [p.name for p in second.friends] == ["Eve"]

    async def test_list_friends_page_rejects_bad_paging(self, service: FriendService) -> None:
        with pytest.raises(ValidationException):
            await service.list_friends_page("alice", page=0)

    async def test_no_friends_gives_empty_page(self, service: FriendService) -> None:
        page = await service.list_friends_page("loner")
        assert page.friends == []
        assert page.total_pages == 0

    async def test_list_friends_rankings_requires_valid_source(
        self, service: FriendService
    ) -> None:
        with pytest.raises(ValidationException):
            await service.list_friends_rankings("alice", "playlist", "x")
        with pytest.raises(ValidationException):
            await service.list_friends_rankings("alice", SourceType.ARTIST, "")

    async def test_list_friends_rankings_without_friends_is_empty(
        self, service: FriendService
    ) -> None:
        assert await service.list_friends_rankings("alice", SourceType.ARTIST, "ar1") == []
