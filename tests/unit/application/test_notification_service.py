"""Unit tests for NotificationService.

Hey future me - the repository is mocked here; the SQL side (user scoping of
mark-read, unread filter) is covered in the repository tests.
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from rankify.application.services.notification_service import NotificationService
from rankify.domain.entities import Notification, NotificationType
from rankify.domain.exceptions import ValidationException
from rankify.domain.ports import INotificationRepository


class TestNotificationService:
    """Test suite for NotificationService."""

    @pytest.fixture
    def repo(self) -> AsyncMock:
        mock = AsyncMock(spec=INotificationRepository)
        mock.list_for_user.return_value = []
        mock.mark_read.return_value = 2
        mock.mark_all_read.return_value = 5
        return mock

    @pytest.fixture
    def publisher(self) -> MagicMock:
        mock = MagicMock()
        mock.publish.return_value = 1
        return mock

    @pytest.fixture
    def service(self, repo: AsyncMock, publisher: MagicMock) -> NotificationService:
        return NotificationService(repo, publisher, default_limit=20, max_limit=100)

    async def test_create_stores_and_publishes(
        self, service: NotificationService, repo: AsyncMock, publisher: MagicMock
    ) -> None:
        notification = await service.create(
            "alice", NotificationType.RANKING_LIKE, {"ranking_id": "r1"}
        )

        assert notification.user_id == "alice"
        assert notification.is_read is False
        assert notification.data == {"ranking_id": "r1"}
        repo.add.assert_awaited_once_with(notification)
        publisher.publish.assert_called_once_with(notification)

    async def test_create_without_publisher(self, repo: AsyncMock) -> None:
        service = NotificationService(repo)

        notification = await service.create("alice", NotificationType.FRIEND_REQUEST)

        assert notification.data == {}
        repo.add.assert_awaited_once()

    async def test_create_logs_notification(self, service: NotificationService) -> None:
        mock_logger = MagicMock(spec=logging.Logger)
        with patch(
            "rankify.application.services.notification_service.logger", mock_logger
        ):
            await service.create("alice", NotificationType.FRIEND_REQUEST)

        call_args = mock_logger.info.call_args[0]
        assert "[NOTIFICATION]" in call_args[0]
        assert "friend_request" in call_args

    async def test_list_uses_default_limit(
        self, service: NotificationService, repo: AsyncMock
    ) -> None:
        await service.list("alice")
        repo.list_for_user.assert_awaited_once_with("alice", limit=20, unread_only=False)

    async def test_list_caps_limit(self, service: NotificationService, repo: AsyncMock) -> None:
        await service.list("alice", limit=500, unread_only=True)
        repo.list_for_user.assert_awaited_once_with("alice", limit=100, unread_only=True)

    async def test_list_rejects_non_positive_limit(self, service: NotificationService) -> None:
        with pytest.raises(ValidationException):
            await service.list("alice", limit=0)

    async def test_list_returns_repository_rows(
        self, service: NotificationService, repo: AsyncMock
    ) -> None:
        rows = [Notification(id="n1", user_id="alice", type=NotificationType.RANKING_LIKE)]
        repo.list_for_user.return_value = rows

        assert await service.list("alice") == rows

    async def test_mark_read_by_ids(self, service: NotificationService, repo: AsyncMock) -> None:
        updated = await service.mark_read("alice", ["n1", "n2"])

        assert updated == 2
        repo.mark_read.assert_awaited_once_with("alice", ["n1", "n2"])
        repo.mark_all_read.assert_not_awaited()

    async def test_mark_all(self, service: NotificationService, repo: AsyncMock) -> None:
        updated = await service.mark_read("alice", ["ignored"], mark_all=True)

        assert updated == 5
        repo.mark_all_read.assert_awaited_once_with("alice")
        repo.mark_read.assert_not_awaited()

    async def test_mark_read_nothing_is_noop(
        self, service: NotificationService, repo: AsyncMock
    ) -> None:
        assert await service.mark_read("alice") == 0
        repo.mark_read.assert_not_awaited()
        repo.mark_all_read.assert_not_awaited()

    async def test_mark_friend_request_read_delegates(
        self, service: NotificationService, repo: AsyncMock
    ) -> None:
        repo.mark_friend_request_read.return_value = 1

        assert await service.mark_friend_request_read("bob", "fr1") == 1
        repo.mark_friend_request_read.assert_awaited_once_with("bob", "fr1")
