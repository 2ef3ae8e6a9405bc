"""Notification service: append, list and mark-read for in-app notifications.

Hey future me - notifications are APPEND ONLY. No dedup: the same event twice
means two rows, and that's fine. The only mutation is flipping is_read.

Every created notification is also pushed to the recipient's open realtime
subscriptions (if a publisher is wired in). Push happens right after the
insert is flushed, before the request transaction commits - a client can in
theory see a push for a row that then gets rolled back. Listing is the source
of truth, the push is only a hint to refresh.
"""

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from rankify.domain.entities import Notification, NotificationType, utc_now
from rankify.domain.exceptions import ValidationException
from rankify.domain.ports import INotificationPublisher, INotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for in-app notifications."""

    def __init__(
        self,
        notification_repository: INotificationRepository,
        publisher: INotificationPublisher | None = None,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> None:
        self._notifications = notification_repository
        self._publisher = publisher
        self._default_limit = default_limit
        self._max_limit = max_limit

    async def create(
        self,
        recipient_id: str,
        notification_type: NotificationType,
        payload: dict[str, Any] | None = None,
    ) -> Notification:
        """Append a notification for recipient_id and push it to their subscriptions."""
        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=recipient_id,
            type=notification_type,
            data=dict(payload or {}),
            is_read=False,
            created_at=utc_now(),
        )
        await self._notifications.add(notification)
        logger.info(
            "[NOTIFICATION] %s stored for user %s (id=%s)",
            notification_type.value,
            recipient_id,
            notification.id[:8],
        )

        if self._publisher is not None:
            delivered = self._publisher.publish(notification)
            if delivered:
                logger.debug("[NOTIFICATION] Pushed to %d open subscription(s)", delivered)

        return notification

    async def list(
        self, user_id: str, limit: int | None = None, unread_only: bool = False
    ) -> list[Notification]:
        """Most recent notifications for user_id, newest first."""
        effective_limit = self._default_limit if limit is None else limit
        if effective_limit < 1:
            raise ValidationException("limit must be at least 1")
        effective_limit = min(effective_limit, self._max_limit)
        return await self._notifications.list_for_user(
            user_id, limit=effective_limit, unread_only=unread_only
        )

    async def mark_read(
        self,
        user_id: str,
        notification_ids: Sequence[str] | None = None,
        mark_all: bool = False,
    ) -> int:
        """Flip is_read for the given ids (scoped to user_id) or for all unread of user_id.

        Returns the number of rows changed.
        """
        if mark_all:
            count = await self._notifications.mark_all_read(user_id)
            logger.info("[NOTIFICATION] Marked all (%d) notifications read for %s", count, user_id)
            return count

        if not notification_ids:
            return 0

        count = await self._notifications.mark_read(user_id, list(notification_ids))
        logger.info("[NOTIFICATION] Marked %d notifications read for %s", count, user_id)
        return count

    async def mark_friend_request_read(self, user_id: str, friend_request_id: str) -> int:
        """Mark the friend_request notification for this request read."""
        return await self._notifications.mark_friend_request_read(user_id, friend_request_id)
