"""In-process push channel for new notifications.

Hey future me - this is what the SSE endpoint listens on! Each open client
holds exactly ONE subscription (a bounded asyncio.Queue) keyed by its user id.
publish() only ever hands a notification to the recipient's own queues, so the
"filtered server-side to the user's own rows" rule lives here.

Subscriptions MUST be released (sign-out, tab closed, request cancelled) or
we leak queues forever - always use the subscribe() context manager.

Single process only. Running several workers needs a shared bus (Redis pub/sub,
Postgres LISTEN/NOTIFY) behind the same INotificationPublisher port.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from rankify.domain.entities import Notification
from rankify.domain.ports import INotificationPublisher

logger = logging.getLogger(__name__)


class NotificationBroker(INotificationPublisher):
    """Fan-out of freshly created notifications to open subscriptions."""

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._subscribers: dict[str, set[asyncio.Queue[Notification]]] = defaultdict(set)

    def subscriber_count(self, user_id: str | None = None) -> int:
        """Open subscriptions for one user, or for everyone."""
        if user_id is not None:
            return len(self._subscribers.get(user_id, ()))
        return sum(len(queues) for queues in self._subscribers.values())

    @asynccontextmanager
    async def subscribe(self, user_id: str) -> AsyncIterator["asyncio.Queue[Notification]"]:
        """Open a subscription for user_id; closed when the context exits."""
        queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[user_id].add(queue)
        logger.debug("[NOTIFICATION] Subscription opened for user %s", user_id)
        try:
            yield queue
        finally:
            queues = self._subscribers.get(user_id)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    del self._subscribers[user_id]
            logger.debug("[NOTIFICATION] Subscription closed for user %s", user_id)

    def publish(self, notification: Notification) -> int:
        """Deliver to the recipient's subscriptions. Full queues drop the event."""
        delivered = 0
        for queue in list(self._subscribers.get(notification.user_id, ())):
            try:
                queue.put_nowait(notification)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "[NOTIFICATION] Subscriber queue full for user %s, dropping %s",
                    notification.user_id,
                    notification.id,
                )
        return delivered
