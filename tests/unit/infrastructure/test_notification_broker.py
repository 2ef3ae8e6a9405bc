"""Tests for the in-process notification broker behind the SSE stream."""

import asyncio

from rankify.domain.entities import Notification, NotificationType
from rankify.infrastructure.notifications import NotificationBroker


def _notification(user_id: str, notification_id: str = "n1") -> Notification:
    return Notification(id=notification_id, user_id=user_id, type=NotificationType.RANKING_LIKE)


class TestNotificationBroker:
    async def test_publish_reaches_only_the_recipient(self) -> None:
        broker = NotificationBroker()

        async with broker.subscribe("alice") as alice_queue, broker.subscribe("bob") as bob_queue:
            delivered = broker.publish(_notification("alice"))

            assert delivered == 1
            received = await asyncio.wait_for(alice_queue.get(), timeout=1)
            assert received.user_id == "alice"
            assert bob_queue.empty()

    async def test_every_open_subscription_of_a_user_receives(self) -> None:
        broker = NotificationBroker()

        async with broker.subscribe("alice") as tab1, broker.subscribe("alice") as tab2:
            assert broker.publish(_notification("alice")) == 2
            assert tab1.qsize() == 1
            assert tab2.qsize() == 1

    async def test_subscription_released_on_exit(self) -> None:
        broker = NotificationBroker()

        async with broker.subscribe("alice"):
            assert broker.subscriber_count("alice") == 1

        assert broker.subscriber_count("alice") == 0
        assert broker.subscriber_count() == 0
        assert broker.publish(_notification("alice")) == 0

    async def test_subscription_released_on_cancellation(self) -> None:
        broker = NotificationBroker()
        opened = asyncio.Event()

        async def listen() -> None:
            async with broker.subscribe("alice") as queue:
                opened.set()
                await queue.get()

        task = asyncio.create_task(listen())
        await opened.wait()
        assert broker.subscriber_count("alice") == 1

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert broker.subscriber_count("alice") == 0

    async def test_full_queue_drops_events(self) -> None:
        broker = NotificationBroker(queue_size=1)

        async with broker.subscribe("alice") as queue:
            assert broker.publish(_notification("alice", "n1")) == 1
            assert broker.publish(_notification("alice", "n2")) == 0
            assert queue.get_nowait().id == "n1"
