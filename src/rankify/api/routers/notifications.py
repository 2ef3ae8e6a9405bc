"""In-app notification endpoints, including the realtime SSE stream.

Hey future me - GET/PATCH are the source of truth. The stream only pushes
"you've got a new one" events for rows created while the client is connected;
a client that reconnects must re-list to catch up.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse

from rankify.api.dependencies import (
    get_broker,
    get_current_user_id,
    get_notification_service,
    get_stream_user_id,
)
from rankify.api.schemas.notifications import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from rankify.application.services import NotificationService
from rankify.infrastructure.notifications import NotificationBroker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])

# How often the stream wakes up to check for a client disconnect
STREAM_POLL_SECONDS = 15.0


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
    limit: Annotated[int | None, Query(ge=1)] = None,
    unread_only: Annotated[bool, Query()] = False,
) -> NotificationListResponse:
    """Newest first; limit defaults to 20 and is capped server-side."""
    notifications = await service.list(user_id, limit=limit, unread_only=unread_only)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_domain(n) for n in notifications]
    )


@router.patch("", response_model=MarkReadResponse)
async def mark_notifications_read(
    body: MarkReadRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> MarkReadResponse:
    updated = await service.mark_read(
        user_id, notification_ids=body.notification_ids, mark_all=body.mark_all_read
    )
    return MarkReadResponse(updated=updated)


def _event(notification: Any) -> dict[str, str]:
    payload = NotificationResponse.from_domain(notification).model_dump(mode="json")
    return {"event": "notification", "id": notification.id, "data": json.dumps(payload)}


@router.get("/stream")
async def stream_notifications(
    request: Request,
    user_id: Annotated[str, Depends(get_stream_user_id)],
    broker: Annotated[NotificationBroker, Depends(get_broker)],
) -> EventSourceResponse:
    """Server-sent events: one `notification` event per new notification for the caller."""

    async def event_generator() -> AsyncGenerator[dict[str, str], None]:
        # The subscription is released in the context manager's finally, which runs on
        # normal exit, client disconnect and task cancellation alike.
        async with broker.subscribe(user_id) as queue:
            yield {"event": "connected", "data": json.dumps({"user_id": user_id})}
            while True:
                if await request.is_disconnected():
                    logger.debug("Notification stream client disconnected (%s)", user_id)
                    break
                try:
                    notification = await asyncio.wait_for(
                        queue.get(), timeout=STREAM_POLL_SECONDS
                    )
                except TimeoutError:
                    continue
                yield _event(notification)

    return EventSourceResponse(event_generator())
