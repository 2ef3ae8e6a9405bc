"""API schemas for in-app notifications."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rankify.domain.entities import Notification, NotificationType


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type,
            data=dict(notification.data),
            is_read=notification.is_read,
            created_at=notification.created_at,
        )


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]


class MarkReadRequest(BaseModel):
    """Body of PATCH /notifications: either explicit ids or everything."""

    model_config = ConfigDict(populate_by_name=True)

    notification_ids: list[str] = Field(default_factory=list, alias="notificationIds")
    mark_all_read: bool = Field(default=False, alias="markAllRead")


class MarkReadResponse(BaseModel):
    success: bool = True
    updated: int
