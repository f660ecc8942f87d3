"""Notification Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import NotificationPriority, NotificationType
from hrms.common.pagination import PaginationMeta


class NotificationSendRequest(BaseModel):
    user_email: str = Field(min_length=3)
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.info
    category: str = "general"
    priority: NotificationPriority = NotificationPriority.normal
    action_url: Optional[str] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    send_email: bool = True


class BulkNotificationRequest(BaseModel):
    # Items stay untyped so one malformed entry fails alone.
    notifications: list[dict[str, Any]] = Field(default_factory=list)


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_email: str
    title: str
    message: str
    type: str
    category: str
    priority: str
    action_url: Optional[str] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    email_sent: bool
    email_sent_at: Optional[datetime] = None
    created_at: datetime


class SendNotificationResponse(BaseModel):
    success: bool = True
    notification: NotificationResponse
    email_sent: bool


class BulkItemResult(BaseModel):
    index: int
    user_email: Optional[str] = None
    success: bool
    notification_id: Optional[uuid.UUID] = None
    email_sent: bool = False
    error: Optional[str] = None


class BulkNotificationResponse(BaseModel):
    success: bool = True
    total: int
    successful: int
    failed: int
    results: list[BulkItemResult]


class NotificationListMeta(PaginationMeta):
    unread: int


class NotificationListResponse(BaseModel):
    data: list[NotificationResponse]
    meta: NotificationListMeta


class UnreadCountResponse(BaseModel):
    count: int
