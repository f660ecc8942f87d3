"""Notification routes — send, bulk send, inbox listing and read state."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.common.pagination import PaginationParams
from hrms.common.rate_limit import limiter
from hrms.database import get_db
from hrms.notifications.mailer import Mailer, get_mailer
from hrms.notifications.schemas import (
    BulkNotificationRequest,
    BulkNotificationResponse,
    NotificationListResponse,
    NotificationResponse,
    NotificationSendRequest,
    SendNotificationResponse,
    UnreadCountResponse,
)
from hrms.notifications.service import NotificationService

router = APIRouter(prefix="", tags=["notifications"])


@router.post("/send", response_model=SendNotificationResponse)
async def send_notification(
    body: NotificationSendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    notification, email_sent = await NotificationService.send_notification(db, mailer, body)
    return SendNotificationResponse(
        notification=NotificationResponse.model_validate(notification),
        email_sent=email_sent,
    )


@router.post("/bulk", response_model=BulkNotificationResponse)
@limiter.limit("20/minute")
async def send_bulk_notifications(
    request: Request,
    body: BulkNotificationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    return await NotificationService.send_bulk(db, mailer, body.notifications)


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: Optional[bool] = Query(default=None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService.get_notifications(
        db, user.email, pagination, is_read=is_read,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService.get_unread_count(db, user.email)
    return UnreadCountResponse(count=count)


@router.put("/read-all")
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationService.mark_all_read(db, user.email)
    return {"success": True, "updated": updated}


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService.mark_read(db, notification_id, user.email)
    return NotificationResponse.model_validate(notification)
