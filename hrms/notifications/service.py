"""Notification service — in-app records, e-mail delivery, bulk fan-out."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import NotificationPriority, NotificationType
from hrms.common.exceptions import AppException, BadRequestException, ForbiddenException, NotFoundException
from hrms.common.pagination import PaginationParams, paginate
from hrms.config import settings
from hrms.notifications.mailer import Mailer, send_quietly
from hrms.notifications.models import Notification
from hrms.notifications.schemas import (
    BulkItemResult,
    BulkNotificationResponse,
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
    NotificationSendRequest,
)

logger = logging.getLogger(__name__)


def _email_subject(title: str) -> str:
    return f"[{settings.APP_NAME}] {title}"


def _email_body(notification: Notification) -> str:
    lines = [notification.message]
    if notification.action_url:
        lines += ["", f"View details: {notification.action_url}"]
    lines += ["", f"This is an automated message from {settings.APP_NAME}."]
    return "\n".join(lines)


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        user_email: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.info,
        category: str = "general",
        priority: NotificationPriority = NotificationPriority.normal,
        action_url: Optional[str] = None,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[Any] = None,
    ) -> Notification:
        """Create a new in-app notification and flush to DB."""
        notification = Notification(
            user_email=user_email,
            title=title,
            message=message,
            type=NotificationType(type).value,
            category=category,
            priority=NotificationPriority(priority).value,
            action_url=action_url,
            related_entity_type=related_entity_type,
            related_entity_id=str(related_entity_id) if related_entity_id is not None else None,
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def deliver_email(mailer: Mailer, notification: Notification) -> bool:
        """E-mail *notification*; on success stamp ``email_sent``. Never raises on SMTP failure."""
        delivered = await send_quietly(
            mailer,
            notification.user_email,
            _email_subject(notification.title),
            _email_body(notification),
        )
        if delivered:
            notification.email_sent = True
            notification.email_sent_at = datetime.now(timezone.utc)
        return delivered

    @staticmethod
    async def send_notification(
        db: AsyncSession,
        mailer: Mailer,
        payload: NotificationSendRequest,
    ) -> tuple[Notification, bool]:
        """Create the in-app notification and optionally e-mail it."""
        notification = await NotificationService.create_notification(
            db,
            **payload.model_dump(exclude={"send_email"}),
        )
        email_sent = False
        if payload.send_email:
            email_sent = await NotificationService.deliver_email(mailer, notification)
            await db.flush()
        return notification, email_sent

    @staticmethod
    async def send_bulk(
        db: AsyncSession,
        mailer: Mailer,
        items: Sequence[dict[str, Any]],
    ) -> BulkNotificationResponse:
        """Fan out independent sends; one bad item never aborts the batch.

        Records are validated and written one by one, then every e-mail is
        dispatched concurrently. Results keep the input order.
        """
        if not items:
            raise BadRequestException("notifications array is required")

        results: list[BulkItemResult] = []
        to_email: list[tuple[int, Notification]] = []

        for index, raw in enumerate(items):
            email = raw.get("user_email") if isinstance(raw, dict) else None
            try:
                payload = NotificationSendRequest.model_validate(raw)
                notification = await NotificationService.create_notification(
                    db, **payload.model_dump(exclude={"send_email"}),
                )
            except ValidationError as exc:
                results.append(
                    BulkItemResult(index=index, user_email=email, success=False, error=_validation_message(exc)),
                )
                continue
            except AppException as exc:
                results.append(
                    BulkItemResult(index=index, user_email=email, success=False, error=exc.detail),
                )
                continue

            results.append(
                BulkItemResult(
                    index=index,
                    user_email=payload.user_email,
                    success=True,
                    notification_id=notification.id,
                ),
            )
            if payload.send_email:
                to_email.append((index, notification))

        outcomes = await asyncio.gather(
            *(NotificationService.deliver_email(mailer, n) for _, n in to_email),
            return_exceptions=True,
        )
        for (index, notification), outcome in zip(to_email, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "Bulk e-mail to %s raised %s", notification.user_email, outcome,
                )
                continue
            results[index].email_sent = bool(outcome)
        await db.flush()

        successful = sum(1 for r in results if r.success)
        return BulkNotificationResponse(
            total=len(items),
            successful=successful,
            failed=len(items) - successful,
            results=results,
        )

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        user_email: str,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for a user, newest first."""
        query = select(Notification).where(Notification.user_email == user_email)
        if is_read is not None:
            query = query.where(Notification.is_read.is_(is_read))
        if not pagination.sort:
            query = query.order_by(Notification.created_at.desc())

        rows, meta = await paginate(db, query, pagination, model=Notification)
        unread = await NotificationService.get_unread_count(db, user_email)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(**meta.model_dump(), unread=unread),
        )

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_email: str,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        notification = await db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundException("Notification", notification_id)
        if notification.user_email != user_email:
            raise ForbiddenException("You can only mark your own notifications as read.")

        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_email: str) -> int:
        """Bulk-mark all unread notifications as read. Returns count updated."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.user_email == user_email,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def get_unread_count(db: AsyncSession, user_email: str) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.user_email == user_email,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()
