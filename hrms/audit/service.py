"""Change logging with admin fan-out."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.audit.schemas import LogChangeRequest
from hrms.auth.models import User
from hrms.common.audit import ChangeLog, record_change
from hrms.common.constants import NotificationType, UserRole
from hrms.notifications.mailer import Mailer, send_quietly
from hrms.notifications.service import NotificationService


def _change_email_body(payload: LogChangeRequest, changed_by: str) -> str:
    lines = [
        "Change Detected",
        "",
        f"Entity: {payload.entity_name}",
        f"Change Type: {payload.change_type}",
        f"Changed By: {changed_by}",
        f"Summary: {payload.summary}",
    ]
    if payload.notes:
        lines.append(f"Notes: {payload.notes}")
    lines.append(f"Timestamp: {datetime.now(timezone.utc):%Y-%m-%d %H:%M:%S} UTC")
    return "\n".join(lines)


class ChangeLogService:

    @staticmethod
    async def log_change(
        db: AsyncSession,
        mailer: Mailer,
        user: User,
        payload: LogChangeRequest,
    ) -> tuple[ChangeLog, int, int]:
        """Record a change and alert every active admin in-app and by e-mail.

        Returns ``(entry, notifications_created, emails_delivered)``.
        """
        changed_by = user.full_name or user.email
        entry = await record_change(
            db,
            entity_name=payload.entity_name,
            entity_id=payload.entity_id,
            change_type=payload.change_type,
            changed_by_email=user.email,
            changed_by_name=changed_by,
            old_values=payload.old_values,
            new_values=payload.new_values,
            change_summary=payload.summary,
            notes=payload.notes,
        )

        admins = (
            await db.execute(
                select(User).where(User.role == UserRole.admin.value, User.is_active.is_(True)),
            )
        ).scalars().all()

        for admin in admins:
            await NotificationService.create_notification(
                db,
                user_email=admin.email,
                title=f"System Change: {payload.entity_name}",
                message=payload.summary,
                type=NotificationType.system_change,
                category="system",
                related_entity_type=payload.entity_name,
                related_entity_id=payload.entity_id,
            )

        subject = f"System Change Alert: {payload.entity_name}"
        body = _change_email_body(payload, changed_by)
        delivered = await asyncio.gather(
            *(send_quietly(mailer, admin.email, subject, body) for admin in admins),
        )
        return entry, len(admins), sum(1 for ok in delivered if ok)
