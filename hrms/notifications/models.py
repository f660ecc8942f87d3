"""Notification ORM model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import NotificationPriority, NotificationType
from hrms.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    message: Mapped[str] = mapped_column(sa.Text, nullable=False)
    type: Mapped[str] = mapped_column(
        sa.String(30), default=NotificationType.info.value, nullable=False,
    )
    category: Mapped[str] = mapped_column(sa.String(50), default="general", nullable=False)
    priority: Mapped[str] = mapped_column(
        sa.String(20), default=NotificationPriority.normal.value, nullable=False,
    )
    action_url: Mapped[Optional[str]] = mapped_column(sa.String(500))
    related_entity_type: Mapped[Optional[str]] = mapped_column(sa.String(100))
    related_entity_id: Mapped[Optional[str]] = mapped_column(sa.String(100))
    is_read: Mapped[bool] = mapped_column(sa.Boolean, default=False, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    email_sent: Mapped[bool] = mapped_column(sa.Boolean, default=False, nullable=False)
    email_sent_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (
        sa.Index("ix_notifications_user_email_is_read", "user_email", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Notification {self.user_email} {self.title!r}>"
