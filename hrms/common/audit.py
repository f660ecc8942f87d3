"""Change log model and async helper for recording entity changes."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from hrms.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Immutable change-log table ──────────────────────────────────────

class ChangeLog(Base):
    """Immutable log of every significant data change."""

    __tablename__ = "change_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    entity_name: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(100), nullable=False)
    change_type: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_by_email: Mapped[Optional[str]] = mapped_column(String(255))
    changed_by_name: Mapped[Optional[str]] = mapped_column(String(255))
    old_values: Mapped[Optional[dict]] = mapped_column(JSONB)
    new_values: Mapped[Optional[dict]] = mapped_column(JSONB)
    change_summary: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("ix_change_logs_entity", "entity_name", "entity_id"),
        Index("ix_change_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ChangeLog {self.change_type} {self.entity_name}"
            f"/{self.entity_id} by {self.changed_by_email}>"
        )


# ── Helper to create an entry ───────────────────────────────────────

async def record_change(
    session: AsyncSession,
    *,
    entity_name: str,
    entity_id: Any,
    change_type: str,
    changed_by_email: Optional[str] = None,
    changed_by_name: Optional[str] = None,
    old_values: Optional[dict[str, Any]] = None,
    new_values: Optional[dict[str, Any]] = None,
    change_summary: Optional[str] = None,
    notes: Optional[str] = None,
) -> ChangeLog:
    """
    Create and flush a change-log entry.

    Args:
        session: Async SQLAlchemy session.
        entity_name: e.g. "Employee", "LeaveRequest".
        entity_id: identifier of the affected entity (stored as text).
        change_type: create | update | delete | approve | reject | etc.
        changed_by_email: e-mail of the acting user.
        changed_by_name: display name of the acting user.
        old_values: Previous state (for updates/deletes).
        new_values: New state (for creates/updates).
        change_summary: One-line human readable description.
        notes: Free text.
    """
    entry = ChangeLog(
        entity_name=entity_name,
        entity_id=str(entity_id),
        change_type=change_type,
        changed_by_email=changed_by_email,
        changed_by_name=changed_by_name,
        old_values=old_values,
        new_values=new_values,
        change_summary=change_summary,
        notes=notes,
    )
    session.add(entry)
    await session.flush()
    return entry
