"""Document ORM model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import DEFAULT_ALERT_DAYS, DocumentStatus
from hrms.database import Base


class Document(Base):
    """A company or employee document with an optional expiry date."""

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    document_name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    document_type: Mapped[str] = mapped_column(sa.String(50), default="other", nullable=False)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"),
    )
    file_url: Mapped[Optional[str]] = mapped_column(sa.Text)
    issue_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    expiry_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    alert_days: Mapped[int] = mapped_column(sa.Integer, default=DEFAULT_ALERT_DAYS, nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20), default=DocumentStatus.active.value, nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    # LLM-derived metadata
    ai_tags: Mapped[Optional[str]] = mapped_column(sa.Text)
    ai_description: Mapped[Optional[str]] = mapped_column(sa.Text)
    ai_priority: Mapped[Optional[str]] = mapped_column(sa.String(20))
    ai_compliance_category: Mapped[Optional[str]] = mapped_column(sa.String(50))

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (
        sa.Index("ix_documents_status_expiry", "status", "expiry_date"),
        sa.Index("ix_documents_employee_id", "employee_id"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.document_name} ({self.status})>"
