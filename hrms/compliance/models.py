"""Compliance ORM models: SINADRecord (wage protection), QIWARecord (work permits)."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import QiwaRegistrationStatus, SinadStatus, SyncStatus
from hrms.database import Base


class SINADRecord(Base):
    """One monthly wage-file submission to the SINAD wage protection system."""

    __tablename__ = "sinad_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )
    submission_month: Mapped[str] = mapped_column(sa.String(7), nullable=False)
    submission_type: Mapped[str] = mapped_column(sa.String(20), default="regular", nullable=False)
    total_employees: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    total_wages: Mapped[Decimal] = mapped_column(sa.Numeric(14, 2), default=Decimal("0"), nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20), default=SinadStatus.draft.value, nullable=False,
    )
    submission_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    payment_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    bank_name: Mapped[Optional[str]] = mapped_column(sa.String(100))
    file_reference: Mapped[Optional[str]] = mapped_column(sa.String(100))
    compliance_score: Mapped[Optional[int]] = mapped_column(sa.Integer)
    approval_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (sa.Index("ix_sinad_records_month", "submission_month"),)


class QIWARecord(Base):
    """An employee's registration and work permit on the QIWA platform."""

    __tablename__ = "qiwa_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    iqama_number: Mapped[Optional[str]] = mapped_column(sa.String(20))
    border_number: Mapped[Optional[str]] = mapped_column(sa.String(20))
    work_permit_number: Mapped[Optional[str]] = mapped_column(sa.String(50))
    job_title_ar: Mapped[Optional[str]] = mapped_column(sa.String(150))
    occupation_code: Mapped[Optional[str]] = mapped_column(sa.String(20))
    contract_type: Mapped[Optional[str]] = mapped_column(sa.String(30))
    contract_start_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    contract_end_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    qiwa_id: Mapped[Optional[str]] = mapped_column(sa.String(50))
    registration_status: Mapped[str] = mapped_column(
        sa.String(20), default=QiwaRegistrationStatus.pending.value, nullable=False,
    )
    registration_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    work_permit_expiry: Mapped[Optional[date]] = mapped_column(sa.Date)
    last_sync_date: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    sync_status: Mapped[str] = mapped_column(
        sa.String(20), default=SyncStatus.pending.value, nullable=False,
    )
    sync_error: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (sa.Index("ix_qiwa_records_employee_id", "employee_id"),)
