"""Loan ORM model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import ApprovalStatus, ApproverRole, LoanStatus
from hrms.database import Base


class LoanRequest(Base):
    __tablename__ = "loan_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    loan_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    installments: Mapped[int] = mapped_column(sa.Integer, default=1, nullable=False)
    monthly_deduction: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=Decimal("0"), nullable=False)
    remaining_balance: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(12, 2))
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[str] = mapped_column(sa.String(20), default=LoanStatus.pending.value, nullable=False)
    current_approver_role: Mapped[str] = mapped_column(
        sa.String(20), default=ApproverRole.manager.value, nullable=False,
    )

    # Stage 1: direct manager
    manager_status: Mapped[str] = mapped_column(
        sa.String(20), default=ApprovalStatus.pending.value, nullable=False,
    )
    manager_approved_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    manager_approval_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    manager_comments: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Stage 2: HR, from LOAN_HR_APPROVAL_THRESHOLD
    hr_status: Mapped[str] = mapped_column(
        sa.String(20), default=ApprovalStatus.pending.value, nullable=False,
    )
    hr_approved_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    hr_approval_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    hr_comments: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Stage 3: senior management, from LOAN_SENIOR_APPROVAL_THRESHOLD
    senior_management_status: Mapped[str] = mapped_column(
        sa.String(20), default=ApprovalStatus.pending.value, nullable=False,
    )
    senior_management_approved_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    senior_management_approval_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    senior_management_comments: Mapped[Optional[str]] = mapped_column(sa.Text)

    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    disbursement_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (sa.Index("ix_loan_requests_employee_id", "employee_id"),)
