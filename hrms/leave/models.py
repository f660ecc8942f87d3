"""Leave ORM models: PublicHoliday, LeaveRequest, LeaveBalance,
LeaveAccrualPolicy, LeaveAccrual."""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import ApprovalStatus, ApproverRole, HolidayType, LeaveStatus
from hrms.database import Base


class PublicHoliday(Base):
    __tablename__ = "public_holidays"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    name_ar: Mapped[Optional[str]] = mapped_column(sa.String(150))
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    holiday_type: Mapped[str] = mapped_column(
        sa.String(20), default=HolidayType.national.value, nullable=False,
    )
    is_recurring: Mapped[bool] = mapped_column(sa.Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (sa.Index("ix_public_holidays_year", "year"),)

    def __repr__(self) -> str:
        return f"<PublicHoliday {self.date} {self.name}>"


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    leave_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    total_days: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[str] = mapped_column(
        sa.String(20), default=LeaveStatus.pending.value, nullable=False,
    )
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

    # Stage 2: HR
    hr_status: Mapped[str] = mapped_column(
        sa.String(20), default=ApprovalStatus.pending.value, nullable=False,
    )
    hr_approved_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    hr_approval_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    hr_comments: Mapped[Optional[str]] = mapped_column(sa.Text)

    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False,
    )

    __table_args__ = (
        sa.Index("ix_leave_requests_employee_id", "employee_id"),
        sa.Index("ix_leave_requests_status", "status"),
    )


class LeaveBalance(Base):
    __tablename__ = "leave_balances"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    leave_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    total_entitled: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), default=Decimal("0"), nullable=False)
    used: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), default=Decimal("0"), nullable=False)
    pending: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), default=Decimal("0"), nullable=False)
    remaining: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), default=Decimal("0"), nullable=False)
    carried_forward: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), default=Decimal("0"), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type", "year", name="uq_leave_balance_emp_type_year"),
    )


class LeaveAccrualPolicy(Base):
    __tablename__ = "leave_accrual_policies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    policy_name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    leave_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    annual_entitlement: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), nullable=False)
    monthly_accrual_rate: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), nullable=False)
    accrual_frequency: Mapped[str] = mapped_column(sa.String(20), default="monthly", nullable=False)
    probation_period_months: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    accrue_during_probation: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    max_carryover: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), default=Decimal("0"), nullable=False)
    carryover_expiry_months: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    accrue_while_on_leave: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    prorate_for_new_hires: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    employment_types: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    effective_from: Mapped[Optional[date]] = mapped_column(sa.Date)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )


class LeaveAccrual(Base):
    """One row per (employee, policy) per processed accrual period."""

    __tablename__ = "leave_accruals"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    policy_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("leave_accrual_policies.id", ondelete="SET NULL"),
    )
    leave_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    accrual_period: Mapped[str] = mapped_column(sa.String(7), nullable=False)
    accrual_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    days_accrued: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), nullable=False)
    balance_before: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), nullable=False)
    accrual_rate: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), nullable=False)
    employment_months: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    is_prorated: Mapped[bool] = mapped_column(sa.Boolean, default=False, nullable=False)
    proration_factor: Mapped[Decimal] = mapped_column(sa.Numeric(5, 4), default=Decimal("1"), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    processed_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (sa.Index("ix_leave_accruals_period", "accrual_period"),)
