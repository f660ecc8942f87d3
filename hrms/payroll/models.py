"""Payroll ORM model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import PAYROLL_WORKING_DAYS, PayrollStatus
from hrms.database import Base

_ZERO = Decimal("0")


def _money(**kw):
    return mapped_column(sa.Numeric(12, 2), default=_ZERO, nullable=False, **kw)


class Payroll(Base):
    """One computed salary run for an employee and month (``YYYY-MM``)."""

    __tablename__ = "payrolls"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    month: Mapped[str] = mapped_column(sa.String(7), nullable=False)

    # Earnings
    basic_salary: Mapped[Decimal] = _money()
    housing_allowance: Mapped[Decimal] = _money()
    transport_allowance: Mapped[Decimal] = _money()
    other_fixed_allowances: Mapped[Decimal] = _money()
    overtime_pay: Mapped[Decimal] = _money()
    bonus: Mapped[Decimal] = _money()
    commission: Mapped[Decimal] = _money()
    gross_salary: Mapped[Decimal] = _money()

    # GOSI
    gosi_employee: Mapped[Decimal] = _money()
    gosi_employer: Mapped[Decimal] = _money()
    gosi_calculation_base: Mapped[Decimal] = _money()

    # Deductions
    loan_deduction: Mapped[Decimal] = _money()
    advance_deduction: Mapped[Decimal] = _money()
    absence_deduction: Mapped[Decimal] = _money()
    other_deductions: Mapped[Decimal] = _money()
    total_deductions: Mapped[Decimal] = _money()
    net_salary: Mapped[Decimal] = _money()

    # Attendance summary
    working_days: Mapped[int] = mapped_column(sa.Integer, default=PAYROLL_WORKING_DAYS, nullable=False)
    present_days: Mapped[int] = mapped_column(sa.Integer, default=PAYROLL_WORKING_DAYS, nullable=False)
    absent_days: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    unpaid_leave_days: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)

    status: Mapped[str] = mapped_column(
        sa.String(20), default=PayrollStatus.calculated.value, nullable=False,
    )
    payment_method: Mapped[str] = mapped_column(sa.String(20), default="bank_transfer", nullable=False)
    payment_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    payment_reference: Mapped[Optional[str]] = mapped_column(sa.String(100))
    processed_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (
        sa.UniqueConstraint("employee_id", "month", name="uq_payroll_employee_month"),
        sa.Index("ix_payrolls_month_status", "month", "status"),
    )


class GosiReport(Base):
    """Monthly GOSI contribution totals, one row per generation."""

    __tablename__ = "gosi_reports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    report_month: Mapped[str] = mapped_column(sa.String(7), nullable=False)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )
    report_type: Mapped[str] = mapped_column(sa.String(30), default="monthly_contribution", nullable=False)
    total_employees: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    saudi_employees: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    non_saudi_employees: Mapped[int] = mapped_column(sa.Integer, default=0, nullable=False)
    total_wages: Mapped[Decimal] = _money()
    total_employee_contribution: Mapped[Decimal] = _money()
    total_employer_contribution: Mapped[Decimal] = _money()
    total_contribution: Mapped[Decimal] = _money()
    occupational_hazards: Mapped[Decimal] = _money()
    saned_contribution: Mapped[Decimal] = _money()
    status: Mapped[str] = mapped_column(sa.String(20), default="generated", nullable=False)
    payment_status: Mapped[str] = mapped_column(sa.String(20), default="pending", nullable=False)
    due_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    generated_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (sa.Index("ix_gosi_reports_report_month", "report_month"),)
