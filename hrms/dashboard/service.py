"""Dashboard widget aggregates."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import (
    DEDUCTIBLE_LOAN_STATUSES,
    EmploymentStatus,
    LeaveStatus,
    LoanStatus,
)
from hrms.common.exceptions import BadRequestException
from hrms.core_hr.models import Employee
from hrms.leave.models import LeaveRequest
from hrms.loans.models import LoanRequest
from hrms.payroll.calculator import money
from hrms.payroll.models import Payroll

UNASSIGNED = "Unassigned"


async def _count_by(db: AsyncSession, column, *where) -> dict[Any, int]:
    rows = await db.execute(select(column, func.count()).where(*where).group_by(column))
    return {key: count for key, count in rows.all()}


def _year_bounds(year: int) -> tuple[datetime, datetime]:
    return (
        datetime.combine(date(year, 1, 1), time.min, tzinfo=timezone.utc),
        datetime.combine(date(year + 1, 1, 1), time.min, tzinfo=timezone.utc),
    )


async def employee_count(db: AsyncSession, today: date) -> dict[str, int]:
    counts = await _count_by(db, Employee.status)
    return {
        "total": sum(counts.values()),
        "active": counts.get(EmploymentStatus.active.value, 0),
        "inactive": counts.get(EmploymentStatus.inactive.value, 0),
    }


async def department_distribution(db: AsyncSession, today: date) -> list[dict[str, Any]]:
    counts = await _count_by(db, Employee.department)
    merged: dict[str, int] = {}
    for dept, count in counts.items():
        name = dept or UNASSIGNED
        merged[name] = merged.get(name, 0) + count
    return [{"name": name, "value": value} for name, value in sorted(merged.items())]


async def leave_statistics(db: AsyncSession, today: date) -> dict[str, int]:
    start, end = _year_bounds(today.year)
    counts = await _count_by(
        db, LeaveRequest.status, LeaveRequest.created_at >= start, LeaveRequest.created_at < end,
    )
    return {
        "total": sum(counts.values()),
        "approved": counts.get(LeaveStatus.approved.value, 0),
        "pending": counts.get(LeaveStatus.pending.value, 0),
        "rejected": counts.get(LeaveStatus.rejected.value, 0),
    }


async def payroll_summary(db: AsyncSession, today: date) -> dict[str, Any]:
    month = f"{today.year:04d}-{today.month:02d}"
    gross, net, count = (
        await db.execute(
            select(
                func.coalesce(func.sum(Payroll.gross_salary), 0),
                func.coalesce(func.sum(Payroll.net_salary), 0),
                func.count(Payroll.id),
            ).where(Payroll.month == month),
        )
    ).one()
    return {
        "month": month,
        "total_gross": money(gross),
        "total_net": money(net),
        "employee_count": count,
    }


async def loan_summary(db: AsyncSession, today: date) -> dict[str, Any]:
    counts = await _count_by(db, LoanRequest.status)
    outstanding = (
        await db.execute(
            select(func.coalesce(func.sum(LoanRequest.remaining_balance), 0)).where(
                LoanRequest.status.in_(DEDUCTIBLE_LOAN_STATUSES),
            ),
        )
    ).scalar_one()
    return {
        "total": sum(counts.values()),
        **{status.value: counts.get(status.value, 0) for status in LoanStatus},
        "outstanding_balance": money(outstanding),
    }


async def monthly_trends(db: AsyncSession, today: date) -> list[dict[str, Any]]:
    hire_dates = (
        await db.execute(
            select(Employee.hire_date).where(
                Employee.hire_date >= date(today.year, 1, 1),
                Employee.hire_date <= date(today.year, 12, 31),
            ),
        )
    ).scalars().all()
    hires = [0] * 12
    for hired in hire_dates:
        hires[hired.month - 1] += 1
    return [
        {"month": calendar.month_abbr[i + 1], "hires": hires[i]}
        for i in range(12)
    ]


WIDGETS: dict[str, Callable[[AsyncSession, date], Awaitable[Any]]] = {
    "employee_count": employee_count,
    "department_distribution": department_distribution,
    "leave_statistics": leave_statistics,
    "payroll_summary": payroll_summary,
    "loan_summary": loan_summary,
    "monthly_trends": monthly_trends,
}


class DashboardService:

    @staticmethod
    async def widget_data(
        db: AsyncSession,
        widget_type: str,
        *,
        today: Optional[date] = None,
    ) -> Any:
        widget = WIDGETS.get(widget_type)
        if widget is None:
            raise BadRequestException(f"Unknown widget type: {widget_type}")
        return await widget(db, today or date.today())
