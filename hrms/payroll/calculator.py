"""Salary arithmetic: GOSI, unpaid-leave overlap, gross/net.

All amounts are ``Decimal`` rounded to halalas (0.01 SAR).
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from hrms.common.constants import PAYROLL_WORKING_DAYS, SAUDI_NATIONALITIES

CENT = Decimal("0.01")
ZERO = Decimal("0")

GOSI_SAUDI_EMPLOYEE = Decimal("0.10")
GOSI_SAUDI_EMPLOYER = Decimal("0.12")
GOSI_NON_SAUDI_EMPLOYER = Decimal("0.02")


def money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP)


def is_saudi(nationality: Optional[str]) -> bool:
    return (nationality or "").strip().lower() in SAUDI_NATIONALITIES


@dataclass(frozen=True)
class GosiContribution:
    employee: Decimal
    employer: Decimal
    base: Decimal
    is_saudi: bool


def calculate_gosi(nationality: Optional[str], base: Decimal) -> GosiContribution:
    """Saudis pay 10 % (employer 12 %); others only the 2 % employer hazard share."""
    base = money(base)
    if is_saudi(nationality):
        return GosiContribution(
            employee=money(base * GOSI_SAUDI_EMPLOYEE),
            employer=money(base * GOSI_SAUDI_EMPLOYER),
            base=base,
            is_saudi=True,
        )
    return GosiContribution(
        employee=ZERO,
        employer=money(base * GOSI_NON_SAUDI_EMPLOYER),
        base=base,
        is_saudi=False,
    )


def month_bounds(month: str) -> tuple[date, date]:
    """First and last day of a ``YYYY-MM`` month."""
    year, mon = (int(part) for part in month.split("-"))
    return date(year, mon, 1), date(year, mon, calendar.monthrange(year, mon)[1])


def overlap_days(start: date, end: date, window_start: date, window_end: date) -> int:
    lo = max(start, window_start)
    hi = min(end, window_end)
    return (hi - lo).days + 1 if lo <= hi else 0


def unpaid_leave_days(leaves: Iterable[tuple[date, date]], month: str) -> int:
    first, last = month_bounds(month)
    return sum(overlap_days(start, end, first, last) for start, end in leaves)


@dataclass(frozen=True)
class PayrollFigures:
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    gross_salary: Decimal
    gosi: GosiContribution
    loan_deduction: Decimal
    absence_deduction: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    working_days: int
    present_days: int
    absent_days: int
    unpaid_leave_days: int


def compute_payroll(
    *,
    basic_salary: Decimal,
    housing_allowance: Decimal = ZERO,
    transport_allowance: Decimal = ZERO,
    nationality: Optional[str] = None,
    gosi_salary_basis: Optional[Decimal] = None,
    loan_deduction: Decimal = ZERO,
    unpaid_days: int = 0,
    working_days: int = PAYROLL_WORKING_DAYS,
) -> PayrollFigures:
    basic = money(basic_salary)
    housing = money(housing_allowance)
    transport = money(transport_allowance)
    gross = basic + housing + transport

    gosi = calculate_gosi(nationality, gosi_salary_basis or basic)
    unpaid_days = min(unpaid_days, working_days)
    absence = money(basic / working_days * unpaid_days)
    loans = money(loan_deduction)
    total = gosi.employee + loans + absence

    return PayrollFigures(
        basic_salary=basic,
        housing_allowance=housing,
        transport_allowance=transport,
        gross_salary=gross,
        gosi=gosi,
        loan_deduction=loans,
        absence_deduction=absence,
        total_deductions=total,
        net_salary=gross - total,
        working_days=working_days,
        present_days=working_days - unpaid_days,
        absent_days=unpaid_days,
        unpaid_leave_days=unpaid_days,
    )
