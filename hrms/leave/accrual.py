"""Monthly leave accrual rules and the default Saudi policy set."""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

TWO_PLACES = Decimal("0.01")
DAYS_PER_MONTH = 30.44


@dataclass(frozen=True)
class AccrualDecision:
    days: Decimal = Decimal("0")
    is_prorated: bool = False
    proration_factor: Decimal = Decimal("1")
    skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


def employment_months(hire_date: date, as_of: date) -> int:
    """Whole months of service, using an average month of 30.44 days."""
    return math.floor((as_of - hire_date).days / DAYS_PER_MONTH)


def policy_applies(policy: Any, employment_type: Optional[str]) -> bool:
    types = policy.employment_types or []
    return not types or employment_type in types


def decide_accrual(policy: Any, hire_date: date, as_of: date) -> AccrualDecision:
    """Compute the days *policy* accrues this month for an employee hired on *hire_date*."""
    months = employment_months(hire_date, as_of)
    if months < policy.probation_period_months and not policy.accrue_during_probation:
        return AccrualDecision(skipped_reason="Employee in probation period")

    rate = Decimal(str(policy.monthly_accrual_rate))
    if policy.prorate_for_new_hires and months == 0:
        days_in_month = calendar.monthrange(as_of.year, as_of.month)[1]
        factor = Decimal(days_in_month - hire_date.day + 1) / Decimal(days_in_month)
        return AccrualDecision(
            days=(rate * factor).quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
            is_prorated=True,
            proration_factor=factor.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
        )
    return AccrualDecision(days=rate.quantize(TWO_PLACES))


def parse_period(period: str) -> tuple[int, int]:
    """Parse ``YYYY-MM``; raises ``ValueError`` on anything else."""
    year_str, sep, month_str = period.partition("-")
    if not sep or len(year_str) != 4 or len(month_str) != 2:
        raise ValueError(f"Invalid accrual period '{period}', expected YYYY-MM")
    year, month = int(year_str), int(month_str)
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in accrual period '{period}'")
    return year, month


DEFAULT_POLICIES: tuple[dict[str, Any], ...] = (
    {
        "policy_name": "Annual Leave - Full Time",
        "leave_type": "annual",
        "annual_entitlement": Decimal("21"),
        "monthly_accrual_rate": Decimal("1.75"),
        "probation_period_months": 3,
        "accrue_during_probation": False,
        "max_carryover": Decimal("10"),
        "carryover_expiry_months": 3,
        "accrue_while_on_leave": True,
        "prorate_for_new_hires": True,
        "employment_types": ["full_time"],
        "is_active": True,
        "notes": "Standard annual leave as per Saudi labor law - 21 days per year",
    },
    {
        "policy_name": "Annual Leave - Contract",
        "leave_type": "annual",
        "annual_entitlement": Decimal("21"),
        "monthly_accrual_rate": Decimal("1.75"),
        "probation_period_months": 0,
        "accrue_during_probation": True,
        "max_carryover": Decimal("0"),
        "carryover_expiry_months": 0,
        "accrue_while_on_leave": True,
        "prorate_for_new_hires": True,
        "employment_types": ["contract", "temporary"],
        "is_active": True,
        "notes": "Annual leave for contract employees - no carryover",
    },
    {
        "policy_name": "Sick Leave - All Employees",
        "leave_type": "sick",
        "annual_entitlement": Decimal("30"),
        "monthly_accrual_rate": Decimal("2.5"),
        "probation_period_months": 0,
        "accrue_during_probation": True,
        "max_carryover": Decimal("0"),
        "carryover_expiry_months": 0,
        "accrue_while_on_leave": False,
        "prorate_for_new_hires": True,
        "employment_types": ["full_time", "part_time", "contract", "temporary"],
        "is_active": True,
        "notes": (
            "Sick leave as per Saudi labor law - 30 days per year "
            "(First 30 days full pay, next 60 days half pay)"
        ),
    },
    {
        "policy_name": "Annual Leave - 5+ Years Service",
        "leave_type": "annual",
        "annual_entitlement": Decimal("30"),
        "monthly_accrual_rate": Decimal("2.5"),
        "probation_period_months": 0,
        "accrue_during_probation": True,
        "max_carryover": Decimal("15"),
        "carryover_expiry_months": 6,
        "accrue_while_on_leave": True,
        "prorate_for_new_hires": False,
        "employment_types": ["full_time"],
        # Activated manually once an employee reaches five years.
        "is_active": False,
        "notes": "Enhanced annual leave for employees with 5+ years of service - 30 days per year",
    },
)
