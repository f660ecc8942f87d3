"""Leave Pydantic schemas."""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hrms.common.constants import LeaveAction


# ── Day calculation ─────────────────────────────────────────────────

class CalculateLeaveDaysRequest(BaseModel):
    start_date: date
    end_date: date


class OverlappingHoliday(BaseModel):
    date: dt.date
    name: str
    name_ar: Optional[str] = None
    type: Optional[str] = None


class DayBreakdown(BaseModel):
    date: dt.date
    day_of_week: str
    type: str
    holiday_name: Optional[str] = None


class CalculateLeaveDaysResponse(BaseModel):
    success: bool = True
    start_date: date
    end_date: date
    total_days: int
    working_days: int
    weekend_days: int
    holiday_days: int
    leave_days_to_deduct: int
    overlapping_holidays: list[OverlappingHoliday]
    detailed_breakdown: list[DayBreakdown]


# ── Leave requests ──────────────────────────────────────────────────

class LeaveRequestCreate(BaseModel):
    leave_type: str = Field(min_length=1, max_length=30)
    start_date: date
    end_date: date
    reason: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: str
    start_date: date
    end_date: date
    total_days: Decimal
    reason: Optional[str] = None
    status: str
    current_approver_role: str
    manager_status: str
    manager_approved_by: Optional[str] = None
    manager_approval_date: Optional[date] = None
    manager_comments: Optional[str] = None
    hr_status: str
    hr_approved_by: Optional[str] = None
    hr_approval_date: Optional[date] = None
    hr_comments: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime


class LeaveApprovalRequest(BaseModel):
    action: LeaveAction
    leave_request_id: uuid.UUID
    comments: Optional[str] = None


class LeaveApprovalResponse(BaseModel):
    success: bool = True
    message: str
    updated_request: LeaveRequestResponse


# ── Holidays ────────────────────────────────────────────────────────

class PublicHolidayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    name_ar: Optional[str] = None
    date: dt.date
    year: int
    holiday_type: str
    is_recurring: bool
    is_active: bool
    description: Optional[str] = None


class InitializeHolidaysRequest(BaseModel):
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    force_recreate: bool = False


class InitializeHolidaysResponse(BaseModel):
    success: bool = True
    message: str
    year: int
    holidays_created: int
    holidays: list[PublicHolidayResponse]
    note: str


# ── Accrual ─────────────────────────────────────────────────────────

class AccrualPolicyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    policy_name: str
    leave_type: str
    annual_entitlement: Decimal
    monthly_accrual_rate: Decimal
    probation_period_months: int
    accrue_during_probation: bool
    max_carryover: Decimal
    prorate_for_new_hires: bool
    employment_types: list[str]
    is_active: bool


class ProcessAccrualRequest(BaseModel):
    accrual_period: Optional[str] = None
    force_reprocess: bool = False

    @field_validator("accrual_period")
    @classmethod
    def _check_period(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        from hrms.leave.accrual import parse_period

        parse_period(v)
        return v


class AccrualRunResult(BaseModel):
    period: str
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    total_days_accrued: Decimal = Decimal("0")
    details: list[dict[str, Any]] = Field(default_factory=list)


class ProcessAccrualResponse(BaseModel):
    success: bool = True
    message: str
    period: str
    results: Optional[AccrualRunResult] = None
