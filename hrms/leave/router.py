"""Leave routes — day calculator, requests, approvals, holidays, accrual."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_admin
from hrms.auth.models import User
from hrms.database import get_db
from hrms.leave.schemas import (
    AccrualPolicyResponse,
    CalculateLeaveDaysRequest,
    CalculateLeaveDaysResponse,
    DayBreakdown,
    InitializeHolidaysRequest,
    InitializeHolidaysResponse,
    LeaveApprovalRequest,
    LeaveApprovalResponse,
    LeaveRequestCreate,
    LeaveRequestResponse,
    OverlappingHoliday,
    ProcessAccrualRequest,
    ProcessAccrualResponse,
    PublicHolidayResponse,
)
from hrms.leave.service import LeaveService
from hrms.notifications.mailer import Mailer, get_mailer

router = APIRouter(prefix="", tags=["leave"])


# ── Day calculator ──────────────────────────────────────────────────

@router.post("/calculate-days", response_model=CalculateLeaveDaysResponse)
async def calculate_leave_days(
    body: CalculateLeaveDaysRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    breakdown = await LeaveService.calculate_days(db, body.start_date, body.end_date)
    return CalculateLeaveDaysResponse(
        start_date=breakdown.start_date,
        end_date=breakdown.end_date,
        total_days=breakdown.total_days,
        working_days=breakdown.working_days,
        weekend_days=breakdown.weekend_days,
        holiday_days=breakdown.holiday_days,
        leave_days_to_deduct=breakdown.leave_days_to_deduct,
        overlapping_holidays=[
            OverlappingHoliday(date=h.date, name=h.name, name_ar=h.name_ar, type=h.holiday_type)
            for h in breakdown.overlapping_holidays
        ],
        detailed_breakdown=[
            DayBreakdown(
                date=d.date,
                day_of_week=d.day_of_week,
                type=d.type.value,
                holiday_name=d.holiday_name,
            )
            for d in breakdown.days
        ],
    )


# ── Requests & approvals ────────────────────────────────────────────

@router.post("/requests", response_model=LeaveRequestResponse, status_code=201)
async def create_leave_request(
    body: LeaveRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    leave_request = await LeaveService.create_request(db, user, **body.model_dump())
    return LeaveRequestResponse.model_validate(leave_request)


@router.post("/approval", response_model=LeaveApprovalResponse)
async def leave_approval(
    body: LeaveApprovalRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    leave_request = await LeaveService.process_approval(
        db,
        mailer,
        user,
        action=body.action,
        leave_request_id=body.leave_request_id,
        comments=body.comments,
    )
    return LeaveApprovalResponse(
        message="Leave request processed successfully",
        updated_request=LeaveRequestResponse.model_validate(leave_request),
    )


# ── Holidays ────────────────────────────────────────────────────────

@router.get("/holidays", response_model=list[PublicHolidayResponse])
async def list_holidays(
    year: int = Query(..., ge=2000, le=2100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    holidays = await LeaveService.list_holidays(db, year)
    return [PublicHolidayResponse.model_validate(h) for h in holidays]


@router.post("/holidays/initialize", response_model=InitializeHolidaysResponse)
async def initialize_holidays(
    body: Optional[InitializeHolidaysRequest] = None,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    body = body or InitializeHolidaysRequest()
    year, created, note = await LeaveService.initialize_holidays(
        db, user, year=body.year, force_recreate=body.force_recreate,
    )
    return InitializeHolidaysResponse(
        message=f"Successfully initialized {len(created)} holidays for {year}",
        year=year,
        holidays_created=len(created),
        holidays=[PublicHolidayResponse.model_validate(h) for h in created],
        note=note,
    )


# ── Accrual ─────────────────────────────────────────────────────────

@router.post("/accrual-policies/initialize")
async def initialize_accrual_policies(
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    policies = await LeaveService.initialize_policies(db, user)
    return {
        "success": True,
        "message": "Default accrual policies initialized successfully",
        "policies_created": len(policies),
        "policies": [AccrualPolicyResponse.model_validate(p) for p in policies],
    }


@router.post("/accrual/process", response_model=ProcessAccrualResponse)
async def process_monthly_accrual(
    body: Optional[ProcessAccrualRequest] = None,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    body = body or ProcessAccrualRequest()
    period, results = await LeaveService.process_monthly_accrual(
        db, user, accrual_period=body.accrual_period, force_reprocess=body.force_reprocess,
    )
    if results is None:
        return ProcessAccrualResponse(message="No active employees to process", period=period)
    return ProcessAccrualResponse(
        message=f"Accrual processing completed for {period}",
        period=period,
        results=results,
    )
