"""Leave service — day calculation, requests, approval workflow, holidays, accrual."""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.common.audit import record_change
from hrms.common.constants import (
    ApprovalStatus,
    ApproverRole,
    EmploymentStatus,
    LeaveAction,
    LeaveStatus,
    NotificationType,
    UserRole,
)
from hrms.common.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)
from hrms.config import settings
from hrms.core_hr.models import Employee
from hrms.core_hr.service import EmployeeService
from hrms.leave.accrual import DEFAULT_POLICIES, decide_accrual, employment_months, parse_period, policy_applies
from hrms.leave.calendar import HolidayInfo, LeaveDayBreakdown, calculate_leave_days, years_in_range
from hrms.leave.holidays import holidays_note, saudi_holidays_for
from hrms.leave.models import (
    LeaveAccrual,
    LeaveAccrualPolicy,
    LeaveBalance,
    LeaveRequest,
    PublicHoliday,
)
from hrms.leave.schemas import AccrualRunResult
from hrms.notifications.mailer import Mailer, send_quietly
from hrms.notifications.service import NotificationService

logger = logging.getLogger(__name__)


class LeaveService:
    """Async leave operations."""

    # ═════════════════════════════════════════════════════════════════
    # Day calculation
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_holidays(db: AsyncSession, start: date, end: date) -> list[HolidayInfo]:
        """Active holidays of every year touched by ``[start, end]``."""
        result = await db.execute(
            select(PublicHoliday).where(
                PublicHoliday.year.in_(years_in_range(start, end)),
                PublicHoliday.is_active.is_(True),
            ),
        )
        return [
            HolidayInfo(date=h.date, name=h.name, name_ar=h.name_ar, holiday_type=h.holiday_type)
            for h in result.scalars().all()
        ]

    @staticmethod
    async def calculate_days(db: AsyncSession, start: date, end: date) -> LeaveDayBreakdown:
        if end < start:
            # Fail before touching the holiday table.
            return calculate_leave_days(start, end)
        holidays = await LeaveService.get_holidays(db, start, end)
        return calculate_leave_days(start, end, holidays)

    # ═════════════════════════════════════════════════════════════════
    # Requests
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def _get_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: str,
        year: int,
    ) -> Optional[LeaveBalance]:
        result = await db.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type == leave_type,
                LeaveBalance.year == year,
            ),
        )
        return result.scalars().first()

    @staticmethod
    async def create_request(
        db: AsyncSession,
        user: User,
        *,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        """File a leave request for the caller; only working days are counted."""
        employee = await EmployeeService.get_for_user(db, user)
        if employee is None:
            raise NotFoundException("Employee", detail="Employee record not found for this user")

        breakdown = await LeaveService.calculate_days(db, start_date, end_date)
        days = Decimal(breakdown.leave_days_to_deduct)
        if days <= 0:
            raise BadRequestException("The selected dates contain no working days")

        request = LeaveRequest(
            employee_id=employee.id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            total_days=days,
            reason=reason,
            current_approver_role=(
                ApproverRole.manager.value if employee.manager_id else ApproverRole.hr.value
            ),
            manager_status=(
                ApprovalStatus.pending.value if employee.manager_id else ApprovalStatus.approved.value
            ),
        )
        db.add(request)

        balance = await LeaveService._get_balance(db, employee.id, leave_type, start_date.year)
        if balance is not None:
            balance.pending = (balance.pending or Decimal("0")) + days

        await db.flush()
        await record_change(
            db,
            entity_name="LeaveRequest",
            entity_id=request.id,
            change_type="create",
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            new_values={
                "leave_type": leave_type,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "total_days": str(days),
            },
        )
        return request

    # ═════════════════════════════════════════════════════════════════
    # Two-stage approval
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def process_approval(
        db: AsyncSession,
        mailer: Mailer,
        user: User,
        *,
        action: LeaveAction,
        leave_request_id: uuid.UUID,
        comments: Optional[str] = None,
    ) -> LeaveRequest:
        """Apply a manager or HR decision to a pending leave request."""
        leave_request = await db.get(LeaveRequest, leave_request_id)
        if leave_request is None:
            raise NotFoundException("Leave request", detail="Leave request not found")

        employee = await db.get(Employee, leave_request.employee_id)
        if employee is None:
            raise NotFoundException("Employee", detail="Employee not found")

        today = date.today()
        period = f"{leave_request.start_date} to {leave_request.end_date}"
        old_values = {
            "status": leave_request.status,
            "current_approver_role": leave_request.current_approver_role,
        }

        if action in (LeaveAction.manager_approve, LeaveAction.manager_reject):
            approver = await EmployeeService.get_for_user(db, user)
            if approver is None or approver.id != employee.manager_id:
                raise ForbiddenException("Only the direct manager can approve/reject")
            LeaveService._ensure_stage(leave_request, ApproverRole.manager)

            leave_request.manager_approved_by = user.email
            leave_request.manager_approval_date = today
            leave_request.manager_comments = comments or ""

            if action is LeaveAction.manager_approve:
                leave_request.manager_status = ApprovalStatus.approved.value
                leave_request.current_approver_role = ApproverRole.hr.value
                message = (
                    f"Your leave request from {period} has been approved by your manager "
                    "and forwarded to HR."
                )
                await send_quietly(
                    mailer,
                    settings.HR_NOTIFICATION_EMAIL,
                    f"Leave Request Pending HR Approval - {employee.full_name}",
                    (
                        "A leave request requires HR approval:\n\n"
                        f"Employee: {employee.full_name}\n"
                        f"Leave Type: {leave_request.leave_type}\n"
                        f"Dates: {period}\n"
                        f"Days: {leave_request.total_days}\n"
                        f"Reason: {leave_request.reason or '-'}\n"
                        "Manager: Approved\n\n"
                        f"Please review in {settings.APP_NAME}."
                    ),
                )
            else:
                leave_request.manager_status = ApprovalStatus.rejected.value
                await LeaveService._reject(db, leave_request, comments or "Rejected by manager")
                message = (
                    f"Your leave request from {period} has been rejected by your manager.\n"
                    f"Reason: {comments or 'Not specified'}"
                )

        else:
            if user.role != UserRole.admin.value:
                raise ForbiddenException("Only HR can perform this action")
            LeaveService._ensure_stage(leave_request, ApproverRole.hr)

            leave_request.hr_approved_by = user.email
            leave_request.hr_approval_date = today
            leave_request.hr_comments = comments or ""

            if action is LeaveAction.hr_approve:
                leave_request.hr_status = ApprovalStatus.approved.value
                leave_request.status = LeaveStatus.approved.value
                leave_request.current_approver_role = ApproverRole.completed.value
                await LeaveService._consume_balance(db, leave_request)
                message = f"Great news! Your leave request from {period} has been fully approved."
            else:
                leave_request.hr_status = ApprovalStatus.rejected.value
                await LeaveService._reject(db, leave_request, comments or "Rejected by HR")
                message = (
                    f"Your leave request from {period} has been rejected by HR.\n"
                    f"Reason: {comments or 'Not specified'}"
                )

        await db.flush()
        await record_change(
            db,
            entity_name="LeaveRequest",
            entity_id=leave_request.id,
            change_type=action.value,
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            old_values=old_values,
            new_values={
                "status": leave_request.status,
                "current_approver_role": leave_request.current_approver_role,
            },
            notes=comments,
        )

        await NotificationService.create_notification(
            db,
            user_email=employee.email,
            title="Leave Request Status Update",
            message=message,
            type=(
                NotificationType.error
                if leave_request.status == LeaveStatus.rejected.value
                else NotificationType.success
            ),
            category="leave",
            related_entity_type="LeaveRequest",
            related_entity_id=leave_request.id,
        )
        await send_quietly(mailer, employee.email, "Leave Request Status Update", message)
        return leave_request

    @staticmethod
    def _ensure_stage(leave_request: LeaveRequest, stage: ApproverRole) -> None:
        if (
            leave_request.status != LeaveStatus.pending.value
            or leave_request.current_approver_role != stage.value
        ):
            who = "manager" if stage is ApproverRole.manager else "HR"
            raise BadRequestException(f"Leave request is not awaiting {who} approval")

    @staticmethod
    async def _reject(db: AsyncSession, leave_request: LeaveRequest, reason: str) -> None:
        leave_request.status = LeaveStatus.rejected.value
        leave_request.rejection_reason = reason
        leave_request.current_approver_role = ApproverRole.completed.value

        balance = await LeaveService._get_balance(
            db, leave_request.employee_id, leave_request.leave_type, leave_request.start_date.year,
        )
        if balance is not None:
            balance.pending = max((balance.pending or Decimal("0")) - leave_request.total_days, Decimal("0"))

    @staticmethod
    async def _consume_balance(db: AsyncSession, leave_request: LeaveRequest) -> None:
        """Move approved days from pending to used."""
        balance = await LeaveService._get_balance(
            db, leave_request.employee_id, leave_request.leave_type, leave_request.start_date.year,
        )
        if balance is None:
            logger.warning(
                "No %s balance for employee %s in %s; approval not deducted",
                leave_request.leave_type, leave_request.employee_id, leave_request.start_date.year,
            )
            return
        days = leave_request.total_days
        balance.used = (balance.used or Decimal("0")) + days
        balance.remaining = (balance.remaining or Decimal("0")) - days
        balance.pending = max((balance.pending or Decimal("0")) - days, Decimal("0"))

    # ═════════════════════════════════════════════════════════════════
    # Public holidays
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def list_holidays(db: AsyncSession, year: int) -> Sequence[PublicHoliday]:
        result = await db.execute(
            select(PublicHoliday)
            .where(PublicHoliday.year == year, PublicHoliday.is_active.is_(True))
            .order_by(PublicHoliday.date),
        )
        return result.scalars().all()

    @staticmethod
    async def initialize_holidays(
        db: AsyncSession,
        user: User,
        *,
        year: Optional[int] = None,
        force_recreate: bool = False,
    ) -> tuple[int, list[PublicHoliday], str]:
        """Seed the Saudi holidays of *year*. Returns (year, created, note)."""
        target_year = year or date.today().year

        existing = (
            await db.execute(select(func.count()).select_from(PublicHoliday).where(PublicHoliday.year == target_year))
        ).scalar_one()
        if existing and not force_recreate:
            raise BadRequestException(f"Holidays for {target_year} already exist")
        if existing:
            await db.execute(delete(PublicHoliday).where(PublicHoliday.year == target_year))

        created = [PublicHoliday(**row) for row in saudi_holidays_for(target_year)]
        db.add_all(created)
        await db.flush()

        await record_change(
            db,
            entity_name="PublicHoliday",
            entity_id=target_year,
            change_type="recreate" if existing else "create",
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            change_summary=f"Initialized {len(created)} holidays for {target_year}",
        )
        logger.info("Initialized %d holidays for %d", len(created), target_year)
        return target_year, created, holidays_note(target_year)

    # ═════════════════════════════════════════════════════════════════
    # Accrual
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def initialize_policies(db: AsyncSession, user: User) -> list[LeaveAccrualPolicy]:
        existing = (
            await db.execute(select(func.count()).select_from(LeaveAccrualPolicy))
        ).scalar_one()
        if existing:
            raise BadRequestException(f"Accrual policies already exist ({existing} found)")

        today = date.today()
        policies = [LeaveAccrualPolicy(effective_from=today, **p) for p in DEFAULT_POLICIES]
        db.add_all(policies)
        await db.flush()
        await record_change(
            db,
            entity_name="LeaveAccrualPolicy",
            entity_id="defaults",
            change_type="create",
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            change_summary=f"Initialized {len(policies)} default accrual policies",
        )
        return policies

    @staticmethod
    def _reference_date(year: int, month: int, today: date) -> date:
        """The current period accrues as of today; other periods as of their last day."""
        if (year, month) == (today.year, today.month):
            return today
        return date(year, month, calendar.monthrange(year, month)[1])

    @staticmethod
    async def process_monthly_accrual(
        db: AsyncSession,
        user: User,
        *,
        accrual_period: Optional[str] = None,
        force_reprocess: bool = False,
        today: Optional[date] = None,
    ) -> tuple[str, Optional[AccrualRunResult]]:
        """Accrue one month of leave for every active employee.

        Returns ``(period, results)``; results is ``None`` when there is no
        active employee to process.
        """
        today = today or date.today()
        period = accrual_period or today.strftime("%Y-%m")
        try:
            year, month = parse_period(period)
        except ValueError as exc:
            raise BadRequestException(str(exc))
        as_of = LeaveService._reference_date(year, month, today)

        employees = (
            await db.execute(
                select(Employee)
                .where(Employee.status == EmploymentStatus.active.value)
                .order_by(Employee.employee_code),
            )
        ).scalars().all()
        if not employees:
            return period, None

        policies = (
            await db.execute(select(LeaveAccrualPolicy).where(LeaveAccrualPolicy.is_active.is_(True)))
        ).scalars().all()
        if not policies:
            raise BadRequestException(
                "No active accrual policies found. Please configure policies first.",
            )

        if not force_reprocess:
            already = (
                await db.execute(
                    select(func.count()).select_from(LeaveAccrual).where(LeaveAccrual.accrual_period == period),
                )
            ).scalar_one()
            if already:
                raise BadRequestException(
                    f"Accrual already processed for {period}. Use force_reprocess=true to reprocess.",
                )

        results = AccrualRunResult(period=period)
        for employee in employees:
            try:
                detail = await LeaveService._accrue_employee(
                    db, employee, policies, period, as_of, user.email,
                )
            except ValueError as exc:
                logger.warning("Accrual failed for %s: %s", employee.employee_code, exc)
                results.errors += 1
                results.details.append(
                    {
                        "employee_id": str(employee.id),
                        "employee_name": employee.full_name,
                        "error": str(exc),
                    },
                )
                continue

            if detail["total_accrued"] > 0:
                results.processed += 1
                results.total_days_accrued += detail["total_accrued"]
            else:
                results.skipped += 1
            results.details.append(detail)

        await db.flush()
        logger.info(
            "Accrual %s: processed=%d skipped=%d errors=%d",
            period, results.processed, results.skipped, results.errors,
        )
        return period, results

    @staticmethod
    async def _accrue_employee(
        db: AsyncSession,
        employee: Employee,
        policies: Sequence[LeaveAccrualPolicy],
        period: str,
        as_of: date,
        processed_by: str,
    ) -> dict[str, Any]:
        if employee.hire_date is None:
            raise ValueError("Employee has no hire date")
        if employee.hire_date > as_of:
            raise ValueError(f"Hire date {employee.hire_date} is after {as_of}")

        months = employment_months(employee.hire_date, as_of)
        applicable = [p for p in policies if policy_applies(p, employee.employment_type)]
        decisions = [(p, decide_accrual(p, employee.hire_date, as_of)) for p in applicable]

        detail: dict[str, Any] = {
            "employee_id": str(employee.id),
            "employee_name": employee.full_name,
            "employment_months": months,
            "total_accrued": Decimal("0"),
            "accruals": [],
        }

        for policy, decision in decisions:
            if decision.skipped:
                detail["accruals"].append(
                    {"leave_type": policy.leave_type, "status": "skipped", "reason": decision.skipped_reason},
                )
                continue

            balance = await LeaveService._get_balance(db, employee.id, policy.leave_type, as_of.year)
            if balance is None:
                balance = LeaveBalance(
                    employee_id=employee.id,
                    leave_type=policy.leave_type,
                    year=as_of.year,
                    total_entitled=Decimal("0"),
                    used=Decimal("0"),
                    pending=Decimal("0"),
                    remaining=Decimal("0"),
                    carried_forward=Decimal("0"),
                )
                db.add(balance)

            before = balance.total_entitled or Decimal("0")
            balance.total_entitled = before + decision.days
            balance.remaining = (balance.remaining or Decimal("0")) + decision.days

            db.add(
                LeaveAccrual(
                    employee_id=employee.id,
                    policy_id=policy.id,
                    leave_type=policy.leave_type,
                    accrual_period=period,
                    accrual_date=as_of,
                    days_accrued=decision.days,
                    balance_before=before,
                    balance_after=balance.total_entitled,
                    accrual_rate=policy.monthly_accrual_rate,
                    employment_months=months,
                    is_prorated=decision.is_prorated,
                    proration_factor=decision.proration_factor,
                    notes="Prorated for mid-month hire" if decision.is_prorated else "Standard monthly accrual",
                    processed_by=processed_by,
                ),
            )
            await db.flush()

            detail["total_accrued"] += decision.days
            detail["accruals"].append(
                {
                    "leave_type": policy.leave_type,
                    "days_accrued": decision.days,
                    "balance_after": balance.total_entitled,
                    "is_prorated": decision.is_prorated,
                },
            )
        return detail
