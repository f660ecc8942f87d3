"""Loan service — role-scoped listing, requests and the tiered approval workflow."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.common.audit import record_change
from hrms.common.constants import (
    CURRENCY,
    LOAN_HR_APPROVAL_THRESHOLD,
    LOAN_SENIOR_APPROVAL_THRESHOLD,
    ApprovalStatus,
    ApproverRole,
    LoanAction,
    LoanStatus,
    NotificationType,
    UserRole,
)
from hrms.common.exceptions import BadRequestException, ForbiddenException, NotFoundException
from hrms.common.filters import apply_filters
from hrms.config import settings
from hrms.core_hr.access import AccessScope, find_current_employee, resolve_access_scope
from hrms.core_hr.models import Employee
from hrms.core_hr.service import EmployeeService
from hrms.loans.models import LoanRequest
from hrms.loans.schemas import LoanFilterRequest, LoanRequestResponse
from hrms.notifications.mailer import Mailer, send_quietly
from hrms.notifications.service import NotificationService

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")

_STAGE_NAMES = {
    ApproverRole.manager: "manager",
    ApproverRole.hr: "HR",
    ApproverRole.senior_management: "senior management",
}


class LoanService:

    @staticmethod
    async def get_filtered_loan_requests(
        db: AsyncSession,
        user: User,
        filters: LoanFilterRequest,
    ) -> tuple[AccessScope, list[LoanRequestResponse]]:
        """Loan requests of the employees *user* may see, newest first."""
        employees = await EmployeeService.list_all(db)
        scope = resolve_access_scope(user, employees, find_current_employee(user, employees))
        by_id = {e.id: e for e in scope.employees}
        if not by_id:
            return scope, []

        query = (
            select(LoanRequest)
            .where(LoanRequest.employee_id.in_(list(by_id)))
            .order_by(LoanRequest.created_at.desc())
        )
        query = apply_filters(query, LoanRequest, filters.model_dump())
        rows = (await db.execute(query)).scalars().all()

        enriched = []
        for loan in rows:
            employee = by_id.get(loan.employee_id)
            item = LoanRequestResponse.model_validate(loan)
            if employee is not None:
                item.employee_name = employee.full_name
                item.employee_email = employee.email
                item.employee_department = employee.department
                item.employee_company = employee.company_id
            enriched.append(item)
        return scope, enriched

    # ═════════════════════════════════════════════════════════════════
    # Requests
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def create_request(
        db: AsyncSession,
        user: User,
        *,
        loan_type: str,
        amount: Decimal,
        installments: int,
        reason: Optional[str] = None,
    ) -> LoanRequest:
        """File a loan request for the caller; employees without a manager start at HR."""
        employee = await EmployeeService.get_for_user(db, user)
        if employee is None:
            raise NotFoundException("Employee", detail="Employee record not found for this user")

        has_manager = employee.manager_id is not None
        loan = LoanRequest(
            employee_id=employee.id,
            loan_type=loan_type,
            amount=amount,
            installments=installments,
            monthly_deduction=(Decimal(amount) / installments).quantize(_CENT, rounding=ROUND_HALF_UP),
            reason=reason,
            status=LoanStatus.pending.value,
            current_approver_role=(
                ApproverRole.manager.value if has_manager else ApproverRole.hr.value
            ),
            manager_status=(
                ApprovalStatus.pending.value if has_manager else ApprovalStatus.not_required.value
            ),
        )
        db.add(loan)
        await db.flush()
        await record_change(
            db,
            entity_name="LoanRequest",
            entity_id=loan.id,
            change_type="create",
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            new_values={
                "loan_type": loan_type,
                "amount": str(amount),
                "installments": installments,
                "monthly_deduction": str(loan.monthly_deduction),
            },
        )
        return loan

    # ═════════════════════════════════════════════════════════════════
    # Tiered approval
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def process_approval(
        db: AsyncSession,
        mailer: Mailer,
        user: User,
        *,
        action: LoanAction,
        loan_request_id: uuid.UUID,
        comments: Optional[str] = None,
    ) -> LoanRequest:
        """Apply a manager, HR or senior management decision, or disburse an approved loan.

        Manager approval completes loans below ``LOAN_HR_APPROVAL_THRESHOLD``;
        HR approval completes loans below ``LOAN_SENIOR_APPROVAL_THRESHOLD``.
        """
        loan = await db.get(LoanRequest, loan_request_id)
        if loan is None:
            raise NotFoundException("Loan request", detail="Loan request not found")

        employee = await db.get(Employee, loan.employee_id)
        if employee is None:
            raise NotFoundException("Employee", detail="Employee not found")

        old_values = {
            "status": loan.status,
            "current_approver_role": loan.current_approver_role,
        }
        amount = f"{loan.amount:,.2f} {CURRENCY}"

        if action in (LoanAction.manager_approve, LoanAction.manager_reject):
            message = await LoanService._manager_decision(db, mailer, user, loan, employee, action, comments, amount)
        elif action in (LoanAction.hr_approve, LoanAction.hr_reject):
            message = await LoanService._hr_decision(mailer, user, loan, employee, action, comments, amount)
        elif action is LoanAction.disburse:
            message = LoanService._disburse(user, loan, amount)
        else:
            message = LoanService._senior_decision(user, loan, action, comments, amount)

        await db.flush()
        await record_change(
            db,
            entity_name="LoanRequest",
            entity_id=loan.id,
            change_type=action.value,
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            old_values=old_values,
            new_values={
                "status": loan.status,
                "current_approver_role": loan.current_approver_role,
            },
            notes=comments,
        )

        await NotificationService.create_notification(
            db,
            user_email=employee.email,
            title="Loan Request Status Update",
            message=message,
            type=(
                NotificationType.error
                if loan.status == LoanStatus.rejected.value
                else NotificationType.success
            ),
            category="loan",
            related_entity_type="LoanRequest",
            related_entity_id=loan.id,
        )
        await send_quietly(mailer, employee.email, "Loan Request Status Update", message)
        logger.info("Loan request %s: %s by %s", loan.id, action.value, user.email)
        return loan

    @staticmethod
    def _ensure_stage(loan: LoanRequest, stage: ApproverRole) -> None:
        if loan.status != LoanStatus.pending.value or loan.current_approver_role != stage.value:
            raise BadRequestException(f"Loan request is not awaiting {_STAGE_NAMES[stage]} approval")

    @staticmethod
    def _reject(loan: LoanRequest, reason: str) -> None:
        loan.status = LoanStatus.rejected.value
        loan.rejection_reason = reason
        loan.current_approver_role = ApproverRole.completed.value

    @staticmethod
    def _complete(loan: LoanRequest, *later_stages: str) -> None:
        for field in later_stages:
            setattr(loan, field, ApprovalStatus.not_required.value)
        loan.status = LoanStatus.approved.value
        loan.current_approver_role = ApproverRole.completed.value

    @staticmethod
    def _pending_mail_body(loan: LoanRequest, employee: Employee, approvals: str) -> str:
        return (
            f"Employee: {employee.full_name}\n"
            f"Loan Type: {loan.loan_type}\n"
            f"Amount: {loan.amount:,.2f} {CURRENCY}\n"
            f"Repayment Period: {loan.installments} months\n"
            f"Monthly Deduction: {loan.monthly_deduction:,.2f} {CURRENCY}\n"
            f"Purpose: {loan.reason or '-'}\n\n"
            f"{approvals}\n\n"
            f"Please review in {settings.APP_NAME}."
        )

    @staticmethod
    async def _manager_decision(
        db: AsyncSession,
        mailer: Mailer,
        user: User,
        loan: LoanRequest,
        employee: Employee,
        action: LoanAction,
        comments: Optional[str],
        amount: str,
    ) -> str:
        approver = await EmployeeService.get_for_user(db, user)
        if approver is None or approver.id != employee.manager_id:
            raise ForbiddenException("Only the direct manager can approve/reject")
        LoanService._ensure_stage(loan, ApproverRole.manager)

        loan.manager_approved_by = user.email
        loan.manager_approval_date = date.today()
        loan.manager_comments = comments or ""

        if action is LoanAction.manager_reject:
            loan.manager_status = ApprovalStatus.rejected.value
            LoanService._reject(loan, comments or "Rejected by manager")
            return (
                f"Your loan request for {amount} has been rejected by your manager.\n"
                f"Reason: {comments or 'Not specified'}"
            )

        loan.manager_status = ApprovalStatus.approved.value
        if loan.amount < LOAN_HR_APPROVAL_THRESHOLD:
            LoanService._complete(loan, "hr_status", "senior_management_status")
            return f"Great news! Your loan request for {amount} has been approved."

        loan.current_approver_role = ApproverRole.hr.value
        await send_quietly(
            mailer,
            settings.HR_NOTIFICATION_EMAIL,
            f"Loan Request Pending HR Approval - {employee.full_name}",
            "A loan request requires HR approval:\n\n"
            + LoanService._pending_mail_body(loan, employee, "Manager: Approved"),
        )
        return (
            f"Your loan request for {amount} has been approved by your manager "
            "and is pending HR approval."
        )

    @staticmethod
    async def _hr_decision(
        mailer: Mailer,
        user: User,
        loan: LoanRequest,
        employee: Employee,
        action: LoanAction,
        comments: Optional[str],
        amount: str,
    ) -> str:
        if user.role != UserRole.admin.value:
            raise ForbiddenException("Only HR can perform this action")
        LoanService._ensure_stage(loan, ApproverRole.hr)

        loan.hr_approved_by = user.email
        loan.hr_approval_date = date.today()
        loan.hr_comments = comments or ""

        if action is LoanAction.hr_reject:
            loan.hr_status = ApprovalStatus.rejected.value
            LoanService._reject(loan, comments or "Rejected by HR")
            return (
                f"Your loan request for {amount} has been rejected by HR.\n"
                f"Reason: {comments or 'Not specified'}"
            )

        loan.hr_status = ApprovalStatus.approved.value
        if loan.amount < LOAN_SENIOR_APPROVAL_THRESHOLD:
            LoanService._complete(loan, "senior_management_status")
            return f"Excellent! Your loan request for {amount} has been fully approved."

        loan.current_approver_role = ApproverRole.senior_management.value
        await send_quietly(
            mailer,
            settings.MANAGEMENT_NOTIFICATION_EMAIL,
            f"Loan Request Pending Senior Management Approval - {employee.full_name}",
            "A high-value loan request requires senior management approval:\n\n"
            + LoanService._pending_mail_body(loan, employee, "Manager: Approved\nHR: Approved"),
        )
        return (
            f"Your loan request for {amount} has been approved by HR "
            "and is pending senior management approval."
        )

    @staticmethod
    def _senior_decision(
        user: User,
        loan: LoanRequest,
        action: LoanAction,
        comments: Optional[str],
        amount: str,
    ) -> str:
        if user.role != UserRole.admin.value:
            raise ForbiddenException("Only senior management can perform this action")
        LoanService._ensure_stage(loan, ApproverRole.senior_management)

        loan.senior_management_approved_by = user.email
        loan.senior_management_approval_date = date.today()
        loan.senior_management_comments = comments or ""

        if action is LoanAction.senior_management_reject:
            loan.senior_management_status = ApprovalStatus.rejected.value
            LoanService._reject(loan, comments or "Rejected by senior management")
            return (
                f"Your loan request for {amount} has been rejected by senior management.\n"
                f"Reason: {comments or 'Not specified'}"
            )

        loan.senior_management_status = ApprovalStatus.approved.value
        LoanService._complete(loan)
        return (
            f"Congratulations! Your loan request for {amount} has been fully approved "
            "by senior management."
        )

    @staticmethod
    def _disburse(user: User, loan: LoanRequest, amount: str) -> str:
        """Pay out an approved loan; payroll deducts from the following run."""
        if user.role != UserRole.admin.value:
            raise ForbiddenException("Only HR can perform this action")
        if loan.status != LoanStatus.approved.value:
            raise BadRequestException("Only approved loans can be disbursed")
        loan.status = LoanStatus.disbursed.value
        loan.disbursement_date = date.today()
        loan.remaining_balance = loan.amount
        return (
            f"Your loan of {amount} has been disbursed. "
            f"{loan.monthly_deduction:,.2f} {CURRENCY} will be deducted monthly "
            f"over {loan.installments} months."
        )
