"""Payroll service — monthly run, approval, GOSI report and payslips."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.common.audit import record_change
from hrms.common.constants import (
    DEDUCTIBLE_LOAN_STATUSES,
    EmploymentStatus,
    LeaveStatus,
    PayrollStatus,
    UserRole,
)
from hrms.common.exceptions import ForbiddenException, NotFoundException
from hrms.core_hr.models import Employee
from hrms.core_hr.service import EmployeeService
from hrms.leave.models import LeaveRequest
from hrms.loans.models import LoanRequest
from hrms.notifications.mailer import Mailer, send_quietly
from hrms.payroll.calculator import compute_payroll, month_bounds, unpaid_leave_days
from hrms.payroll.gosi import GosiSummary, summarize_gosi
from hrms.payroll.models import GosiReport, Payroll
from hrms.payroll.payslip import build_payslip, render_payslip_pdf, render_payslip_text

logger = logging.getLogger(__name__)

UNPAID_LEAVE_TYPE = "unpaid"


class PayrollService:

    @staticmethod
    async def process_monthly_payroll(
        db: AsyncSession,
        user: User,
        *,
        month: str,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> tuple[list[Payroll], list[dict[str, Any]]]:
        """Compute and store one payroll per active employee for *month*.

        Returns ``(payrolls, errors)``; an employee already paid for the
        month or with invalid salary data lands in ``errors``.
        """
        first, last = month_bounds(month)

        query = select(Employee).where(Employee.status == EmploymentStatus.active.value)
        if employee_ids:
            query = query.where(Employee.id.in_(list(employee_ids)))
        employees = (await db.execute(query.order_by(Employee.employee_code))).scalars().all()

        leaves = (
            await db.execute(
                select(LeaveRequest).where(
                    LeaveRequest.status == LeaveStatus.approved.value,
                    LeaveRequest.leave_type == UNPAID_LEAVE_TYPE,
                    LeaveRequest.start_date <= last,
                    LeaveRequest.end_date >= first,
                ),
            )
        ).scalars().all()
        loans = (
            await db.execute(
                select(LoanRequest).where(LoanRequest.status.in_(DEDUCTIBLE_LOAN_STATUSES)),
            )
        ).scalars().all()
        existing = set(
            (
                await db.execute(select(Payroll.employee_id).where(Payroll.month == month))
            ).scalars().all()
        )

        payrolls: list[Payroll] = []
        errors: list[dict[str, Any]] = []

        for employee in employees:
            if employee.id in existing:
                errors.append(PayrollService._error(employee, f"Payroll for {month} already exists"))
                continue
            if not employee.basic_salary or employee.basic_salary <= 0:
                errors.append(PayrollService._error(employee, "Basic salary is not set"))
                continue

            figures = compute_payroll(
                basic_salary=employee.basic_salary,
                housing_allowance=employee.housing_allowance,
                transport_allowance=employee.transport_allowance,
                nationality=employee.nationality,
                gosi_salary_basis=employee.gosi_salary_basis,
                loan_deduction=sum(
                    (l.monthly_deduction for l in loans if l.employee_id == employee.id),
                    Decimal("0"),
                ),
                unpaid_days=unpaid_leave_days(
                    ((l.start_date, l.end_date) for l in leaves if l.employee_id == employee.id),
                    month,
                ),
            )
            payroll = Payroll(
                employee_id=employee.id,
                month=month,
                basic_salary=figures.basic_salary,
                housing_allowance=figures.housing_allowance,
                transport_allowance=figures.transport_allowance,
                gross_salary=figures.gross_salary,
                gosi_employee=figures.gosi.employee,
                gosi_employer=figures.gosi.employer,
                gosi_calculation_base=figures.gosi.base,
                loan_deduction=figures.loan_deduction,
                absence_deduction=figures.absence_deduction,
                total_deductions=figures.total_deductions,
                net_salary=figures.net_salary,
                working_days=figures.working_days,
                present_days=figures.present_days,
                absent_days=figures.absent_days,
                unpaid_leave_days=figures.unpaid_leave_days,
                payment_method="bank_transfer" if employee.iban else "cash",
                processed_by=user.email,
            )
            db.add(payroll)
            payrolls.append(payroll)

        await db.flush()
        await record_change(
            db,
            entity_name="Payroll",
            entity_id=month,
            change_type="process",
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            change_summary=f"Processed payroll for {len(payrolls)} employees ({len(errors)} errors)",
        )
        logger.info("Payroll %s: %d processed, %d errors", month, len(payrolls), len(errors))
        return payrolls, errors

    @staticmethod
    def _error(employee: Employee, message: str) -> dict[str, Any]:
        return {
            "employee_id": str(employee.id),
            "employee_name": employee.full_name,
            "error": message,
        }

    @staticmethod
    async def approve_payrolls(
        db: AsyncSession,
        user: User,
        *,
        month: str,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> list[Payroll]:
        """Move the month's calculated payrolls to ``approved``."""
        query = select(Payroll).where(
            Payroll.month == month,
            Payroll.status == PayrollStatus.calculated.value,
        )
        if employee_ids:
            query = query.where(Payroll.employee_id.in_(list(employee_ids)))
        payrolls = list((await db.execute(query)).scalars().all())
        if not payrolls:
            raise NotFoundException(
                "Payroll", detail="No calculated payrolls found for the specified month",
            )

        for payroll in payrolls:
            payroll.status = PayrollStatus.approved.value
        await db.flush()
        await record_change(
            db,
            entity_name="Payroll",
            entity_id=month,
            change_type="approve",
            changed_by_email=user.email,
            changed_by_name=user.full_name,
            old_values={"status": PayrollStatus.calculated.value},
            new_values={"status": PayrollStatus.approved.value, "count": len(payrolls)},
            change_summary=f"Approved payroll for {len(payrolls)} employees",
        )
        logger.info("Payroll %s: %d approved by %s", month, len(payrolls), user.email)
        return payrolls

    @staticmethod
    async def generate_gosi_report(
        db: AsyncSession,
        user: User,
        *,
        month: str,
        company_id: Optional[uuid.UUID] = None,
    ) -> tuple[GosiReport, GosiSummary]:
        """Totals of the month's GOSI contributions, stored as a ``GosiReport``."""
        query = (
            select(Payroll, Employee)
            .join(Employee, Employee.id == Payroll.employee_id)
            .where(Payroll.month == month)
        )
        if company_id is not None:
            query = query.where(Employee.company_id == company_id)
        rows = (await db.execute(query)).all()

        summary = summarize_gosi(month, rows)
        report = GosiReport(
            report_month=month,
            company_id=company_id,
            total_employees=summary.total_employees,
            saudi_employees=len(summary.saudi),
            non_saudi_employees=len(summary.non_saudi),
            total_wages=summary.total_wages,
            total_employee_contribution=summary.total_employee_contribution,
            total_employer_contribution=summary.total_employer_contribution,
            total_contribution=summary.total_contribution,
            occupational_hazards=summary.occupational_hazards,
            saned_contribution=summary.saned_contribution,
            due_date=summary.due_date,
            generated_by=user.email,
        )
        db.add(report)
        await db.flush()
        logger.info("GOSI report %s: %d employees", month, summary.total_employees)
        return report, summary

    @staticmethod
    async def _visible_payroll(
        db: AsyncSession, user: User, payroll_id: uuid.UUID,
    ) -> tuple[Payroll, Employee]:
        """Payroll visible to the employee, their direct manager and admins."""
        payroll = await db.get(Payroll, payroll_id)
        if payroll is None:
            raise NotFoundException("Payroll", detail="Payroll record not found")
        employee = await db.get(Employee, payroll.employee_id)
        if employee is None:
            raise NotFoundException("Employee", detail="Employee not found")

        viewer = await EmployeeService.get_for_user(db, user)
        is_own = viewer is not None and viewer.id == employee.id
        is_manager = viewer is not None and employee.manager_id == viewer.id
        if not (is_own or is_manager or user.role == UserRole.admin.value):
            raise ForbiddenException("Access denied to this payslip")
        return payroll, employee

    @staticmethod
    async def generate_payslip(
        db: AsyncSession,
        mailer: Mailer,
        user: User,
        *,
        payroll_id: uuid.UUID,
        send_email: bool = False,
    ) -> tuple[dict[str, Any], str, bool]:
        payroll, employee = await PayrollService._visible_payroll(db, user, payroll_id)
        data = build_payslip(payroll, employee, user.email)
        text = render_payslip_text(data)

        email_sent = False
        if send_email:
            email_sent = await send_quietly(
                mailer,
                employee.email,
                f"Payslip for {payroll.month}",
                (
                    f"Dear {employee.first_name},\n\n"
                    f"Your payslip for {payroll.month} is ready.\n\n{text}\n\n"
                    "Best regards,\nHR Team"
                ),
            )
        return data, text, email_sent

    @staticmethod
    async def generate_payslip_pdf(
        db: AsyncSession,
        mailer: Mailer,
        user: User,
        *,
        payroll_id: uuid.UUID,
        send_email: bool = False,
    ) -> tuple[dict[str, Any], bytes, bool]:
        payroll, employee = await PayrollService._visible_payroll(db, user, payroll_id)
        data = build_payslip(payroll, employee, user.email)
        pdf = render_payslip_pdf(data)

        email_sent = False
        if send_email:
            email_sent = await send_quietly(
                mailer,
                employee.email,
                f"Payslip for {payroll.month}",
                (
                    f"Dear {employee.first_name},\n\n"
                    f"Your payslip for {payroll.month} is ready.\n\n"
                    "Payroll Summary:\n"
                    f"- Gross Salary: {payroll.gross_salary:,.2f} SAR\n"
                    f"- Total Deductions: {payroll.total_deductions:,.2f} SAR\n"
                    f"- Net Salary: {payroll.net_salary:,.2f} SAR\n\n"
                    "You can download the PDF any time from the self-service portal.\n\n"
                    "Best regards,\nHR Team"
                ),
            )
        return data, pdf, email_sent
