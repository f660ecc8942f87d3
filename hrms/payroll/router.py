"""Payroll routes."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_admin
from hrms.auth.models import User
from hrms.database import get_db
from hrms.notifications.mailer import Mailer, get_mailer
from hrms.payroll.gosi import render_gosi_text
from hrms.payroll.payslip import payslip_filename
from hrms.payroll.schemas import (
    ApprovePayrollRequest,
    ApprovePayrollResponse,
    GosiEmployeeLine,
    GosiReportRecord,
    GosiReportRequest,
    GosiReportResponse,
    PayrollResponse,
    PayslipRequest,
    PayslipResponse,
    ProcessPayrollRequest,
    ProcessPayrollResponse,
)
from hrms.payroll.service import PayrollService

router = APIRouter(prefix="", tags=["payroll"])


@router.post("/process", response_model=ProcessPayrollResponse)
async def process_payroll(
    body: ProcessPayrollRequest,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    payrolls, errors = await PayrollService.process_monthly_payroll(
        db, user, month=body.month, employee_ids=body.employee_ids,
    )
    return ProcessPayrollResponse(
        message=f"Processed payroll for {len(payrolls)} employees",
        month=body.month,
        processed_count=len(payrolls),
        error_count=len(errors),
        total_gross=sum((p.gross_salary for p in payrolls), Decimal("0")),
        total_net=sum((p.net_salary for p in payrolls), Decimal("0")),
        total_gosi_employer=sum((p.gosi_employer for p in payrolls), Decimal("0")),
        processed_payrolls=[PayrollResponse.model_validate(p) for p in payrolls],
        errors=errors,
    )


@router.post("/approve", response_model=ApprovePayrollResponse)
async def approve_payroll(
    body: ApprovePayrollRequest,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    payrolls = await PayrollService.approve_payrolls(
        db, user, month=body.month, employee_ids=body.employee_ids,
    )
    return ApprovePayrollResponse(
        message=f"Approved payroll for {len(payrolls)} employees",
        month=body.month,
        approved_count=len(payrolls),
        approved_payrolls=[PayrollResponse.model_validate(p) for p in payrolls],
    )


@router.post("/gosi-report", response_model=GosiReportResponse)
async def gosi_report(
    body: GosiReportRequest,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    report, summary = await PayrollService.generate_gosi_report(
        db, user, month=body.month, company_id=body.company_id,
    )
    return GosiReportResponse(
        report=GosiReportRecord.model_validate(report),
        report_text=render_gosi_text(summary),
        saudi=[GosiEmployeeLine.model_validate(line) for line in summary.saudi],
        non_saudi=[GosiEmployeeLine.model_validate(line) for line in summary.non_saudi],
    )


@router.post("/payslip", response_model=PayslipResponse)
async def generate_payslip(
    body: PayslipRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    payslip, text, email_sent = await PayrollService.generate_payslip(
        db, mailer, user, payroll_id=body.payroll_id, send_email=body.send_email,
    )
    return PayslipResponse(payslip=payslip, payslip_text=text, email_sent=email_sent)


@router.post("/payslip/pdf", response_model=None)
async def generate_payslip_pdf(
    body: PayslipRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    payslip, pdf, email_sent = await PayrollService.generate_payslip_pdf(
        db, mailer, user, payroll_id=body.payroll_id, send_email=body.send_email,
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{payslip_filename(payslip)}"',
            "X-Email-Sent": "true" if email_sent else "false",
        },
    )
