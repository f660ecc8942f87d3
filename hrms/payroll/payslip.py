"""Payslip assembly with plain-text and PDF rendering."""

from __future__ import annotations

import io
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from hrms.common.constants import CURRENCY
from hrms.core_hr.models import Employee
from hrms.payroll.models import Payroll

_LINE = "─" * 70
_DOUBLE = "═" * 70


def payslip_id(payroll: Payroll, employee: Employee) -> str:
    return f"PS-{payroll.month.replace('-', '')}-{employee.employee_code}"


def build_payslip(payroll: Payroll, employee: Employee, generated_by: str) -> dict[str, Any]:
    return {
        "payslip_id": payslip_id(payroll, employee),
        "employee": {
            "id": employee.employee_code,
            "name": employee.full_name,
            "department": employee.department,
            "job_title": employee.job_title,
            "bank_account": employee.iban,
        },
        "period": {
            "month": payroll.month,
            "working_days": payroll.working_days,
            "present_days": payroll.present_days,
            "absent_days": payroll.absent_days,
            "unpaid_leave_days": payroll.unpaid_leave_days,
        },
        "earnings": {
            "basic_salary": payroll.basic_salary,
            "housing_allowance": payroll.housing_allowance,
            "transport_allowance": payroll.transport_allowance,
            "other_fixed_allowances": payroll.other_fixed_allowances,
            "overtime_pay": payroll.overtime_pay,
            "bonus": payroll.bonus,
            "commission": payroll.commission,
        },
        "gross_salary": payroll.gross_salary,
        "deductions": {
            "gosi_employee": payroll.gosi_employee,
            "loan_deduction": payroll.loan_deduction,
            "advance_deduction": payroll.advance_deduction,
            "absence_deduction": payroll.absence_deduction,
            "other_deductions": payroll.other_deductions,
        },
        "total_deductions": payroll.total_deductions,
        "net_salary": payroll.net_salary,
        "payment": {
            "method": payroll.payment_method,
            "date": payroll.payment_date,
            "reference": payroll.payment_reference,
            "status": payroll.status,
        },
        "generated_date": datetime.now(timezone.utc).isoformat(),
        "generated_by": generated_by,
    }


def _fmt(amount: Any) -> str:
    return f"{Decimal(amount or 0):,.2f} {CURRENCY}"


def _row(label: str, amount: Any) -> str:
    return f"{label + ':':<27}{_fmt(amount)}"


def render_payslip_text(data: dict[str, Any]) -> str:
    emp, period = data["employee"], data["period"]
    earnings, deductions, payment = data["earnings"], data["deductions"], data["payment"]

    lines = [
        _DOUBLE,
        f"{'PAYSLIP - ' + period['month']:^70}",
        _DOUBLE,
        "",
        f"Payslip ID: {data['payslip_id']}",
        f"Generated:  {data['generated_date'][:10]}",
        "",
        "EMPLOYEE INFORMATION",
        _LINE,
        f"Employee ID:    {emp['id']}",
        f"Name:           {emp['name']}",
        f"Department:     {emp['department'] or '-'}",
        f"Job Title:      {emp['job_title'] or '-'}",
        "",
        "ATTENDANCE SUMMARY",
        _LINE,
        f"Working Days:   {period['working_days']}",
        f"Present Days:   {period['present_days']}",
        f"Absent Days:    {period['absent_days']}",
        "",
        "EARNINGS",
        _LINE,
        _row("Basic Salary", earnings["basic_salary"]),
        _row("Housing Allowance", earnings["housing_allowance"]),
        _row("Transport Allowance", earnings["transport_allowance"]),
    ]
    for key, label in (
        ("other_fixed_allowances", "Other Allowances"),
        ("overtime_pay", "Overtime Pay"),
        ("bonus", "Bonus"),
        ("commission", "Commission"),
    ):
        if earnings[key]:
            lines.append(_row(label, earnings[key]))
    lines += [_row("GROSS SALARY", data["gross_salary"]), "", "DEDUCTIONS", _LINE]
    lines.append(_row("GOSI (Employee)", deductions["gosi_employee"]))
    for key, label in (
        ("loan_deduction", "Loan Deduction"),
        ("advance_deduction", "Advance Deduction"),
        ("absence_deduction", "Absence Deduction"),
        ("other_deductions", "Other Deductions"),
    ):
        if deductions[key]:
            lines.append(_row(label, deductions[key]))
    lines += [
        _row("TOTAL DEDUCTIONS", data["total_deductions"]),
        "",
        _DOUBLE,
        _row("NET SALARY", data["net_salary"]),
        _DOUBLE,
        "",
        "PAYMENT DETAILS",
        _LINE,
        f"Payment Method:   {payment['method']}",
    ]
    if payment["date"]:
        lines.append(f"Payment Date:     {payment['date']}")
    if payment["reference"]:
        lines.append(f"Reference:        {payment['reference']}")
    lines.append(f"Status:           {payment['status']}")
    if emp["bank_account"]:
        lines.append(f"Bank Account:     {emp['bank_account']}")
    lines += [
        "",
        _DOUBLE,
        "This is a computer-generated payslip and does not require a signature.",
        _DOUBLE,
    ]
    return "\n".join(lines)


_EMERALD = colors.Color(16 / 255, 185 / 255, 129 / 255)
_RED = colors.Color(239 / 255, 68 / 255, 68 / 255)


def payslip_filename(data: dict[str, Any]) -> str:
    return f"payslip-{data['employee']['id']}-{data['period']['month']}.pdf"


def render_payslip_pdf(data: dict[str, Any]) -> bytes:
    """One-page A4 payslip; zero earnings and deductions are left out."""
    emp, period = data["employee"], data["period"]
    earnings, deductions, payment = data["earnings"], data["deductions"], data["payment"]

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    left, right = 20 * mm, width - 20 * mm

    pdf.setTitle(f"Payslip {period['month']}")
    pdf.setFillColor(_EMERALD)
    pdf.rect(0, height - 40 * mm, width, 40 * mm, stroke=0, fill=1)
    pdf.setFillColor(colors.white)
    pdf.setFont("Helvetica-Bold", 24)
    pdf.drawCentredString(width / 2, height - 20 * mm, "PAYSLIP")
    pdf.setFont("Helvetica", 12)
    pdf.drawCentredString(width / 2, height - 30 * mm, period["month"])

    pdf.setFillColor(colors.black)
    y = height - 55 * mm
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(left, y, "Employee Information")
    pdf.setFont("Helvetica", 10)
    y -= 10 * mm
    pdf.drawString(left, y, f"Employee ID: {emp['id']}")
    pdf.drawRightString(right, y, f"Generated: {data['generated_date'][:10]}")
    y -= 7 * mm
    pdf.drawString(left, y, f"Name: {emp['name']}")
    y -= 7 * mm
    pdf.drawString(left, y, f"Department: {emp['department'] or 'N/A'}")
    pdf.drawString(width / 2, y, f"Job Title: {emp['job_title'] or 'N/A'}")

    y -= 15 * mm
    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(left, y, "Attendance Summary")
    pdf.setFont("Helvetica", 10)
    y -= 7 * mm
    pdf.drawString(left, y, f"Working Days: {period['working_days']}")
    pdf.drawString(left + 50 * mm, y, f"Present: {period['present_days']}")
    pdf.drawString(left + 100 * mm, y, f"Absent: {period['absent_days']}")

    def section(title: str, rows, total_label: str, total: Any, rule) -> None:
        nonlocal y
        y -= 15 * mm
        pdf.setFont("Helvetica-Bold", 12)
        pdf.drawString(left, y, title)
        pdf.setFont("Helvetica", 10)
        y -= 8 * mm
        for label, amount in rows:
            if amount:
                pdf.drawString(left + 5 * mm, y, label)
                pdf.drawRightString(right - 5 * mm, y, _fmt(amount))
                y -= 6 * mm
        y -= 5 * mm
        pdf.setStrokeColor(rule)
        pdf.line(left, y + 4 * mm, right, y + 4 * mm)
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(left + 5 * mm, y, total_label)
        pdf.drawRightString(right - 5 * mm, y, _fmt(total))

    section(
        "EARNINGS",
        (
            ("Basic Salary", earnings["basic_salary"]),
            ("Housing Allowance", earnings["housing_allowance"]),
            ("Transport Allowance", earnings["transport_allowance"]),
            ("Other Allowances", earnings["other_fixed_allowances"]),
            ("Overtime Pay", earnings["overtime_pay"]),
            ("Bonus", earnings["bonus"]),
            ("Commission", earnings["commission"]),
        ),
        "GROSS SALARY",
        data["gross_salary"],
        _EMERALD,
    )
    section(
        "DEDUCTIONS",
        (
            ("GOSI (Employee)", deductions["gosi_employee"]),
            ("Loan Deduction", deductions["loan_deduction"]),
            ("Advance Deduction", deductions["advance_deduction"]),
            ("Absence Deduction", deductions["absence_deduction"]),
            ("Other Deductions", deductions["other_deductions"]),
        ),
        "TOTAL DEDUCTIONS",
        data["total_deductions"],
        _RED,
    )

    y -= 15 * mm
    pdf.setFillColor(_EMERALD)
    pdf.roundRect(left - 5 * mm, y - 6 * mm, right - left + 10 * mm, 18 * mm, 3 * mm, stroke=0, fill=1)
    pdf.setFillColor(colors.white)
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(left + 5 * mm, y, "NET SALARY")
    pdf.drawRightString(right - 5 * mm, y, _fmt(data["net_salary"]))

    pdf.setFillColor(colors.black)
    y -= 20 * mm
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(left, y, "Payment Details")
    pdf.setFont("Helvetica", 10)
    y -= 8 * mm
    pdf.drawString(left, y, f"Payment Method: {payment['method'] or 'N/A'}")
    if payment["date"]:
        y -= 6 * mm
        pdf.drawString(left, y, f"Payment Date: {payment['date']}")
    if emp["bank_account"]:
        y -= 6 * mm
        pdf.drawString(left, y, f"Bank Account: {emp['bank_account']}")

    y -= 15 * mm
    pdf.setFont("Helvetica", 8)
    pdf.setFillColor(colors.grey)
    pdf.drawCentredString(
        width / 2, y, "This is a computer-generated payslip and does not require a signature.",
    )

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
