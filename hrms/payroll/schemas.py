"""Payroll Pydantic schemas."""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class ProcessPayrollRequest(BaseModel):
    month: str
    employee_ids: Optional[list[uuid.UUID]] = None

    @field_validator("month")
    @classmethod
    def _check_month(cls, v: str) -> str:
        if not _MONTH_RE.match(v):
            raise ValueError("Month is required (format: YYYY-MM)")
        return v


class PayrollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    month: str
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    gross_salary: Decimal
    gosi_employee: Decimal
    gosi_employer: Decimal
    gosi_calculation_base: Decimal
    loan_deduction: Decimal
    absence_deduction: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    working_days: int
    present_days: int
    absent_days: int
    unpaid_leave_days: int
    status: str
    payment_method: str
    created_at: datetime


class ProcessPayrollResponse(BaseModel):
    success: bool = True
    message: str
    month: str
    processed_count: int
    error_count: int
    total_gross: Decimal
    total_net: Decimal
    total_gosi_employer: Decimal
    processed_payrolls: list[PayrollResponse]
    errors: list[dict[str, Any]] = Field(default_factory=list)


class PayslipRequest(BaseModel):
    payroll_id: uuid.UUID
    send_email: bool = False


class PayslipResponse(BaseModel):
    success: bool = True
    payslip: dict[str, Any]
    payslip_text: str
    email_sent: bool


class ApprovePayrollRequest(ProcessPayrollRequest):
    pass


class ApprovePayrollResponse(BaseModel):
    success: bool = True
    message: str
    month: str
    approved_count: int
    approved_payrolls: list[PayrollResponse]


class GosiReportRequest(BaseModel):
    month: str
    company_id: Optional[uuid.UUID] = None

    @field_validator("month")
    @classmethod
    def _check_month(cls, v: str) -> str:
        if not _MONTH_RE.match(v):
            raise ValueError("Month is required (format: YYYY-MM)")
        return v


class GosiReportRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    report_month: str
    company_id: Optional[uuid.UUID] = None
    report_type: str
    total_employees: int
    saudi_employees: int
    non_saudi_employees: int
    total_wages: Decimal
    total_employee_contribution: Decimal
    total_employer_contribution: Decimal
    total_contribution: Decimal
    occupational_hazards: Decimal
    saned_contribution: Decimal
    status: str
    payment_status: str
    due_date: date
    created_at: datetime


class GosiEmployeeLine(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_code: str
    employee_name: str
    national_id: Optional[str] = None
    nationality: Optional[str] = None
    is_saudi: bool
    wage_base: Decimal
    gosi_employee: Decimal
    gosi_employer: Decimal


class GosiReportResponse(BaseModel):
    success: bool = True
    message: str = "GOSI report generated successfully"
    report: GosiReportRecord
    report_text: str
    saudi: list[GosiEmployeeLine]
    non_saudi: list[GosiEmployeeLine]
