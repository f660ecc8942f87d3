"""Report module registry: which model backs a module and how it is labelled."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from hrms.common.filters import get_column
from hrms.core_hr.models import Employee
from hrms.documents.models import Document
from hrms.leave.models import LeaveRequest, PublicHoliday
from hrms.loans.models import LoanRequest
from hrms.payroll.models import Payroll


@dataclass(frozen=True)
class ReportModule:
    name: str
    model: Any
    date_column: str


MODULES: dict[str, ReportModule] = {
    m.name: m
    for m in (
        ReportModule("employees", Employee, "hire_date"),
        ReportModule("payroll", Payroll, "created_at"),
        ReportModule("leave", LeaveRequest, "start_date"),
        ReportModule("loans", LoanRequest, "created_at"),
        ReportModule("documents", Document, "expiry_date"),
        ReportModule("holidays", PublicHoliday, "date"),
    )
}

DEFAULT_SORT = "-created_at"

# Fields holding an Employee id; exports show the employee's name instead.
EMPLOYEE_REF_FIELDS = frozenset({"employee_id", "manager_id"})

MONEY_FIELDS = frozenset({
    "basic_salary",
    "housing_allowance",
    "transport_allowance",
    "gross_salary",
    "net_salary",
    "total_deductions",
    "gosi_employee",
    "gosi_employer",
    "loan_deduction",
    "absence_deduction",
    "amount",
    "monthly_deduction",
    "remaining_balance",
})

FIELD_LABELS: dict[str, str] = {
    "employee_id": "Employee",
    "employee_code": "Employee ID",
    "first_name": "First Name",
    "last_name": "Last Name",
    "email": "Email",
    "phone": "Phone",
    "department": "Department",
    "job_title": "Job Title",
    "employment_type": "Employment Type",
    "hire_date": "Hire Date",
    "status": "Status",
    "nationality": "Nationality",
    "manager_id": "Manager",
    "month": "Month",
    "basic_salary": "Basic Salary",
    "housing_allowance": "Housing",
    "transport_allowance": "Transport",
    "gross_salary": "Gross Salary",
    "net_salary": "Net Salary",
    "total_deductions": "Deductions",
    "gosi_employee": "GOSI Employee",
    "gosi_employer": "GOSI Employer",
    "leave_type": "Leave Type",
    "start_date": "Start Date",
    "end_date": "End Date",
    "total_days": "Total Days",
    "reason": "Reason",
    "loan_type": "Loan Type",
    "amount": "Amount",
    "installments": "Installments",
    "monthly_deduction": "Monthly Deduction",
    "document_name": "Document",
    "document_type": "Document Type",
    "expiry_date": "Expiry Date",
    "name": "Name",
    "date": "Date",
    "holiday_type": "Holiday Type",
    "created_at": "Created Date",
}


def get_module(name: Optional[str]) -> Optional[ReportModule]:
    return MODULES.get(name or "")


def field_label(field: str) -> str:
    return FIELD_LABELS.get(field, field)


def field_value(record: Any, field: str) -> Any:
    """Value of the mapped column *field* on *record*; ``None`` for any other name."""
    if get_column(type(record), field) is None:
        return None
    return getattr(record, field)
