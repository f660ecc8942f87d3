"""Monthly GOSI contribution summary and its plain-text rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from hrms.common.constants import CURRENCY
from hrms.core_hr.models import Employee
from hrms.payroll.calculator import ZERO, is_saudi, money
from hrms.payroll.models import Payroll

GOSI_OCCUPATIONAL_HAZARDS = Decimal("0.02")
GOSI_SANED = Decimal("0.02")
GOSI_DUE_DAY = 10

_LINE = "─" * 80
_DOUBLE = "═" * 80


@dataclass(frozen=True)
class GosiLine:
    employee_id: str
    employee_code: str
    employee_name: str
    national_id: Optional[str]
    nationality: Optional[str]
    is_saudi: bool
    wage_base: Decimal
    gosi_employee: Decimal
    gosi_employer: Decimal


@dataclass
class GosiSummary:
    month: str
    due_date: date
    saudi: list[GosiLine] = field(default_factory=list)
    non_saudi: list[GosiLine] = field(default_factory=list)

    @property
    def lines(self) -> list[GosiLine]:
        return self.saudi + self.non_saudi

    @property
    def total_employees(self) -> int:
        return len(self.lines)

    @property
    def total_wages(self) -> Decimal:
        return money(sum((l.wage_base for l in self.lines), ZERO))

    @property
    def total_employee_contribution(self) -> Decimal:
        return money(sum((l.gosi_employee for l in self.lines), ZERO))

    @property
    def total_employer_contribution(self) -> Decimal:
        return money(sum((l.gosi_employer for l in self.lines), ZERO))

    @property
    def total_contribution(self) -> Decimal:
        return self.total_employee_contribution + self.total_employer_contribution

    @property
    def occupational_hazards(self) -> Decimal:
        return money(self.total_wages * GOSI_OCCUPATIONAL_HAZARDS)

    @property
    def saned_contribution(self) -> Decimal:
        """Unemployment insurance, Saudis only."""
        return money(sum((l.wage_base for l in self.saudi), ZERO) * GOSI_SANED)


def gosi_due_date(month: str) -> date:
    """Contributions for a month are due on the 10th of the next one."""
    year, mon = (int(part) for part in month.split("-"))
    if mon == 12:
        return date(year + 1, 1, GOSI_DUE_DAY)
    return date(year, mon + 1, GOSI_DUE_DAY)


def summarize_gosi(month: str, rows: Iterable[tuple[Payroll, Employee]]) -> GosiSummary:
    summary = GosiSummary(month=month, due_date=gosi_due_date(month))
    for payroll, employee in rows:
        saudi = is_saudi(employee.nationality)
        line = GosiLine(
            employee_id=str(employee.id),
            employee_code=employee.employee_code,
            employee_name=employee.full_name,
            national_id=employee.national_id if saudi else employee.iqama_number,
            nationality=employee.nationality,
            is_saudi=saudi,
            wage_base=money(payroll.gosi_calculation_base or payroll.basic_salary),
            gosi_employee=money(payroll.gosi_employee),
            gosi_employer=money(payroll.gosi_employer),
        )
        (summary.saudi if saudi else summary.non_saudi).append(line)
    summary.saudi.sort(key=lambda l: l.employee_code)
    summary.non_saudi.sort(key=lambda l: l.employee_code)
    return summary


def _fmt(amount: Decimal) -> str:
    return f"{amount:,.2f} {CURRENCY}"


def _row(label: str, value: str) -> str:
    return f"{label + ':':<30}{value}"


def render_gosi_text(summary: GosiSummary) -> str:
    lines = [
        _DOUBLE,
        f"{'GOSI MONTHLY CONTRIBUTION REPORT':^80}",
        f"{summary.month:^80}",
        _DOUBLE,
        "",
        "SUMMARY",
        _LINE,
        _row("Total Employees", str(summary.total_employees)),
        _row("Saudi Employees", str(len(summary.saudi))),
        _row("Non-Saudi Employees", str(len(summary.non_saudi))),
        "",
        _row("Total Wages", _fmt(summary.total_wages)),
        _row("Employee Contribution", _fmt(summary.total_employee_contribution)),
        _row("Employer Contribution", _fmt(summary.total_employer_contribution)),
        _row("Occupational Hazards (2%)", _fmt(summary.occupational_hazards)),
        _row("SANED Contribution (2%)", _fmt(summary.saned_contribution)),
        "",
        _DOUBLE,
        _row("TOTAL CONTRIBUTION", _fmt(summary.total_contribution)),
        _DOUBLE,
        "",
        f"Due Date: {summary.due_date.isoformat()}",
        "",
        f"SAUDI EMPLOYEES ({len(summary.saudi)})",
        _LINE,
    ]
    for i, line in enumerate(summary.saudi, start=1):
        lines += [
            f"{i}. {line.employee_name} ({line.employee_code})",
            f"   National ID: {line.national_id or 'N/A'}",
            f"   Wage Base:   {_fmt(line.wage_base)}",
            f"   Employee:    {_fmt(line.gosi_employee)}",
            f"   Employer:    {_fmt(line.gosi_employer)}",
            "",
        ]
    if summary.non_saudi:
        lines += [_LINE, f"NON-SAUDI EMPLOYEES ({len(summary.non_saudi)})", _LINE]
        for i, line in enumerate(summary.non_saudi, start=1):
            lines += [
                f"{i}. {line.employee_name} ({line.employee_code})",
                f"   Nationality: {line.nationality or 'N/A'}",
                f"   Wage Base:   {_fmt(line.wage_base)}",
                f"   Employer:    {_fmt(line.gosi_employer)} (Occupational Hazards only)",
                "",
            ]
    lines += [_DOUBLE, "End of Report", _DOUBLE]
    return "\n".join(lines)
