"""Report builder tests — filtering, sorting, projection, CSV/PDF export."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.exceptions import ValidationException
from hrms.core_hr.models import Employee
from hrms.reports.export import PDF_PAGESIZE, export_filename, format_value, render_csv, render_pdf
from hrms.reports.registry import MODULES, field_value, get_module
from hrms.reports.service import build_filters, coerce_filter_value
from tests.conftest import _add_employee


async def _seed_staff(db: AsyncSession, company) -> None:
    await _add_employee(
        db, first_name="Omar", department="Finance", company_id=company["id"],
        hire_date=date(2021, 5, 1), basic_salary=Decimal("15000"),
    )
    await _add_employee(
        db, first_name="Layla", department="Engineering", company_id=company["id"],
        hire_date=date(2024, 2, 11), basic_salary=Decimal("9000"),
    )
    await _add_employee(
        db, first_name="Fahad", department="Engineering", company_id=company["id"],
        hire_date=date(2024, 8, 3), status="inactive",
    )
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# 1. Filter construction and formatting: pure logic
# ═════════════════════════════════════════════════════════════════════


class TestBuildFilters:

    def test_date_range_targets_module_date_column(self):
        filters = build_filters(
            MODULES["employees"], {"date_from": "2024-01-01", "date_to": "2024-12-31"},
        )
        assert filters == {
            "hire_date__from": date(2024, 1, 1),
            "hire_date__to": date(2024, 12, 31),
        }

    def test_leave_module_uses_start_date(self):
        filters = build_filters(get_module("leave"), {"date_from": "2025-03-01"})
        assert list(filters) == ["start_date__from"]

    def test_empty_all_and_unknown_dropped(self):
        filters = build_filters(
            MODULES["employees"],
            {"status": "all", "department": "", "nonexistent": "x", "nationality": None},
        )
        assert filters == {}

    def test_values_coerced(self):
        company_id = uuid.uuid4()
        filters = build_filters(MODULES["employees"], {"company_id": str(company_id)})
        assert filters["company_id"] == company_id

    def test_bad_value_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            coerce_filter_value(Employee.hire_date, "yesterday")
        assert "hire_date" in exc_info.value.errors


class TestFormatting:

    def test_employee_reference_uses_name(self):
        emp_id = uuid.uuid4()
        assert format_value(emp_id, "employee_id", {emp_id: "Sara Alqahtani"}) == "Sara Alqahtani"
        other = uuid.uuid4()
        assert format_value(other, "manager_id", {}) == str(other)

    def test_scalar_formats(self):
        assert format_value(None, "department", {}) == ""
        assert format_value(True, "is_active", {}) == "Yes"
        assert format_value(False, "is_active", {}) == "No"
        assert format_value(Decimal("12500.5"), "net_salary", {}) == "SAR 12,500.50"
        assert format_value(date(2025, 3, 2), "hire_date", {}) == "2025-03-02"
        assert format_value(datetime(2025, 3, 2, 9, 30), "created_at", {}) == "2025-03-02 09:30"

    def test_export_filename(self):
        assert export_filename("Payroll  March", "csv", date(2025, 4, 1)) == "Payroll_March_2025-04-01.csv"
        assert export_filename("   ", "pdf", date(2025, 4, 1)) == "Report_2025-04-01.pdf"

    def test_render_csv_quotes_everything(self):
        rows = [Employee(first_name="Omar", basic_salary=Decimal("15000"))]
        content = render_csv(rows, ["first_name", "basic_salary"], {})
        assert content == '"First Name","Basic Salary"\n"Omar","SAR 15,000.00"\n'

    def test_render_pdf(self):
        fields = ["first_name", "last_name", "email", "department", "job_title", "status", "hire_date", "nationality", "phone"]
        rows = [
            Employee(**{f: f"value {i}" for f in fields})
            for i in range(60)
        ]
        pdf = render_pdf(rows, fields, {}, report_name="Headcount")
        assert pdf.startswith(b"%PDF")

    def test_pdf_is_landscape_for_few_columns(self):
        width, height = PDF_PAGESIZE
        assert width > height
        pdf = render_pdf([Employee(first_name="Omar")], ["first_name"], {}, report_name="Short")
        assert pdf.startswith(b"%PDF")

    def test_field_value_reads_only_columns(self):
        employee = Employee(first_name="Omar", department="Finance")
        assert field_value(employee, "first_name") == "Omar"
        assert field_value(employee, "metadata") is None
        assert field_value(employee, "full_name") is None
        assert field_value(employee, "_sa_instance_state") is None

    def test_csv_blank_for_non_column(self):
        rows = [Employee(first_name="Omar")]
        content = render_csv(rows, ["first_name", "metadata"], {})
        assert content.splitlines()[1] == '"Omar",""'


# ═════════════════════════════════════════════════════════════════════
# 2. API
# ═════════════════════════════════════════════════════════════════════


class TestGenerateReport:

    async def test_projection_sort_and_count(
        self, client: AsyncClient, db: AsyncSession, company, admin_headers,
    ):
        await _seed_staff(db, company)
        resp = await client.post(
            "/api/v1/reports/generate",
            json={
                "module": "employees",
                "fields": ["first_name", "department", "basic_salary"],
                "filters": {"status": "active"},
                "sortField": "first_name",
                "sortDirection": "asc",
                "limit": 1,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["totalCount"] == 2
        assert body["module"] == "employees"
        assert len(body["records"]) == 1
        record = body["records"][0]
        assert set(record) == {"id", "first_name", "department", "basic_salary"}
        assert record["first_name"] == "Layla"

    async def test_date_range_filter(
        self, client: AsyncClient, db: AsyncSession, company, admin_headers,
    ):
        await _seed_staff(db, company)
        resp = await client.post(
            "/api/v1/reports/generate",
            json={
                "module": "employees",
                "fields": ["first_name"],
                "filters": {"date_from": "2024-01-01", "date_to": "2024-06-30"},
            },
            headers=admin_headers,
        )
        body = resp.json()
        assert body["totalCount"] == 1
        assert body["records"][0]["first_name"] == "Layla"

    async def test_unknown_module(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/v1/reports/generate",
            json={"module": "attendance", "fields": ["date"]},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid module"

    async def test_fields_required(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/v1/reports/generate",
            json={"module": "employees", "fields": []},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Module and fields are required"

    async def test_bad_filter_value(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/v1/reports/generate",
            json={"module": "employees", "fields": ["first_name"], "filters": {"date_from": "soon"}},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "hire_date" in resp.json()["errors"]

    async def test_non_column_fields_are_null(
        self, client: AsyncClient, db: AsyncSession, company, admin_headers,
    ):
        await _seed_staff(db, company)
        resp = await client.post(
            "/api/v1/reports/generate",
            json={
                "module": "employees",
                "fields": ["first_name", "metadata", "registry", "nope"],
                "filters": {"first_name": "Omar"},
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        record = resp.json()["records"][0]
        assert record["first_name"] == "Omar"
        assert record["metadata"] is None
        assert record["registry"] is None
        assert record["nope"] is None


class TestExportReport:

    async def test_csv_export(
        self, client: AsyncClient, db: AsyncSession, company, staff_employee, admin_headers,
    ):
        resp = await client.post(
            "/api/v1/reports/export",
            json={
                "module": "employees",
                "fields": ["first_name", "manager_id"],
                "filters": {"first_name": "Sara"},
                "format": "csv",
                "reportName": "Team List",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["recordCount"] == 1
        assert body["filename"].startswith("Team_List_")
        assert body["filename"].endswith(".csv")
        assert body["content"].splitlines() == ['"First Name","Manager"', '"Sara","Khalid Alharbi"']

    async def test_pdf_export(
        self, client: AsyncClient, db: AsyncSession, company, admin_headers,
    ):
        await _seed_staff(db, company)
        resp = await client.post(
            "/api/v1/reports/export",
            json={"module": "employees", "fields": ["first_name", "hire_date"], "format": "pdf"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert "attachment; filename=\"Report_" in resp.headers["content-disposition"]
        assert resp.content.startswith(b"%PDF")

    async def test_invalid_format(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/v1/reports/export",
            json={"module": "employees", "fields": ["first_name"], "format": "xlsx"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid format"

    async def test_requires_auth(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/reports/export",
            json={"module": "employees", "fields": ["first_name"], "format": "csv"},
        )
        assert resp.status_code == 401
