"""Compliance tests — SINAD wage files and QIWA registration / permit sync.

Government APIs are served by ``httpx.MockTransport`` handlers injected
through the client dependencies.
"""

from __future__ import annotations

import json
import uuid
from datetime import date, timedelta
from decimal import Decimal

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.common.exceptions import BadRequestException, ExternalServiceError, NotFoundException
from hrms.compliance.clients import QiwaClient, SinadClient, get_qiwa_client, get_sinad_client
from hrms.compliance.models import QIWARecord, SINADRecord
from hrms.compliance.schemas import QiwaRequest, SinadRequest
from hrms.compliance.service import QiwaService, SinadService, validate_wage_data
from hrms.core_hr.models import Employee
from hrms.payroll.models import Payroll
from tests.conftest import TestSessionFactory, _add_employee


def _sinad(handler) -> SinadClient:
    return SinadClient(
        "https://sinad.test/v1", "sinad-key", "EST-7001", transport=httpx.MockTransport(handler),
    )


def _qiwa(handler) -> QiwaClient:
    return QiwaClient("https://qiwa.test/v1", "qiwa-key", transport=httpx.MockTransport(handler))


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected call {request.method} {request.url}")


async def _seed_payroll(
    db: AsyncSession,
    employee_id: uuid.UUID,
    *,
    month: str = "2025-03",
    status: str = "approved",
    net: Decimal = Decimal("12500"),
) -> Payroll:
    payroll = Payroll(
        id=uuid.uuid4(),
        employee_id=employee_id,
        month=month,
        basic_salary=Decimal("10000"),
        housing_allowance=Decimal("2500"),
        transport_allowance=Decimal("1000"),
        gross_salary=Decimal("13500"),
        gosi_employee=Decimal("1000"),
        gosi_employer=Decimal("1200"),
        gosi_calculation_base=Decimal("10000"),
        total_deductions=Decimal("13500") - net,
        net_salary=net,
        status=status,
    )
    db.add(payroll)
    await db.flush()
    return payroll


async def _seed_qiwa(
    db: AsyncSession,
    employee_id: uuid.UUID,
    *,
    permit: str = "WP-1001",
    registration_status: str = "registered",
) -> QIWARecord:
    record = QIWARecord(
        id=uuid.uuid4(),
        employee_id=employee_id,
        iqama_number="2398765432",
        work_permit_number=permit,
        occupation_code="2512",
        contract_type="fixed",
        contract_start_date=date(2024, 1, 1),
        qiwa_id="Q-55",
        registration_status=registration_status,
    )
    db.add(record)
    await db.flush()
    return record


async def _admin(db: AsyncSession, admin_user: dict) -> User:
    return await db.get(User, admin_user["id"])


# ═════════════════════════════════════════════════════════════════════
# 1. Wage-data validation: pure logic
# ═════════════════════════════════════════════════════════════════════


class TestValidateWageData:

    def test_reports_every_problem(self):
        ok_id, bad_id, ghost_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        employees = {
            ok_id: Employee(id=ok_id, first_name="Ok", last_name="One", national_id="1", iban="SA1"),
            bad_id: Employee(id=bad_id, first_name="Bad", last_name="Two"),
        }
        payrolls = [
            Payroll(employee_id=ok_id, net_salary=Decimal("100")),
            Payroll(employee_id=bad_id, net_salary=Decimal("0")),
            Payroll(employee_id=ghost_id, net_salary=Decimal("100")),
        ]
        assert validate_wage_data(payrolls, employees) == [
            "Employee Bad Two: Missing national ID/Iqama",
            "Employee Bad Two: Missing IBAN",
            "Employee Bad Two: Invalid net salary",
            "Payroll #3: Employee not found",
        ]


# ═════════════════════════════════════════════════════════════════════
# 2. SINAD: service
# ═════════════════════════════════════════════════════════════════════


class TestSinad:

    async def test_generate_wage_file(self, db: AsyncSession, mailer, admin_user, staff_employee, company):
        await _seed_payroll(db, staff_employee["id"])
        await _seed_payroll(db, staff_employee["manager_id"], status="calculated")
        result = await SinadService.run(
            db, _sinad(_unreachable), mailer, await _admin(db, admin_user),
            SinadRequest(action="generate_wage_file", submission_month="2025-03", company_id=company["id"]),
        )
        assert result["success"] is True
        assert result["total_employees"] == 1
        data = result["wage_file_data"]
        assert data["establishment_id"] == "EST-7001"
        assert data["employees"][0]["iban"] == "SA0380000000608010167519"

        record = await db.get(SINADRecord, uuid.UUID(result["sinad_record_id"]))
        assert record.status == "generated"
        assert record.total_wages == Decimal("13500")

    async def test_generate_without_payrolls(self, db: AsyncSession, mailer, admin_user):
        with pytest.raises(NotFoundException) as exc_info:
            await SinadService.run(
                db, _sinad(_unreachable), mailer, await _admin(db, admin_user),
                SinadRequest(action="generate_wage_file", submission_month="2025-03"),
            )
        assert exc_info.value.detail == "No approved payrolls found for the specified month"

    async def test_unconfigured_client(self, db: AsyncSession, mailer, admin_user):
        client = SinadClient("https://sinad.test/v1", "", "")
        with pytest.raises(ExternalServiceError) as exc_info:
            await SinadService.run(
                db, client, mailer, await _admin(db, admin_user),
                SinadRequest(action="validate_before_submit", submission_month="2025-03"),
            )
        assert exc_info.value.detail == "SINAD API credentials not configured"

    async def test_invalid_action_checked_first(self, db: AsyncSession, mailer, admin_user):
        with pytest.raises(BadRequestException):
            await SinadService.run(
                db, SinadClient("https://sinad.test", "", ""), mailer, await _admin(db, admin_user),
                SinadRequest(action="delete_everything"),
            )

    async def test_submit_success(self, db: AsyncSession, mailer, admin_user, staff_employee):
        await _seed_payroll(db, staff_employee["id"])
        record = SINADRecord(id=uuid.uuid4(), submission_month="2025-03", status="generated")
        db.add(record)
        await db.flush()
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"reference_number": "SND-42", "compliance_score": 97})

        result = await SinadService.run(
            db, _sinad(handler), mailer, await _admin(db, admin_user),
            SinadRequest(action="submit_to_sinad", sinad_record_id=record.id),
        )
        assert result == {
            "success": True,
            "message": "Wage file submitted to SINAD successfully",
            "reference_number": "SND-42",
            "compliance_score": 97,
        }
        assert seen["path"] == "/v1/wage-files/submit"
        assert seen["headers"]["x-establishment-id"] == "EST-7001"
        assert seen["headers"]["authorization"] == "Bearer sinad-key"
        assert seen["body"]["employees"][0]["employee_name"] == "Sara Alqahtani"
        assert record.status == "submitted"
        assert record.file_reference == "SND-42"
        assert mailer.sent[0][1] == "SINAD Wage File Submitted Successfully"

    async def test_submit_rejected(self, db: AsyncSession, mailer, admin_user):
        record = SINADRecord(id=uuid.uuid4(), submission_month="2025-03", status="generated")
        db.add(record)
        await db.flush()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"error": "IBAN checksum mismatch"})

        result = await SinadService.run(
            db, _sinad(handler), mailer, await _admin(db, admin_user),
            SinadRequest(action="submit_to_sinad", sinad_record_id=record.id),
        )
        assert result == {"success": False, "error": "IBAN checksum mismatch"}
        assert record.status == "rejected"
        assert record.rejection_reason == "IBAN checksum mismatch"

    async def test_network_failure(self, db: AsyncSession, mailer, admin_user):
        record = SINADRecord(id=uuid.uuid4(), submission_month="2025-03")
        db.add(record)
        await db.flush()

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError) as exc_info:
            await SinadService.run(
                db, _sinad(handler), mailer, await _admin(db, admin_user),
                SinadRequest(action="submit_to_sinad", sinad_record_id=record.id),
            )
        assert "unreachable" in exc_info.value.detail

    async def test_check_status(self, db: AsyncSession, mailer, admin_user):
        record = SINADRecord(
            id=uuid.uuid4(), submission_month="2025-03", status="submitted", file_reference="SND-42",
        )
        db.add(record)
        await db.flush()

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/wage-files/SND-42/status"
            return httpx.Response(
                200, json={"status": "approved", "compliance_score": 99, "approval_date": "2025-04-03"},
            )

        result = await SinadService.run(
            db, _sinad(handler), mailer, await _admin(db, admin_user),
            SinadRequest(action="check_submission_status", sinad_record_id=record.id),
        )
        assert result["status"] == "approved"
        assert record.approval_date == date(2025, 4, 3)
        assert record.compliance_score == 99

    async def test_check_status_requires_submission(self, db: AsyncSession, mailer, admin_user):
        record = SINADRecord(id=uuid.uuid4(), submission_month="2025-03")
        db.add(record)
        await db.flush()
        with pytest.raises(NotFoundException):
            await SinadService.run(
                db, _sinad(_unreachable), mailer, await _admin(db, admin_user),
                SinadRequest(action="check_submission_status", sinad_record_id=record.id),
            )

    async def test_validate_before_submit(self, db: AsyncSession, mailer, admin_user, company):
        emp = await _add_employee(db, first_name="NoBank", company_id=company["id"], iban=None)
        await _seed_payroll(db, emp["id"])
        result = await SinadService.run(
            db, _sinad(_unreachable), mailer, await _admin(db, admin_user),
            SinadRequest(action="validate_before_submit", submission_month="2025-03"),
        )
        assert result["valid"] is False
        assert result["total_employees"] == 1
        assert result["errors"] == ["Employee NoBank User: Missing IBAN"]


# ═════════════════════════════════════════════════════════════════════
# 3. QIWA: service
# ═════════════════════════════════════════════════════════════════════


class TestQiwa:

    async def test_register_employee(self, db: AsyncSession, mailer, admin_user, staff_employee):
        record = await _seed_qiwa(db, staff_employee["id"], registration_status="pending")

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body["employee_name_en"] == "Sara Alqahtani"
            assert body["contract_start_date"] == "2024-01-01"
            return httpx.Response(201, json={"qiwa_employee_id": "Q-900"})

        result = await QiwaService.run(
            db, _qiwa(handler), mailer, await _admin(db, admin_user),
            QiwaRequest(action="register_employee", employee_id=staff_employee["id"], qiwa_record_id=record.id),
        )
        assert result["qiwa_id"] == "Q-900"
        assert record.registration_status == "registered"
        assert record.sync_status == "synced"

    async def test_register_missing_record(self, db: AsyncSession, mailer, admin_user, staff_employee):
        with pytest.raises(NotFoundException) as exc_info:
            await QiwaService.run(
                db, _qiwa(_unreachable), mailer, await _admin(db, admin_user),
                QiwaRequest(action="register_employee", employee_id=staff_employee["id"]),
            )
        assert exc_info.value.detail == "Employee or QIWA record not found"

    async def test_sync_permit_alerts_when_expiring(self, db: AsyncSession, mailer, admin_user, staff_employee):
        record = await _seed_qiwa(db, staff_employee["id"])
        today = date(2025, 3, 1)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"expiry_date": (today + timedelta(days=45)).isoformat()})

        result = await QiwaService.run(
            db, _qiwa(handler), mailer, await _admin(db, admin_user),
            QiwaRequest(action="sync_work_permit", qiwa_record_id=record.id),
            today=today,
        )
        assert result == {"success": True, "expiry_date": "2025-04-15", "days_until_expiry": 45}
        assert mailer.sent[0][1] == "Work Permit Expiring Soon"

    async def test_sync_permit_far_expiry_no_alert(self, db: AsyncSession, mailer, admin_user, staff_employee):
        record = await _seed_qiwa(db, staff_employee["id"])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"expiry_date": "2026-12-31"})

        result = await QiwaService.run(
            db, _qiwa(handler), mailer, await _admin(db, admin_user),
            QiwaRequest(action="sync_work_permit", qiwa_record_id=record.id),
            today=date(2025, 3, 1),
        )
        assert result["days_until_expiry"] > 90
        assert mailer.sent == []

    async def test_bulk_sync_isolates_failures(
        self, db: AsyncSession, mailer, admin_user, staff_employee, manager_employee,
    ):
        good = await _seed_qiwa(db, staff_employee["id"], permit="WP-OK")
        bad = await _seed_qiwa(db, manager_employee["id"], permit="WP-BAD")
        await _seed_qiwa(db, staff_employee["id"], permit="WP-PENDING", registration_status="pending")

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("WP-OK"):
                return httpx.Response(200, json={"expiry_date": "2026-01-31"})
            if request.url.path.endswith("WP-BAD"):
                return httpx.Response(404, json={"error": "Permit not found"})
            raise AssertionError("pending records are not synced")

        result = await QiwaService.run(
            db, _qiwa(handler), mailer, await _admin(db, admin_user), QiwaRequest(action="bulk_sync"),
        )
        assert result["success"] is True
        assert result["results"]["success"] == 1
        assert result["results"]["failed"] == 1
        assert result["results"]["errors"] == [{"record_id": str(bad.id), "error": "Permit not found"}]
        assert good.work_permit_expiry == date(2026, 1, 31)
        assert bad.sync_status == "failed"
        assert mailer.sent[0][1] == "QIWA Bulk Sync Completed"


# ═════════════════════════════════════════════════════════════════════
# 4. API
# ═════════════════════════════════════════════════════════════════════


class TestComplianceAPI:

    async def test_sinad_rejection_is_400_and_persisted(
        self, app, client: AsyncClient, db: AsyncSession, admin_headers,
    ):
        record = SINADRecord(id=uuid.uuid4(), submission_month="2025-03", status="generated")
        db.add(record)
        await db.commit()
        app.dependency_overrides[get_sinad_client] = lambda: _sinad(
            lambda request: httpx.Response(400, json={"error": "Duplicate submission"}),
        )

        resp = await client.post(
            "/api/v1/compliance/sinad",
            json={"action": "submit_to_sinad", "sinad_record_id": str(record.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Duplicate submission"}

        async with TestSessionFactory() as session:
            stored = await session.get(SINADRecord, record.id)
            assert stored.status == "rejected"

    async def test_sinad_invalid_action(self, app, client: AsyncClient, admin_headers):
        app.dependency_overrides[get_sinad_client] = lambda: _sinad(_unreachable)
        resp = await client.post(
            "/api/v1/compliance/sinad", json={"action": "nope"}, headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid action"}

    async def test_sinad_bad_month(self, app, client: AsyncClient, admin_headers):
        app.dependency_overrides[get_sinad_client] = lambda: _sinad(_unreachable)
        resp = await client.post(
            "/api/v1/compliance/sinad",
            json={"action": "generate_wage_file", "submission_month": "2025-3"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    async def test_sinad_unconfigured_is_500(self, app, client: AsyncClient, admin_headers):
        app.dependency_overrides[get_sinad_client] = lambda: SinadClient("https://sinad.test", "", "")
        resp = await client.post(
            "/api/v1/compliance/sinad",
            json={"action": "validate_before_submit", "submission_month": "2025-03"},
            headers=admin_headers,
        )
        assert resp.status_code == 500
        assert resp.json() == {"error": "SINAD API credentials not configured"}

    async def test_qiwa_requires_auth(self, client: AsyncClient):
        resp = await client.post("/api/v1/compliance/qiwa", json={"action": "bulk_sync"})
        assert resp.status_code == 401

    async def test_qiwa_bulk_sync(self, app, client: AsyncClient, admin_headers):
        app.dependency_overrides[get_qiwa_client] = lambda: _qiwa(_unreachable)
        resp = await client.post(
            "/api/v1/compliance/qiwa", json={"action": "bulk_sync"}, headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "results": {"success": 0, "failed": 0, "errors": []}}
