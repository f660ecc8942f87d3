"""Leave module tests — working-day calculator, two-stage approval,
balance bookkeeping, public holidays and monthly accrual.

Tests run against SQLite via the shared conftest.py fixtures.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.common.constants import (
    ApproverRole,
    DayType,
    LeaveAction,
    LeaveStatus,
)
from hrms.common.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from hrms.config import settings
from hrms.leave.accrual import decide_accrual, employment_months, parse_period
from hrms.leave.calendar import HolidayInfo, calculate_leave_days
from hrms.leave.holidays import saudi_holidays_for
from hrms.leave.models import LeaveAccrual, LeaveBalance, LeaveRequest, PublicHoliday
from hrms.leave.service import LeaveService
from tests.conftest import TestSessionFactory, _add_employee, _add_user


# ═════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════


async def _seed_holiday(
    db: AsyncSession,
    day: date,
    *,
    name: str = "Saudi Foundation Day",
    is_active: bool = True,
) -> PublicHoliday:
    holiday = PublicHoliday(
        id=uuid.uuid4(),
        name=name,
        date=day,
        year=day.year,
        holiday_type="national",
        is_recurring=True,
        is_active=is_active,
    )
    db.add(holiday)
    await db.flush()
    return holiday


async def _seed_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    *,
    leave_type: str = "annual",
    year: int = 2025,
    entitled: Decimal = Decimal("21"),
) -> LeaveBalance:
    balance = LeaveBalance(
        id=uuid.uuid4(),
        employee_id=employee_id,
        leave_type=leave_type,
        year=year,
        total_entitled=entitled,
        used=Decimal("0"),
        pending=Decimal("0"),
        remaining=entitled,
        carried_forward=Decimal("0"),
    )
    db.add(balance)
    await db.flush()
    return balance


async def _user(db: AsyncSession, data: dict) -> User:
    return await db.get(User, data["id"])


async def _file_request(db: AsyncSession, staff_user: dict) -> LeaveRequest:
    """A five-working-day request, Sun 2 Mar to Sat 8 Mar 2025."""
    return await LeaveService.create_request(
        db,
        await _user(db, staff_user),
        leave_type="annual",
        start_date=date(2025, 3, 2),
        end_date=date(2025, 3, 8),
        reason="Family visit",
    )


# ═════════════════════════════════════════════════════════════════════
# 1. Day calculator: pure logic
# ═════════════════════════════════════════════════════════════════════


class TestCalculateLeaveDays:

    def test_friday_and_saturday_are_weekend(self):
        # 2025-03-02 is a Sunday
        breakdown = calculate_leave_days(date(2025, 3, 2), date(2025, 3, 8))
        assert breakdown.total_days == 7
        assert breakdown.working_days == 5
        assert breakdown.weekend_days == 2
        assert breakdown.holiday_days == 0
        assert breakdown.leave_days_to_deduct == 5
        assert [d.day_of_week for d in breakdown.days if d.type is DayType.weekend] == [
            "Friday", "Saturday",
        ]

    def test_holiday_on_weekend_counts_as_holiday(self):
        # Foundation Day 2025 falls on a Saturday
        holiday = HolidayInfo(date=date(2025, 2, 22), name="Saudi Foundation Day")
        breakdown = calculate_leave_days(date(2025, 2, 20), date(2025, 2, 23), [holiday])
        assert breakdown.working_days == 2
        assert breakdown.weekend_days == 1
        assert breakdown.holiday_days == 1
        assert breakdown.days[2].holiday_name == "Saudi Foundation Day"

    def test_counts_partition_the_range(self):
        holidays = [
            HolidayInfo(date=date(2025, 3, 30), name="Eid Al-Fitr - Day 1"),
            HolidayInfo(date=date(2025, 3, 31), name="Eid Al-Fitr - Day 2"),
        ]
        breakdown = calculate_leave_days(date(2025, 3, 20), date(2025, 4, 10), holidays)
        assert (
            breakdown.working_days + breakdown.weekend_days + breakdown.holiday_days
            == breakdown.total_days
            == 22
        )
        assert [h.name for h in breakdown.overlapping_holidays] == [
            "Eid Al-Fitr - Day 1", "Eid Al-Fitr - Day 2",
        ]

    def test_single_day(self):
        breakdown = calculate_leave_days(date(2025, 3, 3), date(2025, 3, 3))
        assert breakdown.total_days == 1
        assert breakdown.working_days == 1

    def test_holidays_outside_range_are_ignored(self):
        holiday = HolidayInfo(date=date(2025, 9, 23), name="Saudi National Day")
        breakdown = calculate_leave_days(date(2025, 3, 2), date(2025, 3, 3), [holiday])
        assert breakdown.holiday_days == 0
        assert breakdown.overlapping_holidays == []

    def test_two_holidays_on_one_date_are_both_listed(self):
        holidays = [
            HolidayInfo(date=date(2025, 3, 4), name="Company Day"),
            HolidayInfo(date=date(2025, 3, 4), name="Regional Holiday"),
        ]
        breakdown = calculate_leave_days(date(2025, 3, 2), date(2025, 3, 6), holidays)
        assert breakdown.holiday_days == 1
        assert breakdown.working_days == 4
        assert [h.name for h in breakdown.overlapping_holidays] == [
            "Company Day", "Regional Holiday",
        ]

    def test_end_before_start_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            calculate_leave_days(date(2025, 3, 8), date(2025, 3, 2))
        assert "end_date" in exc_info.value.errors


class TestAccrualRules:

    def test_employment_months_uses_average_month(self):
        assert employment_months(date(2025, 1, 1), date(2025, 1, 30)) == 0
        assert employment_months(date(2025, 1, 1), date(2025, 2, 1)) == 1
        assert employment_months(date(2023, 1, 15), date(2025, 1, 15)) == 24

    def test_parse_period(self):
        assert parse_period("2025-03") == (2025, 3)
        for bad in ("2025-13", "2025/03", "25-03", "2025-3"):
            with pytest.raises(ValueError):
                parse_period(bad)

    def test_probation_skips_accrual(self):
        class Policy:
            probation_period_months = 3
            accrue_during_probation = False
            monthly_accrual_rate = Decimal("1.75")
            prorate_for_new_hires = True

        decision = decide_accrual(Policy, date(2025, 2, 1), date(2025, 3, 31))
        assert decision.skipped
        assert decision.days == Decimal("0")

    def test_new_hire_is_prorated(self):
        class Policy:
            probation_period_months = 0
            accrue_during_probation = True
            monthly_accrual_rate = Decimal("2.5")
            prorate_for_new_hires = True

        # Hired on the 16th of a 30-day month: 15/30 of the monthly rate.
        decision = decide_accrual(Policy, date(2025, 4, 16), date(2025, 4, 30))
        assert decision.is_prorated
        assert decision.days == Decimal("1.25")
        assert decision.proration_factor == Decimal("0.5000")


class TestHolidaySeed:

    def test_2025_has_national_and_islamic(self):
        rows = saudi_holidays_for(2025)
        assert len(rows) == 11
        assert rows == sorted(rows, key=lambda r: r["date"])
        assert {r["holiday_type"] for r in rows} == {"national", "islamic"}

    def test_unknown_year_has_only_national(self):
        rows = saudi_holidays_for(2031)
        assert [r["name"] for r in rows] == ["Saudi Foundation Day", "Saudi National Day"]


# ═════════════════════════════════════════════════════════════════════
# 2. Requests and two-stage approval: service
# ═════════════════════════════════════════════════════════════════════


class TestLeaveRequests:

    async def test_create_counts_only_working_days(self, db: AsyncSession, staff_user):
        request = await _file_request(db, staff_user)
        assert request.total_days == Decimal("5")
        assert request.status == LeaveStatus.pending.value
        assert request.current_approver_role == ApproverRole.manager.value

    async def test_create_excludes_holidays(self, db: AsyncSession, staff_user):
        await _seed_holiday(db, date(2025, 3, 4))
        await _seed_holiday(db, date(2025, 3, 5), name="Inactive", is_active=False)
        request = await _file_request(db, staff_user)
        assert request.total_days == Decimal("4")

    async def test_create_reserves_pending_balance(
        self, db: AsyncSession, staff_user, staff_employee,
    ):
        balance = await _seed_balance(db, staff_employee["id"])
        await _file_request(db, staff_user)
        assert balance.pending == Decimal("5")
        assert balance.remaining == Decimal("21")

    async def test_employee_without_manager_goes_to_hr(self, db: AsyncSession, company):
        emp = await _add_employee(db, first_name="Nora", company_id=company["id"])
        user = await _add_user(db, email=emp["email"], employee_id=emp["id"])
        request = await LeaveService.create_request(
            db, await _user(db, user),
            leave_type="annual", start_date=date(2025, 3, 3), end_date=date(2025, 3, 3),
        )
        assert request.current_approver_role == ApproverRole.hr.value
        assert request.manager_status == "approved"

    async def test_weekend_only_range_rejected(self, db: AsyncSession, staff_user):
        with pytest.raises(BadRequestException):
            await LeaveService.create_request(
                db, await _user(db, staff_user),
                leave_type="annual", start_date=date(2025, 3, 7), end_date=date(2025, 3, 8),
            )

    async def test_user_without_employee_record(self, db: AsyncSession, admin_user):
        with pytest.raises(NotFoundException):
            await LeaveService.create_request(
                db, await _user(db, admin_user),
                leave_type="annual", start_date=date(2025, 3, 3), end_date=date(2025, 3, 4),
            )


class TestApprovalWorkflow:

    async def test_manager_approval_forwards_to_hr(
        self, db: AsyncSession, mailer, staff_user, manager_user,
    ):
        request = await _file_request(db, staff_user)
        updated = await LeaveService.process_approval(
            db, mailer, await _user(db, manager_user),
            action=LeaveAction.manager_approve, leave_request_id=request.id, comments="OK",
        )
        assert updated.status == LeaveStatus.pending.value
        assert updated.manager_status == "approved"
        assert updated.manager_approved_by == manager_user["email"]
        assert updated.current_approver_role == ApproverRole.hr.value
        assert settings.HR_NOTIFICATION_EMAIL in mailer.recipients()
        assert "sara@optimind.sa" in mailer.recipients()

    async def test_only_direct_manager_may_act(
        self, db: AsyncSession, mailer, staff_user, admin_user,
    ):
        request = await _file_request(db, staff_user)
        with pytest.raises(ForbiddenException):
            await LeaveService.process_approval(
                db, mailer, await _user(db, admin_user),
                action=LeaveAction.manager_approve, leave_request_id=request.id,
            )

    async def test_hr_stage_requires_admin(
        self, db: AsyncSession, mailer, staff_user, manager_user,
    ):
        request = await _file_request(db, staff_user)
        with pytest.raises(ForbiddenException):
            await LeaveService.process_approval(
                db, mailer, await _user(db, manager_user),
                action=LeaveAction.hr_approve, leave_request_id=request.id,
            )

    async def test_hr_cannot_skip_manager_stage(
        self, db: AsyncSession, mailer, staff_user, admin_user,
    ):
        request = await _file_request(db, staff_user)
        with pytest.raises(BadRequestException):
            await LeaveService.process_approval(
                db, mailer, await _user(db, admin_user),
                action=LeaveAction.hr_approve, leave_request_id=request.id,
            )

    async def test_full_approval_consumes_balance(
        self, db: AsyncSession, mailer, staff_user, manager_user, admin_user, staff_employee,
    ):
        balance = await _seed_balance(db, staff_employee["id"])
        request = await _file_request(db, staff_user)
        await LeaveService.process_approval(
            db, mailer, await _user(db, manager_user),
            action=LeaveAction.manager_approve, leave_request_id=request.id,
        )
        updated = await LeaveService.process_approval(
            db, mailer, await _user(db, admin_user),
            action=LeaveAction.hr_approve, leave_request_id=request.id,
        )
        assert updated.status == LeaveStatus.approved.value
        assert updated.current_approver_role == ApproverRole.completed.value
        assert balance.used == Decimal("5")
        assert balance.pending == Decimal("0")
        assert balance.remaining == Decimal("16")

    async def test_manager_rejection_releases_pending(
        self, db: AsyncSession, mailer, staff_user, manager_user, staff_employee,
    ):
        balance = await _seed_balance(db, staff_employee["id"])
        request = await _file_request(db, staff_user)
        updated = await LeaveService.process_approval(
            db, mailer, await _user(db, manager_user),
            action=LeaveAction.manager_reject, leave_request_id=request.id,
            comments="Project deadline",
        )
        assert updated.status == LeaveStatus.rejected.value
        assert updated.rejection_reason == "Project deadline"
        assert balance.pending == Decimal("0")
        assert balance.used == Decimal("0")

    async def test_decided_request_cannot_be_reprocessed(
        self, db: AsyncSession, mailer, staff_user, manager_user,
    ):
        request = await _file_request(db, staff_user)
        manager = await _user(db, manager_user)
        await LeaveService.process_approval(
            db, mailer, manager, action=LeaveAction.manager_reject, leave_request_id=request.id,
        )
        with pytest.raises(BadRequestException):
            await LeaveService.process_approval(
                db, mailer, manager, action=LeaveAction.manager_approve, leave_request_id=request.id,
            )

    async def test_mail_failure_does_not_block_approval(
        self, db: AsyncSession, mailer, staff_user, manager_user,
    ):
        mailer.failing.add(settings.HR_NOTIFICATION_EMAIL)
        request = await _file_request(db, staff_user)
        updated = await LeaveService.process_approval(
            db, mailer, await _user(db, manager_user),
            action=LeaveAction.manager_approve, leave_request_id=request.id,
        )
        assert updated.current_approver_role == ApproverRole.hr.value
        assert mailer.recipients() == ["sara@optimind.sa"]

    async def test_unknown_request(self, db: AsyncSession, mailer, admin_user):
        with pytest.raises(NotFoundException):
            await LeaveService.process_approval(
                db, mailer, await _user(db, admin_user),
                action=LeaveAction.hr_approve, leave_request_id=uuid.uuid4(),
            )


# ═════════════════════════════════════════════════════════════════════
# 3. Holidays and accrual: service
# ═════════════════════════════════════════════════════════════════════


class TestHolidays:

    async def test_initialize_then_conflict(self, db: AsyncSession, admin_user):
        admin = await _user(db, admin_user)
        year, created, note = await LeaveService.initialize_holidays(db, admin, year=2025)
        assert year == 2025
        assert len(created) == 11
        assert "approximate" in note

        with pytest.raises(BadRequestException):
            await LeaveService.initialize_holidays(db, admin, year=2025)

    async def test_force_recreate_replaces(self, db: AsyncSession, admin_user):
        admin = await _user(db, admin_user)
        await LeaveService.initialize_holidays(db, admin, year=2030)
        _, created, note = await LeaveService.initialize_holidays(
            db, admin, year=2030, force_recreate=True,
        )
        assert len(created) == 2
        assert "manually" in note
        count = (
            await db.execute(select(func.count()).select_from(PublicHoliday).where(PublicHoliday.year == 2030))
        ).scalar_one()
        assert count == 2


class TestAccrual:

    async def test_requires_policies(self, db: AsyncSession, admin_user, staff_employee):
        with pytest.raises(BadRequestException):
            await LeaveService.process_monthly_accrual(
                db, await _user(db, admin_user), accrual_period="2025-03",
            )

    async def test_monthly_run_credits_balances(
        self, db: AsyncSession, admin_user, staff_employee, manager_employee,
    ):
        admin = await _user(db, admin_user)
        await LeaveService.initialize_policies(db, admin)
        period, results = await LeaveService.process_monthly_accrual(
            db, admin, accrual_period="2025-03", today=date(2025, 10, 1),
        )
        assert period == "2025-03"
        assert results.processed == 2
        assert results.errors == 0
        # full-time annual 1.75 + sick 2.5 per employee
        assert results.total_days_accrued == Decimal("8.50")

        balance = (
            await db.execute(
                select(LeaveBalance).where(
                    LeaveBalance.employee_id == staff_employee["id"],
                    LeaveBalance.leave_type == "annual",
                ),
            )
        ).scalars().one()
        assert balance.year == 2025
        assert balance.total_entitled == Decimal("1.75")

    async def test_duplicate_period_needs_force(
        self, db: AsyncSession, admin_user, staff_employee,
    ):
        admin = await _user(db, admin_user)
        await LeaveService.initialize_policies(db, admin)
        await LeaveService.process_monthly_accrual(db, admin, accrual_period="2025-03")
        with pytest.raises(BadRequestException):
            await LeaveService.process_monthly_accrual(db, admin, accrual_period="2025-03")

        _, results = await LeaveService.process_monthly_accrual(
            db, admin, accrual_period="2025-03", force_reprocess=True,
        )
        assert results.processed == 2
        rows = (
            await db.execute(select(func.count()).select_from(LeaveAccrual))
        ).scalar_one()
        assert rows == 8

    async def test_future_hire_is_an_error_not_a_failure(
        self, db: AsyncSession, admin_user, staff_employee, company,
    ):
        await _add_employee(
            db, first_name="Future", company_id=company["id"], hire_date=date(2025, 6, 1),
        )
        admin = await _user(db, admin_user)
        await LeaveService.initialize_policies(db, admin)
        _, results = await LeaveService.process_monthly_accrual(
            db, admin, accrual_period="2025-03", today=date(2025, 10, 1),
        )
        assert results.errors == 1
        assert results.processed == 2

    async def test_invalid_period(self, db: AsyncSession, admin_user, staff_employee):
        admin = await _user(db, admin_user)
        await LeaveService.initialize_policies(db, admin)
        with pytest.raises(BadRequestException):
            await LeaveService.process_monthly_accrual(db, admin, accrual_period="March")

    async def test_policies_initialize_once(self, db: AsyncSession, admin_user):
        admin = await _user(db, admin_user)
        policies = await LeaveService.initialize_policies(db, admin)
        assert len(policies) == 4
        with pytest.raises(BadRequestException):
            await LeaveService.initialize_policies(db, admin)


# ═════════════════════════════════════════════════════════════════════
# 4. API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestLeaveAPI:

    async def test_calculate_days(self, client: AsyncClient, db: AsyncSession, staff_headers):
        await _seed_holiday(db, date(2025, 2, 22))
        await db.commit()
        resp = await client.post(
            "/api/v1/leave/calculate-days",
            json={"start_date": "2025-02-20", "end_date": "2025-02-23"},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["working_days"] == 2
        assert body["holiday_days"] == 1
        assert body["overlapping_holidays"][0]["name"] == "Saudi Foundation Day"
        assert [d["type"] for d in body["detailed_breakdown"]] == [
            "working", "weekend", "holiday", "working",
        ]

    async def test_calculate_days_invalid_range(self, client: AsyncClient, staff_headers):
        resp = await client.post(
            "/api/v1/leave/calculate-days",
            json={"start_date": "2025-03-08", "end_date": "2025-03-02"},
            headers=staff_headers,
        )
        assert resp.status_code == 400
        assert "end_date" in resp.json()["errors"]

    async def test_calculate_days_requires_auth(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/leave/calculate-days",
            json={"start_date": "2025-03-02", "end_date": "2025-03-08"},
        )
        assert resp.status_code == 401

    async def test_request_and_approve_flow(
        self, client: AsyncClient, staff_headers, manager_headers, admin_headers, mailer,
    ):
        resp = await client.post(
            "/api/v1/leave/requests",
            json={"leave_type": "annual", "start_date": "2025-03-02", "end_date": "2025-03-08"},
            headers=staff_headers,
        )
        assert resp.status_code == 201
        request_id = resp.json()["id"]
        assert resp.json()["total_days"] in ("5.0", 5.0, "5")

        resp = await client.post(
            "/api/v1/leave/approval",
            json={"action": "hr_approve", "leave_request_id": request_id},
            headers=staff_headers,
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "Only HR can perform this action"

        resp = await client.post(
            "/api/v1/leave/approval",
            json={"action": "manager_approve", "leave_request_id": request_id},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["updated_request"]["current_approver_role"] == "hr"

        resp = await client.post(
            "/api/v1/leave/approval",
            json={"action": "hr_approve", "leave_request_id": request_id, "comments": "Enjoy"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["updated_request"]["status"] == "approved"
        assert body["updated_request"]["hr_comments"] == "Enjoy"

        async with TestSessionFactory() as session:
            stored = await session.get(LeaveRequest, uuid.UUID(request_id))
            assert stored.status == "approved"

    async def test_invalid_action(self, client: AsyncClient, staff_headers):
        resp = await client.post(
            "/api/v1/leave/approval",
            json={"action": "approve", "leave_request_id": str(uuid.uuid4())},
            headers=staff_headers,
        )
        assert resp.status_code == 400

    async def test_holidays_initialize_admin_only(self, client: AsyncClient, staff_headers):
        resp = await client.post(
            "/api/v1/leave/holidays/initialize", json={"year": 2025}, headers=staff_headers,
        )
        assert resp.status_code == 403

    async def test_holidays_initialize_and_list(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/v1/leave/holidays/initialize", json={"year": 2025}, headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["holidays_created"] == 11

        resp = await client.post(
            "/api/v1/leave/holidays/initialize", json={"year": 2025}, headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "already exist" in resp.json()["error"]

        resp = await client.get("/api/v1/leave/holidays?year=2025", headers=admin_headers)
        assert resp.status_code == 200
        names = [h["name"] for h in resp.json()]
        assert names[0] == "Saudi Foundation Day"
        assert len(names) == 11

    async def test_accrual_endpoints(self, client: AsyncClient, staff_employee, admin_headers):
        resp = await client.post("/api/v1/leave/accrual-policies/initialize", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["policies_created"] == 4

        resp = await client.post(
            "/api/v1/leave/accrual/process",
            json={"accrual_period": "2025-03"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["period"] == "2025-03"
        assert body["results"]["processed"] == 2
        assert body["results"]["errors"] == 0
