"""Compliance service — SINAD wage files and QIWA work-permit sync.

Actions return a JSON-ready dict. A rejection by the government API is
recorded on the record and reported with ``success: False`` rather than
raised, so the record update is still committed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.common.audit import utcnow
from hrms.common.constants import (
    WORK_PERMIT_ALERT_DAYS,
    PayrollStatus,
    QiwaRegistrationStatus,
    SinadStatus,
    SyncStatus,
)
from hrms.common.exceptions import (
    BadRequestException,
    ExternalServiceError,
    NotFoundException,
    ValidationException,
)
from hrms.compliance.clients import QiwaClient, SinadClient
from hrms.compliance.models import QIWARecord, SINADRecord
from hrms.compliance.schemas import QiwaRequest, SinadRequest
from hrms.core_hr.models import Employee
from hrms.notifications.mailer import Mailer, send_quietly
from hrms.payroll.models import Payroll

logger = logging.getLogger(__name__)


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def validate_wage_data(
    payrolls: Sequence[Payroll],
    employees: dict[uuid.UUID, Employee],
) -> list[str]:
    """Problems that would make SINAD reject the wage file."""
    errors: list[str] = []
    for index, payroll in enumerate(payrolls, start=1):
        employee = employees.get(payroll.employee_id)
        if employee is None:
            errors.append(f"Payroll #{index}: Employee not found")
            continue
        name = employee.full_name
        if not employee.national_id:
            errors.append(f"Employee {name}: Missing national ID/Iqama")
        if not employee.iban:
            errors.append(f"Employee {name}: Missing IBAN")
        if not payroll.net_salary or payroll.net_salary <= 0:
            errors.append(f"Employee {name}: Invalid net salary")
    return errors


def wage_file_entry(payroll: Payroll, employee: Optional[Employee]) -> dict[str, Any]:
    return {
        "iqama_number": (employee.national_id or employee.iqama_number or "") if employee else "",
        "employee_name": employee.full_name if employee else "",
        "basic_salary": payroll.basic_salary,
        "housing_allowance": payroll.housing_allowance,
        "transport_allowance": payroll.transport_allowance,
        "other_allowances": payroll.other_fixed_allowances,
        "gross_salary": payroll.gross_salary,
        "total_deductions": payroll.total_deductions,
        "net_salary": payroll.net_salary,
        "payment_date": payroll.payment_date,
        "bank_name": (employee.bank_name or "") if employee else "",
        "iban": (employee.iban or "") if employee else "",
    }


class SinadService:

    @staticmethod
    async def _approved_payrolls(
        db: AsyncSession, month: str,
    ) -> tuple[Sequence[Payroll], dict[uuid.UUID, Employee]]:
        payrolls = (
            await db.execute(
                select(Payroll).where(
                    Payroll.month == month,
                    Payroll.status == PayrollStatus.approved.value,
                ),
            )
        ).scalars().all()
        ids = {p.employee_id for p in payrolls}
        employees = (
            (await db.execute(select(Employee).where(Employee.id.in_(list(ids))))).scalars().all()
            if ids else []
        )
        return payrolls, {e.id: e for e in employees}

    @staticmethod
    async def _get_record(db: AsyncSession, record_id: Optional[uuid.UUID]) -> SINADRecord:
        record = await db.get(SINADRecord, record_id) if record_id else None
        if record is None:
            raise NotFoundException("SINADRecord", detail="SINAD record not found")
        return record

    @staticmethod
    async def run(
        db: AsyncSession,
        client: SinadClient,
        mailer: Mailer,
        user: User,
        body: SinadRequest,
    ) -> dict[str, Any]:
        handlers = {
            "generate_wage_file": SinadService.generate_wage_file,
            "submit_to_sinad": SinadService.submit_to_sinad,
            "check_submission_status": SinadService.check_submission_status,
            "validate_before_submit": SinadService.validate_before_submit,
        }
        handler = handlers.get(body.action)
        if handler is None:
            raise BadRequestException("Invalid action")
        client.ensure_configured()
        return await handler(db, client, mailer, user, body)

    @staticmethod
    def _require_month(body: SinadRequest) -> str:
        if not body.submission_month:
            raise ValidationException({"submission_month": ["submission_month is required"]})
        return body.submission_month

    @staticmethod
    async def generate_wage_file(db, client, mailer, user, body: SinadRequest) -> dict[str, Any]:
        month = SinadService._require_month(body)
        payrolls, employees = await SinadService._approved_payrolls(db, month)
        if not payrolls:
            raise NotFoundException(
                "Payroll", detail="No approved payrolls found for the specified month",
            )

        today = date.today()
        entries = [wage_file_entry(p, employees.get(p.employee_id)) for p in payrolls]
        total_wages = sum((p.gross_salary for p in payrolls), Decimal("0"))

        if body.sinad_record_id:
            record = await SinadService._get_record(db, body.sinad_record_id)
        else:
            record = SINADRecord(company_id=body.company_id, submission_month=month)
            db.add(record)
        record.total_employees = len(entries)
        record.total_wages = total_wages
        record.status = SinadStatus.generated.value
        record.submission_date = today
        await db.flush()

        logger.info("SINAD wage file %s generated: %d employees", month, len(entries))
        return jsonable_encoder({
            "success": True,
            "message": "Wage file generated successfully",
            "sinad_record_id": record.id,
            "total_employees": len(entries),
            "total_wages": total_wages,
            "wage_file_data": {
                "establishment_id": client.establishment_id,
                "submission_month": month,
                "submission_date": today,
                "employees": entries,
            },
        })

    @staticmethod
    async def submit_to_sinad(db, client, mailer, user, body: SinadRequest) -> dict[str, Any]:
        record = await SinadService._get_record(db, body.sinad_record_id)
        payrolls, employees = await SinadService._approved_payrolls(db, record.submission_month)

        payload = jsonable_encoder({
            "establishment_id": client.establishment_id,
            "submission_month": record.submission_month,
            "submission_type": record.submission_type,
            "payment_date": record.payment_date,
            "bank_name": record.bank_name,
            "employees": [
                {
                    "iqama_number": entry["iqama_number"],
                    "employee_name": entry["employee_name"],
                    "gross_salary": entry["gross_salary"],
                    "net_salary": entry["net_salary"],
                    "iban": entry["iban"],
                }
                for entry in (wage_file_entry(p, employees.get(p.employee_id)) for p in payrolls)
            ],
        })
        result = await client.submit_wage_file(payload)

        if result.ok:
            record.status = SinadStatus.submitted.value
            record.file_reference = result.data.get("reference_number")
            record.submission_date = date.today()
            record.compliance_score = result.data.get("compliance_score") or 0
            await db.flush()
            await send_quietly(
                mailer,
                user.email,
                "SINAD Wage File Submitted Successfully",
                f"Wage file for {record.submission_month} has been submitted to SINAD. "
                f"Reference: {record.file_reference}",
            )
            return {
                "success": True,
                "message": "Wage file submitted to SINAD successfully",
                "reference_number": record.file_reference,
                "compliance_score": result.data.get("compliance_score"),
            }

        error = result.error("Submission failed")
        record.status = SinadStatus.rejected.value
        record.rejection_reason = error
        await db.flush()
        await send_quietly(
            mailer,
            user.email,
            "SINAD Wage File Submission Failed",
            f"Failed to submit wage file for {record.submission_month}. Error: {error}",
        )
        return {"success": False, "error": error}

    @staticmethod
    async def check_submission_status(db, client, mailer, user, body: SinadRequest) -> dict[str, Any]:
        record = await db.get(SINADRecord, body.sinad_record_id) if body.sinad_record_id else None
        if record is None or not record.file_reference:
            raise NotFoundException(
                "SINADRecord", detail="SINAD record not found or not submitted",
            )

        result = await client.submission_status(record.file_reference)
        if not result.ok:
            return {"success": False, "error": result.error("Failed to check status")}

        data = result.data
        if data.get("status"):
            record.status = data["status"]
        record.compliance_score = data.get("compliance_score") or record.compliance_score
        record.approval_date = _parse_date(data.get("approval_date")) or record.approval_date
        await db.flush()
        return {
            "success": True,
            "status": record.status,
            "compliance_score": data.get("compliance_score"),
            "approval_date": data.get("approval_date"),
        }

    @staticmethod
    async def validate_before_submit(db, client, mailer, user, body: SinadRequest) -> dict[str, Any]:
        month = SinadService._require_month(body)
        payrolls, employees = await SinadService._approved_payrolls(db, month)
        errors = validate_wage_data(payrolls, employees)
        return {
            "success": not errors,
            "valid": not errors,
            "errors": errors,
            "total_employees": len(payrolls),
        }


class QiwaService:

    @staticmethod
    async def run(
        db: AsyncSession,
        client: QiwaClient,
        mailer: Mailer,
        user: User,
        body: QiwaRequest,
        *,
        today: Optional[date] = None,
    ) -> dict[str, Any]:
        today = today or date.today()
        if body.action == "register_employee":
            result = await QiwaService.register_employee(db, client, mailer, user, body)
        elif body.action == "sync_work_permit":
            result = await QiwaService.sync_work_permit(db, client, mailer, user, body, today)
        elif body.action == "bulk_sync":
            result = await QiwaService.bulk_sync(db, client, mailer, user)
        else:
            raise BadRequestException("Invalid action")
        return jsonable_encoder(result)

    @staticmethod
    async def register_employee(db, client, mailer, user, body: QiwaRequest) -> dict[str, Any]:
        client.ensure_configured()
        employee = await db.get(Employee, body.employee_id) if body.employee_id else None
        record = await db.get(QIWARecord, body.qiwa_record_id) if body.qiwa_record_id else None
        if employee is None or record is None:
            raise NotFoundException("QIWARecord", detail="Employee or QIWA record not found")

        result = await client.register_employee(jsonable_encoder({
            "iqama_number": record.iqama_number,
            "border_number": record.border_number,
            "work_permit_number": record.work_permit_number,
            "employee_name_en": employee.full_name,
            "employee_name_ar": employee.full_name_ar or "",
            "job_title_ar": record.job_title_ar,
            "occupation_code": record.occupation_code,
            "contract_type": record.contract_type,
            "contract_start_date": record.contract_start_date,
            "contract_end_date": record.contract_end_date,
            "nationality": employee.nationality,
        }))
        record.last_sync_date = utcnow()

        if result.ok:
            record.registration_status = QiwaRegistrationStatus.registered.value
            record.registration_date = date.today()
            record.qiwa_id = result.data.get("qiwa_employee_id") or record.qiwa_id
            record.sync_status = SyncStatus.synced.value
            record.sync_error = None
            await db.flush()
            await send_quietly(
                mailer,
                user.email,
                "QIWA Registration Successful",
                f"Employee {employee.full_name} has been successfully registered in QIWA.",
            )
            return {
                "success": True,
                "message": "Employee registered in QIWA successfully",
                "qiwa_id": record.qiwa_id,
            }

        error = result.error("Registration failed")
        record.registration_status = QiwaRegistrationStatus.pending.value
        record.sync_status = SyncStatus.failed.value
        record.sync_error = error
        await db.flush()
        await send_quietly(
            mailer,
            user.email,
            "QIWA Registration Failed",
            f"Failed to register employee {employee.full_name} in QIWA. Error: {error}",
        )
        return {"success": False, "error": error}

    @staticmethod
    async def _refresh_permit(client: QiwaClient, record: QIWARecord) -> Optional[str]:
        """Pull the permit expiry into *record*; return an error message or ``None``."""
        result = await client.work_permit(record.work_permit_number or "")
        record.last_sync_date = utcnow()
        if not result.ok:
            record.sync_status = SyncStatus.failed.value
            record.sync_error = result.error("Failed to sync work permit")
            return record.sync_error
        record.work_permit_expiry = _parse_date(result.data.get("expiry_date"))
        record.sync_status = SyncStatus.synced.value
        record.sync_error = None
        return None

    @staticmethod
    async def sync_work_permit(db, client, mailer, user, body: QiwaRequest, today: date) -> dict[str, Any]:
        client.ensure_configured()
        record = await db.get(QIWARecord, body.qiwa_record_id) if body.qiwa_record_id else None
        if record is None:
            raise NotFoundException("QIWARecord", detail="QIWA record not found")

        error = await QiwaService._refresh_permit(client, record)
        await db.flush()
        if error:
            return {"success": False, "error": error}

        days_left = (record.work_permit_expiry - today).days if record.work_permit_expiry else None
        if days_left is not None and 0 < days_left <= WORK_PERMIT_ALERT_DAYS:
            await send_quietly(
                mailer,
                user.email,
                "Work Permit Expiring Soon",
                f"Work permit for employee (QIWA ID: {record.qiwa_id}) will expire in "
                f"{days_left} days. Please renew.",
            )
        return {
            "success": True,
            "expiry_date": record.work_permit_expiry,
            "days_until_expiry": days_left,
        }

    @staticmethod
    async def bulk_sync(db, client, mailer, user) -> dict[str, Any]:
        client.ensure_configured()
        records = (
            await db.execute(
                select(QIWARecord).where(
                    QIWARecord.registration_status == QiwaRegistrationStatus.registered.value,
                ),
            )
        ).scalars().all()

        summary: dict[str, Any] = {"success": 0, "failed": 0, "errors": []}
        for record in records:
            try:
                error = await QiwaService._refresh_permit(client, record)
            except (ExternalServiceError, ValueError) as exc:
                error = str(exc.detail if isinstance(exc, ExternalServiceError) else exc)
                record.sync_status = SyncStatus.failed.value
                record.sync_error = error
            if error:
                summary["failed"] += 1
                summary["errors"].append({"record_id": str(record.id), "error": error})
            else:
                summary["success"] += 1
        await db.flush()

        await send_quietly(
            mailer,
            user.email,
            "QIWA Bulk Sync Completed",
            f"Bulk sync completed. Success: {summary['success']}, Failed: {summary['failed']}",
        )
        logger.info("QIWA bulk sync: %d ok, %d failed", summary["success"], summary["failed"])
        return {"success": True, "results": summary}
