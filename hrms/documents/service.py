"""Document service — expiry alerts and LLM-assisted search and analysis."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import date
from typing import Any, Optional, Sequence

from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.common.constants import DocumentStatus, UserRole
from hrms.common.exceptions import ExternalServiceError
from hrms.core_hr.models import Company, Employee
from hrms.documents.alerts import alert_body, alert_subject, due_alert
from hrms.documents.llm import LLMClient
from hrms.documents.models import Document
from hrms.documents.schemas import AlertSent, DocumentAnalysis
from hrms.notifications.mailer import Mailer, send_quietly

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = (
    "contract", "id_copy", "passport", "certificate", "visa", "insurance",
    "policy", "license", "cr_certificate", "tax_certificate",
    "gosi_certificate", "chamber_certificate", "trade_license", "other",
)

SEARCH_SCHEMA = {
    "type": "object",
    "properties": {
        "matched_document_ids": {"type": "array", "items": {"type": "string"}},
        "search_explanation": {"type": "string"},
    },
    "required": ["matched_document_ids", "search_explanation"],
}

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "suggested_type": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "description": {"type": "string"},
        "has_expiry": {"type": "boolean"},
        "typical_validity_months": {"type": ["number", "null"]},
        "priority": {"type": "string"},
        "compliance_category": {"type": "string"},
    },
}


def search_prompt(query: str, context: list[dict[str, Any]]) -> str:
    return (
        "You are a document search assistant. The user is searching for documents "
        f'with this query: "{query}"\n\n'
        f"Available documents:\n{json.dumps(context, indent=2, default=str)}\n\n"
        "Return the IDs of documents that match, ranked by relevance. Consider names, "
        "types, employee and company names, tags, descriptions, dates and status, "
        'and natural language such as "expiring soon" or "employee contracts".'
    )


def analysis_prompt(document_name: str, file_url: Optional[str]) -> str:
    return (
        "Analyze this document and provide structured information.\n\n"
        f"Document Name: {document_name}\nFile URL: {file_url or 'n/a'}\n\n"
        f"Suggest the document_type (one of: {', '.join(DOCUMENT_TYPES)}), 3-5 tags, "
        "a brief description, whether it usually expires and the typical validity in "
        "months, a priority (low, medium, high) and a compliance category "
        "(legal, hr, finance, operational)."
    )


class DocumentService:

    @staticmethod
    async def send_expiry_alerts(
        db: AsyncSession,
        mailer: Mailer,
        *,
        today: Optional[date] = None,
    ) -> tuple[list[AlertSent], int]:
        """E-mail owners of active documents reaching an alert threshold.

        Company documents go to admins; employee documents go to the
        employee and admins. Documents expiring today are marked expired.
        Returns ``(alerts, expired_count)``.
        """
        today = today or date.today()
        documents = (
            await db.execute(
                select(Document).where(
                    Document.status == DocumentStatus.active.value,
                    Document.expiry_date.is_not(None),
                ),
            )
        ).scalars().all()

        admin_emails = list(
            (
                await db.execute(
                    select(User.email).where(
                        User.role == UserRole.admin.value, User.is_active.is_(True),
                    ),
                )
            ).scalars().all()
        )

        sent: list[AlertSent] = []
        expired = 0
        for doc in documents:
            days = due_alert(doc.expiry_date, doc.alert_days, today)
            if days is None:
                continue

            if doc.company_id:
                company = await db.get(Company, doc.company_id)
                owner_label, owner = "Company", company.name_en if company else "Unknown"
                recipients = list(admin_emails)
            elif doc.employee_id:
                employee = await db.get(Employee, doc.employee_id)
                owner_label = "Employee"
                owner = f"{employee.full_name} ({employee.employee_code})" if employee else "Unknown"
                recipients = ([employee.email] if employee else []) + admin_emails
            else:
                owner_label, owner = "Owner", "Unassigned"
                recipients = list(admin_emails)

            subject = alert_subject(doc.document_name, company=bool(doc.company_id))
            body = alert_body(
                document_name=doc.document_name,
                document_type=doc.document_type,
                expiry=doc.expiry_date,
                days=days,
                owner_label=owner_label,
                owner=owner,
                notes=doc.notes,
            )
            for email in dict.fromkeys(r for r in recipients if r):
                if await send_quietly(mailer, email, subject, body):
                    sent.append(AlertSent(
                        document=doc.document_name, recipient=email, days_until_expiry=days,
                    ))

            if days == 0:
                doc.status = DocumentStatus.expired.value
                expired += 1

        await db.flush()
        logger.info("Document expiry alerts: %d sent, %d expired", len(sent), expired)
        return sent, expired

    @staticmethod
    async def search(
        db: AsyncSession,
        llm: LLMClient,
        query: str,
    ) -> tuple[Sequence[Document], str]:
        documents = (await db.execute(select(Document))).scalars().all()
        employees = {e.id: e for e in (await db.execute(select(Employee))).scalars().all()}
        companies = {c.id: c for c in (await db.execute(select(Company))).scalars().all()}

        context = []
        for doc in documents:
            employee = employees.get(doc.employee_id)
            company = companies.get(doc.company_id)
            context.append({
                "id": str(doc.id),
                "name": doc.document_name,
                "type": doc.document_type,
                "employee_name": employee.full_name if employee else None,
                "company_name": company.name_en if company else None,
                "issue_date": doc.issue_date,
                "expiry_date": doc.expiry_date,
                "status": doc.status,
                "tags": doc.ai_tags or "",
                "description": doc.ai_description or "",
                "notes": doc.notes or "",
            })

        answer = await llm.invoke(
            search_prompt(query, jsonable_encoder(context)), SEARCH_SCHEMA, name="document_search",
        )
        ranked = [str(i) for i in answer.get("matched_document_ids") or []]
        by_id = {str(d.id): d for d in documents}
        matched = [by_id[i] for i in dict.fromkeys(ranked) if i in by_id]
        return matched, answer.get("search_explanation") or ""

    @staticmethod
    async def analyze(
        db: AsyncSession,
        llm: LLMClient,
        *,
        document_name: str,
        file_url: Optional[str] = None,
        document_id: Optional[uuid.UUID] = None,
    ) -> tuple[DocumentAnalysis, bool]:
        """Suggested metadata; stored on the document when *document_id* exists."""
        raw = await llm.invoke(
            analysis_prompt(document_name, file_url), ANALYSIS_SCHEMA, name="document_analysis",
        )
        try:
            analysis = DocumentAnalysis.model_validate(
                {k: v for k, v in raw.items() if v is not None},
            )
        except ValidationError:
            raise ExternalServiceError("llm", "LLM returned an unexpected analysis")

        updated = False
        if document_id:
            doc = await db.get(Document, document_id)
            if doc is not None:
                doc.ai_tags = ", ".join(analysis.tags)
                doc.ai_description = analysis.description
                doc.ai_priority = analysis.priority
                doc.ai_compliance_category = analysis.compliance_category
                await db.flush()
                updated = True
        return analysis, updated
