"""Report routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.common.exceptions import BadRequestException
from hrms.database import get_db
from hrms.reports.export import export_filename, render_csv, render_pdf
from hrms.reports.schemas import (
    CsvExportResponse,
    ExportReportRequest,
    GenerateReportRequest,
    GenerateReportResponse,
)
from hrms.reports.service import ReportService

router = APIRouter(prefix="", tags=["reports"])


@router.post("/generate", response_model=GenerateReportResponse)
async def generate_report(
    body: GenerateReportRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    records, total = await ReportService.generate(db, body, limit=body.limit)
    return GenerateReportResponse(
        records=records,
        total_count=total,
        module=body.module,
        fields=body.fields,
    )


@router.post("/export", response_model=None)
async def export_report(
    body: ExportReportRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ReportService.resolve_module(body)
    if body.format not in ("csv", "pdf"):
        raise BadRequestException("Invalid format")

    records = await ReportService.fetch_all(db, body)
    names = await ReportService.employee_names(db, body.fields)

    if body.format == "csv":
        return CsvExportResponse(
            content=render_csv(records, body.fields, names),
            filename=export_filename(body.report_name, "csv"),
            record_count=len(records),
        ).model_dump(by_alias=True)

    filename = export_filename(body.report_name, "pdf")
    return Response(
        content=render_pdf(records, body.fields, names, report_name=body.report_name),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
