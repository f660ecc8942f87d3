"""CSV and PDF rendering of report exports."""

from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from hrms.common.constants import CURRENCY
from hrms.reports.registry import EMPLOYEE_REF_FIELDS, MONEY_FIELDS, field_label, field_value

PDF_MAX_COLUMNS = 8
PDF_LABEL_WIDTH = 12
PDF_PAGESIZE = landscape(A4)


def format_value(value: Any, field: str, employee_names: Mapping[Any, str]) -> str:
    if value is None:
        return ""
    if field in EMPLOYEE_REF_FIELDS:
        return employee_names.get(value, str(value))
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if field in MONEY_FIELDS and isinstance(value, (int, float, Decimal)):
        return f"{CURRENCY} {value:,.2f}"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def export_filename(report_name: str, extension: str, today: Optional[date] = None) -> str:
    stem = re.sub(r"\s+", "_", report_name.strip()) or "Report"
    return f"{stem}_{(today or date.today()).isoformat()}.{extension}"


def _table(records: Sequence[Any], fields: Sequence[str], names: Mapping[Any, str]) -> list[list[str]]:
    return [
        [format_value(field_value(record, field), field, names) for field in fields]
        for record in records
    ]


def render_csv(records: Sequence[Any], fields: Sequence[str], names: Mapping[Any, str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([field_label(f) for f in fields])
    writer.writerows(_table(records, fields, names))
    return buffer.getvalue()


def _draw_page_number(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    width, _ = doc.pagesize
    canvas.drawRightString(width - doc.rightMargin, 20, f"Page {canvas.getPageNumber()}")
    canvas.restoreState()


def render_pdf(
    records: Sequence[Any],
    fields: Sequence[str],
    names: Mapping[Any, str],
    *,
    report_name: str,
) -> bytes:
    """Landscape A4 table of the first eight columns."""
    columns = list(fields)[:PDF_MAX_COLUMNS]
    pagesize = PDF_PAGESIZE

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=40,
        rightMargin=40,
        topMargin=40,
        bottomMargin=40,
        title=report_name,
    )
    styles = getSampleStyleSheet()

    elements = [
        Paragraph(report_name or "Report", styles["Title"]),
        Paragraph(
            f"Generated on {date.today().isoformat()} | {len(records)} records",
            styles["Normal"],
        ),
        Spacer(1, 12),
    ]

    header = [field_label(f)[:PDF_LABEL_WIDTH] for f in columns]
    col_width = (pagesize[0] - doc.leftMargin - doc.rightMargin) / max(len(columns), 1)
    elements.append(
        Table(
            [header] + _table(records, columns, names),
            colWidths=[col_width] * len(columns),
            repeatRows=1,
            style=TableStyle([
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 7),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]),
        ),
    )

    doc.build(elements, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
    return buffer.getvalue()
