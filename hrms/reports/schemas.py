"""Report Pydantic schemas.

Request keys keep the camelCase names report clients already send
(``sortField``, ``sortDirection``, ``reportName``).
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    module: Optional[str] = None
    fields: list[str] = Field(default_factory=list)
    filters: dict[str, Any] = Field(default_factory=dict)
    sort_field: Optional[str] = Field(default=None, alias="sortField")
    sort_direction: Literal["asc", "desc"] = Field(default="asc", alias="sortDirection")


class GenerateReportRequest(ReportQuery):
    limit: int = Field(default=50, ge=1, le=1000)


class GenerateReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    records: list[dict[str, Any]]
    total_count: int = Field(alias="totalCount")
    module: str
    fields: list[str]


class ExportReportRequest(ReportQuery):
    format: Optional[str] = None
    report_name: str = Field(default="Report", alias="reportName")


class CsvExportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    filename: str
    record_count: int = Field(alias="recordCount")
