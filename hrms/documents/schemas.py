"""Document Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    document_name: str
    document_type: str
    company_id: Optional[uuid.UUID] = None
    employee_id: Optional[uuid.UUID] = None
    file_url: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    alert_days: int
    status: str
    notes: Optional[str] = None
    ai_tags: Optional[str] = None
    ai_description: Optional[str] = None
    ai_priority: Optional[str] = None
    ai_compliance_category: Optional[str] = None
    created_at: datetime


class AlertSent(BaseModel):
    document: str
    recipient: str
    days_until_expiry: int


class ExpiryAlertsResponse(BaseModel):
    success: bool = True
    alerts_sent: int
    expired: int
    details: list[AlertSent]


class DocumentSearchRequest(BaseModel):
    query: str = Field(min_length=1)


class DocumentSearchResponse(BaseModel):
    success: bool = True
    documents: list[DocumentResponse]
    explanation: str
    total_matches: int


class DocumentAnalyzeRequest(BaseModel):
    document_id: Optional[uuid.UUID] = None
    file_url: Optional[str] = None
    document_name: str = Field(min_length=1)


class DocumentAnalysis(BaseModel):
    suggested_type: str = "other"
    tags: list[str] = Field(default_factory=list)
    description: str = ""
    has_expiry: bool = False
    typical_validity_months: Optional[float] = None
    priority: str = "medium"
    compliance_category: str = "hr"


class DocumentAnalyzeResponse(BaseModel):
    success: bool = True
    analysis: DocumentAnalysis
    document_updated: bool = False


class DriveListRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    folder_name: Optional[str] = Field(default=None, alias="folderName")
    search_query: Optional[str] = Field(default=None, alias="searchQuery")


class DriveDeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_id: Optional[str] = Field(default=None, alias="fileId")


class DriveUploadResponse(BaseModel):
    success: bool = True
    file: dict[str, Any]
