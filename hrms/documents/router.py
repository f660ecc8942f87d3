"""Document routes: expiry alerts, AI search/analysis, Google Drive."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_admin
from hrms.auth.models import User
from hrms.common.exceptions import BadRequestException
from hrms.config import settings
from hrms.database import get_db
from hrms.documents.drive import GoogleDriveClient, get_drive_client
from hrms.documents.llm import LLMClient, get_llm_client
from hrms.documents.schemas import (
    DocumentAnalyzeRequest,
    DocumentAnalyzeResponse,
    DocumentResponse,
    DocumentSearchRequest,
    DocumentSearchResponse,
    DriveDeleteRequest,
    DriveListRequest,
    DriveUploadResponse,
    ExpiryAlertsResponse,
)
from hrms.documents.service import DocumentService
from hrms.notifications.mailer import Mailer, get_mailer

router = APIRouter(prefix="", tags=["documents"])


@router.post("/expiry-alerts", response_model=ExpiryAlertsResponse)
async def expiry_alerts(
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    sent, expired = await DocumentService.send_expiry_alerts(db, mailer)
    return ExpiryAlertsResponse(alerts_sent=len(sent), expired=expired, details=sent)


@router.post("/search", response_model=DocumentSearchResponse)
async def search_documents(
    body: DocumentSearchRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
):
    documents, explanation = await DocumentService.search(db, llm, body.query)
    return DocumentSearchResponse(
        documents=[DocumentResponse.model_validate(d) for d in documents],
        explanation=explanation,
        total_matches=len(documents),
    )


@router.post("/analyze", response_model=DocumentAnalyzeResponse)
async def analyze_document(
    body: DocumentAnalyzeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
):
    analysis, updated = await DocumentService.analyze(
        db,
        llm,
        document_name=body.document_name,
        file_url=body.file_url,
        document_id=body.document_id,
    )
    return DocumentAnalyzeResponse(analysis=analysis, document_updated=updated)


# ── Google Drive ────────────────────────────────────────────────────

@router.post("/drive/list")
async def drive_list(
    body: Optional[DriveListRequest] = None,
    user: User = Depends(get_current_user),
    drive: GoogleDriveClient = Depends(get_drive_client),
):
    body = body or DriveListRequest()
    return await drive.list_files(
        body.folder_name or settings.GOOGLE_DRIVE_DEFAULT_FOLDER, body.search_query,
    )


@router.post("/drive/upload", response_model=DriveUploadResponse)
async def drive_upload(
    file: Optional[UploadFile] = File(default=None),
    folder_name: Optional[str] = Form(default=None, alias="folderName"),
    document_type: str = Form(default="other", alias="documentType"),
    description: str = Form(default=""),
    user: User = Depends(get_current_user),
    drive: GoogleDriveClient = Depends(get_drive_client),
):
    if file is None:
        raise BadRequestException("No file provided")
    uploaded = await drive.upload(
        folder_name or settings.GOOGLE_DRIVE_DEFAULT_FOLDER,
        file.filename or "upload",
        await file.read(),
        file.content_type or "application/octet-stream",
        description,
    )
    return DriveUploadResponse(file={**uploaded, "documentType": document_type})


@router.post("/drive/delete")
async def drive_delete(
    body: DriveDeleteRequest,
    user: User = Depends(get_current_user),
    drive: GoogleDriveClient = Depends(get_drive_client),
):
    if not body.file_id:
        raise BadRequestException("No file ID provided")
    await drive.delete(body.file_id)
    return {"success": True}
