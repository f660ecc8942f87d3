"""Change-log routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.audit.schemas import LogChangeRequest, LogChangeResponse
from hrms.audit.service import ChangeLogService
from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.database import get_db
from hrms.notifications.mailer import Mailer, get_mailer

router = APIRouter(prefix="", tags=["audit"])


@router.post("/changes", response_model=LogChangeResponse, status_code=201)
async def log_change(
    body: LogChangeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    entry, notified, emailed = await ChangeLogService.log_change(db, mailer, user, body)
    return LogChangeResponse(
        change_log_id=entry.id,
        notifications_sent=notified,
        emails_sent=emailed,
    )
