"""Compliance routes: SINAD and QIWA."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.compliance.clients import QiwaClient, SinadClient, get_qiwa_client, get_sinad_client
from hrms.compliance.schemas import QiwaRequest, SinadRequest
from hrms.compliance.service import QiwaService, SinadService
from hrms.database import get_db
from hrms.notifications.mailer import Mailer, get_mailer

router = APIRouter(prefix="", tags=["compliance"])


def _respond(result: dict[str, Any]):
    # Rejections by the remote API are 400 but keep the record update.
    if result.get("success") is False and "error" in result:
        return JSONResponse(status_code=400, content=result)
    return result


@router.post("/sinad")
async def sinad_sync(
    body: SinadRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: SinadClient = Depends(get_sinad_client),
    mailer: Mailer = Depends(get_mailer),
):
    return _respond(await SinadService.run(db, client, mailer, user, body))


@router.post("/qiwa")
async def qiwa_sync(
    body: QiwaRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: QiwaClient = Depends(get_qiwa_client),
    mailer: Mailer = Depends(get_mailer),
):
    return _respond(await QiwaService.run(db, client, mailer, user, body))
