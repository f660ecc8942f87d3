"""Dashboard routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.dashboard.schemas import WidgetRequest, WidgetResponse
from hrms.dashboard.service import DashboardService
from hrms.database import get_db

router = APIRouter(prefix="", tags=["dashboard"])


@router.post("/widget", response_model=WidgetResponse)
async def widget_data(
    body: WidgetRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await DashboardService.widget_data(db, body.widget_type)
    return WidgetResponse(widget_type=body.widget_type, data=data)
