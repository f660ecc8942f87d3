"""Core HR router — role-scoped employee list and user access context."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.core_hr.schemas import (
    EmployeeDetail,
    EmployeeFilterRequest,
    FilteredEmployeesResponse,
)
from hrms.core_hr.service import AccessContextService, EmployeeService
from hrms.database import get_db

router = APIRouter(prefix="", tags=["access"])


@router.post("/employees", response_model=FilteredEmployeesResponse)
async def filtered_employees(
    body: Optional[EmployeeFilterRequest] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    scope, employees = await EmployeeService.get_filtered_employees(
        db, user, body or EmployeeFilterRequest(),
    )
    return FilteredEmployeesResponse(
        employees=[EmployeeDetail.model_validate(e) for e in employees],
        total=len(employees),
        access_level=scope.level.value,
        current_employee_id=scope.current_employee_id,
    )


@router.post("/context")
async def user_access_context(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AccessContextService.get_user_access_context(db, user)
