"""Auth router — Google OAuth, token refresh, logout, current user profile."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, hash_token
from hrms.auth.models import User
from hrms.auth.schemas import (
    GoogleAuthRequest,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    TokenResponse,
    UserInfo,
)
from hrms.auth.service import (
    create_session,
    get_or_provision_user,
    refresh_access_token,
    revoke_session,
    verify_google_token,
)
from hrms.common.audit import record_change
from hrms.common.rate_limit import limiter
from hrms.core_hr.models import Employee
from hrms.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /google: Google OAuth callback ────────────────────────────

@router.post("/google", response_model=TokenResponse)
@limiter.limit("10/minute")
async def google_auth(
    body: GoogleAuthRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    google_info = await verify_google_token(body.code, body.redirect_uri)
    user = await get_or_provision_user(db, google_info)

    ip = request.client.host if request.client else None
    access_token, refresh_token, expires_in = await create_session(
        db, user, ip, request.headers.get("user-agent"),
    )

    await record_change(
        db,
        entity_name="UserSession",
        entity_id=user.id,
        change_type="login",
        changed_by_email=user.email,
        changed_by_name=user.full_name,
        new_values={"ip": ip},
    )

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=expires_in,
        user=UserInfo(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            employee_id=user.employee_id,
        ),
    )


# ── POST /refresh: Rotate token pair ───────────────────────────────

@router.post("/refresh", response_model=RefreshResponse)
async def refresh_token(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    access_token, new_refresh, expires_in = await refresh_access_token(db, body.refresh_token)
    return RefreshResponse(
        access_token=access_token,
        refresh_token=new_refresh,
        expires_in=expires_in,
    )


# ── POST /logout: Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = request.headers.get("Authorization", "").removeprefix("Bearer ")
    await revoke_session(db, hash_token(token))
    return {"success": True, "message": "Logged out successfully"}


# ── GET /me: Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    employee_code = None
    direct_reports = 0
    if user.employee_id is not None:
        employee = await db.get(Employee, user.employee_id)
        employee_code = employee.employee_code if employee else None
        direct_reports = (
            await db.execute(
                select(func.count()).select_from(Employee).where(
                    Employee.manager_id == user.employee_id,
                ),
            )
        ).scalar() or 0

    return MeResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        employee_id=user.employee_id,
        company_access=[str(c) for c in user.company_access or []],
        department_access=list(user.department_access or []),
        employee_code=employee_code,
        direct_reports_count=direct_reports,
    )
