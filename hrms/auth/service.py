"""Auth service — Google OAuth exchange, JWT management, session lifecycle."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import hash_token
from hrms.auth.models import User, UserSession
from hrms.common.exceptions import ForbiddenException, UnauthorizedException
from hrms.config import settings
from hrms.core_hr.models import Employee

logger = logging.getLogger(__name__)


# ── Google OAuth ────────────────────────────────────────────────────

async def verify_google_token(code: str, redirect_uri: str) -> dict[str, Any]:
    """Exchange Google authorization code for user info.

    Returns dict with keys: email, name, google_id.
    """
    async with httpx.AsyncClient(timeout=15) as client:
        token_resp = await client.post(
            "https://oauth2.googleapis.com/token",
            data={
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "code": code,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        token_data = token_resp.json()
        if token_resp.status_code != 200 or "access_token" not in token_data:
            raise UnauthorizedException(
                f"Google token exchange failed: {token_data.get('error_description', 'unknown error')}",
            )

        info_resp = await client.get(
            "https://www.googleapis.com/oauth2/v2/userinfo",
            headers={"Authorization": f"Bearer {token_data['access_token']}"},
        )
        if info_resp.status_code != 200:
            raise UnauthorizedException("Failed to fetch Google user info.")

        info = info_resp.json()

    return {
        "email": info["email"],
        "name": info.get("name", ""),
        "google_id": info["id"],
    }


# ── User lookup / provisioning ──────────────────────────────────────

async def get_or_provision_user(db: AsyncSession, google_info: dict[str, Any]) -> User:
    """Return the active user for a Google identity.

    A first login by someone with an employee record provisions a plain
    ``user`` account linked to that employee.
    """
    email = google_info["email"].lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()

    if user is not None:
        if not user.is_active:
            raise ForbiddenException("User account is inactive.")
        if not user.google_id:
            user.google_id = google_info.get("google_id")
        await db.flush()
        return user

    emp_result = await db.execute(select(Employee).where(Employee.email == email))
    employee = emp_result.scalars().first()
    if employee is None:
        raise ForbiddenException(f"No OptiMind HR account exists for {email}.")

    user = User(
        email=email,
        full_name=google_info.get("name") or employee.full_name,
        employee_id=employee.id,
        google_id=google_info.get("google_id"),
    )
    db.add(user)
    await db.flush()
    logger.info("Provisioned user %s for employee %s", email, employee.employee_code)
    return user


# ── JWT helpers ─────────────────────────────────────────────────────

def create_access_token(user_id: uuid.UUID, role: str) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


def create_refresh_token(user_id: uuid.UUID) -> str:
    payload = {
        "sub": str(user_id),
        "type": "refresh",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_EXPIRY_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[str, str, int]:
    """Create JWT pair and persist session.  Returns (access, refresh, expires_in)."""
    access_token, expires_in = create_access_token(user.id, user.role)
    refresh_token = create_refresh_token(user.id)

    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(access_token),
            refresh_token_hash=hash_token(refresh_token),
            ip_address=ip,
            user_agent=user_agent,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )
    )
    await db.flush()
    return access_token, refresh_token, expires_in


async def refresh_access_token(
    db: AsyncSession,
    refresh_token_str: str,
) -> tuple[str, str, int]:
    """Validate refresh token, rotate it, and issue a new token pair.

    Each refresh token is single-use. Presenting an already consumed one
    revokes every session of that user.
    """
    try:
        payload = jwt.decode(
            refresh_token_str,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        raise UnauthorizedException("Invalid or expired refresh token.")

    if payload.get("type") != "refresh":
        raise UnauthorizedException("Invalid token type.")

    result = await db.execute(
        select(UserSession).where(
            UserSession.refresh_token_hash == hash_token(refresh_token_str),
        ),
    )
    session = result.scalars().first()
    if session is None:
        raise UnauthorizedException("Invalid refresh token.")

    if session.is_revoked:
        logger.warning("Refresh token reuse detected for user %s", session.user_id)
        await _revoke_all_user_sessions(db, session.user_id)
        await db.commit()  # revocations must survive the error response
        raise UnauthorizedException(
            "Refresh token reuse detected. All sessions revoked for security.",
        )

    session.is_revoked = True
    await db.flush()

    user_result = await db.execute(
        select(User).where(User.id == session.user_id, User.is_active.is_(True)),
    )
    user = user_result.scalars().first()
    if user is None:
        raise UnauthorizedException("User account is inactive or not found.")

    return await create_session(db, user)


async def _revoke_all_user_sessions(db: AsyncSession, user_id: uuid.UUID) -> None:
    result = await db.execute(
        select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.is_revoked.is_(False),
        ),
    )
    for session in result.scalars().all():
        session.is_revoked = True
    await db.flush()


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Mark a session as revoked by its access token hash."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == token_hash),
    )
    session = result.scalars().first()
    if session:
        session.is_revoked = True
        await db.flush()
