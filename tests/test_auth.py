"""Auth module tests — Google login and provisioning, JWT sessions,
refresh rotation, logout and role enforcement.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from jose import jwt
from sqlalchemy import select

from hrms.auth.models import User, UserSession
from hrms.common.constants import UserRole
from hrms.common.exceptions import UnauthorizedException
from hrms.config import settings
from tests.conftest import TestSessionFactory, _add_user, create_access_token

REDIRECT = "http://localhost:3000/callback"


async def _login(client, mock_google_oauth, email: str):
    with mock_google_oauth(email=email):
        return await client.post(
            "/api/v1/auth/google", json={"code": "auth-code", "redirect_uri": REDIRECT},
        )


# ── Google OAuth ────────────────────────────────────────────────────


async def test_google_login_existing_user(client, db, admin_user, mock_google_oauth):
    await db.commit()
    resp = await _login(client, mock_google_oauth, "admin@optimind.sa")
    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == settings.JWT_EXPIRY_HOURS * 3600
    assert data["user"]["role"] == "admin"

    claims = jwt.decode(data["access_token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == str(admin_user["id"])
    assert claims["type"] == "access"


async def test_first_login_provisions_employee_user(client, db, staff_employee, mock_google_oauth):
    await db.commit()
    resp = await _login(client, mock_google_oauth, "Sara@OptiMind.sa")
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["role"] == "user"
    assert data["user"]["employee_id"] == str(staff_employee["id"])

    async with TestSessionFactory() as session:
        user = (await session.execute(select(User).where(User.email == "sara@optimind.sa"))).scalars().one()
        assert user.google_id.startswith("google-")


async def test_unknown_identity_forbidden(client, mock_google_oauth):
    resp = await _login(client, mock_google_oauth, "outsider@gmail.com")
    assert resp.status_code == 403
    assert "outsider@gmail.com" in resp.json()["error"]


async def test_inactive_user_forbidden(client, db, mock_google_oauth):
    await _add_user(db, email="gone@optimind.sa", is_active=False)
    await db.commit()
    resp = await _login(client, mock_google_oauth, "gone@optimind.sa")
    assert resp.status_code == 403


async def test_google_rejects_code(client):
    with patch(
        "hrms.auth.router.verify_google_token",
        new_callable=AsyncMock,
        side_effect=UnauthorizedException("Google token exchange failed: invalid_grant"),
    ):
        resp = await client.post(
            "/api/v1/auth/google", json={"code": "bad", "redirect_uri": REDIRECT},
        )
    assert resp.status_code == 401
    assert resp.json() == {"error": "Google token exchange failed: invalid_grant"}


# ── Bearer validation ───────────────────────────────────────────────


async def test_missing_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


async def test_expired_token(client, admin_user):
    token = create_access_token(admin_user["id"], UserRole.admin, expired=True)
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Token has expired."


async def test_token_without_session(client, db, admin_user):
    await db.commit()
    token = create_access_token(admin_user["id"], UserRole.admin)
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Session invalid or expired."


async def test_garbage_token(client):
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


# ── Profile ─────────────────────────────────────────────────────────


async def test_me_for_manager(client, staff_employee, manager_headers, manager_employee):
    resp = await client.get("/api/v1/auth/me", headers=manager_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == "khalid@optimind.sa"
    assert data["employee_code"] == manager_employee["employee_code"]
    assert data["direct_reports_count"] == 1


async def test_me_for_admin_without_employee(client, admin_headers):
    resp = await client.get("/api/v1/auth/me", headers=admin_headers)
    data = resp.json()
    assert data["role"] == "admin"
    assert data["employee_id"] is None
    assert data["direct_reports_count"] == 0


# ── Refresh / logout ────────────────────────────────────────────────


async def test_refresh_rotates_and_detects_reuse(client, db, admin_user, mock_google_oauth):
    await db.commit()
    login = (await _login(client, mock_google_oauth, "admin@optimind.sa")).json()

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 200
    rotated = resp.json()
    assert rotated["refresh_token"] != login["refresh_token"]

    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {rotated['access_token']}"})
    assert resp.status_code == 200

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert resp.status_code == 401
    assert "reuse" in resp.json()["error"].lower()

    async with TestSessionFactory() as session:
        sessions = (
            await session.execute(select(UserSession).where(UserSession.user_id == admin_user["id"]))
        ).scalars().all()
        assert sessions
        assert all(s.is_revoked for s in sessions)


async def test_refresh_with_access_token(client, db, admin_user, mock_google_oauth):
    await db.commit()
    login = (await _login(client, mock_google_oauth, "admin@optimind.sa")).json()
    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": login["access_token"]})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid token type."


async def test_logout_revokes_session(client, admin_headers):
    resp = await client.post("/api/v1/auth/logout", headers=admin_headers)
    assert resp.json() == {"success": True, "message": "Logged out successfully"}

    resp = await client.get("/api/v1/auth/me", headers=admin_headers)
    assert resp.status_code == 401


# ── Role enforcement ────────────────────────────────────────────────


async def test_admin_route_rejects_plain_user(client, staff_headers):
    resp = await client.post("/api/v1/leave/accrual-policies/initialize", headers=staff_headers)
    assert resp.status_code == 403
    assert "not permitted" in resp.json()["error"]


async def test_health_is_public(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200

