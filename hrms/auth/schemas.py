"""Auth Pydantic schemas for request / response validation."""

import uuid
from typing import Optional

from pydantic import BaseModel


# ── Requests ────────────────────────────────────────────────────────

class GoogleAuthRequest(BaseModel):
    code: str
    redirect_uri: str


class RefreshRequest(BaseModel):
    refresh_token: str


# ── Responses ───────────────────────────────────────────────────────

class UserInfo(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    role: str
    employee_id: Optional[uuid.UUID] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(UserInfo):
    company_access: list[str] = []
    department_access: list[str] = []
    employee_code: Optional[str] = None
    direct_reports_count: int = 0
