"""Auth ORM models: User, UserSession, Role, RoleAssignment."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import INET, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import UserRole
from hrms.database import Base


class User(Base):
    """A login identity. Linked to an Employee by ``employee_id`` or e-mail."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(sa.String(255), default="", nullable=False)
    role: Mapped[str] = mapped_column(sa.String(20), default=UserRole.user.value, nullable=False)
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="SET NULL"),
    )
    company_access: Mapped[Optional[list]] = mapped_column(JSONB, default=list)
    department_access: Mapped[Optional[list]] = mapped_column(JSONB, default=list)
    google_id: Mapped[Optional[str]] = mapped_column(sa.String(100))
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class UserSession(Base):
    __tablename__ = "user_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(sa.String(512), nullable=False)
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(sa.String(512))
    ip_address: Mapped[Optional[str]] = mapped_column(INET)
    user_agent: Mapped[Optional[str]] = mapped_column(sa.Text)
    expires_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False,
    )
    is_revoked: Mapped[bool] = mapped_column(sa.Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (
        sa.Index("ix_user_sessions_token_hash", "token_hash"),
        sa.Index("ix_user_sessions_refresh_token_hash", "refresh_token_hash"),
    )


class Role(Base):
    """A named permission bundle (ESS, MSS, payroll officer, …)."""

    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    role_code: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False)
    role_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    permissions: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)
    status: Mapped[str] = mapped_column(sa.String(20), default="active", nullable=False)


class RoleAssignment(Base):
    """Grants a Role to a user e-mail, optionally scoped to one company."""

    __tablename__ = "role_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False,
    )
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )
    status: Mapped[str] = mapped_column(sa.String(20), default="active", nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    __table_args__ = (sa.Index("ix_role_assignments_user_email", "user_email"),)
