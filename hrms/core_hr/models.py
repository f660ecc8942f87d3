"""Core HR ORM models: Company, Employee."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms.common.audit import utcnow
from hrms.common.constants import EmploymentStatus, EmploymentType
from hrms.database import Base


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name_en: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    name_ar: Mapped[Optional[str]] = mapped_column(sa.String(255))
    cr_number: Mapped[Optional[str]] = mapped_column(sa.String(50))
    status: Mapped[str] = mapped_column(sa.String(20), default="active", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Company {self.name_en}>"


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_code: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    full_name_ar: Mapped[Optional[str]] = mapped_column(sa.String(255))
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    department: Mapped[Optional[str]] = mapped_column(sa.String(100))
    job_title: Mapped[Optional[str]] = mapped_column(sa.String(150))
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"),
    )
    status: Mapped[str] = mapped_column(
        sa.String(20), default=EmploymentStatus.active.value, nullable=False,
    )
    employment_type: Mapped[str] = mapped_column(
        sa.String(20), default=EmploymentType.full_time.value, nullable=False,
    )
    nationality: Mapped[Optional[str]] = mapped_column(sa.String(50))
    hire_date: Mapped[Optional[date]] = mapped_column(sa.Date)

    # Saudi identifiers / banking
    national_id: Mapped[Optional[str]] = mapped_column(sa.String(20))
    iqama_number: Mapped[Optional[str]] = mapped_column(sa.String(20))
    iban: Mapped[Optional[str]] = mapped_column(sa.String(34))
    bank_name: Mapped[Optional[str]] = mapped_column(sa.String(100))

    # Compensation (SAR / month)
    basic_salary: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=Decimal("0"), nullable=False)
    housing_allowance: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=Decimal("0"), nullable=False)
    transport_allowance: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=Decimal("0"), nullable=False)
    gosi_salary_basis: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(12, 2))

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False,
    )

    __table_args__ = (
        sa.Index("ix_employees_manager_id", "manager_id"),
        sa.Index("ix_employees_company_id", "company_id"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code} {self.full_name}>"
