"""Core HR Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EmployeeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    first_name: str
    last_name: str
    email: str
    department: Optional[str] = None
    job_title: Optional[str] = None
    company_id: Optional[uuid.UUID] = None
    manager_id: Optional[uuid.UUID] = None
    status: str
    employment_type: str
    nationality: Optional[str] = None
    hire_date: Optional[date] = None


class EmployeeDetail(EmployeeBrief):
    phone: Optional[str] = None
    national_id: Optional[str] = None
    iqama_number: Optional[str] = None
    iban: Optional[str] = None
    bank_name: Optional[str] = None
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    gosi_salary_basis: Optional[Decimal] = None


class EmployeeFilterRequest(BaseModel):
    status: Optional[str] = None
    department: Optional[str] = None
    company_id: Optional[str] = None
    search: Optional[str] = None


class FilteredEmployeesResponse(BaseModel):
    success: bool = True
    employees: list[EmployeeDetail]
    total: int
    access_level: str
    current_employee_id: Optional[uuid.UUID] = None
