"""Loan Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import LoanAction


class LoanFilterRequest(BaseModel):
    status: Optional[str] = None
    loan_type: Optional[str] = None
    employee_id: Optional[uuid.UUID] = None
    current_approver_role: Optional[str] = None


class LoanFilterBody(BaseModel):
    filters: LoanFilterRequest = LoanFilterRequest()


class LoanRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    loan_type: str
    amount: Decimal
    installments: int
    monthly_deduction: Decimal
    remaining_balance: Optional[Decimal] = None
    reason: Optional[str] = None
    status: str
    current_approver_role: str
    disbursement_date: Optional[date] = None
    created_at: datetime

    employee_name: str = "Unknown"
    employee_email: Optional[str] = None
    employee_department: Optional[str] = None
    employee_company: Optional[uuid.UUID] = None


class FilteredLoansResponse(BaseModel):
    success: bool = True
    loan_requests: list[LoanRequestResponse]
    total: int
    access_level: str


class LoanRequestCreate(BaseModel):
    loan_type: str = Field(..., min_length=1, max_length=30)
    amount: Decimal = Field(..., gt=0)
    installments: int = Field(1, ge=1, le=60)
    reason: Optional[str] = None


class LoanApprovalRequest(BaseModel):
    action: LoanAction
    loan_request_id: uuid.UUID
    comments: Optional[str] = None


class LoanDecisionResponse(LoanRequestResponse):
    manager_status: str
    hr_status: str
    senior_management_status: str
    rejection_reason: Optional[str] = None


class LoanApprovalResponse(BaseModel):
    success: bool = True
    message: str
    updated_request: LoanDecisionResponse
