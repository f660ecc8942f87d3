"""Loan routes.

``router`` holds the role-scoped listing under ``/access``; ``workflow_router``
holds requests and approvals under ``/loans``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.database import get_db
from hrms.loans.schemas import (
    FilteredLoansResponse,
    LoanApprovalRequest,
    LoanApprovalResponse,
    LoanDecisionResponse,
    LoanFilterBody,
    LoanRequestCreate,
)
from hrms.loans.service import LoanService
from hrms.notifications.mailer import Mailer, get_mailer

router = APIRouter(prefix="", tags=["loans"])
workflow_router = APIRouter(prefix="", tags=["loans"])


@router.post("/loan-requests", response_model=FilteredLoansResponse)
async def filtered_loan_requests(
    body: Optional[LoanFilterBody] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    body = body or LoanFilterBody()
    scope, loans = await LoanService.get_filtered_loan_requests(db, user, body.filters)
    return FilteredLoansResponse(
        loan_requests=loans,
        total=len(loans),
        access_level=scope.level.value,
    )


@workflow_router.post("/requests", response_model=LoanDecisionResponse, status_code=201)
async def create_loan_request(
    body: LoanRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    loan = await LoanService.create_request(db, user, **body.model_dump())
    return LoanDecisionResponse.model_validate(loan)


@workflow_router.post("/approval", response_model=LoanApprovalResponse)
async def loan_approval(
    body: LoanApprovalRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    loan = await LoanService.process_approval(
        db,
        mailer,
        user,
        action=body.action,
        loan_request_id=body.loan_request_id,
        comments=body.comments,
    )
    return LoanApprovalResponse(
        message="Loan request processed successfully",
        updated_request=LoanDecisionResponse.model_validate(loan),
    )
