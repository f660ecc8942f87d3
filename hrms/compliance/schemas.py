"""Compliance Pydantic schemas."""

from __future__ import annotations

import re
import uuid
from typing import Optional

from pydantic import BaseModel, field_validator

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class SinadRequest(BaseModel):
    action: str
    sinad_record_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    submission_month: Optional[str] = None

    @field_validator("submission_month")
    @classmethod
    def _check_month(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _MONTH_RE.match(v):
            raise ValueError("submission_month must be YYYY-MM")
        return v


class QiwaRequest(BaseModel):
    action: str
    employee_id: Optional[uuid.UUID] = None
    qiwa_record_id: Optional[uuid.UUID] = None
