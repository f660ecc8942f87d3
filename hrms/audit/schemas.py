"""Change-log Pydantic schemas."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from pydantic import BaseModel, Field


class LogChangeRequest(BaseModel):
    entity_name: str = Field(min_length=1, max_length=100)
    entity_id: str = Field(min_length=1, max_length=100)
    change_type: str = Field(min_length=1, max_length=50)
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    summary: str = Field(min_length=1)
    notes: Optional[str] = None


class LogChangeResponse(BaseModel):
    success: bool = True
    change_log_id: uuid.UUID
    notifications_sent: int
    emails_sent: int
