"""Dashboard Pydantic schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WidgetRequest(BaseModel):
    widget_type: str = Field(min_length=1)
    filters: dict[str, Any] = Field(default_factory=dict)


class WidgetResponse(BaseModel):
    success: bool = True
    widget_type: str
    data: Any
