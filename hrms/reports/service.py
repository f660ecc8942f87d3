"""Report service — module lookup, filtering, sorting and projection."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.exceptions import BadRequestException, ValidationException
from hrms.common.filters import apply_filters, apply_sorting, get_column, is_empty_filter
from hrms.core_hr.models import Employee
from hrms.reports.registry import (
    DEFAULT_SORT,
    EMPLOYEE_REF_FIELDS,
    ReportModule,
    field_value,
    get_module,
)
from hrms.reports.schemas import ReportQuery

logger = logging.getLogger(__name__)

_COERCERS = {
    date: date.fromisoformat,
    datetime: datetime.fromisoformat,
    uuid.UUID: uuid.UUID,
    Decimal: Decimal,
    int: int,
    bool: lambda v: str(v).lower() in ("1", "true", "yes"),
}


def _python_type(column) -> Optional[type]:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def coerce_filter_value(column, value: Any) -> Any:
    """Convert a JSON filter value to the column's Python type."""
    py_type = _python_type(column)
    coercer = _COERCERS.get(py_type)
    if coercer is None or isinstance(value, py_type):
        return value
    if isinstance(value, list):
        return [coerce_filter_value(column, v) for v in value]
    try:
        return coercer(value)
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationException(
            {column.key: [f"Invalid value '{value}' for {column.key}"]},
        )


def build_filters(module: ReportModule, filters: dict[str, Any]) -> dict[str, Any]:
    """Map report filters onto ``apply_filters`` keys.

    ``date_from``/``date_to`` target the module's date column; empty and
    ``"all"`` values are dropped.
    """
    result: dict[str, Any] = {}
    for key, value in filters.items():
        if is_empty_filter(value):
            continue
        if key == "date_from":
            key = f"{module.date_column}__from"
        elif key == "date_to":
            key = f"{module.date_column}__to"

        column = get_column(module.model, key.split("__", 1)[0])
        if column is None:
            continue
        result[key] = coerce_filter_value(column, value)
    return result


def project(record: Any, fields: Sequence[str]) -> dict[str, Any]:
    projected: dict[str, Any] = {"id": record.id}
    for field in fields:
        projected[field] = field_value(record, field)
    return jsonable_encoder(projected)


class ReportService:

    @staticmethod
    def resolve_module(query: ReportQuery) -> ReportModule:
        if not query.module or not query.fields:
            raise BadRequestException("Module and fields are required")
        module = get_module(query.module)
        if module is None:
            raise BadRequestException("Invalid module")
        return module

    @staticmethod
    def _select(module: ReportModule, query: ReportQuery):
        stmt = apply_filters(select(module.model), module.model, build_filters(module, query.filters))
        if query.sort_field:
            prefix = "-" if query.sort_direction == "desc" else ""
            sort = f"{prefix}{query.sort_field}"
        else:
            sort = DEFAULT_SORT
        return apply_sorting(stmt, module.model, sort)

    @staticmethod
    async def generate(
        db: AsyncSession,
        query: ReportQuery,
        *,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        """Preview: at most *limit* projected records plus the full match count."""
        module = ReportService.resolve_module(query)
        stmt = ReportService._select(module, query)

        total = (
            await db.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
        ).scalar_one()
        rows = (await db.execute(stmt.limit(limit))).scalars().all()
        return [project(r, query.fields) for r in rows], total

    @staticmethod
    async def fetch_all(db: AsyncSession, query: ReportQuery) -> Sequence[Any]:
        module = ReportService.resolve_module(query)
        rows = (await db.execute(ReportService._select(module, query))).scalars().all()
        logger.info("Report export %s: %d records", module.name, len(rows))
        return rows

    @staticmethod
    async def employee_names(db: AsyncSession, fields: Sequence[str]) -> dict[uuid.UUID, str]:
        if not EMPLOYEE_REF_FIELDS.intersection(fields):
            return {}
        employees = (await db.execute(select(Employee))).scalars().all()
        return {e.id: e.full_name for e in employees}
