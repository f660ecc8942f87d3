"""Generic filtering and sorting helpers for ``Select`` queries."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Select, String, and_, cast
from sqlalchemy.orm import ColumnProperty, InstrumentedAttribute

# Filter values meaning "no filter" in report and list payloads.
_EMPTY_FILTER_VALUES = ("", "all")


# ── Sorting ─────────────────────────────────────────────────────────

def apply_sorting(
    query: Select,
    model: Any,
    sort: Optional[str],
) -> Select:
    """
    Parse a sort string like ``"-created_at"`` and apply ORDER BY.

    * Leading ``-`` → DESC; otherwise ASC.
    * Unknown columns are ignored.
    """
    if not sort:
        return query

    descending = sort.startswith("-")
    col = get_column(model, sort.lstrip("-"))
    if col is None:
        return query
    return query.order_by(col.desc() if descending else col.asc())


# ── Generic filtering ──────────────────────────────────────────────

def apply_filters(
    query: Select,
    model: Any,
    filters: dict[str, Any],
) -> Select:
    """
    Apply a dict of filter parameters to a SQLAlchemy ``Select``.

    Key suffixes determine the operator:

    ============  ==================
    Suffix        Operator
    ============  ==================
    (none)        ``==``
    ``__ilike``   case-insensitive LIKE (wraps ``%…%``)
    ``__from``    ``>=``
    ``__to``      ``<=``
    ``__in``      ``IN (…)``
    ============  ==================

    ``None``, ``""`` and ``"all"`` values are skipped, as are keys that do
    not name a mapped column.
    """
    conditions: list = []

    for key, value in filters.items():
        if is_empty_filter(value):
            continue

        if key.endswith("__ilike"):
            col = get_column(model, key.removesuffix("__ilike"))
            if col is not None:
                conditions.append(cast(col, String).ilike(f"%{value}%"))

        elif key.endswith("__from"):
            col = get_column(model, key.removesuffix("__from"))
            if col is not None:
                conditions.append(col >= value)

        elif key.endswith("__to"):
            col = get_column(model, key.removesuffix("__to"))
            if col is not None:
                conditions.append(col <= value)

        elif key.endswith("__in"):
            col = get_column(model, key.removesuffix("__in"))
            if col is not None:
                conditions.append(col.in_(value))

        else:
            col = get_column(model, key)
            if col is not None:
                conditions.append(col == value)

    if conditions:
        query = query.where(and_(*conditions))

    return query


# ── Helpers ─────────────────────────────────────────────────────────

def is_empty_filter(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip().lower() in _EMPTY_FILTER_VALUES


def get_column(model: Any, name: str) -> Optional[InstrumentedAttribute]:
    """Return the mapped column attribute *name* of *model*, or ``None``."""
    if name.startswith("_"):
        return None
    attr = getattr(model, name, None)
    if isinstance(attr, InstrumentedAttribute) and isinstance(attr.property, ColumnProperty):
        return attr
    return None
