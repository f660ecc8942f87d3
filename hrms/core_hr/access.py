"""Access-scope resolution: which employees a user may see, and at what tier.

Pure functions over already-loaded users and employees so the rules can be
exercised without a database.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from hrms.common.constants import (
    BASIC_ROLE_CODES,
    MANAGER_ROLE_CODES,
    AccessLevel,
    UserRole,
    UserType,
)
from hrms.common.exceptions import NotFoundException

EMPLOYEE_NOT_FOUND = "Employee record not found for this user"


@dataclass(frozen=True)
class AccessScope:
    level: AccessLevel
    employees: list[Any] = field(default_factory=list)
    current_employee_id: Optional[uuid.UUID] = None


def find_current_employee(user: Any, employees: Iterable[Any]) -> Optional[Any]:
    """Match the user's employee record by linked id, then by e-mail.

    A record linked by id wins over an earlier record whose e-mail matches;
    the two only differ when the link and the e-mail point at different
    employees.
    """
    email = (user.email or "").lower()
    by_email = None
    for emp in employees:
        if user.employee_id is not None and emp.id == user.employee_id:
            return emp
        if by_email is None and email and (emp.email or "").lower() == email:
            by_email = emp
    return by_email


def resolve_access_scope(
    user: Any,
    employees: Sequence[Any],
    current_employee: Optional[Any] = None,
) -> AccessScope:
    """Return the subset of *employees* visible to *user*.

    * admin: restricted by ``company_access`` when non-empty, otherwise by
      ``department_access`` when non-empty, otherwise sees everyone.
    * anyone else with an employee record: self plus direct reports
      (``manager_id`` equal to their id); tier ``manager`` iff at least one
      report exists.
    * anyone else without an employee record: ``NotFoundException``.
    """
    if user.role == UserRole.admin.value:
        company_access = {str(c) for c in user.company_access or []}
        department_access = set(user.department_access or [])
        if company_access:
            visible = [e for e in employees if str(e.company_id) in company_access]
        elif department_access:
            visible = [e for e in employees if e.department in department_access]
        else:
            visible = list(employees)
        return AccessScope(
            level=AccessLevel.admin,
            employees=visible,
            current_employee_id=current_employee.id if current_employee else None,
        )

    if current_employee is None:
        raise NotFoundException("Employee", detail=EMPLOYEE_NOT_FOUND)

    reports = [e for e in employees if e.manager_id == current_employee.id]
    visible = [current_employee] + [e for e in reports if e.id != current_employee.id]
    return AccessScope(
        level=AccessLevel.manager if reports else AccessLevel.employee,
        employees=visible,
        current_employee_id=current_employee.id,
    )


def matches_search(employee: Any, term: str) -> bool:
    """Case-insensitive substring match on name, code and e-mail."""
    needle = term.strip().lower()
    if not needle:
        return True
    haystack = (
        employee.first_name,
        employee.last_name,
        employee.employee_code,
        employee.email,
    )
    return any(needle in (value or "").lower() for value in haystack)


def resolve_user_type(role_codes: Iterable[str]) -> UserType:
    """Map assigned role codes to a self-service tier."""
    codes = {c.lower() for c in role_codes if c}
    if codes & MANAGER_ROLE_CODES:
        return UserType.mss
    if codes - BASIC_ROLE_CODES:
        return UserType.limited
    return UserType.ess
