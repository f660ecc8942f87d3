"""Core HR service — role-scoped employee lists and access context."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import Role, RoleAssignment, User
from hrms.common.constants import UserRole, UserType
from hrms.common.filters import is_empty_filter
from hrms.core_hr.access import (
    AccessScope,
    find_current_employee,
    matches_search,
    resolve_access_scope,
    resolve_user_type,
)
from hrms.core_hr.models import Company, Employee
from hrms.core_hr.schemas import EmployeeFilterRequest


class EmployeeService:
    """Async employee lookups shared by other modules."""

    @staticmethod
    async def list_all(db: AsyncSession) -> Sequence[Employee]:
        result = await db.execute(select(Employee).order_by(Employee.employee_code))
        return result.scalars().all()

    @staticmethod
    async def get_for_user(db: AsyncSession, user: User) -> Optional[Employee]:
        """Return the employee record linked to *user* (by id, then e-mail)."""
        if user.employee_id is not None:
            employee = await db.get(Employee, user.employee_id)
            if employee is not None:
                return employee
        result = await db.execute(
            select(Employee).where(Employee.email == user.email.lower()),
        )
        return result.scalars().first()

    @staticmethod
    async def resolve_scope(db: AsyncSession, user: User) -> AccessScope:
        """Load every employee and resolve what *user* may see."""
        employees = await EmployeeService.list_all(db)
        current = find_current_employee(user, employees)
        return resolve_access_scope(user, employees, current)

    @staticmethod
    async def get_filtered_employees(
        db: AsyncSession,
        user: User,
        filters: EmployeeFilterRequest,
    ) -> tuple[AccessScope, list[Employee]]:
        scope = await EmployeeService.resolve_scope(db, user)
        visible = scope.employees

        if not is_empty_filter(filters.status):
            visible = [e for e in visible if e.status == filters.status]
        if not is_empty_filter(filters.department):
            visible = [e for e in visible if e.department == filters.department]
        if not is_empty_filter(filters.company_id):
            visible = [e for e in visible if str(e.company_id) == filters.company_id]
        if filters.search:
            visible = [e for e in visible if matches_search(e, filters.search)]

        return scope, visible


class AccessContextService:
    """Resolve a user's self-service tier, companies and permissions."""

    @staticmethod
    async def get_user_access_context(db: AsyncSession, user: User) -> dict[str, Any]:
        employee = await EmployeeService.get_for_user(db, user)
        employee_id = str(employee.id) if employee else None
        own_companies = [str(employee.company_id)] if employee and employee.company_id else []

        if user.role == UserRole.admin.value:
            result = await db.execute(
                select(Company.id).where(Company.status == "active"),
            )
            return {
                "success": True,
                "userType": UserType.admin.value,
                "accessibleCompanies": [str(cid) for cid in result.scalars().all()],
                "permissions": ["*"],
                "isAdmin": True,
                "employeeId": employee_id,
                "roles": [],
                "userRoles": [],
            }

        assignments = (
            await db.execute(
                select(RoleAssignment).where(
                    RoleAssignment.user_email == user.email,
                    RoleAssignment.status == "active",
                ),
            )
        ).scalars().all()

        if not assignments:
            return {
                "success": True,
                "userType": UserType.ess.value,
                "accessibleCompanies": own_companies,
                "permissions": [],
                "isAdmin": False,
                "employeeId": employee_id,
                "roles": [],
                "userRoles": [],
            }

        roles = (
            await db.execute(
                select(Role).where(
                    Role.id.in_([a.role_id for a in assignments]),
                    Role.status == "active",
                ),
            )
        ).scalars().all()

        permissions: list[str] = []
        for role in roles:
            for perm in role.permissions or []:
                if perm not in permissions:
                    permissions.append(perm)

        companies: list[str] = []
        for assignment in assignments:
            if assignment.company_id is not None and str(assignment.company_id) not in companies:
                companies.append(str(assignment.company_id))

        return {
            "success": True,
            "userType": resolve_user_type(r.role_code for r in roles).value,
            "accessibleCompanies": companies or own_companies,
            "permissions": permissions,
            "isAdmin": False,
            "employeeId": employee_id,
            "roles": [
                {"id": str(r.id), "role_code": r.role_code, "role_name": r.role_name}
                for r in roles
            ],
            "userRoles": [
                {
                    "id": str(a.id),
                    "role_id": str(a.role_id),
                    "company_id": str(a.company_id) if a.company_id else None,
                }
                for a in assignments
            ],
        }
