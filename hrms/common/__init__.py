"""Common module — shared utilities for OptiMind HR."""

from hrms.common.audit import ChangeLog, record_change, utcnow
from hrms.common.constants import (
    AccessLevel,
    DayType,
    EmploymentStatus,
    EmploymentType,
    LeaveStatus,
    NotificationType,
    UserRole,
    UserType,
)
from hrms.common.exceptions import (
    AppException,
    BadRequestException,
    ExternalServiceError,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from hrms.common.filters import apply_filters, apply_sorting
from hrms.common.pagination import PaginationMeta, PaginationParams, paginate

__all__ = [
    # Audit
    "ChangeLog",
    "record_change",
    "utcnow",
    # Constants / Enums
    "AccessLevel",
    "DayType",
    "EmploymentStatus",
    "EmploymentType",
    "LeaveStatus",
    "NotificationType",
    "UserRole",
    "UserType",
    # Exceptions
    "AppException",
    "BadRequestException",
    "ExternalServiceError",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_sorting",
    # Pagination
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
