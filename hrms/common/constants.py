"""Enums and constants for OptiMind HR — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    user = "user"
    admin = "admin"


class AccessLevel(str, enum.Enum):
    """Visibility tier returned by the access-scope resolver."""

    employee = "employee"
    manager = "manager"
    admin = "admin"


class UserType(str, enum.Enum):
    """Self-service tier derived from role assignments."""

    ess = "ess"
    mss = "mss"
    limited = "limited"
    admin = "admin"


MANAGER_ROLE_CODES = frozenset({"mss", "manager"})
BASIC_ROLE_CODES = frozenset({"ess", "employee"})


# ── Employee / Core HR ──────────────────────────────────────────────

class EmploymentStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    on_leave = "on_leave"
    terminated = "terminated"


class EmploymentType(str, enum.Enum):
    full_time = "full_time"
    part_time = "part_time"
    contract = "contract"
    temporary = "temporary"


SAUDI_NATIONALITIES = frozenset({"saudi", "saudi arabia", "saudi arabian", "sa", "ksa"})


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class ApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    not_required = "not_required"


class ApproverRole(str, enum.Enum):
    manager = "manager"
    hr = "hr"
    senior_management = "senior_management"
    completed = "completed"


class LeaveAction(str, enum.Enum):
    manager_approve = "manager_approve"
    manager_reject = "manager_reject"
    hr_approve = "hr_approve"
    hr_reject = "hr_reject"


class DayType(str, enum.Enum):
    working = "working"
    weekend = "weekend"
    holiday = "holiday"


class HolidayType(str, enum.Enum):
    national = "national"
    islamic = "islamic"
    company = "company"


# Python weekday(): Monday=0 … Sunday=6. Saudi weekend is Friday + Saturday.
WEEKEND_DAYS = frozenset({4, 5})

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


# ── Loans ───────────────────────────────────────────────────────────

class LoanStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    disbursed = "disbursed"
    rejected = "rejected"
    closed = "closed"


DEDUCTIBLE_LOAN_STATUSES = (LoanStatus.approved.value, LoanStatus.disbursed.value)

# Amounts (SAR) from which a loan needs HR, then senior management sign-off.
LOAN_HR_APPROVAL_THRESHOLD = 5000
LOAN_SENIOR_APPROVAL_THRESHOLD = 15000


class LoanAction(str, enum.Enum):
    manager_approve = "manager_approve"
    manager_reject = "manager_reject"
    hr_approve = "hr_approve"
    hr_reject = "hr_reject"
    senior_management_approve = "senior_management_approve"
    senior_management_reject = "senior_management_reject"
    disburse = "disburse"


# ── Payroll ─────────────────────────────────────────────────────────

class PayrollStatus(str, enum.Enum):
    calculated = "calculated"
    approved = "approved"
    paid = "paid"


PAYROLL_WORKING_DAYS = 30


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"
    system_change = "system_change"


class NotificationPriority(str, enum.Enum):
    low = "low"
    normal = "normal"
    high = "high"
    urgent = "urgent"


# ── Documents ───────────────────────────────────────────────────────

class DocumentStatus(str, enum.Enum):
    active = "active"
    expired = "expired"
    archived = "archived"


DEFAULT_ALERT_DAYS = 30


# ── Compliance ──────────────────────────────────────────────────────

class SinadStatus(str, enum.Enum):
    draft = "draft"
    generated = "generated"
    submitted = "submitted"
    approved = "approved"
    rejected = "rejected"


class SyncStatus(str, enum.Enum):
    pending = "pending"
    synced = "synced"
    failed = "failed"


class QiwaRegistrationStatus(str, enum.Enum):
    pending = "pending"
    registered = "registered"
    failed = "failed"


WORK_PERMIT_ALERT_DAYS = 90


# ── Misc ────────────────────────────────────────────────────────────

CURRENCY = "SAR"
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
