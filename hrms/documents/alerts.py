"""Document expiry alert rules."""

from __future__ import annotations

from datetime import date
from typing import Optional

from hrms.common.constants import DEFAULT_ALERT_DAYS

URGENT_DAYS = 7


def alert_thresholds(alert_days: Optional[int]) -> tuple[int, ...]:
    return (alert_days or DEFAULT_ALERT_DAYS, URGENT_DAYS, 0)


def days_until(expiry: date, today: date) -> int:
    return (expiry - today).days


def due_alert(expiry: Optional[date], alert_days: Optional[int], today: date) -> Optional[int]:
    """Days until expiry when an alert is due today, else ``None``.

    Alerts fire exactly on the configured lead time, one week before and
    on the expiry day itself.
    """
    if expiry is None:
        return None
    days = days_until(expiry, today)
    if days < 0 or days not in alert_thresholds(alert_days):
        return None
    return days


def urgency_line(days: int) -> str:
    if days == 0:
        return "This document expires TODAY!"
    if days <= URGENT_DAYS:
        return "Urgent: This document expires very soon!"
    return "Please renew this document soon."


def alert_subject(document_name: str, *, company: bool) -> str:
    prefix = "Company Document Expiring Soon" if company else "Document Expiring Soon"
    return f"{prefix}: {document_name}"


def alert_body(
    *,
    document_name: str,
    document_type: str,
    expiry: date,
    days: int,
    owner_label: str,
    owner: str,
    notes: Optional[str] = None,
) -> str:
    lines = [
        f"{owner_label}: {owner}",
        f"Document: {document_name}",
        f"Type: {document_type.replace('_', ' ').upper()}",
        f"Expiry Date: {expiry.isoformat()}",
        f"Days Until Expiry: {days} days",
    ]
    if notes:
        lines.append(f"Notes: {notes}")
    lines += ["", urgency_line(days)]
    return "\n".join(lines)
