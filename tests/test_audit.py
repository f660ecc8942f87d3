"""Change-log tests — entry recording and admin fan-out."""

from __future__ import annotations

from httpx import AsyncClient
from sqlalchemy import select

from hrms.common.audit import ChangeLog
from hrms.common.constants import UserRole
from hrms.notifications.models import Notification
from tests.conftest import TestSessionFactory, _add_user

PAYLOAD = {
    "entity_name": "Employee",
    "entity_id": "OM-1001",
    "change_type": "update",
    "old_values": {"department": "Finance"},
    "new_values": {"department": "Engineering"},
    "summary": "Moved to Engineering",
}


async def test_log_change_notifies_admins(client: AsyncClient, db, staff_headers, mailer):
    await _add_user(db, email="hr2@optimind.sa", role=UserRole.admin, full_name="Second Admin")
    await _add_user(db, email="old-hr@optimind.sa", role=UserRole.admin, is_active=False)
    await db.commit()
    mailer.failing.add("hr2@optimind.sa")

    resp = await client.post("/api/v1/audit/changes", json=PAYLOAD, headers=staff_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["notifications_sent"] == 1
    assert body["emails_sent"] == 0

    async with TestSessionFactory() as session:
        entry = (await session.execute(select(ChangeLog))).scalars().one()
        assert entry.changed_by_email == "sara@optimind.sa"
        assert entry.changed_by_name == "Sara Alqahtani"
        assert entry.new_values == {"department": "Engineering"}

        notes = (await session.execute(select(Notification))).scalars().all()
        assert [n.user_email for n in notes] == ["hr2@optimind.sa"]
        assert notes[0].title == "System Change: Employee"
        assert notes[0].type == "system_change"


async def test_log_change_emails_admin(client: AsyncClient, admin_headers, mailer):
    resp = await client.post("/api/v1/audit/changes", json=PAYLOAD, headers=admin_headers)
    assert resp.json()["emails_sent"] == 1
    to, subject, body = mailer.sent[0]
    assert to == "admin@optimind.sa"
    assert subject == "System Change Alert: Employee"
    assert "Changed By: HR Admin" in body


async def test_log_change_requires_summary(client: AsyncClient, admin_headers):
    resp = await client.post(
        "/api/v1/audit/changes", json={**PAYLOAD, "summary": ""}, headers=admin_headers,
    )
    assert resp.status_code == 400
    assert "summary" in resp.json()["errors"]
