"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
External integrations (SMTP, LLM, Google Drive, SINAD, QIWA) are replaced
through FastAPI dependency overrides.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import hashlib
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from hrms.common.constants import UserRole
from hrms.config import settings
from hrms.database import Base, get_db
from hrms.main import create_app
from hrms.notifications.mailer import EmailDeliveryError, Mailer, get_mailer

# Import ALL model modules so every table is registered on Base.metadata
import hrms.auth.models  # noqa: F401
import hrms.common.audit  # noqa: F401
import hrms.compliance.models  # noqa: F401
import hrms.core_hr.models  # noqa: F401
import hrms.documents.models  # noqa: F401
import hrms.leave.models  # noqa: F401
import hrms.loans.models  # noqa: F401
import hrms.notifications.models  # noqa: F401
import hrms.payroll.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/BLOB ───────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from hrms.common.rate_limit import limiter
    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Fake mailer ─────────────────────────────────────────────────────

class FakeMailer(Mailer):
    """Records outgoing mail; addresses in ``failing`` raise like a dead SMTP relay."""

    def __init__(self) -> None:
        super().__init__(host="smtp.test", sender="hr@test.local")
        self.sent: list[tuple[str, str, str]] = []
        self.failing: set[str] = set()

    async def send(self, to, subject, body, *, from_name=None) -> None:
        if to in self.failing:
            raise EmailDeliveryError(f"Failed to send e-mail to {to}: relay refused")
        self.sent.append((to, subject, body))

    def recipients(self) -> list[str]:
        return [to for to, _, _ in self.sent]


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(mailer):
    """Create a fresh app instance with DB and mailer dependencies overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_mailer] = lambda: mailer
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_company(*, name_en: str = "OptiMind Trading Co.") -> dict:
    return dict(
        id=uuid.uuid4(),
        name_en=name_en,
        cr_number="1010123456",
        status="active",
        created_at=datetime.now(timezone.utc),
    )


def _make_employee(
    *,
    email: Optional[str] = None,
    first_name: str = "Test",
    last_name: str = "User",
    department: str = "Engineering",
    company_id: Optional[uuid.UUID] = None,
    manager_id: Optional[uuid.UUID] = None,
    nationality: str = "Saudi",
    hire_date: date = date(2023, 1, 15),
    basic_salary: Decimal = Decimal("10000"),
    **overrides,
) -> dict:
    code = uuid.uuid4().hex[:6].upper()
    data = dict(
        id=uuid.uuid4(),
        employee_code=f"OM-{code}",
        first_name=first_name,
        last_name=last_name,
        email=email or f"{first_name.lower()}.{code.lower()}@optimind.sa",
        department=department,
        job_title="Specialist",
        company_id=company_id,
        manager_id=manager_id,
        status="active",
        employment_type="full_time",
        nationality=nationality,
        hire_date=hire_date,
        national_id="1012345678",
        iban="SA0380000000608010167519",
        bank_name="Al Rajhi Bank",
        basic_salary=basic_salary,
        housing_allowance=Decimal("2500"),
        transport_allowance=Decimal("1000"),
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    data.update(overrides)
    return data


def _make_user(
    *,
    email: str,
    role: UserRole = UserRole.user,
    employee_id: Optional[uuid.UUID] = None,
    full_name: str = "Test User",
    **overrides,
) -> dict:
    data = dict(
        id=uuid.uuid4(),
        email=email,
        full_name=full_name,
        role=role.value,
        employee_id=employee_id,
        company_access=[],
        department_access=[],
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    data.update(overrides)
    return data


async def _add_employee(db: AsyncSession, **kw) -> dict:
    from hrms.core_hr.models import Employee

    data = _make_employee(**kw)
    db.add(Employee(**data))
    await db.flush()
    return data


async def _add_user(db: AsyncSession, **kw) -> dict:
    from hrms.auth.models import User

    data = _make_user(**kw)
    db.add(User(**data))
    await db.flush()
    return data


@pytest.fixture
async def company(db) -> dict:
    from hrms.core_hr.models import Company

    data = _make_company()
    db.add(Company(**data))
    await db.flush()
    return data


@pytest.fixture
async def manager_employee(db, company) -> dict:
    return await _add_employee(
        db, first_name="Khalid", last_name="Alharbi", email="khalid@optimind.sa",
        company_id=company["id"],
    )


@pytest.fixture
async def staff_employee(db, company, manager_employee) -> dict:
    """An employee reporting to ``manager_employee``."""
    return await _add_employee(
        db, first_name="Sara", last_name="Alqahtani", email="sara@optimind.sa",
        company_id=company["id"], manager_id=manager_employee["id"],
    )


@pytest.fixture
async def admin_user(db) -> dict:
    return await _add_user(db, email="admin@optimind.sa", role=UserRole.admin, full_name="HR Admin")


@pytest.fixture
async def manager_user(db, manager_employee) -> dict:
    return await _add_user(
        db, email=manager_employee["email"], employee_id=manager_employee["id"],
        full_name="Khalid Alharbi",
    )


@pytest.fixture
async def staff_user(db, staff_employee) -> dict:
    return await _add_user(
        db, email=staff_employee["email"], employee_id=staff_employee["id"],
        full_name="Sara Alqahtani",
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole = UserRole.user,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def _auth_headers_for(db: AsyncSession, user: dict) -> dict[str, str]:
    """Bearer headers for *user* with a valid session persisted in the DB."""
    from hrms.auth.models import UserSession

    token = create_access_token(user["id"], UserRole(user["role"]))
    db.add(
        UserSession(
            id=uuid.uuid4(),
            user_id=user["id"],
            token_hash=hashlib.sha256(token.encode()).hexdigest(),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
            is_revoked=False,
            created_at=datetime.now(timezone.utc),
        ),
    )
    await db.flush()
    await db.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(db, admin_user) -> dict[str, str]:
    return await _auth_headers_for(db, admin_user)


@pytest.fixture
async def manager_headers(db, manager_user) -> dict[str, str]:
    return await _auth_headers_for(db, manager_user)


@pytest.fixture
async def staff_headers(db, staff_user) -> dict[str, str]:
    return await _auth_headers_for(db, staff_user)


@pytest.fixture
def mock_google_oauth():
    """Patch verify_google_token to return a fake Google identity."""

    def _mock(email: str = "sara@optimind.sa", name: str = "Sara Alqahtani"):
        google_info = {
            "email": email,
            "name": name,
            "google_id": f"google-{uuid.uuid4().hex[:12]}",
        }
        return patch(
            "hrms.auth.router.verify_google_token",
            new_callable=AsyncMock,
            return_value=google_info,
        )

    return _mock
