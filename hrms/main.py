"""OptiMindHR — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hrms.audit.router import router as audit_router
from hrms.auth.router import router as auth_router
from hrms.common.exceptions import register_exception_handlers
from hrms.common.rate_limit import limiter
from hrms.compliance.router import router as compliance_router
from hrms.config import settings
from hrms.core_hr.router import router as access_router
from hrms.dashboard.router import router as dashboard_router
from hrms.database import engine
from hrms.documents.router import router as documents_router
from hrms.leave.router import router as leave_router
from hrms.loans.router import router as loans_router
from hrms.loans.router import workflow_router as loan_workflow_router
from hrms.notifications.router import router as notifications_router
from hrms.payroll.router import router as payroll_router
from hrms.reports.router import router as reports_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("%s starting (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.APP_NAME,
        description="HR management backend: access control, leave, payroll, notifications, compliance",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(access_router, prefix="/api/v1/access", tags=["access"])
    app.include_router(loans_router, prefix="/api/v1/access", tags=["loans"])
    app.include_router(loan_workflow_router, prefix="/api/v1/loans", tags=["loans"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])
    app.include_router(audit_router, prefix="/api/v1/audit", tags=["audit"])
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["reports"])
    app.include_router(payroll_router, prefix="/api/v1/payroll", tags=["payroll"])
    app.include_router(compliance_router, prefix="/api/v1/compliance", tags=["compliance"])
    app.include_router(documents_router, prefix="/api/v1/documents", tags=["documents"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["dashboard"])

    return app


app = create_app()
