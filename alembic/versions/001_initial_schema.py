"""001 – Initial schema: organisation, access, leave, payroll, compliance, documents.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+03:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. companies ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE companies (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name_en     VARCHAR(255) NOT NULL,
            name_ar     VARCHAR(255),
            cr_number   VARCHAR(50),
            status      VARCHAR(20) NOT NULL DEFAULT 'active',
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 2. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_code       VARCHAR(50)  NOT NULL UNIQUE,
            first_name          VARCHAR(100) NOT NULL,
            last_name           VARCHAR(100) NOT NULL,
            full_name_ar        VARCHAR(255),
            email               VARCHAR(255) NOT NULL UNIQUE,
            phone               VARCHAR(30),
            department          VARCHAR(100),
            job_title           VARCHAR(150),
            company_id          UUID REFERENCES companies(id),
            manager_id          UUID REFERENCES employees(id),
            status              VARCHAR(20) NOT NULL DEFAULT 'active',
            employment_type     VARCHAR(20) NOT NULL DEFAULT 'full_time',
            nationality         VARCHAR(50),
            hire_date           DATE,
            national_id         VARCHAR(20),
            iqama_number        VARCHAR(20),
            iban                VARCHAR(34),
            bank_name           VARCHAR(100),
            basic_salary        NUMERIC(12,2) NOT NULL DEFAULT 0,
            housing_allowance   NUMERIC(12,2) NOT NULL DEFAULT 0,
            transport_allowance NUMERIC(12,2) NOT NULL DEFAULT 0,
            gosi_salary_basis   NUMERIC(12,2),
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_employees_manager_id ON employees(manager_id)")
    op.execute("CREATE INDEX ix_employees_company_id ON employees(company_id)")

    # ── 3. users / sessions / roles ───────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            email             VARCHAR(255) NOT NULL UNIQUE,
            full_name         VARCHAR(255) NOT NULL DEFAULT '',
            role              VARCHAR(20)  NOT NULL DEFAULT 'user',
            employee_id       UUID REFERENCES employees(id) ON DELETE SET NULL,
            company_access    JSONB DEFAULT '[]'::jsonb,
            department_access JSONB DEFAULT '[]'::jsonb,
            google_id         VARCHAR(100),
            is_active         BOOLEAN NOT NULL DEFAULT TRUE,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE user_sessions (
            id                 UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id            UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash         VARCHAR(512) NOT NULL,
            refresh_token_hash VARCHAR(512),
            ip_address         INET,
            user_agent         TEXT,
            expires_at         TIMESTAMPTZ NOT NULL,
            is_revoked         BOOLEAN NOT NULL DEFAULT FALSE,
            created_at         TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_user_sessions_token_hash ON user_sessions(token_hash)")
    op.execute("CREATE INDEX ix_user_sessions_refresh_token_hash ON user_sessions(refresh_token_hash)")
    op.execute("""
        CREATE TABLE roles (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            role_code   VARCHAR(50)  NOT NULL UNIQUE,
            role_name   VARCHAR(100) NOT NULL,
            permissions JSONB NOT NULL DEFAULT '[]'::jsonb,
            status      VARCHAR(20) NOT NULL DEFAULT 'active'
        )
    """)
    op.execute("""
        CREATE TABLE role_assignments (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_email  VARCHAR(255) NOT NULL,
            role_id     UUID NOT NULL REFERENCES roles(id) ON DELETE CASCADE,
            company_id  UUID REFERENCES companies(id),
            status      VARCHAR(20) NOT NULL DEFAULT 'active',
            assigned_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_role_assignments_user_email ON role_assignments(user_email)")

    # ── 4. change_logs / notifications ────────────────────────────────────
    op.execute("""
        CREATE TABLE change_logs (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            entity_name      VARCHAR(100) NOT NULL,
            entity_id        VARCHAR(100) NOT NULL,
            change_type      VARCHAR(50)  NOT NULL,
            changed_by_email VARCHAR(255),
            changed_by_name  VARCHAR(255),
            old_values       JSONB,
            new_values       JSONB,
            change_summary   TEXT,
            notes            TEXT,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_change_logs_entity ON change_logs(entity_name, entity_id)")
    op.execute("CREATE INDEX ix_change_logs_created_at ON change_logs(created_at)")
    op.execute("""
        CREATE TABLE notifications (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_email          VARCHAR(255) NOT NULL,
            title               VARCHAR(255) NOT NULL,
            message             TEXT NOT NULL,
            type                VARCHAR(30) NOT NULL DEFAULT 'info',
            category            VARCHAR(50) NOT NULL DEFAULT 'general',
            priority            VARCHAR(20) NOT NULL DEFAULT 'normal',
            action_url          VARCHAR(500),
            related_entity_type VARCHAR(100),
            related_entity_id   VARCHAR(100),
            is_read             BOOLEAN NOT NULL DEFAULT FALSE,
            read_at             TIMESTAMPTZ,
            email_sent          BOOLEAN NOT NULL DEFAULT FALSE,
            email_sent_at       TIMESTAMPTZ,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_notifications_user_email_is_read ON notifications(user_email, is_read)")

    # ── 5. leave ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE public_holidays (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name         VARCHAR(150) NOT NULL,
            name_ar      VARCHAR(150),
            date         DATE NOT NULL,
            year         INTEGER NOT NULL,
            holiday_type VARCHAR(20) NOT NULL DEFAULT 'national',
            is_recurring BOOLEAN NOT NULL DEFAULT FALSE,
            is_active    BOOLEAN NOT NULL DEFAULT TRUE,
            description  TEXT,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_public_holidays_year ON public_holidays(year)")
    op.execute("""
        CREATE TABLE leave_requests (
            id                    UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id           UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            leave_type            VARCHAR(30) NOT NULL,
            start_date            DATE NOT NULL,
            end_date              DATE NOT NULL,
            total_days            NUMERIC(5,1) NOT NULL,
            reason                TEXT,
            status                VARCHAR(20) NOT NULL DEFAULT 'pending',
            current_approver_role VARCHAR(20) NOT NULL DEFAULT 'manager',
            manager_status        VARCHAR(20) NOT NULL DEFAULT 'pending',
            manager_approved_by   VARCHAR(255),
            manager_approval_date DATE,
            manager_comments      TEXT,
            hr_status             VARCHAR(20) NOT NULL DEFAULT 'pending',
            hr_approved_by        VARCHAR(255),
            hr_approval_date      DATE,
            hr_comments           TEXT,
            rejection_reason      TEXT,
            created_at            TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at            TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CHECK (end_date >= start_date)
        )
    """)
    op.execute("CREATE INDEX ix_leave_requests_employee_id ON leave_requests(employee_id)")
    op.execute("CREATE INDEX ix_leave_requests_status ON leave_requests(status)")
    op.execute("""
        CREATE TABLE leave_balances (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id     UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            leave_type      VARCHAR(30) NOT NULL,
            year            INTEGER NOT NULL,
            total_entitled  NUMERIC(6,2) NOT NULL DEFAULT 0,
            used            NUMERIC(6,2) NOT NULL DEFAULT 0,
            pending         NUMERIC(6,2) NOT NULL DEFAULT 0,
            remaining       NUMERIC(6,2) NOT NULL DEFAULT 0,
            carried_forward NUMERIC(6,2) NOT NULL DEFAULT 0,
            CONSTRAINT uq_leave_balance_emp_type_year UNIQUE (employee_id, leave_type, year)
        )
    """)
    op.execute("""
        CREATE TABLE leave_accrual_policies (
            id                      UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            policy_name             VARCHAR(150) NOT NULL,
            leave_type              VARCHAR(30)  NOT NULL,
            annual_entitlement      NUMERIC(5,2) NOT NULL,
            monthly_accrual_rate    NUMERIC(5,2) NOT NULL,
            accrual_frequency       VARCHAR(20)  NOT NULL DEFAULT 'monthly',
            probation_period_months INTEGER NOT NULL DEFAULT 0,
            accrue_during_probation BOOLEAN NOT NULL DEFAULT TRUE,
            max_carryover           NUMERIC(5,2) NOT NULL DEFAULT 0,
            carryover_expiry_months INTEGER NOT NULL DEFAULT 0,
            accrue_while_on_leave   BOOLEAN NOT NULL DEFAULT TRUE,
            prorate_for_new_hires   BOOLEAN NOT NULL DEFAULT TRUE,
            employment_types        JSONB NOT NULL DEFAULT '[]'::jsonb,
            is_active               BOOLEAN NOT NULL DEFAULT TRUE,
            effective_from          DATE,
            notes                   TEXT,
            created_at              TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE leave_accruals (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id       UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            policy_id         UUID REFERENCES leave_accrual_policies(id) ON DELETE SET NULL,
            leave_type        VARCHAR(30) NOT NULL,
            accrual_period    VARCHAR(7)  NOT NULL,
            accrual_date      DATE NOT NULL,
            days_accrued      NUMERIC(5,2) NOT NULL,
            balance_before    NUMERIC(6,2) NOT NULL,
            balance_after     NUMERIC(6,2) NOT NULL,
            accrual_rate      NUMERIC(5,2) NOT NULL,
            employment_months INTEGER NOT NULL,
            is_prorated       BOOLEAN NOT NULL DEFAULT FALSE,
            proration_factor  NUMERIC(5,4) NOT NULL DEFAULT 1,
            notes             TEXT,
            processed_by      VARCHAR(255),
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_leave_accruals_period ON leave_accruals(accrual_period)")

    # ── 6. loans / payroll ────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE loan_requests (
            id                    UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id           UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            loan_type             VARCHAR(30)   NOT NULL,
            amount                NUMERIC(12,2) NOT NULL,
            installments          INTEGER NOT NULL DEFAULT 1,
            monthly_deduction     NUMERIC(12,2) NOT NULL DEFAULT 0,
            remaining_balance     NUMERIC(12,2),
            reason                TEXT,
            status                VARCHAR(20) NOT NULL DEFAULT 'pending',
            current_approver_role VARCHAR(20) NOT NULL DEFAULT 'manager',
            manager_status        VARCHAR(20) NOT NULL DEFAULT 'pending',
            manager_approved_by   VARCHAR(255),
            manager_approval_date DATE,
            manager_comments      TEXT,
            hr_status             VARCHAR(20) NOT NULL DEFAULT 'pending',
            hr_approved_by        VARCHAR(255),
            hr_approval_date      DATE,
            hr_comments           TEXT,
            senior_management_status        VARCHAR(20) NOT NULL DEFAULT 'pending',
            senior_management_approved_by   VARCHAR(255),
            senior_management_approval_date DATE,
            senior_management_comments      TEXT,
            rejection_reason      TEXT,
            disbursement_date     DATE,
            created_at            TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_loan_requests_employee_id ON loan_requests(employee_id)")
    op.execute("""
        CREATE TABLE payrolls (
            id                     UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id            UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            month                  VARCHAR(7) NOT NULL,
            basic_salary           NUMERIC(12,2) NOT NULL DEFAULT 0,
            housing_allowance      NUMERIC(12,2) NOT NULL DEFAULT 0,
            transport_allowance    NUMERIC(12,2) NOT NULL DEFAULT 0,
            other_fixed_allowances NUMERIC(12,2) NOT NULL DEFAULT 0,
            overtime_pay           NUMERIC(12,2) NOT NULL DEFAULT 0,
            bonus                  NUMERIC(12,2) NOT NULL DEFAULT 0,
            commission             NUMERIC(12,2) NOT NULL DEFAULT 0,
            gross_salary           NUMERIC(12,2) NOT NULL DEFAULT 0,
            gosi_employee          NUMERIC(12,2) NOT NULL DEFAULT 0,
            gosi_employer          NUMERIC(12,2) NOT NULL DEFAULT 0,
            gosi_calculation_base  NUMERIC(12,2) NOT NULL DEFAULT 0,
            loan_deduction         NUMERIC(12,2) NOT NULL DEFAULT 0,
            advance_deduction      NUMERIC(12,2) NOT NULL DEFAULT 0,
            absence_deduction      NUMERIC(12,2) NOT NULL DEFAULT 0,
            other_deductions       NUMERIC(12,2) NOT NULL DEFAULT 0,
            total_deductions       NUMERIC(12,2) NOT NULL DEFAULT 0,
            net_salary             NUMERIC(12,2) NOT NULL DEFAULT 0,
            working_days           INTEGER NOT NULL DEFAULT 30,
            present_days           INTEGER NOT NULL DEFAULT 30,
            absent_days            INTEGER NOT NULL DEFAULT 0,
            unpaid_leave_days      INTEGER NOT NULL DEFAULT 0,
            status                 VARCHAR(20) NOT NULL DEFAULT 'calculated',
            payment_method         VARCHAR(20) NOT NULL DEFAULT 'bank_transfer',
            payment_date           DATE,
            payment_reference      VARCHAR(100),
            processed_by           VARCHAR(255),
            created_at             TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_payroll_employee_month UNIQUE (employee_id, month)
        )
    """)
    op.execute("CREATE INDEX ix_payrolls_month_status ON payrolls(month, status)")
    op.execute("""
        CREATE TABLE gosi_reports (
            id                          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            report_month                VARCHAR(7) NOT NULL,
            company_id                  UUID REFERENCES companies(id),
            report_type                 VARCHAR(30) NOT NULL DEFAULT 'monthly_contribution',
            total_employees             INTEGER NOT NULL DEFAULT 0,
            saudi_employees             INTEGER NOT NULL DEFAULT 0,
            non_saudi_employees         INTEGER NOT NULL DEFAULT 0,
            total_wages                 NUMERIC(12,2) NOT NULL DEFAULT 0,
            total_employee_contribution NUMERIC(12,2) NOT NULL DEFAULT 0,
            total_employer_contribution NUMERIC(12,2) NOT NULL DEFAULT 0,
            total_contribution          NUMERIC(12,2) NOT NULL DEFAULT 0,
            occupational_hazards        NUMERIC(12,2) NOT NULL DEFAULT 0,
            saned_contribution          NUMERIC(12,2) NOT NULL DEFAULT 0,
            status                      VARCHAR(20) NOT NULL DEFAULT 'generated',
            payment_status              VARCHAR(20) NOT NULL DEFAULT 'pending',
            due_date                    DATE NOT NULL,
            generated_by                VARCHAR(255),
            created_at                  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_gosi_reports_report_month ON gosi_reports(report_month)")

    # ── 7. compliance ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE sinad_records (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id       UUID REFERENCES companies(id),
            submission_month VARCHAR(7) NOT NULL,
            submission_type  VARCHAR(20) NOT NULL DEFAULT 'regular',
            total_employees  INTEGER NOT NULL DEFAULT 0,
            total_wages      NUMERIC(14,2) NOT NULL DEFAULT 0,
            status           VARCHAR(20) NOT NULL DEFAULT 'draft',
            submission_date  DATE,
            payment_date     DATE,
            bank_name        VARCHAR(100),
            file_reference   VARCHAR(100),
            compliance_score INTEGER,
            approval_date    DATE,
            rejection_reason TEXT,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_sinad_records_month ON sinad_records(submission_month)")
    op.execute("""
        CREATE TABLE qiwa_records (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id         UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            iqama_number        VARCHAR(20),
            border_number       VARCHAR(20),
            work_permit_number  VARCHAR(50),
            job_title_ar        VARCHAR(150),
            occupation_code     VARCHAR(20),
            contract_type       VARCHAR(30),
            contract_start_date DATE,
            contract_end_date   DATE,
            qiwa_id             VARCHAR(50),
            registration_status VARCHAR(20) NOT NULL DEFAULT 'pending',
            registration_date   DATE,
            work_permit_expiry  DATE,
            last_sync_date      TIMESTAMPTZ,
            sync_status         VARCHAR(20) NOT NULL DEFAULT 'pending',
            sync_error          TEXT,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_qiwa_records_employee_id ON qiwa_records(employee_id)")

    # ── 8. documents ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE documents (
            id                     UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            document_name          VARCHAR(255) NOT NULL,
            document_type          VARCHAR(50)  NOT NULL DEFAULT 'other',
            company_id             UUID REFERENCES companies(id),
            employee_id            UUID REFERENCES employees(id) ON DELETE CASCADE,
            file_url               TEXT,
            issue_date             DATE,
            expiry_date            DATE,
            alert_days             INTEGER NOT NULL DEFAULT 30,
            status                 VARCHAR(20) NOT NULL DEFAULT 'active',
            notes                  TEXT,
            ai_tags                TEXT,
            ai_description         TEXT,
            ai_priority            VARCHAR(20),
            ai_compliance_category VARCHAR(50),
            created_at             TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_documents_status_expiry ON documents(status, expiry_date)")
    op.execute("CREATE INDEX ix_documents_employee_id ON documents(employee_id)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "documents",
        "qiwa_records",
        "sinad_records",
        "gosi_reports",
        "payrolls",
        "loan_requests",
        "leave_accruals",
        "leave_accrual_policies",
        "leave_balances",
        "leave_requests",
        "public_holidays",
        "notifications",
        "change_logs",
        "role_assignments",
        "roles",
        "user_sessions",
        "users",
        "employees",
        "companies",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
