"""002: create user_profiles table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE user_profiles (
            id                    UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id               VARCHAR(128)    NOT NULL,
            role                  VARCHAR(16)     NOT NULL DEFAULT 'client',
            name                  VARCHAR(255),
            email                 VARCHAR(255),
            phone                 VARCHAR(64),
            avatar_url            TEXT,
            balance               NUMERIC(14,2)   NOT NULL DEFAULT 0,
            total_loaded          NUMERIC(14,2)   NOT NULL DEFAULT 0,
            withdrawable_balance  NUMERIC(14,2)   NOT NULL DEFAULT 0,
            status                VARCHAR(16)     NOT NULL DEFAULT 'active',
            agent_id              UUID            REFERENCES user_profiles(id) ON DELETE SET NULL,
            google_contact_id     VARCHAR(255),
            metadata              JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at            TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at            TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_profiles_user_id         UNIQUE (user_id),
            CONSTRAINT ck_user_profiles_role            CHECK (role IN ('admin', 'agent', 'client')),
            CONSTRAINT ck_user_profiles_status          CHECK (status IN ('active', 'inactive')),
            CONSTRAINT ck_user_profiles_balance         CHECK (balance >= 0),
            CONSTRAINT ck_user_profiles_total_loaded    CHECK (total_loaded >= 0),
            CONSTRAINT ck_user_profiles_withdrawable    CHECK (
                withdrawable_balance >= 0 AND withdrawable_balance <= total_loaded
            )
        );
    """)
    op.execute("CREATE INDEX idx_user_profiles_agent ON user_profiles (agent_id);")
    op.execute("""
        CREATE TRIGGER trg_user_profiles_updated_at
            BEFORE UPDATE ON user_profiles
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute(
        "COMMENT ON TABLE user_profiles IS "
        "'Principal profiles; balance columns change only through the credit ledger';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_profiles CASCADE;")
