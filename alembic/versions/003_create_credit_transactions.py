"""003: create credit_transactions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE credit_transactions (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            client_id       UUID            NOT NULL REFERENCES user_profiles(id),
            agent_id        UUID            NOT NULL REFERENCES user_profiles(id),
            amount          NUMERIC(14,2)   NOT NULL,
            type            VARCHAR(16)     NOT NULL,
            receipt_number  VARCHAR(128),
            notes           TEXT,
            status          VARCHAR(16)     NOT NULL DEFAULT 'completed',
            metadata        JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_credit_transactions_amount  CHECK (amount > 0),
            CONSTRAINT ck_credit_transactions_type    CHECK (type IN ('load', 'withdraw', 'transfer')),
            CONSTRAINT ck_credit_transactions_status  CHECK (status IN ('pending', 'completed', 'cancelled'))
        );
    """)
    op.execute(
        "CREATE INDEX idx_credit_transactions_client_time "
        "ON credit_transactions (client_id, created_at DESC, id DESC);"
    )
    op.execute(
        "CREATE INDEX idx_credit_transactions_agent_time "
        "ON credit_transactions (agent_id, created_at DESC, id DESC);"
    )
    # Append-only: no updated_at, no trigger
    op.execute(
        "COMMENT ON TABLE credit_transactions IS "
        "'Append-only ledger of balance changes, one row per accepted operation';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS credit_transactions CASCADE;")
