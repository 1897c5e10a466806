"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              VARCHAR(64)         PRIMARY KEY DEFAULT gen_random_uuid()::text,
            email           VARCHAR(255)        NOT NULL,
            name            VARCHAR(100),
            password_hash   VARCHAR(255)        NOT NULL,
            balance         DOUBLE PRECISION    NOT NULL DEFAULT 1000,
            is_admin        BOOLEAN             NOT NULL DEFAULT FALSE,
            is_active       BOOLEAN             NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email           UNIQUE (email),
            CONSTRAINT ck_users_balance_non_neg CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE users IS 'Traders - auth plus play-money balance';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
