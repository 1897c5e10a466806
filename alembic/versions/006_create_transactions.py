"""006: create transactions table

Revision ID: 006
Revises: 005
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id          VARCHAR(64)         PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id     VARCHAR(64)         NOT NULL REFERENCES users(id),
            market_id   VARCHAR(64)         NOT NULL REFERENCES markets(id),
            type        VARCHAR(10)         NOT NULL,
            shares      DOUBLE PRECISION    NOT NULL,
            price       DOUBLE PRECISION    NOT NULL,
            amount      DOUBLE PRECISION    NOT NULL,
            created_at  TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_type CHECK (
                type IN ('BUY_YES', 'BUY_NO', 'SELL_YES', 'SELL_NO')
            ),
            CONSTRAINT ck_transactions_positive CHECK (shares > 0 AND amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_transactions_user_created ON transactions (user_id, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_transactions_market_created ON transactions (market_id, created_at DESC, id DESC);")
    op.execute("COMMENT ON TABLE transactions IS 'Append-only trade log';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
