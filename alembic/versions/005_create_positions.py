"""005: create positions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            id              VARCHAR(64)         PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id         VARCHAR(64)         NOT NULL REFERENCES users(id),
            market_id       VARCHAR(64)         NOT NULL REFERENCES markets(id),
            yes_shares      DOUBLE PRECISION    NOT NULL DEFAULT 0,
            no_shares       DOUBLE PRECISION    NOT NULL DEFAULT 0,
            total_invested  DOUBLE PRECISION    NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_positions_user_market UNIQUE (user_id, market_id),
            CONSTRAINT ck_positions_yes_non_neg CHECK (yes_shares >= 0),
            CONSTRAINT ck_positions_no_non_neg  CHECK (no_shares >= 0),
            CONSTRAINT ck_positions_invested    CHECK (total_invested >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_positions_market_user ON positions (market_id, user_id);")
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
