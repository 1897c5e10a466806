"""004: create markets table

Revision ID: 004
Revises: 003
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                  VARCHAR(64)         PRIMARY KEY DEFAULT gen_random_uuid()::text,
            trial_id            VARCHAR(64)         NOT NULL REFERENCES trials(id),
            question            TEXT                NOT NULL,
            yes_pool            DOUBLE PRECISION    NOT NULL,
            no_pool             DOUBLE PRECISION    NOT NULL,
            status              VARCHAR(20)         NOT NULL DEFAULT 'OPEN',
            resolved_outcome    VARCHAR(3),
            resolved_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_markets_trial         UNIQUE (trial_id),
            CONSTRAINT ck_markets_pools_pos     CHECK (yes_pool > 0 AND no_pool > 0),
            CONSTRAINT ck_markets_status        CHECK (
                status IN ('OPEN', 'CLOSED', 'RESOLVED', 'CANCELLED')
            ),
            CONSTRAINT ck_markets_outcome       CHECK (
                resolved_outcome IS NULL OR resolved_outcome IN ('YES', 'NO')
            ),
            CONSTRAINT ck_markets_outcome_set   CHECK (
                (status = 'RESOLVED') = (resolved_outcome IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_markets_status_created ON markets (status, created_at DESC, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE markets IS 'Binary YES/NO constant-product markets';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
