"""003: create trials table

Revision ID: 003
Revises: 002
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE trials (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            nct_id          VARCHAR(20)     NOT NULL,
            title           TEXT            NOT NULL,
            phase           VARCHAR(32),
            status          VARCHAR(32),
            sponsor         TEXT,
            conditions      TEXT[]          NOT NULL DEFAULT '{}',
            interventions   TEXT[]          NOT NULL DEFAULT '{}',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_trials_nct_id UNIQUE (nct_id)
        );
    """)
    op.execute("COMMENT ON TABLE trials IS 'Clinical trials underlying the markets';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trials CASCADE;")
