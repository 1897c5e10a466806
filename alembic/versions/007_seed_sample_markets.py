"""007: seed sample trials and markets

Revision ID: 007
Revises: 006
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


_TRIALS = [
    (
        "NCT04368728",
        "Study of Drug X for Treatment of Advanced Lung Cancer",
        "RECRUITING",
        "Pharma Inc.",
        ["Non-Small Cell Lung Cancer", "Lung Neoplasms"],
        ["Drug X", "Placebo"],
    ),
    (
        "NCT05123456",
        "Efficacy of Treatment Y in Type 2 Diabetes",
        "ACTIVE_NOT_RECRUITING",
        "BioHealth Corp",
        ["Type 2 Diabetes Mellitus"],
        ["Treatment Y"],
    ),
    (
        "NCT04987654",
        "Novel Therapy Z for Alzheimer's Disease",
        "RECRUITING",
        "NeuroScience Ltd",
        ["Alzheimer Disease", "Dementia"],
        ["Therapy Z", "Standard Care"],
    ),
    (
        "NCT05111222",
        "Immunotherapy A for Melanoma",
        "COMPLETED",
        "OncoPharm",
        ["Melanoma", "Skin Cancer"],
        ["Immunotherapy A"],
    ),
    (
        "NCT05333444",
        "Cardiovascular Outcomes with Drug B",
        "RECRUITING",
        "HeartHealth Inc",
        ["Coronary Artery Disease", "Heart Failure"],
        ["Drug B", "Placebo"],
    ),
]


def _sql_str(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _sql_array(values: list[str]) -> str:
    return "ARRAY[" + ", ".join(_sql_str(v) for v in values) + "]::TEXT[]"


def upgrade() -> None:
    for nct_id, title, status, sponsor, conditions, interventions in _TRIALS:
        op.execute(f"""
            INSERT INTO trials (nct_id, title, phase, status, sponsor, conditions, interventions)
            VALUES ({_sql_str(nct_id)}, {_sql_str(title)}, 'Phase 3', {_sql_str(status)},
                    {_sql_str(sponsor)}, {_sql_array(conditions)}, {_sql_array(interventions)})
            ON CONFLICT (nct_id) DO NOTHING;
        """)
        question = f"Will {title} receive FDA approval?"
        op.execute(f"""
            INSERT INTO markets (trial_id, question, yes_pool, no_pool, status)
            SELECT id, {_sql_str(question)}, 1000, 1000, 'OPEN'
            FROM trials WHERE nct_id = {_sql_str(nct_id)}
            ON CONFLICT (trial_id) DO NOTHING;
        """)


def downgrade() -> None:
    nct_ids = ", ".join(_sql_str(t[0]) for t in _TRIALS)
    op.execute(f"""
        DELETE FROM markets WHERE trial_id IN (SELECT id FROM trials WHERE nct_id IN ({nct_ids}));
    """)
    op.execute(f"DELETE FROM trials WHERE nct_id IN ({nct_ids});")
