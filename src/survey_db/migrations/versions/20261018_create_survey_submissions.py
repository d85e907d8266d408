"""Create the survey_submissions table.

One row per submitted survey, with the full response map in a JSONB
column and indexes for per-survey listing and JSONB path lookups.

Revision ID: 20261018_submissions
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261018_submissions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "survey_submissions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("survey_id", sa.Text(), nullable=False),
        sa.Column("survey_title", sa.Text(), nullable=True),
        sa.Column("identity", sa.Text(), nullable=False),
        sa.Column(
            "responses", JSONB(), nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("completed_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_survey_submissions_survey_id", "survey_submissions", ["survey_id"])
    op.create_index("ix_survey_submissions_identity", "survey_submissions", ["identity"])
    op.create_index("ix_survey_completed", "survey_submissions", ["survey_id", "completed_at"])
    # --- GIN index for JSONB path lookups on answers ---
    op.create_index(
        "ix_submission_responses_gin", "survey_submissions", ["responses"],
        postgresql_using="gin",
    )


def downgrade() -> None:
    op.drop_index("ix_submission_responses_gin", table_name="survey_submissions")
    op.drop_index("ix_survey_completed", table_name="survey_submissions")
    op.drop_index("ix_survey_submissions_identity", table_name="survey_submissions")
    op.drop_index("ix_survey_submissions_survey_id", table_name="survey_submissions")
    op.drop_table("survey_submissions")
