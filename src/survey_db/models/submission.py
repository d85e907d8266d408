"""SurveySubmission ORM model — one row per completed survey.

The whole response map is kept in a single JSONB column, keyed by
question id exactly as it appears on the wire
(``{qid: {"value": ..., "comment"?: ..., "timestamp": "ISO8601"}}``),
so a submission can be replayed without touching other tables.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from survey_db.models.base import Base


class SurveySubmission(Base):
    """One row per submitted survey.

    Submissions are append-only: resubmitting the same survey creates a
    new row.
    """

    __tablename__ = "survey_submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Survey ---
    # "unknown" when the definition carried no id
    survey_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    survey_title: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Submitter ---
    # Resolved display identity (preferred name, email, name, or "unknown")
    identity: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # --- Answers ---
    responses: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

    # --- Timestamps ---
    # When the respondent finished (client clock), not when the row landed
    completed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_survey_completed", "survey_id", "completed_at"),
        Index("ix_submission_responses_gin", "responses", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return (
            f"<SurveySubmission(id={self.id!s}, survey={self.survey_id!r}, "
            f"identity={self.identity!r})>"
        )
