"""Async write repository for SurveySubmission.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  No business validation happens here; payloads
are validated by the engine before they reach the sink.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from survey_db.models.submission import SurveySubmission


class SubmissionRepository:
    """Async write operations on the ``survey_submissions`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        *,
        survey_id: str,
        survey_title: str | None,
        identity: str,
        responses: dict,
        completed_at: datetime,
    ) -> SurveySubmission:
        """Insert a submission row and return it.

        The caller must ``await db.commit()`` to persist.
        """
        row = SurveySubmission(
            survey_id=survey_id,
            survey_title=survey_title,
            identity=identity,
            responses=responses,
            completed_at=completed_at,
        )
        db.add(row)
        await db.flush()  # Populate id and created_at
        return row
