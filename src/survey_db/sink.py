"""SqlSubmissionSink — stores each submission as a row in PostgreSQL.

Implements the engine's :class:`SubmissionSink` interface, so it can be
passed straight to ``SurveyEngine(sink=...)``.  Each ``save`` runs in its
own session and transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from survey_db.engine import get_session_factory
from survey_db.repository import SubmissionRepository
from survey_engine.interfaces import SubmissionSink
from survey_engine.models.response import SubmissionPayload

logger = logging.getLogger(__name__)


class SqlSubmissionSink(SubmissionSink):
    """Persist submissions through :class:`SubmissionRepository`.

    Args:
        session_factory: optional factory override (tests, multi-DB
            setups).  Defaults to the process-wide factory, created lazily
            on first save.
        repository: optional repository override.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        repository: SubmissionRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repo = repository or SubmissionRepository()

    async def save(self, payload: SubmissionPayload) -> dict:
        """Insert one row and return ``{"id": <uuid str>}``."""
        factory = self._session_factory or get_session_factory()
        wire = payload.to_wire()
        async with factory() as db:
            row = await self._repo.create(
                db,
                survey_id=payload.survey_id,
                survey_title=payload.survey_title,
                identity=payload.identity,
                responses=wire["responses"],
                completed_at=payload.completed_at,
            )
            await db.commit()
        logger.info("Stored submission %s for survey %s", row.id, payload.survey_id)
        return {"id": str(row.id)}
