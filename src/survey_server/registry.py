"""SessionRegistry — hosts one SurveyEngine per (user_id, session_id).

Engines live in process memory.  When ``resume_dir`` is configured each
session's resume slots are written under
``<resume_dir>/<sha256(user_id, session_id)>/``, so recreating a session
after a restart resumes where the respondent left off.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from survey_engine.engine import SurveyEngine
from survey_engine.interfaces import DefinitionTransport, ResumeStorage, SubmissionSink
from survey_engine.loader import FileTransport, HttpTransport
from survey_engine.models.response import utc_now
from survey_engine.models.session import SessionInfo
from survey_engine.storage import FileResumeStorage, InMemoryResumeStorage

from survey_server.config import ServerSettings

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    engine: SurveyEngine
    source: str
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


class SessionRegistry:
    """In-memory map of hosted survey sessions.

    Args:
        settings: server settings (default source, resume dir).
        transport: optional transport override for every session; by
            default http(s) sources use :class:`HttpTransport` and
            everything else :class:`FileTransport`.
        sink: submission sink shared by every session.
    """

    def __init__(
        self,
        settings: ServerSettings,
        *,
        transport: DefinitionTransport | None = None,
        sink: SubmissionSink | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._sink = sink
        self._entries: dict[tuple[str, str], _Entry] = {}
        # keys whose definition is still loading
        self._pending: set[tuple[str, str]] = set()

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create(
        self, user_id: str, session_id: str, source: str | None = None,
    ) -> SessionInfo:
        """Load a survey into a new engine for this user/session.

        Raises:
            ValueError: the session already exists, or no source is given
                and no default is configured.
            LoadError: the definition could not be loaded.
        """
        key = (user_id, session_id)
        if key in self._entries or key in self._pending:
            raise ValueError(f"Session already exists: session_id={session_id}")
        source = source or self._settings.survey_source
        if not source:
            raise ValueError("No survey source given and SURVEY_SOURCE is not set")

        self._pending.add(key)
        try:
            engine = SurveyEngine(
                transport=self._transport or self._transport_for(source),
                storage=self._storage_for(user_id, session_id),
                sink=self._sink,
            )
            await engine.load_survey(source)
            self._entries[key] = _Entry(engine=engine, source=source)
        finally:
            self._pending.discard(key)

        logger.info("Created survey session %s for user %s from %s", session_id, user_id, source)
        return self.info(user_id, session_id)

    def get(self, user_id: str, session_id: str) -> SurveyEngine:
        """Return the engine for this session and mark it as active.

        Raises:
            ValueError: the session is not hosted here.
        """
        entry = self._entry(user_id, session_id)
        entry.updated_at = utc_now()
        return entry.engine

    def info(self, user_id: str, session_id: str) -> SessionInfo:
        entry = self._entry(user_id, session_id)
        engine = entry.engine
        definition = engine.definition
        return SessionInfo(
            user_id=user_id,
            session_id=session_id,
            survey_id=definition.id if definition else None,
            survey_title=definition.title if definition else "",
            current_step_index=engine.current_step_index,
            total_steps=engine.total_steps,
            response_count=len(engine.get_all_responses()),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    def list_for_user(self, user_id: str) -> list[SessionInfo]:
        """Sessions hosted for ``user_id``, most recently active first."""
        infos = [
            self.info(uid, sid) for (uid, sid) in self._entries if uid == user_id
        ]
        infos.sort(key=lambda i: i.updated_at, reverse=True)
        return infos

    def delete(self, user_id: str, session_id: str) -> None:
        """Drop the engine and wipe its resume state.

        Raises:
            ValueError: the session is not hosted here.
        """
        entry = self._entry(user_id, session_id)
        entry.engine.clear_resume_state()
        del self._entries[(user_id, session_id)]
        logger.info("Deleted survey session %s for user %s", session_id, user_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _entry(self, user_id: str, session_id: str) -> _Entry:
        entry = self._entries.get((user_id, session_id))
        if entry is None:
            raise ValueError(f"Session not found: session_id={session_id}")
        return entry

    @staticmethod
    def _transport_for(source: str) -> DefinitionTransport:
        if source.startswith(("http://", "https://")):
            return HttpTransport()
        return FileTransport()

    def _storage_for(self, user_id: str, session_id: str) -> ResumeStorage:
        if not self._settings.resume_dir:
            return InMemoryResumeStorage()
        digest = hashlib.sha256(f"{user_id}\x00{session_id}".encode("utf-8")).hexdigest()
        return FileResumeStorage(Path(self._settings.resume_dir) / digest)
