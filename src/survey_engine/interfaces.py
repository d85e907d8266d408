"""Abstract interfaces for the engine's external collaborators.

The engine owns survey state and rules; everything that touches the
outside world is injected through one of these ABCs:

    transport = HttpTransport()              # DefinitionTransport
    storage = FileResumeStorage(path)        # ResumeStorage
    sink = SqlSubmissionSink()               # SubmissionSink
    identity = StaticIdentityProvider({...}) # IdentityProvider

    engine = SurveyEngine(
        transport=transport, storage=storage, sink=sink, identity=identity,
    )
    await engine.load_survey("https://example.org/survey.json")

Concrete implementations ship in :mod:`survey_engine.loader`,
:mod:`survey_engine.storage`, :mod:`survey_engine.submission` and
:mod:`survey_db.sink`.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from survey_engine.models.response import SubmissionPayload


class DefinitionTransport(ABC):
    """Fetches the raw survey definition for an identifier (URL, path, ...)."""

    @abstractmethod
    async def fetch(self, source: str) -> Any:
        """Return the parsed definition document for ``source``.

        Implementations raise :class:`~survey_engine.errors.LoadError` with
        ``NOT_FOUND`` when the resource does not exist, ``MALFORMED`` when
        the payload cannot be parsed, and ``TRANSPORT_FAILURE`` for any
        other non-success outcome.
        """
        ...


class ResumeStorage(ABC):
    """Durable keyed string slots used to resume a session after reload.

    Both slots may be absent or hold corrupt data; callers must tolerate
    either.  No cross-process coordination is provided: the last writer
    wins.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored string for ``key``, or ``None`` if absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``.  Missing keys are ignored."""
        ...


class SubmissionSink(ABC):
    """Persistence collaborator for completed surveys."""

    @abstractmethod
    async def save(self, payload: SubmissionPayload) -> Any:
        """Persist ``payload`` and return an opaque receipt.

        Any exception is treated uniformly by the engine as a failed
        submission; no retry is attempted.
        """
        ...


class IdentityProvider(ABC):
    """Source of identity claims for the person answering the survey."""

    @abstractmethod
    def get_identity_claims(self) -> Mapping[str, Any] | None:
        """Return claims such as ``preferredName``, ``email``, ``name``.

        ``None`` means the identity is unknown.
        """
        ...
