"""Exception taxonomy for the survey engine.

Only the two components that cross an I/O boundary raise:

  - the Definition Loader raises :class:`LoadError`
  - the Submission Coordinator raises :class:`SubmitError`
    (:class:`EmptySubmission` when there is nothing to submit)

Validation and navigation failures are never raised; those paths return
booleans or lists of issues.  :class:`StorageCorruption` exists so the
resume-state parse failure has a name in logs, but the engine never lets
it escape.
"""

from __future__ import annotations

import enum


class LoadErrorReason(str, enum.Enum):
    """Why a survey definition could not be loaded."""

    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    TRANSPORT_FAILURE = "transport_failure"


class SurveyError(Exception):
    """Base class for all survey engine errors."""


class LoadError(SurveyError):
    """Definition fetch or parse failure.  Fatal to starting a survey."""

    def __init__(self, reason: LoadErrorReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.args[0]}"


class SubmitError(SurveyError):
    """Transport or server failure on final submission.  Recoverable."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class EmptySubmission(SubmitError):
    """No survey is loaded, or no response has been recorded yet."""

    def __init__(self, message: str = "No survey responses to submit") -> None:
        super().__init__(message)


class StorageCorruption(SurveyError):
    """Persisted resume state could not be parsed.

    Logged and swallowed by the engine: the session degrades to a fresh
    start (empty responses, step 0).
    """
