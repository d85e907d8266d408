"""survey_db — PostgreSQL persistence layer for submitted surveys.

This package provides the ORM model, async engine factory, repository
and the :class:`SqlSubmissionSink` that plugs into the survey engine as
its persistence collaborator.
"""

from survey_db.engine import dispose_engine, get_engine, get_session_factory
from survey_db.models.submission import SurveySubmission
from survey_db.repository import SubmissionRepository
from survey_db.sink import SqlSubmissionSink

__all__ = [
    "SurveySubmission",
    "get_engine",
    "get_session_factory",
    "dispose_engine",
    "SubmissionRepository",
    "SqlSubmissionSink",
]
