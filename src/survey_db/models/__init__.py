"""ORM models for survey_db."""

from survey_db.models.base import Base
from survey_db.models.submission import SurveySubmission

__all__ = ["Base", "SurveySubmission"]
