"""Public model re-exports for survey_engine.

Consumers should import from ``survey_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Conditions ---
from survey_engine.models.condition import (
    ConditionGroup,
    ConditionRule,
    ConditionType,
)

# --- Definition ---
from survey_engine.models.definition import (
    BackgroundImage,
    Step,
    SurveyDefinition,
)
from survey_engine.models.question import Question, QuestionKind

# --- Responses / submission ---
from survey_engine.models.response import (
    Response,
    SubmissionPayload,
    SubmissionResult,
)

# --- Session views ---
from survey_engine.models.session import (
    AnswerResult,
    ProgressInfo,
    SessionInfo,
    StepProgress,
    StepView,
    ValidationIssue,
)

__all__ = [
    # Conditions
    "ConditionGroup",
    "ConditionRule",
    "ConditionType",
    # Definition
    "BackgroundImage",
    "Question",
    "QuestionKind",
    "Step",
    "SurveyDefinition",
    # Responses
    "Response",
    "SubmissionPayload",
    "SubmissionResult",
    # Session
    "AnswerResult",
    "ProgressInfo",
    "SessionInfo",
    "StepProgress",
    "StepView",
    "ValidationIssue",
]
