"""survey_engine — JSON-driven multi-step survey SDK.

Public API:
    SurveyEngine           — per-session façade (renderer-facing contract)
    DefinitionLoader       — fetches and holds the survey schema
    ConditionEvaluator     — stateless question-visibility rules
    NavigationStateMachine — current step + visited tracking
    ResponseStore          — question id -> Response
    SubmissionCoordinator  — payload assembly + delivery
    SummaryRenderer        — Jinja2 receipt for a submission
    Debouncer              — trailing-edge debounce for free-text saves

Collaborator interfaces and implementations:
    DefinitionTransport — FileTransport, HttpTransport
    ResumeStorage       — InMemoryResumeStorage, FileResumeStorage
    SubmissionSink      — HttpSubmissionSink (survey_db.SqlSubmissionSink)
    IdentityProvider    — StaticIdentityProvider

Errors:
    SurveyError, LoadError (+ LoadErrorReason), SubmitError,
    EmptySubmission, StorageCorruption
"""

from survey_engine.debounce import Debouncer
from survey_engine.engine import SurveyEngine
from survey_engine.errors import (
    EmptySubmission,
    LoadError,
    LoadErrorReason,
    StorageCorruption,
    SubmitError,
    SurveyError,
)
from survey_engine.evaluator import ConditionEvaluator, build_dependency_map
from survey_engine.interfaces import (
    DefinitionTransport,
    IdentityProvider,
    ResumeStorage,
    SubmissionSink,
)
from survey_engine.loader import DefinitionLoader, FileTransport, HttpTransport
from survey_engine.models import (
    AnswerResult,
    ConditionGroup,
    ConditionRule,
    ProgressInfo,
    Question,
    QuestionKind,
    Response,
    SessionInfo,
    Step,
    StepView,
    SubmissionPayload,
    SubmissionResult,
    SurveyDefinition,
    ValidationIssue,
)
from survey_engine.navigation import NavigationStateMachine
from survey_engine.storage import FileResumeStorage, InMemoryResumeStorage
from survey_engine.store import ResponseStore, is_answered
from survey_engine.submission import (
    HttpSubmissionSink,
    StaticIdentityProvider,
    SubmissionCoordinator,
    resolve_identity,
)
from survey_engine.summary import SummaryRenderer

__all__ = [
    # Engine & components
    "SurveyEngine",
    "DefinitionLoader",
    "ConditionEvaluator",
    "NavigationStateMachine",
    "ResponseStore",
    "SubmissionCoordinator",
    "SummaryRenderer",
    "Debouncer",
    "build_dependency_map",
    "is_answered",
    "resolve_identity",
    # Interfaces
    "DefinitionTransport",
    "ResumeStorage",
    "SubmissionSink",
    "IdentityProvider",
    # Implementations
    "FileTransport",
    "HttpTransport",
    "InMemoryResumeStorage",
    "FileResumeStorage",
    "HttpSubmissionSink",
    "StaticIdentityProvider",
    # Models
    "SurveyDefinition",
    "Step",
    "Question",
    "QuestionKind",
    "ConditionGroup",
    "ConditionRule",
    "Response",
    "SubmissionPayload",
    "SubmissionResult",
    "StepView",
    "ProgressInfo",
    "ValidationIssue",
    "AnswerResult",
    "SessionInfo",
    # Errors
    "SurveyError",
    "LoadError",
    "LoadErrorReason",
    "SubmitError",
    "EmptySubmission",
    "StorageCorruption",
]
