"""Session view models — the contract between the engine and UI callers.

These models describe what a renderer needs to draw the current state:
the step and its visible questions, progress indicators, validation
issues and the outcome of an answer command.  They are decoupled from
the definition models so API consumers get a flat, ready-to-render view.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .definition import Step
from .question import Question


class ValidationIssue(BaseModel):
    """A required question on the active step that is not answered."""

    question_id: str
    message: str


class StepView(BaseModel):
    """Current step with the questions visible under current conditions."""

    index: int
    total_steps: int
    step: Step
    visible_questions: list[Question]
    has_next: bool
    has_prev: bool
    # True on the final step: the UI offers "Submit" instead of "Next"
    is_last_step: bool


class StepProgress(BaseModel):
    """Per-step indicator state (pagination circles)."""

    index: int
    step_id: str
    title: str
    active: bool
    visited: bool
    complete: bool


class ProgressInfo(BaseModel):
    """Overall progress through the survey."""

    current_index: int
    total_steps: int
    percent: float
    steps: list[StepProgress]


class AnswerResult(BaseModel):
    """Outcome of ``submit_answer``.

    ``shown`` / ``hidden`` list the conditional questions whose visibility
    flipped because of this answer, so the UI can re-render only those.
    """

    question_id: str
    saved: bool
    shown: list[str] = []
    hidden: list[str] = []


class SessionInfo(BaseModel):
    """Public view of a hosted survey session."""

    user_id: str
    session_id: str
    survey_id: Optional[str] = None
    survey_title: str = ""
    current_step_index: int
    total_steps: int
    response_count: int
    created_at: datetime
    updated_at: datetime
