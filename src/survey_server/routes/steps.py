"""Step endpoints — current step, answers, navigation and progress.

Navigation never raises for an invalid move: ``moved`` is False and the
state is unchanged.  The one exception is ``next``, which answers 422
with per-question issues when the current step fails validation, so the
client can highlight the unanswered questions.
"""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from survey_engine.engine import SurveyEngine
from survey_engine.models.response import Response
from survey_engine.models.session import (
    AnswerResult,
    ProgressInfo,
    StepView,
    ValidationIssue,
)

from survey_server.dependencies import get_registry, get_user_id
from survey_server.registry import SessionRegistry

router = APIRouter(tags=["steps"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class AnswerRequest(BaseModel):
    """Body for POST /sessions/{session_id}/answers.

    Both ``value`` and ``comment`` are overwritten: omit ``comment`` to
    clear an earlier one.
    """
    question_id: str
    value: Any = None
    comment: str | None = None


class NavigationResult(BaseModel):
    moved: bool
    step: StepView | None = None
    issues: list[ValidationIssue] = []


def _engine(
    session_id: str,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> SurveyEngine:
    return registry.get(user_id, session_id)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/sessions/{session_id}/step")
async def get_current_step(engine: SurveyEngine = Depends(_engine)) -> StepView:
    """Current step with the questions visible under current answers."""
    view = engine.get_step_view()
    if view is None:
        raise ValueError("Survey step not found")
    return view


@router.post("/sessions/{session_id}/answers")
async def submit_answer(
    body: AnswerRequest,
    engine: SurveyEngine = Depends(_engine),
) -> AnswerResult:
    """Record an answer; reports dependent questions that were shown or hidden."""
    return engine.submit_answer(body.question_id, body.value, body.comment)


@router.post("/sessions/{session_id}/next", response_model=NavigationResult)
async def next_step(engine: SurveyEngine = Depends(_engine)):
    """Advance if every visible required question on the step is answered."""
    issues = engine.validate_step()
    if issues:
        result = NavigationResult(moved=False, step=engine.get_step_view(), issues=issues)
        content = result.model_dump(mode="json", by_alias=True)
        return JSONResponse(status_code=422, content=content)
    moved = engine.next_step()
    return NavigationResult(moved=moved, step=engine.get_step_view())


@router.post("/sessions/{session_id}/prev")
async def prev_step(engine: SurveyEngine = Depends(_engine)) -> NavigationResult:
    moved = engine.prev_step()
    return NavigationResult(moved=moved, step=engine.get_step_view())


@router.post("/sessions/{session_id}/goto/{index}")
async def go_to_step(index: int, engine: SurveyEngine = Depends(_engine)) -> NavigationResult:
    """Jump to any step (no validation), e.g. from a progress-bar click."""
    moved = engine.go_to_step(index)
    return NavigationResult(moved=moved, step=engine.get_step_view())


@router.get("/sessions/{session_id}/progress")
async def get_progress(engine: SurveyEngine = Depends(_engine)) -> ProgressInfo:
    return engine.get_progress()


@router.get("/sessions/{session_id}/responses")
async def get_responses(engine: SurveyEngine = Depends(_engine)) -> dict[str, Response]:
    return dict(engine.get_all_responses())


@router.delete("/sessions/{session_id}/responses", status_code=204)
async def clear_responses(engine: SurveyEngine = Depends(_engine)) -> None:
    """Start over: drop every answer and return to the first step."""
    engine.clear_responses()
