"""Submission endpoint — deliver the finished survey to the sink.

The current step is validated first (the "Submit" button replaces
"Next" on the last step).  Identity claims come from the gateway's
``X-Preferred-Name`` / ``X-User-Email`` / ``X-User-Name`` headers.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from survey_engine.models.response import SubmissionPayload
from survey_engine.models.session import ValidationIssue
from survey_engine.summary import SummaryRenderer

from survey_server.dependencies import (
    get_identity_claims,
    get_registry,
    get_renderer,
    get_user_id,
)
from survey_server.registry import SessionRegistry

router = APIRouter(tags=["submissions"])


class SubmitRequest(BaseModel):
    """Optional body for POST /sessions/{session_id}/submit."""
    summary_format: Literal["md", "txt"] = "md"


class SubmitResponse(BaseModel):
    payload: SubmissionPayload
    receipt: Any = None
    summary: str


class ValidationFailed(BaseModel):
    detail: str
    issues: list[ValidationIssue]


@router.post("/sessions/{session_id}/submit", response_model=SubmitResponse)
async def submit_survey(
    session_id: str,
    body: SubmitRequest | None = None,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_registry),
    renderer: SummaryRenderer = Depends(get_renderer),
    claims: dict[str, str] | None = Depends(get_identity_claims),
):
    """Validate the current step, then submit every recorded response.

    Returns 422 with issues if the step is incomplete, 400 if nothing has
    been answered, 502 if the sink fails (the client may retry).
    """
    engine = registry.get(user_id, session_id)
    issues = engine.validate_step()
    if issues:
        failed = ValidationFailed(detail="Required questions are unanswered", issues=issues)
        content = failed.model_dump(mode="json", by_alias=True)
        return JSONResponse(status_code=422, content=content)

    result = await engine.submit_survey(identity=claims)
    fmt = body.summary_format if body is not None else "md"
    summary = renderer.render_submission(engine.definition, result.payload, fmt)
    return SubmitResponse(payload=result.payload, receipt=result.receipt, summary=summary)
