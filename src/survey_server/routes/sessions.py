"""Session management endpoints — create, get, list and delete sessions.

All endpoints require the ``X-User-ID`` header.  A session is identified
by the (user_id, session_id) pair and hosts one loaded survey.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from survey_engine.models.session import SessionInfo

from survey_server.dependencies import get_registry, get_user_id
from survey_server.registry import SessionRegistry

router = APIRouter(tags=["sessions"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class CreateSessionRequest(BaseModel):
    """Body for POST /sessions.

    ``source`` is a path or URL of the survey definition; omitted means
    the server's configured ``SURVEY_SOURCE``.
    """
    session_id: str
    source: str | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/sessions", status_code=201)
async def create_session(
    body: CreateSessionRequest,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionInfo:
    """Load a survey into a new session.

    Returns 201 on success, 409 if the session already exists, and
    404/422/502 if the definition cannot be loaded.  Persisted resume
    state for this user/session is restored automatically.
    """
    return await registry.create(user_id, body.session_id, body.source)


@router.get("/sessions")
async def list_sessions(
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> list[SessionInfo]:
    """List the caller's sessions, most recently active first."""
    return registry.list_for_user(user_id)


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionInfo:
    """Get session info.  404 if the session does not exist for this user."""
    return registry.info(user_id, session_id)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    """Drop the session and its resume state (irreversible)."""
    registry.delete(user_id, session_id)
