"""Global exception handlers — map engine exceptions to HTTP status codes.

Routes stay on the happy path; these handlers translate:
  - ``LoadError``        → 404 / 422 / 502 by reason
  - ``EmptySubmission``  → 400
  - ``SubmitError``      → 502
  - ``ValueError``       → 409 / 404 / 400 by message
  - ``KeyError``         → 404
  - anything else        → 500

Raw exception messages are logged server-side but never sent to the
client.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from survey_engine.errors import EmptySubmission, LoadError, LoadErrorReason, SubmitError

logger = logging.getLogger(__name__)

# --- Keyword patterns in ValueError messages and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    # Session already hosted for this user
    ("already exists", 409),
    ("not found", 404),
]

_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Resource already exists",
    400: "Invalid request",
}

_LOAD_ERROR_STATUS: dict[LoadErrorReason, tuple[int, str]] = {
    LoadErrorReason.NOT_FOUND: (404, "Survey definition not found"),
    LoadErrorReason.MALFORMED: (422, "Survey definition is malformed"),
    LoadErrorReason.TRANSPORT_FAILURE: (502, "Survey definition could not be fetched"),
}


async def load_error_handler(request: Request, exc: LoadError) -> JSONResponse:
    status, detail = _LOAD_ERROR_STATUS.get(exc.reason, (502, "Survey could not be loaded"))
    logger.warning("LoadError [%d] at %s: %s", status, request.url, exc)
    return JSONResponse(
        status_code=status,
        content={"detail": detail, "reason": exc.reason.value},
    )


async def empty_submission_handler(request: Request, exc: EmptySubmission) -> JSONResponse:
    logger.info("Empty submission at %s", request.url)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def submit_error_handler(request: Request, exc: SubmitError) -> JSONResponse:
    """Sink failures are retryable from the client's point of view."""
    logger.error("SubmitError at %s: %s (cause=%r)", request.url, exc, exc.cause)
    return JSONResponse(
        status_code=502,
        content={"detail": "Survey submission failed, please retry"},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map ``ValueError`` to 409 (duplicate), 404 (not found) or 400."""
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    safe_detail = _SAFE_MESSAGES.get(status, "Invalid request")
    return JSONResponse(status_code=status, content={"detail": safe_detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
