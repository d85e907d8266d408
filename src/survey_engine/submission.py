"""Submission — identity resolution, the coordinator and an HTTP sink.

The coordinator assembles a :class:`SubmissionPayload` from the loaded
definition and the response snapshot, then hands it to the injected
:class:`SubmissionSink`.  Submitting does not clear responses or resume
state; that is left to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from survey_engine.constants import (
    HTTP_TIMEOUT_SECONDS,
    IDENTITY_CLAIM_PRIORITY,
    UNKNOWN_IDENTITY,
)
from survey_engine.errors import EmptySubmission, SubmitError
from survey_engine.interfaces import IdentityProvider, SubmissionSink
from survey_engine.models.definition import SurveyDefinition
from survey_engine.models.response import (
    Response,
    SubmissionPayload,
    SubmissionResult,
    utc_now,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

def resolve_identity(claims: Mapping[str, Any] | None) -> str:
    """Pick the submitter's display identity from ``claims``.

    Checks ``preferredName``, ``preferred_username``, ``email`` and
    ``name`` in that order; the first non-blank string wins.  Falls back
    to ``"unknown"``.
    """
    if not claims:
        return UNKNOWN_IDENTITY
    for key in IDENTITY_CLAIM_PRIORITY:
        value = claims.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return UNKNOWN_IDENTITY


class StaticIdentityProvider(IdentityProvider):
    """Returns a fixed claim set (tests, CLIs, trusted server headers)."""

    def __init__(self, claims: Mapping[str, Any] | None = None) -> None:
        self._claims = dict(claims) if claims is not None else None

    def get_identity_claims(self) -> Mapping[str, Any] | None:
        return self._claims


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------

class HttpSubmissionSink(SubmissionSink):
    """POSTs the camelCase payload as JSON to ``url``.

    Returns the decoded JSON response body, or ``None`` for an empty body.
    Non-2xx responses raise ``httpx.HTTPStatusError``, which the
    coordinator turns into :class:`SubmitError`.
    """

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._url = url
        self._client = client
        self._timeout = timeout
        self._headers = dict(headers or {})

    async def save(self, payload: SubmissionPayload) -> Any:
        body = payload.to_wire()
        if self._client is not None:
            resp = await self._client.post(
                self._url, json=body, headers=self._headers, timeout=self._timeout,
            )
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=body, headers=self._headers)
        resp.raise_for_status()
        if not resp.content:
            return None
        return resp.json()


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class SubmissionCoordinator:
    """Builds the payload and delivers it to the sink.

    Args:
        sink: persistence collaborator.  Required to actually submit.
        identity: default identity provider, used when :meth:`submit`
            is not given claims explicitly.
    """

    def __init__(
        self,
        sink: SubmissionSink | None = None,
        identity: IdentityProvider | None = None,
    ) -> None:
        self._sink = sink
        self._identity = identity

    @property
    def sink(self) -> SubmissionSink | None:
        return self._sink

    def build_payload(
        self,
        definition: SurveyDefinition,
        responses: Mapping[str, Response],
        claims: Mapping[str, Any] | None = None,
    ) -> SubmissionPayload:
        if claims is None and self._identity is not None:
            claims = self._identity.get_identity_claims()
        return SubmissionPayload(
            survey_id=definition.id or UNKNOWN_IDENTITY,
            survey_title=definition.title or None,
            completed_at=utc_now(),
            responses=dict(responses),
            identity=resolve_identity(claims),
        )

    async def submit(
        self,
        definition: SurveyDefinition | None,
        responses: Mapping[str, Response],
        claims: Mapping[str, Any] | None = None,
    ) -> SubmissionResult:
        """Assemble and deliver the submission.

        Raises:
            EmptySubmission: no definition is loaded or no response exists.
            SubmitError: no sink is configured or the sink failed; the
                original exception is kept on ``cause``.
        """
        if definition is None or not responses:
            raise EmptySubmission()
        if self._sink is None:
            raise SubmitError("No submission sink configured")

        payload = self.build_payload(definition, responses, claims)
        try:
            receipt = await self._sink.save(payload)
        except Exception as exc:
            logger.error(
                "Submission of survey %s by %s failed: %s",
                payload.survey_id, payload.identity, exc,
            )
            raise SubmitError(f"Error submitting survey: {exc}", cause=exc) from exc

        logger.info(
            "Submitted survey %s by %s (%d responses)",
            payload.survey_id, payload.identity, len(payload.responses),
        )
        return SubmissionResult(payload=payload, receipt=receipt)
