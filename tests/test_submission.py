"""Submission tests — identity resolution, coordinator, HTTP sink."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from survey_engine.engine import SurveyEngine
from survey_engine.errors import EmptySubmission, SubmitError
from survey_engine.models.definition import SurveyDefinition
from survey_engine.models.response import Response
from survey_engine.submission import (
    HttpSubmissionSink,
    StaticIdentityProvider,
    SubmissionCoordinator,
    resolve_identity,
)


def _sink(receipt=None, side_effect=None):
    sink = AsyncMock()
    sink.save = AsyncMock(return_value=receipt, side_effect=side_effect)
    return sink


class TestResolveIdentity:

    def test_priority_order(self):
        claims = {"name": "Ada L", "email": "ada@example.org", "preferredName": "ada"}
        assert resolve_identity(claims) == "ada"
        del claims["preferredName"]
        assert resolve_identity(claims) == "ada@example.org"
        del claims["email"]
        assert resolve_identity(claims) == "Ada L"

    def test_preferred_username_claim(self):
        assert resolve_identity({"preferred_username": "ada", "email": "x@y"}) == "ada"

    def test_blank_claims_are_skipped(self):
        assert resolve_identity({"preferredName": "  ", "email": "a@b"}) == "a@b"

    @pytest.mark.parametrize("claims", [None, {}, {"sub": "123"}])
    def test_unknown(self, claims):
        assert resolve_identity(claims) == "unknown"


class TestCoordinator:

    @pytest.fixture
    def definition(self, scenario_data):
        return SurveyDefinition.model_validate(scenario_data)

    @pytest.mark.asyncio
    async def test_builds_payload(self, definition):
        sink = _sink(receipt={"id": "r1"})
        coordinator = SubmissionCoordinator(sink, StaticIdentityProvider({"email": "a@b"}))
        responses = {"Q1": Response(value="a", comment="c")}

        result = await coordinator.submit(definition, responses)

        payload = sink.save.await_args.args[0]
        assert payload.survey_id == "scenario"
        assert payload.survey_title == "Scenario Survey"
        assert payload.identity == "a@b"
        assert payload.responses["Q1"].value == "a"
        assert result.receipt == {"id": "r1"}
        assert result.payload is payload

    @pytest.mark.asyncio
    async def test_explicit_claims_override_provider(self, definition):
        sink = _sink()
        coordinator = SubmissionCoordinator(sink, StaticIdentityProvider({"email": "a@b"}))
        result = await coordinator.submit(
            definition, {"Q1": Response(value="a")}, {"preferredName": "override"},
        )
        assert result.payload.identity == "override"

    @pytest.mark.asyncio
    async def test_missing_survey_id_falls_back(self):
        definition = SurveyDefinition.model_validate({"steps": [{"id": "s"}]})
        result = await SubmissionCoordinator(_sink()).submit(definition, {"q": Response(value=1)})
        assert result.payload.survey_id == "unknown"
        assert result.payload.identity == "unknown"

    @pytest.mark.asyncio
    async def test_empty_submission(self, definition):
        sink = _sink()
        coordinator = SubmissionCoordinator(sink)
        with pytest.raises(EmptySubmission):
            await coordinator.submit(definition, {})
        with pytest.raises(EmptySubmission):
            await coordinator.submit(None, {"Q1": Response(value="a")})
        sink.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sink_failure_wrapped(self, definition):
        boom = RuntimeError("db down")
        coordinator = SubmissionCoordinator(_sink(side_effect=boom))
        with pytest.raises(SubmitError) as exc_info:
            await coordinator.submit(definition, {"Q1": Response(value="a")})
        assert exc_info.value.cause is boom
        assert exc_info.value.__cause__ is boom
        assert not isinstance(exc_info.value, EmptySubmission)

    @pytest.mark.asyncio
    async def test_no_sink_configured(self, definition):
        with pytest.raises(SubmitError):
            await SubmissionCoordinator().submit(definition, {"Q1": Response(value="a")})


class TestEngineSubmit:

    @pytest.mark.asyncio
    async def test_submit_keeps_state(self, scenario_data):
        sink = _sink(receipt="ok")
        engine = SurveyEngine(sink=sink)
        engine.load_definition(scenario_data)
        engine.save_response("Q1", "a")

        result = await engine.submit_survey({"name": "Ada"})

        assert result.receipt == "ok"
        assert result.payload.identity == "Ada"
        assert engine.get_response("Q1").value == "a"

    @pytest.mark.asyncio
    async def test_submit_without_responses(self, engine):
        with pytest.raises(EmptySubmission):
            await engine.submit_survey()

    @pytest.mark.asyncio
    async def test_submit_unloaded(self):
        with pytest.raises(EmptySubmission):
            await SurveyEngine(sink=_sink()).submit_survey()

    @pytest.mark.asyncio
    async def test_failed_submit_can_be_retried(self, scenario_data):
        sink = _sink()
        sink.save.side_effect = [ConnectionError("offline"), {"id": "2"}]
        engine = SurveyEngine(sink=sink)
        engine.load_definition(scenario_data)
        engine.save_response("Q1", "a")

        with pytest.raises(SubmitError):
            await engine.submit_survey()
        result = await engine.submit_survey()
        assert result.receipt == {"id": "2"}


class TestHttpSubmissionSink:

    @pytest.mark.asyncio
    async def test_posts_camel_case_payload(self, scenario_data):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(201, json={"id": "abc"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            sink = HttpSubmissionSink(
                "https://api.example.org/submit", client, headers={"Authorization": "Bearer t"},
            )
            engine = SurveyEngine(sink=sink)
            engine.load_definition(scenario_data)
            engine.save_response("Q1", "a")
            result = await engine.submit_survey({"email": "a@b"})

        assert result.receipt == {"id": "abc"}
        body = seen["body"]
        assert set(body) == {"surveyId", "surveyTitle", "completedAt", "responses", "identity"}
        assert body["responses"]["Q1"]["value"] == "a"
        assert "comment" not in body["responses"]["Q1"]
        assert seen["auth"] == "Bearer t"

    @pytest.mark.asyncio
    async def test_error_status_becomes_submit_error(self, scenario_data):
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(500)),
        ) as client:
            engine = SurveyEngine(sink=HttpSubmissionSink("https://api.example.org/submit", client))
            engine.load_definition(scenario_data)
            engine.save_response("Q1", "a")
            with pytest.raises(SubmitError) as exc_info:
                await engine.submit_survey()
        assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_empty_body_receipt(self, scenario_data):
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(204)),
        ) as client:
            sink = HttpSubmissionSink("https://api.example.org/submit", client)
            engine = SurveyEngine(sink=sink)
            engine.load_definition(scenario_data)
            engine.save_response("Q1", "a")
            result = await engine.submit_survey()
        assert result.receipt is None
