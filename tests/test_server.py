"""HTTP API tests — FastAPI TestClient against an in-process app.

The submission sink is an AsyncMock, definitions come from the JSON
fixtures, and resume state is in memory unless a test sets resume_dir.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from survey_server.app import create_app
from survey_server.config import ServerSettings

API = "/api/v1"
HEADERS = {"X-User-ID": "user-1"}


def _settings(fixtures_dir, **overrides):
    values = {
        "log_level": "WARNING",
        "survey_source": str(fixtures_dir / "simple_survey.json"),
    }
    values.update(overrides)
    return ServerSettings(**values)


@pytest.fixture
def sink():
    mock = AsyncMock()
    mock.save = AsyncMock(return_value={"id": "receipt-1"})
    return mock


@pytest.fixture
def client(fixtures_dir, sink):
    app = create_app(_settings(fixtures_dir), sink=sink)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session(client):
    resp = client.post(f"{API}/sessions", json={"session_id": "s1"}, headers=HEADERS)
    assert resp.status_code == 201
    return "s1"


# =====================================================================
# Sessions
# =====================================================================


class TestSessions:

    def test_missing_user_header(self, client):
        resp = client.post(f"{API}/sessions", json={"session_id": "s1"})
        assert resp.status_code == 401

    def test_create_and_get(self, client, session):
        resp = client.get(f"{API}/sessions/{session}", headers=HEADERS)
        assert resp.status_code == 200
        info = resp.json()
        assert info["survey_id"] == "simple"
        assert info["total_steps"] == 2
        assert info["current_step_index"] == 0
        assert info["response_count"] == 0

    def test_duplicate_session(self, client, session):
        resp = client.post(f"{API}/sessions", json={"session_id": session}, headers=HEADERS)
        assert resp.status_code == 409

    def test_sessions_are_per_user(self, client, session):
        resp = client.get(f"{API}/sessions/{session}", headers={"X-User-ID": "someone-else"})
        assert resp.status_code == 404

    def test_list_sessions(self, client, session):
        resp = client.get(f"{API}/sessions", headers=HEADERS)
        assert [s["session_id"] for s in resp.json()] == [session]

    def test_missing_definition(self, client, fixtures_dir):
        resp = client.post(
            f"{API}/sessions",
            json={"session_id": "s2", "source": str(fixtures_dir / "nope.json")},
            headers=HEADERS,
        )
        assert resp.status_code == 404
        assert resp.json()["reason"] == "not_found"

    def test_malformed_definition(self, client, fixtures_dir):
        resp = client.post(
            f"{API}/sessions",
            json={"session_id": "s2", "source": str(fixtures_dir / "no_steps.json")},
            headers=HEADERS,
        )
        assert resp.status_code == 422
        assert resp.json()["reason"] == "malformed"

    def test_delete_session(self, client, session):
        assert client.delete(f"{API}/sessions/{session}", headers=HEADERS).status_code == 204
        assert client.get(f"{API}/sessions/{session}", headers=HEADERS).status_code == 404

    def test_proxy_secret_enforced(self, fixtures_dir, sink):
        app = create_app(_settings(fixtures_dir, trusted_proxy_secret="s3cret"), sink=sink)
        with TestClient(app) as c:
            resp = c.get(f"{API}/sessions", headers=HEADERS)
            assert resp.status_code == 403
            resp = c.get(f"{API}/sessions", headers={**HEADERS, "X-Proxy-Secret": "wrong"})
            assert resp.status_code == 403
            resp = c.get(f"{API}/sessions", headers={**HEADERS, "X-Proxy-Secret": "s3cret"})
            assert resp.status_code == 200


# =====================================================================
# Steps and answers
# =====================================================================


class TestSteps:

    def test_current_step(self, client, session):
        resp = client.get(f"{API}/sessions/{session}/step", headers=HEADERS)
        view = resp.json()
        assert view["index"] == 0
        assert view["is_last_step"] is False
        assert [q["id"] for q in view["visible_questions"]] == ["colour"]

    def test_next_blocked_until_answered(self, client, session):
        resp = client.post(f"{API}/sessions/{session}/next", headers=HEADERS)
        assert resp.status_code == 422
        body = resp.json()
        assert body["moved"] is False
        assert [i["question_id"] for i in body["issues"]] == ["colour"]

        resp = client.post(
            f"{API}/sessions/{session}/answers",
            json={"question_id": "colour", "value": "red"},
            headers=HEADERS,
        )
        assert resp.json() == {"question_id": "colour", "saved": True, "shown": ["why"], "hidden": []}

        resp = client.post(f"{API}/sessions/{session}/next", headers=HEADERS)
        assert resp.status_code == 200
        assert resp.json()["moved"] is True
        assert resp.json()["step"]["index"] == 1
        assert resp.json()["step"]["is_last_step"] is True

    def test_goto_and_prev(self, client, session):
        resp = client.post(f"{API}/sessions/{session}/goto/1", headers=HEADERS)
        assert resp.json()["moved"] is True
        resp = client.post(f"{API}/sessions/{session}/goto/5", headers=HEADERS)
        assert resp.json()["moved"] is False
        assert resp.json()["step"]["index"] == 1
        resp = client.post(f"{API}/sessions/{session}/prev", headers=HEADERS)
        assert resp.json()["step"]["index"] == 0

    def test_progress(self, client, session):
        client.post(f"{API}/sessions/{session}/goto/1", headers=HEADERS)
        progress = client.get(f"{API}/sessions/{session}/progress", headers=HEADERS).json()
        assert progress["percent"] == 100.0
        assert [s["visited"] for s in progress["steps"]] == [True, True]
        assert progress["steps"][0]["complete"] is False

    def test_responses_and_start_over(self, client, session):
        client.post(
            f"{API}/sessions/{session}/answers",
            json={"question_id": "colour", "value": "blue", "comment": "calm"},
            headers=HEADERS,
        )
        responses = client.get(f"{API}/sessions/{session}/responses", headers=HEADERS).json()
        assert responses["colour"]["value"] == "blue"
        assert responses["colour"]["comment"] == "calm"

        resp = client.delete(f"{API}/sessions/{session}/responses", headers=HEADERS)
        assert resp.status_code == 204
        assert client.get(f"{API}/sessions/{session}/responses", headers=HEADERS).json() == {}

    def test_unknown_session(self, client):
        resp = client.get(f"{API}/sessions/ghost/step", headers=HEADERS)
        assert resp.status_code == 404


# =====================================================================
# Submission
# =====================================================================


class TestSubmit:

    def _answer(self, client, session):
        client.post(
            f"{API}/sessions/{session}/answers",
            json={"question_id": "colour", "value": "red"},
            headers=HEADERS,
        )

    def test_submit(self, client, session, sink):
        self._answer(client, session)
        resp = client.post(
            f"{API}/sessions/{session}/submit",
            headers={**HEADERS, "X-User-Email": "ada@example.org"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["receipt"] == {"id": "receipt-1"}
        assert body["payload"]["surveyId"] == "simple"
        assert body["payload"]["identity"] == "ada@example.org"
        assert body["summary"].startswith("# Simple Survey")
        sink.save.assert_awaited_once()

    def test_submit_text_summary(self, client, session):
        self._answer(client, session)
        resp = client.post(
            f"{API}/sessions/{session}/submit",
            json={"summary_format": "txt"},
            headers=HEADERS,
        )
        assert "Favourite colour: red" in resp.json()["summary"]
        assert resp.json()["payload"]["identity"] == "unknown"

    def test_submit_validates_current_step(self, client, session, sink):
        resp = client.post(f"{API}/sessions/{session}/submit", headers=HEADERS)
        assert resp.status_code == 422
        assert [i["question_id"] for i in resp.json()["issues"]] == ["colour"]
        sink.save.assert_not_awaited()

    def test_empty_submission(self, client, session):
        client.post(f"{API}/sessions/{session}/goto/1", headers=HEADERS)
        resp = client.post(f"{API}/sessions/{session}/submit", headers=HEADERS)
        assert resp.status_code == 400

    def test_sink_failure(self, client, session, sink):
        sink.save.side_effect = RuntimeError("db down")
        self._answer(client, session)
        resp = client.post(f"{API}/sessions/{session}/submit", headers=HEADERS)
        assert resp.status_code == 502
        assert "db down" not in resp.text


# =====================================================================
# Resume across restarts and health
# =====================================================================


class TestResumeAndHealth:

    def test_file_resume_across_apps(self, fixtures_dir, sink, tmp_path):
        settings = _settings(fixtures_dir, resume_dir=str(tmp_path))
        with TestClient(create_app(settings, sink=sink)) as c:
            c.post(f"{API}/sessions", json={"session_id": "s1"}, headers=HEADERS)
            c.post(
                f"{API}/sessions/s1/answers",
                json={"question_id": "colour", "value": "red"},
                headers=HEADERS,
            )
            c.post(f"{API}/sessions/s1/next", headers=HEADERS)

        with TestClient(create_app(settings, sink=sink)) as c:
            info = c.post(f"{API}/sessions", json={"session_id": "s1"}, headers=HEADERS).json()
            assert info["current_step_index"] == 1
            assert info["response_count"] == 1

    def test_health(self, client, session):
        assert client.get("/health").json() == {"status": "ok", "sessions": 1}
