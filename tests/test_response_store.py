"""ResponseStore tests — save contract, answered rule and serialization."""

import json
from datetime import datetime, timezone

import pytest

from survey_engine.errors import StorageCorruption
from survey_engine.models.question import Question
from survey_engine.models.response import Response
from survey_engine.store import ResponseStore, is_answered


@pytest.fixture
def store():
    return ResponseStore()


class TestSave:

    def test_save_then_get(self, store):
        before = datetime.now(timezone.utc)
        store.save("q1", "yes", comment="because")
        resp = store.get("q1")
        assert resp.value == "yes"
        assert resp.comment == "because"
        assert resp.timestamp >= before

    def test_resave_without_comment_drops_comment(self, store):
        """Every save overwrites both value and comment."""
        store.save("q1", "yes", comment="because")
        store.save("q1", "no")
        resp = store.get("q1")
        assert resp.value == "no"
        assert resp.comment is None

    def test_blank_comment_is_dropped(self, store):
        store.save("q1", "yes", comment="   ")
        assert store.get("q1").comment is None

    def test_get_missing(self, store):
        assert store.get("nope") is None

    def test_snapshot_is_read_only_and_detached(self, store):
        store.save("q1", "a")
        snap = store.snapshot()
        with pytest.raises(TypeError):
            snap["q2"] = Response(value="b")
        store.save("q2", "b")
        assert "q2" not in snap
        assert len(store) == 2

    def test_clear(self, store):
        store.save("q1", "a")
        store.clear()
        assert len(store) == 0
        assert "q1" not in store


class TestAnsweredRule:

    @pytest.mark.parametrize("value,expected", [
        (None, False),
        ("", False),
        ("  \t", False),
        ([], False),
        ("x", True),
        (["a"], True),
        (0, True),
        ({}, True),
    ])
    def test_is_answered(self, value, expected):
        assert is_answered(Response(value=value)) is expected

    def test_missing_response(self):
        assert is_answered(None) is False

    def test_all_answered_ignores_optional(self, store):
        questions = [
            Question(id="req", type="shortText", required=True),
            Question(id="opt", type="shortText"),
        ]
        assert store.all_answered(questions) is False
        store.save("req", "done")
        assert store.all_answered(questions) is True

    def test_all_answered_blank_string(self, store):
        questions = [Question(id="req", type="shortText", required=True)]
        store.save("req", "   ")
        assert store.all_answered(questions) is False


class TestSerialization:

    def test_to_json_omits_missing_comment(self, store):
        store.save("q1", ["a", "b"])
        store.save("q2", "x", comment="note")
        data = json.loads(store.to_json())
        assert set(data["q1"]) == {"value", "timestamp"}
        assert data["q2"]["comment"] == "note"

    def test_parse_json_restores(self, store):
        store.save("q1", {"quality": 80}, comment="c")
        parsed = ResponseStore.parse_json(store.to_json())
        assert parsed["q1"].value == {"quality": 80}
        assert parsed["q1"].comment == "c"
        assert parsed["q1"].timestamp == store.get("q1").timestamp

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"text"', '{"q1": {"timestamp": "yesterday"}}'])
    def test_parse_json_corrupt(self, raw):
        with pytest.raises(StorageCorruption):
            ResponseStore.parse_json(raw)
