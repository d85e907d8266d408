"""ResponseStore — the mapping from question id to recorded answer.

The store is UI-independent and owned exclusively by one engine instance.
Collaborators only ever receive read-only snapshots.

Save contract: every save takes an explicit ``(value, comment)`` pair and
overwrites both.  Saving a new value without a comment therefore drops
any earlier comment; renderers that want to keep it must pass it again.

Usage::

    store = ResponseStore()
    store.save("q1", "yes", comment="because")
    store.get("q1").value          # "yes"
    is_answered(store.get("q1"))   # True
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from survey_engine.errors import StorageCorruption
from survey_engine.models.question import Question
from survey_engine.models.response import Response, utc_now

logger = logging.getLogger(__name__)


def is_answered(response: Response | None) -> bool:
    """The single "answered" rule shared by validation, progress and conditions.

    A response counts as answered iff it exists, its value is not
    ``None``, a list value is non-empty, and a string value is non-blank
    after trimming.
    """
    if response is None:
        return False
    value = response.value
    if value is None:
        return False
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return False
    if isinstance(value, str) and value.strip() == "":
        return False
    return True


class ResponseStore:
    """In-memory response map with JSON (de)serialization for resume storage."""

    def __init__(self) -> None:
        self._responses: dict[str, Response] = {}

    def __len__(self) -> int:
        return len(self._responses)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._responses

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def save(self, question_id: str, value: Any, comment: str | None = None) -> Response:
        """Record ``value`` (and optional ``comment``) for ``question_id``.

        Always stamps a fresh timestamp and replaces any prior response.
        """
        response = Response(value=value, comment=comment, timestamp=utc_now())
        self._responses[question_id] = response
        return response

    def get(self, question_id: str) -> Response | None:
        return self._responses.get(question_id)

    def snapshot(self) -> Mapping[str, Response]:
        """Read-only copy of the current map.

        Later saves do not show through: the copy is taken at call time.
        """
        return MappingProxyType(dict(self._responses))

    def clear(self) -> None:
        self._responses = {}

    def replace(self, responses: Mapping[str, Response]) -> None:
        """Swap in a whole map (used when restoring persisted state)."""
        self._responses = dict(responses)

    # ------------------------------------------------------------------
    # Required-question check
    # ------------------------------------------------------------------

    def all_answered(self, questions: Iterable[Question]) -> bool:
        """True if every *required* question in ``questions`` is answered.

        Does not consider visibility: callers that validate a step must
        first drop questions hidden by their conditions.
        """
        return all(
            is_answered(self._responses.get(q.id))
            for q in questions
            if q.required
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> str:
        """Serialize to the resume-storage format: ``{qid: {value, comment?, timestamp}}``."""
        return json.dumps(
            {qid: r.model_dump(mode="json") for qid, r in self._responses.items()},
            ensure_ascii=False,
        )

    @staticmethod
    def parse_json(raw: str) -> dict[str, Response]:
        """Parse the resume-storage format.

        Raises:
            StorageCorruption: if ``raw`` is not valid JSON, is not an
                object, or any entry fails validation.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise StorageCorruption(f"responses slot is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageCorruption(
                f"responses slot must hold an object, got {type(data).__name__}"
            )
        parsed: dict[str, Response] = {}
        for qid, entry in data.items():
            try:
                parsed[qid] = Response.model_validate(entry)
            except ValidationError as exc:
                raise StorageCorruption(f"invalid response for {qid!r}: {exc}") from exc
        logger.debug("Parsed %d persisted responses", len(parsed))
        return parsed
