"""Response and submission models.

``Response`` is the recorded answer for one question.  The comment key is
omitted whenever there is no comment, both in memory (``None``) and on
the wire (absent), and blank comments never survive validation.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
)
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Response(BaseModel):
    """Recorded answer for one question, keyed by question id in the store."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    comment: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("comment", mode="before")
    @classmethod
    def _normalize_comment(cls, v):
        # Whitespace-only comments are treated as no comment at all
        if v is None:
            return None
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @model_serializer(mode="wrap")
    def _omit_missing_comment(self, handler):
        data = handler(self)
        if data.get("comment") is None:
            data.pop("comment", None)
        return data


class SubmissionPayload(BaseModel):
    """Everything handed to the persistence collaborator on submit."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    survey_id: str
    survey_title: Optional[str] = None
    completed_at: datetime = Field(default_factory=utc_now)
    responses: dict[str, Response]
    identity: str

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class SubmissionResult(BaseModel):
    """Outcome of a successful submission.

    ``receipt`` is whatever the persistence collaborator returned; the
    engine does not interpret it.
    """

    payload: SubmissionPayload
    receipt: Any = None
