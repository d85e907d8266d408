"""Question model — the common envelope every question kind shares.

The engine only reads the envelope fields (``id``, ``required``,
``allow_comment``, ``conditions``).  Type-specific configuration such as
``options``, ``min``/``max`` or ``rows`` is kept as extra fields and is
only interpreted by the renderer for that kind.

Known kinds and the canonical shape of their response value:

    shortText, longText   -> str
    radio                 -> str, or {"isOther": true, "otherValue": str}
    checkbox, tags        -> list[str], or {optionId: bool}
    rangeSlider           -> number
    likert, matrix2d      -> {rowId: value}
    rankOptions           -> [{"id": str, "rank": int}, ...]
    multiValueSlider      -> {optionId: position}
    radar                 -> {optionId: position}
"""

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .condition import ConditionGroup


class QuestionKind(str, enum.Enum):
    """Question kinds the bundled renderers understand.

    The set is open: surveys may use other ``type`` strings, in which case
    :attr:`Question.kind` is ``None``.
    """

    SHORT_TEXT = "shortText"
    LONG_TEXT = "longText"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    LIKERT = "likert"
    RANGE_SLIDER = "rangeSlider"
    MATRIX_2D = "matrix2d"
    RANK_OPTIONS = "rankOptions"
    TAGS = "tags"
    MULTI_VALUE_SLIDER = "multiValueSlider"
    RADAR = "radar"


class Question(BaseModel):
    """A single prompt.  ``id`` is unique within the survey."""

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    type: str
    title: str = ""
    description: Optional[str] = None
    required: bool = False
    allow_comment: bool = False
    conditions: Optional[ConditionGroup] = None

    @property
    def kind(self) -> Optional[QuestionKind]:
        try:
            return QuestionKind(self.type)
        except ValueError:
            return None

    @property
    def config(self) -> dict:
        """Type-specific configuration (everything outside the envelope)."""
        return dict(self.model_extra or {})
