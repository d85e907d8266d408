"""Survey definition models — the immutable schema loaded for a session.

Steps are ordered; their position in ``SurveyDefinition.steps`` defines
the navigation sequence.  None of these models are mutated after load:
all per-session state lives in the navigation state and response store.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from .question import Question


class BackgroundImage(BaseModel):
    """Decoration hint for a step; passed through to the renderer."""

    model_config = ConfigDict(frozen=True, extra="allow")

    url: str
    position: Optional[str] = None
    opacity: Optional[Union[int, float, str]] = None


class Step(BaseModel):
    """An ordered page of the survey grouping one or more questions."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
    )

    id: str
    title: str = ""
    description: Optional[str] = None
    background_image: Optional[BackgroundImage] = None
    questions: list[Question] = []


class SurveyDefinition(BaseModel):
    """Top-level survey schema.

    Loading fails if question ids or step ids are not unique, since
    ``Question.id`` is the join key for responses and conditions.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
    )

    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    steps: list[Step]

    @model_validator(mode="after")
    def _chk_unique_ids(self):
        step_ids: set[str] = set()
        question_ids: set[str] = set()
        for step in self.steps:
            if step.id in step_ids:
                raise ValueError(f"duplicate step id: {step.id}")
            step_ids.add(step.id)
            for q in step.questions:
                if q.id in question_ids:
                    raise ValueError(f"duplicate question id: {q.id}")
                question_ids.add(q.id)
        return self

    def iter_questions(self):
        """Yield every question in step order."""
        for step in self.steps:
            yield from step.questions

    def find_question(self, question_id: str) -> Optional[Question]:
        for q in self.iter_questions():
            if q.id == question_id:
                return q
        return None
