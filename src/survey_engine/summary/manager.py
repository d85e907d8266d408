"""SummaryRenderer — Jinja2-based renderer for completed submissions.

Loads templates from the ``template/`` directory and renders a
``SubmissionPayload`` (plus the definition it answers) into a
human-readable summary, grouped by step and in survey order.

Formats:
  - ``"md"``  -> ``submission.md.jinja2``
  - ``"txt"`` -> ``submission.txt.jinja2``
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jinja2

from survey_engine.models.definition import SurveyDefinition
from survey_engine.models.response import SubmissionPayload

_FORMAT_TEMPLATES: dict[str, str] = {
    "md": "submission.md.jinja2",
    "txt": "submission.txt.jinja2",
}

NO_RESPONSE = "No response"


def format_value(value: Any) -> str:
    """Display form of a response value.

    Objects and arrays are shown as JSON, missing values as "No response".
    """
    if value is None:
        return NO_RESPONSE
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class SummaryRenderer:
    """Jinja2-based renderer for submission summaries.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["answer"] = format_value

    def render_submission(
        self,
        definition: SurveyDefinition,
        payload: SubmissionPayload,
        fmt: str = "md",
    ) -> str:
        """Render ``payload`` as a summary in the given format.

        Only questions with a recorded response are listed; steps with no
        answered question are skipped.

        Raises:
            ValueError: for an unknown ``fmt``.
        """
        template_name = _FORMAT_TEMPLATES.get(fmt)
        if template_name is None:
            raise ValueError(f"Unknown summary format: {fmt!r}")

        sections = []
        for step in definition.steps:
            answers = [
                {
                    "question": q,
                    "response": payload.responses[q.id],
                }
                for q in step.questions
                if q.id in payload.responses
            ]
            if answers:
                sections.append({"step": step, "answers": answers})

        return self.render(
            template_name,
            definition=definition,
            payload=payload,
            sections=sections,
        )

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)
