"""ConditionEvaluator — decides whether a conditional question is visible.

Evaluation is stateless: every call reads the response snapshot it is
given and nothing is cached, so callers must re-evaluate after each
relevant response change.  :func:`build_dependency_map` tells them which
questions to re-evaluate when a given answer changes.

Combination rules:
  - no conditions (or an empty rule list) -> visible
  - AND -> every rule must hold
  - OR  -> at least one rule must hold
  - unknown operator -> visible (fail-open, logged)

For every rule type except ``answered``, a missing response for the
referenced question makes the rule false.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from survey_engine.constants import OPERATOR_AND, OPERATOR_OR
from survey_engine.models.condition import ConditionRule, ConditionType
from survey_engine.models.definition import SurveyDefinition
from survey_engine.models.question import Question
from survey_engine.models.response import Response
from survey_engine.store import is_answered

logger = logging.getLogger(__name__)

# Leading numeric prefix, matching how form inputs are usually parsed
# ("12.5kg" -> 12.5, "abc" -> no match).
_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")


def build_dependency_map(definition: SurveyDefinition) -> dict[str, list[str]]:
    """Map each referenced question id to the questions whose visibility it drives.

    Example: if ``q2`` and ``q3`` both have a rule on ``q1``, the result
    contains ``{"q1": ["q2", "q3"]}``.  Dependents are listed in survey order.
    """
    deps: dict[str, list[str]] = {}
    for q in definition.iter_questions():
        if q.conditions is None:
            continue
        for ref in q.conditions.referenced_question_ids:
            deps.setdefault(ref, []).append(q.id)
    return deps


def find_unknown_references(definition: SurveyDefinition) -> list[tuple[str, str]]:
    """Return ``(question_id, referenced_id)`` pairs that point at no question."""
    known = {q.id for q in definition.iter_questions()}
    missing = []
    for q in definition.iter_questions():
        if q.conditions is None:
            continue
        for ref in q.conditions.referenced_question_ids:
            if ref not in known:
                missing.append((q.id, ref))
    return missing


class ConditionEvaluator:
    """Evaluates question visibility against a response snapshot."""

    def should_show(self, question: Question, responses: Mapping[str, Response]) -> bool:
        """Return True if ``question`` should be displayed.

        Args:
            question: the question whose ``conditions`` are evaluated
            responses: snapshot of the response store keyed by question id
        """
        group = question.conditions
        if group is None or not group.rules:
            return True

        results = [self.evaluate_rule(rule, responses) for rule in group.rules]

        operator = (group.operator or OPERATOR_AND).upper()
        if operator == OPERATOR_AND:
            return all(results)
        if operator == OPERATOR_OR:
            return any(results)

        logger.warning(
            "Unknown condition operator %r on question %s; showing question",
            group.operator, question.id,
        )
        return True

    # ------------------------------------------------------------------
    # Rule evaluation
    # ------------------------------------------------------------------

    def evaluate_rule(self, rule: ConditionRule, responses: Mapping[str, Response]) -> bool:
        """Evaluate a single rule against the snapshot."""
        response = responses.get(rule.question_id)

        if rule.type == ConditionType.ANSWERED:
            return is_answered(response)

        # Every other rule type needs the referenced answer to exist first
        if response is None:
            return False

        value = response.value

        if rule.type == ConditionType.EQUALS:
            if _is_other_answer(value):
                return False
            return _strict_equals(value, rule.value)

        if rule.type == ConditionType.NOT_EQUALS:
            return not _strict_equals(value, rule.value)

        if rule.type == ConditionType.CONTAINS:
            return self._contains(value, rule.value)

        if rule.type in (ConditionType.GREATER_THAN, ConditionType.LESS_THAN):
            if rule.threshold is None:
                logger.error(
                    "Missing threshold for %s rule on %s", rule.type, rule.question_id,
                )
                return False
            number = _parse_number(value)
            if number is None:
                return False
            if rule.type == ConditionType.GREATER_THAN:
                return number > rule.threshold
            return number < rule.threshold

        if rule.type == ConditionType.TOP_RANKED:
            return self._top_ranked(value, rule.option_id)

        if rule.type == ConditionType.OPTION_CHECKED:
            return self._option_checked(value, rule.option_id, rule.question_id)

        logger.error("Unknown condition type %r on %s", rule.type, rule.question_id)
        return False

    @staticmethod
    def _contains(value: Any, target: Any) -> bool:
        if isinstance(value, list):
            return any(_strict_equals(item, target) for item in value)
        if isinstance(value, dict):
            # Checkbox-style {optionId: checked} mapping
            return isinstance(target, str) and bool(value.get(target))
        return False

    @staticmethod
    def _top_ranked(value: Any, option_id: Any) -> bool:
        """True if ``option_id`` holds the highest position in the mapping.

        Ties resolve to the first entry in insertion order.
        """
        if not option_id or not isinstance(value, dict) or not value:
            return False
        positions = [
            (key, num)
            for key, num in ((k, _parse_number(v)) for k, v in value.items())
            if num is not None
        ]
        if not positions:
            return False
        top_key = max(positions, key=lambda kv: kv[1])[0]
        return top_key == option_id

    @staticmethod
    def _option_checked(value: Any, option_id: Any, question_id: str) -> bool:
        if not option_id:
            logger.error("Missing optionId for optionChecked rule on %s", question_id)
            return False

        wanted = option_id if isinstance(option_id, list) else [option_id]
        for opt in wanted:
            if isinstance(value, dict) and value.get(opt) is True:
                return True
            if isinstance(value, list) and opt in value:
                return True
            if isinstance(value, str) and value == opt:
                return True
        return False


# ----------------------------------------------------------------------
# Value helpers
# ----------------------------------------------------------------------

def _is_other_answer(value: Any) -> bool:
    """Radio answers using the free-text "other" option never equal a plain value."""
    return isinstance(value, dict) and bool(value.get("isOther"))


def _strict_equals(a: Any, b: Any) -> bool:
    """Equality that does not conflate booleans with numbers."""
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def _parse_number(value: Any) -> float | None:
    """Parse a response value as a number, or return None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if match is None:
            return None
        number = float(match.group(0))
    else:
        return None
    if math.isnan(number):
        return None
    return number
