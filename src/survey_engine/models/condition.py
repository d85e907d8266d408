"""Condition models — visibility rules attached to questions.

A question with no ``conditions`` is always visible.  Otherwise its
:class:`ConditionGroup` combines the outcome of every
:class:`ConditionRule` with ``AND`` (all must hold) or ``OR`` (at least
one must hold).

Rule types:
  - answered: referenced question has a non-empty response
  - equals / notEquals: strict (in)equality against ``value``
  - contains: list membership, or a truthy flag under key ``value``
  - greaterThan / lessThan: numeric comparison against ``threshold``
  - topRanked: option with the highest position equals ``optionId``
  - optionChecked: option ``optionId`` (or any of a list) is selected

``operator`` and ``type`` are plain strings rather than literals: an
unknown operator is evaluated fail-open and an unknown rule type fails
closed, so neither should reject the whole survey at load time.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from survey_engine.constants import OPERATOR_AND


class ConditionType:
    """Known rule type names, as they appear in survey JSON."""

    ANSWERED = "answered"
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    TOP_RANKED = "topRanked"
    OPTION_CHECKED = "optionChecked"


class ConditionRule(BaseModel):
    """A single predicate over another question's response."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
    )

    question_id: str
    type: str
    value: Any = None
    threshold: Optional[float] = None
    # A single option id, or a list of acceptable ids for optionChecked
    option_id: Optional[Union[str, list[str]]] = None


class ConditionGroup(BaseModel):
    """A list of rules joined by a logical operator."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
    )

    operator: str = OPERATOR_AND
    rules: list[ConditionRule] = []

    @property
    def referenced_question_ids(self) -> list[str]:
        """Question ids this group reads, in rule order, without duplicates."""
        seen: list[str] = []
        for rule in self.rules:
            if rule.question_id not in seen:
                seen.append(rule.question_id)
        return seen
