import copy
from pathlib import Path

import pytest

from survey_engine.engine import SurveyEngine
from survey_engine.storage import InMemoryResumeStorage

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# Three steps; the middle one has a single required radio question.
_SCENARIO = {
    "id": "scenario",
    "title": "Scenario Survey",
    "steps": [
        {
            "id": "s1",
            "title": "Intro",
            "questions": [
                {"id": "intro_name", "type": "shortText", "title": "Your name"},
            ],
        },
        {
            "id": "s2",
            "title": "Choice",
            "questions": [
                {
                    "id": "Q1",
                    "type": "radio",
                    "title": "Pick one",
                    "required": True,
                    "options": [{"value": "a", "label": "A"}, {"value": "b", "label": "B"}],
                },
            ],
        },
        {
            "id": "s3",
            "title": "Done",
            "questions": [
                {"id": "final_note", "type": "longText", "title": "Anything else?"},
            ],
        },
    ],
}

# Two steps with conditional questions on the first.
_CONDITIONAL = {
    "id": "conditional",
    "title": "Conditional Survey",
    "steps": [
        {
            "id": "c1",
            "title": "Basics",
            "questions": [
                {"id": "pet", "type": "radio", "title": "Do you have a pet?", "required": True},
                {
                    "id": "pet_name",
                    "type": "shortText",
                    "title": "Pet name",
                    "required": True,
                    "conditions": {
                        "operator": "AND",
                        "rules": [{"questionId": "pet", "type": "equals", "value": "yes"}],
                    },
                },
                {
                    "id": "why_not",
                    "type": "longText",
                    "title": "Why not?",
                    "conditions": {
                        "rules": [{"questionId": "pet", "type": "equals", "value": "no"}],
                    },
                },
            ],
        },
        {
            "id": "c2",
            "title": "More",
            "questions": [
                {"id": "age", "type": "rangeSlider", "title": "Age"},
                {
                    "id": "senior_note",
                    "type": "shortText",
                    "conditions": {
                        "rules": [{"questionId": "age", "type": "greaterThan", "threshold": 65}],
                    },
                },
            ],
        },
    ],
}


@pytest.fixture
def scenario_data():
    """Plain dict for the three-step scenario survey (safe to mutate)."""
    return copy.deepcopy(_SCENARIO)


@pytest.fixture
def conditional_data():
    return copy.deepcopy(_CONDITIONAL)


@pytest.fixture
def storage():
    return InMemoryResumeStorage()


@pytest.fixture
def engine(scenario_data, storage):
    """Engine with the scenario survey loaded and empty in-memory storage."""
    eng = SurveyEngine(storage=storage)
    eng.load_definition(scenario_data)
    return eng


@pytest.fixture
def conditional_engine(conditional_data):
    eng = SurveyEngine()
    eng.load_definition(conditional_data)
    return eng


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR
