from __future__ import annotations

import copy

import pytest

from survey_core.config import STYLE_GROUPS

LIKERT = [
    ("1", "Strongly disagree", "أعارض بشدة"),
    ("2", "Disagree", "أعارض"),
    ("3", "Neutral", "محايد"),
    ("4", "Agree", "أوافق"),
    ("5", "Strongly agree", "أوافق بشدة"),
]

LEADERSHIP_INTERPRETATION = {
    "groups": {
        "authoritarian": [
            {
                "id": "dominant_authoritarian",
                "title": {"en": "Authoritarian Leader", "ar": "قائد سلطوي"},
                "description": {
                    "en": "Focuses on control. See [guide](http://x/y) for more",
                    "ar": "يركز على السيطرة. راجع [الدليل](http://x/y)",
                },
                "pros": {"en": "- Clear direction\n- Fast decisions", "ar": "- توجيه واضح"},
                "recommendations": "Invite input from the team",
            },
        ],
        "democratic": [
            {"id": "dominant_democratic", "title": "Democratic Leader", "description": "Encourages participation."},
        ],
        "laissez_faire": [
            {"id": "dominant_laissez_faire", "title": "Laissez-Faire Leader", "description": "Minimal guidance."},
        ],
        "overall": [
            {"id": "balanced_ambivalent", "title": "Balanced Leadership", "description": "A mix of all styles."},
            {"id": "mixed_authoritarian_democratic", "title": "Authoritarian-Democratic Mix",
             "description": "Control with participation."},
        ],
    },
    "selection_rules": [],
}


def build_leadership_survey(
    *,
    id_offset: int = 100,
    by_order: bool = True,
    aggregate: str = "sum",
    interpretation: dict | None = None,
) -> dict:
    """Six-question leadership survey: two questions per style group.

    Question ids are ``id_offset + order``; config keys use orders unless
    ``by_order`` is False.
    """

    questions = []
    for order in range(1, 7):
        questions.append(
            {
                "id": id_offset + order,
                "question_order": order,
                "options": [{"value": v, "text": {"en": en, "ar": ar}} for v, en, ar in LIKERT],
            }
        )
    key = (lambda order: str(order)) if by_order else (lambda order: str(id_offset + order))
    mappings = {key(o): {v: int(v) for v, _, _ in LIKERT} for o in range(1, 7)}
    groups = {
        name: [int(key(2 * i + 1)), int(key(2 * i + 2))] for i, name in enumerate(STYLE_GROUPS)
    }
    scoring = {"type": "grouped", "mappings": mappings, "groups": groups, "group_aggregate": aggregate}
    return {
        "survey": {
            "scoring": scoring,
            "interpretation": copy.deepcopy(interpretation if interpretation is not None else LEADERSHIP_INTERPRETATION),
            "metadata": {"name": "Leadership styles"},
        },
        "questions": questions,
    }


def yes_no_survey() -> dict:
    return {
        "survey": {
            "scoring": {
                "type": "sum",
                "mappings": {"1": {"Yes": 1, "No": 0}, "2": {"Yes": 1, "No": 0}},
            },
        },
        "questions": [
            {"id": 1, "question_order": 1, "options": ["Yes", "No"]},
            {"id": 2, "question_order": 2, "options": ["Yes", "No"]},
        ],
    }


@pytest.fixture
def leadership_survey() -> dict:
    return build_leadership_survey()


@pytest.fixture
def interpretation() -> dict:
    return copy.deepcopy(LEADERSHIP_INTERPRETATION)
