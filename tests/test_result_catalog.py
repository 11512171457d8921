from __future__ import annotations

import pytest

from survey_core.config import THEME_COLORS
from survey_core.result_catalog import (
    entry_in_range,
    generate_recommendations,
    level_name,
    list_result_pages,
    match_threshold,
    parse_range,
    theme_color,
)


@pytest.mark.parametrize(
    "text,level",
    [
        ("Poor fit", "low"),
        ("Low risk", "low"),
        ("Moderate", "medium"),
        ("Good", "high"),
        ("Excellent", "excellent"),
        ({"en": "Very strong", "ar": "قوي جدا"}, "excellent"),
        ("Something else", "custom"),
        (None, "custom"),
    ],
)
def test_level_name(text, level):
    assert level_name(text) == level


def test_theme_color():
    assert theme_color("high") == THEME_COLORS["high"]
    assert theme_color("Fair result") == THEME_COLORS["medium"]
    assert theme_color("???") == THEME_COLORS["custom"]


def test_recommendations_mention_group():
    recs = generate_recommendations("Good", "democratic")
    assert recs[0] == "Great job! Keep up the good work"
    assert recs[-1] == "Explore more about democratic"
    assert generate_recommendations("unknown") == ["Review your results carefully"]


def test_parse_range():
    assert parse_range("0-10") == (0.0, 10.0)
    assert parse_range(" -5 - 5 ") == (-5.0, 5.0)
    assert parse_range("7") == (7.0, 7.0)
    assert parse_range("high") is None


THRESHOLDS = {"11-20": "Good", "0-10": "Poor", "21-30": "Excellent", "junk": "ignored"}


def test_match_threshold_orders_ranges_numerically():
    hit = match_threshold(15, THRESHOLDS)
    assert hit["level"] == 2
    assert hit["levelName"] == "high"
    assert hit["totalLevels"] == 3
    assert hit["current"]["range"] == "11-20"
    assert match_threshold(10, THRESHOLDS)["level"] == 1
    assert match_threshold(10.5, THRESHOLDS) is None
    assert match_threshold(5, None) is None


def test_pages_from_flat_thresholds():
    pages = list_result_pages({"type": "sum", "thresholds": THRESHOLDS})
    assert [p["pageId"] for p in pages] == ["result_page_1", "result_page_2", "result_page_3"]
    assert pages[0]["template"]["styling"] == {"theme": "low", "color": THEME_COLORS["low"]}
    assert pages[2]["template"]["subtitle"] == "Your survey results"


def test_pages_from_grouped_thresholds():
    scoring = {"type": "grouped", "thresholds": {"democratic": {"0-5": "Low", "6-10": "High"}, "bad": 3}}
    pages = list_result_pages(scoring)
    assert [p["pageId"] for p in pages] == ["result_page_democratic_1", "result_page_democratic_2"]
    assert pages[1]["group"] == "democratic"
    assert pages[1]["template"]["subtitle"] == "Your democratic results"


def test_authored_pages_take_priority():
    scoring = {
        "thresholds": THRESHOLDS,
        "result_pages": {
            "overall": [{"title": "Excellent", "min": 20, "max": 30}],
            "groups": {"democratic": [{"pageId": "dem", "interpretation": "Fair", "color": "#111111"}]},
        },
    }
    pages = list_result_pages(scoring)
    assert [p["pageId"] for p in pages] == ["result_page_1", "dem"]
    assert pages[0]["levelName"] == "excellent"
    assert pages[0]["group"] is None
    assert pages[1]["template"]["styling"] == {"theme": "medium", "color": "#111111"}


def test_no_pages():
    assert list_result_pages({"type": "sum"}) == []
    assert list_result_pages(None) == []


@pytest.mark.parametrize(
    "entry,score,expected",
    [
        ({"min": 0, "max": 10}, 10, True),
        ({"min": 0, "max": 10}, 11, False),
        ({"min": 5}, 100, True),
        ({"max": 5}, -3, True),
        ({"range": "3-4"}, 3.5, True),
        ({"range": "nope"}, 3, False),
        ({"min": "x", "max": 2}, 1, False),
        ({}, 1, False),
        ("entry", 1, False),
    ],
)
def test_entry_in_range(entry, score, expected):
    assert entry_in_range(entry, score) is expected
