from __future__ import annotations

import pytest

from survey_core.config import ResolverSettings
from survey_core.interpretation import InterpretationResolver, evaluate_condition, find_entry, resolve
from survey_core.types import Condition, SelectionRule


def _scores(a, d, l):
    return {"authoritarian": a, "democratic": d, "laissez_faire": l}


def test_dominant_style(interpretation):
    res = resolve(_scores(20, 10, 8), interpretation)
    assert res.category == "dominant_authoritarian"
    assert res.entry["id"] == "dominant_authoritarian"
    assert res.primary_group == "authoritarian"
    assert res.source == "dominance"


def test_balanced_when_all_styles_close(interpretation):
    res = resolve(_scores(15, 16, 14), interpretation)
    assert res.category == "balanced_ambivalent"
    assert res.group == "overall"
    assert res.primary_group is None


def test_mixed_when_two_styles_lead(interpretation):
    res = resolve(_scores(20, 19, 10), interpretation)
    assert res.category == "mixed_authoritarian_democratic"
    assert res.entry["id"] == "mixed_authoritarian_democratic"
    assert res.primary_group is None


def test_selection_rule_wins_over_dominance(interpretation):
    interpretation["selection_rules"] = [
        {"conditions": [{"type": "compare", "left": "democratic", "operator": ">=", "value": 5}],
         "group": "democratic"},
    ]
    res = resolve(_scores(20, 10, 8), interpretation)
    assert res.source == "rule"
    assert res.entry["id"] == "dominant_democratic"
    assert res.primary_group == "democratic"


def test_rules_apply_in_authored_order(interpretation):
    interpretation["selection_rules"] = [
        {"conditions": [{"type": "compare", "left": "democratic", "operator": ">", "value": 50}], "group": "democratic"},
        {"conditions": [], "entry_id": "balanced_ambivalent"},
        {"conditions": [], "group": "laissez_faire"},
    ]
    res = resolve(_scores(20, 10, 8), interpretation)
    # empty condition list always matches; no group targets overall
    assert res.entry["id"] == "balanced_ambivalent"
    assert res.group == "overall"
    assert res.primary_group is None


def test_rule_primary_group_override(interpretation):
    interpretation["selection_rules"] = [
        {"conditions": [], "target_group": "overall", "interpretation_id": "mixed_authoritarian_democratic",
         "primary_group": "authoritarian"},
    ]
    res = resolve(_scores(1, 1, 1), interpretation)
    assert res.category == "mixed_authoritarian_democratic"
    assert res.primary_group == "authoritarian"


def test_rule_with_unknown_entry_uses_first_entry(interpretation):
    interpretation["selection_rules"] = [{"conditions": [], "group": "overall", "entry_id": "nope"}]
    res = resolve(_scores(20, 10, 8), interpretation)
    assert res.entry["id"] == "balanced_ambivalent"


def test_rule_targeting_empty_group_is_skipped(interpretation):
    interpretation["selection_rules"] = [{"conditions": [], "group": "missing"}]
    res = resolve(_scores(20, 10, 8), interpretation)
    assert res.source == "dominance"


def test_highest_score_fallback_breaks_ties_by_precedence(interpretation):
    del interpretation["groups"]["overall"]
    res = resolve(_scores(10, 10, 9), interpretation)
    assert res.source == "highest"
    assert res.primary_group == "authoritarian"
    assert res.category == "dominant_authoritarian"


def test_highest_score_for_non_style_groups():
    interp = {"groups": {"x": [{"id": "ex"}], "y": [{"id": "why"}]}}
    res = resolve({"x": 3, "y": 5}, interp)
    assert res.entry == {"id": "why"}
    assert res.primary_group == "y"


def test_nothing_to_resolve():
    assert resolve(_scores(20, 10, 8), None) is None
    assert resolve(_scores(20, 10, 8), {"groups": {}}) is None
    assert resolve(_scores(20, 10, 8), {"groups": "bad"}) is None
    assert resolve({}, {"groups": {"x": [{"id": "a"}]}}) is None


def test_custom_margins(interpretation):
    resolver = InterpretationResolver(ResolverSettings.from_cfg({"DOMINANCE_MARGIN": 15}))
    res = resolver.resolve(_scores(20, 10, 8), interpretation)
    assert res.source == "highest"
    assert res.primary_group == "authoritarian"

    loose = InterpretationResolver(ResolverSettings.from_cfg({"PROXIMITY_MARGIN": 20}))
    assert loose.resolve(_scores(30, 15, 12), interpretation).category == "dominant_authoritarian"
    assert loose.resolve(_scores(20, 18, 17), interpretation).category == "balanced_ambivalent"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ({"type": "compare", "left": "democratic", "operator": ">", "right": "laissez_faire"}, True),
        ({"type": "compare", "left": "democratic", "operator": "==", "value": 10}, True),
        ({"type": "difference", "left": "authoritarian", "right": "democratic", "operator": ">=", "value": 10}, True),
        ({"type": "difference", "left": "democratic", "right": "authoritarian", "operator": ">=", "value": 0}, False),
        ({"type": "abs_difference", "left": "democratic", "right": "authoritarian", "operator": "<=", "value": 5}, False),
        ({"type": "abs_difference", "left": "democratic", "right": "laissez_faire", "operator": "<"}, False),
        ({"type": "abs_difference", "left": "democratic", "right": "laissez_faire", "operator": ">"}, True),
        ({"type": "compare", "left": "missing", "operator": ">=", "value": 0}, False),
        ({"type": "difference", "left": "democratic", "right": "missing", "operator": ">="}, False),
        ({"type": "compare", "left": "democratic", "operator": "=~", "value": 1}, False),
        ({"type": "ratio", "left": "democratic", "right": "authoritarian", "operator": ">"}, False),
    ],
)
def test_conditions(raw, expected):
    assert evaluate_condition(Condition.from_raw(raw), _scores(20, 10, 8)) is expected


def test_selection_rule_aliases():
    rule = SelectionRule.from_raw({"conditions": "bad", "target_group": "g", "id": 7})
    assert rule.conditions == []
    assert rule.group == "g"
    assert rule.entry_id == "7"


def test_find_entry(interpretation):
    groups = interpretation["groups"]
    assert find_entry(groups, "overall", "mixed_authoritarian_democratic")["id"] == "mixed_authoritarian_democratic"
    assert find_entry(groups, "overall", "nope")["id"] == "balanced_ambivalent"
    assert find_entry(groups, "overall", "nope", default_first=False) is None
    assert find_entry(groups, None) is None
