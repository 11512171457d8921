from __future__ import annotations

import pytest

from survey_core.errors import UnimplementedStrategyError, UnknownScoringTypeError, ConfigurationError
from survey_core.scoring import (
    formula_variables,
    parse_scoring_config,
    question_values,
    run_strategy,
)
from survey_core.types import FormulaConfig, GroupedConfig, MixedSignConfig, SumConfig


LIKERT_MAP = {str(v): v for v in range(1, 6)}


def _grouped(aggregate: str, **extra) -> GroupedConfig:
    raw = {
        "type": "grouped",
        "mappings": {"1": LIKERT_MAP, "2": LIKERT_MAP, "3": LIKERT_MAP},
        "groups": {"a": [1, 2], "b": [3]},
        "group_aggregate": aggregate,
    }
    raw.update(extra)
    return parse_scoring_config(raw)


def test_sum_counts_mapped_answers_only():
    cfg = parse_scoring_config({"type": "sum", "mappings": {"1": {"Yes": 1, "No": 0}, "2": {"Yes": 1, "No": 0}}})
    assert isinstance(cfg, SumConfig)
    assert run_strategy({"1": "Yes", "2": "No"}, cfg) == {"score": 1, "total": 1}
    # unanswered question, unknown option and unmapped question all add 0
    assert run_strategy({"2": "Maybe", "9": "Yes"}, cfg)["score"] == 0


def test_numeric_answers_match_string_option_keys():
    cfg = parse_scoring_config({"type": "sum", "mappings": {"1": LIKERT_MAP}})
    assert run_strategy({"1": 4}, cfg)["score"] == 4
    assert run_strategy({"1": 4.0}, cfg)["score"] == 4


def test_multi_select_answers_add_up():
    cfg = parse_scoring_config({"type": "sum", "mappings": {"1": {"a": 1, "b": 2, "c": 4}}})
    assert run_strategy({"1": ["a", "c"]}, cfg)["score"] == 5


def test_mapping_keys_matched_by_slug():
    cfg = parse_scoring_config({"type": "sum", "mappings": {"1": {"Very Often": 3}}})
    assert run_strategy({"1": "very_often"}, cfg)["score"] == 3


def test_non_numeric_mapped_values_count_as_zero():
    cfg = parse_scoring_config({"type": "sum", "mappings": {"1": {"a": "3", "b": True}}})
    assert run_strategy({"1": "a"}, cfg)["score"] == 0
    assert run_strategy({"1": "b"}, cfg)["score"] == 0


def test_mixed_sign_allows_negative_values():
    cfg = parse_scoring_config({"type": "mixed_sign", "mappings": {"1": {"agree": 2, "disagree": -3}, "2": {"agree": 1}}})
    assert isinstance(cfg, MixedSignConfig)
    assert run_strategy({"1": "disagree", "2": "agree"}, cfg) == {"score": -2, "total": -2}


def test_grouped_sum():
    out = run_strategy({"1": "5", "2": "4", "3": "2"}, _grouped("sum"))
    assert out["perGroup"] == {"a": 9.0, "b": 2.0}
    assert out["score"] == out["total"] == 11.0


def test_grouped_avg():
    out = run_strategy({"1": "2", "2": "4", "3": "3"}, _grouped("avg"))
    assert out["perGroup"] == {"a": 3.0, "b": 3.0}


def test_grouped_avg_of_empty_group_is_zero():
    cfg = parse_scoring_config({"type": "grouped", "mappings": {}, "groups": {"empty": []}, "group_aggregate": "avg"})
    assert run_strategy({"1": "x"}, cfg)["perGroup"] == {"empty": 0.0}


def test_grouped_weighted_sum():
    cfg = parse_scoring_config({
        "type": "grouped",
        "mappings": {"1": {"a": 3}, "2": {"a": 4}},
        "groups": {"g": [1, 2]},
        "group_aggregate": "weighted_sum",
        "weights": {"1": 2, "2": 1},
    })
    assert run_strategy({"1": "a", "2": "a"}, cfg)["perGroup"] == {"g": 10.0}


def test_weight_overrides_beat_weights_and_zero_is_honored():
    cfg = _grouped("weighted_sum", weights={"1": 2, "2": 2}, weight_overrides={"1": 0})
    out = run_strategy({"1": "5", "2": "4", "3": "1"}, cfg)
    assert out["perGroup"] == {"a": 8.0, "b": 1.0}


def test_unknown_aggregate_degrades_to_sum():
    out = run_strategy({"1": "1", "2": "1"}, _grouped("median"))
    assert out["perGroup"]["a"] == 2.0


def test_formula_with_id_and_order_variables():
    cfg = parse_scoring_config({
        "type": "formula",
        "expression": "Q1 * 2 + q12",
        "mappings": {"11": LIKERT_MAP, "12": LIKERT_MAP},
    })
    assert isinstance(cfg, FormulaConfig)
    out = run_strategy({"11": "3", "12": "5"}, cfg, {1: 11, 2: 12})
    assert out["score"] == 11.0
    assert out["vars"] == {"11": 3, "12": 5}


@pytest.mark.parametrize("expression", ["q1 +", "__import__('os')", "q1 / 0", "missing * 2", ""])
def test_bad_formula_scores_zero(expression):
    cfg = parse_scoring_config({"type": "formula", "expression": expression, "mappings": {"1": LIKERT_MAP}})
    assert run_strategy({"1": "4"}, cfg)["score"] == 0.0


def test_formula_uses_injected_evaluator():
    cfg = parse_scoring_config({"type": "formula", "expression": "anything", "mappings": {"1": LIKERT_MAP}})
    seen = {}

    def fake(expr, variables):
        seen.update(variables)
        return 42

    assert run_strategy({"1": "2"}, cfg, {1: 1}, fake)["score"] == 42.0
    assert seen == {"q1": 2, "Q1": 2}


def test_formula_variables_skip_unmapped_orders():
    assert formula_variables({"5": 1.0}, {1: 5, 2: 6}) == {"q5": 1.0, "Q1": 1.0}


def test_paired_options_is_rejected():
    cfg = parse_scoring_config({"type": "paired-options", "mappings": {}})
    with pytest.raises(UnimplementedStrategyError, match="paired-options"):
        run_strategy({"1": "a"}, cfg)


def test_unknown_type_falls_back_to_sum():
    cfg = parse_scoring_config({"type": "bogus", "mappings": {"1": {"a": 2}}})
    assert cfg.type == "sum"
    assert run_strategy({"1": "a"}, cfg)["score"] == 2


def test_strict_parsing_raises():
    with pytest.raises(UnknownScoringTypeError):
        parse_scoring_config({"type": "bogus"}, strict=True)
    with pytest.raises(ConfigurationError):
        parse_scoring_config({"type": "formula"}, strict=True)
    with pytest.raises(ConfigurationError):
        parse_scoring_config({"type": "grouped"}, strict=True)


@pytest.mark.parametrize("raw", [None, "sum", "", {"mappings": "nope"}, {"type": "grouped", "groups": "x"}, 12])
def test_malformed_configs_never_throw(raw):
    cfg = parse_scoring_config(raw)
    out = run_strategy({"1": "a"}, cfg)
    assert out["score"] == 0


def test_question_values_covers_every_mapping():
    assert question_values({"1": "b"}, {"1": {"b": 2}, "2": {"b": 1}}) == {"1": 2, "2": 0.0}


@pytest.mark.parametrize("expression", ["-" * 1500 + "q1", "(((9**64)**64)**64)**60", "+".join(["q1"] * 400)])
def test_runaway_formulas_score_zero(expression):
    cfg = parse_scoring_config({"type": "formula", "expression": expression, "mappings": {"1": LIKERT_MAP}})
    assert run_strategy({"1": "4"}, cfg)["score"] == 0.0


def test_evaluator_recursion_is_contained():
    cfg = parse_scoring_config({"type": "formula", "expression": "q1", "mappings": {"1": LIKERT_MAP}})

    def recursive(expr, variables):
        raise RecursionError("maximum recursion depth exceeded")

    assert run_strategy({"1": "4"}, cfg, None, recursive)["score"] == 0.0
