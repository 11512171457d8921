"""Scoring strategies, one pure function per ``scoring.type``.

Every strategy takes already-normalized responses (keyed by question id
strings) and a typed config from :func:`parse_scoring_config`, and returns a
fresh dict. Missing answers, unmapped options and non-numeric configured
values contribute 0.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Mapping, Optional

from .config import DEFAULT_SCORING_TYPE, GROUP_AGGREGATES, IMPLEMENTED_SCORING_TYPES, SCORING_TYPES
from .errors import ConfigurationError, ExpressionError, UnimplementedStrategyError, UnknownScoringTypeError
from .expression import evaluate
from .responses import slugify
from .types import (
    FormulaConfig,
    GroupedConfig,
    MixedSignConfig,
    PairedOptionsConfig,
    ScoringConfig,
    SumConfig,
)

log = logging.getLogger(__name__)

Evaluator = Callable[[str, Mapping[str, Any]], Any]


def _dict(value: Any) -> Dict[str, Any]:
    return {str(k): v for k, v in value.items()} if isinstance(value, Mapping) else {}


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def parse_scoring_config(raw: Any, strict: bool = False) -> ScoringConfig:
    """Build the typed config variant for ``raw['type']``.

    Legacy shapes are accepted: ``None`` or a bare string become
    ``{"type": raw or "sum"}``. With ``strict`` an unknown type raises
    :class:`UnknownScoringTypeError`; otherwise it is scored as ``sum``.
    """

    if raw is None or isinstance(raw, str):
        raw = {"type": raw or DEFAULT_SCORING_TYPE}
    if not isinstance(raw, Mapping):
        if strict:
            raise ConfigurationError("scoring must be an object")
        raw = {}

    stype = raw.get("type") or DEFAULT_SCORING_TYPE
    if stype not in SCORING_TYPES:
        if strict:
            raise UnknownScoringTypeError(stype)
        log.warning("unknown scoring type %r, falling back to %s", stype, DEFAULT_SCORING_TYPE)
        stype = DEFAULT_SCORING_TYPE

    mappings = {k: _dict(v) for k, v in _dict(raw.get("mappings")).items() if isinstance(v, Mapping)}
    common = dict(
        type=stype,
        mappings=mappings,
        weights=_dict(raw.get("weights")),
        weight_overrides=_dict(raw.get("weight_overrides")),
        interpretations=raw.get("interpretations"),
        result_pages=raw.get("result_pages"),
        thresholds=raw.get("thresholds"),
    )

    if stype == "grouped":
        groups = {name: list(arr) for name, arr in _dict(raw.get("groups")).items() if isinstance(arr, (list, tuple))}
        if strict and not isinstance(raw.get("groups"), Mapping):
            raise ConfigurationError("groups object is required for grouped scoring")
        aggregate = raw.get("group_aggregate") or "sum"
        if aggregate not in GROUP_AGGREGATES:
            if strict:
                raise ConfigurationError(f"unsupported group_aggregate: {aggregate!r}")
            aggregate = "sum"
        return GroupedConfig(groups=groups, group_aggregate=aggregate, **common)
    if stype == "formula":
        expression = raw.get("expression")
        if strict and not isinstance(expression, str):
            raise ConfigurationError("expression string is required for formula scoring")
        return FormulaConfig(expression=expression if isinstance(expression, str) else "", **common)
    if stype == "paired-options":
        return PairedOptionsConfig(group_mapping=_dict(raw.get("group_mapping")), **common)
    if stype == "mixed_sign":
        return MixedSignConfig(**common)
    return SumConfig(**common)


def _answer_value(opts_map: Mapping[str, Any], answer: Any) -> float:
    if answer is None:
        return 0.0
    if isinstance(answer, (list, tuple)):
        # multi-select: every chosen option contributes its mapped value
        return sum(_answer_value(opts_map, a) for a in answer)
    if isinstance(answer, float) and answer.is_integer():
        answer = int(answer)
    key = str(answer)
    if key not in opts_map:
        # answers for option-less questions arrive slugified
        key = next((k for k in opts_map if slugify(k) == slugify(key)), key)
    val = _finite(opts_map.get(key))
    return val if val is not None else 0.0


def question_values(responses: Mapping[str, Any], mappings: Mapping[str, Mapping[str, Any]]) -> Dict[str, float]:
    """Per-question resolved value for every question that has a mapping."""

    return {qid: _answer_value(opts, responses.get(qid)) for qid, opts in mappings.items()}


def score_sum(responses: Mapping[str, Any], cfg: ScoringConfig) -> Dict[str, Any]:
    total = sum(question_values(responses, cfg.mappings).values())
    return {"score": total, "total": total}


def score_mixed_sign(responses: Mapping[str, Any], cfg: ScoringConfig) -> Dict[str, Any]:
    # negative option values are allowed; arithmetic is identical to sum
    return score_sum(responses, cfg)


def _weight(cfg: ScoringConfig, qid: str) -> float:
    for source in (cfg.weight_overrides, cfg.weights):
        val = _finite(source.get(qid))
        if val is not None:
            return val
    return 1.0


def _aggregate(values: list, qids: list, cfg: GroupedConfig) -> float:
    if cfg.group_aggregate == "avg":
        return sum(values) / len(values) if values else 0.0
    if cfg.group_aggregate == "weighted_sum":
        return sum(v * _weight(cfg, q) for v, q in zip(values, qids))
    return sum(values)


def score_grouped(responses: Mapping[str, Any], cfg: ScoringConfig) -> Dict[str, Any]:
    qval = question_values(responses, cfg.mappings)
    groups = cfg.groups if isinstance(cfg, GroupedConfig) else {}
    per_group: Dict[str, float] = {}
    for name, members in groups.items():
        qids = [str(m) for m in members]
        per_group[name] = float(_aggregate([qval.get(q, 0.0) for q in qids], qids, cfg))
    total = sum(per_group.values())
    return {"score": total, "total": total, "perGroup": per_group}


def formula_variables(values: Mapping[str, float], question_orders: Mapping[Any, Any] | None) -> Dict[str, float]:
    """Variable map for expressions: ``q<id>`` for every mapped question plus ``Q<order>`` aliases."""

    variables: Dict[str, float] = {f"q{qid}": val for qid, val in values.items()}
    for order, qid in (question_orders or {}).items():
        if str(qid) in values:
            variables[f"Q{order}"] = values[str(qid)]
    return variables


def score_formula(
    responses: Mapping[str, Any],
    cfg: ScoringConfig,
    question_orders: Mapping[Any, Any] | None = None,
    evaluator: Evaluator = evaluate,
) -> Dict[str, Any]:
    values = question_values(responses, cfg.mappings)
    expression = cfg.expression if isinstance(cfg, FormulaConfig) else ""
    try:
        raw = evaluator(expression, formula_variables(values, question_orders))
    except (ExpressionError, ArithmeticError, RecursionError, TypeError, ValueError) as exc:
        log.warning("formula evaluation failed for %r: %s", expression, exc)
        raw = 0
    try:
        total = float(raw)
    except (TypeError, ValueError):
        total = 0.0
    if not math.isfinite(total):
        total = 0.0
    return {"score": total, "total": total, "vars": values}


def score_paired_options(responses: Mapping[str, Any], cfg: ScoringConfig) -> Dict[str, Any]:
    raise UnimplementedStrategyError("paired-options")


STRATEGIES: Dict[str, Callable[..., Dict[str, Any]]] = {
    "sum": score_sum,
    "mixed_sign": score_mixed_sign,
    "grouped": score_grouped,
    "formula": score_formula,
    "paired-options": score_paired_options,
}


def run_strategy(
    responses: Mapping[str, Any],
    cfg: ScoringConfig,
    question_orders: Mapping[Any, Any] | None = None,
    evaluator: Evaluator = evaluate,
) -> Dict[str, Any]:
    if cfg.type not in IMPLEMENTED_SCORING_TYPES:
        raise UnimplementedStrategyError(cfg.type)
    if cfg.type == "formula":
        return score_formula(responses, cfg, question_orders, evaluator)
    return STRATEGIES[cfg.type](responses, cfg)


__all__ = [
    "STRATEGIES",
    "formula_variables",
    "parse_scoring_config",
    "question_values",
    "run_strategy",
    "score_formula",
    "score_grouped",
    "score_mixed_sign",
    "score_paired_options",
    "score_sum",
]
