from __future__ import annotations
from typing import Any, Dict, List

from .config import GROUP_AGGREGATES, IMPLEMENTED_SCORING_TYPES, SCORING_TYPES

Problem = Dict[str, str]


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _check_weights(scoring: Dict[str, Any], name: str, errors: List[Problem]) -> None:
    weights = scoring.get(name)
    if weights is None:
        return
    if not isinstance(weights, dict):
        errors.append({"field": f"scoring.{name}", "message": f"{name} must be an object"})
        return
    for qid, w in weights.items():
        if not _is_number(w) or w < 0:
            errors.append({"field": f"scoring.{name}.{qid}", "message": "Weight must be a non-negative number"})


def _check_type(scoring: Dict[str, Any], errors: List[Problem]) -> None:
    stype = scoring.get("type")
    if stype not in SCORING_TYPES:
        errors.append({
            "field": "scoring.type",
            "message": f"Scoring type must be one of: {', '.join(SCORING_TYPES)}",
        })
    elif stype not in IMPLEMENTED_SCORING_TYPES:
        errors.append({"field": "scoring.type", "message": f"scoring type '{stype}' is not implemented"})


def _check_common(scoring: Dict[str, Any], errors: List[Problem]) -> None:
    mappings = scoring.get("mappings")
    if mappings is not None:
        if not isinstance(mappings, dict):
            errors.append({"field": "scoring.mappings", "message": "Mappings must be an object"})
        else:
            for qid, opts in mappings.items():
                if not isinstance(opts, dict):
                    errors.append({"field": f"scoring.mappings.{qid}", "message": "Option mapping must be an object"})
    _check_weights(scoring, "weights", errors)
    _check_weights(scoring, "weight_overrides", errors)
    agg = scoring.get("group_aggregate")
    if agg is not None and agg not in GROUP_AGGREGATES:
        errors.append({
            "field": "scoring.group_aggregate",
            "message": f"group_aggregate must be one of: {', '.join(GROUP_AGGREGATES)}",
        })


def validate_scoring(scoring: Any) -> List[Problem]:
    """Full validation for a scoring block at authoring time; empty list means valid."""
    if not isinstance(scoring, dict):
        return [{"field": "scoring", "message": "Scoring must be an object"}]
    errors: List[Problem] = []
    _check_type(scoring, errors)
    _check_common(scoring, errors)
    stype = scoring.get("type")
    if stype == "grouped" and not isinstance(scoring.get("groups"), dict):
        errors.append({"field": "scoring.groups", "message": "Groups object is required for grouped scoring"})
    if stype == "formula" and not isinstance(scoring.get("expression"), str):
        errors.append({"field": "scoring.expression", "message": "Expression string is required for formula scoring"})
    return errors


def validate_partial_scoring(scoring: Any) -> List[Problem]:
    """PATCH semantics: only fields that are present are checked."""
    if not isinstance(scoring, dict):
        return [{"field": "scoring", "message": "Scoring must be an object"}]
    errors: List[Problem] = []
    if "type" in scoring:
        _check_type(scoring, errors)
    _check_common(scoring, errors)
    if "groups" in scoring and not isinstance(scoring["groups"], dict):
        errors.append({"field": "scoring.groups", "message": "Groups must be an object"})
    if "expression" in scoring and not isinstance(scoring["expression"], str):
        errors.append({"field": "scoring.expression", "message": "Expression must be a string"})
    return errors


def validate_interpretation(interpretation: Any) -> List[Problem]:
    if interpretation is None:
        return []
    if not isinstance(interpretation, dict):
        return [{"field": "interpretation", "message": "Interpretation must be an object"}]
    errors: List[Problem] = []
    groups = interpretation.get("groups")
    if groups is not None and not isinstance(groups, dict):
        errors.append({"field": "interpretation.groups", "message": "Groups must be an object"})
    rules = interpretation.get("selection_rules")
    if rules is None:
        return errors
    if not isinstance(rules, list):
        errors.append({"field": "interpretation.selection_rules", "message": "selection_rules must be an array"})
        return errors
    for i, rule in enumerate(rules):
        path = f"interpretation.selection_rules[{i}]"
        conds = rule.get("conditions") if isinstance(rule, dict) else None
        if not isinstance(conds, list):
            errors.append({"field": f"{path}.conditions", "message": "conditions must be an array"})
            continue
        for j, cond in enumerate(conds):
            cpath = f"{path}.conditions[{j}]"
            if not isinstance(cond, dict):
                errors.append({"field": cpath, "message": "condition must be an object"}); continue
            if cond.get("type") not in ("difference", "abs_difference", "compare"):
                errors.append({"field": f"{cpath}.type", "message": "type must be difference, abs_difference or compare"})
            if cond.get("operator") not in (">=", ">", "<=", "<", "==", "!="):
                errors.append({"field": f"{cpath}.operator", "message": "unsupported operator"})
    return errors
