# survey_core/interpretation.py
"""Pick an authored interpretation entry for a set of group scores.

Resolution order:

1. ``selection_rules`` in authored order; first rule whose conditions all hold.
2. Dominance: one style group leads both others by ``dominance_margin``.
3. Proximity: all three styles within ``proximity_margin`` (balanced), or two
   close styles both leading the third by ``dominance_margin`` (mixed).
4. Highest score, ties broken by style-group precedence.

A miss at every stage returns ``None``; callers treat that as "no
interpretation available".
"""
from __future__ import annotations

import logging
import operator
from itertools import permutations
from typing import Any, Callable, Dict, List, Mapping, Optional

from .config import ResolverSettings
from .types import Condition, Resolution, SelectionRule

log = logging.getLogger(__name__)

Scores = Mapping[str, float]

_OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}


def _score(scores: Scores, name: Optional[str]) -> Optional[float]:
    if name is None:
        return None
    val = scores.get(name)
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return None
    return float(val)


def evaluate_condition(cond: Condition, scores: Scores) -> bool:
    op = _OPERATORS.get(cond.operator)
    left = _score(scores, cond.left)
    if op is None or left is None:
        return False

    if cond.type == "compare":
        target = cond.value if cond.value is not None else _score(scores, cond.right)
        return target is not None and op(left, target)

    right = _score(scores, cond.right)
    if right is None:
        return False
    threshold = cond.value if cond.value is not None else 0.0
    if cond.type == "difference":
        return op(left - right, threshold)
    if cond.type == "abs_difference":
        return op(abs(left - right), threshold)
    log.debug("unknown condition type %r", cond.type)
    return False


def rule_matches(rule: SelectionRule, scores: Scores) -> bool:
    return all(evaluate_condition(c, scores) for c in rule.conditions)


def _entries(groups: Mapping[str, Any], name: Optional[str]) -> List[Dict[str, Any]]:
    arr = groups.get(name) if name is not None else None
    return [e for e in arr if isinstance(e, Mapping)] if isinstance(arr, list) else []


def _entry_id(entry: Mapping[str, Any]) -> Optional[str]:
    for key in ("id", "entry_id", "key"):
        if entry.get(key) is not None:
            return str(entry[key])
    return None


def find_entry(groups: Mapping[str, Any], name: Optional[str], entry_id: Optional[str] = None,
               default_first: bool = True) -> Optional[Dict[str, Any]]:
    entries = _entries(groups, name)
    if entry_id is not None:
        for entry in entries:
            if _entry_id(entry) == entry_id:
                return dict(entry)
    if default_first and entries:
        return dict(entries[0])
    return None


class InterpretationResolver:
    """Resolve group scores against an interpretation config (``groups`` + ``selection_rules``)."""

    def __init__(self, settings: ResolverSettings | None = None):
        self.settings = settings or ResolverSettings.from_cfg()

    # ---- phase 1 ----
    def _from_rules(self, scores: Scores, groups: Mapping[str, Any], rules: List[SelectionRule]) -> Optional[Resolution]:
        overall = self.settings.overall_group
        for idx, rule in enumerate(rules):
            if not rule_matches(rule, scores):
                continue
            target = rule.group or overall
            entry = find_entry(groups, target, rule.entry_id)
            if entry is None:
                log.info("selection rule %d matched but group %r has no entries", idx, target)
                continue
            if target == overall:
                primary = rule.primary_group
            else:
                primary = rule.primary_group or target
            category = _entry_id(entry) or rule.entry_id or target
            return Resolution(entry=entry, category=category, primary_group=primary,
                              group=target, source="rule")
        return None

    def _style_scores(self, scores: Scores) -> Optional[Dict[str, float]]:
        vals = {g: _score(scores, g) for g in self.settings.style_groups}
        if any(v is None for v in vals.values()):
            return None
        return vals  # type: ignore[return-value]

    def _lookup(self, groups: Mapping[str, Any], entry_id: str, *names: Optional[str]) -> Optional[Dict[str, Any]]:
        for name in names:
            entry = find_entry(groups, name, entry_id, default_first=False)
            if entry is not None:
                return entry
        return None

    # ---- phase 2 ----
    def _from_dominance(self, styles: Dict[str, float], groups: Mapping[str, Any]) -> Optional[Resolution]:
        margin = self.settings.dominance_margin
        for g, score in styles.items():
            others = [v for k, v in styles.items() if k != g]
            if all(score >= o + margin for o in others):
                category = f"dominant_{g}"
                entry = self._lookup(groups, category, g, self.settings.overall_group)
                if entry is not None:
                    return Resolution(entry=entry, category=category, primary_group=g, group=g, source="dominance")
        return None

    # ---- phase 3 ----
    def _from_proximity(self, styles: Dict[str, float], groups: Mapping[str, Any]) -> Optional[Resolution]:
        close = self.settings.proximity_margin
        lead = self.settings.dominance_margin
        overall = self.settings.overall_group
        names = list(styles)

        if all(abs(styles[a] - styles[b]) <= close for a, b in permutations(names, 2)):
            category = self.settings.balanced_entry_id
            entry = self._lookup(groups, category, overall)
            if entry is not None:
                return Resolution(entry=entry, category=category, primary_group=None, group=overall, source="proximity")

        for a, b in permutations(names, 2):
            third = next(n for n in names if n not in (a, b))
            if abs(styles[a] - styles[b]) > close:
                continue
            if styles[a] >= styles[third] + lead and styles[b] >= styles[third] + lead:
                category = f"mixed_{a}_{b}"
                entry = self._lookup(groups, category, overall)
                if entry is not None:
                    return Resolution(entry=entry, category=category, primary_group=None, group=overall, source="proximity")
        return None

    # ---- phase 4 ----
    def _from_highest(self, scores: Scores, groups: Mapping[str, Any]) -> Optional[Resolution]:
        precedence = {g: i for i, g in enumerate(self.settings.style_groups)}
        overall = self.settings.overall_group
        candidates = [
            (name, _score(scores, name)) for name in scores
            if name != overall and _score(scores, name) is not None
        ]
        if not candidates:
            return None
        order = {name: i for i, (name, _) in enumerate(candidates)}
        candidates.sort(key=lambda kv: (-kv[1], precedence.get(kv[0], len(precedence) + order[kv[0]])))
        top = candidates[0][0]
        entry = find_entry(groups, top)
        if entry is None:
            return None
        return Resolution(entry=entry, category=_entry_id(entry) or f"primary_{top}",
                          primary_group=top, group=top, source="highest")

    def resolve(self, scores: Scores, interpretation: Mapping[str, Any] | None) -> Optional[Resolution]:
        if not isinstance(interpretation, Mapping) or not isinstance(scores, Mapping):
            return None
        groups = interpretation.get("groups")
        if not isinstance(groups, Mapping):
            return None
        raw_rules = interpretation.get("selection_rules")
        rules = [SelectionRule.from_raw(r) for r in raw_rules if isinstance(r, Mapping)] if isinstance(raw_rules, list) else []

        found = self._from_rules(scores, groups, rules)
        if found is not None:
            return found
        styles = self._style_scores(scores)
        if styles is not None:
            found = self._from_dominance(styles, groups) or self._from_proximity(styles, groups)
            if found is not None:
                return found
        found = self._from_highest(scores, groups)
        if found is None:
            log.info("no interpretation entry resolved for scores %s", dict(scores))
        return found


def resolve(scores: Scores, interpretation: Mapping[str, Any] | None,
            settings: ResolverSettings | None = None) -> Optional[Resolution]:
    return InterpretationResolver(settings).resolve(scores, interpretation)


__all__ = ["InterpretationResolver", "evaluate_condition", "find_entry", "resolve", "rule_matches"]
