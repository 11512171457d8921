from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Literal, Mapping

from .localization import LocalizedText, normalize_localized_output, option_text_candidate

ScoringType = Literal["sum", "grouped", "formula", "mixed_sign", "paired-options"]
GroupAggregate = Literal["sum", "avg", "weighted_sum"]
ConditionType = Literal["difference", "abs_difference", "compare"]


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_number(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Option:
    value: str
    text: LocalizedText
    group: Optional[str] = None
    label: Optional[str] = None

    @staticmethod
    def from_raw(raw: Any, index: int) -> "Option":
        if not isinstance(raw, dict):
            text = normalize_localized_output(raw) or {"en": "", "ar": ""}
            return Option(value=str(raw), text=text)
        text = normalize_localized_output(option_text_candidate(raw)) or {"en": "", "ar": ""}
        value = raw.get("value")
        label = raw.get("label")
        return Option(
            value=str(value) if value is not None else (text.get("en") or str(index + 1)),
            text=text,
            group=str(raw["group"]) if raw.get("group") not in (None, "") else None,
            label=str(label) if isinstance(label, (str, int, float)) else None,
        )


@dataclass
class Question:
    id: int
    question_order: Optional[int] = None
    options: List[Option] = field(default_factory=list)
    weight: float = 1.0

    @staticmethod
    def from_raw(raw: Mapping[str, Any]) -> Optional["Question"]:
        qid = _as_int(raw.get("id"))
        if qid is None:
            return None
        options = raw.get("options")
        return Question(
            id=qid,
            question_order=_as_int(raw.get("question_order")),
            options=[Option.from_raw(o, i) for i, o in enumerate(options)] if isinstance(options, list) else [],
            weight=_as_number(raw.get("weight"), 1.0),
        )


def parse_questions(raw_questions: Any) -> List[Question]:
    if not isinstance(raw_questions, list):
        return []
    out: List[Question] = []
    for raw in raw_questions:
        if isinstance(raw, Question):
            out.append(raw)
        elif isinstance(raw, Mapping):
            q = Question.from_raw(raw)
            if q is not None:
                out.append(q)
    return out


# ---- scoring configs: one variant per scoring type ----
@dataclass(frozen=True)
class ScoringConfig:
    type: str
    mappings: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    weights: Dict[str, Any] = field(default_factory=dict)
    weight_overrides: Dict[str, Any] = field(default_factory=dict)
    interpretations: Any = None
    result_pages: Any = None
    thresholds: Any = None


@dataclass(frozen=True)
class SumConfig(ScoringConfig):
    pass


@dataclass(frozen=True)
class MixedSignConfig(ScoringConfig):
    pass


@dataclass(frozen=True)
class GroupedConfig(ScoringConfig):
    groups: Dict[str, List[Any]] = field(default_factory=dict)
    group_aggregate: str = "sum"


@dataclass(frozen=True)
class FormulaConfig(ScoringConfig):
    expression: str = ""


@dataclass(frozen=True)
class PairedOptionsConfig(ScoringConfig):
    group_mapping: Dict[str, Any] = field(default_factory=dict)


# ---- interpretation rules ----
@dataclass(frozen=True)
class Condition:
    type: str
    left: Optional[str]
    right: Optional[str] = None
    operator: str = ">="
    value: Optional[float] = None

    @staticmethod
    def from_raw(raw: Mapping[str, Any]) -> "Condition":
        value = raw.get("value")
        return Condition(
            type=str(raw.get("type") or "compare"),
            left=str(raw["left"]) if raw.get("left") is not None else None,
            right=str(raw["right"]) if raw.get("right") is not None else None,
            operator=str(raw.get("operator") or ">="),
            value=None if value is None or isinstance(value, bool) else _as_number(value, 0.0),
        )


@dataclass(frozen=True)
class SelectionRule:
    conditions: List[Condition]
    group: Optional[str] = None
    entry_id: Optional[str] = None
    primary_group: Optional[str] = None

    @staticmethod
    def from_raw(raw: Mapping[str, Any]) -> "SelectionRule":
        conds = raw.get("conditions")
        group = raw.get("group", raw.get("target_group"))
        entry_id = raw.get("entry_id", raw.get("interpretation_id", raw.get("id")))
        primary = raw.get("primary_group")
        return SelectionRule(
            conditions=[Condition.from_raw(c) for c in conds if isinstance(c, Mapping)] if isinstance(conds, list) else [],
            group=str(group) if group is not None else None,
            entry_id=str(entry_id) if entry_id is not None else None,
            primary_group=str(primary) if primary is not None else None,
        )


@dataclass(frozen=True)
class Resolution:
    entry: Dict[str, Any]
    category: str
    primary_group: Optional[str]
    group: Optional[str] = None
    source: str = "rule"  # rule | dominance | proximity | highest
