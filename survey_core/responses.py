# survey_core/responses.py
"""Reconcile raw answers and authored config keys with persisted questions.

Two separate jobs live here:

* :func:`normalize_responses` maps whatever the client submitted for a
  question (option value, display text in either locale, label, number) onto
  the option's canonical ``value``.
* :func:`normalize_scoring_config` rewrites ``mappings``/``weights``/
  ``weight_overrides`` keys and ``groups`` members that were authored as
  ``question_order`` into question ids, using a :class:`KeyIndex` built up
  front from the question list.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .types import Question, parse_questions

log = logging.getLogger(__name__)

_UNDERSCORE_RX = re.compile(r"[\s\-]+")
_NON_ALNUM_RX = re.compile(r"[^0-9a-z\u0600-\u06ff]+")
_NUMERIC_KEY_RX = re.compile(r"^\d+$")


def _underscored(text: str) -> str:
    return _UNDERSCORE_RX.sub("_", text.strip().lower())


def _compact(text: str) -> str:
    return _NON_ALNUM_RX.sub("", text.strip().lower())


def slugify(text: str) -> str:
    return _NON_ALNUM_RX.sub("_", text.strip().lower()).strip("_")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class OptionLookup:
    """Case-insensitive text -> canonical option value, in three match tiers."""

    exact: Dict[str, str] = field(default_factory=dict)
    underscored: Dict[str, str] = field(default_factory=dict)
    compact: Dict[str, str] = field(default_factory=dict)

    def add(self, representation: Any, canonical: str) -> None:
        if not isinstance(representation, (str, int, float)) or isinstance(representation, bool):
            return
        text = str(representation).strip()
        if not text:
            return
        # first registration wins so option order decides collisions
        self.exact.setdefault(text.lower(), canonical)
        self.underscored.setdefault(_underscored(text), canonical)
        key = _compact(text)
        if key:
            self.compact.setdefault(key, canonical)

    def find(self, raw: str) -> Optional[str]:
        text = raw.strip()
        if not text:
            return None
        for table, key in (
            (self.exact, text.lower()),
            (self.underscored, _underscored(text)),
            (self.compact, _compact(text)),
        ):
            if key and key in table:
                return table[key]
        return None


def build_option_lookup(question: Question) -> OptionLookup:
    lookup = OptionLookup()
    for opt in question.options:
        lookup.add(opt.value, opt.value)
        lookup.add(_underscored(opt.value), opt.value)
        for text in (opt.text or {}).values():
            lookup.add(text, opt.value)
        if opt.label:
            lookup.add(opt.label, opt.value)
    return lookup


def _coerce_unmatched(raw: str) -> Any:
    text = raw.strip()
    try:
        num = float(text)
    except ValueError:
        num = None
    if num is not None and num == num and num not in (float("inf"), float("-inf")):
        return int(num) if num.is_integer() else num
    return slugify(text) or text


def normalize_answer(value: Any, lookup: Optional[OptionLookup]) -> Any:
    if _is_number(value):
        return value
    if isinstance(value, (list, tuple)):
        return [normalize_answer(v, lookup) for v in value]
    if isinstance(value, str):
        if lookup is not None:
            hit = lookup.find(value)
            if hit is not None:
                return hit
        return _coerce_unmatched(value)
    return value


def normalize_responses(raw_responses: Mapping[Any, Any], questions: Iterable[Any]) -> Dict[str, Any]:
    """Return a new response map keyed by ``str(question_id)`` with canonical option values."""

    parsed = parse_questions(list(questions or []))
    lookups = {str(q.id): build_option_lookup(q) for q in parsed}
    out: Dict[str, Any] = {}
    for key, value in (raw_responses or {}).items():
        skey = str(key).strip()
        out[skey] = normalize_answer(value, lookups.get(skey))
    return out


# ---- config key reconciliation ----
@dataclass(frozen=True)
class KeyIndex:
    order_to_id: Dict[int, int]
    id_set: frozenset
    order_set: frozenset

    @staticmethod
    def build(questions: Iterable[Any]) -> "KeyIndex":
        order_to_id: Dict[int, int] = {}
        ids = set()
        orders = set()
        for q in parse_questions(list(questions or [])):
            ids.add(q.id)
            if q.question_order is not None:
                orders.add(q.question_order)
                order_to_id[q.question_order] = q.id
        return KeyIndex(order_to_id=order_to_id, id_set=frozenset(ids), order_set=frozenset(orders))

    def keys_are_ids(self, keys: List[int]) -> bool:
        return bool(keys) and all(k in self.id_set for k in keys)

    def keys_are_orders(self, keys: List[int]) -> bool:
        return bool(keys) and all(k in self.order_set for k in keys)

    def resolve(self, key: int, mode: str) -> int:
        """Map one numeric key to a question id under the collection-wide ``mode``."""

        if mode == "ids":
            return key
        if mode == "orders":
            return self.order_to_id.get(key, key)
        # mixed collection: ids win, order-only keys are rewritten
        if key in self.id_set:
            return key
        return self.order_to_id.get(key, key)


def _numeric(value: Any) -> Optional[int]:
    if _is_number(value) and float(value).is_integer():
        return int(value)
    if isinstance(value, str) and _NUMERIC_KEY_RX.match(value.strip()):
        return int(value.strip())
    return None


_KEYED_SECTIONS = ("mappings", "weights", "weight_overrides")


def _config_mode(index: KeyIndex, raw_keys: Iterable[Any]) -> str:
    """One mode for the whole config; keys that are neither an id nor an order do not vote."""

    nums = [n for n in (_numeric(k) for k in raw_keys) if n is not None]
    tracked = [n for n in nums if n in index.id_set or n in index.order_set]
    if index.keys_are_ids(tracked):
        return "ids"
    if index.keys_are_orders(tracked):
        return "orders"
    return "mixed"


def _config_keys(scoring: Mapping[str, Any]) -> List[Any]:
    keys: List[Any] = []
    for name in _KEYED_SECTIONS:
        section = scoring.get(name)
        if isinstance(section, Mapping):
            keys.extend(section.keys())
    groups = scoring.get("groups")
    if isinstance(groups, Mapping):
        keys.extend(m for arr in groups.values() if isinstance(arr, list) for m in arr)
    return keys


def _remap_keys(mapping: Mapping[Any, Any], index: KeyIndex, mode: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, val in mapping.items():
        num = _numeric(key)
        out[str(index.resolve(num, mode)) if num is not None else str(key)] = val
    return out


def _remap_groups(groups: Mapping[str, Any], index: KeyIndex, mode: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, arr in groups.items():
        if not isinstance(arr, list):
            out[name] = arr
            continue
        remapped = []
        for member in arr:
            num = _numeric(member)
            remapped.append(index.resolve(num, mode) if num is not None else member)
        out[name] = remapped
    return out


def normalize_scoring_config(scoring: Any, questions: Iterable[Any]) -> Any:
    """Rewrite order-authored question keys in ``scoring`` to question ids.

    Whether keys are orders or ids is decided once across ``mappings``,
    ``weights``, ``weight_overrides`` and ``groups`` together, so every
    collection of one config is read the same way. Returns a new dict; the
    input is never mutated. Keys that are neither a known order nor a known id
    pass through unchanged. Running the function on its own output is a
    no-op. Any failure is logged and the original config is returned so
    scoring can proceed.
    """

    if not isinstance(scoring, Mapping):
        return scoring
    try:
        index = KeyIndex.build(questions)
        if not index.id_set:
            return scoring
        mode = _config_mode(index, _config_keys(scoring))
        normalized = dict(scoring)
        for name in _KEYED_SECTIONS:
            section = normalized.get(name)
            if isinstance(section, Mapping):
                normalized[name] = _remap_keys(section, index, mode)
        groups = normalized.get("groups")
        if isinstance(groups, Mapping):
            normalized["groups"] = _remap_groups(groups, index, mode)
        return normalized
    except (TypeError, ValueError, AttributeError) as exc:
        log.warning("scoring config normalization failed, using original config: %s", exc)
        return scoring


__all__ = [
    "KeyIndex",
    "OptionLookup",
    "build_option_lookup",
    "normalize_answer",
    "normalize_responses",
    "normalize_scoring_config",
    "slugify",
]
