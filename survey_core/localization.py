"""Bilingual text helpers.

Every localized field the engine reads or emits is a plain dict with at least
``en`` and ``ar`` populated. Inputs arrive in many shapes (bare strings,
``{"en": ..}`` objects, legacy ``text_en``/``text_ar`` columns, JSON-encoded
option arrays); the helpers here fold them into that canonical record.

``*_input`` helpers are strict and raise :class:`LocalizationError` for
required fields. ``*_output`` helpers never raise and always return something
displayable.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from .errors import LocalizationError

LocalizedText = Dict[str, str]

_EN_KEYS = ("en", "EN", "en-US", "en_gb")
_AR_KEYS = ("ar", "AR", "ar-IQ", "ar_sa")
_RESERVED_KEYS = frozenset(
    {"en", "ar", "EN", "AR", "en-US", "ar-IQ", "en_gb", "ar_sa", "text", "value", "label", "default"}
)
_OUTPUT_SKIP_KEYS = frozenset({"en", "ar", "text", "value", "default"})


def _first_present(value: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if value.get(key) is not None:
            return value[key]
    return None


def build_localized_from_legacy(en_value: Any, ar_value: Any) -> Optional[LocalizedText]:
    if en_value is None and ar_value is None:
        return None
    en = str(en_value) if en_value is not None else str(ar_value)
    ar = str(ar_value) if ar_value is not None else en
    return {"en": en, "ar": ar}


def build_localized_array_from_legacy(en_values: Optional[List[Any]] = None,
                                      ar_values: Optional[List[Any]] = None) -> List[LocalizedText]:
    en_values = list(en_values or [])
    ar_values = list(ar_values or [])
    out: List[LocalizedText] = []
    for idx in range(max(len(en_values), len(ar_values))):
        en = en_values[idx] if idx < len(en_values) else None
        ar = ar_values[idx] if idx < len(ar_values) else None
        localized = build_localized_from_legacy(en, ar)
        if localized:
            out.append(localized)
    return out


def normalize_localized_input(value: Any, field_path: str, required: bool = True) -> Optional[LocalizedText]:
    if value is None:
        if required:
            raise LocalizationError(f"{field_path} is required and must include both en and ar translations")
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text and required:
            raise LocalizationError(f"{field_path} must not be empty")
        return {"en": text, "ar": text}

    if isinstance(value, dict):
        en = _first_present(value, _EN_KEYS)
        ar = _first_present(value, _AR_KEYS)

        if en is None and ar is None and value.get("text") is not None:
            nested = normalize_localized_input(value["text"], f"{field_path}.text", required=required)
            if nested:
                en, ar = nested["en"], nested["ar"]
        if en is None and ar is None and value.get("value") is not None:
            nested = normalize_localized_input(value["value"], f"{field_path}.value", required=required)
            if nested:
                en, ar = nested["en"], nested["ar"]

        if en is None and ar is None:
            if not required:
                return None
            raise LocalizationError(f"{field_path} must include both en and ar translations")

        if en is None:
            en = ar
        if ar is None:
            ar = en
        normalized: LocalizedText = {"en": str(en), "ar": str(ar)}
        for key, raw in value.items():
            if key in _RESERVED_KEYS or not isinstance(raw, str):
                continue
            text = raw.strip()
            if text:
                normalized[key] = text
        return normalized

    if not required:
        return None
    raise LocalizationError(f"{field_path} must be a string or an object containing en/ar translations")


def normalize_localized_optional_input(value: Any, field_path: str) -> Optional[LocalizedText]:
    return normalize_localized_input(value, field_path, required=False)


def normalize_localized_array_input(values: Any, field_path: str) -> List[LocalizedText]:
    if values is None:
        return []
    items = values if isinstance(values, list) else [values]
    return [normalize_localized_input(item, f"{field_path}[{idx}]") for idx, item in enumerate(items)]


def normalize_localized_output(value: Any) -> Optional[LocalizedText]:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        return {"en": text, "ar": text}
    if not isinstance(value, dict):
        text = str(value)
        return {"en": text, "ar": text}

    en = _first_present(value, ("en", "EN", "en-US", "default"))
    ar = _first_present(value, ("ar", "AR", "ar-IQ", "default"))
    normalized: LocalizedText = {}
    if en is not None:
        normalized["en"] = str(en)
    if ar is not None:
        normalized["ar"] = str(ar)

    if en is None and ar is None:
        if value.get("text") is not None:
            return normalize_localized_output(value["text"])
        if value.get("value") is not None:
            return normalize_localized_output(value["value"])
        serialized = json.dumps(value, ensure_ascii=False)
        normalized = {"en": serialized, "ar": serialized}

    for key, raw in value.items():
        if key in _OUTPUT_SKIP_KEYS or raw is None:
            continue
        if isinstance(raw, str):
            if raw.strip():
                normalized[key] = raw.strip()
        elif isinstance(raw, dict):
            nested = normalize_localized_output(raw) or {}
            if nested.get(key):
                normalized[key] = nested[key]
            elif nested.get("en"):
                normalized[key] = nested["en"]

    if not normalized.get("en") and normalized.get("ar"):
        normalized["en"] = normalized["ar"]
    if not normalized.get("ar") and normalized.get("en"):
        normalized["ar"] = normalized["en"]
    return normalized


def normalize_localized_array_output(values: Any) -> List[LocalizedText]:
    if not isinstance(values, list):
        return []
    return [loc for loc in (normalize_localized_output(v) for v in values) if loc]


def parse_array_candidate(value: Any) -> Any:
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return []
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            return [value]
        return parsed if isinstance(parsed, list) else [value]
    return value


def extract_localized_candidate(source: Any, base_key: str) -> Any:
    if not isinstance(source, dict):
        return None
    if source.get(base_key) is not None:
        return source[base_key]
    return build_localized_from_legacy(source.get(f"{base_key}_en"), source.get(f"{base_key}_ar"))


def pick_localized_text(localized: Any, preferred: str = "en") -> Optional[str]:
    if localized is None:
        return None
    if isinstance(localized, str):
        return localized.strip() or None
    if isinstance(localized, dict):
        pref = localized.get(preferred)
        if isinstance(pref, str) and pref.strip():
            return pref.strip()
        for val in localized.values():
            if isinstance(val, str) and val.strip():
                return val.strip()
        return None
    return str(localized)


def option_text_candidate(option: Dict[str, Any]) -> Any:
    candidate = extract_localized_candidate(option, "text")
    if candidate is None:
        candidate = option.get("label")
    if candidate is None:
        candidate = option.get("value")
    return candidate


def normalize_options_input(options: Any, field_path: str) -> Optional[List[Dict[str, Any]]]:
    parsed = parse_array_candidate(options)
    if parsed is None:
        return None
    if not isinstance(parsed, list):
        raise LocalizationError(f"{field_path} must be an array of option definitions")

    out: List[Dict[str, Any]] = []
    for idx, option in enumerate(parsed):
        option_path = f"{field_path}[{idx}]"
        if option is None:
            raise LocalizationError(f"{option_path} is required")
        if isinstance(option, str):
            out.append({"value": option, "text": normalize_localized_input(option, f"{option_path}.text")})
            continue
        if not isinstance(option, dict):
            raise LocalizationError(f"{option_path} must be a string or object")

        text = normalize_localized_input(option_text_candidate(option), f"{option_path}.text")
        value = str(option["value"]) if option.get("value") is not None else (pick_localized_text(text) or str(idx + 1))
        normalized: Dict[str, Any] = {"value": value, "text": text}
        if option.get("group") not in (None, ""):
            normalized["group"] = str(option["group"])
        if "metadata" in option:
            normalized["metadata"] = option["metadata"]
        out.append(normalized)
    return out


def normalize_options_output(options: Any) -> Any:
    if not isinstance(options, list):
        return options
    out: List[Any] = []
    for idx, option in enumerate(options):
        if isinstance(option, str):
            out.append({"value": option, "text": normalize_localized_output(option)})
            continue
        if not isinstance(option, dict):
            out.append(option)
            continue
        text = normalize_localized_output(option_text_candidate(option))
        value = str(option["value"]) if option.get("value") is not None else (pick_localized_text(text) or str(idx + 1))
        normalized = {k: v for k, v in option.items() if k not in {"text_en", "text_ar", "label"}}
        normalized["value"] = value
        normalized["text"] = text
        if normalized.get("group") is not None:
            normalized["group"] = str(normalized["group"])
        else:
            normalized.pop("group", None)
        out.append(normalized)
    return out


__all__ = [
    "LocalizedText",
    "build_localized_array_from_legacy",
    "build_localized_from_legacy",
    "extract_localized_candidate",
    "normalize_localized_array_input",
    "normalize_localized_array_output",
    "normalize_localized_input",
    "normalize_localized_optional_input",
    "normalize_localized_output",
    "normalize_options_input",
    "normalize_options_output",
    "option_text_candidate",
    "parse_array_candidate",
    "pick_localized_text",
]
