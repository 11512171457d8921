# survey_core/result_page.py
"""Turn a resolved interpretation entry into the bilingual display payload.

Link handling: Markdown links ``[label](url)`` in any localized field are
replaced by their label and collected into ``references`` (one per URL, the
first label seen wins). Section text is split into bullets per locale and
padded so item *i* lines up across locales.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from .config import LOCALES, THEME_COLORS
from .localization import LocalizedText, normalize_localized_output, pick_localized_text
from .result_catalog import level_name

_LINK_RX = re.compile(r"\[([^\[\]]+)\]\(\s*([^()\s]+)\s*\)")
_BULLET_RX = re.compile(r"^\s*[-•*]+\s*")

SECTION_TYPES: Tuple[str, ...] = ("pros", "cons", "recommendations")
SECTION_TITLES: Dict[str, LocalizedText] = {
    "pros": {"en": "Strengths", "ar": "نقاط القوة"},
    "cons": {"en": "Areas to watch", "ar": "نقاط تحتاج إلى انتباه"},
    "recommendations": {"en": "Recommendations", "ar": "التوصيات"},
}


class ReferenceCollector:
    def __init__(self) -> None:
        self._by_url: Dict[str, str] = {}

    def strip(self, text: str) -> str:
        def _sub(m: "re.Match[str]") -> str:
            label, url = m.group(1).strip(), m.group(2).strip()
            self.add(label, url)
            return label
        return _LINK_RX.sub(_sub, text)

    def add(self, label: str, url: str) -> None:
        self._by_url.setdefault(url, label)

    @property
    def references(self) -> List[Dict[str, str]]:
        return [{"label": label, "url": url} for url, label in self._by_url.items()]


def strip_links(text: str) -> Tuple[str, List[Dict[str, str]]]:
    collector = ReferenceCollector()
    return collector.strip(text), collector.references


def _localized_field(value: Any) -> Optional[LocalizedText]:
    """Accept a string, a localized dict, or a list of either (joined line by line)."""

    if value is None:
        return None
    if isinstance(value, list):
        parts = [normalize_localized_output(v) for v in value]
        parts = [p for p in parts if p]
        if not parts:
            return None
        return {loc: "\n".join(p.get(loc, "") for p in parts) for loc in LOCALES}
    return normalize_localized_output(value)


def _sanitize(value: Any, refs: ReferenceCollector) -> Optional[LocalizedText]:
    loc = _localized_field(value)
    if loc is None:
        return None
    return {k: refs.strip(v) for k, v in loc.items()}


def split_items(text: str) -> List[str]:
    lines = [_BULLET_RX.sub("", line).strip() for line in (text or "").splitlines()]
    return [line for line in lines if line]


def align_items(localized: LocalizedText) -> List[LocalizedText]:
    per_locale = {loc: split_items(localized.get(loc, "")) for loc in LOCALES}
    width = max((len(v) for v in per_locale.values()), default=0)
    for loc, items in per_locale.items():
        # pad with this locale's own last line, never the other locale's
        filler = items[-1] if items else ""
        per_locale[loc] = items + [filler] * (width - len(items))
    return [{loc: per_locale[loc][i] for loc in LOCALES} for i in range(width)]


def build_result_page(entry: Dict[str, Any], category: str, primary_group: Optional[str],
                      group: Optional[str] = None) -> Dict[str, Any]:
    refs = ReferenceCollector()
    title = _sanitize(entry.get("title"), refs) or {loc: category for loc in LOCALES}
    interpretation = _sanitize(entry.get("description"), refs) or {loc: "" for loc in LOCALES}

    sections: List[Dict[str, Any]] = []
    for kind in SECTION_TYPES:
        text = _sanitize(entry.get(kind), refs)
        if text is None:
            continue
        items = align_items(text)
        if items:
            sections.append({"type": kind, "title": dict(SECTION_TITLES[kind]), "items": items})

    recommendations = next((s["items"] for s in sections if s["type"] == "recommendations"), [])
    authored_refs = entry.get("references")
    for ref in authored_refs if isinstance(authored_refs, list) else []:
        if isinstance(ref, dict) and ref.get("url"):
            refs.add(str(ref.get("label") or ref["url"]), str(ref["url"]))

    authored_theme = entry.get("theme")
    theme = authored_theme if isinstance(authored_theme, str) and authored_theme in THEME_COLORS else level_name(pick_localized_text(title))
    color = entry.get("color") or THEME_COLORS.get(theme, THEME_COLORS["custom"])
    page_id = entry.get("pageId") or f"result_page_{entry.get('id') or category}"

    return {
        "pageId": page_id,
        "category": category,
        "group": group,
        "primaryGroup": primary_group,
        "title": title,
        "interpretation": interpretation,
        "recommendations": recommendations,
        "sections": sections,
        "references": refs.references,
        "template": {
            "title": title,
            "description": interpretation,
            "recommendations": recommendations,
            "sections": sections,
            "styling": {"theme": theme, "color": color},
        },
    }


__all__ = ["ReferenceCollector", "align_items", "build_result_page", "split_items", "strip_links"]
