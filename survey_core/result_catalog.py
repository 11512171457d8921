# survey_core/result_catalog.py
from __future__ import annotations
import re
from typing import Any, Dict, List, Optional, Tuple

from .config import THEME_COLORS
from .localization import pick_localized_text

_RANGE_RX = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*-\s*(-?\d+(?:\.\d+)?)\s*$")


def level_name(interpretation: Any) -> str:
    text = (pick_localized_text(interpretation) or "").lower()
    if "poor" in text or "low" in text: return "low"
    if "fair" in text or "medium" in text or "moderate" in text: return "medium"
    if "good" in text or "high" in text: return "high"
    if "excellent" in text or "very" in text: return "excellent"
    return "custom"


def theme_color(theme_or_interpretation: Any) -> str:
    if isinstance(theme_or_interpretation, str) and theme_or_interpretation in THEME_COLORS:
        return THEME_COLORS[theme_or_interpretation]
    key = level_name(theme_or_interpretation)
    return THEME_COLORS.get(key, THEME_COLORS["custom"])


def generate_recommendations(interpretation: Any, group: Optional[str] = None) -> List[str]:
    level = level_name(interpretation)
    recs = {
        "low": ["Consider areas for improvement", "Seek additional resources or support"],
        "medium": ["You're on the right track", "Focus on specific areas for growth"],
        "high": ["Great job! Keep up the good work", "Consider sharing your approach with others"],
        "excellent": ["Outstanding results!", "You could mentor others in this area"],
    }.get(level, ["Review your results carefully"])
    out = list(recs)
    if group:
        out.append(f"Explore more about {group}")
    return out


def parse_range(key: Any) -> Optional[Tuple[float, float]]:
    text = str(key)
    m = _RANGE_RX.match(text)
    if m:
        return float(m.group(1)), float(m.group(2))
    try:
        v = float(text)
    except ValueError:
        return None
    return v, v


def _sorted_ranges(thresholds: Dict[str, Any], group: Optional[str] = None) -> List[Dict[str, Any]]:
    rows = []
    for key, interp in thresholds.items():
        bounds = parse_range(key)
        if bounds is None:
            continue
        row = {"range": str(key), "min": bounds[0], "max": bounds[1], "interpretation": interp}
        if group is not None:
            row["group"] = group
        rows.append(row)
    rows.sort(key=lambda r: r["min"])
    return rows


def match_threshold(score: float, thresholds: Any) -> Optional[Dict[str, Any]]:
    """Find the ``"min-max"`` range containing ``score``; ``None`` if no range does."""

    if not isinstance(thresholds, dict):
        return None
    rows = _sorted_ranges(thresholds)
    for idx, row in enumerate(rows):
        if row["min"] <= score <= row["max"]:
            return {
                "level": idx + 1,
                "levelName": level_name(row["interpretation"]),
                "totalLevels": len(rows),
                "current": row,
            }
    return None


def template_for(interpretation: Any, group: Optional[str] = None) -> Dict[str, Any]:
    text = pick_localized_text(interpretation) or ""
    in_group = f" in {group}" if group else ""
    return {
        "title": interpretation,
        "subtitle": f"Your {group} results" if group else "Your survey results",
        "description": f"Based on your responses, you scored{in_group}: {text}",
        "recommendations": generate_recommendations(interpretation, group),
        "styling": {"theme": level_name(interpretation), "color": theme_color(interpretation)},
    }


def _authored_page(p: Dict[str, Any], idx: int, group: Optional[str]) -> Dict[str, Any]:
    label = p.get("title") or p.get("interpretation") or ""
    default_id = f"result_page_{group}_{idx + 1}" if group else f"result_page_{idx + 1}"
    return {
        "pageId": p.get("pageId") or default_id,
        "level": p.get("level") or idx + 1,
        "levelName": p.get("levelName") or level_name(label),
        "range": p.get("range"),
        "min": p.get("min"),
        "max": p.get("max"),
        "interpretation": p.get("interpretation") or p.get("title") or "",
        "template": {
            "title": p.get("title") or p.get("interpretation") or f"Result {idx + 1}",
            "subtitle": p.get("subtitle") or (f"Your {group} results" if group else "Your survey results"),
            "description": p.get("description") or "",
            "recommendations": p.get("recommendations") or [],
            "styling": {
                "theme": p.get("theme") or level_name(label),
                "color": p.get("color") or theme_color(label),
            },
        },
        "group": group,
    }


def list_result_pages(scoring: Any) -> List[Dict[str, Any]]:
    """All result pages a survey can produce, authored or derived from thresholds."""

    if not isinstance(scoring, dict):
        return []
    rp = scoring.get("result_pages")
    if isinstance(rp, dict):
        pages: List[Dict[str, Any]] = []
        if isinstance(rp.get("overall"), list):
            pages.extend(_authored_page(p, i, None) for i, p in enumerate(rp["overall"]) if isinstance(p, dict))
        if isinstance(rp.get("groups"), dict):
            for name, arr in rp["groups"].items():
                if isinstance(arr, list):
                    pages.extend(_authored_page(p, i, name) for i, p in enumerate(arr) if isinstance(p, dict))
        return pages

    thresholds = scoring.get("thresholds")
    if not isinstance(thresholds, dict):
        return []
    pages = []
    if scoring.get("type") == "grouped":
        for name, group_thresholds in thresholds.items():
            if not isinstance(group_thresholds, dict):
                continue
            for idx, row in enumerate(_sorted_ranges(group_thresholds, name)):
                pages.append({
                    "pageId": f"result_page_{name}_{idx + 1}",
                    "level": idx + 1,
                    "levelName": level_name(row["interpretation"]),
                    "group": name,
                    "range": row["range"], "min": row["min"], "max": row["max"],
                    "interpretation": row["interpretation"],
                    "template": template_for(row["interpretation"], name),
                })
        return pages
    for idx, row in enumerate(_sorted_ranges(thresholds)):
        pages.append({
            "pageId": f"result_page_{idx + 1}",
            "level": idx + 1,
            "levelName": level_name(row["interpretation"]),
            "range": row["range"], "min": row["min"], "max": row["max"],
            "interpretation": row["interpretation"],
            "template": template_for(row["interpretation"]),
        })
    return pages


def entry_in_range(entry: Any, score: float) -> bool:
    """True when an authored entry's ``min``/``max`` (or ``range``) contains ``score``."""

    if not isinstance(entry, dict):
        return False
    lo, hi = entry.get("min"), entry.get("max")
    if lo is None and hi is None and entry.get("range") is not None:
        bounds = parse_range(entry["range"])
        if bounds is None:
            return False
        lo, hi = bounds
    try:
        lo_f = float(lo) if lo is not None else float("-inf")
        hi_f = float(hi) if hi is not None else float("inf")
    except (TypeError, ValueError):
        return False
    if lo is None and hi is None:
        return False
    return lo_f <= score <= hi_f
