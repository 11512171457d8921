from __future__ import annotations
import os, json, pathlib
from dataclasses import dataclass
from typing import Any, Mapping, Tuple


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


SCORING_TYPES: tuple[str, ...] = ("sum", "grouped", "paired-options", "formula", "mixed_sign")
IMPLEMENTED_SCORING_TYPES: tuple[str, ...] = ("sum", "grouped", "formula", "mixed_sign")
DEFAULT_SCORING_TYPE: str = "sum"
GROUP_AGGREGATES: tuple[str, ...] = ("sum", "avg", "weighted_sum")

DOMINANCE_MARGIN: float = 4.0
PROXIMITY_MARGIN: float = 3.0
# order doubles as tie-break precedence for the highest-score fallback
STYLE_GROUPS: tuple[str, str, str] = ("authoritarian", "democratic", "laissez_faire")
OVERALL_GROUP: str = "overall"
BALANCED_ENTRY_ID: str = "balanced_ambivalent"

LOCALES: tuple[str, ...] = ("en", "ar")

THEME_COLORS: dict[str, str] = {
    "low": "#ff6b6b",
    "medium": "#feca57",
    "high": "#48cae4",
    "excellent": "#06d6a0",
    "custom": "#6c5ce7",
}

LOG_NORMALIZED_CONFIG: bool = False

# // env overrides for staging/ops
DOMINANCE_MARGIN = _env_float("DOMINANCE_MARGIN", DOMINANCE_MARGIN)
PROXIMITY_MARGIN = _env_float("PROXIMITY_MARGIN", PROXIMITY_MARGIN)
LOG_NORMALIZED_CONFIG = _env_bool("LOG_NORMALIZED_CONFIG", LOG_NORMALIZED_CONFIG)


def load_config() -> dict:
    cfg: dict = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError): cfg = {}
    e = os.environ
    if e.get("DOMINANCE_MARGIN"): cfg["DOMINANCE_MARGIN"] = _env_float("DOMINANCE_MARGIN", DOMINANCE_MARGIN)
    if e.get("PROXIMITY_MARGIN"): cfg["PROXIMITY_MARGIN"] = _env_float("PROXIMITY_MARGIN", PROXIMITY_MARGIN)
    if e.get("STYLE_GROUPS"):
        names = [n.strip() for n in e["STYLE_GROUPS"].split(",") if n.strip()]
        if len(names) == 3:
            cfg["STYLE_GROUPS"] = names
    return cfg


@dataclass(frozen=True)
class ResolverSettings:
    dominance_margin: float
    proximity_margin: float
    style_groups: Tuple[str, str, str]
    overall_group: str
    balanced_entry_id: str

    @staticmethod
    def from_cfg(cfg: Mapping[str, Any] | None = None) -> "ResolverSettings":
        def _cfg_value(name: str, default: Any) -> Any:
            if isinstance(cfg, Mapping) and name in cfg:
                return cfg[name]
            return default

        groups = _cfg_value("STYLE_GROUPS", STYLE_GROUPS)
        if isinstance(groups, (list, tuple)) and len(groups) == 3:
            style_groups = (str(groups[0]), str(groups[1]), str(groups[2]))
        else:
            style_groups = STYLE_GROUPS

        return ResolverSettings(
            dominance_margin=float(_cfg_value("DOMINANCE_MARGIN", DOMINANCE_MARGIN)),
            proximity_margin=float(_cfg_value("PROXIMITY_MARGIN", PROXIMITY_MARGIN)),
            style_groups=style_groups,
            overall_group=str(_cfg_value("OVERALL_GROUP", OVERALL_GROUP)),
            balanced_entry_id=str(_cfg_value("BALANCED_ENTRY_ID", BALANCED_ENTRY_ID)),
        )
