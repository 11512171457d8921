"""JSON-file store for surveys and submitted answers.

The scoring engine never touches storage; this module is the collaborator
that hands it ``{survey, questions}`` bundles and per-user response maps.
A database-backed implementation can replace it without engine changes.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from survey_core.errors import SurveyNotFoundError


DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
SURVEYS_DIR = DATA_ROOT / "surveys"
ANSWERS_DIR = DATA_ROOT / "answers"

_LOCK = threading.Lock()


def _ensure_dirs() -> None:
    SURVEYS_DIR.mkdir(parents=True, exist_ok=True)
    ANSWERS_DIR.mkdir(parents=True, exist_ok=True)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _survey_path(survey_id: str) -> Path:
    return SURVEYS_DIR / f"{survey_id}.json"


def _answers_path(survey_id: str, user_id: str) -> Path:
    return ANSWERS_DIR / str(survey_id) / f"{user_id}.json"


def save_survey(survey_id: str, bundle: Dict[str, Any]) -> None:
    """Persist a ``{survey, questions}`` bundle."""

    _ensure_dirs()
    payload = dict(bundle)
    payload["updatedAt"] = utcnow_iso()
    with _LOCK:
        _write_json(_survey_path(survey_id), payload)


def load_survey(survey_id: str) -> Dict[str, Any]:
    bundle = _read_json(_survey_path(survey_id), None)
    if not isinstance(bundle, dict):
        raise SurveyNotFoundError(f"Survey not found: {survey_id}")
    bundle.setdefault("survey", {})
    bundle.setdefault("questions", [])
    return bundle


def list_surveys() -> List[str]:
    if not SURVEYS_DIR.exists():
        return []
    return sorted(p.stem for p in SURVEYS_DIR.glob("*.json"))


def save_answers(survey_id: str, user_id: str, answers: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``answers`` into the user's stored responses and return the merged map."""

    path = _answers_path(survey_id, user_id)
    with _LOCK:
        current: Dict[str, Any] = _read_json(path, {})
        current.update({str(k): v for k, v in answers.items()})
        _write_json(path, current)
    return current


def load_answers(survey_id: str, user_id: str) -> Dict[str, Any]:
    data = _read_json(_answers_path(survey_id, user_id), {})
    return data if isinstance(data, dict) else {}


def delete_answers(survey_id: str, user_id: str) -> bool:
    path = _answers_path(survey_id, user_id)
    with _LOCK:
        if not path.exists():
            return False
        path.unlink()
    return True


def load_answers_for_survey(survey_id: str) -> Dict[str, Dict[str, Any]]:
    folder = ANSWERS_DIR / str(survey_id)
    out: Dict[str, Dict[str, Any]] = {}
    if not folder.exists():
        return out
    for p in sorted(folder.glob("*.json")):
        data = _read_json(p, {})
        if isinstance(data, dict):
            out[p.stem] = data
    return out
