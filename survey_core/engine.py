# survey_core/engine.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional

from .config import LOG_NORMALIZED_CONFIG, ResolverSettings
from .errors import NoResponsesError
from .expression import evaluate
from .interpretation import InterpretationResolver
from .localization import normalize_localized_output
from .responses import normalize_responses, normalize_scoring_config
from .result_catalog import entry_in_range, level_name, list_result_pages, match_threshold
from .result_page import build_result_page
from .scoring import Evaluator, parse_scoring_config, run_strategy
from .types import Resolution, parse_questions

log = logging.getLogger(__name__)

_TEXT_FIELDS = ("title", "description", "pros", "cons", "recommendations")
# resolution/page failures must never cost the caller the score itself
_RECOVERABLE = (TypeError, ValueError, KeyError, AttributeError)


def _question_orders(questions: List[Any]) -> Dict[int, int]:
    return {q.question_order: q.id for q in parse_questions(questions) if q.question_order is not None}


def _with_question_weights(scoring: Any, questions: List[Any]) -> Any:
    """Per-question ``weight`` fills in wherever ``scoring.weights`` is silent."""

    defaults = {str(q.id): q.weight for q in parse_questions(questions) if q.weight != 1.0}
    if not defaults or not isinstance(scoring, Mapping):
        return scoring
    authored = scoring.get("weights")
    return {**scoring, "weights": {**defaults, **(authored if isinstance(authored, Mapping) else {})}}


def _interpretation_config(survey: Mapping[str, Any], scoring: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Grouped interpretation tree: ``survey.interpretation`` or a group-keyed ``scoring.interpretations``."""

    interp = survey.get("interpretation")
    if isinstance(interp, Mapping) and isinstance(interp.get("groups"), Mapping):
        return dict(interp)
    authored = scoring.get("interpretations") if isinstance(scoring, Mapping) else None
    if isinstance(authored, Mapping):
        if isinstance(authored.get("groups"), Mapping):
            return dict(authored)
        rules = authored.get("selection_rules")
        if rules is None and isinstance(interp, Mapping):
            rules = interp.get("selection_rules")
        groups = {k: v for k, v in authored.items() if k != "selection_rules" and isinstance(v, list)}
        if groups:
            return {"groups": groups, "selection_rules": rules or []}
    return None


def _flat_entries(survey: Mapping[str, Any], scoring: Mapping[str, Any]) -> List[Dict[str, Any]]:
    for candidate in (scoring.get("interpretations"), survey.get("interpretation")):
        if isinstance(candidate, list):
            return [e for e in candidate if isinstance(e, dict)]
        if isinstance(candidate, Mapping) and isinstance(candidate.get("overall"), list):
            return [e for e in candidate["overall"] if isinstance(e, dict)]
    return []


def interpretation_data(entry: Mapping[str, Any]) -> Dict[str, Any]:
    data: Dict[str, Any] = {k: v for k, v in entry.items() if k not in _TEXT_FIELDS}
    for name in _TEXT_FIELDS:
        val = entry.get(name)
        if isinstance(val, list):
            data[name] = [normalize_localized_output(v) for v in val if v is not None]
        elif val is not None:
            data[name] = normalize_localized_output(val)
    return data


def _attach_resolution(result: Dict[str, Any], res: Resolution) -> None:
    result["interpretation"] = {
        "category": res.category,
        "entryId": res.entry.get("id"),
        "group": res.group,
        "primaryGroup": res.primary_group,
        "source": res.source,
    }
    result["interpretationData"] = interpretation_data(res.entry)
    result["resultPage"] = build_result_page(res.entry, res.category, res.primary_group, res.group)


def _threshold_page(result: Dict[str, Any], scoring: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    thresholds = scoring.get("thresholds")
    per_group = result.get("perGroup")
    if isinstance(per_group, dict) and per_group and isinstance(thresholds, Mapping):
        primary = max(per_group, key=lambda g: per_group[g])
        hit = match_threshold(per_group[primary], thresholds.get(primary))
        if hit is None:
            return None
        return {
            "level": hit["level"], "levelName": hit["levelName"], "totalLevels": hit["totalLevels"],
            "pageId": f"result_page_{primary}_{hit['level']}",
            "pageName": hit["current"]["interpretation"] or f"{primary} Result",
            "primaryGroup": primary,
        }
    hit = match_threshold(result["score"], thresholds)
    if hit is None:
        return None
    return {
        "level": hit["level"], "levelName": hit["levelName"], "totalLevels": hit["totalLevels"],
        "pageId": f"result_page_{hit['level']}",
        "pageName": hit["current"]["interpretation"] or "Unknown Result",
    }


def _attach_interpretation(result: Dict[str, Any], survey: Mapping[str, Any], scoring: Mapping[str, Any],
                           scoring_type: str, resolver: InterpretationResolver) -> None:
    if scoring_type == "grouped":
        tree = _interpretation_config(survey, scoring)
        if tree is not None:
            res = resolver.resolve(result.get("perGroup") or {}, tree)
            if res is not None:
                _attach_resolution(result, res)
                return

    score = result["score"]
    for entry in _flat_entries(survey, scoring):
        if entry_in_range(entry, score):
            category = str(entry.get("id") or level_name(entry.get("title")))
            _attach_resolution(result, Resolution(entry=entry, category=category, primary_group=None, source="range"))
            return

    for page in list_result_pages(scoring):
        if page.get("group") is None and entry_in_range(page, score):
            result["resultPage"] = page
            return

    page = _threshold_page(result, scoring)
    if page is not None:
        result["resultPage"] = page


def score_survey(
    bundle: Mapping[str, Any],
    responses: Mapping[Any, Any],
    *,
    survey_id: Any = None,
    user_id: Any = None,
    settings: ResolverSettings | None = None,
    evaluator: Evaluator = evaluate,
) -> Dict[str, Any]:
    """Score one submission.

    ``bundle`` is ``{"survey": {scoring, interpretation, metadata}, "questions": [...]}``
    as handed over by the store. Raises :class:`NoResponsesError` for an empty
    response set and :class:`UnimplementedStrategyError` for ``paired-options``;
    everything else degrades to a zero score or an omitted result page.
    """

    if not isinstance(responses, Mapping) or not responses:
        raise NoResponsesError()

    survey = bundle.get("survey") if isinstance(bundle.get("survey"), Mapping) else {}
    questions = bundle.get("questions") if isinstance(bundle.get("questions"), list) else []

    raw_scoring = survey.get("scoring")
    if raw_scoring is None or isinstance(raw_scoring, str):
        raw_scoring = {"type": raw_scoring or "sum"}
    scoring = normalize_scoring_config(raw_scoring, questions)
    if LOG_NORMALIZED_CONFIG:
        log.debug("normalized scoring config for survey %s: %s", survey_id, scoring)

    string_keyed = {str(k): v for k, v in responses.items()}
    normalized = normalize_responses(string_keyed, questions)
    cfg = parse_scoring_config(_with_question_weights(scoring, questions))
    log.debug("scoring survey %s with %s over %d responses", survey_id, cfg.type, len(normalized))

    result = dict(run_strategy(normalized, cfg, _question_orders(questions), evaluator))
    result["scoringType"] = cfg.type
    result["responseCount"] = len(string_keyed)
    if survey_id is not None:
        result["surveyId"] = survey_id
    if user_id is not None:
        result["userId"] = user_id

    resolver = InterpretationResolver(settings)
    try:
        _attach_interpretation(result, survey, scoring if isinstance(scoring, Mapping) else {}, cfg.type, resolver)
    except _RECOVERABLE as exc:
        log.warning("interpretation failed for survey %s, returning score only: %s", survey_id, exc)
        for key in ("interpretation", "interpretationData", "resultPage"):
            result.pop(key, None)
    return result


def survey_result_pages(bundle: Mapping[str, Any]) -> Dict[str, Any]:
    survey = bundle.get("survey") if isinstance(bundle.get("survey"), Mapping) else {}
    scoring = survey.get("scoring") if isinstance(survey.get("scoring"), Mapping) else {}
    pages = list_result_pages(scoring)
    return {"scoringType": scoring.get("type"), "totalPages": len(pages), "pages": pages}


__all__ = ["interpretation_data", "score_survey", "survey_result_pages"]
