from __future__ import annotations
from fastapi import FastAPI, HTTPException, Body
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import logging, os, typing as t

# ---- Engine imports ----
from survey_core.config import ResolverSettings, load_config
from survey_core.engine import score_survey, survey_result_pages
from survey_core.errors import (
    ConfigurationError,
    NoResponsesError,
    SurveyError,
    SurveyNotFoundError,
    UnimplementedStrategyError,
)
from survey_core.validators import validate_interpretation, validate_scoring
from .storage import (
    delete_answers,
    list_surveys,
    load_answers,
    load_answers_for_survey,
    load_survey,
    save_answers,
    save_survey,
    utcnow_iso,
)

log = logging.getLogger(__name__)

app = FastAPI(title="Survey Scoring API")


@app.get("/")
def root():
    return {"status": "ok", "service": "survey-scoring-api"}


ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class SurveyBundleReq(BaseModel):
    survey: dict[str, t.Any] = Field(default_factory=dict)   # {scoring, interpretation, metadata}
    questions: list[dict[str, t.Any]] = Field(default_factory=list)


class AnswersReq(BaseModel):
    answers: dict[str, t.Any]


class ComputeReq(SurveyBundleReq):
    responses: dict[str, t.Any] = Field(default_factory=dict)


class ValidateReq(BaseModel):
    scoring: t.Any = None
    interpretation: t.Any = None


# ---- Helpers ----
def _settings() -> ResolverSettings:
    return ResolverSettings.from_cfg(load_config())


def _http_error(exc: SurveyError) -> HTTPException:
    if isinstance(exc, (SurveyNotFoundError, NoResponsesError)):
        return HTTPException(404, str(exc))
    if isinstance(exc, UnimplementedStrategyError):
        return HTTPException(501, str(exc))
    if isinstance(exc, ConfigurationError):
        return HTTPException(422, str(exc))
    return HTTPException(400, str(exc))


def _load_bundle(survey_id: str) -> dict[str, t.Any]:
    try:
        return load_survey(survey_id)
    except SurveyNotFoundError as exc:
        raise _http_error(exc)


def _score(bundle: dict[str, t.Any], responses: dict[str, t.Any], **ids: t.Any) -> dict[str, t.Any]:
    try:
        return score_survey(bundle, responses, settings=_settings(), **ids)
    except SurveyError as exc:
        log.info("scoring rejected: %s", exc)
        raise _http_error(exc)


# ---- Health ----
@app.get("/health")
def health():
    s = _settings()
    return {
        "status": "ok",
        "dominance_margin": s.dominance_margin,
        "proximity_margin": s.proximity_margin,
        "style_groups": list(s.style_groups),
        "surveys": len(list_surveys()),
    }

# ---- Surveys and answers (store collaborator) ----
@app.get("/surveys")
def get_surveys():
    return {"surveys": list_surveys()}


@app.put("/surveys/{survey_id}")
def put_survey(survey_id: str, req: SurveyBundleReq):
    errors = validate_scoring(req.survey.get("scoring")) if "scoring" in req.survey else []
    errors += validate_interpretation(req.survey.get("interpretation"))
    if errors:
        raise HTTPException(422, {"errors": errors})
    save_survey(survey_id, {"survey": req.survey, "questions": req.questions})
    return {"ok": True, "surveyId": survey_id}


@app.put("/surveys/{survey_id}/answers/{user_id}")
def put_answers(survey_id: str, user_id: str, req: AnswersReq):
    _load_bundle(survey_id)
    merged = save_answers(survey_id, user_id, req.answers)
    return {"ok": True, "answerCount": len(merged), "savedAt": utcnow_iso()}


@app.delete("/surveys/{survey_id}/answers/{user_id}")
def delete_answers_endpoint(survey_id: str, user_id: str):
    if not delete_answers(survey_id, user_id):
        raise HTTPException(404, "answers not found")
    return {"ok": True}


@app.get("/surveys/{survey_id}/result-pages")
def get_result_pages(survey_id: str):
    bundle = _load_bundle(survey_id)
    payload = survey_result_pages(bundle)
    if not payload["pages"]:
        return {"surveyId": survey_id, "pages": [], "message": "No result pages configured for this survey"}
    return {"surveyId": survey_id, **payload}

# ---- Scoring ----
@app.get("/scoring/{user_id}/{survey_id}")
def get_score(user_id: str, survey_id: str):
    bundle = _load_bundle(survey_id)
    responses = load_answers(survey_id, user_id.strip())
    return _score(bundle, responses, survey_id=survey_id, user_id=user_id.strip())


@app.get("/surveys/{survey_id}/scores")
def get_all_scores(survey_id: str):
    bundle = _load_bundle(survey_id)
    scores = []
    for user_id, responses in load_answers_for_survey(survey_id).items():
        if not responses:
            continue
        scores.append(_score(bundle, responses, survey_id=survey_id, user_id=user_id))
    return {"surveyId": survey_id, "count": len(scores), "scores": scores}


@app.post("/scoring/compute")
def compute(req: ComputeReq = Body(...)):
    return _score({"survey": req.survey, "questions": req.questions}, req.responses)


@app.post("/scoring/validate")
def validate(req: ValidateReq):
    errors = validate_scoring(req.scoring) + validate_interpretation(req.interpretation)
    return {"valid": not errors, "errors": errors}
