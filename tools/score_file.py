# tools/score_file.py
from __future__ import annotations
import argparse, json, logging, sys
from survey_core.config import ResolverSettings, load_config
from survey_core.engine import score_survey
from survey_core.errors import SurveyError

def _load(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

def main():
    ap = argparse.ArgumentParser(description="Score a survey bundle against a responses file.")
    ap.add_argument("survey", help="JSON file with {survey, questions}")
    ap.add_argument("responses", help="JSON file with {questionId: answer}")
    ap.add_argument("--lang", choices=["en", "ar"], default=None, help="print only the result page title in this locale")
    ap.add_argument("-v", "--verbose", action="store_true")
    a = ap.parse_args()
    logging.basicConfig(level=logging.DEBUG if a.verbose else logging.WARNING)

    settings = ResolverSettings.from_cfg(load_config())
    try:
        res = score_survey(_load(a.survey), _load(a.responses), settings=settings)
    except SurveyError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)

    if a.lang:
        page = res.get("resultPage") or {}
        title = page.get("title") if isinstance(page.get("title"), dict) else {}
        print(f"score={res.get('score')}  {title.get(a.lang, page.get('pageName', '-'))}")
        return
    print(json.dumps(res, ensure_ascii=False, indent=2))

if __name__ == "__main__":
    main()
