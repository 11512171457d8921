from __future__ import annotations
import argparse, json, sys
from pathlib import Path
from survey_core.validators import validate_interpretation, validate_scoring

def check_file(path: Path) -> list[dict]:
    try:
        bundle = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        return [{"field": "-", "message": f"unreadable: {e}"}]
    survey = bundle.get("survey", bundle) if isinstance(bundle, dict) else {}
    errors = validate_scoring(survey.get("scoring", {"type": "sum"}))
    errors += validate_interpretation(survey.get("interpretation"))
    return errors

def main():
    ap = argparse.ArgumentParser(description="Validate scoring/interpretation config of survey JSON files.")
    ap.add_argument("path", help="survey JSON file or directory of them")
    a = ap.parse_args()

    root = Path(a.path)
    files = sorted(root.glob("*.json")) if root.is_dir() else [root]
    bad = 0
    for f in files:
        errors = check_file(f)
        if errors:
            bad += 1
            print(f"{f.name}:")
            for err in errors:
                print(f"  {err['field']}: {err['message']}")
        else:
            print(f"{f.name}: ✓ valid")
    print(f"\n{len(files) - bad}/{len(files)} valid")
    sys.exit(1 if bad else 0)

if __name__ == "__main__":
    main()
