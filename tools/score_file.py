from __future__ import annotations
import argparse, json, logging, sys
from pathlib import Path

from tilawah_core.batch import aggregate, iter_scores
from tilawah_core.config import load_config
from tilawah_core.dashboard import average_score, fluency_by_group
from tilawah_core.engine import ScoringEngine
from tilawah_core.export import to_csv, to_json
from tilawah_core.ingest import read_observations
from tilawah_core.rules import RulesError, load_rules
from tilawah_core.types import ObservationError

log = logging.getLogger("tools.score_file")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Score recitation observations from a JSON/JSONL/CSV export.")
    ap.add_argument("input", help="observation file (.json, .jsonl or .csv)")
    ap.add_argument("--format", choices=("json", "csv"), default="json")
    ap.add_argument("--output", default=None, help="write results here instead of stdout")
    ap.add_argument("--rules", default=None, help="alternative rule file")
    ap.add_argument(
        "--summary",
        action="store_true",
        help="print average score and fluency distribution as JSON; goes to stdout with --output, "
        "otherwise to stderr so stdout holds only the results",
    )
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    cfg = load_config()
    rules_path = args.rules or cfg.get("SCORING_RULES_PATH")
    digits = int(cfg.get("SCORE_ROUND_DIGITS", 2))

    try:
        engine = ScoringEngine(load_rules(rules_path) if rules_path else None)
        tallies = aggregate(read_observations(args.input), engine)
    except (ObservationError, RulesError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    results = list(iter_scores(tallies, engine))
    log.info("scored %d participants", len(results))

    if args.format == "csv":
        body = to_csv(results, digits)
    else:
        body = json.dumps(to_json(results, digits), indent=2, ensure_ascii=False) + "\n"

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(body, encoding="utf-8")
        log.info("results written to %s", out)
    else:
        sys.stdout.write(body)

    if args.summary:
        summary = {
            "average": average_score(results),
            "fluency": fluency_by_group(results, lambda _res: "all"),
        }
        stream = sys.stdout if args.output else sys.stderr
        print(json.dumps(summary, indent=2), file=stream)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
