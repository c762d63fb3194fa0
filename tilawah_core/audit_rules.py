from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from .rules import BUDGET_TOTAL, RulesError, ScoringRules, load_rules
from .types import SCORED_CATEGORIES


def _shadowed_patterns(rules: ScoringRules) -> list[str]:
    warnings: list[str] = []
    patterns = rules.penalty.patterns
    for idx, later in enumerate(patterns):
        literal = later.pattern.replace("%", " ")
        for earlier in patterns[:idx]:
            if earlier.matches(literal):
                warnings.append(
                    f"penalty pattern {later.pattern!r} (tier {later.tier}) is shadowed by "
                    f"{earlier.pattern!r} (tier {earlier.tier})"
                )
                break
    return warnings


def _duplicate_aliases(rules: ScoringRules) -> list[str]:
    owner: dict[str, str] = {}
    warnings: list[str] = []
    for row in rules.classification:
        for alias in row.aliases:
            prev = owner.setdefault(alias, row.category)
            if prev != row.category:
                warnings.append(f"alias {alias!r} is claimed by {prev} and {row.category}; {prev} wins")
    return warnings


def _shadowed_subtypes(rules: ScoringRules) -> list[str]:
    warnings: list[str] = []
    for cat in rules.categories:
        for idx, later in enumerate(cat.subtypes):
            for kw in later.keywords:
                for earlier in cat.subtypes[:idx]:
                    if any(ekw in kw for ekw in earlier.keywords):
                        warnings.append(
                            f"{cat.key} sub-type {later.name!r} keyword {kw!r} always matches {earlier.name!r} first"
                        )
                        break
    return warnings


def audit_rules(rules: ScoringRules) -> dict[str, object]:
    budget = {cat.key: cat.initial_score for cat in rules.categories}
    warnings: list[str] = []
    if rules.budget != BUDGET_TOTAL:
        warnings.append(f"initial scores sum to {rules.budget}, expected {BUDGET_TOTAL}")
    warnings += _shadowed_patterns(rules)
    warnings += _duplicate_aliases(rules)
    warnings += _shadowed_subtypes(rules)
    summary = {
        "version": rules.version,
        "budget": budget,
        "budget_total": rules.budget,
        "penalty_patterns": [{"pattern": p.pattern, "tier": p.tier} for p in rules.penalty.patterns],
        "penalty_default_tier": rules.penalty.default_tier,
        "warnings": warnings,
    }
    return summary


def _format_rows(rows: Iterable[tuple[str, object]]) -> str:
    return "\n".join(f"  {label:<12} {value}" for label, value in rows)


def print_report(summary: dict[str, object]) -> None:
    print(f"=== Scoring Rules {summary.get('version') or ''} ===".rstrip())
    budget: dict[str, float] = summary["budget"]  # type: ignore[assignment]
    print(_format_rows((k, budget.get(k)) for k in SCORED_CATEGORIES))
    print(f"  {'total':<12} {summary['budget_total']}")

    print("\nPenalty tiers:")
    for row in summary["penalty_patterns"]:  # type: ignore[union-attr]
        print(f"  {row['pattern']!r:<28} -> {row['tier']}")
    print(f"  {'(default)':<28} -> {summary['penalty_default_tier']}")

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Audit a scoring rule file.")
    ap.add_argument("rules", nargs="?", default=None, help="rule file (default: packaged rules)")
    ap.add_argument("--json", action="store_true", help="print the summary as JSON")
    args = ap.parse_args(argv)
    try:
        rules = load_rules(Path(args.rules) if args.rules else None)
    except RulesError as exc:
        print(f"error: {exc}")
        return 1
    summary = audit_rules(rules)
    if args.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        print_report(summary)
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
