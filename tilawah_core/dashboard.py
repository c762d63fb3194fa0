from __future__ import annotations

from collections import Counter, defaultdict
from fractions import Fraction
from typing import Callable, Dict, Hashable, Iterable, List, Optional

from . import config
from .classifier import CategoryClassifier
from .deduction import exact_severity
from .levels import FLUENCY_LEVELS, fluency_level
from .rules import default_rules
from .types import ObservationRecord, ParticipantScore

GroupKey = Callable[[ParticipantScore], Optional[Hashable]]


def _avg(values: List[float]) -> float:
    # exact mean so the figure does not depend on participant order
    return float(sum((Fraction(v) for v in values), Fraction(0)) / len(values))


def _r2(x: float) -> float:
    return round(float(x), 2)


def average_score(results: Iterable[ParticipantScore]) -> dict[str, object]:
    scores = [r.overall_score for r in results]
    if not scores:
        return {"avg_score": None, "participant_count": 0}
    return {"avg_score": _r2(_avg(scores)), "participant_count": len(scores)}


def _grouped(results: Iterable[ParticipantScore], key_of: GroupKey) -> Dict[Hashable, List[float]]:
    groups: Dict[Hashable, List[float]] = defaultdict(list)
    for res in results:
        key = key_of(res)
        if key is None:
            continue
        groups[key].append(res.overall_score)
    return groups


def scores_by_group(results: Iterable[ParticipantScore], key_of: GroupKey) -> list[dict[str, object]]:
    """Min / max / average overall score per group (province, education level, ...)."""

    rows = []
    for key, scores in sorted(_grouped(results, key_of).items(), key=lambda kv: str(kv[0])):
        rows.append({
            "name": key,
            "avg_score": _r2(_avg(scores)),
            "min_score": _r2(min(scores)),
            "max_score": _r2(max(scores)),
            "participant_count": len(scores),
        })
    return rows


def fluency_by_group(results: Iterable[ParticipantScore], key_of: GroupKey) -> list[dict[str, object]]:
    rows = []
    for key, scores in sorted(_grouped(results, key_of).items(), key=lambda kv: str(kv[0])):
        counts = Counter(fluency_level(s) for s in scores)
        total = len(scores)
        row: dict[str, object] = {"name": key, "total": total}
        for level in FLUENCY_LEVELS:
            row[level] = _r2(counts.get(level, 0) * 100.0 / total)
        rows.append(row)
    return rows


def error_statistics(
    observations: Iterable[ObservationRecord],
    category: str,
    top_n: Optional[int] = None,
    classifier: Optional[CategoryClassifier] = None,
) -> list[dict[str, object]]:
    """Item labels with the most erroneous observations in one canonical category."""

    clf = classifier or CategoryClassifier(default_rules())
    limit = config.ERROR_STATS_TOP_N if top_n is None else top_n
    counts: Counter = Counter()
    for obs in observations:
        if exact_severity(obs.error_severity, f"item {obs.item_label!r}") <= 0:
            continue
        if clf.category_of(obs.raw_category) != category:
            continue
        counts[obs.item_label] += 1
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], str(kv[0])))
    return [{"name": label, "total": n} for label, n in ranked[:limit]]
