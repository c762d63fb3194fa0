"""Helpers to export scored participants in JSON/CSV formats."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
import csv
import io

from .composer import flatten, round_score
from .levels import fluency_level
from .types import ParticipantScore

_FIELDS: tuple[str, ...] = (
    "participant_id",
    "makhraj",
    "sifat",
    "ahkam",
    "mad",
    "gharib",
    "kelancaran",
    "base",
    "penalty",
    "overall",
    "assessments",
    "fluency",
)


def _row(result: ParticipantScore, digits: Optional[int] = None) -> Dict[str, Any]:
    flat = flatten(result, digits)
    out: Dict[str, Any] = {"participant_id": "" if result.participant_id is None else str(result.participant_id)}
    for key in ("makhraj", "sifat", "ahkam", "mad", "gharib", "kelancaran"):
        out[key] = flat[key]
    out["base"] = round_score(result.base_score, digits)
    out["penalty"] = int(result.penalty_deduction)
    out["overall"] = flat["overall"]
    out["assessments"] = int(result.assessment_count)
    out["fluency"] = fluency_level(result.overall_score)
    return out


def to_json(results: Iterable[ParticipantScore], digits: Optional[int] = None) -> Dict[str, Any]:
    """Return a JSON-safe payload of flattened results."""

    rows: List[Dict[str, Any]] = [_row(res, digits) for res in results]
    return {"results": rows}


def to_csv(results: Iterable[ParticipantScore], digits: Optional[int] = None) -> str:
    """Render flattened results as CSV with a fixed header."""

    rows = [_row(res, digits) for res in results]
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


__all__ = ["to_json", "to_csv"]
