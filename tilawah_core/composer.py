# tilawah_core/composer.py
from __future__ import annotations
from fractions import Fraction
from typing import Any, Dict, Mapping, Optional

from . import config
from .types import CategoryScore, ParticipantScore, PenaltyResult, PENALTY_TIERS, SCORED_CATEGORIES

# tier -> fixed overall score; the base score is discarded
ABSOLUTE_TIERS: Dict[int, int] = {100: 0, 90: 10}
# tier -> points subtracted from the base score
RELATIVE_TIERS: Dict[int, int] = {50: 50}


def overall_from_base(base: Fraction, tier: int) -> Fraction:
    if tier not in PENALTY_TIERS:
        raise ValueError(f"penalty tier must be one of {PENALTY_TIERS}, got {tier!r}")
    if tier in ABSOLUTE_TIERS:
        return Fraction(ABSOLUTE_TIERS[tier])
    if tier in RELATIVE_TIERS:
        return max(Fraction(0), base - RELATIVE_TIERS[tier])
    return base


def compose(
    category_scores: Mapping[str, CategoryScore],
    penalty_tier: int,
    *,
    participant_id: Optional[str] = None,
    assessment_count: int = 0,
    penalty: Optional[PenaltyResult] = None,
    applicable: Optional[bool] = None,
) -> ParticipantScore:
    """Combine six category scores with the winning penalty tier.

    Without ``penalty`` a result is built from ``penalty_tier``; pass
    ``applicable=True`` when a tier-0 entry matched, since the tier alone
    cannot tell that apart from no entry at all.
    """
    missing = [k for k in SCORED_CATEGORIES if k not in category_scores]
    if missing:
        raise ValueError(f"missing category scores: {missing}")
    ordered = {k: category_scores[k] for k in SCORED_CATEGORIES}
    base = sum((Fraction(cs.final_score) for cs in ordered.values()), Fraction(0))
    overall = overall_from_base(base, penalty_tier)
    if penalty is None:
        penalty = PenaltyResult(
            tier=int(penalty_tier),
            applicable=penalty_tier > 0 if applicable is None else applicable,
        )
    return ParticipantScore(
        participant_id=participant_id,
        category_scores=ordered,
        base_score=float(base),
        penalty_deduction=int(penalty_tier),
        overall_score=float(overall),
        assessment_count=assessment_count,
        penalty=penalty,
    )


def round_score(x: float, digits: Optional[int] = None) -> float:
    return round(float(x), config.SCORE_ROUND_DIGITS if digits is None else digits)


def flatten(result: ParticipantScore, digits: Optional[int] = None) -> Dict[str, float]:
    """Six named category scores plus the overall score."""
    flat = {k.lower(): round_score(result.category_scores[k].final_score, digits) for k in SCORED_CATEGORIES}
    flat["overall"] = round_score(result.overall_score, digits)
    return flat


def format_for_api(result: ParticipantScore, digits: Optional[int] = None) -> Dict[str, Any]:
    breakdown = {
        k: {
            "initialScore": cs.initial_score,
            "itemCount": cs.item_count,
            "totalErrors": round_score(cs.total_raw_errors, digits),
            "totalDeduction": round_score(cs.total_deduction, digits),
            "finalScore": round_score(cs.final_score, digits),
        }
        for k, cs in result.category_scores.items()
    }
    total_deduction = sum(Fraction(cs.total_deduction) for cs in result.category_scores.values())
    return {
        "scores": flatten(result, digits),
        "details": {
            "categoryBreakdown": breakdown,
            "baseScore": round_score(result.base_score, digits),
            "penaltyDeduction": result.penalty_deduction,
            "totalDeduction": round_score(float(total_deduction), digits),
            "assessmentCount": result.assessment_count,
        },
    }
