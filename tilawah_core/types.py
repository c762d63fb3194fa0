from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

Severity = Union[int, float]

MAKHRAJ = "MAKHRAJ"
SIFAT = "SIFAT"
AHKAM = "AHKAM"
MAD = "MAD"
GHARIB = "GHARIB"
KELANCARAN = "KELANCARAN"
PENGURANGAN = "PENGURANGAN"
OTHER = "OTHER"

SCORED_CATEGORIES: tuple[str, ...] = (MAKHRAJ, SIFAT, AHKAM, MAD, GHARIB, KELANCARAN)
DEFAULT_SUBTYPE = "default"
PENALTY_TIERS: tuple[int, ...] = (0, 50, 90, 100)


class ObservationError(ValueError):
    """Raised for caller-supplied observations the engine refuses to score."""


@dataclass(frozen=True)
class ObservationRecord:
    participant_id: str
    assessor_id: str
    item_label: str
    raw_category: str
    error_severity: Severity = 0


@dataclass(frozen=True)
class CategoryScore:
    category: str
    initial_score: float
    item_count: int
    total_raw_errors: float
    total_deduction: float
    final_score: float


@dataclass(frozen=True)
class PenaltyResult:
    item_count: int = 0
    qualifying_count: int = 0
    tier: int = 0
    applicable: bool = False


@dataclass(frozen=True)
class ParticipantScore:
    participant_id: Optional[str]
    category_scores: Dict[str, CategoryScore]
    base_score: float
    penalty_deduction: int
    overall_score: float
    assessment_count: int
    penalty: PenaltyResult = field(default_factory=PenaltyResult)

    def category(self, key: str) -> CategoryScore:
        return self.category_scores[key]

    def ordered_scores(self) -> List[CategoryScore]:
        return [self.category_scores[k] for k in SCORED_CATEGORIES]
