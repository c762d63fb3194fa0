from __future__ import annotations

import pytest

from tilawah_core.engine import ScoringEngine
from tilawah_core.rules import ScoringRules, load_rules
from tilawah_core.types import ObservationRecord

MAKHRAJ_LETTERS: list[str] = [
    "د", "خ", "ح", "ج", "ث", "ت", "ب", "ا", "ط", "ض", "ص", "ش", "س", "ز", "ر",
    "ذ", "م", "ل", "ك", "ق", "ف", "غ", "ع", "ظ", "ي", "ء", "هـ", "و", "ن",
]


def obs(
    category: str,
    label: str = "item",
    severity: float = 0,
    *,
    participant: str = "p1",
    assessor: str = "a1",
) -> ObservationRecord:
    return ObservationRecord(
        participant_id=participant,
        assessor_id=assessor,
        item_label=label,
        raw_category=category,
        error_severity=severity,
    )


def build_observations(
    rows: list[tuple[str, str, float]],
    *,
    participant: str = "p1",
) -> list[ObservationRecord]:
    """Turn ``(category, label, severity)`` triples into observation records."""

    return [obs(cat, label, sev, participant=participant) for cat, label, sev in rows]


def perfect_recitation(participant: str = "p1") -> list[ObservationRecord]:
    """A full checklist with every item marked error-free."""

    rows = [("makhraj", letter, 0) for letter in MAKHRAJ_LETTERS]
    rows += [
        ("ahkam", "Tanaffus", 0),
        ("mad", "Qashr", 0),
        ("gharib", "Iysmam", 0),
        ("kelancaran", "Tidak Lancar", 0),
    ]
    return build_observations(rows, participant=participant)


@pytest.fixture(scope="session")
def rules() -> ScoringRules:
    return load_rules()


@pytest.fixture
def engine(rules: ScoringRules) -> ScoringEngine:
    return ScoringEngine(rules)
