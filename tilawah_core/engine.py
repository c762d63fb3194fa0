# tilawah_core/engine.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple
import logging

from .classifier import CategoryClassifier
from .composer import compose, flatten
from .config import DEBUG_TRACE, TRACE_FIELDS
from .deduction import CategoryTally, exact_severity
from .penalty import PenaltyTally
from .rules import ScoringRules, default_rules
from .types import (
    ObservationError,
    ObservationRecord,
    ParticipantScore,
    OTHER,
    PENGURANGAN,
    SCORED_CATEGORIES,
)


log = logging.getLogger(__name__)


def _emit_trace(**values: object) -> None:
    if not DEBUG_TRACE:
        return
    ordered = []
    for key in TRACE_FIELDS:
        if key in values:
            ordered.append(f"{key}={values[key]}")
    if ordered:
        log.info("trace %s", " ".join(str(val) for val in ordered))


@dataclass
class ParticipantTally:
    """Everything needed to score one participant, in mergeable form.

    Row-oriented and batch evaluation both build one of these and call
    ``ScoringEngine.finalize``; there is no second scoring formula.
    """

    participant_id: Optional[str] = None
    categories: Dict[str, CategoryTally] = field(
        default_factory=lambda: {k: CategoryTally(k) for k in SCORED_CATEGORIES}
    )
    penalty: PenaltyTally = field(default_factory=PenaltyTally)
    other_count: int = 0

    @property
    def assessment_count(self) -> int:
        scored = sum(t.item_count for t in self.categories.values())
        return scored + self.penalty.item_count + self.other_count

    def merge(self, other: "ParticipantTally") -> "ParticipantTally":
        if (
            self.participant_id is not None
            and other.participant_id is not None
            and self.participant_id != other.participant_id
        ):
            raise ValueError(
                f"cannot merge tallies of {other.participant_id!r} and {self.participant_id!r}"
            )
        return ParticipantTally(
            participant_id=self.participant_id if self.participant_id is not None else other.participant_id,
            categories={k: self.categories[k].merge(other.categories[k]) for k in SCORED_CATEGORIES},
            penalty=self.penalty.merge(other.penalty),
            other_count=self.other_count + other.other_count,
        )


class ScoringEngine:
    def __init__(self, rules: Optional[ScoringRules] = None):
        self.rules = rules or default_rules()
        self.classifier = CategoryClassifier(self.rules)

    def new_tally(self, participant_id: Optional[str] = None) -> ParticipantTally:
        return ParticipantTally(participant_id=participant_id)

    def fold(self, tally: ParticipantTally, record: ObservationRecord) -> ParticipantTally:
        """Classify one observation and add it to ``tally`` in place."""

        where = f"participant {getattr(record, 'participant_id', None)!r}, item {getattr(record, 'item_label', None)!r}"
        severity = exact_severity(getattr(record, "error_severity", None), where)
        raw_category = getattr(record, "raw_category", None)
        label = getattr(record, "item_label", None)
        category, sub_type = self.classifier.classify(raw_category, label)
        if category == PENGURANGAN:
            tally.penalty.add(self.rules.penalty, label, severity)
        elif category == OTHER:
            tally.other_count += 1
        else:
            tally.categories[category].add(self.rules.category(category), severity, sub_type)
        return tally

    def finalize(self, tally: ParticipantTally) -> ParticipantScore:
        scores = {k: tally.categories[k].finalize(self.rules.category(k)) for k in SCORED_CATEGORIES}
        penalty = tally.penalty.result()
        result = compose(
            scores,
            penalty.tier,
            participant_id=tally.participant_id,
            assessment_count=tally.assessment_count,
            penalty=penalty,
        )
        _emit_trace(
            participant=result.participant_id,
            items=result.assessment_count,
            base=f"{result.base_score:.2f}",
            tier=result.penalty_deduction,
            overall=f"{result.overall_score:.2f}",
        )
        return result

    def score(
        self,
        observations: Iterable[ObservationRecord],
        participant_id: Optional[str] = None,
    ) -> ParticipantScore:
        """Row-oriented evaluation of one participant's complete observation set."""

        tally = self.new_tally(participant_id)
        for record in observations:
            pid = getattr(record, "participant_id", None)
            if tally.participant_id is None:
                tally.participant_id = pid
            elif pid is not None and pid != tally.participant_id:
                raise ObservationError(
                    f"observation for participant {pid!r} passed while scoring {tally.participant_id!r}"
                )
            self.fold(tally, record)
        return self.finalize(tally)

    def score_views(
        self,
        observations: Iterable[ObservationRecord],
        participant_id: Optional[str] = None,
    ) -> Tuple[ParticipantScore, Dict[str, float]]:
        """Full breakdown and flattened view from a single evaluation."""

        result = self.score(observations, participant_id)
        return result, flatten(result)


def score_participant(
    observations: Iterable[ObservationRecord],
    rules: Optional[ScoringRules] = None,
) -> ParticipantScore:
    return ScoringEngine(rules).score(observations)
