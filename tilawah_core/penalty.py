from __future__ import annotations
from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, Optional, Tuple

from .deduction import exact_severity
from .rules import PenaltyRule, default_rules
from .types import PenaltyResult


@dataclass
class PenaltyTally:
    item_count: int = 0
    qualifying_count: int = 0
    tier: int = 0

    def add(self, rule: PenaltyRule, label: object, severity: Fraction) -> None:
        self.item_count += 1
        # a zero-severity entry is a checked box, not a finding
        if severity <= 0:
            return
        self.qualifying_count += 1
        self.tier = max(self.tier, rule.tier_for(label if isinstance(label, str) else ""))

    def merge(self, other: "PenaltyTally") -> "PenaltyTally":
        return PenaltyTally(
            item_count=self.item_count + other.item_count,
            qualifying_count=self.qualifying_count + other.qualifying_count,
            tier=max(self.tier, other.tier),
        )

    @property
    def applicable(self) -> bool:
        return self.qualifying_count > 0

    def result(self) -> PenaltyResult:
        return PenaltyResult(
            item_count=self.item_count,
            qualifying_count=self.qualifying_count,
            tier=self.tier if self.applicable else 0,
            applicable=self.applicable,
        )


def evaluate_penalty(
    items: Iterable[Tuple[object, object]],
    rule: Optional[PenaltyRule] = None,
) -> Tuple[int, bool]:
    """Return ``(tier, applicable)`` for ``(item_label, error_severity)`` pairs.

    The most severe qualifying entry wins; a tier-0 match is applicable but
    leaves the score alone.
    """
    rule = rule or default_rules().penalty
    tally = PenaltyTally()
    for idx, (label, severity) in enumerate(items):
        tally.add(rule, label, exact_severity(severity, f"PENGURANGAN item {idx}"))
    res = tally.result()
    return res.tier, res.applicable
