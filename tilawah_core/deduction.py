# tilawah_core/deduction.py
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from fractions import Fraction
from functools import lru_cache
from typing import Iterable, Optional, Tuple
import math, numbers

from .rules import CategoryRule
from .types import CategoryScore, ObservationError

_ZERO = Fraction(0)


@lru_cache(maxsize=256)
def _exact(value: float) -> Fraction:
    return Fraction(value)


def exact_severity(value: object, where: str = "") -> Fraction:
    """Validate an error severity and return it as an exact rational.

    Negative, NaN, infinite and non-numeric values are rejected; bools are not
    severities even though Python treats them as ints.
    """
    suffix = f" ({where})" if where else ""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ObservationError(f"error_severity must be a number, got {value!r}{suffix}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ObservationError(f"error_severity must be finite, got {value!r}{suffix}")
    exact = Fraction(value)
    if exact < 0:
        raise ObservationError(f"error_severity must be >= 0, got {value!r}{suffix}")
    return exact


@dataclass
class CategoryTally:
    """Reduction state for one category of one participant.

    Flat categories keep a histogram of exact per-item raw deductions because
    the fairness cap (initial / item_count) is only known once every item has
    been seen; it is applied per item at ``finalize`` time, before summing.
    Sub-typed categories have no per-item cap and keep a running sum.
    """

    category: str
    item_count: int = 0
    raw_errors: Fraction = _ZERO
    weighted: Fraction = _ZERO
    deductions: Counter = field(default_factory=Counter)

    def add(self, rule: CategoryRule, severity: Fraction, sub_type: Optional[str] = None) -> None:
        self.item_count += 1
        self.raw_errors += severity
        contribution = severity * _exact(rule.rate_for(sub_type))
        if rule.is_subtyped:
            self.weighted += contribution
        else:
            self.deductions[contribution] += 1

    def merge(self, other: "CategoryTally") -> "CategoryTally":
        if other.category != self.category:
            raise ValueError(f"cannot merge {other.category} tally into {self.category}")
        merged = CategoryTally(
            category=self.category,
            item_count=self.item_count + other.item_count,
            raw_errors=self.raw_errors + other.raw_errors,
            weighted=self.weighted + other.weighted,
        )
        merged.deductions = self.deductions + other.deductions
        return merged

    def total_deduction(self, rule: CategoryRule) -> Fraction:
        initial = _exact(rule.initial_score)
        if self.item_count == 0:
            return _ZERO
        if rule.is_subtyped:
            return min(self.weighted, initial)
        cap = initial / self.item_count
        capped = sum((min(d, cap) * n for d, n in self.deductions.items()), _ZERO)
        return min(capped, initial)

    def finalize(self, rule: CategoryRule) -> CategoryScore:
        initial = _exact(rule.initial_score)
        total = self.total_deduction(rule)
        return CategoryScore(
            category=rule.key,
            initial_score=float(initial),
            item_count=self.item_count,
            total_raw_errors=float(self.raw_errors),
            total_deduction=float(total),
            final_score=float(initial - total),
        )


def score_category(
    rule: CategoryRule,
    items: Iterable[Tuple[object, Optional[str]]],
) -> CategoryScore:
    """Score one category from ``(error_severity, sub_type)`` pairs."""

    tally = CategoryTally(rule.key)
    for idx, (severity, sub_type) in enumerate(items):
        tally.add(rule, exact_severity(severity, f"{rule.key} item {idx}"), sub_type)
    return tally.finalize(rule)
