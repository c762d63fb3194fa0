"""Scoring rule tables: category budgets, deduction rates, classification and penalty tiers.

The runtime values are frozen dataclasses built once from a JSON rule file.
The packaged default lives in ``data/rules.json``; ``SCORING_RULES_PATH``
points the process at another file. Rule files are validated with pydantic
before anything is compiled, so a bad file fails at load time rather than
while scoring.
"""
from __future__ import annotations

import json
import importlib.resources as ir
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from . import config
from .types import DEFAULT_SUBTYPE, PENALTY_TIERS, PENGURANGAN, SCORED_CATEGORIES

BUDGET_TOTAL = 100


class RulesError(ValueError):
    """Raised when a rule file cannot be read or fails validation."""


# ---- Runtime rule values ----

@dataclass(frozen=True)
class SubTypeRule:
    name: str
    rate: float
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class CategoryRule:
    key: str
    initial_score: float
    rate: Optional[float] = None
    subtypes: tuple[SubTypeRule, ...] = ()
    default_rate: Optional[float] = None

    @property
    def is_subtyped(self) -> bool:
        return bool(self.subtypes)

    def rate_for(self, sub_type: Optional[str]) -> float:
        if not self.is_subtyped:
            return float(self.rate or 0.0)
        for st in self.subtypes:
            if st.name == sub_type:
                return st.rate
        return float(self.default_rate or 0.0)


@dataclass(frozen=True)
class ClassificationRule:
    category: str
    aliases: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    unless: Optional[str] = None


@dataclass(frozen=True)
class PenaltyPattern:
    pattern: str
    tier: int

    @property
    def fragments(self) -> tuple[str, ...]:
        return tuple(frag for frag in self.pattern.split("%") if frag)

    def matches(self, label: str) -> bool:
        """``label`` must already be lowercased; ``%`` spans any run of characters."""
        pos = 0
        for frag in self.fragments:
            hit = label.find(frag, pos)
            if hit < 0:
                return False
            pos = hit + len(frag)
        return True


@dataclass(frozen=True)
class PenaltyRule:
    patterns: tuple[PenaltyPattern, ...]
    default_tier: int = 90

    def tier_for(self, label: str) -> int:
        text = label.strip().lower() if isinstance(label, str) else ""
        for p in self.patterns:
            if p.matches(text):
                return p.tier
        return self.default_tier


@dataclass(frozen=True)
class ScoringRules:
    categories: tuple[CategoryRule, ...]
    classification: tuple[ClassificationRule, ...]
    penalty: PenaltyRule
    version: str = ""

    def category(self, key: str) -> CategoryRule:
        for rule in self.categories:
            if rule.key == key:
                return rule
        raise KeyError(key)

    def subtype_rules(self, key: str) -> tuple[SubTypeRule, ...]:
        for rule in self.categories:
            if rule.key == key:
                return rule.subtypes
        return ()

    @property
    def budget(self) -> float:
        return float(sum(Fraction(r.initial_score) for r in self.categories))


# ---- Rule file schema ----

def _lower_all(values: List[str]) -> List[str]:
    return [v.strip().lower() for v in values if v and v.strip()]


class SubTypeModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    rate: float = Field(..., ge=0.0, allow_inf_nan=False)
    keywords: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _reserved(cls, v: str) -> str:
        v = v.strip().lower()
        if v == DEFAULT_SUBTYPE:
            raise ValueError("'default' is reserved; use default_rate instead")
        return v

    @field_validator("keywords")
    @classmethod
    def _norm_keywords(cls, v: List[str]) -> List[str]:
        return _lower_all(v)


class CategoryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: str
    initial_score: float = Field(..., gt=0.0, allow_inf_nan=False)
    rate: Optional[float] = Field(default=None, ge=0.0, allow_inf_nan=False)
    subtypes: List[SubTypeModel] = Field(default_factory=list)
    default_rate: Optional[float] = Field(default=None, ge=0.0, allow_inf_nan=False)

    @field_validator("key")
    @classmethod
    def _known_key(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in SCORED_CATEGORIES:
            raise ValueError(f"unknown category {v!r}")
        return v

    @model_validator(mode="after")
    def _one_model(self) -> "CategoryModel":
        if self.subtypes:
            if self.rate is not None:
                raise ValueError(f"{self.key}: use either rate or subtypes, not both")
            if self.default_rate is None:
                raise ValueError(f"{self.key}: sub-typed categories need a default_rate")
            names = [st.name for st in self.subtypes]
            if len(set(names)) != len(names):
                raise ValueError(f"{self.key}: duplicate sub-type names")
        elif self.rate is None:
            raise ValueError(f"{self.key}: flat categories need a rate")
        return self


class ClassificationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str
    aliases: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    unless: Optional[str] = None

    @field_validator("category", "unless")
    @classmethod
    def _known_target(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if v not in SCORED_CATEGORIES and v != PENGURANGAN:
            raise ValueError(f"unknown category {v!r}")
        return v

    @field_validator("aliases", "keywords")
    @classmethod
    def _norm(cls, v: List[str]) -> List[str]:
        return _lower_all(v)


class PenaltyPatternModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pattern: str = Field(..., min_length=1)
    tier: int

    @field_validator("pattern")
    @classmethod
    def _norm_pattern(cls, v: str) -> str:
        v = v.strip().lower()
        if not v.strip("%"):
            raise ValueError("pattern must contain text besides '%'")
        return v

    @field_validator("tier")
    @classmethod
    def _known_tier(cls, v: int) -> int:
        if v not in PENALTY_TIERS:
            raise ValueError(f"tier must be one of {PENALTY_TIERS}, got {v}")
        return v


class PenaltyModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    patterns: List[PenaltyPatternModel] = Field(default_factory=list)
    default_tier: int = 90

    @field_validator("default_tier")
    @classmethod
    def _known_tier(cls, v: int) -> int:
        if v not in PENALTY_TIERS:
            raise ValueError(f"default_tier must be one of {PENALTY_TIERS}, got {v}")
        return v


class RulesFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str = ""
    categories: List[CategoryModel]
    classification: List[ClassificationModel]
    penalty: PenaltyModel = Field(default_factory=PenaltyModel)

    @field_validator("categories")
    @classmethod
    def _all_six(cls, v: List[CategoryModel]) -> List[CategoryModel]:
        keys = [c.key for c in v]
        if sorted(keys) != sorted(SCORED_CATEGORIES):
            raise ValueError(f"expected exactly the categories {SCORED_CATEGORIES}, got {keys}")
        return v

    @model_validator(mode="after")
    def _budget(self) -> "RulesFile":
        total = sum(Fraction(c.initial_score) for c in self.categories)
        if total != BUDGET_TOTAL:
            raise ValueError(f"initial scores must sum to {BUDGET_TOTAL}, got {float(total)}")
        return self

    def compile(self) -> ScoringRules:
        by_key = {c.key: c for c in self.categories}
        categories = tuple(
            CategoryRule(
                key=key,
                initial_score=by_key[key].initial_score,
                rate=by_key[key].rate,
                subtypes=tuple(
                    SubTypeRule(name=st.name, rate=st.rate, keywords=tuple(st.keywords))
                    for st in by_key[key].subtypes
                ),
                default_rate=by_key[key].default_rate,
            )
            for key in SCORED_CATEGORIES
        )
        classification = tuple(
            ClassificationRule(
                category=row.category,
                aliases=tuple(row.aliases),
                keywords=tuple(row.keywords),
                unless=row.unless,
            )
            for row in self.classification
        )
        penalty = PenaltyRule(
            patterns=tuple(PenaltyPattern(p.pattern, p.tier) for p in self.penalty.patterns),
            default_tier=self.penalty.default_tier,
        )
        return ScoringRules(categories, classification, penalty, version=self.version)


# ---- Loading ----

def parse_rules(raw: dict) -> ScoringRules:
    try:
        return RulesFile.model_validate(raw).compile()
    except ValidationError as exc:
        raise RulesError(f"invalid scoring rules: {exc}") from exc


def load_rules(path: str | Path | None = None) -> ScoringRules:
    """Load and compile a rule file; ``None`` reads the packaged default."""
    try:
        if path is None:
            text = ir.files(__package__).joinpath("data/rules.json").read_text(encoding="utf-8")
        else:
            text = Path(path).read_text(encoding="utf-8")
        raw = json.loads(text)
    except (OSError, json.JSONDecodeError) as exc:
        raise RulesError(f"cannot read scoring rules from {path or 'package data'}: {exc}") from exc
    return parse_rules(raw)


_DEFAULT_RULES_CACHE: Optional[ScoringRules] = None


def default_rules() -> ScoringRules:
    """Process-wide rules, compiled on first use and never rebuilt."""

    global _DEFAULT_RULES_CACHE
    if _DEFAULT_RULES_CACHE is None:
        _DEFAULT_RULES_CACHE = load_rules(config.SCORING_RULES_PATH)
    return _DEFAULT_RULES_CACHE
