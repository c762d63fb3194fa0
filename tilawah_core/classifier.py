from __future__ import annotations
from typing import Dict, Optional, Tuple

from .rules import ScoringRules, default_rules
from .types import DEFAULT_SUBTYPE, OTHER

Classification = Tuple[str, Optional[str]]


def _norm(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _hits(text: str, keywords: tuple[str, ...]) -> bool:
    return any(kw in text for kw in keywords)


class CategoryClassifier:
    """Maps free-form category tags onto canonical categories and sub-types.

    Exact aliases win; otherwise the classification rows are tried in declared
    order by keyword substring. A row with ``unless`` is skipped when the tag
    also carries a keyword of the named category ("ahkamul mad" is MAD).
    """

    def __init__(self, rules: ScoringRules):
        self.rules = rules
        self._alias: Dict[str, str] = {}
        self._keywords: Dict[str, tuple[str, ...]] = {}
        for row in rules.classification:
            for alias in row.aliases:
                self._alias.setdefault(alias, row.category)
            self._keywords[row.category] = self._keywords.get(row.category, ()) + row.keywords

    def category_of(self, raw_category: object) -> str:
        text = _norm(raw_category)
        if not text:
            return OTHER
        hit = self._alias.get(text)
        if hit is not None:
            return hit
        for row in self.rules.classification:
            if not _hits(text, row.keywords):
                continue
            if row.unless and _hits(text, self._keywords.get(row.unless, ())):
                continue
            return row.category
        return OTHER

    def subtype_of(self, category: str, raw_category: object, item_label: object) -> Optional[str]:
        subtypes = self.rules.subtype_rules(category)
        if not subtypes:
            return None
        cat_text = _norm(raw_category)
        label_text = _norm(item_label)
        for st in subtypes:
            if _hits(cat_text, st.keywords) or _hits(label_text, st.keywords):
                return st.name
        return DEFAULT_SUBTYPE

    def classify(self, raw_category: object, item_label: object = "") -> Classification:
        category = self.category_of(raw_category)
        return category, self.subtype_of(category, raw_category, item_label)


_DEFAULT: Optional[CategoryClassifier] = None


def _default_classifier() -> CategoryClassifier:
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = CategoryClassifier(default_rules())
    return _DEFAULT


def classify(raw_category: object, item_label: object = "", rules: ScoringRules | None = None) -> Classification:
    clf = _default_classifier() if rules is None else CategoryClassifier(rules)
    return clf.classify(raw_category, item_label)


__all__ = ["CategoryClassifier", "classify"]
