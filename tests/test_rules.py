from __future__ import annotations

import copy
import dataclasses
import json
from pathlib import Path

import pytest

import tilawah_core.rules as rules_mod
from tilawah_core import config
from tilawah_core.rules import RulesError, load_rules, parse_rules
from tilawah_core.types import AHKAM, MAD, MAKHRAJ, SCORED_CATEGORIES, SIFAT

_PACKAGED = Path(__file__).resolve().parents[1] / "tilawah_core" / "data" / "rules.json"


@pytest.fixture
def raw_rules() -> dict:
    return json.loads(_PACKAGED.read_text(encoding="utf-8"))


def _category(raw: dict, key: str) -> dict:
    return next(c for c in raw["categories"] if c["key"] == key)


def test_packaged_rules(rules):
    assert rules.version == "v3"
    assert rules.budget == 100
    assert [c.key for c in rules.categories] == list(SCORED_CATEGORIES)
    assert rules.category(MAKHRAJ).rate == 1.5
    assert rules.category(AHKAM).rate_for("tanaffus") == 2.0
    assert rules.category(AHKAM).rate_for("default") == 0.5
    assert rules.category(MAD).rate_for("unheard-of") == 0.5
    assert rules.penalty.default_tier == 90


def test_rules_are_immutable(rules):
    with pytest.raises(dataclasses.FrozenInstanceError):
        rules.version = "edited"  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        rules.category(MAKHRAJ).rate = 9  # type: ignore[misc]


def test_unknown_category_lookup(rules):
    with pytest.raises(KeyError):
        rules.category("PENGURANGAN")
    assert rules.subtype_rules("PENGURANGAN") == ()


def test_packaged_file_round_trips(raw_rules, rules):
    assert parse_rules(raw_rules) == rules


def _broken(raw: dict, edit) -> dict:
    raw = copy.deepcopy(raw)
    edit(raw)
    return raw


@pytest.mark.parametrize(
    "edit",
    [
        pytest.param(lambda r: _category(r, MAKHRAJ).update(initial_score=55.0), id="budget"),
        pytest.param(lambda r: _category(r, MAKHRAJ).update(key="TAJWID"), id="unknown-key"),
        pytest.param(lambda r: r["categories"].pop(), id="missing-category"),
        pytest.param(lambda r: _category(r, AHKAM).update(rate=1.0), id="rate-and-subtypes"),
        pytest.param(lambda r: _category(r, MAD).pop("default_rate"), id="no-default-rate"),
        pytest.param(lambda r: _category(r, SIFAT).pop("rate"), id="flat-without-rate"),
        pytest.param(lambda r: _category(r, MAKHRAJ).update(rate=-1), id="negative-rate"),
        pytest.param(lambda r: _category(r, AHKAM)["subtypes"].append({"name": "Default", "rate": 1}), id="reserved-name"),
        pytest.param(lambda r: _category(r, AHKAM)["subtypes"].append({"name": "gunna", "rate": 1}), id="duplicate-subtype"),
        pytest.param(lambda r: r["penalty"]["patterns"].append({"pattern": "x", "tier": 70}), id="bad-tier"),
        pytest.param(lambda r: r["penalty"]["patterns"].append({"pattern": "%%", "tier": 0}), id="empty-pattern"),
        pytest.param(lambda r: r["penalty"].update(default_tier=95), id="bad-default-tier"),
        pytest.param(lambda r: r["classification"].append({"category": "TAJWID"}), id="bad-target"),
        pytest.param(lambda r: r.update(extra=True), id="unknown-field"),
    ],
)
def test_invalid_rule_files_are_rejected(raw_rules, edit):
    with pytest.raises(RulesError):
        parse_rules(_broken(raw_rules, edit))


def test_load_from_path(tmp_path, raw_rules):
    raw_rules["version"] = "custom"
    raw_rules["penalty"]["default_tier"] = 100
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(raw_rules), encoding="utf-8")
    loaded = load_rules(path)
    assert loaded.version == "custom"
    assert loaded.penalty.tier_for("alasan lain") == 100


def test_unreadable_files(tmp_path):
    bad = tmp_path / "rules.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(RulesError):
        load_rules(bad)
    with pytest.raises(RulesError):
        load_rules(tmp_path / "missing.json")


def test_default_rules_follow_config_path(tmp_path, raw_rules, monkeypatch):
    raw_rules["version"] = "from-env"
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(raw_rules), encoding="utf-8")
    monkeypatch.setattr(rules_mod, "_DEFAULT_RULES_CACHE", None)
    monkeypatch.setattr(config, "SCORING_RULES_PATH", str(path))

    first = rules_mod.default_rules()
    assert first.version == "from-env"
    assert rules_mod.default_rules() is first
