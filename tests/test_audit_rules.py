from __future__ import annotations

import json
from pathlib import Path

import tilawah_core.audit_rules as audit_rules
from tilawah_core.rules import parse_rules

_PACKAGED = Path(__file__).resolve().parents[1] / "tilawah_core" / "data" / "rules.json"


def _raw() -> dict:
    return json.loads(_PACKAGED.read_text(encoding="utf-8"))


def test_packaged_rules_are_clean(rules):
    summary = audit_rules.audit_rules(rules)
    assert summary["warnings"] == []
    assert summary["budget_total"] == 100
    assert summary["penalty_default_tier"] == 90
    assert summary["budget"]["MAKHRAJ"] == 55.5


def test_shadowed_pattern_is_reported():
    raw = _raw()
    raw["penalty"]["patterns"].insert(0, {"pattern": "maqro", "tier": 100})
    summary = audit_rules.audit_rules(parse_rules(raw))
    joined = "\n".join(summary["warnings"])
    assert "'maqro%sebagian' (tier 50) is shadowed by 'maqro' (tier 100)" in joined


def test_duplicate_alias_and_shadowed_subtype():
    raw = _raw()
    raw["classification"][0]["aliases"].append("sifat")
    ahkam = next(c for c in raw["categories"] if c["key"] == "AHKAM")
    ahkam["subtypes"][2]["keywords"].append("izhar syafawi")
    warnings = audit_rules.audit_rules(parse_rules(raw))["warnings"]
    assert any("alias 'sifat' is claimed by MAKHRAJ and SIFAT" in w for w in warnings)
    assert any("sub-type 'gunna' keyword 'izhar syafawi'" in w for w in warnings)


def test_main_exit_codes(tmp_path, capsys):
    assert audit_rules.main([]) == 0
    assert "No warnings." in capsys.readouterr().out

    raw = _raw()
    raw["penalty"]["patterns"].insert(0, {"pattern": "video", "tier": 0})
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    assert audit_rules.main([str(path), "--json"]) == 2
    summary = json.loads(capsys.readouterr().out)
    assert len(summary["warnings"]) == 2

    broken = tmp_path / "broken.json"
    broken.write_text("[]", encoding="utf-8")
    assert audit_rules.main([str(broken)]) == 1
    assert "error:" in capsys.readouterr().out
