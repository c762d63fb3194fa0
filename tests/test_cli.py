from __future__ import annotations

import json

from tools import score_file

_ROWS = [
    {"peserta_id": "p1", "asesor_id": "a1", "huruf": "ب", "kategori": "makhraj", "nilai": 0},
    {"peserta_id": "p1", "asesor_id": "a1", "huruf": "Tanaffus", "kategori": "ahkam", "nilai": 1},
    {"peserta_id": "p2", "asesor_id": "a2", "huruf": "Tidak Bisa Membaca", "kategori": "pengurangan", "nilai": 1},
]


def _write_jsonl(path, rows):
    path.write_text("\n".join(json.dumps(r, ensure_ascii=False) for r in rows), encoding="utf-8")
    return path


def test_json_to_stdout(tmp_path, capsys):
    src = _write_jsonl(tmp_path / "obs.jsonl", _ROWS)
    assert score_file.main([str(src)]) == 0
    payload = json.loads(capsys.readouterr().out)
    by_pid = {row["participant_id"]: row for row in payload["results"]}
    assert by_pid["p1"]["overall"] == 98.0
    assert by_pid["p1"]["ahkam"] == 6.0
    assert by_pid["p2"]["overall"] == 10.0
    assert by_pid["p2"]["penalty"] == 90


def test_csv_to_file_with_summary(tmp_path, capsys):
    src = _write_jsonl(tmp_path / "obs.jsonl", _ROWS)
    out = tmp_path / "out" / "scores.csv"
    assert score_file.main([str(src), "--format", "csv", "--output", str(out), "--summary"]) == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("participant_id,makhraj,")
    assert len(lines) == 3
    summary = json.loads(capsys.readouterr().out)
    assert summary["average"] == {"avg_score": 54.0, "participant_count": 2}
    assert summary["fluency"][0]["total"] == 2


def test_bad_input_exits_with_error(tmp_path, capsys):
    src = _write_jsonl(tmp_path / "obs.jsonl", _ROWS + [{"peserta_id": "p3", "kategori": "mad", "nilai": -1}])
    assert score_file.main([str(src)]) == 1
    assert "error:" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert score_file.main([str(tmp_path / "nope.csv")]) == 1
    assert "error:" in capsys.readouterr().err


def test_non_utf8_input_exits_with_error(tmp_path, capsys):
    src = tmp_path / "obs.csv"
    src.write_bytes(b"peserta_id,asesor_id,huruf,kategori,nilai\np1,a1,\xff\xfe,makhraj,1\n")
    assert score_file.main([str(src)]) == 1
    assert "not UTF-8" in capsys.readouterr().err


def test_summary_without_output_goes_to_stderr(tmp_path, capsys):
    src = _write_jsonl(tmp_path / "obs.jsonl", _ROWS)
    assert score_file.main([str(src), "--summary"]) == 0
    captured = capsys.readouterr()
    assert len(json.loads(captured.out)["results"]) == 2
    assert '"average"' in captured.err
    assert '"average"' not in captured.out
