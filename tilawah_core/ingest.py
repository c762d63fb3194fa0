"""Read observation rows from JSON / JSON Lines / CSV exports.

Rows may use the canonical field names or the assessment table's column
names (``peserta_id``, ``asesor_id``, ``huruf``, ``kategori``, ``nilai``).
CSV and JSON Lines files are streamed one row at a time; a plain ``.json``
file is parsed whole before its rows are validated.
"""
from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .types import ObservationError, ObservationRecord


class ObservationRow(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    participant_id: str = Field(validation_alias=AliasChoices("participant_id", "peserta_id"))
    assessor_id: str = Field(default="", validation_alias=AliasChoices("assessor_id", "asesor_id"))
    item_label: str = Field(default="", validation_alias=AliasChoices("item_label", "huruf"))
    raw_category: str = Field(default="", validation_alias=AliasChoices("raw_category", "kategori"))
    error_severity: float = Field(
        ge=0.0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("error_severity", "nilai"),
    )

    @field_validator("participant_id", mode="before")
    @classmethod
    def _id_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("error_severity", mode="before")
    @classmethod
    def _no_bool(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("error_severity must be a number, not a boolean")
        return v

    @field_validator("assessor_id", "item_label", "raw_category", mode="before")
    @classmethod
    def _free_text(cls, v: Any) -> str:
        # free-text columns degrade to "" (and later to OTHER / defaults), never fail
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    def to_record(self) -> ObservationRecord:
        return ObservationRecord(
            participant_id=self.participant_id,
            assessor_id=self.assessor_id,
            item_label=self.item_label,
            raw_category=self.raw_category,
            error_severity=self.error_severity,
        )


def parse_rows(rows: Iterable[Mapping[str, Any]]) -> Iterator[ObservationRecord]:
    for idx, raw in enumerate(rows, start=1):
        try:
            yield ObservationRow.model_validate(raw).to_record()
        except ValidationError as exc:
            raise ObservationError(f"row {idx}: {exc}") from exc


def _json_rows(path: Path) -> Iterator[Mapping[str, Any]]:
    if path.suffix.lower() == ".jsonl":
        with path.open("r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield json.loads(line)
        return
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("observations", data.get("assessments", []))
    if not isinstance(data, list):
        raise ObservationError(f"{path}: expected a list of observation objects")
    yield from data


def _csv_rows(path: Path) -> Iterator[Mapping[str, Any]]:
    with path.open("r", encoding="utf-8", newline="") as f:
        yield from csv.DictReader(f)


def read_observations(path: str | Path) -> Iterator[ObservationRecord]:
    p = Path(path)
    try:
        if p.suffix.lower() == ".csv":
            yield from parse_rows(_csv_rows(p))
        else:
            yield from parse_rows(_json_rows(p))
    except json.JSONDecodeError as exc:
        raise ObservationError(f"{p}: invalid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ObservationError(f"{p}: not UTF-8: {exc}") from exc
