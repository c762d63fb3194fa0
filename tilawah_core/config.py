from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str | None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


SCORE_ROUND_DIGITS: int = 2

FLUENCY_MAHIR_MIN: float = 90.0
FLUENCY_LANCAR_MIN: float = 75.0

ERROR_STATS_TOP_N: int = 5
BATCH_MAX_WORKERS: int = 1

SCORING_RULES_PATH: str | None = None

DEBUG_TRACE: bool = False
TRACE_FIELDS: tuple[str, ...] = (
    "participant",
    "items",
    "base",
    "tier",
    "overall",
)
# // env overrides for staging/ops; defaults match the published rubric.
SCORE_ROUND_DIGITS = _env_int("SCORE_ROUND_DIGITS", SCORE_ROUND_DIGITS)
FLUENCY_MAHIR_MIN = _env_float("FLUENCY_MAHIR_MIN", FLUENCY_MAHIR_MIN)
FLUENCY_LANCAR_MIN = _env_float("FLUENCY_LANCAR_MIN", FLUENCY_LANCAR_MIN)
ERROR_STATS_TOP_N = _env_int("ERROR_STATS_TOP_N", ERROR_STATS_TOP_N)
BATCH_MAX_WORKERS = max(1, _env_int("BATCH_MAX_WORKERS", BATCH_MAX_WORKERS))
SCORING_RULES_PATH = _env_str("SCORING_RULES_PATH", SCORING_RULES_PATH)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)


def load_config() -> dict:
    cfg = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError: cfg = {}
    e = os.environ
    if e.get("SCORING_RULES_PATH"): cfg["SCORING_RULES_PATH"] = e.get("SCORING_RULES_PATH")
    if e.get("SCORE_ROUND_DIGITS"): cfg["SCORE_ROUND_DIGITS"] = _env_int("SCORE_ROUND_DIGITS", SCORE_ROUND_DIGITS)
    if e.get("BATCH_MAX_WORKERS"): cfg["BATCH_MAX_WORKERS"] = max(1, _env_int("BATCH_MAX_WORKERS", BATCH_MAX_WORKERS))
    cfg.setdefault("SCORING_RULES_PATH", SCORING_RULES_PATH)
    cfg.setdefault("SCORE_ROUND_DIGITS", SCORE_ROUND_DIGITS)
    cfg.setdefault("BATCH_MAX_WORKERS", BATCH_MAX_WORKERS)
    return cfg
