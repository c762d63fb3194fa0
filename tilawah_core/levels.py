# tilawah_core/levels.py
from . import config

MAHIR = "mahir"
LANCAR = "lancar"
KURANG_LANCAR = "kurang_lancar"
FLUENCY_LEVELS = (MAHIR, LANCAR, KURANG_LANCAR)

def fluency_level(score: float) -> str:
    s = float(score)
    if s >= config.FLUENCY_MAHIR_MIN: return MAHIR     # fluent and accurate
    if s >= config.FLUENCY_LANCAR_MIN: return LANCAR
    return KURANG_LANCAR
