"""Set-based evaluation: grouped reduction of observation streams into participant scores.

Rows are folded into per-participant tallies one at a time and never held
together in memory. Partitions of the same population (shards of a table
scan, files, worker queues) can be aggregated independently and merged in
any order; the merged tally is identical to one built from a single pass,
so the scores match row-oriented evaluation bit for bit.
"""
from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence
import logging

from . import config
from .engine import ParticipantTally, ScoringEngine
from .types import ObservationRecord, ParticipantScore

log = logging.getLogger(__name__)

TallyMap = Dict[str, ParticipantTally]


def aggregate(
    rows: Iterable[ObservationRecord],
    engine: Optional[ScoringEngine] = None,
) -> TallyMap:
    engine = engine or ScoringEngine()
    tallies: TallyMap = {}
    n_rows = 0
    for record in rows:
        pid = record.participant_id
        tally = tallies.get(pid)
        if tally is None:
            tally = tallies[pid] = engine.new_tally(pid)
        engine.fold(tally, record)
        n_rows += 1
    log.debug("aggregated %d rows for %d participants", n_rows, len(tallies))
    return tallies


def merge_tallies(left: Mapping[str, ParticipantTally], right: Mapping[str, ParticipantTally]) -> TallyMap:
    merged: TallyMap = dict(left)
    for pid, tally in right.items():
        mine = merged.get(pid)
        merged[pid] = tally if mine is None else mine.merge(tally)
    return merged


def aggregate_partitions(
    partitions: Sequence[Iterable[ObservationRecord]],
    engine: Optional[ScoringEngine] = None,
    max_workers: Optional[int] = None,
    executor: Optional[Executor] = None,
) -> TallyMap:
    """Aggregate independent partitions concurrently and merge the results.

    ``executor`` may be any ``concurrent.futures`` executor (a process pool for
    CPU-bound populations); by default a thread pool of ``max_workers`` is used.
    """
    engine = engine or ScoringEngine()
    workers = max_workers or config.BATCH_MAX_WORKERS
    if executor is None and workers <= 1:
        parts = [aggregate(p, engine) for p in partitions]
    elif executor is not None:
        parts = list(executor.map(aggregate, partitions, [engine] * len(partitions)))
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            parts = list(pool.map(aggregate, partitions, [engine] * len(partitions)))
    merged: TallyMap = {}
    for part in parts:
        merged = merge_tallies(merged, part)
    return merged


def iter_scores(
    tallies: Mapping[str, ParticipantTally],
    engine: Optional[ScoringEngine] = None,
) -> Iterator[ParticipantScore]:
    engine = engine or ScoringEngine()
    for pid in sorted(tallies, key=str):
        yield engine.finalize(tallies[pid])


def score_tallies(
    tallies: Mapping[str, ParticipantTally],
    engine: Optional[ScoringEngine] = None,
) -> Dict[str, ParticipantScore]:
    return {res.participant_id: res for res in iter_scores(tallies, engine)}


def score_stream(
    rows: Iterable[ObservationRecord],
    engine: Optional[ScoringEngine] = None,
) -> Dict[str, ParticipantScore]:
    engine = engine or ScoringEngine()
    return score_tallies(aggregate(rows, engine), engine)
