"""Weighted scoring and selection of the best mirrors."""

import dataclasses
import logging
import math
from concurrent.futures import Executor
from typing import Callable

import requests

from .errors import NoBestMirrors
from .models import MirrorRecord, TargetRepository
from .probe import DEFAULT_THREADS, no_proxy_get, probe_all

logger = logging.getLogger(__name__)


def max_upstream_score(mirrors: list[MirrorRecord]) -> float:
    """Largest upstream score in the set, 0.0 if no mirror has one."""
    return max((m.score for m in mirrors if m.score is not None), default=0.0)


def compute_weighted_scores(mirrors: list[MirrorRecord]) -> None:
    """Set ``weighted_score = transfer_rate * (max_score - score)`` on every mirror.

    An unmeasured mirror counts as rate 0. A mirror without an upstream score
    gets NaN.
    """
    max_score = max_upstream_score(mirrors)
    for m in mirrors:
        rate = m.transfer_rate if m.transfer_rate is not None else 0.0
        score = m.score if m.score is not None else math.nan
        m.weighted_score = rate * (max_score - score)


def _sort_key(record: MirrorRecord) -> tuple[int, float, float]:
    # NaN or missing scores rank after every numeric score
    if not record.has_weighted_score:
        return (1, 0.0, 0.0)
    rate = record.transfer_rate if record.transfer_rate is not None else 0.0
    return (0, -record.weighted_score, -rate)


def sort_by_weighted_score(mirrors: list[MirrorRecord]) -> None:
    """Sort in place, best first.

    Equal weighted scores are ordered by measured transfer rate, so mirrors
    sharing the top upstream score (all weighted 0) still rank by speed.
    Remaining ties, and all mirrors without a weighted score, keep their
    current order.
    """
    mirrors.sort(key=_sort_key)


def select(mirrors: list[MirrorRecord], n: int) -> list[MirrorRecord]:
    return mirrors[:max(n, 0)]


def evaluate(
    mirrors: list[MirrorRecord],
    select_n: int,
    target: TargetRepository,
    executor: Executor | None = None,
    threads: int = DEFAULT_THREADS,
    http_get: Callable[..., requests.Response] = no_proxy_get,
) -> list[MirrorRecord]:
    """Measure, score and rank mirrors, returning the best ``select_n``.

    Works on copies, the input records are left untouched. Raises
    NoBestMirrors if the selection is empty.
    """
    candidates = [dataclasses.replace(m) for m in mirrors]
    probe_all(candidates, target, executor=executor, threads=threads, http_get=http_get)
    compute_weighted_scores(candidates)
    sort_by_weighted_score(candidates)
    best = select(candidates, select_n)
    if not best:
        raise NoBestMirrors(f"No mirror could be selected out of {len(mirrors)} candidates")
    logger.info(f"Selected {len(best)} of {len(candidates)} mirrors")
    return best
