"""Pearson similarity between sparse rating vectors."""

from __future__ import annotations

import math
from typing import Mapping

import numpy as np

from ..data import PeerScore, RatingVector


def correlate(a: Mapping[int, float], b: Mapping[int, float]) -> float:
    """Pearson correlation of `a` and `b` over the movies both have rated.

    Returns 0.0 when the vectors share no movies or when either side has
    zero variance over the shared movies.
    """
    shared = [mid for mid in a.keys() if mid in b]
    n = len(shared)
    if n == 0:
        return 0.0

    d1 = np.fromiter((float(a[mid]) for mid in shared), dtype=np.float64, count=n)
    d2 = np.fromiter((float(b[mid]) for mid in shared), dtype=np.float64, count=n)

    sum1 = float(d1.sum())
    sum2 = float(d2.sum())
    sq1 = float(np.square(d1).sum())
    sq2 = float(np.square(d2).sum())
    prod = float((d1 * d2).sum())

    var1 = sq1 - sum1**2 / n
    var2 = sq2 - sum2**2 / n
    # Cancellation can leave a constant side slightly below zero.
    if var1 <= 0.0 or var2 <= 0.0:
        return 0.0

    denominator = math.sqrt(var1 * var2)
    if denominator == 0.0:
        return 0.0

    factor = (prod - sum1 * sum2 / n) / denominator
    return float(min(1.0, max(-1.0, factor)))


def score_peers(local: RatingVector, peers: Mapping[str, RatingVector]) -> list[PeerScore]:
    """Score every peer against `local`, best first.

    Ties keep the peers' input order.
    """
    scores = [PeerScore(peerId=str(pid), factor=correlate(local, vec)) for pid, vec in peers.items()]
    scores.sort(key=lambda s: s.factor, reverse=True)
    return scores
