from __future__ import annotations

import numpy as np
import pytest

from movierec.user_cf.similarity import correlate, score_peers


VECTORS = [
    {1: 5.0, 2: 4.0, 3: 1.0, 4: 2.5},
    {2: 3.0, 1: 4.5, 4: 0.5, 7: 5.0},
    {3: 2.0, 4: 4.0, 1: 1.0, 9: 3.5, 2: 2.0},
    {1: 1.0, 2: 2.0},
]


@pytest.mark.parametrize("i", range(len(VECTORS)))
@pytest.mark.parametrize("j", range(len(VECTORS)))
def test_correlate_is_symmetric(i: int, j: int) -> None:
    a, b = VECTORS[i], VECTORS[j]
    assert correlate(a, b) == pytest.approx(correlate(b, a), abs=1e-12)


def test_disjoint_vectors_have_zero_correlation() -> None:
    assert correlate({1: 5.0, 2: 3.0}, {3: 5.0, 4: 1.0}) == 0
    assert correlate({}, {1: 4.0}) == 0
    assert correlate({}, {}) == 0


def test_constant_side_over_shared_movies_gives_zero() -> None:
    # Peer rated every shared movie the same; movie 5 is not shared.
    assert correlate({1: 5.0, 2: 3.0, 3: 1.0}, {1: 3.5, 2: 3.5, 3: 3.5, 5: 1.0}) == 0
    assert correlate({1: 2.0, 2: 2.0, 3: 2.0}, {1: 1.0, 2: 4.0, 3: 5.0}) == 0
    # A single shared movie has no variance either.
    assert correlate({1: 4.0, 2: 1.0}, {1: 4.0}) == 0


def test_vector_correlates_perfectly_with_itself() -> None:
    for vec in VECTORS:
        assert correlate(vec, vec) == pytest.approx(1.0)


def test_matches_numpy_pearson_over_shared_movies() -> None:
    a = {1: 1.0, 2: 2.0, 3: 3.0, 4: 5.0, 8: 4.0}
    b = {4: 3.0, 3: 4.0, 2: 1.0, 1: 2.0, 6: 0.5}
    shared = [1, 2, 3, 4]
    expected = np.corrcoef([a[m] for m in shared], [b[m] for m in shared])[0, 1]
    assert correlate(a, b) == pytest.approx(float(expected))


def test_opposite_tastes_give_minus_one() -> None:
    assert correlate({1: 1.0, 2: 3.0, 3: 5.0}, {1: 5.0, 2: 3.0, 3: 1.0}) == pytest.approx(-1.0)


def test_known_half_correlation() -> None:
    assert correlate({1: 1.0, 2: 2.0, 3: 3.0}, {1: 1.0, 2: 3.0, 3: 2.0}) == pytest.approx(0.5)


def test_score_peers_ranks_best_first_and_keeps_tie_order() -> None:
    local = {1: 5.0, 2: 4.0, 3: 1.0}
    peers = {
        "low": {1: 1.0, 2: 2.0, 3: 5.0},
        "tie_a": {1: 5.0, 2: 4.0, 3: 1.0},
        "none": {7: 3.0},
        "tie_b": {1: 4.5, 2: 3.5, 3: 0.5},
    }
    scores = score_peers(local, peers)
    assert [s.peerId for s in scores] == ["tie_a", "tie_b", "none", "low"]
    assert scores[0].factor == pytest.approx(1.0)
    assert scores[2].factor == 0
    assert score_peers(local, {}) == []
