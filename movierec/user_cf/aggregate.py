from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence, Union

import pandas as pd

from ..data import PeerRating, RatingVector


logger = logging.getLogger(__name__)

RawPeerRating = Union[PeerRating, Mapping[str, Any]]


def _as_peer_rating(entry: RawPeerRating) -> PeerRating:
    if isinstance(entry, PeerRating):
        return entry
    return PeerRating.from_api(entry)


def ratings_frame(raw_payload: Sequence[Sequence[RawPeerRating]]) -> pd.DataFrame:
    """Flatten the per-movie rating lists into one (peerId, movieId, rating) frame."""
    rows = []
    for movie_ratings in raw_payload:
        for entry in movie_ratings:
            r = _as_peer_rating(entry)
            rows.append((str(r.peerId), int(r.movieId), float(r.rating)))
    return pd.DataFrame(rows, columns=["peerId", "movieId", "rating"])


def aggregate(raw_payload: Sequence[Sequence[RawPeerRating]]) -> dict[str, RatingVector]:
    """Group the bulk ratings payload into one sparse rating vector per peer.

    A duplicate (peerId, movieId) pair keeps the last rating seen; peers are
    then ordered by their first remaining row.
    """
    df = ratings_frame(raw_payload)
    if df.empty:
        return {}

    df = df.drop_duplicates(subset=["peerId", "movieId"], keep="last")

    out: dict[str, RatingVector] = {}
    for peer_id, grp in df.groupby("peerId", sort=False):
        out[str(peer_id)] = {
            int(mid): float(rating) for mid, rating in zip(grp["movieId"].tolist(), grp["rating"].tolist())
        }

    logger.debug("Aggregated %d ratings into %d peer vectors", len(df), len(out))
    return out
