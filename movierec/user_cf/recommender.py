from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Sequence, Union

from ..api.client import FetchError
from ..data import MovieRating, MovieRecord, PeerRating, PeerScore, RatingVector
from ..features import clean
from ..settings import RecommenderConfig
from ..store.ratings import RatingStore
from .aggregate import aggregate
from .similarity import score_peers


logger = logging.getLogger(__name__)

NoRecommendationsReason = Literal["no_similar_peer", "no_candidates"]


@dataclass(frozen=True)
class NoLocalRatings:
    kind: Literal["no_local_ratings"] = "no_local_ratings"


@dataclass(frozen=True)
class NoRecommendations:
    reason: NoRecommendationsReason = "no_similar_peer"
    kind: Literal["no_recommendations"] = "no_recommendations"


@dataclass(frozen=True)
class Recommendations:
    movies: list[MovieRecord] = field(default_factory=list)
    peerId: str | None = None
    factor: float | None = None
    kind: Literal["recommendations"] = "recommendations"


Outcome = Union[NoLocalRatings, NoRecommendations, Recommendations]


class PeerRecommender:
    """Recommend movies liked by the single most similar peer.

    `api` must provide the three async lookups of `RatingsApiClient`:
    `fetch_peer_ratings_for_movies`, `fetch_peer_full_ratings` and
    `fetch_movie_details`. Every FetchError propagates except single detail
    lookups, which are skipped unless `config.fail_fast_details` is set.
    """

    def __init__(self, api: Any, config: RecommenderConfig | None = None) -> None:
        self.api = api
        self.config = config or RecommenderConfig()

    def select_peer(
        self,
        local_ratings: RatingVector,
        raw_payload: Sequence[Sequence[PeerRating]],
    ) -> Optional[PeerScore]:
        """Best-scoring peer, or None if nobody reaches the similarity threshold."""
        peers = aggregate(raw_payload)
        scores = score_peers(local_ratings, peers)
        if not scores:
            logger.info("No peers have rated any of the %d local movies", len(local_ratings))
            return None

        best = scores[0]
        if best.factor < float(self.config.similarity_threshold):
            logger.info(
                "Best peer %s factor=%.4f below threshold=%.2f (peers=%d)",
                best.peerId,
                best.factor,
                self.config.similarity_threshold,
                len(scores),
            )
            return None

        logger.info("Selected peer %s factor=%.4f among %d peers", best.peerId, best.factor, len(scores))
        return best

    def select_candidates(self, local_ratings: RatingVector, peer_ratings: Sequence[MovieRating]) -> list[int]:
        """Movies the peer liked and the local user has not rated, in fetch order."""
        min_rating = float(self.config.min_peer_rating)
        out: list[int] = []
        for r in peer_ratings:
            if len(out) >= int(self.config.max_candidates):
                break
            if float(r.rating) >= min_rating and int(r.movieId) not in local_ratings:
                out.append(int(r.movieId))
        return out

    async def fetch_details(self, movie_ids: Sequence[int]) -> list[MovieRecord]:
        """Fetch movie details concurrently, keeping `movie_ids` order."""
        if self.config.fail_fast_details:
            tasks = [asyncio.ensure_future(self.api.fetch_movie_details(mid)) for mid in movie_ids]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                # gather leaves the other lookups running; stop them before the client goes away.
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
            return [r for r in results if r is not None]

        results = await asyncio.gather(
            *(self.api.fetch_movie_details(mid) for mid in movie_ids),
            return_exceptions=True,
        )
        records: list[MovieRecord] = []
        failures: list[FetchError] = []
        for mid, res in zip(movie_ids, results):
            if isinstance(res, FetchError):
                logger.warning("Skipping movieId=%d: %s", int(mid), res)
                failures.append(res)
            elif isinstance(res, BaseException):
                raise res
            elif res is not None:
                records.append(res)

        # Nothing usable and at least one lookup failed: an outage, not an empty result.
        if failures and not records:
            raise failures[0]
        return records

    async def recommend(self, local_ratings: RatingVector) -> Outcome:
        """Run the full pipeline for one snapshot of the local user's ratings."""
        local_ratings = {int(mid): float(r) for mid, r in local_ratings.items()}
        if not local_ratings:
            return NoLocalRatings()

        raw_payload = await self.api.fetch_peer_ratings_for_movies(list(local_ratings.keys()))
        best = self.select_peer(local_ratings, raw_payload)
        if best is None:
            return NoRecommendations(reason="no_similar_peer")

        peer_ratings = await self.api.fetch_peer_full_ratings(best.peerId)
        candidates = self.select_candidates(local_ratings, peer_ratings)
        logger.info("Peer %s: %d ratings, %d candidates", best.peerId, len(peer_ratings), len(candidates))
        if not candidates:
            return NoRecommendations(reason="no_candidates")

        records = await self.fetch_details(candidates)
        if not records:
            return NoRecommendations(reason="no_candidates")

        return Recommendations(movies=[clean(r) for r in records], peerId=best.peerId, factor=best.factor)

    async def recommend_for_store(self, store: RatingStore) -> Optional[Outcome]:
        """Recommend for the current contents of `store`.

        Returns None when the store changed while the run was in flight; the
        result no longer matches the user's ratings.
        """
        local_ratings, version = store.snapshot()
        outcome = await self.recommend(local_ratings)
        if store.version != version:
            logger.info("Discarding stale recommendations (version %d -> %d)", version, store.version)
            return None
        return outcome
