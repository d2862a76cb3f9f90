from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Optional

import pytest

# Ensure `import movierec...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from movierec.api.client import FetchError  # noqa: E402
from movierec.data import MovieRating, MovieRecord, PeerRating  # noqa: E402
from movierec.features import clean_many  # noqa: E402


class FakeMovieApi:
    """In-memory stand-in for RatingsApiClient.

    `peers` maps peerId -> {movieId: rating}; a peer's full rating list is
    returned in that dict's order.
    """

    def __init__(
        self,
        peers: dict[str, dict[int, float]],
        *,
        movies: Optional[dict[int, dict]] = None,
        failing_details: Iterable[int] = (),
    ) -> None:
        self.peers = peers
        self.movies = movies or {}
        self.failing_details = set(failing_details)
        self.calls: list[tuple[str, object]] = []

    async def fetch_peer_ratings_for_movies(self, movie_ids):
        self.calls.append(("peer_ratings", list(movie_ids)))
        out = []
        for mid in movie_ids:
            out.append([PeerRating(pid, int(mid), r[mid]) for pid, r in self.peers.items() if mid in r])
        return out

    async def fetch_peer_full_ratings(self, peer_id):
        self.calls.append(("full_ratings", peer_id))
        return [MovieRating(int(mid), float(r)) for mid, r in self.peers[peer_id].items()]

    async def fetch_movie_details(self, movie_id):
        self.calls.append(("details", movie_id))
        if movie_id in self.failing_details:
            raise FetchError("Bad HTTP Status 500", url=f"http://movies.test/movie/{movie_id}", status_code=500)
        raw = self.movies.get(movie_id, {"movieId": movie_id, "title": f"Movie {movie_id}", "genres": "Drama"})
        if raw is None:
            return None
        return MovieRecord.from_api(raw)

    async def search_movies(self, keyword):
        self.calls.append(("search", keyword))
        needle = keyword.lower()
        hits = [MovieRecord.from_api(m) for m in self.movies.values() if m and needle in str(m["title"]).lower()]
        return clean_many(hits)

    def detail_calls(self) -> list[object]:
        return [arg for name, arg in self.calls if name == "details"]


@pytest.fixture
def make_api():
    return FakeMovieApi
