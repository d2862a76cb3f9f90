"""Async client for the remote movie search / ratings API."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from ..data import MovieRating, MovieRecord, PeerRating
from ..features import clean_many
from ..settings import ApiConfig


logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """A request to the movie API failed (bad status, transport error or bad body)."""

    def __init__(self, message: str, *, url: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RatingsApiClient:
    """Thin wrapper around the API endpoints the recommender needs.

    - POST /ratings       {"movieList": [...]} -> one list of ratings per movie
    - GET  /ratings/{id}  -> every rating of one user
    - POST /movie         {"keyword": ...} -> search results
    - GET  /movie/{id}    -> [movie] (empty list when unknown)

    Any status other than 200 is a FetchError; redirects are not followed.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        connect_timeout_s: float = 3.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = str(base_url).rstrip("/")
        self._owns_client = client is None
        if client is None:
            timeout = httpx.Timeout(float(timeout_s), connect=float(connect_timeout_s))
            client = httpx.AsyncClient(timeout=timeout, follow_redirects=False)
        self._client = client

    @classmethod
    def from_config(cls, cfg: ApiConfig, *, client: httpx.AsyncClient | None = None) -> "RatingsApiClient":
        return cls(cfg.base_url, timeout_s=cfg.timeout_s, connect_timeout_s=cfg.connect_timeout_s, client=client)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RatingsApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        url = self._url(path)
        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                headers={"Cache-Control": "no-cache"},
            )
        except httpx.HTTPError as exc:
            raise FetchError(f"Request to {url} failed: {exc}", url=url) from exc

        if response.status_code != 200:
            raise FetchError(f"Bad HTTP Status {response.status_code}", url=url, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"Invalid JSON from {url}", url=url, status_code=response.status_code) from exc

    @staticmethod
    def _expect_list(obj: Any, url: str) -> list[Any]:
        if not isinstance(obj, list):
            raise FetchError(f"Expected a JSON list from {url}, got {type(obj).__name__}", url=url)
        return obj

    async def fetch_peer_ratings_for_movies(self, movie_ids: Sequence[int]) -> list[list[PeerRating]]:
        """Every other user's ratings of each movie in `movie_ids` (one list per movie)."""
        payload = {"movieList": [int(m) for m in movie_ids]}
        url = self._url("ratings")
        data = self._expect_list(await self._request("POST", "ratings", json=payload), url)
        try:
            out = [[PeerRating.from_api(r) for r in self._expect_list(per_movie, url)] for per_movie in data]
        except (ValueError, TypeError, AttributeError) as exc:
            raise FetchError(f"Malformed ratings payload from {url}: {exc}", url=url) from exc
        logger.debug("Fetched peer ratings for %d movies", len(out))
        return out

    async def fetch_peer_full_ratings(self, peer_id: str) -> list[MovieRating]:
        """All ratings of one peer, in the order the API returns them."""
        path = f"ratings/{peer_id}"
        url = self._url(path)
        data = self._expect_list(await self._request("GET", path), url)
        try:
            return [MovieRating.from_api(r) for r in data]
        except (ValueError, TypeError, AttributeError) as exc:
            raise FetchError(f"Malformed ratings payload from {url}: {exc}", url=url) from exc

    async def fetch_movie_details(self, movie_id: int) -> Optional[MovieRecord]:
        """Details of one movie, or None when the API knows no such movie."""
        path = f"movie/{int(movie_id)}"
        url = self._url(path)
        data = self._expect_list(await self._request("GET", path), url)
        if not data:
            return None
        try:
            return MovieRecord.from_api(data[0])
        except (ValueError, TypeError, AttributeError) as exc:
            raise FetchError(f"Malformed movie payload from {url}: {exc}", url=url) from exc

    async def search_movies(self, keyword: str) -> list[MovieRecord]:
        """Search movies by keyword; results are cleaned."""
        url = self._url("movie")
        data = self._expect_list(await self._request("POST", "movie", json={"keyword": str(keyword)}), url)
        try:
            records = [MovieRecord.from_api(r) for r in data]
        except (ValueError, TypeError, AttributeError) as exc:
            raise FetchError(f"Malformed search payload from {url}: {exc}", url=url) from exc
        logger.info("Search %r returned %d movies", keyword, len(records))
        return clean_many(records)
