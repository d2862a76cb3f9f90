"""FastAPI service entrypoint for the peer-based movie recommender."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request

from ..api.client import FetchError, RatingsApiClient
from ..settings import Settings, load_settings
from ..store.ratings import RatingStore
from ..user_cf.recommender import NoRecommendations, Outcome, PeerRecommender, Recommendations
from ..utils import setup_logging
from .schemas import MovieItem, RateRequest, RatingsResponse, RecommendRequest, RecommendResponse, SearchResponse

logger = logging.getLogger(__name__)


def _outcome_payload(outcome: Outcome) -> dict[str, Any]:
    payload: dict[str, Any] = {"kind": outcome.kind, "results": []}
    if isinstance(outcome, NoRecommendations):
        payload["reason"] = outcome.reason
    elif isinstance(outcome, Recommendations):
        payload["peerId"] = outcome.peerId
        payload["factor"] = outcome.factor
        payload["results"] = [m.to_dict() for m in outcome.movies]
    return payload


def _fetch_failed(exc: FetchError) -> HTTPException:
    logger.warning("Upstream fetch failed: %s (url=%s status=%s)", exc, exc.url, exc.status_code)
    return HTTPException(status_code=502, detail=f"Upstream movie API error: {exc}")


def create_app(*, settings: Optional[Settings] = None, api_client: Any | None = None) -> FastAPI:
    """Build the app. `api_client` can be injected (tests); otherwise one is created from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings if settings is not None else load_settings()
        setup_logging(cfg.log_level)

        owned_client: RatingsApiClient | None = None
        api = api_client
        if api is None:
            owned_client = RatingsApiClient.from_config(cfg.api)
            api = owned_client
            logger.info("Using movie API at %s", cfg.api.base_url)

        app.state.settings = cfg
        app.state.api = api
        app.state.recommender = PeerRecommender(api, cfg.recommender)
        app.state.rating_store = RatingStore()
        try:
            yield
        finally:
            if owned_client is not None:
                await owned_client.aclose()

    app = FastAPI(title="Movie Peer Recommendation Service", lifespan=lifespan)

    def _recommender(request: Request) -> PeerRecommender:
        rec = getattr(request.app.state, "recommender", None)
        if rec is None:
            raise HTTPException(status_code=503, detail="Recommender not initialized")
        return rec

    def _store(request: Request) -> RatingStore:
        store = getattr(request.app.state, "rating_store", None)
        if store is None:
            raise HTTPException(status_code=503, detail="Rating store not initialized")
        return store

    def _ratings_payload(store: RatingStore) -> dict[str, Any]:
        return {"version": store.version, "results": [m.to_dict() for m in store.movies()]}

    @app.post("/recommend", response_model=RecommendResponse)
    async def recommend(req: RecommendRequest, request: Request) -> dict:
        """Recommend movies for the ratings in the request body."""
        rec = _recommender(request)
        try:
            outcome = await rec.recommend(req.ratings)
        except FetchError as exc:
            raise _fetch_failed(exc) from exc
        return _outcome_payload(outcome)

    @app.get("/recommendations", response_model=RecommendResponse)
    async def recommendations(request: Request) -> dict:
        """Recommend movies for the ratings held by the service's rating store."""
        rec = _recommender(request)
        try:
            outcome = await rec.recommend_for_store(_store(request))
        except FetchError as exc:
            raise _fetch_failed(exc) from exc
        if outcome is None:
            raise HTTPException(status_code=409, detail="Ratings changed while recommending; retry")
        return _outcome_payload(outcome)

    @app.get("/movies/search", response_model=SearchResponse)
    async def movies_search(request: Request, q: str = Query(..., min_length=1)) -> dict:
        """Search the upstream catalog; titles come back cleaned."""
        api = getattr(request.app.state, "api", None)
        if api is None:
            raise HTTPException(status_code=503, detail="Movie API not initialized")
        keyword = q.strip()
        if keyword == "":
            raise HTTPException(status_code=400, detail="q must be non-empty")
        try:
            movies = await api.search_movies(keyword)
        except FetchError as exc:
            raise _fetch_failed(exc) from exc
        return {"query": keyword, "results": [m.to_dict() for m in movies]}

    @app.get("/ratings", response_model=RatingsResponse)
    def list_ratings(request: Request) -> dict:
        return _ratings_payload(_store(request))

    @app.delete("/ratings", response_model=RatingsResponse)
    def clear_ratings(request: Request) -> dict:
        store = _store(request)
        store.clear()
        return _ratings_payload(store)

    @app.get("/ratings/{movie_id}", response_model=MovieItem)
    def get_rating(movie_id: int, request: Request) -> dict:
        store = _store(request)
        if movie_id not in store:
            raise HTTPException(status_code=404, detail=f"movieId not rated: {movie_id}")
        return store.get(movie_id).to_dict()

    @app.put("/ratings/{movie_id}", response_model=RatingsResponse)
    def rate_movie(movie_id: int, req: RateRequest, request: Request) -> dict:
        store = _store(request)
        try:
            store.rate(movie_id, req.rating, title=req.title, genres=req.genres)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _ratings_payload(store)

    @app.delete("/ratings/{movie_id}", response_model=RatingsResponse)
    def unrate_movie(movie_id: int, request: Request) -> dict:
        store = _store(request)
        if not store.unrate(movie_id):
            raise HTTPException(status_code=404, detail=f"movieId not rated: {movie_id}")
        return _ratings_payload(store)

    return app


app = create_app()
