"""Pydantic schemas for the recommendation API."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..data import validate_rating


class MovieItem(BaseModel):
    """A single movie record."""

    movieId: int
    title: Optional[str] = None
    genres: str = ""
    rating: Optional[float] = None


class RecommendRequest(BaseModel):
    """Local ratings to recommend for, keyed by movieId."""

    ratings: dict[int, float] = Field(default_factory=dict, description="movieId -> rating (half-stars 0.5..5.0)")

    @field_validator("ratings")
    @classmethod
    def _check_ratings(cls, v: dict[int, float]) -> dict[int, float]:
        return {int(mid): validate_rating(r) for mid, r in v.items()}


class RecommendResponse(BaseModel):
    """Outcome of a recommendation run."""

    kind: Literal["no_local_ratings", "no_recommendations", "recommendations"]
    reason: Optional[str] = None
    peerId: Optional[str] = None
    factor: Optional[float] = None
    results: list[MovieItem] = Field(default_factory=list)


class RateRequest(BaseModel):
    rating: float = Field(..., ge=0.5, le=5.0, description="Half-star rating 0.5..5.0")
    title: str = ""
    genres: str = ""

    @field_validator("rating")
    @classmethod
    def _half_stars(cls, v: float) -> float:
        return validate_rating(v)


class RatingsResponse(BaseModel):
    version: int
    results: list[MovieItem]


class SearchResponse(BaseModel):
    query: str
    results: list[MovieItem]
