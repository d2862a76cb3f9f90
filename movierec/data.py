from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

# movieId -> rating on the half-star scale.
RatingVector = Dict[int, float]

MIN_RATING = 0.5
MAX_RATING = 5.0

NO_GENRES = "(no genres listed)"

REQUIRED_KEYS: Dict[str, Tuple[str, ...]] = {
    "peer_rating": ("movieId", "rating"),
    "movie_rating": ("movieId", "rating"),
    "movie": ("movieId",),
}


def validate_rating(value: float) -> float:
    """Return `value` as float if it is a half-star rating in 0.5..5.0, else raise ValueError.

    Use integer arithmetic to avoid float representation edge cases.
    """
    try:
        rating = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"rating must be a number, got {value!r}") from exc

    scaled = rating * 2
    if not (MIN_RATING <= rating <= MAX_RATING) or round(scaled) != scaled:
        raise ValueError(f"invalid rating value (expected half-stars 0.5..5.0): {value!r}")
    return rating


def parse_genres(genres: str | None) -> list[str]:
    """Parse pipe-separated genre tokens into a list."""
    if genres is None:
        return []
    tokens = [g.strip() for g in str(genres).split("|")]
    return [t for t in tokens if t and t != NO_GENRES]


def _require(kind: str, raw: Mapping[str, Any]) -> None:
    missing = [k for k in REQUIRED_KEYS[kind] if k not in raw]
    if missing:
        raise ValueError(f"{kind} entry missing keys: {missing}")


@dataclass(frozen=True)
class PeerRating:
    """One entry of the bulk ratings payload: another user's rating of a movie."""

    peerId: str
    movieId: int
    rating: float

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "PeerRating":
        _require("peer_rating", raw)
        peer = raw.get("peerId", raw.get("userId"))
        if peer is None:
            raise ValueError("peer_rating entry missing keys: ['userId']")
        return cls(peerId=str(peer), movieId=int(raw["movieId"]), rating=float(raw["rating"]))


@dataclass(frozen=True)
class MovieRating:
    movieId: int
    rating: float

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "MovieRating":
        _require("movie_rating", raw)
        return cls(movieId=int(raw["movieId"]), rating=float(raw["rating"]))


@dataclass(frozen=True)
class PeerScore:
    peerId: str
    factor: float


@dataclass(frozen=True)
class MovieRecord:
    """A movie as returned by the upstream movie API.

    `genres` keeps the upstream pipe-delimited form (e.g. "Comedy|Drama").
    `rating` is only set for movies the local user rated.
    """

    movieId: int
    title: Optional[str]
    genres: str = ""
    rating: Optional[float] = None

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "MovieRecord":
        _require("movie", raw)
        title = raw.get("title")
        genres = raw.get("genres")
        rating = raw.get("rating")
        return cls(
            movieId=int(raw["movieId"]),
            title=None if title is None else str(title),
            genres="" if genres is None else str(genres),
            rating=None if rating is None else float(rating),
        )

    @property
    def genres_list(self) -> list[str]:
        return parse_genres(self.genres)

    def to_dict(self) -> dict[str, Any]:
        return {
            "movieId": int(self.movieId),
            "title": self.title,
            "genres": self.genres,
            "rating": self.rating,
        }
