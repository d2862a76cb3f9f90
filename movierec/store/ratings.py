"""In-memory store of the local user's movie ratings."""

from __future__ import annotations

import logging
from typing import Optional

from ..data import MovieRecord, RatingVector, validate_rating


logger = logging.getLogger(__name__)


class RatingStore:
    """movieId -> MovieRecord for every movie the local user has rated.

    `version` is bumped on every change. Callers take a `snapshot()` and can
    compare its version later to detect that the ratings moved under them.
    """

    def __init__(self) -> None:
        self._movies: dict[int, MovieRecord] = {}
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._movies)

    def __contains__(self, movie_id: object) -> bool:
        try:
            return int(movie_id) in self._movies  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def get(self, movie_id: int) -> Optional[MovieRecord]:
        return self._movies.get(int(movie_id))

    def movies(self) -> list[MovieRecord]:
        """Rated movies in the order they were first rated."""
        return list(self._movies.values())

    def rate(self, movie_id: int, rating: float, *, title: str = "", genres: str = "") -> MovieRecord:
        """Insert or replace the local rating of `movie_id`."""
        value = validate_rating(rating)
        record = MovieRecord(movieId=int(movie_id), title=title, genres=genres, rating=value)
        self._movies[int(movie_id)] = record
        self._version += 1
        logger.debug("Rated movieId=%d rating=%.1f version=%d", int(movie_id), value, self._version)
        return record

    def unrate(self, movie_id: int) -> bool:
        """Clear the rating of `movie_id`. Returns False if it was not rated."""
        if self._movies.pop(int(movie_id), None) is None:
            return False
        self._version += 1
        logger.debug("Cleared rating movieId=%d version=%d", int(movie_id), self._version)
        return True

    def clear(self) -> None:
        self._movies.clear()
        self._version += 1

    def snapshot(self) -> tuple[RatingVector, int]:
        """Copy of the ratings as a RatingVector, with the current version."""
        vector = {mid: float(rec.rating) for mid, rec in self._movies.items() if rec.rating is not None}
        return vector, self._version
