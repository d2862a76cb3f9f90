from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

import pandas as pd

from ..api.client import RatingsApiClient
from ..data import MovieRecord, validate_rating
from ..settings import load_settings
from ..utils import setup_logging
from .recommender import NoLocalRatings, NoRecommendations, PeerRecommender


def parse_rating_arg(text: str) -> tuple[int, float]:
    """Parse `MOVIE_ID=RATING` (e.g. `1=4.5`)."""
    movie_id, sep, rating = str(text).partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected MOVIE_ID=RATING, got {text!r}")
    try:
        return int(movie_id), validate_rating(rating)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Movie recommendations from the most similar user")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: search for config.yaml)")
    sub = p.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("recommend", help="Recommend movies for a set of local ratings")
    rec.add_argument(
        "--rate",
        dest="ratings",
        type=parse_rating_arg,
        action="append",
        default=[],
        metavar="MOVIE_ID=RATING",
        help="A local rating, half-stars 0.5..5.0 (repeatable)",
    )

    search = sub.add_parser("search", help="Search movies by keyword")
    search.add_argument("keyword", type=str)
    return p


def movies_frame(movies: list[MovieRecord]) -> pd.DataFrame:
    rows = [{**m.to_dict(), "genres": ", ".join(m.genres_list)} for m in movies]
    return pd.DataFrame(rows, columns=["movieId", "title", "genres", "rating"])


async def _run(args: argparse.Namespace) -> None:
    settings = load_settings(args.config)
    setup_logging(settings.log_level)

    async with RatingsApiClient.from_config(settings.api) as api:
        if args.command == "search":
            movies = await api.search_movies(args.keyword)
            print("\n=== Search Results ===")
            if movies:
                print(movies_frame(movies).to_string(index=False))
            else:
                print(f"No movies found for {args.keyword!r}.")
            return

        local_ratings = dict(args.ratings)
        outcome = await PeerRecommender(api, settings.recommender).recommend(local_ratings)

    print("\n=== Recommended Movies ===")
    if isinstance(outcome, NoLocalRatings):
        print("Rate some movies first (--rate MOVIE_ID=RATING).")
    elif isinstance(outcome, NoRecommendations):
        print(f"No recommendations found ({outcome.reason}).")
    else:
        print(f"Best matching user: {outcome.peerId} (factor={outcome.factor:.4f})")
        print(movies_frame(outcome.movies).to_string(index=False))


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
