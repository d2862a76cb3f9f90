from __future__ import annotations

import pytest

from movierec.data import MovieRecord
from movierec.features import NO_GENRES, clean, clean_many, has_field_bleed, parse_genres


RECORDS = [
    MovieRecord(movieId=1, title='"Rent-a-Cat', genres="Comedy|Drama"),
    MovieRecord(movieId=2, title='"Good, the Bad and the Ugly', genres=' The (1966)"'),
    MovieRecord(movieId=3, title="Toy Story (1995)", genres="Adventure|Animation|Children"),
    MovieRecord(movieId=4, title='"Quoted" (2001)', genres="Drama"),
    MovieRecord(movieId=5, title='"Quoted"', genres="Drama"),
    MovieRecord(movieId=6, title="", genres="Drama"),
    MovieRecord(movieId=7, title=None, genres="Drama"),
    MovieRecord(movieId=8, title='""Double', genres="Horror"),
    MovieRecord(movieId=9, title='"', genres="Horror"),
    MovieRecord(movieId=10, title='"Lone', genres=""),
]


def test_field_bleed_is_concatenated_back_into_title() -> None:
    out = clean(RECORDS[0])
    assert out.title == "Rent-a-CatComedy|Drama"
    assert out.genres == NO_GENRES
    assert out.movieId == 1


def test_trailing_quote_from_genres_is_stripped() -> None:
    out = clean(RECORDS[1])
    assert out.title == "Good, the Bad and the Ugly The (1966)"
    assert out.genres == NO_GENRES


@pytest.mark.parametrize("record", [RECORDS[2], RECORDS[4], RECORDS[5], RECORDS[6], RECORDS[8]])
def test_well_formed_or_empty_titles_pass_through(record: MovieRecord) -> None:
    assert clean(record) == record


@pytest.mark.parametrize("record", RECORDS)
def test_clean_is_idempotent(record: MovieRecord) -> None:
    once = clean(record)
    assert clean(once) == once
    assert not has_field_bleed(once)


def test_every_leading_quote_is_stripped() -> None:
    assert clean(RECORDS[7]) == MovieRecord(movieId=8, title="DoubleHorror", genres=NO_GENRES)


def test_clean_does_not_mutate_its_input() -> None:
    record = RECORDS[0]
    clean(record)
    assert record.title == '"Rent-a-Cat'
    assert record.genres == "Comedy|Drama"


def test_missing_genres_still_repairs_title() -> None:
    assert clean(RECORDS[9]) == MovieRecord(movieId=10, title="Lone", genres=NO_GENRES)


def test_clean_many_keeps_order() -> None:
    out = clean_many(RECORDS[:3])
    assert [r.movieId for r in out] == [1, 2, 3]
    assert out[2] == RECORDS[2]


def test_parse_genres() -> None:
    assert parse_genres("Adventure| Animation |Children") == ["Adventure", "Animation", "Children"]
    assert parse_genres(NO_GENRES) == []
    assert parse_genres("") == []
    assert parse_genres(None) == []
    assert RECORDS[0].genres_list == ["Comedy", "Drama"]
