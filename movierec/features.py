"""Normalization of movie records coming from the upstream movie API."""

from __future__ import annotations

import dataclasses
from typing import Iterable

from .data import NO_GENRES, MovieRecord, parse_genres  # noqa: F401

_QUOTE = '"'


def has_field_bleed(record: MovieRecord) -> bool:
    """Return True if the title opens a quote it never closes.

    Upstream splits CSV rows on every comma, so a quoted title containing a
    comma loses its tail to the `genres` column.
    """
    title = record.title
    if not title:
        return False
    return title.startswith(_QUOTE) and not title.endswith(_QUOTE)


def clean(record: MovieRecord) -> MovieRecord:
    """Repair the quoted-title field bleed and return a new record.

    `clean(clean(r)) == clean(r)`: all leading quotes are stripped, so a
    repaired title never matches the bleed pattern again. The upstream web
    client strips only the first one; the two agree unless the title opens
    with several quotes (`""x` becomes `x...` here, `"x...` there).
    """
    if not has_field_bleed(record):
        return record

    title = str(record.title).lstrip(_QUOTE) + (record.genres or "")
    if title.endswith(_QUOTE):
        title = title[:-1]
    return dataclasses.replace(record, title=title, genres=NO_GENRES)


def clean_many(records: Iterable[MovieRecord]) -> list[MovieRecord]:
    return [clean(r) for r in records]
