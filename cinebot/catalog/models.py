"""Catalog entities and record parsing."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

_GENRE_SPLIT = re.compile(r"[,|;/]")
_YEAR = re.compile(r"(\d{4})")


@dataclass(frozen=True, slots=True)
class Movie:
    """Read-only catalog item."""

    id: int
    title: str
    overview: str = ""
    genres: tuple[str, ...] = field(default_factory=tuple)
    popularity: float = 0.0
    vote_average: float = 0.0
    release_year: int | None = None
    runtime_minutes: int | None = None
    original_language: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "overview": self.overview,
            "genres": list(self.genres),
            "popularity": self.popularity,
            "vote_average": self.vote_average,
            "release_year": self.release_year,
            "runtime_minutes": self.runtime_minutes,
            "original_language": self.original_language,
        }


@dataclass(frozen=True, slots=True)
class ScoredMovie:
    """A retrieval candidate with its similarity under ``metric``."""

    movie: Movie
    similarity: float
    metric: str


def parse_genres(raw: Any) -> tuple[str, ...]:
    """Normalise a serialized genre list.

    Accepts a list of names, a list of ``{"name": ...}`` objects, a JSON
    encoded version of either, or a comma/pipe separated string.
    """

    if raw is None:
        return ()
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return ()
        if text[0] in "[{":
            try:
                return parse_genres(json.loads(text))
            except json.JSONDecodeError:
                pass
        return tuple(part.strip() for part in _GENRE_SPLIT.split(text) if part.strip())
    if isinstance(raw, Mapping):
        name = raw.get("name")
        return (str(name).strip(),) if name else ()
    names: list[str] = []
    for item in raw:
        names.extend(parse_genres(item))
    return tuple(names)


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _as_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def movie_from_record(record: Mapping[str, Any]) -> Movie:
    """Build a ``Movie`` from a catalog record using snake or camel case keys."""

    movie_id = _as_int(_first(record, "id", "movie_id", "movieId"))
    if movie_id is None:
        raise ValueError("catalog record is missing an id")

    year = _as_int(_first(record, "release_year", "releaseYear"))
    if year is None:
        release_date = _first(record, "release_date", "releaseDate")
        match = _YEAR.match(str(release_date)) if release_date else None
        year = int(match.group(1)) if match else None

    language = _first(record, "original_language", "originalLanguage")

    return Movie(
        id=movie_id,
        title=str(_first(record, "title", "original_title", "originalTitle") or ""),
        overview=str(record.get("overview") or ""),
        genres=parse_genres(record.get("genres")),
        popularity=_as_float(record.get("popularity")),
        vote_average=_as_float(_first(record, "vote_average", "voteAverage")),
        release_year=year,
        runtime_minutes=_as_int(_first(record, "runtime_minutes", "runtimeMinutes", "runtime")),
        original_language=str(language) if language else None,
    )


def describe_movie(movie: Movie) -> str:
    """Render the text a movie embedding is computed from."""

    lines = [f"Title: {movie.title}", f"Overview: {movie.overview}"]
    if movie.genres:
        lines.append(f"Genres: {', '.join(movie.genres)}")
    if movie.original_language:
        lines.append(f"Language: {movie.original_language}")
    if movie.release_year:
        lines.append(f"Release Date: {movie.release_year}")
    return "\n".join(lines)
