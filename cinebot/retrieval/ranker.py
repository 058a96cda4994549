"""Hard preference filters and the composite relevance score."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from cinebot.catalog.models import Movie, ScoredMovie
from cinebot.memory.models import UserPreferences
from cinebot.nlu.vocabulary import TIME_PERIOD_BUCKETS

RUNTIME_TOLERANCE_MINUTES = 30

TITLE_WEIGHT = 3
OVERVIEW_WEIGHT = 1
GENRE_WEIGHT = 2
RECENT_YEAR_CUTOFF = 2000

STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "about", "that", "this", "from", "into", "some", "something",
        "want", "would", "like", "movie", "movies", "film", "films", "watch", "show", "please",
        "recommend", "suggest", "give", "find", "any", "are", "you", "can", "what", "which",
        "me", "tonight", "good", "really", "very", "more", "other",
        "фильм", "фильмы", "кино", "хочу", "посмотреть", "что", "как", "про", "или", "мне",
    }
)

_TOKEN = re.compile(r"[\w'-]+")


def query_terms(text: str) -> list[str]:
    """Lower-cased terms of at least three characters, stopwords removed, first occurrence kept."""

    terms: list[str] = []
    for token in _TOKEN.findall((text or "").lower()):
        token = token.strip("'-")
        if len(token) < 3 or token in STOPWORDS or token in terms:
            continue
        terms.append(token)
    return terms


def dedupe(items: Iterable[Movie]) -> list[Movie]:
    seen: set[int] = set()
    unique: list[Movie] = []
    for movie in items:
        if movie.id in seen:
            continue
        seen.add(movie.id)
        unique.append(movie)
    return unique


def _in_time_bucket(year: int | None, period: str | None) -> bool:
    if year is None or not period:
        return True
    bucket = TIME_PERIOD_BUCKETS.get(period.strip().lower())
    if bucket is None:
        return True
    start, end = bucket
    if start is not None and year < start:
        return False
    if end is not None and year > end:
        return False
    return True


def passes_filters(movie: Movie, preferences: UserPreferences) -> bool:
    """Apply the hard filters; values missing on the movie never exclude it."""

    wanted_language = preferences.language_preference
    if wanted_language and movie.original_language:
        if movie.original_language.casefold() != wanted_language.casefold():
            return False

    if not _in_time_bucket(movie.release_year, preferences.time_period):
        return False

    if preferences.desired_runtime and movie.runtime_minutes:
        if abs(movie.runtime_minutes - preferences.desired_runtime) > RUNTIME_TOLERANCE_MINUTES:
            return False

    if movie.title and movie.title in preferences.avoided_movies:
        return False

    return True


def score(movie: Movie, preferences: UserPreferences, terms: Sequence[str]) -> float:
    title = movie.title.lower()
    overview = movie.overview.lower()
    title_matches = sum(1 for term in terms if term in title)
    overview_matches = sum(1 for term in terms if term in overview)

    item_genres = {genre.casefold() for genre in movie.genres}
    genre_overlap = 1 if any(genre.casefold() in item_genres for genre in preferences.genres) else 0

    recent = 1 if movie.release_year is not None and movie.release_year > RECENT_YEAR_CUTOFF else 0

    return (
        TITLE_WEIGHT * title_matches
        + OVERVIEW_WEIGHT * overview_matches
        + GENRE_WEIGHT * genre_overlap
        + movie.popularity / 2
        + recent
    )


def _as_movies(candidates: Iterable[Movie | ScoredMovie]) -> list[Movie]:
    return [item.movie if isinstance(item, ScoredMovie) else item for item in candidates]


def filter_candidates(candidates: Iterable[Movie | ScoredMovie], preferences: UserPreferences) -> list[Movie]:
    """Dedupe and hard-filter while keeping the incoming order."""

    return [movie for movie in dedupe(_as_movies(candidates)) if passes_filters(movie, preferences)]


def rank(
    candidates: Iterable[Movie | ScoredMovie],
    preferences: UserPreferences,
    terms: Sequence[str],
) -> list[Movie]:
    """Dedupe, filter and sort by descending score; ties keep retrieval order."""

    survivors = filter_candidates(candidates, preferences)
    return sorted(survivors, key=lambda movie: score(movie, preferences, terms), reverse=True)
