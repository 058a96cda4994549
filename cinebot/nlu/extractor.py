"""Rule-based preference and context extraction from user utterances."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Mapping

from cinebot.memory.models import ConversationState, UserPreferences

from . import vocabulary as vocab

_QUOTED_TITLE = re.compile(r"[\"«“„']([^\"«»“”„']{2,80})[\"»”“']")
_MINUTES = re.compile(r"(\d{2,3})\s*(?:-|\s)?(?:min\b|mins\b|minutes?\b|мин)")
_HOURS = re.compile(r"(\d(?:[.,]\d)?)\s*(?:-|\s)?(?:h\b|hr\b|hrs\b|hours?\b|час)")
_CLAUSE_BREAK = re.compile(r"[.!?;]")


@lru_cache(maxsize=1024)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    escaped = re.escape(keyword.lower())
    if keyword.isascii():
        return re.compile(rf"(?<!\w){escaped}(?:s|es)?(?!\w)")
    return re.compile(rf"(?<!\w){escaped}")


def contains_keyword(text: str, keyword: str) -> bool:
    """Whole-word match for Latin keywords, word-prefix match for Cyrillic stems."""

    return _keyword_pattern(keyword).search(text) is not None


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(contains_keyword(lowered, keyword) for keyword in keywords)


def match_tags(text: str, table: Mapping[str, Iterable[str]]) -> list[str]:
    """Return canonical tags whose keywords occur in ``text``, in table order, each once."""

    lowered = text.lower()
    return [tag for tag, keywords in table.items() if any(contains_keyword(lowered, kw) for kw in keywords)]


def extract_genres(text: str) -> list[str]:
    return match_tags(text, vocab.GENRE_KEYWORDS)


def extract_moods(text: str) -> list[str]:
    return match_tags(text, vocab.MOOD_KEYWORDS)


@dataclass(slots=True)
class PartialPreferences:
    """Preference signals found in a single utterance."""

    genres: list[str] = field(default_factory=list)
    moods: list[str] = field(default_factory=list)
    time_period: str | None = None
    language_preference: str | None = None
    desired_runtime: int | None = None
    liked_movies: list[str] = field(default_factory=list)
    avoided_movies: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.genres
            or self.moods
            or self.time_period
            or self.language_preference
            or self.desired_runtime
            or self.liked_movies
            or self.avoided_movies
        )

    def merge_into(self, preferences: UserPreferences) -> None:
        """Add these signals; scalar filters change only when a new value was found."""

        preferences.genres.extend(self.genres)
        preferences.moods.extend(self.moods)
        preferences.liked_movies.extend(self.liked_movies)
        preferences.avoided_movies.extend(self.avoided_movies)
        if self.time_period is not None:
            preferences.time_period = self.time_period
        if self.language_preference is not None:
            preferences.language_preference = self.language_preference
        if self.desired_runtime is not None:
            preferences.desired_runtime = self.desired_runtime


class PreferenceExtractor:
    """Scan utterances against the static multilingual keyword tables."""

    def __init__(self) -> None:
        self._logger = logging.getLogger("cinebot.extractor")

    def extract(self, utterance: str, state: ConversationState) -> PartialPreferences:
        """Extract signals from ``utterance`` and merge them into ``state.preferences``."""

        partial = self.parse(utterance)
        if not partial.is_empty:
            partial.merge_into(state.preferences)
            self._logger.debug("Merged preferences for %s: %s", state.id, partial)
        return partial

    def parse(self, utterance: str) -> PartialPreferences:
        text = (utterance or "").lower()
        if not text.strip():
            return PartialPreferences()

        liked, avoided = self._extract_titles(utterance)
        return PartialPreferences(
            genres=extract_genres(text),
            moods=extract_moods(text),
            time_period=self._extract_time_period(text),
            language_preference=self._extract_language(text),
            desired_runtime=self._extract_runtime(text),
            liked_movies=liked,
            avoided_movies=avoided,
        )

    def _extract_time_period(self, text: str) -> str | None:
        for period, keywords in vocab.TIME_PERIOD_KEYWORDS.items():
            if any(contains_keyword(text, keyword) for keyword in keywords):
                return period
        return None

    def _extract_language(self, text: str) -> str | None:
        for code, keywords in vocab.LANGUAGE_PREFERENCE_KEYWORDS.items():
            if any(contains_keyword(text, keyword) for keyword in keywords):
                return code
        return None

    def _extract_runtime(self, text: str) -> int | None:
        minutes = _MINUTES.search(text)
        if minutes:
            return int(minutes.group(1))
        hours = _HOURS.search(text)
        if hours:
            return round(float(hours.group(1).replace(",", ".")) * 60)
        if any(contains_keyword(text, keyword) for keyword in vocab.SHORT_RUNTIME_KEYWORDS):
            return vocab.SHORT_RUNTIME_MINUTES
        if any(contains_keyword(text, keyword) for keyword in vocab.LONG_RUNTIME_KEYWORDS):
            return vocab.LONG_RUNTIME_MINUTES
        return None

    def _extract_titles(self, utterance: str) -> tuple[list[str], list[str]]:
        liked: list[str] = []
        avoided: list[str] = []
        for match in _QUOTED_TITLE.finditer(utterance):
            title = match.group(1).strip()
            if not title:
                continue
            clause = _CLAUSE_BREAK.split(utterance[: match.start()].lower())[-1]
            if any(contains_keyword(clause, word) for word in vocab.DISLIKE_WORDS):
                avoided.append(title)
            elif any(contains_keyword(clause, word) for word in vocab.LIKE_WORDS):
                liked.append(title)
        return liked, avoided
