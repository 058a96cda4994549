"""Clarifying questions derived from the preferences still missing."""

from __future__ import annotations

from cinebot.memory.models import UserPreferences

MAX_QUESTIONS = 2
MIN_LIKED_MOVIES = 2

QUESTIONS: dict[str, dict[str, str]] = {
    "en": {
        "genres": "Which genres do you enjoy? For example comedy, drama or science fiction.",
        "moods": "What mood are you after? Funny, romantic, tense, inspiring?",
        "time_period": "Are you looking for recent releases or a classic from a particular era?",
        "liked_movies": "Which movies have you particularly enjoyed lately?",
    },
    "ru": {
        "genres": "Какие жанры фильмов вы предпочитаете? Например, комедия, драма, фантастика...",
        "moods": "Какое настроение вы ищете? Веселое, романтичное, напряженное, вдохновляющее?",
        "time_period": "Вас интересуют новые фильмы или классика какого-то периода?",
        "liked_movies": "Какие фильмы вам особенно понравились в последнее время?",
    },
}


def clarification_questions(preferences: UserPreferences, language: str = "en") -> list[str]:
    texts = QUESTIONS.get(language, QUESTIONS["en"])
    missing: list[str] = []
    if not preferences.genres:
        missing.append("genres")
    if not preferences.moods:
        missing.append("moods")
    if not preferences.time_period:
        missing.append("time_period")
    if len(preferences.liked_movies) < MIN_LIKED_MOVIES:
        missing.append("liked_movies")
    return [texts[key] for key in missing[:MAX_QUESTIONS]]
