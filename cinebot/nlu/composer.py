"""Compose retrieval queries that keep one foot in earlier turns.

The composer compares the genres mentioned in the current utterance with the
genres the conversation has already accumulated. A turn that names none of
the prior genres is a pivot: the new request is kept and the two most recent
prior genres are appended. Otherwise it is a continuation and the single most
recent prior genre is reinforced when the query does not mention it yet.

Compose against the preferences as they stood *before* the current turn is
merged, otherwise every pivot would look like a continuation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from cinebot.core.errors import ProviderUnavailable
from cinebot.memory.models import ConversationState
from cinebot.providers.completion import CompletionProvider

from . import vocabulary as vocab
from .extractor import extract_genres, extract_moods

PRIOR_GENRE_WINDOW = 3
PIVOT_GENRE_COUNT = 2

SHORTENING_PROMPT = """Turn the movie request into a short search phrase of a few keywords.

Request: I had a long week and want something light that makes me laugh, maybe with friends?
Keywords: funny lighthearted comedy friends

Request: Can you find me a tense movie about a heist that goes wrong, preferably from the 90s?
Keywords: heist crime thriller 90s

Request: Что посмотреть вечером, чтобы было страшно, но без лишней крови?
Keywords: horror scary suspense

Request: {utterance}
Keywords:"""


def genres_overlap(current: list[str], prior: list[str]) -> bool:
    """True when any pair matches by case-insensitive containment in either direction."""

    for left in current:
        for right in prior:
            a, b = left.casefold(), right.casefold()
            if a in b or b in a:
                return True
    return False


@dataclass(slots=True)
class CompositionTrace:
    """How a query was built; returned alongside the text for logging and tests."""

    query: str
    current_genres: list[str] = field(default_factory=list)
    prior_genres: list[str] = field(default_factory=list)
    is_pivot: bool = False
    appended: list[str] = field(default_factory=list)
    shortened: bool = False


class QueryComposer:
    """Build the query text used for retrieval on the composed-query path."""

    def __init__(
        self,
        completion: CompletionProvider | None = None,
        *,
        model: str = "llama3.1",
        shortening_threshold: int = 60,
        timeout: float = 300.0,
    ) -> None:
        self.completion = completion
        self.model = model
        self.shortening_threshold = shortening_threshold
        self.timeout = timeout
        self._logger = logging.getLogger("cinebot.composer")

    async def compose(self, utterance: str, state: ConversationState) -> str:
        trace = await self.compose_with_trace(utterance, state)
        return trace.query

    async def compose_with_trace(self, utterance: str, state: ConversationState) -> CompositionTrace:
        current = extract_genres(utterance)
        prior = state.preferences.genres.recent(PRIOR_GENRE_WINDOW)

        base, shortened = await self.shorten(utterance)
        query = self.expand(base, current, extract_moods(utterance))

        is_pivot = bool(prior) and not genres_overlap(current, prior)
        appended: list[str] = []
        if is_pivot:
            appended = prior[:PIVOT_GENRE_COUNT]
        elif prior and prior[0].casefold() not in query.casefold():
            appended = [prior[0]]

        if appended:
            query = " ".join([query, *appended])

        self._logger.debug(
            "Composed query %r (pivot=%s, prior=%s, appended=%s)", query, is_pivot, prior, appended
        )
        return CompositionTrace(
            query=query.strip(),
            current_genres=current,
            prior_genres=prior,
            is_pivot=is_pivot,
            appended=appended,
            shortened=shortened,
        )

    @staticmethod
    def expand(base: str, genres: list[str], moods: list[str]) -> str:
        """Append the synonym phrases for detected tags, skipping words already present."""

        words = base.split()
        seen = {word.casefold() for word in words}
        phrases = [vocab.GENRE_QUERY_PHRASES.get(genre, genre) for genre in genres]
        phrases += [vocab.MOOD_QUERY_PHRASES.get(mood, mood) for mood in moods]
        for phrase in phrases:
            for word in phrase.split():
                if word.casefold() not in seen:
                    seen.add(word.casefold())
                    words.append(word)
        return " ".join(words)

    def needs_shortening(self, utterance: str) -> bool:
        return len(utterance) >= self.shortening_threshold or "?" in utterance

    async def shorten(self, utterance: str) -> tuple[str, bool]:
        """Return ``(phrase, shortened)``; any failure keeps the raw utterance."""

        text = (utterance or "").strip()
        if not text or not self.needs_shortening(text) or self.completion is None:
            return text, False

        try:
            raw = await asyncio.wait_for(
                self.completion.complete(SHORTENING_PROMPT.format(utterance=text), self.model, 0.1),
                timeout=self.timeout,
            )
        except (ProviderUnavailable, asyncio.TimeoutError) as exc:
            self._logger.warning("Query shortening failed, using raw utterance: %s", exc)
            return text, False

        phrase = (raw or "").strip().splitlines()[0].strip().strip("\"'") if raw and raw.strip() else ""
        if phrase.lower().startswith("keywords:"):
            phrase = phrase[len("keywords:"):].strip()
        if not phrase:
            return text, False
        return phrase, True
