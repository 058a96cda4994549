"""Baseline rule-based planner implementation."""

from __future__ import annotations

import re

from cinebot.nlu import vocabulary as vocab
from cinebot.nlu.extractor import PreferenceExtractor, contains_any, extract_genres, extract_moods
from cinebot.nlu.questions import clarification_questions

from .base import Planner
from .types import PlannerContext, SearchPlan, SearchStrategy, ToolCall, ToolName

FOLLOW_UP_PHRASES = (
    "more", "another", "anything else", "something else", "other options", "show me more",
    "ещё", "еще", "другие", "что-нибудь другое",
)

_QUOTED = re.compile(r"[\"«“„']([^\"«»“”„']{2,80})[\"»”“']")
MAX_GENRE_TOOLS = 2
MIN_REFERENCE_LENGTH = 3
VAGUE_REFERENCES = frozenset(
    {
        "it", "this", "that", "them", "those", "these", "this one", "that one", "one", "something",
        "это", "этот", "эту", "его", "её", "ее", "их", "то", "тот", "такое", "что-то",
    }
)


class RuleBasedPlanner(Planner):
    """Keyword planner that works without any model.

    Similarity requests become ``find_similar_movies`` tool calls (plus one
    genre search per genre named alongside), any other movie-related turn takes
    the composed-query path, and everything else asks for clarification.
    """

    def __init__(self) -> None:
        self._extractor = PreferenceExtractor()

    def describe(self) -> str:
        return "Rule-based keyword planner"

    async def plan(self, context: PlannerContext) -> SearchPlan:
        message = context.utterance.strip()
        lowered = message.lower()
        if not lowered:
            return SearchPlan.conservative_default("empty message")

        if contains_any(lowered, vocab.SIMILARITY_PHRASES):
            return self._similarity_plan(message, lowered)

        signals = self._extractor.parse(message)
        asks_for_movies = contains_any(lowered, vocab.MOVIE_REQUEST_WORDS)
        follows_up = bool(context.state.preferences.genres or context.state.preferences.moods) and any(
            phrase in lowered for phrase in FOLLOW_UP_PHRASES
        )

        if not signals.is_empty or asks_for_movies or follows_up:
            return SearchPlan(
                should_search=True,
                search_strategy=SearchStrategy.COMPOSED_QUERY.value,
                search_queries=[message],
                reasoning="movie request with usable preference signals",
            )

        reason = "small talk" if contains_any(lowered, vocab.SMALL_TALK_WORDS) else "no movie intent detected"
        questions = clarification_questions(context.state.preferences, context.language)
        plan = SearchPlan.conservative_default(reason)
        if questions:
            plan.clarification_questions = questions
        return plan

    def _similarity_plan(self, message: str, lowered: str) -> SearchPlan:
        parameters: dict[str, str] = {"description": message}
        quoted = _QUOTED.search(message)
        if quoted:
            parameters["title"] = quoted.group(1).strip()
        else:
            reference = self._reference_after_phrase(message, lowered)
            if reference:
                parameters["title"] = reference

        calls = [ToolCall(tool=ToolName.FIND_SIMILAR_MOVIES, parameters=parameters)]
        for genre in extract_genres(lowered)[:MAX_GENRE_TOOLS]:
            calls.append(ToolCall(tool=ToolName.SEARCH_BY_GENRE, parameters={"genre": genre}))
        for mood in extract_moods(lowered)[:1]:
            calls.append(ToolCall(tool=ToolName.SEARCH_BY_MOOD, parameters={"mood": mood}))

        return SearchPlan(
            should_search=True,
            search_strategy=SearchStrategy.TOOLS.value,
            search_queries=[message],
            tool_calls=calls,
            reasoning="similarity request",
        )

    @staticmethod
    def _reference_after_phrase(message: str, lowered: str) -> str | None:
        for phrase in vocab.SIMILARITY_PHRASES:
            position = lowered.find(phrase)
            if position < 0:
                continue
            end = position + len(phrase)
            while end < len(message) and message[end].isalnum():
                end += 1
            tail = message[end:].strip(" ,.!?:;")
            for lead in ("на ", "to "):
                if tail.lower().startswith(lead):
                    tail = tail[len(lead):]
            if len(tail) < MIN_REFERENCE_LENGTH or tail.casefold() in VAGUE_REFERENCES:
                return None
            return tail
        return None
