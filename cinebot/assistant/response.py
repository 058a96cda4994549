"""Assistant reply text, written by the completion model or from templates."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from cinebot.catalog.models import Movie
from cinebot.core.errors import ProviderUnavailable
from cinebot.memory.models import ConversationState, MessageRole
from cinebot.nlu.questions import clarification_questions
from cinebot.planner.types import SearchPlan
from cinebot.providers.completion import CompletionProvider

MIN_CONFIDENT_RESULTS = 3
CONTEXT_MOVIES = 10
OVERVIEW_PREVIEW = 100

RESPONSE_INSTRUCTIONS = """Instructions:
1. Answer naturally and warmly, in the user's language ({language}).
2. If few movies were found or details are missing, ask a clarifying question.
3. Recommend the 3-5 best fitting movies from the list with a short reason for each.
4. Take the conversation history into account.
5. Do not mention technical details of the search.

Your reply:"""

TEMPLATES: dict[str, dict[str, str]] = {
    "en": {
        "intro": "Here are some movies you might enjoy:",
        "few": "I only found a few movies that match so far:",
        "none": "I couldn't find movies matching that yet.",
        "ask": "Tell me a bit more so I can narrow it down.",
    },
    "ru": {
        "intro": "Вот фильмы, которые могут вам понравиться:",
        "few": "Пока нашлось всего несколько подходящих фильмов:",
        "none": "Пока не удалось найти подходящие фильмы.",
        "ask": "Расскажите немного подробнее, чтобы я мог подобрать точнее.",
    },
}


@dataclass(slots=True)
class ComposedReply:
    text: str
    needs_clarification: bool
    clarification_questions: list[str] = field(default_factory=list)


def format_movie_line(movie: Movie) -> str:
    year = f" ({movie.release_year})" if movie.release_year else ""
    genres = f" [{', '.join(movie.genres)}]" if movie.genres else ""
    return f"- {movie.title}{year}{genres}"


def build_context(state: ConversationState, movies: list[Movie]) -> str:
    prefs = state.preferences
    lines = [
        "User information:",
        f"- Preferred genres: {', '.join(prefs.genres)}",
        f"- Mood: {', '.join(prefs.moods)}",
    ]
    if prefs.time_period:
        lines.append(f"- Time period: {prefs.time_period}")
    if prefs.language_preference:
        lines.append(f"- Language: {prefs.language_preference}")
    lines += ["", "Movies found for recommendation:"]
    for movie in movies[:CONTEXT_MOVIES]:
        overview = movie.overview
        if len(overview) > OVERVIEW_PREVIEW:
            overview = overview[:OVERVIEW_PREVIEW] + "..."
        lines.append(f"- {movie.title} ({movie.release_year or 'n/a'}): {overview}")
        if movie.genres:
            lines.append(f"  Genres: {', '.join(movie.genres)}")
        if movie.runtime_minutes:
            lines.append(f"  Runtime: {movie.runtime_minutes} min")
    return "\n".join(lines)


class ResponseComposer:
    """Turn retrieved movies and the plan into the assistant's reply."""

    def __init__(
        self,
        completion: CompletionProvider | None = None,
        *,
        model: str = "llama3.1",
        temperature: float = 0.7,
        timeout: float = 300.0,
        use_llm: bool = False,
    ) -> None:
        self.completion = completion
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.use_llm = use_llm and completion is not None
        self._logger = logging.getLogger("cinebot.response")

    async def compose(
        self,
        state: ConversationState,
        utterance: str,
        movies: list[Movie],
        plan: SearchPlan,
    ) -> ComposedReply:
        questions = clarification_questions(state.preferences, state.language)
        if plan.needs_clarification and plan.clarification_questions:
            questions = list(plan.clarification_questions)
        needs_clarification = plan.needs_clarification or len(movies) < MIN_CONFIDENT_RESULTS

        text: str | None = None
        if self.use_llm and (movies or not plan.needs_clarification):
            text = await self._llm_reply(state, utterance, movies)
        if not text:
            text = self.template_reply(state.language, movies, questions if needs_clarification else [])

        return ComposedReply(
            text=text,
            needs_clarification=needs_clarification,
            clarification_questions=questions if needs_clarification else [],
        )

    async def _llm_reply(self, state: ConversationState, utterance: str, movies: list[Movie]) -> str | None:
        history = "\n".join(
            f"{message.role.value}: {message.content}"
            for message in state.messages
            if message.role is not MessageRole.SYSTEM
        )
        prompt = "\n\n".join(
            [
                build_context(state, movies),
                f"Current conversation:\n{history}\nuser: {utterance}",
                RESPONSE_INSTRUCTIONS.format(language=state.language),
            ]
        )
        try:
            reply = await asyncio.wait_for(
                self.completion.complete(prompt, self.model, self.temperature),
                timeout=self.timeout,
            )
        except (ProviderUnavailable, asyncio.TimeoutError) as exc:
            self._logger.warning("Falling back to template reply: %s", exc)
            return None
        return reply.strip() or None

    @staticmethod
    def template_reply(language: str, movies: list[Movie], questions: list[str]) -> str:
        texts = TEMPLATES.get(language, TEMPLATES["en"])
        if not movies:
            lines = [texts["none"]]
        else:
            lines = [texts["intro"] if len(movies) >= MIN_CONFIDENT_RESULTS else texts["few"]]
            lines += [format_movie_line(movie) for movie in movies]
        if questions:
            lines += ["", *questions]
        elif not movies:
            lines.append(texts["ask"])
        return "\n".join(lines)
