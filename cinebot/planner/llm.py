"""Planner that asks the completion provider for a JSON search plan."""

from __future__ import annotations

import asyncio
import json
import logging
import re

from pydantic import ValidationError

from cinebot.core.errors import MalformedPlan, ProviderUnavailable
from cinebot.providers.completion import CompletionProvider

from .base import Planner
from .types import PlannerContext, SearchPlan

PLANNER_PROMPT = """You plan movie searches for a recommendation assistant.

Known user preferences:
{preferences}

Recent conversation:
{history}

User message: {utterance}

Available tools:
- search_movies: {{"query": "<free text>"}}
- search_by_genre: {{"genre": "<genre>"}}
- search_by_mood: {{"mood": "<mood>"}}
- find_similar_movies: {{"description": "<what the user liked>", "title": "<optional movie title>"}}

Reply with a single JSON object and nothing else:
{{"needsClarification": false, "clarificationQuestions": [], "shouldSearch": true,
  "searchStrategy": "tools", "searchQueries": ["..."],
  "toolCalls": [{{"tool": "search_by_genre", "parameters": {{"genre": "comedy"}}}}],
  "reasoning": "..."}}
"""

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
HISTORY_WINDOW = 6


def parse_plan(raw: str) -> SearchPlan:
    """Parse planner output, raising ``MalformedPlan`` when it is not a valid plan."""

    match = _JSON_OBJECT.search(raw or "")
    if match is None:
        raise MalformedPlan("planner reply contained no JSON object")
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise MalformedPlan(f"planner reply is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedPlan("planner reply is not a JSON object")
    try:
        return SearchPlan.model_validate(payload)
    except ValidationError as exc:
        raise MalformedPlan(f"planner reply failed validation: {exc.error_count()} errors") from exc


class LLMPlanner(Planner):
    """Ask a completion model for a structured plan; fall back to the conservative default."""

    def __init__(
        self,
        completion: CompletionProvider,
        *,
        model: str = "llama3.1",
        temperature: float = 0.3,
        timeout: float = 300.0,
    ) -> None:
        self.completion = completion
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._logger = logging.getLogger("cinebot.planner.llm")

    def describe(self) -> str:
        return f"LLM planner ({self.model})"

    def build_prompt(self, context: PlannerContext) -> str:
        preferences = context.state.preferences.to_dict()
        history = [
            f"{message.role.value}: {message.content}"
            for message in context.state.messages[-HISTORY_WINDOW:]
            if message.role.value != "system"
        ]
        return PLANNER_PROMPT.format(
            preferences=json.dumps(preferences, ensure_ascii=False),
            history="\n".join(history) or "(none)",
            utterance=context.utterance,
        )

    async def plan(self, context: PlannerContext) -> SearchPlan:
        try:
            raw = await asyncio.wait_for(
                self.completion.complete(self.build_prompt(context), self.model, self.temperature),
                timeout=self.timeout,
            )
            plan = parse_plan(raw)
        except (ProviderUnavailable, asyncio.TimeoutError) as exc:
            self._logger.warning("Planner call failed, using conservative default: %s", exc)
            return SearchPlan.conservative_default("planner unavailable")
        except MalformedPlan as exc:
            self._logger.warning("Discarding malformed plan: %s", exc)
            return SearchPlan.conservative_default("planner output malformed")

        if plan.tool_calls and not plan.should_search:
            plan.tool_calls = []
        self._logger.debug(
            "Plan: search=%s tools=%s", plan.should_search, [call.tool.value for call in plan.tool_calls]
        )
        return plan
