"""Tool dispatch loop: execute a plan's tool calls and complete the merged result."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from cinebot.catalog.models import Movie
from cinebot.memory.models import UserPreferences
from cinebot.planner.types import SearchPlan
from cinebot.retrieval.cascade import CompletionCascade
from cinebot.retrieval.ranker import dedupe

from .base import ToolContext, ToolResult
from .router import ToolRouter


class DispatchState(str, Enum):
    PLANNING = "planning"
    NO_TOOLS_NEEDED = "no_tools_needed"
    TOOLS_PROPOSED = "tools_proposed"
    EXECUTING = "executing"
    AGGREGATING = "aggregating"
    DONE = "done"


@dataclass(slots=True)
class DispatchOutcome:
    items: list[Movie] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    states: list[DispatchState] = field(default_factory=list)
    degraded: bool = False

    @property
    def final_state(self) -> DispatchState:
        return self.states[-1] if self.states else DispatchState.PLANNING


class ToolDispatchLoop:
    """Run every proposed tool call, merge their items and top up to ``k``.

    Calls execute concurrently but results are merged in plan order, so the
    first occurrence of a movie always comes from the earliest tool.
    """

    def __init__(self, router: ToolRouter, cascade: CompletionCascade) -> None:
        self.router = router
        self.cascade = cascade
        self._logger = logging.getLogger("cinebot.dispatch")

    async def run(
        self,
        plan: SearchPlan,
        utterance: str,
        preferences: UserPreferences,
        k: int = 5,
        query_text: str | None = None,
    ) -> DispatchOutcome:
        outcome = DispatchOutcome(states=[DispatchState.PLANNING])
        if not plan.tool_calls:
            outcome.states += [DispatchState.NO_TOOLS_NEEDED, DispatchState.DONE]
            return outcome

        outcome.states += [DispatchState.TOOLS_PROPOSED, DispatchState.EXECUTING]
        results = await asyncio.gather(
            *(
                self.router.dispatch(
                    call,
                    ToolContext(utterance=utterance, parameters=call.parameters, preferences=preferences, k=k),
                )
                for call in plan.tool_calls
            )
        )
        outcome.tool_results = list(results)

        outcome.states.append(DispatchState.AGGREGATING)
        merged = dedupe(movie for result in results if result.success for movie in result.items)
        fallback_query = query_text or next((q for q in plan.search_queries if q.strip()), utterance)
        completed = await self.cascade.ensure_count(merged, fallback_query, preferences, k)
        outcome.items = completed.items
        outcome.degraded = completed.degraded
        outcome.states.append(DispatchState.DONE)

        failures = [result for result in results if not result.success]
        self._logger.info(
            "Dispatched %d tool calls (%d failed), %d items, degraded=%s",
            len(results),
            len(failures),
            len(outcome.items),
            outcome.degraded,
        )
        return outcome
