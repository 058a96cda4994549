"""Per-turn orchestration of the recommendation engine."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from cinebot.catalog.models import Movie
from cinebot.core.metrics import MetricsCollector
from cinebot.memory.manager import ConversationManager
from cinebot.memory.models import ConversationState, MessageRole
from cinebot.nlu.composer import QueryComposer
from cinebot.nlu.extractor import PreferenceExtractor
from cinebot.nlu.language import LanguageDetector
from cinebot.planner.base import Planner
from cinebot.planner.types import PlannerContext, SearchPlan, SearchStrategy
from cinebot.retrieval.cascade import CompletionCascade
from cinebot.retrieval.ranker import query_terms, rank
from cinebot.retrieval.retriever import CandidateRetriever
from cinebot.tools.base import ToolResult
from cinebot.tools.dispatch import ToolDispatchLoop

from .response import ResponseComposer


@dataclass(slots=True)
class TurnResult:
    conversation_id: str
    response: str
    recommended_movies: list[Movie] = field(default_factory=list)
    needs_clarification: bool = False
    clarification_questions: list[str] = field(default_factory=list)
    language: str = "en"
    search_query: str = ""
    strategy: SearchStrategy = SearchStrategy.CLARIFICATION
    degraded: bool = False
    tool_results: list[ToolResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "response": self.response,
            "recommended_movies": [movie.to_dict() for movie in self.recommended_movies],
            "needs_clarification": self.needs_clarification,
            "clarification_questions": list(self.clarification_questions),
            "language": self.language,
            "search_query": self.search_query,
            "strategy": self.strategy.value,
            "degraded": self.degraded,
            "tool_results": [result.to_dict() for result in self.tool_results],
        }


class AssistantService:
    """Run one conversational turn end to end.

    The turn works on a deep copy of the stored state, or on a fresh unsaved
    state for new and reset conversations, and only saves it once the reply
    exists. All of it runs under the conversation's lock.
    """

    def __init__(
        self,
        *,
        conversations: ConversationManager,
        detector: LanguageDetector,
        composer: QueryComposer,
        extractor: PreferenceExtractor,
        planner: Planner,
        retriever: CandidateRetriever,
        cascade: CompletionCascade,
        dispatcher: ToolDispatchLoop,
        responder: ResponseComposer,
        metrics: MetricsCollector | None = None,
        result_size: int = 5,
        pool_size: int = 50,
    ) -> None:
        self.conversations = conversations
        self.detector = detector
        self.composer = composer
        self.extractor = extractor
        self.planner = planner
        self.retriever = retriever
        self.cascade = cascade
        self.dispatcher = dispatcher
        self.responder = responder
        self.metrics = metrics or MetricsCollector()
        self.result_size = result_size
        self.pool_size = pool_size
        self._logger = logging.getLogger("cinebot.assistant")

    async def process_message(
        self,
        message: str,
        conversation_id: str | None = None,
        reset_conversation: bool = False,
    ) -> TurnResult:
        if not conversation_id:
            conversation_id = ConversationState().id

        async with self.conversations.lock(conversation_id):
            if reset_conversation:
                state = self.conversations.fresh_state(conversation_id)
            else:
                state = copy.deepcopy(self.conversations.load_or_fresh(conversation_id))

            state.language = await self.detector.detect(message)
            query = await self.composer.compose(message, state)
            self.extractor.extract(message, state)

            plan = await self.planner.plan(PlannerContext(utterance=message, state=state, language=state.language))
            items, strategy, degraded, tool_results = await self._search(plan, message, query, state)

            reply = await self.responder.compose(state, message, items, plan)

            self.conversations.append_message(state, MessageRole.USER, message)
            self.conversations.append_message(
                state,
                MessageRole.ASSISTANT,
                reply.text,
                tool_calls=[result.tool.value for result in tool_results],
            )
            self.conversations.save(state)

        self.metrics.record_turn(
            strategy.value,
            tool_outcomes=[(result.tool.value, result.success) for result in tool_results],
            degraded=degraded,
        )
        self._logger.info(
            "Turn %s: strategy=%s items=%d degraded=%s lang=%s",
            conversation_id,
            strategy.value,
            len(items),
            degraded,
            state.language,
        )
        return TurnResult(
            conversation_id=conversation_id,
            response=reply.text,
            recommended_movies=items,
            needs_clarification=reply.needs_clarification,
            clarification_questions=reply.clarification_questions,
            language=state.language,
            search_query=query,
            strategy=strategy,
            degraded=degraded,
            tool_results=tool_results,
        )

    async def _search(
        self,
        plan: SearchPlan,
        message: str,
        query: str,
        state: ConversationState,
    ) -> tuple[list[Movie], SearchStrategy, bool, list[ToolResult]]:
        if plan.tool_calls:
            outcome = await self.dispatcher.run(plan, message, state.preferences, self.result_size, query_text=query)
            return outcome.items, SearchStrategy.TOOLS, outcome.degraded, outcome.tool_results

        if plan.should_search:
            candidates = await self.retriever.retrieve(query, self.pool_size)
            ranked = rank(candidates, state.preferences, query_terms(query))
            completed = await self.cascade.ensure_count(ranked, query, state.preferences, self.result_size)
            return completed.items, SearchStrategy.COMPOSED_QUERY, completed.degraded, []

        return [], SearchStrategy.CLARIFICATION, False, []
