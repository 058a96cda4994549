"""Planner-related enums and data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cinebot.memory.models import ConversationState

DEFAULT_CLARIFICATION_QUESTION = "What kind of movie are you in the mood for? A genre, a mood or a film you loved helps."


class ToolName(str, Enum):
    """Fixed catalog of retrieval tools a plan may propose."""

    SEARCH_MOVIES = "search_movies"
    SEARCH_BY_GENRE = "search_by_genre"
    SEARCH_BY_MOOD = "search_by_mood"
    FIND_SIMILAR_MOVIES = "find_similar_movies"


class SearchStrategy(str, Enum):
    """How a turn produced its items; reported on responses and metrics."""

    TOOLS = "tools"
    COMPOSED_QUERY = "composed_query"
    CLARIFICATION = "clarification"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToolCall(_CamelModel):
    """One proposed tool invocation with its raw parameter map."""

    tool: ToolName
    parameters: dict[str, Any] = Field(default_factory=dict)


class SearchPlan(_CamelModel):
    """Structured planner output; accepts snake_case or camelCase keys."""

    needs_clarification: bool = False
    clarification_questions: list[str] = Field(default_factory=list)
    should_search: bool = True
    search_strategy: str | None = None
    search_queries: list[str] = Field(default_factory=list)
    tool_calls: list[ToolCall] = Field(default_factory=list)
    reasoning: str = ""

    @classmethod
    def conservative_default(cls, reasoning: str = "planner output unavailable") -> "SearchPlan":
        return cls(
            needs_clarification=True,
            clarification_questions=[DEFAULT_CLARIFICATION_QUESTION],
            should_search=False,
            reasoning=reasoning,
        )


@dataclass(slots=True)
class PlannerContext:
    """Inputs passed to the planner for one turn."""

    utterance: str
    state: ConversationState
    language: str = "en"
