"""API routes for individual tool access."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException

from cinebot.assistant.service import AssistantService
from cinebot.catalog.index import MetricName
from cinebot.memory.models import UserPreferences
from cinebot.planner.types import ToolCall, ToolName
from cinebot.tools.base import ToolContext

REQUIRED_PARAMETER = {
    ToolName.SEARCH_MOVIES: ("query",),
    ToolName.SEARCH_BY_GENRE: ("genre",),
    ToolName.SEARCH_BY_MOOD: ("mood",),
    ToolName.FIND_SIMILAR_MOVIES: ("description", "title"),
}


def create_tools_router(get_service: Callable[[], AssistantService]) -> APIRouter:
    router = APIRouter(prefix="/tools", tags=["tools"])

    @router.get("")
    async def list_tools(service: AssistantService = Depends(get_service)) -> dict[str, str]:
        return service.dispatcher.router.describe()

    @router.get("/{tool}")
    async def tool_endpoint(
        tool: ToolName,
        query: str | None = None,
        genre: str | None = None,
        mood: str | None = None,
        description: str | None = None,
        title: str | None = None,
        k: int | None = None,
        metric: MetricName | None = None,
        service: AssistantService = Depends(get_service),
    ) -> dict:
        supplied = {
            key: value
            for key, value in {
                "query": query,
                "genre": genre,
                "mood": mood,
                "description": description,
                "title": title,
            }.items()
            if value and value.strip()
        }
        required = REQUIRED_PARAMETER[tool]
        if not any(name in supplied for name in required):
            raise HTTPException(status_code=400, detail=f"{' or '.join(required)} parameter is required")

        size = k if k and k > 0 else service.result_size
        utterance = next(iter(supplied.values()))
        call = ToolCall(tool=tool, parameters=supplied)
        context = ToolContext(
            utterance=utterance,
            parameters=supplied,
            preferences=UserPreferences(),
            k=size,
            metric=metric,
        )
        result = await service.dispatcher.router.dispatch(call, context)
        if not result.success:
            raise HTTPException(status_code=404, detail=result.error or "no matching movies")

        return {
            "tool": tool.value,
            "query": result.query,
            "metric": metric or service.retriever.metric,
            "results": [movie.to_dict() for movie in result.items],
        }

    return router
