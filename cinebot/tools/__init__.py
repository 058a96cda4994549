"""Tool package exports."""

from .base import Tool, ToolContext, ToolResult
from .dispatch import DispatchOutcome, DispatchState, ToolDispatchLoop
from .movies import (
    FindSimilarMoviesTool,
    SearchByGenreTool,
    SearchByMoodTool,
    SearchMoviesTool,
    build_movie_tools,
)
from .router import ToolRouter

__all__ = [
    "Tool",
    "ToolContext",
    "ToolResult",
    "ToolRouter",
    "ToolDispatchLoop",
    "DispatchOutcome",
    "DispatchState",
    "SearchMoviesTool",
    "SearchByGenreTool",
    "SearchByMoodTool",
    "FindSimilarMoviesTool",
    "build_movie_tools",
]
