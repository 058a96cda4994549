"""Base classes and types for executable tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ValidationError

from cinebot.catalog.models import Movie
from cinebot.core.errors import MalformedToolParameters
from cinebot.memory.models import UserPreferences
from cinebot.planner.types import ToolName


@dataclass(slots=True)
class ToolContext:
    """Context provided to a tool invocation."""

    utterance: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    k: int = 5
    metric: str | None = None


@dataclass(slots=True)
class ToolResult:
    """Outcome of one tool call, kept for traceability whether it succeeded or not."""

    tool: ToolName
    parameters: dict[str, Any] = field(default_factory=dict)
    items: list[Movie] = field(default_factory=list)
    success: bool = True
    error: str | None = None
    query: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool.value,
            "parameters": dict(self.parameters),
            "success": self.success,
            "error": self.error,
            "query": self.query,
            "items": [movie.id for movie in self.items],
        }


class Tool(ABC):
    """Executable tool implementation interface."""

    name: ClassVar[ToolName]
    parameters_model: ClassVar[type[BaseModel]]

    def validate(self, parameters: Mapping[str, Any]) -> BaseModel:
        try:
            return self.parameters_model.model_validate(dict(parameters or {}))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'parameters'}: {error['msg']}"
                for error in exc.errors()
            )
            raise MalformedToolParameters(self.name.value, problems) from exc

    @abstractmethod
    async def run(self, context: ToolContext) -> ToolResult:
        """Execute the tool given the provided context."""

    def describe(self) -> str:
        """First docstring line, shown by the tool listing route."""

        doc = (self.__doc__ or "").strip()
        return doc.splitlines()[0] if doc else self.name.value
