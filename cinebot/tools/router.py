"""Tool router mapping proposed tool calls to tool implementations."""

from __future__ import annotations

import logging
from typing import Mapping

from cinebot.core.errors import MalformedToolParameters
from cinebot.planner.types import ToolCall, ToolName

from .base import Tool, ToolContext, ToolResult

logger = logging.getLogger("cinebot.tools")


class ToolRouter:
    """Dispatch tool calls to concrete tools, turning every failure into a ``ToolResult``."""

    def __init__(self, tools: Mapping[ToolName, Tool]) -> None:
        self._tools = dict(tools)

    def describe(self) -> dict[str, str]:
        return {name.value: tool.describe() for name, tool in self._tools.items()}

    async def dispatch(self, call: ToolCall, context: ToolContext) -> ToolResult:
        parameters = dict(call.parameters)
        tool = self._tools.get(call.tool)
        if not tool:
            return ToolResult(call.tool, parameters, success=False, error="tool not available")

        try:
            return await tool.run(context)
        except MalformedToolParameters as exc:
            logger.warning("Rejected %s call: %s", call.tool.value, exc)
            return ToolResult(call.tool, parameters, success=False, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Tool %s failed", call.tool.value)
            return ToolResult(call.tool, parameters, success=False, error=str(exc) or type(exc).__name__)
