"""Exception types and HTTP exception handling utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("cinebot.errors")


class CineBotError(Exception):
    """Base class for recommendation engine errors."""


@dataclass(slots=True)
class ProviderAttemptError:
    """A single failed attempt against a named provider endpoint."""

    endpoint: str
    reason: str

    def __str__(self) -> str:
        return f"{self.endpoint}: {self.reason}"


class ProviderUnavailable(CineBotError):
    """Embedding, completion or network failure at a provider boundary."""

    def __init__(self, provider: str, attempts: list[ProviderAttemptError] | None = None) -> None:
        self.provider = provider
        self.attempts = list(attempts or [])
        detail = "; ".join(str(attempt) for attempt in self.attempts) or "no attempts made"
        super().__init__(f"{provider} unavailable ({detail})")


class MalformedPlan(CineBotError):
    """Planner output could not be parsed into a search plan."""


class MalformedToolParameters(CineBotError):
    """A proposed tool call carried parameters its tool cannot accept."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(f"{tool}: {message}")


class ConversationNotFound(CineBotError):
    """Raised when a conversation id is unknown to the store."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"conversation {conversation_id!r} not found")


async def conversation_not_found_handler(request: Request, exc: ConversationNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": "conversation_not_found",
            "message": f"Conversation {exc.conversation_id} does not exist.",
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    """Return a generic JSON error response while logging the exception."""

    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Something unexpected happened. Please try again later.",
        },
    )
