"""FastAPI application entry point for the CineBot movie assistant."""

import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from cinebot.api.catalog import create_movies_router, create_recommendations_router
from cinebot.api.tools import create_tools_router
from cinebot.assistant.factory import build_service
from cinebot.assistant.service import AssistantService
from cinebot.core.config import get_settings
from cinebot.core.db import sqlite_connection, table_exists
from cinebot.core.errors import (
    ConversationNotFound,
    conversation_not_found_handler,
    unhandled_exception_handler,
)
from cinebot.core.logging import configure_logging, request_id_middleware
from cinebot.memory.store import SQLiteConversationStore

settings = get_settings()
logger = logging.getLogger("cinebot.app")


@lru_cache(maxsize=1)
def get_service() -> AssistantService:
    """Dependency injector for the assistant service, built on first use."""

    return build_service(settings)


app = FastAPI(title=settings.app_name, version="0.1.0", docs_url="/docs")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_id_middleware)

app.include_router(create_tools_router(get_service))
app.include_router(create_movies_router(get_service))
app.include_router(create_recommendations_router(get_service))


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return basic service status for monitoring."""

    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_probe(service: AssistantService = Depends(get_service)) -> dict[str, Any]:
    """Readiness endpoint that verifies critical dependencies.

    Checks:
    - Conversation store reachable (and has its tables when SQLite backed).
    - Movie catalog metadata loads with at least one movie.
    - FAISS index present and non-empty.

    The active planner strategy is reported alongside.
    """

    components: dict[str, dict[str, Any]] = {}

    store = service.conversations.store
    store_ok = False
    store_error: str | None = None
    try:
        if isinstance(store, SQLiteConversationStore):
            with sqlite_connection(store.db_path) as conn:
                store_ok = table_exists(conn, "conversations") and table_exists(conn, "messages")
        else:
            store.iter_conversations()
            store_ok = True
    except Exception as exc:  # noqa: BLE001
        store_error = str(exc)
    components["conversation_store"] = {
        "backend": type(store).__name__,
        "ok": store_ok,
        **({"error": store_error} if store_error else {}),
    }

    catalog_ok = False
    catalog_error: str | None = None
    movie_count = 0
    try:
        movie_count = len(service.retriever.catalog)
        catalog_ok = movie_count > 0
        if not catalog_ok:
            catalog_error = "catalog is empty or missing"
    except Exception as exc:  # noqa: BLE001
        catalog_error = str(exc)
    components["catalog"] = {
        "movies": movie_count,
        "ok": catalog_ok,
        **({"error": catalog_error} if catalog_error else {}),
    }

    index_ok = False
    index_error: str | None = None
    try:
        index_ok = service.retriever.index.ready
        if not index_ok:
            index_error = "index file missing or empty"
    except Exception as exc:  # noqa: BLE001
        index_error = str(exc)
    components["vector_index"] = {
        "metric": service.retriever.metric,
        "ok": index_ok,
        **({"error": index_error} if index_error else {}),
    }

    if store_ok and catalog_ok and index_ok:
        overall = "ok"
    elif store_ok:
        overall = "degraded"
    else:
        overall = "fail"

    return {
        "status": overall,
        "environment": settings.environment,
        "components": components,
        "planner": service.planner.describe(),
    }


@app.post("/chat", tags=["chat"])
async def chat(message: dict, service: AssistantService = Depends(get_service)) -> dict:
    """Primary chat endpoint: one conversational turn."""

    content = message.get("message")
    if not isinstance(content, str) or not content.strip():
        raise HTTPException(status_code=400, detail="message is required")

    conversation_id = message.get("conversation_id") or message.get("conversationId")
    reset = bool(message.get("reset_conversation") or message.get("resetConversation"))

    result = await service.process_message(content.strip(), conversation_id, reset)
    return result.to_dict()


@app.get("/conversations", tags=["conversations"])
async def list_conversations(service: AssistantService = Depends(get_service)) -> list[str]:
    """List known conversation identifiers (development helper)."""

    return service.conversations.list_ids()


@app.post("/conversations", tags=["conversations"], status_code=201)
async def create_conversation(service: AssistantService = Depends(get_service)) -> dict:
    return service.conversations.create().to_dict()


@app.get("/conversations/{conversation_id}", tags=["conversations"])
async def get_conversation(conversation_id: str, service: AssistantService = Depends(get_service)) -> dict:
    return service.conversations.get(conversation_id).to_dict()


@app.post("/conversations/{conversation_id}/reset", tags=["conversations"])
async def reset_conversation(conversation_id: str, service: AssistantService = Depends(get_service)) -> dict:
    manager = service.conversations
    manager.get(conversation_id)
    async with manager.lock(conversation_id):
        state = manager.reset(conversation_id)
    return state.to_dict()


@app.delete("/conversations/{conversation_id}", tags=["conversations"])
async def delete_conversation(conversation_id: str, service: AssistantService = Depends(get_service)) -> dict:
    manager = service.conversations
    async with manager.lock(conversation_id):
        deleted = manager.delete(conversation_id)
    if not deleted:
        raise ConversationNotFound(conversation_id)
    return {"conversation_id": conversation_id, "deleted": True}


@app.on_event("startup")
async def startup_logging() -> None:
    level = configure_logging(settings.log_level)
    logger.info("Logging configured at %s level for %s environment", logging.getLevelName(level), settings.environment)


app.add_exception_handler(ConversationNotFound, conversation_not_found_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/metrics", tags=["metrics"])
async def metrics_endpoint(service: AssistantService = Depends(get_service)) -> dict:
    snapshot = service.metrics.snapshot()
    return {
        "total_turns": snapshot.total_turns,
        "degraded_results": snapshot.degraded_results,
        "strategies": snapshot.strategies,
        "tool_calls": snapshot.tool_calls,
        "tool_failures": snapshot.tool_failures,
    }
