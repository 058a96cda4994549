"""Conversation state manager with per-session serialised access."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Iterable

from cinebot.core.errors import ConversationNotFound

from .models import ConversationState, Message, MessageRole
from .store import ConversationStore

DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly movie recommendation assistant. Help the user find films they will enjoy.\n"
    "Rules:\n"
    "1. Ask open questions to understand the user's taste.\n"
    "2. Take genres, mood, time period, language and runtime into account.\n"
    "3. Recommend concrete movies with a short explanation of why they fit.\n"
    "4. If there is not enough information, ask clarifying questions.\n"
    "5. Be enthusiastic and helpful."
)


@dataclass(slots=True)
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class ConversationManager:
    """Create, load, reset and persist conversations kept in a store."""

    def __init__(self, store: ConversationStore, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> None:
        self.store = store
        self.system_prompt = system_prompt
        self._locks: dict[str, _LockEntry] = {}
        self._logger = logging.getLogger("cinebot.conversations")

    def fresh_state(self, conversation_id: str | None = None) -> ConversationState:
        """Build an empty conversation in memory without touching the store."""

        state = ConversationState() if conversation_id is None else ConversationState(id=conversation_id)
        if self.system_prompt:
            state.add_message(MessageRole.SYSTEM, self.system_prompt)
        return state

    def create(self, conversation_id: str | None = None) -> ConversationState:
        state = self.fresh_state(conversation_id)
        self.store.save(state)
        self._logger.info("Created conversation %s", state.id)
        return state

    def get(self, conversation_id: str) -> ConversationState:
        state = self.store.load(conversation_id)
        if state is None:
            raise ConversationNotFound(conversation_id)
        return state

    def load_or_fresh(self, conversation_id: str) -> ConversationState:
        """Stored state for ``conversation_id``, or an unsaved fresh one under that id."""

        state = self.store.load(conversation_id)
        return state if state is not None else self.fresh_state(conversation_id)

    def reset(self, conversation_id: str) -> ConversationState:
        """Discard history and preferences, keeping the conversation id."""

        self.store.delete(conversation_id)
        self._logger.info("Resetting conversation %s", conversation_id)
        return self.create(conversation_id)

    def delete(self, conversation_id: str) -> bool:
        return self.store.delete(conversation_id)

    def append_message(
        self,
        state: ConversationState,
        role: MessageRole | str,
        content: str,
        tool_calls: Iterable[str] = (),
    ) -> Message:
        return state.add_message(role, content, tool_calls)

    def save(self, state: ConversationState) -> None:
        self.store.save(state)

    def list_ids(self) -> list[str]:
        return list(self.store.iter_conversations())

    @asynccontextmanager
    async def lock(self, conversation_id: str) -> AsyncIterator[None]:
        """Serialise turns for one conversation id."""

        entry = self._locks.get(conversation_id)
        if entry is None:
            entry = self._locks[conversation_id] = _LockEntry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._locks.pop(conversation_id, None)
