"""Conversation store abstractions with in-memory and SQLite implementations."""

from __future__ import annotations

import copy
import json
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable

from cinebot.core.db import sqlite_connection

from .models import ConversationState, Message, MessageRole, UserPreferences


class ConversationStore(ABC):
    """Abstract interface for reading and writing conversation state."""

    @abstractmethod
    def load(self, conversation_id: str) -> ConversationState | None:
        """Return the stored state, or None when the id is unknown."""

    @abstractmethod
    def save(self, state: ConversationState) -> None:
        """Persist ``state``, replacing whatever was stored under its id."""

    @abstractmethod
    def delete(self, conversation_id: str) -> bool:
        """Remove a conversation; return True when something was deleted."""

    @abstractmethod
    def iter_conversations(self) -> Iterable[str]:
        """Iterate over known conversation identifiers."""


class InMemoryConversationStore(ConversationStore):
    """Process-local store keyed by conversation id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, ConversationState] = {}

    def load(self, conversation_id: str) -> ConversationState | None:
        with self._lock:
            state = self._states.get(conversation_id)
            return copy.deepcopy(state) if state is not None else None

    def save(self, state: ConversationState) -> None:
        with self._lock:
            self._states[state.id] = copy.deepcopy(state)

    def delete(self, conversation_id: str) -> bool:
        with self._lock:
            return self._states.pop(conversation_id, None) is not None

    def iter_conversations(self) -> Iterable[str]:
        with self._lock:
            return sorted(self._states)


class SQLiteConversationStore(ConversationStore):
    """SQLite-backed store; each save rewrites the conversation row and its messages."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        """Create required tables if they do not exist."""

        with sqlite_connection(self.db_path) as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                    conversation_id TEXT PRIMARY KEY,
                    language TEXT NOT NULL,
                    preferences TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    conversation_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    tool_calls TEXT,
                    FOREIGN KEY (conversation_id) REFERENCES conversations (conversation_id)
                        ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_messages_conversation_position
                    ON messages (conversation_id, position);
                """
            )

    def load(self, conversation_id: str) -> ConversationState | None:
        with sqlite_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM conversations WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchone()
            if row is None:
                return None
            message_rows = conn.execute(
                """
                SELECT role, content, created_at, tool_calls
                FROM messages
                WHERE conversation_id = ?
                ORDER BY position ASC
                """,
                (conversation_id,),
            ).fetchall()

        messages = [
            Message(
                role=MessageRole(item["role"]),
                content=item["content"],
                created_at=datetime.fromisoformat(item["created_at"]),
                tool_calls=json.loads(item["tool_calls"] or "[]"),
            )
            for item in message_rows
        ]
        return ConversationState(
            id=row["conversation_id"],
            messages=messages,
            preferences=UserPreferences.from_dict(json.loads(row["preferences"])),
            language=row["language"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def save(self, state: ConversationState) -> None:
        with sqlite_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO conversations (conversation_id, language, preferences, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(conversation_id) DO UPDATE SET
                    language = excluded.language,
                    preferences = excluded.preferences,
                    updated_at = excluded.updated_at
                """,
                (
                    state.id,
                    state.language,
                    json.dumps(state.preferences.to_dict(), separators=(",", ":")),
                    state.created_at.isoformat(),
                    state.updated_at.isoformat(),
                ),
            )
            conn.execute("DELETE FROM messages WHERE conversation_id = ?", (state.id,))
            conn.executemany(
                """
                INSERT INTO messages (conversation_id, position, role, content, created_at, tool_calls)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        state.id,
                        position,
                        message.role.value,
                        message.content,
                        message.created_at.isoformat(),
                        json.dumps(message.tool_calls),
                    )
                    for position, message in enumerate(state.messages)
                ],
            )

    def delete(self, conversation_id: str) -> bool:
        with sqlite_connection(self.db_path) as conn:
            conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
            cursor = conn.execute(
                "DELETE FROM conversations WHERE conversation_id = ?",
                (conversation_id,),
            )
            return cursor.rowcount > 0

    def iter_conversations(self) -> Iterable[str]:
        with sqlite_connection(self.db_path) as conn:
            rows = conn.execute("SELECT conversation_id FROM conversations ORDER BY conversation_id")
            return [row["conversation_id"] for row in rows]
