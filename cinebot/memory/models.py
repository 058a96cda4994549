"""Dataclasses representing conversation messages, preferences and state."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Iterator

MAX_MESSAGE_HISTORY = 50
MAX_TAGS = 8
MAX_TITLES = 20


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class BoundedTagSet:
    """Ordered, case-insensitive set with least-recently-reinforced eviction.

    Adding a tag that is already present moves it to the most recent end.
    When the set grows past ``cap`` the least recently reinforced tag is
    evicted.
    """

    __slots__ = ("cap", "_items")

    def __init__(self, cap: int = MAX_TAGS, items: Iterable[str] = ()) -> None:
        if cap < 1:
            raise ValueError("cap must be positive")
        self.cap = cap
        self._items: list[str] = []
        self.extend(items)

    def add(self, value: str) -> bool:
        """Record ``value``; return True when it was not already present."""

        cleaned = (value or "").strip()
        if not cleaned:
            return False
        key = cleaned.casefold()
        for index, existing in enumerate(self._items):
            if existing.casefold() == key:
                self._items.append(self._items.pop(index))
                return False
        self._items.append(cleaned)
        while len(self._items) > self.cap:
            self._items.pop(0)
        return True

    def extend(self, values: Iterable[str]) -> None:
        for value in values:
            self.add(value)

    def recent(self, n: int | None = None) -> list[str]:
        """Return up to ``n`` entries, most recently reinforced first."""

        ordered = list(reversed(self._items))
        return ordered if n is None else ordered[:n]

    def to_list(self) -> list[str]:
        return list(self._items)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, str):
            return False
        key = value.strip().casefold()
        return any(existing.casefold() == key for existing in self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BoundedTagSet):
            return self.cap == other.cap and self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"BoundedTagSet(cap={self.cap}, items={self._items!r})"


@dataclass(slots=True)
class UserPreferences:
    """Accumulated user taste signals for one conversation."""

    genres: BoundedTagSet = field(default_factory=lambda: BoundedTagSet(MAX_TAGS))
    moods: BoundedTagSet = field(default_factory=lambda: BoundedTagSet(MAX_TAGS))
    time_period: str | None = None
    language_preference: str | None = None
    desired_runtime: int | None = None
    liked_movies: BoundedTagSet = field(default_factory=lambda: BoundedTagSet(MAX_TITLES))
    avoided_movies: BoundedTagSet = field(default_factory=lambda: BoundedTagSet(MAX_TITLES))

    def to_dict(self) -> dict[str, Any]:
        return {
            "genres": self.genres.to_list(),
            "moods": self.moods.to_list(),
            "time_period": self.time_period,
            "language_preference": self.language_preference,
            "desired_runtime": self.desired_runtime,
            "liked_movies": self.liked_movies.to_list(),
            "avoided_movies": self.avoided_movies.to_list(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> "UserPreferences":
        payload = payload or {}
        return cls(
            genres=BoundedTagSet(MAX_TAGS, payload.get("genres") or []),
            moods=BoundedTagSet(MAX_TAGS, payload.get("moods") or []),
            time_period=payload.get("time_period"),
            language_preference=payload.get("language_preference"),
            desired_runtime=payload.get("desired_runtime"),
            liked_movies=BoundedTagSet(MAX_TITLES, payload.get("liked_movies") or []),
            avoided_movies=BoundedTagSet(MAX_TITLES, payload.get("avoided_movies") or []),
        )


@dataclass(slots=True)
class Message:
    """Single conversational message stored in memory."""

    role: MessageRole
    content: str
    created_at: datetime = field(default_factory=utcnow)
    tool_calls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "tool_calls": list(self.tool_calls),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Message":
        return cls(
            role=MessageRole(payload["role"]),
            content=payload.get("content", ""),
            created_at=datetime.fromisoformat(payload["created_at"]) if payload.get("created_at") else utcnow(),
            tool_calls=list(payload.get("tool_calls") or []),
        )


@dataclass(slots=True)
class ConversationState:
    """Per-session state consumed and produced by every turn."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    messages: list[Message] = field(default_factory=list)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    language: str = "en"
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def add_message(
        self,
        role: MessageRole | str,
        content: str,
        tool_calls: Iterable[str] = (),
    ) -> Message:
        """Append a message, evicting the oldest entries beyond the history bound."""

        message = Message(role=MessageRole(role), content=content, tool_calls=list(tool_calls))
        self.messages.append(message)
        if len(self.messages) > MAX_MESSAGE_HISTORY:
            del self.messages[: len(self.messages) - MAX_MESSAGE_HISTORY]
        self.updated_at = utcnow()
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "messages": [message.to_dict() for message in self.messages],
            "preferences": self.preferences.to_dict(),
            "language": self.language,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ConversationState":
        return cls(
            id=payload["id"],
            messages=[Message.from_dict(item) for item in payload.get("messages") or []],
            preferences=UserPreferences.from_dict(payload.get("preferences")),
            language=payload.get("language") or "en",
            created_at=datetime.fromisoformat(payload["created_at"]),
            updated_at=datetime.fromisoformat(payload["updated_at"]),
        )
