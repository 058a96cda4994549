"""Pytest unit test fixtures."""

import pytest

from cinebot.memory.manager import ConversationManager
from cinebot.memory.store import InMemoryConversationStore, SQLiteConversationStore


@pytest.fixture()
def sqlite_store(tmp_path):
    db_path = tmp_path / "memory.db"
    return SQLiteConversationStore(db_path)


@pytest.fixture(params=["memory", "sqlite"])
def conversation_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryConversationStore()
    return SQLiteConversationStore(tmp_path / "conversations.db")


@pytest.fixture()
def manager(conversation_store):
    return ConversationManager(conversation_store)
