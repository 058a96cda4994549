from __future__ import annotations

import json
import re
import zlib
from pathlib import Path

import numpy as np
import pytest

from cinebot.assistant.factory import build_service
from cinebot.catalog.index import FaissMovieIndex
from cinebot.catalog.models import ScoredMovie, describe_movie, movie_from_record
from cinebot.catalog.store import MovieCatalog
from cinebot.core.config import Settings
from cinebot.core.errors import ProviderAttemptError, ProviderUnavailable
from cinebot.memory.store import InMemoryConversationStore
from cinebot.retrieval.cascade import CompletionCascade
from cinebot.retrieval.retriever import CandidateRetriever

EMBEDDING_DIM = 64
_WORD = re.compile(r"\w+")


class HashingEmbedder:
    """Deterministic bag-of-words embedder; fails for texts containing any ``fail_on`` word."""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = tuple(word.lower() for word in fail_on)
        self.calls: list[str] = []

    async def embed(self, text: str, model: str) -> list[float]:
        self.calls.append(text)
        lowered = text.lower()
        if any(word in lowered for word in self.fail_on):
            raise ProviderUnavailable("embeddings", [ProviderAttemptError("api/embeddings", "simulated outage")])
        return embed_text(lowered)


def embed_text(text: str) -> list[float]:
    vector = np.zeros(EMBEDDING_DIM, dtype=np.float32)
    vector[0] = 0.1
    for token in _WORD.findall(text.lower()):
        vector[1 + zlib.crc32(token.encode("utf-8")) % (EMBEDDING_DIM - 1)] += 1.0
    return vector.tolist()


class TableRetriever:
    """Retriever stand-in returning fixed candidates per query and recording the queries it saw.

    Queries listed in ``down`` behave like an unavailable embedding provider.
    """

    def __init__(self, table, default=(), down=()) -> None:
        self.table = table
        self.default = list(default)
        self.down = set(down)
        self.queries: list[str] = []

    @property
    def size(self) -> int:
        return len({movie.id for movies in self.table.values() for movie in movies})

    async def embed_query(self, query):
        self.queries.append(query)
        return None if query in self.down else query

    def search(self, vector, k, metric=None):
        movies = self.table.get(vector, self.default)
        return [ScoredMovie(movie, 1.0 - index / 100, "cosine") for index, movie in enumerate(movies)][:k]

    async def retrieve(self, query, k, metric=None):
        vector = await self.embed_query(query)
        return [] if vector is None else self.search(vector, k, metric)


class ScriptedCompletion:
    """Completion stub: answers language prompts with ``language`` and fails everything else
    unless a reply was scripted for a prompt fragment."""

    def __init__(
        self,
        language: str = "en",
        replies: dict[str, str] | None = None,
        fail: bool = False,
    ) -> None:
        self.language = language
        self.replies = dict(replies or {})
        self.fail = fail
        self.prompts: list[str] = []

    async def complete(self, prompt: str, model: str, temperature: float) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise ProviderUnavailable("completion", [ProviderAttemptError("api/generate", "simulated outage")])
        for fragment, reply in self.replies.items():
            if fragment in prompt:
                return reply
        if "ISO 639-1" in prompt:
            return self.language
        raise ProviderUnavailable("completion", [ProviderAttemptError("api/generate", "not scripted")])


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def chat_funny_payload(fixtures_dir: Path) -> dict:
    return json.loads((fixtures_dir / "chat_funny.json").read_text(encoding="utf-8"))


@pytest.fixture(scope="session")
def movies(fixtures_dir: Path):
    data = json.loads((fixtures_dir / "movies.json").read_text(encoding="utf-8"))
    return [movie_from_record(record) for record in data["movies"]]


@pytest.fixture
def catalog(movies) -> MovieCatalog:
    return MovieCatalog(movies)


@pytest.fixture(scope="session")
def movie_index(movies) -> FaissMovieIndex:
    return FaissMovieIndex.build(
        [movie.id for movie in movies],
        [embed_text(describe_movie(movie)) for movie in movies],
        metric="cosine",
    )


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def make_embedder():
    return HashingEmbedder


@pytest.fixture
def make_table_retriever():
    return TableRetriever


@pytest.fixture
def completion() -> ScriptedCompletion:
    return ScriptedCompletion()


@pytest.fixture
def make_completion():
    return ScriptedCompletion


@pytest.fixture
def make_retriever(movie_index, catalog):
    def factory(embedder: HashingEmbedder | None = None) -> CandidateRetriever:
        return CandidateRetriever(embedder or HashingEmbedder(), movie_index, catalog, timeout=5.0)

    return factory


@pytest.fixture
def retriever(make_retriever, embedder) -> CandidateRetriever:
    return make_retriever(embedder)


@pytest.fixture
def cascade(retriever) -> CompletionCascade:
    return CompletionCascade(retriever, pool_size=50)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        conversation_store="memory",
        sqlite_path=tmp_path / "conversations.db",
        retrieval_pool_size=50,
        result_size=5,
        provider_timeout_seconds=5.0,
    )


@pytest.fixture
def make_service(test_settings, catalog, movie_index):
    def factory(embedder=None, completion=None, **overrides):
        settings = test_settings.model_copy(update=overrides) if overrides else test_settings
        return build_service(
            settings,
            embedder=embedder or HashingEmbedder(),
            completion=completion or ScriptedCompletion(),
            index=movie_index,
            catalog=catalog,
            store=InMemoryConversationStore(),
        )

    return factory


@pytest.fixture
def service(make_service):
    return make_service()
