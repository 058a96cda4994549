"""Wire the assistant service from settings."""

from __future__ import annotations

from cinebot.catalog.index import FaissMovieIndex
from cinebot.catalog.store import MovieCatalog
from cinebot.core.config import Settings
from cinebot.core.metrics import MetricsCollector
from cinebot.memory.manager import ConversationManager
from cinebot.memory.store import ConversationStore, InMemoryConversationStore, SQLiteConversationStore
from cinebot.nlu.composer import QueryComposer
from cinebot.nlu.extractor import PreferenceExtractor
from cinebot.nlu.language import LanguageDetector
from cinebot.planner.base import Planner
from cinebot.planner.llm import LLMPlanner
from cinebot.planner.simple import RuleBasedPlanner
from cinebot.providers.completion import CompletionProvider, OllamaCompletionProvider
from cinebot.providers.embeddings import EmbeddingProvider, OllamaEmbeddingProvider
from cinebot.retrieval.cascade import CompletionCascade
from cinebot.retrieval.retriever import CandidateRetriever
from cinebot.tools.dispatch import ToolDispatchLoop
from cinebot.tools.movies import build_movie_tools
from cinebot.tools.router import ToolRouter

from .response import ResponseComposer
from .service import AssistantService


def build_store(settings: Settings) -> ConversationStore:
    if settings.conversation_store == "memory":
        return InMemoryConversationStore()
    return SQLiteConversationStore(settings.sqlite_path)


def build_service(
    settings: Settings,
    *,
    embedder: EmbeddingProvider | None = None,
    completion: CompletionProvider | None = None,
    index: FaissMovieIndex | None = None,
    catalog: MovieCatalog | None = None,
    store: ConversationStore | None = None,
    metrics: MetricsCollector | None = None,
) -> AssistantService:
    """Assemble every component; any argument overrides the settings-driven default."""

    timeout = settings.provider_timeout_seconds
    embedder = embedder or OllamaEmbeddingProvider(settings.ollama_base_url, timeout=timeout)
    if completion is None:
        completion = OllamaCompletionProvider(
            settings.ollama_base_url,
            settings.completion_endpoints,
            timeout=timeout,
        )
    index = index or FaissMovieIndex(settings.faiss_index_path, metric=settings.distance_metric)
    catalog = catalog or MovieCatalog(metadata_path=settings.catalog_metadata_path)

    retriever = CandidateRetriever(
        embedder,
        index,
        catalog,
        model=settings.embedding_model,
        timeout=timeout,
    )
    cascade = CompletionCascade(retriever, pool_size=settings.retrieval_pool_size)
    router = ToolRouter(build_movie_tools(retriever, catalog, pool_size=settings.retrieval_pool_size))

    planner: Planner
    if settings.llm_planner_enabled:
        planner = LLMPlanner(
            completion,
            model=settings.completion_model,
            temperature=settings.planner_temperature,
            timeout=timeout,
        )
    else:
        planner = RuleBasedPlanner()

    return AssistantService(
        conversations=ConversationManager(store or build_store(settings)),
        detector=LanguageDetector(completion, model=settings.completion_model, timeout=timeout),
        composer=QueryComposer(
            completion,
            model=settings.completion_model,
            shortening_threshold=settings.query_shortening_threshold,
            timeout=timeout,
        ),
        extractor=PreferenceExtractor(),
        planner=planner,
        retriever=retriever,
        cascade=cascade,
        dispatcher=ToolDispatchLoop(router, cascade),
        responder=ResponseComposer(
            completion,
            model=settings.completion_model,
            temperature=settings.response_temperature,
            timeout=timeout,
            use_llm=settings.llm_responses_enabled,
        ),
        metrics=metrics,
        result_size=settings.result_size,
        pool_size=settings.retrieval_pool_size,
    )
