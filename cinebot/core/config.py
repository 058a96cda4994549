"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="CineBot Movie Assistant", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins.",
    )

    ollama_base_url: str = Field(
        default="http://localhost:11434/",
        description="Base URL of the Ollama-compatible model server.",
    )
    embedding_model: str = Field(default="nomic-embed-text", description="Embedding model name.")
    completion_model: str = Field(default="llama3.1", description="Text generation model name.")
    completion_endpoints: List[str] = Field(
        default_factory=lambda: ["api/generate", "generate"],
        description="Completion endpoints tried in order; the first success wins.",
    )
    provider_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Client-side timeout applied to every embedding/completion call.",
    )

    planner: Literal["rules", "llm"] = Field(
        default="rules",
        description="Planner implementation used to turn utterances into search plans.",
    )
    planner_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    response_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_responses_enabled: bool = Field(
        default=False,
        description="Write assistant replies with the completion model instead of templates.",
    )

    catalog_metadata_path: Path = Field(
        default=Path("db/catalog/movies.json"),
        description="JSON file holding the movie catalog metadata.",
    )
    faiss_index_path: Path = Field(
        default=Path("db/catalog/movies.index"),
        description="FAISS index file with precomputed movie embeddings.",
    )
    distance_metric: Literal["cosine", "euclidean", "manhattan", "dot"] = Field(
        default="cosine",
        description="Similarity metric the FAISS index was built with; requests may pick another.",
    )

    conversation_store: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Backend used to persist conversation state.",
    )
    sqlite_path: Path = Field(
        default=Path("db/conversations.db"),
        description="Conversation DB path.",
    )

    result_size: int = Field(default=5, ge=1, le=50, description="Number of recommendations per turn.")
    retrieval_pool_size: int = Field(
        default=50,
        ge=1,
        description="Nearest-neighbour candidates fetched per retrieval round.",
    )
    query_shortening_threshold: int = Field(
        default=60,
        ge=1,
        description="Utterances at least this long (or containing '?') are condensed to keywords.",
    )

    @property
    def llm_planner_enabled(self) -> bool:
        return self.planner == "llm"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
