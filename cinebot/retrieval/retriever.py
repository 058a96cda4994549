"""Candidate retrieval over the embedding provider and the FAISS index."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from cinebot.catalog.index import FaissMovieIndex, similarity_from_distance
from cinebot.catalog.models import ScoredMovie
from cinebot.catalog.store import MovieCatalog
from cinebot.core.errors import ProviderUnavailable
from cinebot.providers.embeddings import EmbeddingProvider


class CandidateRetriever:
    """Embed a query and return the nearest catalog movies.

    Never raises for provider or index trouble: an empty list means "no
    candidates this round" and callers move on to their next option.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: FaissMovieIndex,
        catalog: MovieCatalog,
        *,
        model: str = "nomic-embed-text",
        timeout: float = 300.0,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.catalog = catalog
        self.model = model
        self.timeout = timeout
        self._logger = logging.getLogger("cinebot.retrieval")

    @property
    def metric(self) -> str:
        return self.index.metric

    @property
    def size(self) -> int:
        return self.index.size

    async def embed_query(self, query: str) -> list[float] | None:
        """Embed ``query``; ``None`` when it is blank or the provider failed or timed out."""

        text = (query or "").strip()
        if not text:
            return None
        try:
            return await asyncio.wait_for(self.embedder.embed(text, self.model), timeout=self.timeout)
        except ProviderUnavailable as exc:
            self._logger.warning("No candidates for %r: %s", text, exc)
        except asyncio.TimeoutError:
            self._logger.warning("Embedding timed out after %.0fs for %r", self.timeout, text)
        return None

    def search(self, vector: Sequence[float], k: int, metric: str | None = None) -> list[ScoredMovie]:
        metric = metric or self.metric
        try:
            hits = self.index.search(vector, k, metric)
        except (ValueError, RuntimeError) as exc:
            self._logger.error("Index search failed: %s", exc)
            return []

        distances = dict(hits)
        movies = self.catalog.get_items_by_ids([movie_id for movie_id, _ in hits])
        return [
            ScoredMovie(
                movie=movie,
                similarity=similarity_from_distance(distances[movie.id], metric),
                metric=metric,
            )
            for movie in movies
        ]

    async def retrieve(self, query: str, k: int, metric: str | None = None) -> list[ScoredMovie]:
        if k <= 0:
            return []
        vector = await self.embed_query(query)
        if vector is None:
            return []
        results = self.search(vector, k, metric)
        self._logger.debug("Retrieved %d/%d candidates for %r", len(results), k, query)
        return results
