"""Fill a recommendation list up to a fixed size through widening query tiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from cinebot.catalog.models import Movie, ScoredMovie
from cinebot.memory.models import UserPreferences

from .ranker import filter_candidates, query_terms, rank
from .retriever import CandidateRetriever

GENERIC_TIERS = ("popular", "highly rated", "classic", "popular blockbuster")
PREFERENCE_GENRE_COUNT = 3


@dataclass(slots=True)
class CascadeResult:
    items: list[Movie]
    degraded: bool = False
    tiers_used: list[str] = field(default_factory=list)


def build_tiers(query_text: str, preferences: UserPreferences) -> list[str]:
    """Ordered fallback queries, from the specific request to globally popular titles."""

    query = (query_text or "").strip()
    genres = " ".join(preferences.genres.recent(PREFERENCE_GENRE_COUNT))
    candidates = [
        query,
        f"{genres} movies" if genres else "",
        f"{query} {genres}".strip() if query and genres else "",
        *GENERIC_TIERS,
    ]

    tiers: list[str] = []
    seen: set[str] = set()
    for tier in candidates:
        key = tier.casefold()
        if not tier or key in seen:
            continue
        seen.add(key)
        tiers.append(tier)
    return tiers


class CompletionCascade:
    """Top up a candidate list to exactly ``k`` items when the catalog allows it.

    Each tier looks at its ``pool_size`` nearest neighbours. When the tiers run
    out, the first tier's vector is searched again over a doubling window
    until ``k`` items are accepted or the whole index has been seen. A failed
    embedding call ends the cascade. Whatever was accepted is then returned
    with ``degraded`` set instead of raising.
    """

    def __init__(self, retriever: CandidateRetriever, *, pool_size: int = 50) -> None:
        self.retriever = retriever
        self.pool_size = pool_size
        self._logger = logging.getLogger("cinebot.cascade")

    async def ensure_count(
        self,
        initial: Iterable[Movie | ScoredMovie],
        query_text: str,
        preferences: UserPreferences,
        k: int = 5,
    ) -> CascadeResult:
        accepted = filter_candidates(initial, preferences)[:k]
        if len(accepted) >= k:
            return CascadeResult(items=accepted)

        accepted_ids = {movie.id for movie in accepted}

        def take(candidates: list[ScoredMovie], terms: list[str]) -> bool:
            fresh = [item for item in candidates if item.movie.id not in accepted_ids]
            for movie in rank(fresh, preferences, terms):
                accepted.append(movie)
                accepted_ids.add(movie.id)
                if len(accepted) >= k:
                    return True
            return False

        window = max(self.pool_size, k)
        tiers_used: list[str] = []
        sweep: tuple[str, list[float]] | None = None
        for tier in build_tiers(query_text, preferences):
            tiers_used.append(tier)
            vector = await self.retriever.embed_query(tier)
            if vector is None:
                self._logger.warning("Cascade stopped at tier %r: embeddings unavailable", tier)
                return CascadeResult(items=accepted, degraded=True, tiers_used=tiers_used)
            if sweep is None:
                sweep = (tier, vector)
            if take(self.retriever.search(vector, window), query_terms(tier)):
                self._logger.debug("Cascade filled %d items after tiers %s", k, tiers_used)
                return CascadeResult(items=accepted, tiers_used=tiers_used)

        if sweep is not None:
            tier, vector = sweep
            total = self.retriever.size
            while window < total:
                window = min(window * 2, total)
                if take(self.retriever.search(vector, window), query_terms(tier)):
                    self._logger.debug("Cascade filled %d items sweeping %d neighbours", k, window)
                    return CascadeResult(items=accepted, tiers_used=tiers_used)

        self._logger.info(
            "Cascade exhausted %d tiers with %d/%d items for %r", len(tiers_used), len(accepted), k, query_text
        )
        return CascadeResult(items=accepted, degraded=True, tiers_used=tiers_used)
