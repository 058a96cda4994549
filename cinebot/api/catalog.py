"""Read-only catalog lookup and similarity recommendation routes."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cinebot.assistant.service import AssistantService
from cinebot.catalog.index import MetricName
from cinebot.catalog.models import describe_movie


class SimilarMoviesRequest(BaseModel):
    """Body of ``POST /recommendations/similar``; a title wins over a description."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    movie_title: str | None = None
    description: str | None = None
    top_k: int = Field(default=10, ge=1, le=100)
    distance_metric: MetricName | None = None


def create_movies_router(get_service: Callable[[], AssistantService]) -> APIRouter:
    router = APIRouter(prefix="/movies", tags=["movies"])

    @router.get("")
    async def list_movies(
        offset: int = 0,
        limit: int = 100,
        service: AssistantService = Depends(get_service),
    ) -> list[dict]:
        movies = list(service.retriever.catalog)
        return [movie.to_dict() for movie in movies[max(offset, 0) : max(offset, 0) + max(limit, 0)]]

    @router.get("/title/{title}")
    async def movie_by_title(title: str, service: AssistantService = Depends(get_service)) -> dict:
        movie = service.retriever.catalog.find_by_title(title)
        if movie is None:
            raise HTTPException(status_code=404, detail="movie not found")
        return movie.to_dict()

    @router.get("/{movie_id}")
    async def movie_by_id(movie_id: int, service: AssistantService = Depends(get_service)) -> dict:
        movie = service.retriever.catalog.get(movie_id)
        if movie is None:
            raise HTTPException(status_code=404, detail="movie not found")
        return movie.to_dict()

    return router


def create_recommendations_router(get_service: Callable[[], AssistantService]) -> APIRouter:
    router = APIRouter(prefix="/recommendations", tags=["recommendations"])

    @router.post("/similar")
    async def similar_movies(
        request: SimilarMoviesRequest,
        service: AssistantService = Depends(get_service),
    ) -> list[dict]:
        """Nearest catalog movies to a known title or a free-text description.

        An unknown title yields an empty list; the title's own movie is never
        part of its recommendations.
        """

        retriever = service.retriever
        excluded: set[int] = set()
        if request.movie_title:
            seed = retriever.catalog.find_by_title(request.movie_title)
            if seed is None:
                return []
            query = describe_movie(seed)
            excluded.add(seed.id)
        elif request.description:
            query = request.description
        else:
            raise HTTPException(status_code=400, detail="movie_title or description is required")

        metric = request.distance_metric or retriever.metric
        hits = await retriever.retrieve(query, request.top_k + len(excluded), metric)
        return [
            {
                "movie": hit.movie.to_dict(),
                "similarity_score": hit.similarity,
                "distance_metric": hit.metric,
            }
            for hit in hits
            if hit.movie.id not in excluded
        ][: request.top_k]

    return router
