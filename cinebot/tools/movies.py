"""Movie retrieval tools exposed to planners and the direct tool routes."""

from __future__ import annotations

import logging
from abc import abstractmethod

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cinebot.catalog.models import describe_movie
from cinebot.catalog.store import MovieCatalog
from cinebot.nlu.vocabulary import GENRE_QUERY_PHRASES, MOOD_QUERY_PHRASES
from cinebot.planner.types import ToolName
from cinebot.retrieval.ranker import query_terms, rank
from cinebot.retrieval.retriever import CandidateRetriever

from .base import Tool, ToolContext, ToolResult

logger = logging.getLogger("cinebot.tools")


class _Parameters(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class SearchMoviesParameters(_Parameters):
    query: str | None = None


class GenreParameters(_Parameters):
    genre: str = Field(min_length=1)


class MoodParameters(_Parameters):
    mood: str = Field(min_length=1)


class SimilarMoviesParameters(_Parameters):
    description: str | None = None
    title: str | None = None

    @model_validator(mode="after")
    def _blank_to_none(self) -> "SimilarMoviesParameters":
        if not self.description:
            self.description = None
        if not self.title:
            self.title = None
        return self


def genre_query(genre: str) -> str:
    key = genre.strip().lower()
    return GENRE_QUERY_PHRASES.get(key) or f"{genre.strip()} movies"


def mood_query(mood: str) -> str:
    key = mood.strip().lower()
    return MOOD_QUERY_PHRASES.get(key) or f"{mood.strip()} mood"


class RetrievalTool(Tool):
    """Shared execution: translate parameters to a query, retrieve, filter and rank."""

    def __init__(self, retriever: CandidateRetriever, *, pool_size: int = 50) -> None:
        self.retriever = retriever
        self.pool_size = pool_size

    @abstractmethod
    def build_query(self, params: BaseModel, context: ToolContext) -> str:
        """Turn validated parameters into the text that gets embedded."""

    def excluded_ids(self, params: BaseModel) -> set[int]:
        return set()

    async def run(self, context: ToolContext) -> ToolResult:
        parameters = dict(context.parameters or {})
        params = self.validate(parameters)
        query = self.build_query(params, context).strip()
        if not query:
            return ToolResult(self.name, parameters, success=False, error="empty query")

        candidates = await self.retriever.retrieve(query, max(self.pool_size, context.k), context.metric)
        excluded = self.excluded_ids(params)
        ranked = rank(
            [item for item in candidates if item.movie.id not in excluded],
            context.preferences,
            query_terms(query),
        )
        if not ranked:
            logger.info("%s found nothing for %r", self.name.value, query)
            return ToolResult(self.name, parameters, success=False, error="no matching movies", query=query)
        return ToolResult(self.name, parameters, items=ranked[: context.k], query=query)


class SearchMoviesTool(RetrievalTool):
    """Free-text semantic movie search."""

    name = ToolName.SEARCH_MOVIES
    parameters_model = SearchMoviesParameters

    def build_query(self, params: SearchMoviesParameters, context: ToolContext) -> str:
        return params.query or context.utterance


class SearchByGenreTool(RetrievalTool):
    """Search by genre using the genre synonym phrases."""

    name = ToolName.SEARCH_BY_GENRE
    parameters_model = GenreParameters

    def build_query(self, params: GenreParameters, context: ToolContext) -> str:
        return genre_query(params.genre)


class SearchByMoodTool(RetrievalTool):
    """Search by mood using the mood synonym phrases."""

    name = ToolName.SEARCH_BY_MOOD
    parameters_model = MoodParameters

    def build_query(self, params: MoodParameters, context: ToolContext) -> str:
        return mood_query(params.mood)


class FindSimilarMoviesTool(RetrievalTool):
    """Find movies similar to a described or named movie.

    A ``title`` known to the catalog is described the same way catalog
    embeddings are built and excluded from its own results; otherwise the
    ``description`` (or the utterance) is searched verbatim.
    """

    name = ToolName.FIND_SIMILAR_MOVIES
    parameters_model = SimilarMoviesParameters

    def __init__(self, retriever: CandidateRetriever, catalog: MovieCatalog, *, pool_size: int = 50) -> None:
        super().__init__(retriever, pool_size=pool_size)
        self.catalog = catalog

    def build_query(self, params: SimilarMoviesParameters, context: ToolContext) -> str:
        if params.title:
            movie = self.catalog.find_by_title(params.title)
            if movie is not None:
                return describe_movie(movie)
        return params.description or context.utterance

    def excluded_ids(self, params: SimilarMoviesParameters) -> set[int]:
        if not params.title:
            return set()
        movie = self.catalog.find_by_title(params.title)
        return {movie.id} if movie is not None else set()


def build_movie_tools(
    retriever: CandidateRetriever,
    catalog: MovieCatalog,
    *,
    pool_size: int = 50,
) -> dict[ToolName, Tool]:
    return {
        ToolName.SEARCH_MOVIES: SearchMoviesTool(retriever, pool_size=pool_size),
        ToolName.SEARCH_BY_GENRE: SearchByGenreTool(retriever, pool_size=pool_size),
        ToolName.SEARCH_BY_MOOD: SearchByMoodTool(retriever, pool_size=pool_size),
        ToolName.FIND_SIMILAR_MOVIES: FindSimilarMoviesTool(retriever, catalog, pool_size=pool_size),
    }
