import pytest

from cinebot.core.errors import MalformedToolParameters
from cinebot.memory.models import UserPreferences
from cinebot.planner.types import ToolCall, ToolName
from cinebot.tools.base import ToolContext
from cinebot.tools.movies import (
    RetrievalTool,
    SearchByGenreTool,
    SearchMoviesParameters,
    build_movie_tools,
    genre_query,
    mood_query,
)
from cinebot.tools.router import ToolRouter


def test_genre_and_mood_phrase_tables():
    assert genre_query("Comedy") == "comedy funny hilarious humor laugh"
    assert genre_query("sci-fi") == "science fiction sci-fi futuristic space"
    assert genre_query("noir") == "noir movies"
    assert mood_query("relaxing") == "calm peaceful drama relaxing easy watching"
    assert mood_query("nostalgic") == "nostalgic mood"


def test_genre_tool_rejects_missing_genre(retriever):
    with pytest.raises(MalformedToolParameters):
        SearchByGenreTool(retriever).validate({})


@pytest.mark.asyncio
async def test_search_movies_falls_back_to_utterance(retriever, catalog, embedder):
    tools = build_movie_tools(retriever, catalog)
    context = ToolContext(utterance="desert map adventure", parameters={}, k=2)

    result = await tools[ToolName.SEARCH_MOVIES].run(context)

    assert result.success
    assert result.query == "desert map adventure"
    assert embedder.calls == ["desert map adventure"]
    assert len(result.items) == 2


@pytest.mark.asyncio
async def test_tool_results_respect_preference_filters(retriever, catalog):
    tools = build_movie_tools(retriever, catalog)
    prefs = UserPreferences(language_preference="fr")
    context = ToolContext(utterance="comedy", parameters={"genre": "comedy"}, preferences=prefs)

    result = await tools[ToolName.SEARCH_BY_GENRE].run(context)

    assert [movie.id for movie in result.items] == [6]


@pytest.mark.asyncio
async def test_router_isolates_exceptions(retriever, catalog):
    class ExplodingTool(SearchByGenreTool):
        async def run(self, context):
            raise RuntimeError("boom")

    router = ToolRouter({ToolName.SEARCH_BY_GENRE: ExplodingTool(retriever)})
    call = ToolCall(tool=ToolName.SEARCH_BY_GENRE, parameters={"genre": "comedy"})

    result = await router.dispatch(call, ToolContext(utterance="x", parameters=call.parameters))

    assert result.success is False
    assert result.error == "boom"


@pytest.mark.asyncio
async def test_router_reports_unregistered_tool(retriever):
    router = ToolRouter({})
    call = ToolCall(tool=ToolName.SEARCH_BY_MOOD, parameters={"mood": "funny"})

    result = await router.dispatch(call, ToolContext(utterance="x", parameters=call.parameters))

    assert result.success is False
    assert result.error == "tool not available"


def test_retrieval_tool_requires_a_query_builder(retriever):
    class Unfinished(RetrievalTool):
        name = ToolName.SEARCH_MOVIES
        parameters_model = SearchMoviesParameters

    with pytest.raises(TypeError):
        Unfinished(retriever)
