import pytest

from cinebot.memory.models import UserPreferences
from cinebot.planner.types import SearchPlan, ToolCall, ToolName
from cinebot.retrieval.cascade import CompletionCascade
from cinebot.tools.dispatch import DispatchState, ToolDispatchLoop
from cinebot.tools.movies import build_movie_tools, genre_query, mood_query
from cinebot.tools.router import ToolRouter


def make_loop(retriever, catalog):
    router = ToolRouter(build_movie_tools(retriever, catalog))
    return ToolDispatchLoop(router, CompletionCascade(retriever))


@pytest.mark.asyncio
async def test_no_tools_terminates_without_retrieval(retriever, catalog, embedder):
    loop = make_loop(retriever, catalog)

    outcome = await loop.run(SearchPlan(should_search=False), "hello", UserPreferences())

    assert outcome.items == []
    assert outcome.states == [DispatchState.PLANNING, DispatchState.NO_TOOLS_NEEDED, DispatchState.DONE]
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_one_failing_tool_does_not_stop_the_others(make_retriever, make_embedder, catalog):
    # the mood phrase for "funny" is the only query containing "humorous"
    retriever = make_retriever(make_embedder(fail_on=("humorous",)))
    loop = make_loop(retriever, catalog)
    plan = SearchPlan(
        tool_calls=[
            ToolCall(tool=ToolName.SEARCH_BY_GENRE, parameters={"genre": "comedy"}),
            ToolCall(tool=ToolName.SEARCH_BY_MOOD, parameters={"mood": "funny"}),
        ]
    )

    outcome = await loop.run(plan, "funny comedy", UserPreferences(), k=5)

    genre_result, mood_result = outcome.tool_results
    assert genre_result.success
    assert genre_result.query == "comedy funny hilarious humor laugh"
    assert not mood_result.success
    assert mood_result.error
    assert len(outcome.items) == 5
    assert len({movie.id for movie in outcome.items}) == 5
    assert [movie.id for movie in outcome.items] == [movie.id for movie in genre_result.items][:5]
    assert outcome.final_state is DispatchState.DONE
    assert outcome.states == [
        DispatchState.PLANNING,
        DispatchState.TOOLS_PROPOSED,
        DispatchState.EXECUTING,
        DispatchState.AGGREGATING,
        DispatchState.DONE,
    ]


@pytest.mark.asyncio
async def test_short_tool_results_are_topped_up_by_the_cascade(movies, catalog, make_table_retriever):
    lookup = {movie.id: movie for movie in movies}
    retriever = make_table_retriever(
        {
            genre_query("comedy"): [lookup[1], lookup[2]],
            "popular": [lookup[2], lookup[13], lookup[12], lookup[7], lookup[1]],
        },
        down={mood_query("funny")},
    )
    loop = make_loop(retriever, catalog)
    plan = SearchPlan(
        tool_calls=[
            ToolCall(tool=ToolName.SEARCH_BY_GENRE, parameters={"genre": "comedy"}),
            ToolCall(tool=ToolName.SEARCH_BY_MOOD, parameters={"mood": "funny"}),
        ]
    )

    outcome = await loop.run(plan, "funny comedy", UserPreferences(), k=5)

    genre_result, mood_result = outcome.tool_results
    assert sorted(movie.id for movie in genre_result.items) == [1, 2]
    assert not mood_result.success
    ids = [movie.id for movie in outcome.items]
    assert len(ids) == len(set(ids)) == 5
    assert ids[:2] == [movie.id for movie in genre_result.items]
    assert set(ids[2:]) == {13, 12, 7}
    assert not outcome.degraded
    assert retriever.queries[2:] == ["funny comedy", "popular"]
    assert outcome.final_state is DispatchState.DONE


@pytest.mark.asyncio
async def test_malformed_parameters_are_recorded(retriever, catalog):
    loop = make_loop(retriever, catalog)
    plan = SearchPlan(
        tool_calls=[
            ToolCall(tool=ToolName.SEARCH_BY_GENRE, parameters={"genre": "   "}),
            ToolCall(tool=ToolName.SEARCH_MOVIES, parameters={"query": "space journey"}),
        ]
    )

    outcome = await loop.run(plan, "space journey", UserPreferences(), k=3)

    assert not outcome.tool_results[0].success
    assert "search_by_genre" in outcome.tool_results[0].error
    assert outcome.tool_results[1].success
    assert len(outcome.items) == 3
    assert outcome.items[0].id == 12


@pytest.mark.asyncio
async def test_merge_keeps_plan_order_first_occurrence(retriever, catalog):
    loop = make_loop(retriever, catalog)
    plan = SearchPlan(
        tool_calls=[
            ToolCall(tool=ToolName.SEARCH_BY_GENRE, parameters={"genre": "horror"}),
            ToolCall(tool=ToolName.SEARCH_BY_GENRE, parameters={"genre": "horror"}),
        ]
    )

    outcome = await loop.run(plan, "horror", UserPreferences(), k=5)

    ids = [movie.id for movie in outcome.items]
    assert len(ids) == len(set(ids)) == 5
    assert ids == [movie.id for movie in outcome.tool_results[0].items]


@pytest.mark.asyncio
async def test_find_similar_excludes_reference_movie(retriever, catalog):
    loop = make_loop(retriever, catalog)
    plan = SearchPlan(
        tool_calls=[ToolCall(tool=ToolName.FIND_SIMILAR_MOVIES, parameters={"title": "night terrors"})]
    )

    outcome = await loop.run(plan, "something like Night Terrors", UserPreferences(), k=5)

    result = outcome.tool_results[0]
    assert result.success
    assert result.query.startswith("Title: Night Terrors")
    assert 7 not in [movie.id for movie in result.items]
