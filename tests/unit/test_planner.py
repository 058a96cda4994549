import pytest

from cinebot.memory.models import ConversationState
from cinebot.planner.llm import LLMPlanner, parse_plan
from cinebot.planner.simple import RuleBasedPlanner
from cinebot.planner.types import PlannerContext, SearchPlan, SearchStrategy, ToolName


def context(message, state=None, language="en"):
    return PlannerContext(utterance=message, state=state or ConversationState(), language=language)


@pytest.mark.asyncio
async def test_planner_searches_for_genre_request():
    plan = await RuleBasedPlanner().plan(context("Recommend horror movies"))

    assert plan.should_search is True
    assert plan.search_strategy == SearchStrategy.COMPOSED_QUERY.value
    assert plan.tool_calls == []


@pytest.mark.asyncio
async def test_planner_proposes_similarity_tool_with_title():
    plan = await RuleBasedPlanner().plan(context('Something like "Night Terrors" but a comedy'))

    tools = [call.tool for call in plan.tool_calls]
    assert tools == [ToolName.FIND_SIMILAR_MOVIES, ToolName.SEARCH_BY_GENRE]
    assert plan.tool_calls[0].parameters["title"] == "Night Terrors"
    assert plan.tool_calls[1].parameters == {"genre": "comedy"}


@pytest.mark.asyncio
async def test_planner_takes_reference_after_russian_phrase():
    plan = await RuleBasedPlanner().plan(context("Посоветуй что-то похожее на Брат"))

    assert plan.tool_calls[0].tool is ToolName.FIND_SIMILAR_MOVIES
    assert plan.tool_calls[0].parameters["title"] == "Брат"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    ["show me something like it", "something like this one!", "movies like that", "что-то похожее на это", "films like X"],
)
async def test_similarity_without_a_usable_reference_has_no_title(message):
    plan = await RuleBasedPlanner().plan(context(message))

    call = plan.tool_calls[0]
    assert call.tool is ToolName.FIND_SIMILAR_MOVIES
    assert "title" not in call.parameters
    assert call.parameters["description"] == message


@pytest.mark.asyncio
async def test_small_talk_asks_for_clarification():
    plan = await RuleBasedPlanner().plan(context("hello there"))

    assert plan.should_search is False
    assert plan.needs_clarification is True
    assert len(plan.clarification_questions) == 2


@pytest.mark.asyncio
async def test_follow_up_uses_existing_preferences():
    state = ConversationState()
    state.preferences.genres.add("comedy")

    plan = await RuleBasedPlanner().plan(context("anything else?", state))

    assert plan.should_search is True


@pytest.mark.asyncio
async def test_clarification_questions_follow_language():
    plan = await RuleBasedPlanner().plan(context("спасибо", language="ru"))

    assert plan.clarification_questions[0].startswith("Какие жанры")


def test_parse_plan_accepts_camel_case():
    plan = parse_plan(
        'Sure! {"needsClarification": false, "shouldSearch": true, '
        '"toolCalls": [{"tool": "search_by_mood", "parameters": {"mood": "funny"}}]}'
    )

    assert plan.should_search
    assert plan.tool_calls[0].tool is ToolName.SEARCH_BY_MOOD


@pytest.mark.asyncio
async def test_llm_planner_falls_back_on_garbage(make_completion):
    planner = LLMPlanner(make_completion(replies={"You plan movie searches": "no json here"}))

    plan = await planner.plan(context("Recommend something"))

    assert plan == SearchPlan.conservative_default("planner output malformed")
    assert plan.needs_clarification and not plan.should_search
    assert len(plan.clarification_questions) == 1


@pytest.mark.asyncio
async def test_llm_planner_falls_back_on_unknown_tool(make_completion):
    reply = '{"shouldSearch": true, "toolCalls": [{"tool": "delete_movies", "parameters": {}}]}'
    planner = LLMPlanner(make_completion(replies={"You plan movie searches": reply}))

    plan = await planner.plan(context("Recommend something"))

    assert plan.should_search is False


@pytest.mark.asyncio
async def test_llm_planner_falls_back_on_outage(make_completion):
    plan = await LLMPlanner(make_completion(fail=True)).plan(context("Recommend something"))

    assert plan.needs_clarification is True
