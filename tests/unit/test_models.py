from cinebot.memory.models import (
    MAX_MESSAGE_HISTORY,
    BoundedTagSet,
    ConversationState,
    MessageRole,
    UserPreferences,
)


def test_history_never_exceeds_bound():
    state = ConversationState()
    for index in range(120):
        role = MessageRole.USER if index % 2 == 0 else MessageRole.ASSISTANT
        state.add_message(role, f"turn {index}")
        assert len(state.messages) <= MAX_MESSAGE_HISTORY

    assert state.messages[-1].content == "turn 119"
    assert state.messages[0].content == "turn 70"


def test_add_message_bumps_updated_at():
    state = ConversationState()
    before = state.updated_at
    state.add_message("user", "hello")
    assert state.updated_at >= before


def test_tag_set_is_case_insensitive_and_reinforces():
    tags = BoundedTagSet(3, ["comedy", "drama"])

    assert tags.add("Comedy") is False
    assert tags.to_list() == ["drama", "comedy"]
    assert "COMEDY" in tags
    assert tags.recent(1) == ["comedy"]


def test_tag_set_evicts_least_recently_reinforced():
    tags = BoundedTagSet(3, ["comedy", "drama", "horror"])
    tags.add("comedy")
    tags.add("action")

    assert tags.to_list() == ["horror", "comedy", "action"]
    assert "drama" not in tags


def test_tag_set_ignores_blank_values():
    tags = BoundedTagSet(2)
    assert tags.add("  ") is False
    assert len(tags) == 0
    assert not tags


def test_preferences_round_trip_dict():
    prefs = UserPreferences()
    prefs.genres.extend(["comedy", "romance"])
    prefs.moods.add("funny")
    prefs.desired_runtime = 90
    prefs.avoided_movies.add("Cabin Screams")

    restored = UserPreferences.from_dict(prefs.to_dict())

    assert restored == prefs


def test_state_round_trip_dict():
    state = ConversationState(id="conv-x", language="ru")
    state.add_message(MessageRole.SYSTEM, "prompt")
    state.preferences.genres.add("horror")

    restored = ConversationState.from_dict(state.to_dict())

    assert restored.id == "conv-x"
    assert restored.language == "ru"
    assert restored.messages[0].role is MessageRole.SYSTEM
    assert restored.preferences.genres.to_list() == ["horror"]
