import json

import pytest

from claus import (
    Conversation,
    ConversationHistory,
    MissingField,
    PrematureStop,
    Role,
    StopReason,
    StreamDecoder,
    TextBlock,
    Tool,
    ToolResultBlock,
    UpstreamError,
)


def _messages(request):
    return json.loads(request.body)["messages"]


def test_user_message_builds_request(api):
    conversation = Conversation(api)

    request = conversation.user_message("Hello, world!")

    assert _messages(request) == [{"role": "user", "content": [{"type": "text", "text": "Hello, world!"}]}]
    assert conversation.message_count == 1


def test_handle_response_appends_assistant_turn(api, text_response):
    conversation = Conversation(api)
    conversation.user_message("Hello")

    action = conversation.handle_response(json.dumps(text_response))

    assert action.text == "Hi! My name is Claude."
    assert action.stop_reason == StopReason.END_TURN
    assert not action.wants_tools
    assert conversation.message_count == 2
    assert conversation.history.last.role is Role.ASSISTANT

    follow_up = _messages(conversation.user_message("And yours?"))
    assert [m["role"] for m in follow_up] == ["user", "assistant", "user"]


def test_history_values_handed_out_never_change(api, text_response):
    conversation = Conversation(api)
    conversation.user_message("Hello")
    snapshot = conversation.history

    conversation.handle_response(json.dumps(text_response))

    assert len(snapshot) == 1
    assert len(conversation.history) == 2


def test_branching_from_shared_history(api, text_response):
    first = Conversation(api, system="Be brief.")
    first.user_message("Hello")
    first.handle_response(json.dumps(text_response))

    second = Conversation(api, history=first.history, system="Be brief.")
    left = _messages(first.user_message("Tell me a joke"))
    right = _messages(second.user_message("Tell me a fact"))

    assert left[:2] == right[:2]
    assert left[2]["content"][0]["text"] == "Tell me a joke"
    assert right[2]["content"][0]["text"] == "Tell me a fact"
    assert first.history.shares_prefix_with(second.history) == 2


def test_tool_round_trip(api, tool_response, make_response):
    weather = Tool("get_weather", "Get the weather", {"type": "object", "properties": {}})
    conversation = Conversation(api, tools=[weather])
    body = json.loads(conversation.user_message("Weather in SF?").body)
    assert body["tools"][0]["name"] == "get_weather"

    action = conversation.handle_response(json.dumps(tool_response))
    assert action.wants_tools
    call = action.tool_uses[0]

    request = conversation.tool_results([ToolResultBlock(call.id, "15 degrees")])
    last = _messages(request)[-1]
    assert last == {
        "role": "user",
        "content": [{"type": "tool_result", "tool_use_id": call.id, "content": "15 degrees"}],
    }

    conversation.handle_response(json.dumps(make_response([{"type": "text", "text": "It is 15 degrees."}])))
    assert conversation.message_count == 4


def test_tool_results_requires_results(api):
    with pytest.raises(ValueError):
        Conversation(api).tool_results([])


def test_decode_error_leaves_history_unchanged(api, text_response):
    conversation = Conversation(api)
    conversation.user_message("Hello")
    broken = dict(text_response)
    del broken["content"]

    with pytest.raises(MissingField):
        conversation.handle_response(json.dumps(broken))

    assert conversation.message_count == 1
    assert conversation.usage_totals.calls == 0


def test_handle_stream(api, text_response, events_for):
    conversation = Conversation(api, stream=True)
    assert json.loads(conversation.user_message("Hello").body)["stream"] is True

    decoder = StreamDecoder()
    decoder.feed(events_for(text_response))
    action = conversation.handle_stream(decoder)

    assert action.content == (TextBlock("Hi! My name is Claude."),)
    assert conversation.history.last.text == "Hi! My name is Claude."


def test_handle_stream_rejects_unfinished_or_failed_streams(api, text_response, events_for):
    conversation = Conversation(api, stream=True)
    conversation.user_message("Hello")

    unfinished = StreamDecoder()
    unfinished.feed(events_for(text_response)[:3])
    with pytest.raises(PrematureStop):
        conversation.handle_stream(unfinished)

    failed = StreamDecoder()
    with pytest.raises(UpstreamError):
        failed.feed([{"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}])
    with pytest.raises(UpstreamError):
        conversation.handle_stream(failed)

    assert conversation.message_count == 1


def test_usage_totals_and_clear(api, text_response):
    conversation = Conversation(api)
    for _ in range(2):
        conversation.user_message("Hi")
        conversation.handle_response(json.dumps(text_response))

    assert conversation.usage_totals.calls == 2
    assert conversation.usage_totals.input_tokens == 4190
    assert conversation.usage_totals.output_tokens == 1006

    conversation.clear()
    assert conversation.history == ConversationHistory()


def test_repr_masks_key(api):
    assert "sk-ant-api03-..." not in repr(Conversation(api))


def test_empty_reply_is_not_added_to_history(api, make_response):
    conversation = Conversation(api)
    conversation.user_message("Hello")

    action = conversation.handle_response(json.dumps(make_response([])))

    assert action.content == ()
    assert action.stop_reason == StopReason.END_TURN
    assert conversation.message_count == 1
    assert conversation.usage_totals.calls == 1
    follow_up = _messages(conversation.user_message("Still there?"))
    assert all(message["content"] for message in follow_up)
