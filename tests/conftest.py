import json

import pytest

from claus import Api


@pytest.fixture
def api():
    return Api("sk-ant-api03-...")


def _response(content, stop_reason="end_turn", **extra):
    payload = {
        "id": "msg_013Zva2CMHLNnXjNJJKqJ2EF",
        "type": "message",
        "role": "assistant",
        "model": "claude-sonnet-4-20250514",
        "content": content,
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": {"input_tokens": 2095, "output_tokens": 503},
    }
    payload.update(extra)
    return payload


def _events_for(payload, chunk_size=4):
    """Split a complete response payload into the stream events the service would send."""
    start_message = dict(payload, content=[], stop_reason=None, stop_sequence=None)
    start_message["usage"] = {"input_tokens": payload["usage"]["input_tokens"], "output_tokens": 1}
    events = [{"type": "message_start", "message": start_message}, {"type": "ping"}]
    for index, block in enumerate(payload["content"]):
        if block["type"] == "text":
            events.append({"type": "content_block_start", "index": index, "content_block": {"type": "text", "text": ""}})
            text = block["text"]
            for offset in range(0, len(text), chunk_size):
                events.append({
                    "type": "content_block_delta",
                    "index": index,
                    "delta": {"type": "text_delta", "text": text[offset:offset + chunk_size]},
                })
        elif block["type"] == "tool_use":
            events.append({
                "type": "content_block_start",
                "index": index,
                "content_block": {"type": "tool_use", "id": block["id"], "name": block["name"], "input": {}},
            })
            raw = json.dumps(block["input"])
            for offset in range(0, len(raw), chunk_size):
                events.append({
                    "type": "content_block_delta",
                    "index": index,
                    "delta": {"type": "input_json_delta", "partial_json": raw[offset:offset + chunk_size]},
                })
        else:
            events.append({"type": "content_block_start", "index": index, "content_block": block})
        events.append({"type": "content_block_stop", "index": index})
    events.append({
        "type": "message_delta",
        "delta": {"stop_reason": payload["stop_reason"], "stop_sequence": payload["stop_sequence"]},
        "usage": {"output_tokens": payload["usage"]["output_tokens"]},
    })
    events.append({"type": "message_stop"})
    return events


@pytest.fixture
def make_response():
    return _response


@pytest.fixture
def events_for():
    return _events_for


@pytest.fixture
def text_response():
    return _response([{"type": "text", "text": "Hi! My name is Claude."}])


@pytest.fixture
def tool_response():
    return _response(
        [
            {"type": "text", "text": "Let me check the weather."},
            {
                "type": "tool_use",
                "id": "toolu_01A09q90qw90lq917835lq9",
                "name": "get_weather",
                "input": {"location": "San Francisco, CA", "unit": "celsius"},
            },
        ],
        stop_reason="tool_use",
    )
