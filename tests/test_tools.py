import json

import pytest
from pydantic import BaseModel, Field, ValidationError

from claus import ToolUseBlock, decode_response
from claus.tools import Tool, parse_tool_input


class WeatherInput(BaseModel):
    location: str = Field(description="The city and state, e.g. San Francisco, CA")
    unit: str = "celsius"


def test_default_schema_is_empty_object():
    tool = Tool("noop", "Does nothing")

    assert tool.to_dict() == {
        "name": "noop",
        "description": "Does nothing",
        "input_schema": {"type": "object", "properties": {}},
    }


def test_from_model_drops_title():
    schema = Tool.from_model("get_weather", "Weather", WeatherInput).input_schema

    assert "title" not in schema
    assert schema["properties"]["location"]["description"] == "The city and state, e.g. San Francisco, CA"


def test_parse_tool_input_from_decoded_tool_use(tool_response):
    call = decode_response(json.dumps(tool_response)).tool_uses()[0]

    args = parse_tool_input(WeatherInput, call.input)

    assert args == WeatherInput(location="San Francisco, CA", unit="celsius")


def test_parse_tool_input_rejects_bad_arguments():
    call = ToolUseBlock("toolu_1", "get_weather", {"unit": "kelvin"})

    with pytest.raises(ValidationError):
        parse_tool_input(WeatherInput, call.input)
