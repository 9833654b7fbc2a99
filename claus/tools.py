"""Tool definitions.

A :class:`Tool` describes a function the model may call: a name, a
description and a JSON schema for its input.  The schema is usually
derived from a pydantic model with :meth:`Tool.from_model`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Type

from pydantic import BaseModel


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_schema: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    @classmethod
    def from_model(cls, name: str, description: str, model: Type[BaseModel]) -> "Tool":
        """Describe a tool whose input is validated by *model*.

        Field descriptions on the model end up in the schema the model
        sees, so they are worth writing.
        """
        schema = model.model_json_schema()
        schema.pop("title", None)
        return cls(name=name, description=description, input_schema=schema)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


def parse_tool_input(model: Type[BaseModel], tool_input: Any) -> BaseModel:
    """Validate a ``tool_use`` block's input against *model*.

    Raises ``pydantic.ValidationError`` when the model's arguments do not
    fit.
    """
    return model.model_validate(tool_input)


__all__ = ["Tool", "parse_tool_input"]
