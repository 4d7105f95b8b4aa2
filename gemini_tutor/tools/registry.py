"""Editable registry of the function declarations offered to the model."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_ai.tools import ToolDefinition

from gemini_tutor.errors import SchemaError


class ToolDescriptor(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    parameters: dict[str, Any]

    @model_validator(mode="before")
    @classmethod
    def _lift_description(cls, data: Any) -> Any:
        # Gemini-style declarations keep the description inside the parameter schema
        if isinstance(data, dict) and not data.get("description"):
            parameters = data.get("parameters")
            if isinstance(parameters, dict) and isinstance(parameters.get("description"), str):
                return {**data, "description": parameters["description"]}
        return data


_tools_adapter = TypeAdapter(list[ToolDescriptor])


GPU_PRICE_TOOL = ToolDescriptor(
    name="getNvidiaGpuPrice",
    description="Get the current market price and availability of an Nvidia GPU.",
    parameters={
        "type": "object",
        "properties": {
            "modelName": {
                "type": "string",
                "description": "The model name of the GPU (e.g., RTX 4090, RTX 3060).",
            },
            "currency": {
                "type": "string",
                "description": "The currency to display the price in (e.g., USD, TWD).",
            },
        },
        "required": ["modelName"],
    },
)

SEND_EMAIL_TOOL = ToolDescriptor(
    name="sendEmail",
    description="Send an email to a specific recipient.",
    parameters={
        "type": "object",
        "properties": {
            "recipient": {"type": "string", "description": "The email address of the recipient."},
            "subject": {"type": "string", "description": "The subject line of the email."},
            "body": {"type": "string", "description": "The body content of the email."},
        },
        "required": ["recipient", "subject", "body"],
    },
)


def default_tools() -> list[ToolDescriptor]:
    return [GPU_PRICE_TOOL, SEND_EMAIL_TOOL]


def default_tools_json() -> str:
    return dump_tools(default_tools())


def dump_tools(tools: list[ToolDescriptor]) -> str:
    return json.dumps([tool.model_dump() for tool in tools], indent=2)


def parse(raw_text: str) -> list[ToolDescriptor]:
    """Parse user-edited tool definitions.

    Only the structure is checked: a JSON list of objects, each with a
    ``name`` and a ``parameters`` schema, with no duplicate names. Whether the
    schemas make sense is left to the model service.

    Raises:
        SchemaError: If the text is not a well-formed list of tool descriptors.
    """
    try:
        tools = _tools_adapter.validate_json(raw_text)
    except PydanticValidationError as e:
        raise SchemaError(f"Invalid tool definition JSON: {e.errors(include_url=False)}") from e

    seen: set[str] = set()
    for tool in tools:
        if tool.name in seen:
            raise SchemaError(f"Duplicate tool name: {tool.name}")
        seen.add(tool.name)
    return tools


def to_tool_definitions(tools: list[ToolDescriptor]) -> list[ToolDefinition]:
    return [
        ToolDefinition(
            name=tool.name,
            description=tool.description,
            parameters_json_schema=tool.parameters,
        )
        for tool in tools
    ]
