from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, JsonValue, model_validator

from gemini_tutor.tools import ToolDescriptor
from gemini_tutor.ui.models import ModelConfig, ToolCallPayload, Turn


class ModelReply(BaseModel):
    """One model response: either text or a single tool call, plus the raw exchange."""

    text: str | None = None
    tool_call: ToolCallPayload | None = None
    raw_request: dict[str, Any] = {}
    raw_response: Any = None

    @model_validator(mode="after")
    def _exactly_one(self) -> ModelReply:
        if (self.text is None) == (self.tool_call is None):
            raise ValueError("A reply carries exactly one of text or tool_call")
        return self


class ModelService(ABC):
    """Stateless contract with the hosted model. Every call carries the full history."""

    @abstractmethod
    async def complete_chat(self, history: list[Turn], new_message: str, config: ModelConfig) -> ModelReply:
        pass

    @abstractmethod
    async def complete_with_tools(
        self, history: list[Turn], new_message: str, tools: list[ToolDescriptor]
    ) -> ModelReply:
        pass

    @abstractmethod
    async def submit_tool_result(
        self,
        history: list[Turn],
        call: ToolCallPayload,
        result: dict[str, JsonValue],
        tools: list[ToolDescriptor],
    ) -> ModelReply:
        pass

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        pass
