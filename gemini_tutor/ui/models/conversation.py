"""Conversation models for the Gemini Tutor UI."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from gemini_tutor.ui.models.config import ModelConfig


class TextPayload(BaseModel):
    """Plain text from the user or the model."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class ToolCallPayload(BaseModel):
    """A model-issued request to call a tool."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool-call"] = "tool-call"
    name: str
    arguments: dict[str, JsonValue] = Field(default_factory=dict)
    call_id: str


class ToolResultPayload(BaseModel):
    """The (mocked) result of a tool call, sent back to the model."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool-result"] = "tool-result"
    name: str
    result: dict[str, JsonValue]
    call_id: str


Payload = Annotated[Union[TextPayload, ToolCallPayload, ToolResultPayload], Field(discriminator="kind")]


class Turn(BaseModel):
    """One role-tagged entry of the conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model", "tool"]
    payload: Payload

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(role="user", payload=TextPayload(text=text))

    @classmethod
    def model_text(cls, text: str) -> Turn:
        return cls(role="model", payload=TextPayload(text=text))

    @classmethod
    def model_call(cls, call: ToolCallPayload) -> Turn:
        return cls(role="model", payload=call)

    @classmethod
    def tool_result(cls, call: ToolCallPayload, result: dict[str, JsonValue]) -> Turn:
        return cls(role="tool", payload=ToolResultPayload(name=call.name, result=result, call_id=call.call_id))

    @property
    def text(self) -> str | None:
        return self.payload.text if isinstance(self.payload, TextPayload) else None


class ApiLogEntry(BaseModel):
    """Raw request/response pair shown in the developer panel."""

    timestamp: datetime = Field(default_factory=datetime.now)
    turn_index: int
    request_payload: dict[str, Any]
    response_data: Any


class InteractionPhase(str, enum.Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    AWAITING_TOOL_RESULT = "awaiting_tool_result"
    AWAITING_USER_REPLY = "awaiting_user_reply"
    FINISHED = "finished"


class FunctionCallingState(BaseModel):
    """State container of the function-calling loop."""

    phase: InteractionPhase = InteractionPhase.IDLE
    turns: list[Turn] = Field(default_factory=list)
    in_flight: Turn | None = None
    pending_call: ToolCallPayload | None = None
    mock_result_json: str = ""
    tool_config_json: str = ""
    error: str | None = None
    request_seq: int = 0
    api_logs: list[ApiLogEntry] = Field(default_factory=list)


class ChatState(BaseModel):
    """State container of the multi-turn chat demo."""

    turns: list[Turn] = Field(default_factory=list)
    config: ModelConfig = Field(default_factory=ModelConfig)
    busy: bool = False
    error: str | None = None
    request_seq: int = 0
    api_logs: list[ApiLogEntry] = Field(default_factory=list)
