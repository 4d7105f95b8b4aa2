from __future__ import annotations

import asyncio
import os

os.environ["LOGURU_LEVEL"] = "DEBUG"

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart, ToolCallPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from gemini_tutor.errors import ServiceError
from gemini_tutor.llms import ModelReply, ModelService
from gemini_tutor.llms.gemini import GeminiModelService
from gemini_tutor.ui.models import ToolCallPayload


def text_reply(text: str) -> ModelReply:
    return ModelReply(text=text, raw_request={"contents": []}, raw_response={"parts": [{"text": text}]})


def call_reply(name: str, arguments: dict, call_id: str = "call-1") -> ModelReply:
    return ModelReply(
        tool_call=ToolCallPayload(name=name, arguments=arguments, call_id=call_id),
        raw_request={"contents": []},
        raw_response={"parts": [{"functionCall": {"name": name, "args": arguments}}]},
    )


class FakeModelService(ModelService):
    """Replays scripted replies and records what every call received."""

    def __init__(self, replies: list[ModelReply | ServiceError] | None = None):
        self.replies = list(replies or [])
        self.calls: list[dict] = []
        self.gate: asyncio.Event | None = None
        self.vector = [0.5] * 768

    async def _next(self, **call) -> ModelReply:
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def complete_chat(self, history, new_message, config):
        return await self._next(op="complete_chat", history=list(history), new_message=new_message, config=config)

    async def complete_with_tools(self, history, new_message, tools):
        return await self._next(op="complete_with_tools", history=list(history), new_message=new_message, tools=tools)

    async def submit_tool_result(self, history, call, result, tools):
        return await self._next(
            op="submit_tool_result", history=list(history), call=call, result=result, tools=tools
        )

    async def embed(self, text):
        self.calls.append({"op": "embed", "text": text})
        return list(self.vector)


@pytest.fixture
def fake_service() -> FakeModelService:
    return FakeModelService()


class ScriptedFunction:
    """FunctionModel callback returning queued responses and keeping the messages it saw."""

    def __init__(self, responses: list[ModelResponse | Exception]):
        self.responses = list(responses)
        self.seen: list[list[ModelMessage]] = []
        self.infos: list[AgentInfo] = []

    def respond(self, messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        self.seen.append(list(messages))
        self.infos.append(info)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def genai_client():
    client = MagicMock()
    client.aio.models.embed_content = AsyncMock(
        return_value=SimpleNamespace(embeddings=[SimpleNamespace(values=[0.1] * 768)])
    )
    return client


@pytest.fixture
def service_builder(genai_client):
    def build(*responses: ModelResponse | Exception) -> tuple[GeminiModelService, ScriptedFunction]:
        script = ScriptedFunction(list(responses))
        service = GeminiModelService(
            model=FunctionModel(script.respond),
            genai_client=genai_client,
            embedding_model_name="text-embedding-004",
            tool_temperature=0.1,
        )
        return service, script

    return build


def model_text(text: str) -> ModelResponse:
    return ModelResponse(parts=[TextPart(content=text)])


def model_call(name: str, args: dict, call_id: str = "call-1") -> ModelResponse:
    return ModelResponse(parts=[ToolCallPart(tool_name=name, args=args, tool_call_id=call_id)])
