from __future__ import annotations

from typing import Any
from uuid import uuid4

from google import genai
from pydantic import JsonValue
from pydantic_ai.direct import model_request
from pydantic_ai.messages import (
    ModelMessage,
    ModelMessagesTypeAdapter,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.settings import ModelSettings

from gemini_tutor.errors import EmptyResponseError, ServiceError
from gemini_tutor.llms import ModelReply, ModelService
from gemini_tutor.log import logger
from gemini_tutor.tools import ToolDescriptor, to_tool_definitions
from gemini_tutor.ui.models import ModelConfig, ToolCallPayload, ToolResultPayload, Turn


def turns_to_messages(turns: list[Turn], system_instruction: str | None = None) -> list[ModelMessage]:
    messages: list[ModelMessage] = []
    for turn in turns:
        payload = turn.payload
        if isinstance(payload, ToolCallPayload):
            messages.append(
                ModelResponse(
                    parts=[
                        ToolCallPart(
                            tool_name=payload.name,
                            args=dict(payload.arguments),
                            tool_call_id=payload.call_id,
                        )
                    ]
                )
            )
        elif isinstance(payload, ToolResultPayload):
            messages.append(
                ModelRequest(
                    parts=[
                        ToolReturnPart(
                            tool_name=payload.name,
                            content={"result": payload.result},
                            tool_call_id=payload.call_id,
                        )
                    ]
                )
            )
        elif turn.role == "model":
            messages.append(ModelResponse(parts=[TextPart(content=payload.text)]))
        else:
            messages.append(ModelRequest(parts=[UserPromptPart(content=payload.text)]))

    if system_instruction:
        first_request = next((m for m in messages if isinstance(m, ModelRequest)), None)
        if first_request is not None:
            first_request.parts = [SystemPromptPart(content=system_instruction), *first_request.parts]
    return messages


def dump_messages(messages: list[ModelMessage]) -> list[dict[str, Any]]:
    return ModelMessagesTypeAdapter.dump_python(messages, mode="json")


class GeminiModelService(ModelService):
    """Model service backed by a pydantic-ai model for generation and google-genai for embeddings."""

    def __init__(
        self,
        model: Model,
        genai_client: genai.Client | None,
        embedding_model_name: str = "text-embedding-004",
        tool_temperature: float = 0.1,
    ):
        self.model = model
        self.genai_client = genai_client
        self.embedding_model_name = embedding_model_name
        self.tool_temperature = tool_temperature

    @property
    def model_name(self) -> str:
        return self.model.model_name

    async def complete_chat(self, history: list[Turn], new_message: str, config: ModelConfig) -> ModelReply:
        turns = [*history, Turn.user(new_message)]
        model_settings = ModelSettings(
            temperature=config.temperature,
            top_p=config.top_p,
            max_tokens=config.max_output_tokens,
        )
        # Not part of the common settings, providers without it ignore the key
        model_settings["top_k"] = config.top_k  # type: ignore[typeddict-unknown-key]

        raw_request = {
            "model": self.model_name,
            "systemInstruction": config.system_instruction,
            "contents": dump_messages(turns_to_messages(turns)),
            "generationConfig": {
                "temperature": config.temperature,
                "topK": config.top_k,
                "topP": config.top_p,
                "maxOutputTokens": config.max_output_tokens,
            },
        }
        messages = turns_to_messages(turns, config.system_instruction)
        return await self._request(messages, model_settings, ModelRequestParameters(), raw_request)

    async def complete_with_tools(
        self, history: list[Turn], new_message: str, tools: list[ToolDescriptor]
    ) -> ModelReply:
        return await self._request_with_tools([*history, Turn.user(new_message)], tools, self.tool_temperature)

    async def submit_tool_result(
        self,
        history: list[Turn],
        call: ToolCallPayload,
        result: dict[str, JsonValue],
        tools: list[ToolDescriptor],
    ) -> ModelReply:
        # Tools stay attached so the model can chain further calls. No sampling override on this leg.
        return await self._request_with_tools([*history, Turn.tool_result(call, result)], tools)

    async def _request_with_tools(
        self, turns: list[Turn], tools: list[ToolDescriptor], temperature: float | None = None
    ) -> ModelReply:
        messages = turns_to_messages(turns)
        raw_request = {
            "model": self.model_name,
            "contents": dump_messages(messages),
            "tools": [{"functionDeclarations": [tool.model_dump() for tool in tools]}],
        }
        model_settings = None
        if temperature is not None:
            raw_request["generationConfig"] = {"temperature": temperature}
            model_settings = ModelSettings(temperature=temperature)
        parameters = ModelRequestParameters(
            function_tools=to_tool_definitions(tools),
            allow_text_output=True,
        )
        return await self._request(messages, model_settings, parameters, raw_request)

    async def _request(
        self,
        messages: list[ModelMessage],
        model_settings: ModelSettings | None,
        parameters: ModelRequestParameters,
        raw_request: dict[str, Any],
    ) -> ModelReply:
        logger.info(f"Requesting {self.model_name} with {len(messages)} messages")
        logger.debug(f"Request payload: {raw_request}")
        try:
            response = await model_request(
                self.model,
                messages,
                model_settings=model_settings,
                model_request_parameters=parameters,
            )
        except Exception as e:
            logger.exception(e)
            raise ServiceError(f"Gemini API error: {e}", raw_request=raw_request) from e

        raw_response = dump_messages([response])[0]
        logger.debug(f"Response payload: {raw_response}")
        return self._to_reply(response, raw_request, raw_response)

    def _to_reply(self, response: ModelResponse, raw_request: dict[str, Any], raw_response: Any) -> ModelReply:
        for part in response.parts:
            if isinstance(part, ToolCallPart):
                call = ToolCallPayload(
                    name=part.tool_name,
                    arguments=part.args_as_dict(),
                    call_id=part.tool_call_id or f"call_{uuid4().hex}",
                )
                return ModelReply(tool_call=call, raw_request=raw_request, raw_response=raw_response)

        texts = [part.content for part in response.parts if isinstance(part, TextPart) and part.content]
        if not texts:
            raise EmptyResponseError("Empty response from model.", raw_request=raw_request, raw_response=raw_response)
        return ModelReply(text="".join(texts), raw_request=raw_request, raw_response=raw_response)

    async def embed(self, text: str) -> list[float]:
        if self.genai_client is None:
            raise ServiceError("No embedding client configured")

        logger.info(f"Embedding {len(text)} characters with {self.embedding_model_name}")
        try:
            response = await self.genai_client.aio.models.embed_content(
                model=self.embedding_model_name,
                contents=text,
            )
        except Exception as e:
            logger.exception(e)
            raise ServiceError(f"Gemini API error: {e}") from e

        if not response.embeddings or not response.embeddings[0].values:
            raise EmptyResponseError("Empty embedding returned by model.")
        values = list(response.embeddings[0].values)
        logger.debug(f"Embedding has {len(values)} dimensions")
        return values
