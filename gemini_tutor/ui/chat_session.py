"""Multi-turn chat with sampling parameters."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from gemini_tutor.errors import EmptyResponseError, ServiceError, StateError, ValidationError
from gemini_tutor.llms import ModelService
from gemini_tutor.log import logger
from gemini_tutor.ui.models import ApiLogEntry, ChatState, ModelConfig, Turn

NO_TEXT_REPLY = "No response text generated."


class ChatSession:
    """Holds the chat history and sends it, in full, with every message."""

    def __init__(self, service: ModelService, state: ChatState | None = None):
        self.service = service
        self.state = state or ChatState()

    def update_config(self, **fields: Any) -> ModelConfig:
        """Validate and apply new sampling parameters.

        Raises:
            ValidationError: If a value is out of range. The old config is kept.
        """
        try:
            config = ModelConfig.model_validate({**self.state.config.model_dump(), **fields})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid model config: {e.errors(include_url=False)}") from e
        self.state.config = config
        return config

    def reset(self) -> ChatState:
        state = self.state
        state.turns = []
        state.config = ModelConfig()
        state.busy = False
        state.error = None
        state.api_logs = []
        state.request_seq += 1
        return state

    async def send(self, text: str) -> ChatState:
        """Send ``text`` with the full history and the current config.

        Raises:
            ValidationError: If the text is empty.
            StateError: If a request is already in flight.
            ServiceError: If the model call fails. History is left untouched.
        """
        state = self.state
        if state.busy:
            raise StateError("A request is already in flight")
        if not text.strip():
            raise ValidationError("Message must not be empty")

        state.request_seq += 1
        seq = state.request_seq
        state.busy = True
        state.error = None
        history = list(state.turns)

        try:
            reply = await self.service.complete_chat(history, text, state.config)
            reply_text, raw_request, raw_response = reply.text or NO_TEXT_REPLY, reply.raw_request, reply.raw_response
        except EmptyResponseError as e:
            logger.warning(f"Chat reply had no text: {e}")
            reply_text, raw_request, raw_response = NO_TEXT_REPLY, e.raw_request, e.raw_response
        except ServiceError as e:
            if seq == state.request_seq:
                state.busy = False
                state.error = str(e)
                state.api_logs.append(
                    ApiLogEntry(
                        turn_index=len(state.api_logs) + 1,
                        request_payload=e.raw_request or {"error": "Request Failed"},
                        response_data={"error": str(e)},
                    )
                )
            raise

        if seq != state.request_seq:
            logger.info(f"Discarding stale chat response of request {seq}")
            return state

        state.turns = [*state.turns, Turn.user(text), Turn.model_text(reply_text)]
        state.api_logs.append(
            ApiLogEntry(
                turn_index=len(state.api_logs) + 1,
                request_payload=raw_request,
                response_data=raw_response,
            )
        )
        state.busy = False
        return state
