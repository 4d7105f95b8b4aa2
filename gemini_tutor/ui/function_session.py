"""Function-calling loop for the Gemini Tutor UI."""

from __future__ import annotations

from collections.abc import Awaitable

from pydantic import JsonValue, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from gemini_tutor import tools as tool_registry
from gemini_tutor.errors import ServiceError, StateError, ValidationError
from gemini_tutor.llms import ModelReply, ModelService
from gemini_tutor.log import logger
from gemini_tutor.tools import Scenario, ToolDescriptor
from gemini_tutor.ui.models import (
    ApiLogEntry,
    FunctionCallingState,
    InteractionPhase,
    Turn,
)

DEFAULT_PROMPT = (
    "Check the price of RTX 5090. If it is over $1000, send an email to boss@company.com asking for approval."
)

_mock_result_adapter = TypeAdapter(dict[str, JsonValue])


class FunctionCallingSession:
    """Drives the tool-calling conversation over a ``FunctionCallingState``.

    Every mutation goes through one of the transition methods. The committed
    turns only ever grow by a new user/tool turn together with the model's
    reply to it, so a failed request leaves them untouched.
    """

    def __init__(self, service: ModelService, state: FunctionCallingState | None = None):
        """Initialize the session.

        Args:
            service: The model service used for every request.
            state: An existing state to continue, or None for a fresh one.
        """
        self.service = service
        self.state = state or FunctionCallingState(tool_config_json=tool_registry.default_tools_json())

    @property
    def phase(self) -> InteractionPhase:
        return self.state.phase

    def reset(self) -> FunctionCallingState:
        """Clear the conversation and go back to idle.

        Tool definitions survive the reset. Any response still in flight is
        discarded when it arrives.
        """
        state = self.state
        state.phase = InteractionPhase.IDLE
        state.turns = []
        state.in_flight = None
        state.pending_call = None
        state.mock_result_json = ""
        state.error = None
        state.api_logs = []
        state.request_seq += 1
        logger.info("Function calling session reset")
        return state

    def edit_tools(self, raw_text: str) -> None:
        self.state.tool_config_json = raw_text

    def edit_mock_result(self, raw_text: str) -> None:
        self.state.mock_result_json = raw_text

    def apply_preset(self, scenario: Scenario | str) -> str:
        """Replace the mock result editor with the canned record for the pending call.

        Returns:
            The new editor text.
        """
        self._require(InteractionPhase.AWAITING_TOOL_RESULT)
        call = self.state.pending_call
        self.state.mock_result_json = tool_registry.mock_result_json(call.name, call.arguments, scenario)
        return self.state.mock_result_json

    async def start(self, prompt: str) -> FunctionCallingState:
        self._require(InteractionPhase.IDLE)
        if not prompt.strip():
            raise ValidationError("Prompt must not be empty")
        tools = self._parse_tools()

        history = list(self.state.turns)
        return await self._run(
            Turn.user(prompt),
            self.service.complete_with_tools(history, prompt, tools),
        )

    async def send_reply(self, text: str) -> FunctionCallingState:
        self._require(InteractionPhase.AWAITING_USER_REPLY)
        if not text.strip():
            raise ValidationError("Reply must not be empty")
        tools = self._parse_tools()

        history = list(self.state.turns)
        return await self._run(
            Turn.user(text),
            self.service.complete_with_tools(history, text, tools),
        )

    async def submit_tool_result(self, raw_json: str | None = None) -> FunctionCallingState:
        """Send the mocked tool result back to the model.

        Args:
            raw_json: The result as JSON text. Defaults to the editor content.

        Raises:
            ValidationError: If the text is not a JSON object. Nothing changes.
        """
        self._require(InteractionPhase.AWAITING_TOOL_RESULT)
        raw_json = self.state.mock_result_json if raw_json is None else raw_json
        try:
            result = _mock_result_adapter.validate_json(raw_json)
        except PydanticValidationError as e:
            raise ValidationError("Invalid JSON: the tool result must be a JSON object") from e
        tools = self._parse_tools()

        self.state.mock_result_json = raw_json

        call = self.state.pending_call
        history = list(self.state.turns)
        self.state.pending_call = None
        return await self._run(
            Turn.tool_result(call, result),
            self.service.submit_tool_result(history, call, result, tools),
        )

    def _require(self, phase: InteractionPhase) -> None:
        if self.state.phase is not phase:
            raise StateError(f"Cannot do that while {self.state.phase.value}, expected {phase.value}")

    def _parse_tools(self) -> list[ToolDescriptor]:
        return tool_registry.parse(self.state.tool_config_json)

    async def _run(self, turn: Turn, request: Awaitable[ModelReply]) -> FunctionCallingState:
        state = self.state
        state.request_seq += 1
        seq = state.request_seq
        state.phase = InteractionPhase.AWAITING_MODEL
        state.in_flight = turn
        state.error = None

        try:
            reply = await request
        except ServiceError as e:
            if seq != state.request_seq:
                logger.info(f"Discarding stale failure of request {seq}")
                return state
            state.phase = InteractionPhase.FINISHED
            state.in_flight = None
            state.error = str(e)
            state.api_logs.append(
                ApiLogEntry(
                    turn_index=len(state.api_logs) + 1,
                    request_payload=e.raw_request or {"error": "Request Failed"},
                    response_data={"error": str(e)},
                )
            )
            return state

        if seq != state.request_seq:
            logger.info(f"Discarding stale response of request {seq}")
            return state

        self._apply_reply(turn, reply)
        return state

    def _apply_reply(self, turn: Turn, reply: ModelReply) -> None:
        state = self.state
        state.api_logs.append(
            ApiLogEntry(
                turn_index=len(state.api_logs) + 1,
                request_payload=reply.raw_request,
                response_data=reply.raw_response,
            )
        )
        state.in_flight = None

        if reply.tool_call is not None:
            call = reply.tool_call
            state.turns = [*state.turns, turn, Turn.model_call(call)]
            state.pending_call = call
            state.mock_result_json = tool_registry.mock_result_json(call.name, call.arguments, Scenario.SUCCESS)
            state.phase = InteractionPhase.AWAITING_TOOL_RESULT
            logger.info(f"Model requested tool {call.name}")
        else:
            state.turns = [*state.turns, turn, Turn.model_text(reply.text)]
            state.pending_call = None
            state.mock_result_json = ""
            state.phase = InteractionPhase.AWAITING_USER_REPLY
