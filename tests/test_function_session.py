import asyncio
import json

import pytest
from inline_snapshot import snapshot

from gemini_tutor.errors import EmptyResponseError, SchemaError, ServiceError, StateError, ValidationError
from gemini_tutor.tools import default_tools_json
from gemini_tutor.ui.function_session import DEFAULT_PROMPT, FunctionCallingSession
from gemini_tutor.ui.models import InteractionPhase, TextPayload, ToolResultPayload, Turn
from tests.conftest import FakeModelService, call_reply, text_reply

GPU_CALL = ("getNvidiaGpuPrice", {"modelName": "RTX 5090"})


def test_new_session_is_idle(fake_service):
    session = FunctionCallingSession(fake_service)
    assert session.phase is InteractionPhase.IDLE
    assert session.state.turns == []
    assert session.state.pending_call is None
    assert session.state.tool_config_json == default_tools_json()


async def test_gpu_price_loop_with_success_preset(fake_service):
    fake_service.replies = [
        call_reply(*GPU_CALL),
        text_reply("The RTX 5090 costs $1599."),
    ]
    session = FunctionCallingSession(fake_service)

    await session.start(DEFAULT_PROMPT)
    assert session.phase is InteractionPhase.AWAITING_TOOL_RESULT
    assert session.state.pending_call.name == "getNvidiaGpuPrice"
    assert json.loads(session.state.mock_result_json) == snapshot(
        {
            "model": "RTX 5090",
            "price": 1599,
            "currency": "USD",
            "availability": "In Stock",
            "source": "MockDatabase_v2",
        }
    )

    session.apply_preset("success")
    await session.submit_tool_result()

    tool_turn = session.state.turns[2]
    assert tool_turn.role == "tool"
    assert tool_turn.payload == ToolResultPayload(
        name="getNvidiaGpuPrice",
        result={
            "model": "RTX 5090",
            "price": 1599,
            "currency": "USD",
            "availability": "In Stock",
            "source": "MockDatabase_v2",
        },
        call_id="call-1",
    )
    assert session.phase is InteractionPhase.AWAITING_USER_REPLY
    assert session.state.pending_call is None
    assert session.state.turns[-1] == Turn.model_text("The RTX 5090 costs $1599.")


async def test_every_request_carries_exactly_the_committed_history(fake_service):
    fake_service.replies = [
        call_reply(*GPU_CALL),
        call_reply("sendEmail", {"recipient": "boss@company.com", "subject": "GPU", "body": "Approve?"}, "call-2"),
        text_reply("Email sent."),
        text_reply("You're welcome."),
    ]
    session = FunctionCallingSession(fake_service)

    await session.start(DEFAULT_PROMPT)
    await session.submit_tool_result()
    await session.submit_tool_result()
    await session.send_reply("Thanks!")

    lengths = [len(call["history"]) for call in fake_service.calls]
    assert lengths == [0, 2, 4, 6]
    assert len(session.state.turns) == 8

    for call, turns_before in zip(fake_service.calls, (0, 2, 4, 6)):
        assert call["history"] == session.state.turns[:turns_before]

    # The new turn of each request is the one committed right after that history
    assert fake_service.calls[0]["new_message"] == DEFAULT_PROMPT
    assert fake_service.calls[1]["call"] == session.state.turns[1].payload
    assert fake_service.calls[3]["new_message"] == "Thanks!"
    assert session.state.turns[6] == Turn.user("Thanks!")
    assert [log.turn_index for log in session.state.api_logs] == [1, 2, 3, 4]


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '"text"', "{broken"])
async def test_invalid_tool_result_changes_nothing(fake_service, raw):
    fake_service.replies = [call_reply(*GPU_CALL)]
    session = FunctionCallingSession(fake_service)
    await session.start(DEFAULT_PROMPT)
    before = session.state.model_copy(deep=True)

    with pytest.raises(ValidationError):
        await session.submit_tool_result(raw)

    assert session.state == before
    assert len(fake_service.calls) == 1


async def test_edited_result_is_sent(fake_service):
    fake_service.replies = [call_reply(*GPU_CALL), text_reply("Out of stock, sorry.")]
    session = FunctionCallingSession(fake_service)
    await session.start(DEFAULT_PROMPT)

    session.apply_preset("failure")
    await session.submit_tool_result()

    assert fake_service.calls[1]["result"] == {
        "model": "RTX 5090",
        "availability": "Out of Stock",
        "restockDate": "2025-01-01",
    }


async def test_empty_response_finishes_without_touching_history(fake_service):
    fake_service.replies = [text_reply("Let me think."), EmptyResponseError("Empty response from model.")]
    session = FunctionCallingSession(fake_service)
    await session.start("Hello")
    turns_before = list(session.state.turns)

    await session.send_reply("Go on")

    assert session.phase is InteractionPhase.FINISHED
    assert session.state.error == "Empty response from model."
    assert session.state.turns == turns_before
    assert session.state.in_flight is None


async def test_service_fault_is_terminal(fake_service):
    fake_service.replies = [ServiceError("Gemini API error: 503")]
    session = FunctionCallingSession(fake_service)

    await session.start("Hello")

    assert session.phase is InteractionPhase.FINISHED
    assert "503" in session.state.error
    assert session.state.turns == []
    assert session.state.api_logs[-1].response_data == {"error": "Gemini API error: 503"}

    with pytest.raises(StateError):
        await session.send_reply("again")


async def test_actions_outside_their_phase_are_refused(fake_service):
    session = FunctionCallingSession(fake_service)

    with pytest.raises(StateError):
        await session.send_reply("hi")
    with pytest.raises(StateError):
        await session.submit_tool_result("{}")
    with pytest.raises(StateError):
        session.apply_preset("success")

    fake_service.replies = [text_reply("Hi!")]
    await session.start("Hello")
    with pytest.raises(StateError):
        await session.start("Hello again")
    assert len(fake_service.calls) == 1


async def test_empty_prompt_is_rejected(fake_service):
    session = FunctionCallingSession(fake_service)
    with pytest.raises(ValidationError):
        await session.start("   ")
    assert session.phase is InteractionPhase.IDLE
    assert fake_service.calls == []


async def test_invalid_tool_definitions_are_not_sent(fake_service):
    session = FunctionCallingSession(fake_service)
    session.edit_tools('[{"name": "broken"}]')

    with pytest.raises(SchemaError):
        await session.start("Hello")

    assert session.phase is InteractionPhase.IDLE
    assert fake_service.calls == []


async def test_edited_tools_are_sent(fake_service):
    fake_service.replies = [text_reply("No tools needed.")]
    session = FunctionCallingSession(fake_service)
    session.edit_tools('[{"name": "getWeather", "parameters": {"type": "object", "properties": {}}}]')

    await session.start("Weather?")

    assert [tool.name for tool in fake_service.calls[0]["tools"]] == ["getWeather"]


async def test_unknown_tool_gets_generic_mock(fake_service):
    fake_service.replies = [call_reply("lookupWeather", {"city": "Taipei"})]
    session = FunctionCallingSession(fake_service)

    await session.start("Weather in Taipei?")

    assert json.loads(session.state.mock_result_json) == {
        "info": "Generic mock response. You can edit this JSON manually."
    }
    assert session.apply_preset("error") == session.state.mock_result_json


async def _drive_to(phase: InteractionPhase) -> FunctionCallingSession:
    service = FakeModelService()
    session = FunctionCallingSession(service)
    if phase is InteractionPhase.AWAITING_TOOL_RESULT:
        service.replies = [call_reply(*GPU_CALL)]
        await session.start("price?")
    elif phase is InteractionPhase.AWAITING_USER_REPLY:
        service.replies = [text_reply("Hi")]
        await session.start("hello")
    elif phase is InteractionPhase.FINISHED:
        service.replies = [ServiceError("boom")]
        await session.start("hello")
    return session


@pytest.mark.parametrize(
    "phase",
    [
        InteractionPhase.IDLE,
        InteractionPhase.AWAITING_TOOL_RESULT,
        InteractionPhase.AWAITING_USER_REPLY,
        InteractionPhase.FINISHED,
    ],
)
async def test_reset_from_any_phase(phase):
    session = await _drive_to(phase)
    assert session.phase is phase

    session.reset()

    assert session.phase is InteractionPhase.IDLE
    assert session.state.turns == []
    assert session.state.pending_call is None
    assert session.state.error is None
    assert session.state.in_flight is None


async def test_reset_while_awaiting_model_discards_the_late_reply(fake_service):
    fake_service.gate = asyncio.Event()
    fake_service.replies = [call_reply(*GPU_CALL)]
    session = FunctionCallingSession(fake_service)

    task = asyncio.create_task(session.start("price?"))
    await asyncio.sleep(0)
    assert session.phase is InteractionPhase.AWAITING_MODEL
    assert session.state.in_flight == Turn.user("price?")

    session.reset()
    fake_service.gate.set()
    await task

    assert session.phase is InteractionPhase.IDLE
    assert session.state.turns == []
    assert session.state.pending_call is None


async def test_in_flight_turn_is_not_committed_before_the_reply(fake_service):
    fake_service.gate = asyncio.Event()
    fake_service.replies = [text_reply("Hi")]
    session = FunctionCallingSession(fake_service)

    task = asyncio.create_task(session.start("hello"))
    await asyncio.sleep(0)
    assert session.state.turns == []
    with pytest.raises(StateError):
        await session.start("again")

    fake_service.gate.set()
    await task
    assert session.state.turns == [Turn.user("hello"), Turn.model_text("Hi")]
    assert isinstance(session.state.turns[0].payload, TextPayload)
    assert isinstance(session.state.turns[1].payload, TextPayload)
