"""Function calling loop page for the Gemini Tutor UI."""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Optional, Tuple

import gradio as gr

from gemini_tutor.errors import TutorError
from gemini_tutor.llms.models import get_model_service
from gemini_tutor.tools import Scenario, default_tools_json
from gemini_tutor.ui.function_session import DEFAULT_PROMPT, FunctionCallingSession
from gemini_tutor.ui.message_processor import to_chat_messages
from gemini_tutor.ui.models import FunctionCallingState, InteractionPhase


PHASE_LABELS = {
    InteractionPhase.IDLE: "Waiting for a prompt",
    InteractionPhase.AWAITING_MODEL: "Waiting for the model...",
    InteractionPhase.AWAITING_TOOL_RESULT: "The model wants to call a function: simulate its result",
    InteractionPhase.AWAITING_USER_REPLY: "The model replied: continue the conversation",
    InteractionPhase.FINISHED: "Finished",
}


def new_state() -> FunctionCallingState:
    return FunctionCallingState(tool_config_json=default_tools_json())


def render_status(state: FunctionCallingState) -> str:
    status = f"**Phase:** {PHASE_LABELS[state.phase]}"
    if state.pending_call is not None:
        status += f"\n\n**Pending call:** `{state.pending_call.name}`"
    if state.error:
        status += f"\n\n⚠️ {state.error}"
    return status


def render_function_state(state: FunctionCallingState) -> Tuple[Any, ...]:
    """Render the loop state.

    Args:
        state: The function calling state.

    Returns:
        A tuple of (chatbot_messages, status, start_group, mock_group, mock_editor, reply_group, api_logs, state).
    """
    return (
        to_chat_messages(state.turns, state.in_flight),
        render_status(state),
        gr.update(visible=state.phase is InteractionPhase.IDLE),
        gr.update(visible=state.phase is InteractionPhase.AWAITING_TOOL_RESULT),
        state.mock_result_json,
        gr.update(visible=state.phase is InteractionPhase.AWAITING_USER_REPLY),
        [entry.model_dump(mode="json") for entry in state.api_logs],
        state,
    )


def _session(state: Optional[FunctionCallingState]) -> FunctionCallingSession:
    try:
        service = get_model_service()
    except TutorError as e:
        raise gr.Error(str(e))
    return FunctionCallingSession(service, state or new_state())


async def _drive(session: FunctionCallingSession, transition: Awaitable[Any]) -> AsyncIterator[Tuple[Any, ...]]:
    """Run a transition, rendering once while the model works and once when it is done."""
    task = asyncio.ensure_future(transition)
    # Let the transition reach the model call before rendering
    await asyncio.sleep(0)
    if not task.done():
        yield render_function_state(session.state)

    try:
        await task
    except TutorError as e:
        raise gr.Error(str(e))
    yield render_function_state(session.state)


async def start_loop(
    prompt: str, tool_config: str, state: Optional[FunctionCallingState]
) -> AsyncIterator[Tuple[Any, ...]]:
    """Send the initial prompt with the edited tool definitions.

    Args:
        prompt: The initial prompt.
        tool_config: The tool definitions as JSON text.
        state: The function calling state.

    Yields:
        The rendered state, see ``render_function_state``.
    """
    session = _session(state)
    session.edit_tools(tool_config)
    async for rendered in _drive(session, session.start(prompt)):
        yield rendered


async def submit_mock_result(
    mock_json: str, tool_config: str, state: Optional[FunctionCallingState]
) -> AsyncIterator[Tuple[Any, ...]]:
    """Send the simulated tool result back to the model.

    Args:
        mock_json: The mocked result as JSON text.
        tool_config: The tool definitions as JSON text.
        state: The function calling state.

    Yields:
        The rendered state, see ``render_function_state``.
    """
    session = _session(state)
    session.edit_tools(tool_config)
    async for rendered in _drive(session, session.submit_tool_result(mock_json)):
        yield rendered


async def send_reply(
    reply: str, tool_config: str, state: Optional[FunctionCallingState]
) -> AsyncIterator[Tuple[Any, ...]]:
    session = _session(state)
    session.edit_tools(tool_config)
    async for rendered in _drive(session, session.send_reply(reply)):
        yield rendered


def apply_preset(scenario: str, state: Optional[FunctionCallingState]) -> str:
    """Fill the mock editor with a canned result for the pending call."""
    try:
        return _session(state).apply_preset(scenario)
    except TutorError as e:
        raise gr.Error(str(e))


def reset_loop(state: Optional[FunctionCallingState]) -> Tuple[Any, ...]:
    session = _session(state)
    session.reset()
    return render_function_state(session.state)


def create_function_page() -> gr.Blocks:
    """Create the function calling page.

    Returns:
        A Gradio Blocks component for the function calling page.
    """
    with gr.Blocks() as function_page:
        gr.Markdown("# Function Calling Loop")

        state = gr.State(new_state())

        with gr.Row():
            with gr.Column(scale=2):
                status = gr.Markdown(render_status(new_state()))

                with gr.Accordion("Tool Definitions", open=False):
                    tool_config = gr.Code(value=default_tools_json(), language="json", label="functionDeclarations")

                with gr.Group(visible=True) as start_group:
                    prompt = gr.Textbox(value=DEFAULT_PROMPT, label="Initial Prompt", lines=3)
                    start_btn = gr.Button("Start", variant="primary")

                with gr.Group(visible=False) as mock_group:
                    gr.Markdown("### Simulated Tool Result")
                    with gr.Row():
                        success_btn = gr.Button("✅ Success", size="sm")
                        failure_btn = gr.Button("⚠️ Failure", size="sm")
                        error_btn = gr.Button("❌ Error", size="sm")
                    mock_editor = gr.Code(language="json", label="Result JSON", interactive=True)
                    submit_btn = gr.Button("Send Result to Model", variant="primary")

                with gr.Group(visible=False) as reply_group:
                    reply = gr.Textbox(placeholder="Reply to the model...", show_label=False)
                    reply_btn = gr.Button("Send Reply", variant="primary")

                reset_btn = gr.Button("Reset")

            with gr.Column(scale=3):
                chatbot = gr.Chatbot(height=500, render_markdown=True, type="messages")
                with gr.Accordion("API Log", open=False):
                    api_logs = gr.JSON(label="Request / Response")

        outputs = [chatbot, status, start_group, mock_group, mock_editor, reply_group, api_logs, state]

        start_btn.click(fn=start_loop, inputs=[prompt, tool_config, state], outputs=outputs)
        submit_btn.click(fn=submit_mock_result, inputs=[mock_editor, tool_config, state], outputs=outputs)
        reply_btn.click(fn=send_reply, inputs=[reply, tool_config, state], outputs=outputs).then(
            fn=lambda: "",  # Clear the reply input
            outputs=[reply],
        )
        reply.submit(fn=send_reply, inputs=[reply, tool_config, state], outputs=outputs).then(
            fn=lambda: "",
            outputs=[reply],
        )

        presets = ((success_btn, Scenario.SUCCESS), (failure_btn, Scenario.FAILURE), (error_btn, Scenario.ERROR))
        for button, scenario in presets:
            button.click(
                fn=lambda current, scenario=scenario: apply_preset(scenario.value, current),
                inputs=[state],
                outputs=[mock_editor],
            )

        reset_btn.click(fn=reset_loop, inputs=[state], outputs=outputs)

    return function_page
