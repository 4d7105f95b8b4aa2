"""Chat & config page for the Gemini Tutor UI."""

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import gradio as gr

from gemini_tutor.errors import ServiceError, TutorError
from gemini_tutor.llms import ModelService
from gemini_tutor.llms.models import get_model_service
from gemini_tutor.log import logger
from gemini_tutor.ui.chat_session import ChatSession
from gemini_tutor.ui.message_processor import to_chat_messages
from gemini_tutor.ui.models import DEFAULT_SYSTEM_INSTRUCTION, ChatState, ModelConfig, Turn


def render_chat(
    state: ChatState, pending: Optional[str] = None
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Render the chat state.

    Args:
        state: The chat state.
        pending: A message that was sent but not answered yet.

    Returns:
        A tuple of (chatbot_messages, api_logs).
    """
    messages = to_chat_messages(state.turns, Turn.user(pending) if pending else None)
    if state.error and not pending:
        messages.append({"role": "assistant", "content": f"Error: {state.error}"})
    logs = [entry.model_dump(mode="json") for entry in state.api_logs]
    return messages, logs


def _service() -> ModelService:
    try:
        return get_model_service()
    except TutorError as e:
        raise gr.Error(str(e))


async def send_message(
    message: str,
    state: Optional[ChatState],
    temperature: float = 0.7,
    top_k: int = 40,
    top_p: float = 0.95,
    max_output_tokens: int = 1000,
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
) -> AsyncIterator[Tuple[List[Dict[str, Any]], List[Dict[str, Any]], str, ChatState]]:
    """Send a chat message with the current sampling parameters.

    A failed model call is reported as a warning, and the error stays visible
    in the chat and in the API log.

    Args:
        message: The message to send.
        state: The chat state.
        temperature: The temperature parameter.
        top_k: The top-K parameter.
        top_p: The top-P parameter.
        max_output_tokens: The max output tokens parameter.
        system_instruction: The system instruction.

    Yields:
        Tuples of (chatbot_messages, api_logs, cleared_input, state).
    """
    state = state or ChatState()
    session = ChatSession(_service(), state)
    try:
        session.update_config(
            temperature=temperature,
            top_k=int(top_k),
            top_p=top_p,
            max_output_tokens=int(max_output_tokens),
            system_instruction=system_instruction,
        )
    except TutorError as e:
        raise gr.Error(str(e))

    task = asyncio.ensure_future(session.send(message))
    await asyncio.sleep(0)
    if not task.done():
        yield *render_chat(state, pending=message), "", state

    try:
        await task
    except ServiceError as e:
        gr.Warning(f"Failed to send message: {str(e)}")
    except TutorError as e:
        logger.exception(e)
        raise gr.Error(f"Failed to send message: {str(e)}")

    yield *render_chat(state), "", state


def clear_chat(state: Optional[ChatState]) -> Tuple[Any, ...]:
    """Reset history, logs and sampling parameters.

    Returns:
        A tuple of (chatbot_messages, api_logs, temperature, top_k, top_p, max_output_tokens,
        system_instruction, state).
    """
    state = state or ChatState()
    ChatSession(_service(), state).reset()
    config = state.config
    return (
        *render_chat(state),
        config.temperature,
        config.top_k,
        config.top_p,
        config.max_output_tokens,
        config.system_instruction,
        state,
    )


def create_chat_page() -> gr.Blocks:
    """Create the chat page.

    Returns:
        A Gradio Blocks component for the chat page.
    """
    defaults = ModelConfig()

    with gr.Blocks() as chat_page:
        gr.Markdown("# Chat & Config")
        gr.Markdown("Every request carries the full history: the API itself is stateless.")

        state = gr.State(ChatState())

        with gr.Row():
            with gr.Column(scale=3):
                chatbot = gr.Chatbot(
                    height=500,
                    show_copy_button=True,
                    render_markdown=True,
                    type="messages",
                )

                with gr.Row():
                    with gr.Column(scale=8):
                        msg = gr.Textbox(
                            placeholder="Type a message...",
                            show_label=False,
                            container=False,
                        )
                    with gr.Column(scale=1):
                        submit_btn = gr.Button("Send", variant="primary")
                        clear_btn = gr.Button("Reset")

            with gr.Column(scale=2):
                with gr.Accordion("Model Settings", open=True):
                    system_instruction = gr.Textbox(
                        value=defaults.system_instruction,
                        label="System Instruction",
                        lines=3,
                    )
                    temperature = gr.Slider(
                        minimum=0.0,
                        maximum=2.0,
                        value=defaults.temperature,
                        step=0.1,
                        label="Temperature",
                    )
                    top_k = gr.Slider(minimum=1, maximum=100, value=defaults.top_k, step=1, label="Top K")
                    top_p = gr.Slider(minimum=0.0, maximum=1.0, value=defaults.top_p, step=0.05, label="Top P")
                    max_output_tokens = gr.Number(
                        value=defaults.max_output_tokens,
                        label="Max Output Tokens",
                        precision=0,
                        minimum=1,
                    )

                with gr.Accordion("API Log", open=True):
                    api_logs = gr.JSON(label="Request / Response")

        send_inputs = [msg, state, temperature, top_k, top_p, max_output_tokens, system_instruction]
        send_outputs = [chatbot, api_logs, msg, state]

        submit_btn.click(fn=send_message, inputs=send_inputs, outputs=send_outputs)
        msg.submit(fn=send_message, inputs=send_inputs, outputs=send_outputs)

        clear_btn.click(
            fn=clear_chat,
            inputs=[state],
            outputs=[chatbot, api_logs, temperature, top_k, top_p, max_output_tokens, system_instruction, state],
        )

    return chat_page
