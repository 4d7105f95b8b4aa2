"""Turns conversation state into Gradio chatbot messages."""

import json
from typing import Any, Dict, List, Optional

from gemini_tutor.ui.models import ToolCallPayload, ToolResultPayload, Turn


def _code_block(data: Any) -> str:
    return f"```json\n{json.dumps(data, indent=2)}\n```"


def turn_to_message(turn: Turn) -> Dict[str, Any]:
    """Convert a turn into a ``type="messages"`` chatbot entry.

    Args:
        turn: The turn to convert.

    Returns:
        A message dict with ``role``, ``content`` and, for tool traffic, ``metadata``.
    """
    payload = turn.payload
    if isinstance(payload, ToolCallPayload):
        return {
            "role": "assistant",
            "content": _code_block(payload.arguments),
            "metadata": {"title": f"🛠️ Function call: {payload.name}"},
        }
    if isinstance(payload, ToolResultPayload):
        return {
            "role": "user",
            "content": _code_block({"result": payload.result}),
            "metadata": {"title": f"📦 Tool result: {payload.name}"},
        }
    role = "assistant" if turn.role == "model" else "user"
    return {"role": role, "content": payload.text}


def to_chat_messages(turns: List[Turn], in_flight: Optional[Turn] = None) -> List[Dict[str, Any]]:
    """Convert the committed turns, plus the one awaiting a reply, into chatbot messages."""
    messages = [turn_to_message(turn) for turn in turns]
    if in_flight is not None:
        messages.append(turn_to_message(in_flight))
    return messages
