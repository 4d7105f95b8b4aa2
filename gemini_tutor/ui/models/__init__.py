from gemini_tutor.ui.models.config import DEFAULT_SYSTEM_INSTRUCTION, ModelConfig
from gemini_tutor.ui.models.conversation import (
    ApiLogEntry,
    ChatState,
    FunctionCallingState,
    InteractionPhase,
    TextPayload,
    ToolCallPayload,
    ToolResultPayload,
    Turn,
)

__all__ = [
    "DEFAULT_SYSTEM_INSTRUCTION",
    "ApiLogEntry",
    "ChatState",
    "FunctionCallingState",
    "InteractionPhase",
    "ModelConfig",
    "TextPayload",
    "ToolCallPayload",
    "ToolResultPayload",
    "Turn",
]
