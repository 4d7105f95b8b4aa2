"""Sampling configuration for the chat demo."""

from pydantic import BaseModel, Field

DEFAULT_SYSTEM_INSTRUCTION = "You are a helpful AI assistant explaining technical concepts clearly."


class ModelConfig(BaseModel):
    """Sampling parameters sent with every chat request."""

    temperature: float = Field(0.7, ge=0.0, le=2.0)
    top_k: int = Field(40, ge=1)
    top_p: float = Field(0.95, ge=0.0, le=1.0)
    max_output_tokens: int = Field(1000, ge=1)
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
