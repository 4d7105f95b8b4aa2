"""Text to vector demo."""

from __future__ import annotations

import math

from pydantic import BaseModel

from gemini_tutor.errors import ValidationError
from gemini_tutor.llms import ModelService


class VectorSummary(BaseModel):
    dimensions: int
    preview: list[float]
    min: float
    max: float
    norm: float


async def embed(service: ModelService, text: str) -> list[float]:
    """Embed ``text`` in a single request, no chunking and no retries."""
    if not text.strip():
        raise ValidationError("Text must not be empty")
    return await service.embed(text)


def summarize_vector(vector: list[float], preview: int = 64) -> VectorSummary:
    if not vector:
        return VectorSummary(dimensions=0, preview=[], min=0.0, max=0.0, norm=0.0)
    return VectorSummary(
        dimensions=len(vector),
        preview=vector[:preview],
        min=min(vector),
        max=max(vector),
        norm=math.sqrt(sum(value * value for value in vector)),
    )
