from __future__ import annotations

from functools import cache

from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from gemini_tutor.config import Config, get_config
from gemini_tutor.errors import ServiceError
from gemini_tutor.llms.gemini import GeminiModelService
from gemini_tutor.log import logger


def init_model_service(config: Config) -> GeminiModelService:
    if not config.api_key:
        raise ServiceError("Gemini API key is not configured, set GEMINI_API_KEY or GEMINI_TUTOR_API_KEY")

    provider = GoogleProvider(api_key=config.api_key)
    model = GoogleModel(config.chat_model_name, provider=provider)
    logger.info(f"Initialized model service with chat model {config.chat_model_name}")
    return GeminiModelService(
        model=model,
        genai_client=provider.client,
        embedding_model_name=config.embedding_model_name,
        tool_temperature=config.tool_temperature,
    )


@cache
def get_model_service() -> GeminiModelService:
    return init_model_service(get_config())
