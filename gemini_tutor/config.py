from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_config() -> Config:
    return Config()


class Config(BaseSettings):
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_tutor_api_key", "gemini_api_key", "google_api_key"),
    )

    chat_model_name: str = "gemini-2.5-flash"
    embedding_model_name: str = "text-embedding-004"
    # Low temperature keeps function calls reliable
    tool_temperature: float = 0.1

    ui_host: str = "127.0.0.1"
    ui_port: int = 7860

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="gemini_tutor_", case_sensitive=False, frozen=True)
