"""Inference settings."""

from pydantic_settings import SettingsConfigDict

from roomforge.settings.base import BaseAppSettings


class InferenceSettings(BaseAppSettings):
    """Settings for the chat-completion service."""

    model_config = SettingsConfigDict(env_prefix="INFERENCE_")

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    timeout_seconds: float = 60.0
    temperature: float = 0.1
    max_tokens: int = 2048
