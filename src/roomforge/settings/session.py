"""Session settings."""

from pydantic_settings import SettingsConfigDict

from roomforge.settings.base import BaseAppSettings


class SessionSettings(BaseAppSettings):
    """Settings for the in-process chat session store."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    max_messages: int = 20
    ttl_seconds: int = 30 * 60
    sweep_interval_seconds: int = 10 * 60
    history_window: int = 10
