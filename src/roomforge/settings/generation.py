"""SQL generation settings."""

from pydantic_settings import SettingsConfigDict

from roomforge.settings.base import BaseAppSettings


class GenerationSettings(BaseAppSettings):
    """Settings for the generate/execute/retry loop."""

    model_config = SettingsConfigDict(env_prefix="GENERATION_")

    max_attempts: int = 5
    retry_delay_seconds: float = 1.0
    max_row_limit: int = 100
    request_timeout_seconds: float = 90.0
    auto_persist: bool = True
