"""Database settings."""

from pydantic_settings import SettingsConfigDict

from roomforge.settings.base import BaseAppSettings


class DatabaseSettings(BaseAppSettings):
    """Settings for the relational database and the vector tables."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = "postgresql+asyncpg://localhost:5432/trustay"
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: float = 30.0
    statement_timeout_ms: int = 15000
    echo_sql: bool = False
