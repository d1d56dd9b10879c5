from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    bot_token: str = Field("", alias="BOT_TOKEN")
    api_base_url: str = Field("http://localhost:4000", alias="API_BASE_URL")
    api_token: str | None = Field(None, alias="API_TOKEN")
    api_timeout: float = Field(10.0, alias="API_TIMEOUT")
    cost_fallback_on_empty: bool = Field(False, alias="COST_FALLBACK_ON_EMPTY")
    log_level: str = Field("INFO", alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
