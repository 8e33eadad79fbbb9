"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PokeApiSettings(BaseModel):
    base_url: AnyHttpUrl = Field(default="https://pokeapi.co/api/v2")
    catalog_limit: int = Field(
        default=2000,
        ge=1,
        description="Page size for the single catalog request; must cover the whole catalog.",
    )
    request_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout. None waits indefinitely.",
    )


class SearchSettings(BaseModel):
    target_locale: str = Field(default="es", min_length=1)
    min_query_length: int = Field(default=2, ge=1)
    debounce_seconds: float = Field(default=0.3, ge=0, le=10)
    fallback_description: str = "Sin descripción disponible."

    @field_validator("target_locale", mode="before")
    @classmethod
    def _normalize_locale(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class BotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__"
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    telegram_token: SecretStr
    telegram_proxy: str | None = None
    default_language: str = "es"
    admin_telegram_id: int | None = None
    log_level: str = "INFO"

    pokeapi: PokeApiSettings = Field(default_factory=PokeApiSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> BotSettings:
    """Return cached settings instance."""

    return BotSettings()  # type: ignore[call-arg]


__all__ = [
    "BotSettings",
    "PokeApiSettings",
    "SearchSettings",
    "get_settings",
]
