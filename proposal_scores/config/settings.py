from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoresSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    score_api_url: str = Field(default="https://score.snapshot.org", alias="SCORE_API_URL")
    score_api_key: str | None = Field(default=None, alias="SCORE_API_KEY")
    score_api_timeout_seconds: float = Field(
        default=600.0, alias="SCORE_API_TIMEOUT_SECONDS", gt=0
    )
    shutter_url: str = Field(
        default="https://shutter-api.shutter.network",
        validation_alias=AliasChoices("SHUTTER_URL", "SHUTTER_API_URL"),
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("score_api_url", "shutter_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        url = v.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("Service URLs must start with http:// or https://")
        return url


@lru_cache(maxsize=1)
def get_settings() -> ScoresSettings:
    return ScoresSettings()
