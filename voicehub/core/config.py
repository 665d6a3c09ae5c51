"""Application configuration for the call hub."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    base_url: str = Field(default="http://localhost:3000")

    database_path: str = Field(default="./data/voiceai.db")

    telnyx_api_key: str = Field(default="")
    telnyx_api_base: str = Field(default="https://api.telnyx.com/v2")
    telnyx_connection_id: str = Field(default="")
    telnyx_phone_number: str = Field(default="")
    telnyx_messaging_profile_id: str = Field(default="")
    ai_assistant_id: str = Field(default="")
    transfer_number: str = Field(default="")
    gateway_timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Allow comma-separated env values for CORS origins."""

        if isinstance(value, str):
            parts = [item.strip() for item in value.split(",") if item.strip()]
            return parts
        return value

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{Path(self.database_path).as_posix()}"

    def missing_provider_settings(self) -> list[str]:
        """Return the provider variables that are required but unset."""

        required = {
            "TELNYX_API_KEY": self.telnyx_api_key,
            "TELNYX_CONNECTION_ID": self.telnyx_connection_id,
            "TELNYX_PHONE_NUMBER": self.telnyx_phone_number,
        }
        return [name for name, value in required.items() if not value]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
