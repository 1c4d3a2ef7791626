import os

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_url: str = Field(
        default="http://localhost:3002",  # Default for local dev; MUST be set to backend URL in production
        validation_alias="CLINIC_API_URL",
    )
    api_timeout: float = Field(default=30.0, validation_alias="CLINIC_API_TIMEOUT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, value: str) -> str:
        """Strip trailing slashes and warn about localhost in production."""
        value = value.rstrip("/")
        is_production = bool(os.getenv("RENDER") or os.getenv("RAILWAY_ENVIRONMENT") or os.getenv("DYNO"))
        if is_production and ("localhost" in value or "127.0.0.1" in value):
            logger.error(
                f"⚠️ CRITICAL: CLINIC_API_URL is set to localhost in production: {value}\n"
                "⚠️ Treatment records and sessions will fail to persist."
            )
        return value

    @field_validator("api_timeout")
    @classmethod
    def validate_api_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("CLINIC_API_TIMEOUT must be positive")
        return value


settings = Settings()
