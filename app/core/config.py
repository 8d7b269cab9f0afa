# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    DATABASE_URL: str = Field(default="sqlite:///./tickets.db")
    APP_NAME: str = "Support Tickets"
    APP_DESC: str = "Customer support ticketing with task-routing notifications"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # CORS allow-list, comma separated; the first entry is the production origin
    CORS_ORIGINS: str = "https://support.example.com,http://localhost:3000"

    # Task-routing service; leaving any of these unset disables notifications
    TASKROUTER_ACCOUNT_SID: str | None = None
    TASKROUTER_AUTH_TOKEN: str | None = None
    TASKROUTER_WORKSPACE_SID: str | None = None
    TASKROUTER_WORKFLOW_SID: str | None = None
    TASKROUTER_BASE_URL: str = "https://taskrouter.twilio.com/v1"
    TASKROUTER_TASK_CHANNEL: str = "default"

    # Referer domain fragment -> origin tag
    PARTNER_ORIGINS: dict[str, str] = Field(
        default_factory=lambda: {"nss": "NSS", "hhovv": "HHOVV"}
    )

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
