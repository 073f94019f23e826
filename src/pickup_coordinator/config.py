"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    supabase_auth_token: str | None = None
    teacher_access_code: str
    pickups_table: str = "pickups"
    sessions_table: str = "client_sessions"
    session_backend: Literal["supabase", "memory"] = "supabase"
    completed_display_limit: int = 5
    refresh_interval_seconds: float = 5.0
    display_timezone: str = "UTC"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
