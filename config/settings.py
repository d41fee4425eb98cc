"""Application settings and configuration management."""
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview_sessions.db")
    SESSION_BACKEND: Literal["memory", "sqlite"] = "memory"
    SESSION_TTL_SECONDS: int = Field(default=1800, ge=1)
    SESSION_COOKIE_NAME: str = "interview_session"
    SESSION_COOKIE_SECURE: bool = False

    INTERVIEW_MAX_TURNS: int = Field(default=7, ge=1)
    QUESTION_SIMILARITY_THRESHOLD: float = Field(default=0.6, ge=0.0, le=1.0)

    APP_CONFIG_PATH: str = "app_config.json"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
