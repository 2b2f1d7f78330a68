"""Application configuration. Loads from env vars."""
from __future__ import annotations

import logging
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Label persistence: "memory" (process-local) | "supabase" (managed backend REST)
    LABELS_BACKEND: Literal["memory", "supabase"] = "memory"

    # Managed backend: REST tables + serverless functions share URL and key
    SUPABASE_URL: str = ""
    SUPABASE_API_KEY: str = ""
    SPEAKER_LABELS_TABLE: str = "speaker_labels"
    UTTERANCES_FUNCTION: str = "fetch-utterances"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Editor state keys in the session store: "<prefix>-<kind>-<transcript id | draft>"
    SESSION_KEY_PREFIX: str = "transcription"

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to file (empty = console only).
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""


def get_settings() -> Settings:
    return Settings()


def supabase_configured(settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return bool(settings.SUPABASE_URL.strip() and settings.SUPABASE_API_KEY.strip())


def configure_logging(settings: Settings | None = None) -> None:
    """Apply LOG_LEVEL / LOG_FILE to the root logger. Safe to call more than once."""
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))
    logging.basicConfig(level=level, format=_LOG_FORMAT, handlers=handlers, force=True)
