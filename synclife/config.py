"""
SyncLife — Centralized configuration.

Loads all settings from .env. Every key has a default, so a bare checkout
starts with in-app banners only and AI suggestions disabled.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from synclife/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Snapshot persistence
    DATA_PATH: str = "data/synclife.json"

    # Reminder engine
    REMINDER_TICK_SECONDS: float = 15.0
    BANNER_TTL_SECONDS: float = 8.0
    SINK_TIMEOUT_SECONDS: float = 5.0
    STATS_WINDOW_DAYS: int = 7

    # Telegram notification sink (empty token → sink disabled)
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: int | None = None

    # LLM, provider-agnostic (gemini, anthropic, openai, cohere)
    LLM_PROVIDER: str = "gemini"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str = ""        # empty → suggestions return nothing

    LOG_LEVEL: str = "INFO"

    @field_validator("TELEGRAM_CHAT_ID", mode="before")
    @classmethod
    def parse_chat_id(cls, v: str | int | None) -> int | None:
        if isinstance(v, int):
            return v
        if isinstance(v, str) and v.strip():
            return int(v.strip())
        return None

    @field_validator(
        "REMINDER_TICK_SECONDS", "BANNER_TTL_SECONDS", "SINK_TIMEOUT_SECONDS",
        mode="after",
    )
    @classmethod
    def positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Interval must be positive, got {v}")
        return v

    @field_validator("STATS_WINDOW_DAYS", mode="after")
    @classmethod
    def positive_window(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"STATS_WINDOW_DAYS must be >= 1, got {v}")
        return v


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATA_PATH=os.getenv("DATA_PATH", "data/synclife.json"),
        REMINDER_TICK_SECONDS=os.getenv("REMINDER_TICK_SECONDS", "15"),
        BANNER_TTL_SECONDS=os.getenv("BANNER_TTL_SECONDS", "8"),
        SINK_TIMEOUT_SECONDS=os.getenv("SINK_TIMEOUT_SECONDS", "5"),
        STATS_WINDOW_DAYS=os.getenv("STATS_WINDOW_DAYS", "7"),
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        TELEGRAM_CHAT_ID=os.getenv("TELEGRAM_CHAT_ID", ""),
        LLM_PROVIDER=os.getenv("LLM_PROVIDER", "gemini"),
        LLM_MODEL=os.getenv("LLM_MODEL", ""),
        LLM_API_KEY=os.getenv("LLM_API_KEY", ""),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton, imported by all other modules as:
#   from synclife.config import settings
settings = _load_settings()
