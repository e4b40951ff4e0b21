"""
Runtime configuration for the Wellness Bot service.

Settings are read from the environment, after loading a ``.env`` file from
the working directory if one exists.
"""

import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from .personas import DEFAULT_PERSONA

ENV_PREFIX = "WELLNESS_BOT_"

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


class Settings(BaseModel):
    """Service settings."""

    api_key: str = Field("", description="API key for the generative-AI provider")
    model: str = DEFAULT_GEMINI_MODEL
    base_url: str = DEFAULT_GEMINI_BASE_URL
    request_timeout: float = Field(30.0, gt=0)
    retry_attempts: int = Field(3, ge=1)
    retry_delay: float = Field(1.0, ge=0)
    persona: str = DEFAULT_PERSONA
    ffmpeg_binary: str = "ffmpeg"
    speech_detection: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Settings":
        """Build settings from ``WELLNESS_BOT_*`` environment variables."""
        load_dotenv(env_file or find_dotenv(usecwd=True))

        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw

        if "api_key" not in values:
            fallback = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            if fallback:
                values["api_key"] = fallback

        return cls.model_validate(values)
