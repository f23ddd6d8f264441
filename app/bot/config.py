"""
Purpose: Environment-driven settings for the bot.
Provider credentials are read here but a missing key is not a config error;
the router treats it as a failed attempt of that provider.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .models import LLMSettings

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Reply in the same language the user used "
    "(Sinhala or English). Be concise and polite."
)

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"
    history_file: str = "history.json"
    max_history_turns: int = 10
    max_output_tokens: int = 400
    temperature: float = 0.4
    request_timeout_seconds: float = 60.0
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    tts_model: str = "gpt-4o-mini-tts"
    tts_voice: str = "alloy"
    image_model: str = "gpt-image-1"
    image_size: str = "1024x1024"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def primary_llm_settings(self) -> LLMSettings:
        return LLMSettings(
            model=self.openai_model,
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
        )

    def fallback_llm_settings(self) -> LLMSettings:
        return LLMSettings(
            model=self.deepseek_model,
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
        )


def load_env_file(path: str = ".env") -> None:
    """Load .env pairs into the environment without overriding existing values."""
    load_dotenv(path, override=False)


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Load and validate settings from `env` (defaults to os.environ)."""
    source = os.environ if env is None else env
    settings = Settings(
        openai_api_key=source.get("OPENAI_API_KEY", "").strip(),
        openai_model=source.get("OPENAI_MODEL", "gpt-4o-mini"),
        openai_base_url=source.get("OPENAI_BASE_URL") or None,
        deepseek_api_key=source.get("DEEPSEEK_API_KEY", "").strip(),
        deepseek_base_url=source.get("DEEPSEEK_BASE_URL") or "https://api.deepseek.com",
        deepseek_model=source.get("DEEPSEEK_MODEL", "deepseek-chat"),
        history_file=source.get("HISTORY_FILE", "history.json"),
        max_history_turns=_int(source, "MAX_HISTORY_TURNS", 10),
        max_output_tokens=_int(source, "MAX_OUTPUT_TOKENS", 400),
        temperature=_float(source, "TEMPERATURE", 0.4),
        request_timeout_seconds=_float(source, "REQUEST_TIMEOUT_SECONDS", 60.0),
        system_prompt=source.get("SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT,
        tts_model=source.get("TTS_MODEL", "gpt-4o-mini-tts"),
        tts_voice=source.get("TTS_VOICE", "alloy"),
        image_model=source.get("IMAGE_MODEL", "gpt-image-1"),
        image_size=source.get("IMAGE_SIZE", "1024x1024"),
        log_level=source.get("LOG_LEVEL", "INFO").upper(),
        log_file=source.get("LOG_FILE") or None,
    )
    _validate(settings)
    return settings


def _int(source: Mapping[str, str], key: str, default: int) -> int:
    raw = source.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer") from exc


def _float(source: Mapping[str, str], key: str, default: float) -> float:
    raw = source.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number") from exc


def _validate(settings: Settings) -> None:
    if settings.max_history_turns <= 0:
        raise ValueError("MAX_HISTORY_TURNS must be positive")
    if settings.max_output_tokens <= 0:
        raise ValueError("MAX_OUTPUT_TOKENS must be positive")
    if not 0.0 <= settings.temperature <= 2.0:
        raise ValueError("TEMPERATURE must be in [0, 2]")
    if settings.request_timeout_seconds <= 0:
        raise ValueError("REQUEST_TIMEOUT_SECONDS must be positive")
    if settings.log_level not in LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {sorted(LOG_LEVELS)}")
