"""Centralised application configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/cardcutter/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_HEX_COLOUR = re.compile(r"^#?([0-9A-Fa-f]{6})$")


def normalise_hex_colour(value: str) -> str:
    """Return ``value`` as ``#RRGGBB`` in upper case.

    Raises:
        ValueError: If ``value`` is not a six-digit hex colour.
    """
    match = _HEX_COLOUR.match(value.strip())
    if not match:
        msg = f"Expected a #RRGGBB colour, got {value!r}"
        raise ValueError(msg)
    return "#" + match.group(1).upper()


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class ExportConfig(BaseModel):
    """Document export defaults."""

    default_highlight_color: str = "#00FF00"
    page_margin_pt: float = 72.0
    line_height_multiplier: float = 1.2
    card_spacing_lines: int = 3

    @field_validator("default_highlight_color")
    @classmethod
    def _check_colour(cls, value: str) -> str:
        return normalise_hex_colour(value)


class LlmConfig(BaseModel):
    """Evidence generation (Claude API) configuration."""

    api_key: SecretStr = SecretStr("")
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    retries: int = 3
    backoff_seconds: float = 0.5


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")
    store_path: Path = Path("cards.json")
    undo_window_seconds: float = 5.0


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Application settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``EXPORT__DEFAULT_HIGHLIGHT_COLOR``, ``LLM__API_KEY``, ``APP__STORE_PATH``.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    export: ExportConfig = ExportConfig()
    llm: LlmConfig = LlmConfig()
    app: AppConfig = AppConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
