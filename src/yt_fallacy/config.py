# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Configuration loading for yt-fallacy.

Precedence (highest to lowest):
1. CLI flag overrides
2. Environment variables (prefixed with YT_FALLACY_)
3. TOML config file
4. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "yt-fallacy" / "config.toml"
DEFAULT_STORE_DIR = Path.home() / ".local" / "share" / "yt-fallacy" / "analyses"


class AppConfig(BaseModel):
    """Application configuration."""

    model: str = "gpt-4o"
    api_base: str | None = None
    api_key: str | None = None
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    json_mode: bool = True
    output_format: Literal["json", "markdown"] = "json"
    output_path: str | None = None
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    store_dir: str = str(DEFAULT_STORE_DIR)
    languages: list[str] = Field(default_factory=lambda: ["en"])
    use_cache: bool = True
    max_retries: int = Field(default=3, ge=0)
    max_concurrent_requests: int = Field(default=1, ge=1)
    rate_limit_requests: int = Field(default=5, ge=1)
    rate_limit_window_seconds: float = Field(default=3600.0, gt=0)
    hover_hide_delay_ms: int = Field(default=100, ge=0)

    @field_validator("languages", mode="before")
    @classmethod
    def _split_languages(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


ENV_PREFIX = "YT_FALLACY_"

_ENV_FIELD_MAP: dict[str, str] = {
    "YT_FALLACY_MODEL": "model",
    "YT_FALLACY_API_BASE": "api_base",
    "YT_FALLACY_API_KEY": "api_key",
    "YT_FALLACY_TEMPERATURE": "temperature",
    "YT_FALLACY_JSON_MODE": "json_mode",
    "YT_FALLACY_FORMAT": "output_format",
    "YT_FALLACY_LOG_LEVEL": "log_level",
    "YT_FALLACY_LOG_FORMAT": "log_format",
    "YT_FALLACY_STORE_DIR": "store_dir",
    "YT_FALLACY_LANGUAGES": "languages",
    "YT_FALLACY_USE_CACHE": "use_cache",
    "YT_FALLACY_MAX_RETRIES": "max_retries",
    "YT_FALLACY_MAX_CONCURRENT": "max_concurrent_requests",
    "YT_FALLACY_RATE_LIMIT_REQUESTS": "rate_limit_requests",
    "YT_FALLACY_RATE_LIMIT_WINDOW": "rate_limit_window_seconds",
    "YT_FALLACY_HOVER_HIDE_DELAY_MS": "hover_hide_delay_ms",
}


def _read_toml_config(config_path: Path) -> dict[str, Any]:
    """Read a TOML config file and return its contents as a dict.

    Returns an empty dict if the file does not exist or cannot be parsed.
    """
    if not config_path.is_file():
        return {}
    try:
        with config_path.open("rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def _read_env_vars() -> dict[str, Any]:
    """Read configuration from environment variables."""
    result: dict[str, Any] = {}
    for env_key, field_name in _ENV_FIELD_MAP.items():
        value = os.environ.get(env_key)
        if value is not None:
            result[field_name] = value
    return result


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    config_path: Path | None = None,
) -> AppConfig:
    """Load configuration with precedence: CLI > env > file > defaults.

    Args:
        cli_overrides: Dict of values from CLI flags. Keys with ``None``
            values are ignored (treated as "not provided").
        config_path: Path to a TOML config file. Falls back to
            ``~/.config/yt-fallacy/config.toml`` if not specified.

    Returns:
        A validated ``AppConfig`` instance.
    """
    effective_path = config_path or DEFAULT_CONFIG_PATH

    file_values = _read_toml_config(effective_path)
    env_values = _read_env_vars()

    merged: dict[str, Any] = {}
    merged.update(file_values)
    merged.update(env_values)
    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                merged[key] = value

    return AppConfig(**merged)
