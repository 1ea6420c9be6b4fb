# Copyright (c) 2026 Pointmatic
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for yt_fallacy.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from yt_fallacy.config import AppConfig, load_config

NO_FILE = Path("/nonexistent/path.toml")


class TestAppConfigDefaults:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.model == "gpt-4o"
        assert config.api_base is None
        assert config.api_key is None
        assert config.temperature == 0.0
        assert config.json_mode is True
        assert config.output_format == "json"
        assert config.output_path is None
        assert config.log_level == "INFO"
        assert config.log_format == "console"
        assert config.languages == ["en"]
        assert config.use_cache is True
        assert config.max_retries == 3
        assert config.max_concurrent_requests == 1
        assert config.rate_limit_requests == 5
        assert config.rate_limit_window_seconds == 3600.0
        assert config.hover_hide_delay_ms == 100
        assert config.store_dir.endswith("analyses")

    def test_temperature_bounds(self) -> None:
        with pytest.raises(ValueError):
            AppConfig(temperature=2.5)

    def test_max_retries_can_be_zero(self) -> None:
        assert AppConfig(max_retries=0).max_retries == 0

    def test_rate_limit_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            AppConfig(rate_limit_requests=0)

    def test_languages_from_comma_string(self) -> None:
        config = AppConfig(languages="en, fr,,de")  # type: ignore[arg-type]
        assert config.languages == ["en", "fr", "de"]

    def test_unknown_output_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            AppConfig(output_format="html")  # type: ignore[arg-type]


class TestLoadConfigFromFile:
    def test_loads_toml_config(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            'model = "gpt-4o-mini"\ntemperature = 0.5\nlanguages = ["en", "es"]\n'
        )
        config = load_config(config_path=config_file)
        assert config.model == "gpt-4o-mini"
        assert config.temperature == 0.5
        assert config.languages == ["en", "es"]

    def test_missing_config_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(config_path=tmp_path / "nonexistent.toml")
        assert config.model == "gpt-4o"

    def test_invalid_toml_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.toml"
        config_file.write_text("this is not valid toml {{{{")
        assert load_config(config_path=config_file).model == "gpt-4o"


class TestLoadConfigEnvVars:
    def test_env_vars_override_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YT_FALLACY_MODEL", "claude-3")
        monkeypatch.setenv("YT_FALLACY_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("YT_FALLACY_LANGUAGES", "fr,de")
        monkeypatch.setenv("YT_FALLACY_USE_CACHE", "false")
        monkeypatch.setenv("YT_FALLACY_RATE_LIMIT_REQUESTS", "10")
        config = load_config(config_path=NO_FILE)
        assert config.model == "claude-3"
        assert config.log_level == "WARNING"
        assert config.languages == ["fr", "de"]
        assert config.use_cache is False
        assert config.rate_limit_requests == 10

    def test_env_vars_override_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text('model = "gpt-4o-mini"\n')
        monkeypatch.setenv("YT_FALLACY_MODEL", "claude-3")
        assert load_config(config_path=config_file).model == "claude-3"


class TestLoadConfigCLIOverrides:
    def test_cli_none_values_ignored(self) -> None:
        config = load_config(
            cli_overrides={"model": None, "log_level": "WARNING"},
            config_path=NO_FILE,
        )
        assert config.model == "gpt-4o"
        assert config.log_level == "WARNING"

    def test_full_precedence_chain(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            'model = "file-model"\nlog_level = "DEBUG"\ntemperature = 0.1\n'
        )
        monkeypatch.setenv("YT_FALLACY_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("YT_FALLACY_TEMPERATURE", "0.5")
        config = load_config(
            cli_overrides={"temperature": 0.9},
            config_path=config_file,
        )
        # model: file (no env, no cli)
        assert config.model == "file-model"
        # log_level: env overrides file
        assert config.log_level == "WARNING"
        # temperature: cli overrides env overrides file
        assert config.temperature == 0.9
