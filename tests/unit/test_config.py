"""Tests for configuration models and the .koconfig loader."""

import json
from pathlib import Path

import pytest

from ko.exceptions import ConfigError, NotFoundError
from ko.models.config import SessionConfig, Settings, default_config
from ko.services.config_loader import config_exists, config_path, load_config, save_config


class TestSessionConfig:
    """Tests for SessionConfig."""

    def test_from_dict(self) -> None:
        config = SessionConfig.from_dict(
            {
                "editor": "nvim",
                "setup_script": "./bin/setup",
                "dev_script": "./bin/dev",
                "pane_commands": ["nvim", "./bin/dev"],
            }
        )
        assert config.editor == "nvim"
        assert config.setup_script == "./bin/setup"
        assert config.pane_commands == ["nvim", "./bin/dev"]

    def test_from_dict_tolerates_missing_and_null_keys(self) -> None:
        config = SessionConfig.from_dict({"setup_script": None})
        assert config == SessionConfig()

    def test_from_dict_ignores_non_list_commands(self) -> None:
        assert SessionConfig.from_dict({"pane_commands": "vim"}).pane_commands == []

    def test_to_dict_round_trips(self) -> None:
        config = default_config()
        assert SessionConfig.from_dict(config.to_dict()) == config


class TestSettings:
    """Tests for runtime Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("KO_SHELL_EXIT_DELAY", raising=False)
        monkeypatch.delenv("KO_DETACHED_DELAY", raising=False)
        settings = Settings()
        assert settings.shell_exit_delay == 1.0
        assert settings.detached_delay == 2.0
        assert settings.fallback_error_log.name == "ko-cleanup-error.log"

    def test_delays_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KO_SHELL_EXIT_DELAY", "0.25")
        monkeypatch.setenv("KO_DETACHED_DELAY", "not-a-number")
        settings = Settings()
        assert settings.shell_exit_delay == 0.25
        assert settings.detached_delay == 2.0


class TestConfigLoader:
    """Tests for load_config and save_config."""

    def test_save_then_load(self, tmp_path: Path) -> None:
        config = SessionConfig(setup_script="make setup", pane_commands=["vim", "make dev"])

        path = save_config(config, tmp_path)

        assert path == config_path(tmp_path)
        assert config_exists(tmp_path)
        assert load_config(tmp_path) == config

    def test_saved_file_is_readable_json(self, tmp_path: Path) -> None:
        save_config(default_config(), tmp_path)
        data = json.loads((tmp_path / ".koconfig").read_text())
        assert data["pane_commands"] == ["vim", "./bin/dev", "claude"]

    def test_missing_file(self, tmp_path: Path) -> None:
        assert not config_exists(tmp_path)
        with pytest.raises(NotFoundError, match="ko init"):
            load_config(tmp_path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / ".koconfig").write_text("{not json")
        with pytest.raises(ConfigError, match="failed to read"):
            load_config(tmp_path)

    def test_non_object_json(self, tmp_path: Path) -> None:
        (tmp_path / ".koconfig").write_text('["vim"]')
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_config(tmp_path)
