"""Configuration models for ko."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from ko.logging_config import FALLBACK_ERROR_LOG

# Directory under the main repository root that holds ko worktrees
WORKTREE_NAMESPACE = ".ko"

# Per-repository configuration file name
CONFIG_FILE_NAME = ".koconfig"


@dataclass
class SessionConfig:
    """Per-repository configuration stored in .koconfig.

    Commands are trusted shell text authored by the user, at the same trust
    level as git hooks. They are typed into panes as-is.
    """

    setup_script: str = ""
    pane_commands: list[str] = field(default_factory=list)
    editor: str = ""
    dev_script: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> SessionConfig:
        """Create a SessionConfig from a decoded .koconfig mapping."""
        commands_raw = data.get("pane_commands") or []
        commands = list(commands_raw) if isinstance(commands_raw, list) else []
        return cls(
            setup_script=str(data.get("setup_script") or ""),
            pane_commands=[str(c) for c in commands],
            editor=str(data.get("editor") or ""),
            dev_script=str(data.get("dev_script") or ""),
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to the .koconfig mapping."""
        return {
            "editor": self.editor,
            "setup_script": self.setup_script,
            "dev_script": self.dev_script,
            "pane_commands": list(self.pane_commands),
        }


def default_config() -> SessionConfig:
    """Return the configuration offered by `ko init`."""
    return SessionConfig(
        setup_script="./bin/setup",
        pane_commands=["vim", "./bin/dev", "claude"],
        editor="vim",
        dev_script="./bin/dev",
    )


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class Settings:
    """Runtime settings for ko operations."""

    # Seconds to let a killed pane's shell exit before removing its worktree
    shell_exit_delay: float = field(
        default_factory=lambda: _env_float("KO_SHELL_EXIT_DELAY", 1.0)
    )
    # Longer wait for the detached process, which also outlives its parent
    detached_delay: float = field(default_factory=lambda: _env_float("KO_DETACHED_DELAY", 2.0))

    tmux_binary: str = "tmux"
    git_binary: str = "git"

    fallback_error_log: Path = FALLBACK_ERROR_LOG

    verbose: bool = False


# Global settings instance, built from the environment on first use
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the current settings, creating defaults if none exist."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings

