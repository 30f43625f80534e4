"""Configuration file loader for ko.

The .koconfig file lives at the main repository root so that every worktree
shares one configuration.
"""

import json
from pathlib import Path

from ko.exceptions import ConfigError, NotFoundError
from ko.logging_config import get_logger
from ko.models.config import CONFIG_FILE_NAME, SessionConfig

logger = get_logger("ko.services.config_loader")


def config_path(repo_root: Path) -> Path:
    """Return the .koconfig path for a repository root."""
    return repo_root / CONFIG_FILE_NAME


def config_exists(repo_root: Path) -> bool:
    """Check if a .koconfig file exists at the repository root."""
    return config_path(repo_root).is_file()


def load_config(repo_root: Path) -> SessionConfig:
    """Load the session configuration for a repository.

    Args:
        repo_root: The main repository root

    Returns:
        The parsed configuration

    Raises:
        NotFoundError: If there is no .koconfig file
        ConfigError: If the file cannot be read or is not a JSON object
    """
    path = config_path(repo_root)
    if not path.exists():
        raise NotFoundError(f"no {CONFIG_FILE_NAME} found - run 'ko init' to set up configuration")

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"failed to read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse {path}: expected a JSON object")

    logger.debug(f"Loaded config from {path}")
    return SessionConfig.from_dict(data)


def save_config(config: SessionConfig, repo_root: Path) -> Path:
    """Write the session configuration to the repository's .koconfig.

    Returns:
        The path that was written

    Raises:
        ConfigError: If the file cannot be written
    """
    path = config_path(repo_root)
    try:
        with path.open("w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)
            f.write("\n")
    except OSError as e:
        raise ConfigError(f"failed to write {path}: {e}") from e

    logger.info(f"Saved config to {path}")
    return path
