"""Custom exceptions for ko."""

from enum import Enum


class KoError(Exception):
    """Base exception for all ko errors."""


class DependencyMissingError(KoError):
    """Raised when a required external dependency is not installed."""

    def __init__(self, dependencies: list[str]) -> None:
        self.dependencies = dependencies
        deps_str = ", ".join(dependencies)
        super().__init__(f"Missing required dependencies: {deps_str}")


class ValidationReason(Enum):
    """Why a worktree name or path was rejected."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    PATH_SEPARATOR = "path_separator"
    DOT_DOT = "dot_dot"
    CONTROL_CHAR = "control_char"
    PATH_NORMALIZATION_MISMATCH = "path_normalization_mismatch"
    RESERVED_NAME = "reserved_name"
    OUTSIDE_REPOSITORY = "outside_repository"


class ValidationError(KoError):
    """Raised when a worktree name or path fails validation."""

    def __init__(self, reason: ValidationReason, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class NotInEnvironmentError(KoError):
    """Raised when not inside a git repository or a tmux session."""


class NotFoundError(KoError):
    """Raised when a tmux window, worktree or config file is absent."""


class ExternalToolError(KoError):
    """Raised when a git or tmux command fails.

    The tool's own combined output is kept verbatim since it usually carries
    the actionable diagnostic.
    """

    def __init__(
        self,
        command: list[str],
        output: str = "",
        exit_code: int | None = None,
        message: str | None = None,
    ) -> None:
        self.command = command
        self.output = output
        self.exit_code = exit_code
        if message is None:
            detail = output.strip() or f"exit code {exit_code}"
            message = f"{' '.join(command)} failed: {detail}"
        super().__init__(message)


class CancelledError(KoError):
    """Raised when an operation is interrupted by the user."""

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)


class TimedOutError(KoError):
    """Raised when an operation exceeds its deadline."""

    def __init__(self, message: str = "operation timed out") -> None:
        super().__init__(message)


class ConfigError(KoError):
    """Raised when the .koconfig file cannot be read or written."""
