"""Input validation for worktree names and repository paths.

Worktree names are the one value that can come from an untrusted or mistaken
caller and still end up interpolated into filesystem paths and tmux window
names, so every name passes through validate_worktree_name before any git or
tmux call sees it. The checks are strict and cross-platform: names that would
only be dangerous on Windows are rejected everywhere.
"""

import os
from pathlib import Path

from ko.exceptions import ValidationError, ValidationReason

MAX_NAME_BYTES = 255

CONTROL_CHARS = ("\x00", "\n", "\r", "\t")

RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)


def validate_worktree_name(name: str) -> None:
    """Validate that a worktree name is safe to use.

    Args:
        name: The candidate worktree name

    Raises:
        ValidationError: With a reason identifying the first failed check
    """
    if not name:
        raise ValidationError(ValidationReason.EMPTY, "worktree name cannot be empty")

    if len(name.encode("utf-8")) > MAX_NAME_BYTES:
        raise ValidationError(
            ValidationReason.TOO_LONG,
            f"worktree name too long (max {MAX_NAME_BYTES} bytes)",
        )

    if "/" in name or "\\" in name:
        raise ValidationError(
            ValidationReason.PATH_SEPARATOR,
            "worktree name cannot contain path separators (/ or \\)",
        )

    if name in (".", ".."):
        raise ValidationError(ValidationReason.DOT_DOT, "worktree name cannot be '.' or '..'")

    if ".." in name:
        raise ValidationError(ValidationReason.DOT_DOT, "worktree name cannot contain '..'")

    if any(char in name for char in CONTROL_CHARS):
        raise ValidationError(
            ValidationReason.CONTROL_CHAR,
            "worktree name contains invalid characters",
        )

    if os.path.normpath(name) != name:
        raise ValidationError(
            ValidationReason.PATH_NORMALIZATION_MISMATCH,
            "worktree name contains invalid path components",
        )

    if name.upper() in RESERVED_NAMES:
        raise ValidationError(
            ValidationReason.RESERVED_NAME,
            "worktree name cannot be a reserved system name",
        )


def validate_path_within_repository(target: Path | str, root: Path | str) -> Path:
    """Ensure a path resolves to a location strictly inside the repository root.

    Args:
        target: The path to check (relative paths resolve against the cwd)
        root: The repository root

    Returns:
        The resolved target path

    Raises:
        ValidationError: If the resolved target is the root itself or outside it
    """
    resolved_root = Path(root).resolve()
    resolved_target = Path(target).resolve()
    if resolved_target == resolved_root or resolved_root not in resolved_target.parents:
        raise ValidationError(
            ValidationReason.OUTSIDE_REPOSITORY,
            f"path must be within repository boundaries: {target}",
        )
    return resolved_target
