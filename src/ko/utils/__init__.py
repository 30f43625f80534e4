"""Utility helpers for ko."""

from ko.utils.validation import validate_path_within_repository, validate_worktree_name

__all__ = ["validate_path_within_repository", "validate_worktree_name"]
