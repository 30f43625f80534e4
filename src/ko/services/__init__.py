"""Service layer for git and tmux integrations."""

from ko.services.git import GitService
from ko.services.runner import CancellationToken, CommandResult, ProcessRunner
from ko.services.session import (
    CleanupOutcome,
    DetachedCleanupExecutor,
    SessionLifecycleManager,
    build_manager,
)
from ko.services.tmux import TmuxService

__all__ = [
    "CancellationToken",
    "CleanupOutcome",
    "CommandResult",
    "DetachedCleanupExecutor",
    "GitService",
    "ProcessRunner",
    "SessionLifecycleManager",
    "TmuxService",
    "build_manager",
]
