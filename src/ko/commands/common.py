"""Shared error reporting for ko commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from ko.console import print_error
from ko.exceptions import CancelledError, DependencyMissingError, KoError, TimedOutError
from ko.logging_config import get_logger
from ko.services.git import GitService
from ko.services.tmux import TmuxService

logger = get_logger("ko.commands")

# Conventional exit status for a process stopped by Ctrl+C
EXIT_CANCELLED = 130


@contextmanager
def exit_on_error(action: str | None = None) -> Iterator[None]:
    """Turn ko errors into a printed message and a non-zero exit.

    Args:
        action: Optional prefix such as "failed to create tmux session"
    """
    try:
        yield
    except CancelledError as e:
        logger.warning(f"Cancelled: {e}")
        print_error(str(e))
        raise typer.Exit(EXIT_CANCELLED) from e
    except TimedOutError as e:
        logger.warning(f"Timed out: {e}")
        print_error(str(e))
        raise typer.Exit(1) from e
    except KoError as e:
        logger.error(f"{action}: {e}" if action else str(e))
        print_error(f"{action}: {e}" if action else str(e))
        raise typer.Exit(1) from e


def require_tools(git: GitService, tmux: TmuxService | None = None) -> None:
    """Exit with an error unless git (and tmux, when given) can be run."""
    try:
        git.ensure_dependencies()
        if tmux is not None:
            tmux.ensure_dependencies()
    except DependencyMissingError as e:
        logger.error(str(e))
        print_error(str(e))
        raise typer.Exit(1) from e
