"""Cleanup command - close a worktree's tmux window and remove the worktree."""

from pathlib import Path
from typing import Annotated

import typer

from ko.commands.common import exit_on_error, require_tools
from ko.console import console, print_error, print_hint, print_info, print_success
from ko.exceptions import ExternalToolError, KoError, NotInEnvironmentError
from ko.models.config import WORKTREE_NAMESPACE
from ko.services.git import GitService
from ko.services.session import CleanupOutcome, build_detached_executor, build_manager
from ko.services.signals import cancellable
from ko.utils.validation import validate_worktree_name


def cleanup(
    worktree_name: Annotated[
        str | None,
        typer.Argument(help="Worktree to clean up (defaults to the current worktree)"),
    ] = None,
    detached: Annotated[
        bool,
        typer.Option("--detached", hidden=True, help="Internal: run as detached cleanup"),
    ] = False,
    detached_path: Annotated[
        str,
        typer.Option("--detached-path", hidden=True, help="Internal: worktree path"),
    ] = "",
) -> None:
    """Close the worktree's tmux window and remove the git worktree.

    If no worktree name is given and you are inside a ko worktree, that
    worktree is cleaned up.
    """
    if detached:
        _run_detached(detached_path)
        return

    manager = build_manager()
    require_tools(manager.git, manager.tmux if manager.tmux.is_in_tmux() else None)

    if worktree_name is None:
        with exit_on_error():
            worktree_name = _detect_current_worktree(manager.git)
        console.print(f"Detected current worktree: [cyan]{worktree_name}[/cyan]")

    with exit_on_error("invalid worktree name"):
        validate_worktree_name(worktree_name)

    with exit_on_error(), cancellable() as token:
        try:
            outcome = manager.cleanup(None, worktree_name, token=token)
        except ExternalToolError as e:
            print_error(f"Failed to remove worktree automatically: {e}")
            print_hint(
                f"You may need to run: git worktree remove "
                f"{WORKTREE_NAMESPACE}/{worktree_name} --force"
            )
            raise typer.Exit(1) from e

    if outcome is CleanupOutcome.DETACHED:
        print_info("Cleanup will finish in the background")
        return
    print_success("Cleanup complete!")


def _detect_current_worktree(git: GitService) -> str:
    """Work out which ko worktree the current directory belongs to."""
    if not git.is_repo():
        raise NotInEnvironmentError(
            "not in a git repository\n"
            "Please run this command from within a git repository or specify a worktree name"
        )
    if not git.is_inside_worktree():
        raise NotInEnvironmentError(
            "not in a worktree\nPlease specify a worktree name or run from within a worktree"
        )

    current_path = git.current_worktree_path()
    if current_path.parent.name != WORKTREE_NAMESPACE:
        raise KoError(
            f"current worktree is not a ko worktree (not in {WORKTREE_NAMESPACE} directory)\n"
            "Please specify a worktree name explicitly"
        )
    return current_path.name


def _run_detached(detached_path: str) -> None:
    """Entry point of the process spawned by a cleanup run from inside its worktree."""
    if not detached_path:
        print_error("detached-path not provided")
        raise typer.Exit(1)

    executor = build_detached_executor()
    try:
        executor.run(Path(detached_path))
    except KoError as e:
        raise typer.Exit(1) from e
