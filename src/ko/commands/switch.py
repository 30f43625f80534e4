"""Switch command - jump to a worktree's tmux window."""

from typing import Annotated

import typer

from ko.commands.common import exit_on_error, require_tools
from ko.console import print_success
from ko.services.session import build_manager
from ko.services.signals import cancellable
from ko.utils.validation import validate_worktree_name


def switch(
    worktree_name: Annotated[str, typer.Argument(help="Name of the worktree to switch to")],
) -> None:
    """Switch to an existing worktree's tmux window.

    If the window was closed, it is recreated from your configuration.
    """
    with exit_on_error("invalid worktree name"):
        validate_worktree_name(worktree_name)

    manager = build_manager()
    require_tools(manager.git, manager.tmux)
    with exit_on_error(), cancellable() as token:
        created = manager.switch(worktree_name, token=token)

    if created:
        print_success("Session created successfully!")
