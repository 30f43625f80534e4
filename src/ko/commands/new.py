"""New command - create a worktree and its tmux window."""

from typing import Annotated

import typer

from ko.commands.common import exit_on_error, require_tools
from ko.console import print_info, print_success
from ko.exceptions import KoError, NotFoundError, NotInEnvironmentError
from ko.models.config import CONFIG_FILE_NAME, WORKTREE_NAMESPACE
from ko.services.config_loader import config_exists, load_config
from ko.services.session import build_manager, setup_script_path, worktree_path_for
from ko.services.signals import cancellable
from ko.utils.validation import validate_path_within_repository, validate_worktree_name


def new(
    worktree_name: Annotated[str, typer.Argument(help="Name of the worktree to create")],
) -> None:
    """Create a new git worktree and set up a tmux window for it.

    The window gets one pane for the setup script and one more pane per
    configured pane command.
    """
    with exit_on_error("invalid worktree name"):
        validate_worktree_name(worktree_name)

    manager = build_manager()
    require_tools(manager.git, manager.tmux)

    with exit_on_error(), cancellable() as token:
        if not manager.git.is_repo(token=token):
            raise NotInEnvironmentError(
                "not in a git repository\nPlease run this command from within a git repository"
            )

        repo_root = manager.git.main_repo_root(token=token)
        if not config_exists(repo_root):
            raise NotFoundError(
                f"no {CONFIG_FILE_NAME} found\n"
                "Please run 'ko init' to set up your configuration first"
            )
        config = load_config(repo_root)

        script = setup_script_path(config.setup_script)
        if script is not None:
            resolved = (
                script
                if script.is_absolute()
                else validate_path_within_repository(repo_root / script, repo_root)
            )
            if not resolved.exists():
                raise NotFoundError(
                    f"{script} not found\nPlease create a setup script at {script}"
                )

        worktree_path = worktree_path_for(repo_root, worktree_name)
        if worktree_path.exists():
            raise KoError(f"worktree {WORKTREE_NAMESPACE}/{worktree_name} already exists")
        worktree_path.parent.mkdir(parents=True, exist_ok=True)

        print_info(f"Creating git worktree: {WORKTREE_NAMESPACE}/{worktree_name}")
        manager.git.create_worktree(worktree_path, token=token)

        with exit_on_error("failed to create tmux session"):
            manager.create(repo_root.name, worktree_name, worktree_path, config, token=token)

    print_success("Worktree setup complete!")
