"""Init command - create the repository's .koconfig."""

import typer

from ko.commands.common import exit_on_error, require_tools
from ko.console import console, print_header, print_success
from ko.exceptions import NotInEnvironmentError
from ko.models.config import CONFIG_FILE_NAME, SessionConfig, default_config
from ko.services.config_loader import config_exists, save_config
from ko.services.git import GitService


def init() -> None:
    """Interactively create a .koconfig for this repository."""
    git = GitService()
    require_tools(git)
    with exit_on_error():
        if not git.is_repo():
            raise NotInEnvironmentError("not in a git repository")
        repo_root = git.main_repo_root()

    print_header("Ko Configuration Setup")

    if config_exists(repo_root) and not typer.confirm(
        f"{CONFIG_FILE_NAME} already exists. Overwrite?"
    ):
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(0)

    defaults = default_config()
    config = SessionConfig(
        editor=typer.prompt("Editor", default=defaults.editor),
        setup_script=typer.prompt("Setup script", default=defaults.setup_script),
        dev_script=typer.prompt("Dev script", default=defaults.dev_script),
    )

    console.print(f"\nDefault pane commands: [cyan]{', '.join(defaults.pane_commands)}[/cyan]")
    if typer.confirm("Use defaults?", default=True):
        config.pane_commands = list(defaults.pane_commands)
    else:
        console.print("[dim]Enter commands one per line, empty line to finish[/dim]")
        while command := typer.prompt(">", default="", show_default=False).strip():
            config.pane_commands.append(command)

    with exit_on_error():
        path = save_config(config, repo_root)
    print_success(f"Configuration saved to: {path}")
