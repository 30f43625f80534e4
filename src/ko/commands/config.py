"""Config command - show the repository's ko configuration."""

from ko.commands.common import exit_on_error, require_tools
from ko.console import console, print_header
from ko.exceptions import NotInEnvironmentError
from ko.services.config_loader import config_path, load_config
from ko.services.git import GitService


def show_config() -> None:
    """Display the current ko configuration."""
    git = GitService()
    require_tools(git)
    with exit_on_error():
        if not git.is_repo():
            raise NotInEnvironmentError("not in a git repository")
        repo_root = git.main_repo_root()
        config = load_config(repo_root)

    print_header("Configuration")
    console.print(f"[dim]Location:[/dim] {config_path(repo_root)}\n")
    console.print(f"  Setup Script: [cyan]{config.setup_script or '(none)'}[/cyan]")
    console.print(f"  Editor:       [cyan]{config.editor or '(none)'}[/cyan]")
    console.print(f"  Dev Script:   [cyan]{config.dev_script or '(none)'}[/cyan]")
    console.print("  Pane Commands:")
    if not config.pane_commands:
        console.print("    [dim](none)[/dim]")
    for i, command in enumerate(config.pane_commands, start=1):
        console.print(f"    {i}. [cyan]{command}[/cyan]")
