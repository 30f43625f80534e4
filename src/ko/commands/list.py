"""List command - show ko worktrees and whether their windows are open."""

from ko.commands.common import exit_on_error, require_tools
from ko.console import console, create_status_table
from ko.exceptions import ExternalToolError, NotInEnvironmentError
from ko.services.session import build_manager
from ko.services.tmux import WINDOW_NAME_SEPARATOR


def list_worktrees() -> None:
    """List all git worktrees in the .ko directory.

    Switch to one with: ko switch <name>
    """
    manager = build_manager()
    require_tools(manager.git, manager.tmux if manager.tmux.is_in_tmux() else None)

    with exit_on_error():
        if not manager.git.is_repo():
            raise NotInEnvironmentError("not in a git repository")
        worktrees = manager.git.list_worktrees()

    if not worktrees:
        console.print("[dim]No ko worktrees found[/dim]")
        return

    window_names: dict[str, str] = {}
    if manager.tmux.is_in_tmux():
        try:
            for window in manager.tmux.list_windows():
                window_names[window.name] = window.index
        except ExternalToolError:
            window_names = {}

    table = create_status_table("Ko Worktrees")
    table.add_column("Name", style="cyan")
    table.add_column("Branch")
    table.add_column("Window")
    table.add_column("Path", style="dim")

    for wt in worktrees:
        suffix = f"{WINDOW_NAME_SEPARATOR}{wt.name}"
        window = next(
            (index for name, index in window_names.items() if name.endswith(suffix)),
            None,
        )
        name = f"{wt.name} [green](current)[/green]" if wt.is_current else wt.name
        table.add_row(name, wt.branch, window or "-", str(wt.path))

    console.print(table)
    console.print("\n[dim]Switch with:[/dim] ko switch <name>")
