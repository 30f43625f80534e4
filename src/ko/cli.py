"""ko CLI - git worktrees with their own tmux windows."""

import typer
from rich.console import Console

from ko import __version__
from ko.commands.cleanup import cleanup
from ko.commands.config import show_config
from ko.commands.init import init
from ko.commands.list import list_worktrees
from ko.commands.new import new
from ko.commands.switch import switch
from ko.logging_config import get_logger, setup_logging
from ko.models.config import get_settings

# Create the Typer app
app = typer.Typer(
    name="ko",
    help="Git worktree tmux automation.",
    add_completion=False,
    rich_markup_mode="rich",
)

# Add commands
app.command(name="new")(new)
app.command(name="switch")(switch)
app.command(name="cleanup")(cleanup)
app.command(name="list")(list_worktrees)
app.command(name="config")(show_config)
app.command(name="init")(init)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Write debug output to the log file",
    ),
) -> None:
    """ko - manage git worktrees with automatic tmux window setup.

    Each worktree lives under .ko/ in the main repository and gets a tmux
    window with a setup pane and one pane per configured command.
    """
    settings = get_settings()
    settings.verbose = verbose
    setup_logging(settings)

    logger = get_logger("ko.cli")

    if version:
        Console().print(f"ko version {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand:
        logger.info(f"Command invoked: {ctx.invoked_subcommand}")
    else:
        Console().print(ctx.get_help())


if __name__ == "__main__":
    app()
