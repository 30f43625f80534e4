"""CLI commands for ko."""

from ko.commands.cleanup import cleanup
from ko.commands.config import show_config
from ko.commands.init import init
from ko.commands.list import list_worktrees
from ko.commands.new import new
from ko.commands.switch import switch

__all__ = ["cleanup", "init", "list_worktrees", "new", "show_config", "switch"]
