"""ko - git worktrees bound to tmux windows."""

__version__ = "0.4.0"
