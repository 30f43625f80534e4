"""Pane layout plan model."""

from dataclasses import dataclass, field
from enum import Enum


class PaneOperation(Enum):
    """A single tmux operation in a pane layout plan."""

    SPLIT_ADJACENT = "split_adjacent"  # new pane side by side (split-window -h)
    SPLIT_BELOW = "split_below"  # new pane stacked underneath (split-window -v)
    SELECT_PANE = "select_pane"


@dataclass(frozen=True)
class LayoutStep:
    """One step of a layout plan: an operation applied to a pane index."""

    operation: PaneOperation
    target: int


@dataclass
class PaneLayoutPlan:
    """Ordered split steps plus the pane each command ends up in."""

    setup_pane: int
    focus_pane: int
    steps: list[LayoutStep] = field(default_factory=list)
    command_panes: list[int] = field(default_factory=list)

    @property
    def pane_count(self) -> int:
        """Total panes in the window once every step has run."""
        return 1 + len(self.command_panes)
