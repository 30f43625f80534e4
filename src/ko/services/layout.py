"""Pane layout planning for new worktree windows."""

from ko.models.layout import LayoutStep, PaneLayoutPlan, PaneOperation


def plan_pane_layout(pane_base_index: int, command_count: int) -> PaneLayoutPlan:
    """Compute how to split a fresh window into one setup pane plus command panes.

    Layout strategy:
    - Pane base: setup (always present, the window's initial pane)
    - Pane base+1: first command, side by side with setup
    - Pane base+2: second command, from splitting pane base below
    - Pane base+3: third command, from splitting pane base+1 below
    - and so on: each new pane splits the pane created two steps earlier,
      which keeps the grid balanced instead of producing one thin sliver.

    Args:
        pane_base_index: tmux's pane-base-index setting
        command_count: Number of configured pane commands

    Returns:
        The plan; its steps are empty when there are no pane commands

    Raises:
        ValueError: If either argument is negative
    """
    if pane_base_index < 0:
        raise ValueError(f"pane base index must be >= 0, got {pane_base_index}")
    if command_count < 0:
        raise ValueError(f"command count must be >= 0, got {command_count}")

    steps: list[LayoutStep] = []
    if command_count > 0:
        steps.append(LayoutStep(PaneOperation.SPLIT_ADJACENT, pane_base_index))
        for i in range(1, command_count):
            target = pane_base_index + (i - 1)
            steps.append(LayoutStep(PaneOperation.SELECT_PANE, target))
            steps.append(LayoutStep(PaneOperation.SPLIT_BELOW, target))

    return PaneLayoutPlan(
        setup_pane=pane_base_index,
        focus_pane=pane_base_index,
        steps=steps,
        command_panes=[pane_base_index + i + 1 for i in range(command_count)],
    )
