"""Tmux window management service.

Security note: pane commands come from the user's .koconfig and are typed into
panes without sanitization. That file is local, user-authored configuration,
trusted the same way git hooks are. Do not extend this module to send keys
that originate anywhere else; worktree names, the only runtime input that
reaches tmux, are validated before they get here.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from ko.exceptions import DependencyMissingError, ExternalToolError, NotFoundError
from ko.logging_config import get_logger
from ko.models.layout import LayoutStep, PaneOperation
from ko.services.runner import CancellationToken, ProcessRunner

logger = get_logger("ko.services.tmux")

# Separates repository and worktree in a window name. Changing it breaks
# discovery of windows created by earlier versions.
WINDOW_NAME_SEPARATOR = "|"

# Key sequence sent to every pane before its window is killed
INTERRUPT_KEYS = "C-c"


def window_identity(repo_name: str, worktree_name: str) -> str:
    """Build the tmux window name for a (repository, worktree) pair."""
    return f"{repo_name}{WINDOW_NAME_SEPARATOR}{worktree_name}"


@dataclass(frozen=True)
class WindowInfo:
    """A tmux window located by worktree name; empty fields when absent."""

    index: str = ""
    name: str = ""

    @property
    def found(self) -> bool:
        return bool(self.index)


@dataclass
class TmuxService:
    """Service for binding worktrees to tmux windows."""

    runner: ProcessRunner = field(default_factory=ProcessRunner)
    binary: str = "tmux"

    def _tmux(
        self,
        *args: str,
        token: CancellationToken | None = None,
        check: bool = True,
    ) -> str:
        return self.runner.run([self.binary, *args], token=token, check=check).output

    @staticmethod
    def is_in_tmux() -> bool:
        """Check if the current process is running inside a tmux session."""
        return bool(os.environ.get("TMUX"))

    @staticmethod
    def current_pane() -> str:
        """Pane id (e.g. "%3") of the pane this process runs in, empty outside tmux."""
        return os.environ.get("TMUX_PANE", "")

    def check_dependencies(self) -> list[str]:
        """Check for required dependencies and return list of missing ones."""
        try:
            version = self._tmux("-V")
            logger.debug(f"tmux version: {version.strip()}")
        except ExternalToolError:
            logger.warning("tmux not found or not working")
            return ["tmux"]
        return []

    def ensure_dependencies(self) -> None:
        """Ensure all required dependencies are installed."""
        missing = self.check_dependencies()
        if missing:
            raise DependencyMissingError(missing)

    def get_pane_base_index(self, token: CancellationToken | None = None) -> int:
        """Read tmux's global pane-base-index setting.

        Returns:
            The configured base index, or 0 when the option is not set

        Raises:
            ExternalToolError: If tmux reports a value that is not an integer
        """
        result = self.runner.run(
            [self.binary, "show-options", "-gv", "pane-base-index"],
            token=token,
            check=False,
        )
        if not result.success:
            logger.debug("pane-base-index not set, defaulting to 0")
            return 0

        value = result.output.strip()
        try:
            return int(value)
        except ValueError as e:
            raise ExternalToolError(
                result.args,
                output=result.output,
                message=f"failed to parse pane-base-index: {value!r}",
            ) from e

    def new_window(
        self,
        name: str,
        workdir: Path,
        token: CancellationToken | None = None,
    ) -> str:
        """Create a window in the current session and make it active.

        Args:
            name: Window name (a window identity)
            workdir: Starting directory for the window's first pane

        Returns:
            The new window's id (e.g. "@7"), usable as a stable target
        """
        logger.info(f"Creating tmux window: name={name}, workdir={workdir}")
        output = self._tmux(
            "new-window",
            "-n",
            name,
            "-c",
            str(workdir),
            "-P",
            "-F",
            "#{window_id}",
            token=token,
        )
        return output.strip()

    def list_windows(self, token: CancellationToken | None = None) -> list[WindowInfo]:
        """List windows of the current session."""
        output = self._tmux("list-windows", "-F", "#{window_index}:#{window_name}", token=token)
        windows: list[WindowInfo] = []
        for line in output.splitlines():
            index, sep, name = line.partition(":")
            if sep and index:
                windows.append(WindowInfo(index=index, name=name))
        return windows

    def find_by_worktree(
        self,
        worktree_name: str,
        repo_name: str | None = None,
        token: CancellationToken | None = None,
    ) -> WindowInfo:
        """Find the window bound to a worktree.

        When a repository name is given, an exact identity match wins over a
        suffix match; otherwise the first window whose name ends with
        "|<worktree_name>" is returned.

        Returns:
            The matching window, or an empty WindowInfo if there is none
        """
        windows = self.list_windows(token=token)

        if repo_name:
            identity = window_identity(repo_name, worktree_name)
            for window in windows:
                if window.name == identity:
                    return window

        suffix = f"{WINDOW_NAME_SEPARATOR}{worktree_name}"
        for window in windows:
            if window.name.endswith(suffix):
                return window

        logger.debug(f"No tmux window found for worktree: {worktree_name}")
        return WindowInfo()

    def exists(self, worktree_name: str, token: CancellationToken | None = None) -> bool:
        """Check whether a window is bound to the worktree."""
        found = self.find_by_worktree(worktree_name, token=token).found
        logger.debug(f"window exists({worktree_name}): {found}")
        return found

    def switch_to(self, worktree_name: str, token: CancellationToken | None = None) -> None:
        """Make the worktree's window the active one.

        Raises:
            NotFoundError: If no window is bound to the worktree
        """
        window = self.find_by_worktree(worktree_name, token=token)
        if not window.found:
            raise NotFoundError(f"no tmux window found for worktree: {worktree_name}")
        self._tmux("select-window", "-t", window.index, token=token)

    def get_panes_for_window(
        self,
        target: str,
        token: CancellationToken | None = None,
    ) -> list[str]:
        """List the pane ids (e.g. "%3") of a window."""
        output = self._tmux("list-panes", "-t", target, "-F", "#{pane_id}", token=token)
        return [line.strip() for line in output.splitlines() if line.strip()]

    def window_has_current_pane(
        self,
        repo_name: str,
        worktree_name: str,
        token: CancellationToken | None = None,
    ) -> bool:
        """Check whether this process runs in a pane of the worktree's window."""
        own_pane = self.current_pane()
        if not own_pane:
            return False
        window = self.find_by_worktree(worktree_name, repo_name=repo_name, token=token)
        return window.found and own_pane in self.get_panes_for_window(window.index, token=token)

    def close(
        self,
        repo_name: str,
        worktree_name: str,
        token: CancellationToken | None = None,
    ) -> None:
        """Interrupt every pane in the worktree's window, then kill the window.

        Interrupting first lets dev servers and watchers shut down; killing
        first can orphan their children. The caller's own pane is not
        interrupted: the kill ends it anyway, and a C-c there would cancel
        the command that is doing the closing.

        Raises:
            NotFoundError: If no window is bound to the worktree
            ExternalToolError: If tmux fails to kill the window
        """
        window = self.find_by_worktree(worktree_name, repo_name=repo_name, token=token)
        if not window.found:
            raise NotFoundError(f"no tmux window found with name: {worktree_name}")

        own_pane = self.current_pane()
        for pane in self.get_panes_for_window(window.index, token=token):
            if pane == own_pane:
                logger.debug(f"Not interrupting own pane {pane}")
                continue
            result = self.runner.run(
                [self.binary, "send-keys", "-t", pane, INTERRUPT_KEYS],
                token=token,
                check=False,
            )
            if not result.success:
                logger.warning(f"Failed to interrupt pane {pane}: {result.output.strip()}")

        logger.info(f"Killing tmux window {window.index} ({window.name})")
        self._tmux("kill-window", "-t", window.index, token=token)

    @staticmethod
    def pane_target(window_id: str, pane_index: int) -> str:
        """Build a target for a pane of a specific window."""
        return f"{window_id}.{pane_index}"

    def apply_step(
        self,
        window_id: str,
        step: LayoutStep,
        workdir: Path,
        token: CancellationToken | None = None,
    ) -> None:
        """Execute one layout step against a window."""
        if step.operation is PaneOperation.SELECT_PANE:
            self.select_pane(window_id, step.target, token=token)
            return
        below = step.operation is PaneOperation.SPLIT_BELOW
        self.split_pane(window_id, step.target, workdir, below=below, token=token)

    def split_pane(
        self,
        window_id: str,
        pane_index: int,
        workdir: Path,
        below: bool = False,
        token: CancellationToken | None = None,
    ) -> None:
        """Split a pane side by side, or top and bottom when below is set."""
        target = self.pane_target(window_id, pane_index)
        logger.debug(f"Splitting pane {target} ({'below' if below else 'adjacent'})")
        self._tmux(
            "split-window", "-v" if below else "-h", "-t", target, "-c", str(workdir), token=token
        )

    def select_pane(
        self,
        window_id: str,
        pane_index: int,
        token: CancellationToken | None = None,
    ) -> None:
        """Focus a pane of a window."""
        self._tmux("select-pane", "-t", self.pane_target(window_id, pane_index), token=token)

    def send_keys(
        self,
        window_id: str,
        pane_index: int,
        keys: str,
        token: CancellationToken | None = None,
    ) -> None:
        """Type a command into a pane and press Enter.

        The keys are trusted configuration; see the module docstring.
        """
        target = self.pane_target(window_id, pane_index)
        logger.debug(f"Sending keys to pane {target}: {keys}")
        try:
            self._tmux("send-keys", "-t", target, keys, "C-m", token=token)
        except ExternalToolError as e:
            raise ExternalToolError(
                e.command,
                output=e.output,
                exit_code=e.exit_code,
                message=f"failed to send keys to pane {pane_index}: {e.output.strip() or e}",
            ) from e
