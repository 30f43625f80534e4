"""Worktree session lifecycle: create, switch and clean up tmux-bound worktrees."""

import shlex
import shutil
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ko.console import print_info, print_success, print_warning
from ko.exceptions import (
    ExternalToolError,
    KoError,
    NotFoundError,
    NotInEnvironmentError,
    ValidationError,
    ValidationReason,
)
from ko.logging_config import FALLBACK_ERROR_LOG, get_logger, write_fallback_error
from ko.models.config import WORKTREE_NAMESPACE, SessionConfig, Settings, get_settings
from ko.services.config_loader import load_config
from ko.services.git import GitService
from ko.services.layout import plan_pane_layout
from ko.services.runner import CancellationToken, ProcessRunner
from ko.services.tmux import TmuxService, WindowInfo, window_identity
from ko.utils.validation import validate_path_within_repository, validate_worktree_name

logger = get_logger("ko.services.session")


class CleanupOutcome(Enum):
    """How a cleanup call finished."""

    REMOVED = "removed"  # window closed (if any) and worktree removed
    WINDOW_ONLY = "window_only"  # no worktree directory, only the window was handled
    DETACHED = "detached"  # removal handed off to a detached process


def worktree_path_for(repo_root: Path, worktree_name: str) -> Path:
    """Compute the worktree directory for a name and check it stays in the repository.

    Raises:
        ValidationError: If the name is unsafe or the path escapes the repository
    """
    validate_worktree_name(worktree_name)
    return validate_path_within_repository(
        repo_root / WORKTREE_NAMESPACE / worktree_name,
        repo_root,
    )


def is_within(path: Path, directory: Path) -> bool:
    """Check whether path is directory itself or somewhere below it."""
    path = path.resolve()
    directory = directory.resolve()
    return path == directory or directory in path.parents


def setup_script_path(setup_script: str) -> Path | None:
    """Path of the script a setup command runs, or None for a bare command.

    The command is split the way a shell would, so "'my dir/setup.sh' --fast"
    names "my dir/setup.sh". Commands whose first word has no slash are
    looked up on PATH and have no script path.
    """
    try:
        words = shlex.split(setup_script)
    except ValueError:
        return None
    if not words or "/" not in words[0]:
        return None
    return Path(words[0])


def detached_cleanup_command(worktree_path: Path) -> list[str]:
    """Command line that re-runs ko as the detached cleanup executor."""
    return [
        sys.executable,
        "-m",
        "ko",
        "cleanup",
        "--detached",
        "--detached-path",
        str(worktree_path),
    ]


@dataclass
class SessionLifecycleManager:
    """Binds worktrees to tmux windows and tears the pairs down."""

    tmux: TmuxService
    git: GitService
    runner: ProcessRunner
    settings: Settings = field(default_factory=get_settings)
    config_loader: Callable[[Path], SessionConfig] = load_config
    sleep: Callable[[float], None] = time.sleep

    def _require_tmux(self) -> None:
        if not self.tmux.is_in_tmux():
            raise NotInEnvironmentError(
                "not in a tmux session\nPlease run this command from within a tmux session"
            )

    def _require_repo(self, token: CancellationToken | None) -> None:
        if not self.git.is_repo(token=token):
            raise NotInEnvironmentError(
                "not in a git repository\nPlease run this command from within a git repository"
            )

    def exists(self, worktree_name: str, token: CancellationToken | None = None) -> bool:
        """Check whether a tmux window is bound to the worktree."""
        validate_worktree_name(worktree_name)
        return self.tmux.exists(worktree_name, token=token)

    def find_by_worktree(
        self,
        worktree_name: str,
        token: CancellationToken | None = None,
    ) -> WindowInfo:
        """Locate the tmux window bound to the worktree; empty when absent."""
        validate_worktree_name(worktree_name)
        return self.tmux.find_by_worktree(worktree_name, token=token)

    def ensure_setup_script(
        self,
        worktree_path: Path,
        setup_script: str,
        token: CancellationToken | None = None,
    ) -> None:
        """Make the setup script available inside the worktree.

        Only applies when the setup command starts with a path (e.g.
        "./bin/setup --fast"); bare commands resolved from PATH are left alone.
        A script missing from the worktree, typically because it is untracked,
        is copied from the main repository root.

        Raises:
            NotFoundError: If the script exists in neither place
            ValidationError: If the script path escapes the main repository
        """
        script = setup_script_path(setup_script)
        if script is None:
            return

        target = script if script.is_absolute() else worktree_path / script
        if target.exists():
            return
        if script.is_absolute():
            raise NotFoundError(f"setup script not found: {script}")

        main_root = self.git.main_repo_root(token=token)
        source = validate_path_within_repository(main_root / script, main_root)
        if not source.is_file():
            raise NotFoundError(f"setup script not found in worktree or main repo: {script}")

        logger.info(f"Copying setup script {source} -> {target}")
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)

    def create(
        self,
        repo_name: str,
        worktree_name: str,
        worktree_path: Path,
        config: SessionConfig,
        token: CancellationToken | None = None,
    ) -> str:
        """Create the worktree's tmux window with one pane per configured command.

        The setup command goes to the first pane, pane command i to the pane
        the layout plan assigns it, and focus returns to the setup pane. A
        failure part way through leaves the partial window in place for
        cleanup to reclaim.

        Args:
            repo_name: Repository name used in the window identity
            worktree_name: Validated worktree name
            worktree_path: Directory the panes start in
            config: Setup and pane commands
            token: Cancellation token

        Returns:
            The tmux window id

        Raises:
            ValidationError: If the worktree name is unsafe
            NotInEnvironmentError: If not running inside tmux
            NotFoundError: If the setup script cannot be found
            ExternalToolError: If any tmux step fails
        """
        validate_worktree_name(worktree_name)
        self._require_tmux()
        worktree_path = Path(worktree_path)

        self.ensure_setup_script(worktree_path, config.setup_script, token=token)

        base_index = self.tmux.get_pane_base_index(token=token)
        window_id = self.tmux.new_window(
            window_identity(repo_name, worktree_name),
            worktree_path,
            token=token,
        )

        plan = plan_pane_layout(base_index, len(config.pane_commands))
        logger.debug(f"Layout plan for {worktree_name}: {plan}")
        for step in plan.steps:
            self.tmux.apply_step(window_id, step, worktree_path, token=token)

        if config.setup_script:
            self.tmux.send_keys(window_id, plan.setup_pane, config.setup_script, token=token)

        for pane, command in zip(plan.command_panes, config.pane_commands, strict=True):
            self.tmux.send_keys(window_id, pane, command, token=token)

        self.tmux.select_pane(window_id, plan.focus_pane, token=token)
        logger.info(f"Window {window_id} ready for {worktree_name} ({plan.pane_count} panes)")
        return window_id

    def switch(self, worktree_name: str, token: CancellationToken | None = None) -> bool:
        """Switch to the worktree's window, recreating it if it was closed.

        Returns:
            True if a new window had to be created

        Raises:
            NotFoundError: If the worktree itself does not exist
        """
        validate_worktree_name(worktree_name)
        self._require_tmux()
        self._require_repo(token)

        if self.tmux.exists(worktree_name, token=token):
            print_info(f"Switching to existing session: {WORKTREE_NAMESPACE}/{worktree_name}")
            self.tmux.switch_to(worktree_name, token=token)
            return False

        repo_root = self.git.main_repo_root(token=token)
        worktree_path = worktree_path_for(repo_root, worktree_name)
        if not worktree_path.is_dir():
            raise NotFoundError(
                f"worktree {WORKTREE_NAMESPACE}/{worktree_name} does not exist\n"
                f"Use 'ko new {worktree_name}' to create it"
            )

        config = self.config_loader(repo_root)
        print_info(
            f"Creating new tmux session for existing worktree: "
            f"{WORKTREE_NAMESPACE}/{worktree_name}"
        )
        self.create(repo_root.name, worktree_name, worktree_path, config, token=token)
        return True

    def cleanup(
        self,
        repo_name: str | None,
        worktree_name: str,
        token: CancellationToken | None = None,
    ) -> CleanupOutcome:
        """Close the worktree's window and remove the worktree.

        When we are in tmux and the caller either works inside the worktree or
        runs in one of its window's panes, closing the window kills the
        caller's own shell. In that case removal is handed to a detached copy
        of ko and this returns at once.

        Args:
            repo_name: Repository name, or None to derive it from git
            worktree_name: Worktree to clean up
            token: Cancellation token

        Returns:
            How the cleanup finished

        Raises:
            ValidationError: If the worktree name is unsafe
            NotInEnvironmentError: If not inside a git repository
            ExternalToolError: If git fails to remove the worktree or the
                detached process cannot be spawned
        """
        validate_worktree_name(worktree_name)
        self._require_repo(token)

        repo_root = self.git.main_repo_root(token=token)
        repo_name = repo_name or repo_root.name
        worktree_path = worktree_path_for(repo_root, worktree_name)
        display = f"{WORKTREE_NAMESPACE}/{worktree_name}"

        worktree_exists = worktree_path.is_dir()
        if not worktree_exists:
            print_warning(f"Worktree {display} not found")
            print_info("Will attempt to clean up tmux window only")

        in_tmux = self.tmux.is_in_tmux()
        if (
            in_tmux
            and worktree_exists
            and self._runs_inside(repo_name, worktree_name, worktree_path, token)
        ):
            print_info("Detected: running cleanup from within the target worktree")
            self._hand_off_cleanup(repo_name, worktree_name, worktree_path, repo_root, token)
            return CleanupOutcome.DETACHED

        window_closed = False
        if in_tmux:
            window_closed = self._close_window(repo_name, worktree_name, token)
        else:
            print_info("Not in a tmux session, skipping tmux cleanup")

        # kill-window signals the pane shells but does not wait for them, and
        # a shell still sitting in the directory makes git report it busy.
        if window_closed:
            print_info("Waiting for shell processes to terminate...")
            self.sleep(self.settings.shell_exit_delay)

        if not worktree_exists:
            return CleanupOutcome.WINDOW_ONLY

        print_info(f"Removing git worktree: {display}")
        self.git.remove_worktree(worktree_path, token=token, cwd=repo_root)
        print_success("Worktree removed successfully")
        return CleanupOutcome.REMOVED

    def _runs_inside(
        self,
        repo_name: str,
        worktree_name: str,
        worktree_path: Path,
        token: CancellationToken | None,
    ) -> bool:
        if is_within(Path.cwd(), worktree_path):
            return True
        try:
            return self.tmux.window_has_current_pane(repo_name, worktree_name, token=token)
        except ExternalToolError as e:
            logger.warning(f"Could not inspect panes of {worktree_name}: {e}")
            return False

    def _close_window(
        self,
        repo_name: str,
        worktree_name: str,
        token: CancellationToken | None,
    ) -> bool:
        try:
            self.tmux.close(repo_name, worktree_name, token=token)
        except (NotFoundError, ExternalToolError) as e:
            print_warning(str(e))
            return False
        print_success("Tmux window closed")
        return True

    def _hand_off_cleanup(
        self,
        repo_name: str,
        worktree_name: str,
        worktree_path: Path,
        repo_root: Path,
        token: CancellationToken | None,
    ) -> None:
        print_info("Spawning detached process to complete cleanup...")
        pid = self.runner.spawn_detached(detached_cleanup_command(worktree_path), cwd=repo_root)
        logger.info(f"Detached cleanup process {pid} will remove {worktree_path}")
        print_info("Worktree will be removed after window closure")

        # The child is already in its own session, so killing the window
        # (and with it our own pane) cannot take it down.
        self._close_window(repo_name, worktree_name, token)


@dataclass
class DetachedCleanupExecutor:
    """Removes a worktree from a process that has no terminal attached.

    Runs in the child spawned by SessionLifecycleManager.cleanup. Failures are
    appended to a fallback log file since there is nobody to show them to.
    """

    git: GitService
    delay: float = 2.0
    error_log: Path = FALLBACK_ERROR_LOG
    sleep: Callable[[float], None] = time.sleep

    def run(self, worktree_path: Path) -> None:
        """Wait for the parent's shell to exit, then remove the worktree.

        Raises:
            ValidationError: If the path is not an absolute ko worktree path
            ExternalToolError: If git fails to remove the worktree
        """
        logger.info(f"Detached cleanup started for {worktree_path}")
        try:
            self._check_path(worktree_path)
            self.sleep(self.delay)
            self.git.remove_worktree(worktree_path)
        except KoError as e:
            logger.error(f"Detached cleanup failed for {worktree_path}: {e}")
            write_fallback_error(f"Failed to remove worktree {worktree_path}: {e}", self.error_log)
            raise
        logger.info(f"Detached cleanup removed {worktree_path}")

    @staticmethod
    def _check_path(worktree_path: Path) -> None:
        if not worktree_path.is_absolute() or worktree_path.parent.name != WORKTREE_NAMESPACE:
            raise ValidationError(
                ValidationReason.OUTSIDE_REPOSITORY,
                f"not a ko worktree path: {worktree_path}",
            )
        validate_worktree_name(worktree_path.name)


def build_manager(
    settings: Settings | None = None,
    runner: ProcessRunner | None = None,
) -> SessionLifecycleManager:
    """Wire a manager whose services share one process runner."""
    settings = settings or get_settings()
    runner = runner or ProcessRunner()
    return SessionLifecycleManager(
        tmux=TmuxService(runner=runner, binary=settings.tmux_binary),
        git=GitService(runner=runner, binary=settings.git_binary),
        runner=runner,
        settings=settings,
    )


def build_detached_executor(
    settings: Settings | None = None,
    runner: ProcessRunner | None = None,
) -> DetachedCleanupExecutor:
    """Wire the executor used by `ko cleanup --detached`."""
    settings = settings or get_settings()
    runner = runner or ProcessRunner()
    return DetachedCleanupExecutor(
        git=GitService(runner=runner, binary=settings.git_binary),
        delay=settings.detached_delay,
        error_log=settings.fallback_error_log,
    )
