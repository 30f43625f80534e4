"""Subprocess execution with cancellation and timeout support.

Every git and tmux call in ko goes through ProcessRunner, which makes it the
one place that touches the OS process table.
"""

import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path

from ko.exceptions import CancelledError, ExternalToolError, TimedOutError
from ko.logging_config import get_logger, log_subprocess_result

logger = get_logger("ko.services.runner")

# Seconds between cancellation checks while a child is running
POLL_INTERVAL = 0.05


class CancellationToken:
    """Cancellation flag with an optional deadline, owned by one invocation."""

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Mark the token cancelled. Safe to call more than once."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_done(self) -> None:
        """Raise CancelledError or TimedOutError if the token has fired."""
        if self.cancelled:
            raise CancelledError
        if self.expired:
            raise TimedOutError


@dataclass
class CommandResult:
    """Result of a finished external command."""

    args: list[str]
    returncode: int
    output: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class ProcessRunner:
    """Runs external commands, surfacing their output verbatim on failure."""

    poll_interval: float = POLL_INTERVAL

    def run(
        self,
        args: list[str],
        token: CancellationToken | None = None,
        cwd: Path | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a command to completion and capture its combined output.

        Args:
            args: Command and arguments
            token: Cancellation token; checked before starting and while running
            cwd: Working directory for the command
            check: Raise ExternalToolError on a non-zero exit code

        Returns:
            The command result

        Raises:
            CancelledError: If the token was cancelled before or during the run
            TimedOutError: If the token's deadline passed before or during the run
            ExternalToolError: If the command could not start, or exited non-zero
                and check is True
        """
        if token is not None:
            token.raise_if_done()

        logger.debug(f"Running: {' '.join(args)}")
        try:
            proc = subprocess.Popen(
                args,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            logger.warning(f"Failed to execute {args[0]}: {e}")
            raise ExternalToolError(args, message=f"failed to execute {args[0]}: {e}") from e

        output = self._communicate(proc, args, token)
        returncode = proc.returncode
        log_subprocess_result(logger, args, returncode, output, success=returncode == 0)

        if check and returncode != 0:
            raise ExternalToolError(args, output=output, exit_code=returncode)
        return CommandResult(args=args, returncode=returncode, output=output)

    def _communicate(
        self,
        proc: subprocess.Popen[str],
        args: list[str],
        token: CancellationToken | None,
    ) -> str:
        if token is None:
            stdout, _ = proc.communicate()
            return stdout or ""

        while True:
            try:
                stdout, _ = proc.communicate(timeout=self.poll_interval)
                return stdout or ""
            except subprocess.TimeoutExpired:
                if token.cancelled or token.expired:
                    self._kill(proc)
                    logger.info(f"Aborted: {' '.join(args)}")
                    token.raise_if_done()

    @staticmethod
    def _kill(proc: subprocess.Popen[str]) -> None:
        proc.kill()
        proc.communicate()

    def spawn_detached(self, args: list[str], cwd: Path | None = None) -> int:
        """Start a process that outlives this one and is never awaited.

        The child gets its own session and process group, so signals aimed at
        the caller's terminal do not reach it, and it holds no pipes to us.

        Args:
            args: Command and arguments
            cwd: Working directory for the child

        Returns:
            The child's pid

        Raises:
            ExternalToolError: If the process could not be started
        """
        logger.info(f"Spawning detached process: {' '.join(args)}")
        try:
            proc = subprocess.Popen(
                args,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
                close_fds=True,
            )
        except OSError as e:
            raise ExternalToolError(
                args, message=f"failed to spawn detached cleanup process: {e}"
            ) from e
        return proc.pid
