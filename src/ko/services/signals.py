"""Scoped conversion of interrupt signals into token cancellation."""

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from ko.console import console
from ko.logging_config import get_logger
from ko.services.runner import CancellationToken

logger = get_logger("ko.services.signals")

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@contextmanager
def cancellable(timeout: float | None = None) -> Iterator[CancellationToken]:
    """Provide a cancellation token that fires on Ctrl+C or SIGTERM.

    The previous handlers are restored when the block exits, whichever way it
    exits, so repeated invocations in one process never stack handlers.
    Signal handlers can only be installed from the main thread; elsewhere the
    token is still usable but only fires on its deadline or an explicit cancel.

    Args:
        timeout: Optional deadline in seconds for everything run under the token

    Yields:
        A fresh CancellationToken
    """
    token = CancellationToken(timeout=timeout)

    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def handle_signal(signum: int, _frame: object) -> None:
        if token.cancelled:
            return
        logger.warning(f"Received signal {signum}, cancelling")
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        token.cancel()

    original_handlers = {sig: signal.signal(sig, handle_signal) for sig in CANCEL_SIGNALS}
    try:
        yield token
    finally:
        for sig, handler in original_handlers.items():
            signal.signal(sig, handler)
