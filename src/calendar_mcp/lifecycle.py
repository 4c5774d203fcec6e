"""Process lifecycle guard: failure traps and signal-driven shutdown."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import signal
import threading
from collections.abc import Callable
from types import FrameType
from typing import Any

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class State(enum.Enum):
    RUNNING = "running"
    TERMINATING = "terminating"


class LifecycleGuard:
    """Keeps the process alive through stray failures and exits on signals.

    Failures that escape the dispatcher (exceptions in worker threads,
    unretrieved task exceptions) are logged and otherwise ignored.  A
    termination signal logs, flushes the diagnostic handlers and exits
    with status 0 at once; in-flight calls are not drained.
    """

    def __init__(self, exit_func: Callable[[int], Any] = os._exit) -> None:
        self.state = State.RUNNING
        self._exit = exit_func

    def install(self) -> None:
        """Register signal handlers and the thread failure hook."""
        for sig in TERMINATION_SIGNALS:
            signal.signal(sig, self._handle_signal)
        threading.excepthook = self._thread_excepthook

    def watch_event_loop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Route the loop's unhandled asynchronous failures to the log."""
        (loop or asyncio.get_running_loop()).set_exception_handler(self._loop_exception_handler)

    def report_failure(self, exc: BaseException, origin: str) -> None:
        logger.error("Unhandled failure in %s: %s", origin, exc, exc_info=exc)

    def _loop_exception_handler(
        self,
        loop: asyncio.AbstractEventLoop,
        context: dict[str, Any],
    ) -> None:
        exc = context.get("exception")
        if exc is not None:
            self.report_failure(exc, "event loop")
        else:
            logger.error("Unhandled asynchronous failure: %s", context.get("message"))

    def _thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit or args.exc_value is None:
            return
        name = args.thread.name if args.thread is not None else "unknown thread"
        self.report_failure(args.exc_value, name)

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        self.terminate(signum)

    def terminate(self, signum: int) -> None:
        """Move to TERMINATING and exit with status 0."""
        if self.state is State.TERMINATING:
            return
        self.state = State.TERMINATING
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        for handler in logging.getLogger().handlers:
            handler.flush()
        self._exit(0)
