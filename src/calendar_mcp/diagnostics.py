"""Diagnostic logging kept off the protocol stream.

stdout carries MCP frames and nothing else.  Every log record (ours and
those of dependencies such as ``mcp``, ``httpx`` and ``google.auth``) goes
to a single stderr handler installed on the root logger, and anything
printed to ``sys.stdout`` while the server runs is captured by
:class:`StdoutRedirect` and re-emitted as a log record.
"""

from __future__ import annotations

import io
import logging
import sys
import threading
from datetime import UTC, datetime
from typing import TextIO

logger = logging.getLogger(__name__)

# silent < error < info < debug; a record passes when its level is at or below
# the configured threshold.
_STDLIB_LEVELS = {
    "silent": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

STDOUT_LOGGER_NAME = "calendar_mcp.stdout"


def resolve_level(name: str | None) -> str:
    """Normalise an ``MCP_LOG_LEVEL`` value, defaulting to ``debug``."""
    normalized = (name or "").strip().lower()
    if normalized in _STDLIB_LEVELS:
        return normalized
    return "debug"


class DiagnosticFormatter(logging.Formatter):
    """``<ISO timestamp> <LEVEL> <logger>: <message>``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        return datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds")


def configure_logging(level: str | None, stream: TextIO | None = None) -> logging.Handler:
    """Install the stderr diagnostic handler on the root logger.

    Replaces any handlers already present so no dependency keeps a handler
    pointing at stdout.  Returns the installed handler.
    """
    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(DiagnosticFormatter())
    handler.setLevel(_STDLIB_LEVELS[resolved])

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(_STDLIB_LEVELS[resolved])

    if level and resolved != level.strip().lower():
        logger.warning("Unknown MCP_LOG_LEVEL %r, using %s", level, resolved)
    return handler


class StdoutRedirect(io.TextIOBase):
    """Text stream that turns stray stdout writes into log records.

    Output is buffered until a newline so a ``print()`` call becomes one
    record.  Records are tagged ``[stdout]`` on their own logger.  Writes may
    come from worker threads as well as the event loop.
    """

    def __init__(self, target: logging.Logger | None = None) -> None:
        super().__init__()
        self._logger = target or logging.getLogger(STDOUT_LOGGER_NAME)
        self._buffer = ""
        self._lock = threading.Lock()

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        with self._lock:
            self._buffer += text
            *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._emit(line)
        return len(text)

    def flush(self) -> None:
        with self._lock:
            line, self._buffer = self._buffer, ""
        self._emit(line)

    def _emit(self, line: str) -> None:
        if line.strip():
            self._logger.info("[stdout] %s", line)
