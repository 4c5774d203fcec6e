"""Tests for the process lifecycle guard."""

from __future__ import annotations

import asyncio
import logging
import signal
import threading
from unittest.mock import MagicMock, patch

import pytest

from calendar_mcp.lifecycle import TERMINATION_SIGNALS, LifecycleGuard, State


class TestTermination:
    def test_starts_running(self):
        assert LifecycleGuard(exit_func=MagicMock()).state is State.RUNNING

    def test_signal_terminates_with_status_zero(self, caplog):
        exit_func = MagicMock()
        guard = LifecycleGuard(exit_func=exit_func)

        with caplog.at_level(logging.INFO, logger="calendar_mcp.lifecycle"):
            guard._handle_signal(signal.SIGTERM, None)

        assert guard.state is State.TERMINATING
        exit_func.assert_called_once_with(0)
        assert any("SIGTERM" in r.getMessage() for r in caplog.records)

    def test_second_signal_ignored(self):
        exit_func = MagicMock()
        guard = LifecycleGuard(exit_func=exit_func)

        guard.terminate(signal.SIGINT)
        guard.terminate(signal.SIGTERM)

        exit_func.assert_called_once_with(0)

    def test_install_registers_signal_handlers(self):
        guard = LifecycleGuard(exit_func=MagicMock())

        with (
            patch("calendar_mcp.lifecycle.signal.signal") as register,
            patch("calendar_mcp.lifecycle.threading") as fake_threading,
        ):
            guard.install()

        registered = {c.args[0] for c in register.call_args_list}
        assert registered == set(TERMINATION_SIGNALS)
        assert signal.SIGINT in registered
        assert signal.SIGTERM in registered
        assert fake_threading.excepthook == guard._thread_excepthook


class TestFailureTraps:
    def test_thread_failure_logged_and_still_running(self, caplog):
        guard = LifecycleGuard(exit_func=MagicMock())
        error = RuntimeError("worker died")
        args = MagicMock(exc_type=RuntimeError, exc_value=error, thread=threading.current_thread())

        with caplog.at_level(logging.ERROR, logger="calendar_mcp.lifecycle"):
            guard._thread_excepthook(args)

        assert guard.state is State.RUNNING
        assert any("worker died" in r.getMessage() for r in caplog.records)

    def test_thread_system_exit_ignored(self, caplog):
        guard = LifecycleGuard(exit_func=MagicMock())
        args = MagicMock(exc_type=SystemExit, exc_value=SystemExit(0), thread=None)

        with caplog.at_level(logging.ERROR, logger="calendar_mcp.lifecycle"):
            guard._thread_excepthook(args)

        assert not caplog.records

    @pytest.mark.asyncio
    async def test_unretrieved_task_failure_logged(self, caplog):
        exit_func = MagicMock()
        guard = LifecycleGuard(exit_func=exit_func)
        loop = asyncio.get_running_loop()
        previous = loop.get_exception_handler()
        guard.watch_event_loop(loop)
        try:
            with caplog.at_level(logging.ERROR, logger="calendar_mcp.lifecycle"):
                loop.call_exception_handler(
                    {"message": "Task exception was never retrieved", "exception": ValueError("lost")}
                )
        finally:
            loop.set_exception_handler(previous)

        assert guard.state is State.RUNNING
        exit_func.assert_not_called()
        assert any("lost" in r.getMessage() for r in caplog.records)

    def test_loop_failure_without_exception(self, caplog):
        guard = LifecycleGuard(exit_func=MagicMock())

        with caplog.at_level(logging.ERROR, logger="calendar_mcp.lifecycle"):
            guard._loop_exception_handler(MagicMock(), {"message": "socket went away"})

        assert any("socket went away" in r.getMessage() for r in caplog.records)
