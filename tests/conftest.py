"""Shared test fixtures."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, patch

import pytest

from calendar_mcp.app import AppContext, build_registry
from calendar_mcp.auth import GoogleCredentials
from calendar_mcp.calendar_client import CalendarClient
from calendar_mcp.config import Settings
from calendar_mcp.registry import Dispatcher


@pytest.fixture
def settings():
    return Settings(
        client_id="client-id",
        client_secret="client-secret",
        refresh_token="refresh-token",
        time_zone="Asia/Seoul",
    )


@pytest.fixture
def mock_calendar(settings):
    """A CalendarClient whose insert call is mocked."""
    client = CalendarClient(GoogleCredentials(settings))
    client.insert_event = AsyncMock()
    return client


@pytest.fixture
def app_ctx(settings, mock_calendar):
    return AppContext(settings=settings, calendar=mock_calendar)


@pytest.fixture
def dispatcher(app_ctx):
    return Dispatcher(build_registry(), app_ctx)


@pytest.fixture(autouse=True)
def patch_auth():
    """Prevent real token refreshes during tests.

    Yields the patcher so tests that need the real authorization headers
    can stop/start it (see test_auth.py).
    """
    patcher = patch.object(
        GoogleCredentials,
        "authorization_headers",
        AsyncMock(
            return_value={
                "Authorization": "Bearer fake-token",
                "Content-Type": "application/json",
            }
        ),
    )
    patcher.start()
    yield patcher
    patcher.stop()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back after a test reconfigures logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
