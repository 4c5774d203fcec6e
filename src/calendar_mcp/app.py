"""Application context and MCP server construction.

Everything a tool call needs lives on :class:`AppContext`, built once at
startup and handed to the dispatcher; there are no module-level clients.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.lowlevel import Server

from calendar_mcp.auth import GoogleCredentials
from calendar_mcp.calendar_client import CalendarClient
from calendar_mcp.config import Settings
from calendar_mcp.registry import Dispatcher, ToolRegistry
from calendar_mcp.tools.events import CREATE_EVENT_TOOL

SERVER_NAME = "mcp_calendar"
SERVER_VERSION = "1.0.0"


@dataclass
class AppContext:
    """State shared across all tool invocations."""

    settings: Settings
    calendar: CalendarClient


@asynccontextmanager
async def app_context(settings: Settings) -> AsyncIterator[AppContext]:
    """Create and tear down the calendar client for the session."""
    client = CalendarClient(GoogleCredentials(settings))
    try:
        yield AppContext(settings=settings, calendar=client)
    finally:
        await client.close()


def build_registry() -> ToolRegistry:
    return ToolRegistry([CREATE_EVENT_TOOL])


def build_server(context: AppContext, registry: ToolRegistry | None = None) -> Server:
    """Create the MCP server with the dispatcher wired in."""
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)
    Dispatcher(registry or build_registry(), context).register(server)
    return server
