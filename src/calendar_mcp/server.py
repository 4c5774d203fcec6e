"""MCP server entry point for Google Calendar event creation."""

from __future__ import annotations

import logging
import os
import sys
from contextlib import redirect_stdout
from io import TextIOWrapper

import anyio
from mcp.server.stdio import stdio_server

from calendar_mcp.app import app_context, build_server
from calendar_mcp.config import ConfigurationError, Settings, load_settings
from calendar_mcp.diagnostics import StdoutRedirect, configure_logging, resolve_level
from calendar_mcp.lifecycle import LifecycleGuard

logger = logging.getLogger(__name__)


async def serve(settings: Settings, guard: LifecycleGuard) -> None:
    """Attach to stdio and serve requests until the host disconnects."""
    guard.watch_event_loop()

    # Grab the real stdio streams before stdout is redirected; only MCP
    # frames are written to this one.
    protocol_in = anyio.wrap_file(TextIOWrapper(sys.stdin.buffer, encoding="utf-8"))
    protocol_out = anyio.wrap_file(TextIOWrapper(sys.stdout.buffer, encoding="utf-8"))

    async with app_context(settings) as context:
        server = build_server(context)
        with redirect_stdout(StdoutRedirect()):
            async with stdio_server(protocol_in, protocol_out) as (read_stream, write_stream):
                logger.info("Calendar MCP Server running on stdio")
                await server.run(
                    read_stream,
                    write_stream,
                    server.create_initialization_options(),
                )
    logger.info("Transport closed, server stopped")


def run() -> int:
    """Start the server and return the process exit status."""
    early_level = resolve_level(os.environ.get("MCP_LOG_LEVEL"))
    configure_logging(os.environ.get("MCP_LOG_LEVEL"))

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("Error: %s", exc)
        return 1

    if resolve_level(settings.log_level) != early_level:
        configure_logging(settings.log_level)
    if not settings.refresh_token:
        logger.warning("GOOGLE_REFRESH_TOKEN is not set; create_event calls will fail")

    guard = LifecycleGuard()
    guard.install()
    logger.debug("Server initialized (timezone=%s)", settings.time_zone)

    try:
        anyio.run(serve, settings, guard)
    except Exception:
        logger.exception("Fatal error running server")
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
