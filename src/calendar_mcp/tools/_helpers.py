"""Shared helpers for tool modules."""

from __future__ import annotations

import re
from datetime import datetime

from mcp import types

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def text_result(text: str) -> types.CallToolResult:
    """A successful tool result carrying one text block."""
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=False)


def error_result(text: str) -> types.CallToolResult:
    """A tool-level failure the host can show to the user."""
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=True)


def validate_emails(emails: list[str]) -> str | None:
    """Return an error message if any email is clearly invalid, else None."""
    bad = [e for e in emails if not _EMAIL_RE.match(e)]
    if bad:
        return f"Invalid email address(es): {', '.join(bad)}"
    return None


def _parse_iso_datetime(value: str) -> datetime:
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = f"{normalized[:-1]}+00:00"
    return datetime.fromisoformat(normalized)


def validate_datetime(value: str, field_name: str) -> str | None:
    """Validate an ISO 8601 datetime string."""
    try:
        _parse_iso_datetime(value)
    except ValueError:
        return f"{field_name} must be a valid ISO 8601 datetime."
    return None


def validate_datetime_order(
    start_time: str,
    end_time: str,
    *,
    start_field: str = "start_time",
    end_field: str = "end_time",
) -> str | None:
    """Validate start/end datetime format and ensure start is not after end."""
    if err := validate_datetime(start_time, start_field):
        return err
    if err := validate_datetime(end_time, end_field):
        return err

    start = _parse_iso_datetime(start_time)
    end = _parse_iso_datetime(end_time)

    # Naive and offset-aware values cannot be ordered; the calendar zone
    # decides how a naive value is read, so leave those to the provider.
    if (start.tzinfo is None) != (end.tzinfo is None):
        return None

    if start > end:
        return f"{start_field} must not be after {end_field}."
    return None
