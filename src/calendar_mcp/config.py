"""Process configuration loaded once at startup.

Values come from the process environment, falling back to a ``.env`` file
(``DOTENV_PATH`` overrides its location).  The MCP host normally passes the
credentials through its ``env`` block, so the file is optional.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import dotenv_values

DEFAULT_TIME_ZONE = "Asia/Seoul"
DEFAULT_LOG_LEVEL = "debug"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or unusable."""


@dataclass(frozen=True, slots=True)
class Settings:
    """Read-only settings for the lifetime of the process."""

    client_id: str
    client_secret: str
    refresh_token: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL
    time_zone: str = DEFAULT_TIME_ZONE


def _read_environment(environ: Mapping[str, str] | None) -> dict[str, str]:
    if environ is not None:
        return dict(environ)
    dotenv_path = os.environ.get("DOTENV_PATH", ".env")
    merged = {k: v for k, v in dotenv_values(dotenv_path).items() if v is not None}
    merged.update(os.environ)
    return merged


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from the environment.

    Args:
        environ: Explicit variables to use instead of ``os.environ`` and
            the ``.env`` file (used by tests).

    Raises:
        ConfigurationError: If ``GOOGLE_CLIENT_ID`` or
            ``GOOGLE_CLIENT_SECRET`` is missing, or the configured calendar
            time zone is not a valid IANA name.
    """
    env = _read_environment(environ)

    client_id = env.get("GOOGLE_CLIENT_ID", "").strip()
    client_secret = env.get("GOOGLE_CLIENT_SECRET", "").strip()
    if not client_id or not client_secret:
        raise ConfigurationError(
            "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET environment variables are required"
        )

    time_zone = env.get("GOOGLE_CALENDAR_TIMEZONE", "").strip() or DEFAULT_TIME_ZONE
    try:
        ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(
            f"GOOGLE_CALENDAR_TIMEZONE must be a valid IANA timezone, got {time_zone!r}"
        ) from exc

    return Settings(
        client_id=client_id,
        client_secret=client_secret,
        refresh_token=env.get("GOOGLE_REFRESH_TOKEN", "").strip() or None,
        log_level=env.get("MCP_LOG_LEVEL", "").strip().lower() or DEFAULT_LOG_LEVEL,
        time_zone=time_zone,
    )
