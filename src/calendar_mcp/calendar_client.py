"""Thin async HTTP client for the Google Calendar API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from calendar_mcp.auth import GoogleCredentials, TokenRefreshError
from calendar_mcp.models import CalendarEventDraft

CALENDAR_BASE_URL = "https://www.googleapis.com/calendar/v3"
PRIMARY_CALENDAR = "primary"

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RemoteCallError(Exception):
    """The calendar provider (or its token endpoint) rejected a call."""

    message: str
    status_code: int | None = None
    reason: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class CreatedEvent:
    id: str
    link: str


class CalendarClient:
    """Async wrapper around the Calendar ``events.insert`` endpoint.

    Each call asks the credentials for a current access token, so expired
    tokens are refreshed transparently.  Calls are attempted exactly once.
    """

    def __init__(self, credentials: GoogleCredentials) -> None:
        self._credentials = credentials
        self._http = httpx.AsyncClient(base_url=CALENDAR_BASE_URL)

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    @staticmethod
    def _raise_calendar_error(resp: httpx.Response) -> None:
        message = f"HTTP {resp.status_code}"
        reason: str | None = None

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        # Google APIs wrap failures as {"error": {"code", "message", "errors": [...]}};
        # the token endpoint uses {"error": "...", "error_description": "..."}.
        if isinstance(payload, dict):
            err = payload.get("error")
            if isinstance(err, dict):
                message = err.get("message") or message
                details = err.get("errors")
                if isinstance(details, list) and details and isinstance(details[0], dict):
                    reason = details[0].get("reason")
                reason = reason or err.get("status")
            elif isinstance(err, str):
                reason = err
                message = payload.get("error_description") or err

        raise RemoteCallError(message=message, status_code=resp.status_code, reason=reason)

    async def insert_event(
        self,
        draft: CalendarEventDraft,
        calendar_id: str = PRIMARY_CALENDAR,
    ) -> CreatedEvent:
        """Create *draft* on the calendar and return its id and HTML link.

        Raises:
            RemoteCallError: If the token refresh or the insert is rejected,
                or the request cannot be delivered.
        """
        try:
            headers = await self._credentials.authorization_headers()
        except TokenRefreshError as exc:
            raise RemoteCallError(message=str(exc), reason="token_refresh_failed") from exc

        path = f"/calendars/{calendar_id}/events"
        logger.debug("POST %s", path)
        try:
            resp = await self._http.post(path, json=draft.to_payload(), headers=headers)
        except httpx.HTTPError as exc:
            logger.error("POST %s failed: %s", path, exc)
            raise RemoteCallError(message=str(exc) or type(exc).__name__) from exc

        if resp.is_error:
            self._raise_calendar_error(resp)

        data: dict[str, Any] = resp.json()
        logger.debug("Event insert response: %s", data)
        return CreatedEvent(id=data.get("id", ""), link=data.get("htmlLink", ""))
