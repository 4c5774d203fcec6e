"""Google OAuth2 credentials built from a pre-issued refresh token.

The refresh token is obtained out of band (OAuth consent for the desktop
client) and passed in through ``GOOGLE_REFRESH_TOKEN``.  Access tokens are
exchanged on demand and only held by the ``google-auth`` credentials object
until they expire.
"""

from __future__ import annotations

import asyncio
import logging

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from calendar_mcp.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class TokenRefreshError(Exception):
    """Raised when Google refuses to exchange the refresh token."""


class GoogleCredentials:
    """Token-refreshing authorization context for Calendar API calls."""

    def __init__(self, settings: Settings) -> None:
        self._has_refresh_token = bool(settings.refresh_token)
        self._credentials = Credentials(
            token=None,
            refresh_token=settings.refresh_token,
            token_uri=TOKEN_URI,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
        )

    @property
    def has_refresh_token(self) -> bool:
        return self._has_refresh_token

    def _refresh(self) -> None:
        try:
            self._credentials.refresh(Request())
        except google.auth.exceptions.GoogleAuthError as exc:
            logger.error("Token refresh failed: %s", exc)
            raise TokenRefreshError(str(exc)) from exc
        logger.debug("Access token refreshed, expires at %s", self._credentials.expiry)

    async def authorization_headers(self) -> dict[str, str]:
        """Return request headers carrying a valid access token.

        Raises:
            ConfigurationError: If no refresh token was configured.
            TokenRefreshError: If the token endpoint rejects the exchange.
        """
        if not self._has_refresh_token:
            raise ConfigurationError(
                "GOOGLE_REFRESH_TOKEN is not set; cannot authorize calendar requests"
            )
        if not self._credentials.valid:
            # google-auth refreshes synchronously over requests, so keep the
            # event loop free while the token endpoint answers.
            await asyncio.to_thread(self._refresh)
        return {
            "Authorization": f"Bearer {self._credentials.token}",
            "Content-Type": "application/json",
        }
