"""
Supplies OAuth access tokens for the Photos Library API from the stored token file,
refreshing them with the client credentials when they have expired.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import aiohttp

from photos_backup_cli.exceptions import AuthenticationError
from photos_backup_cli.models.media_item import parse_rfc3339

log = logging.getLogger(__name__)

SCOPE = "https://www.googleapis.com/auth/photoslibrary.readonly"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Refresh slightly early so a token does not expire mid-request
EXPIRY_MARGIN = timedelta(seconds=60)


class OAuthTokenProvider:
    """
    Loads, validates and refreshes the user's OAuth token.

    Obtaining the first token requires the interactive authorization flow,
    which is handled outside this tool; the resulting token file is expected
    at `token_file`.
    """

    def __init__(self, credentials_file: str | Path, token_file: str | Path):
        self.credentials_file = Path(credentials_file)
        self.token_file = Path(token_file)
        self._token: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    def _read_json(self, path: Path, what: str) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise AuthenticationError(
                f"No {what} found at '{path}'. Authorize this tool with the Photos "
                f"Library API ({SCOPE}) first."
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise AuthenticationError(f"Unable to read {what} '{path}': {e}") from e
        if not isinstance(data, dict):
            raise AuthenticationError(f"The {what} '{path}' is not a JSON object.")
        return data

    def _client_config(self) -> dict[str, Any]:
        """Reads the OAuth client block from a downloaded credentials.json."""
        data = self._read_json(self.credentials_file, "client credentials file")
        client = data.get("installed") or data.get("web") or data
        if not client.get("client_id") or not client.get("client_secret"):
            raise AuthenticationError(
                f"Credentials file '{self.credentials_file}' has no client_id or "
                "client_secret."
            )
        return client

    @staticmethod
    def is_expired(token: dict[str, Any], now: datetime | None = None) -> bool:
        """A token without a parseable expiry is treated as still valid."""
        expiry = parse_rfc3339(token.get("expiry"))
        if expiry is None:
            return False
        now = now or datetime.now(timezone.utc)
        return expiry - EXPIRY_MARGIN <= now

    async def _refresh(
        self, session: aiohttp.ClientSession, token: dict[str, Any]
    ) -> dict[str, Any]:
        refresh_token = token.get("refresh_token")
        if not refresh_token:
            raise AuthenticationError(
                "The stored token has expired and cannot be refreshed."
            )
        client = self._client_config()
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": client["client_id"],
            "client_secret": client["client_secret"],
        }
        token_uri = client.get("token_uri", DEFAULT_TOKEN_URI)
        log.debug("Refreshing OAuth access token...")
        try:
            async with session.post(token_uri, data=payload) as r:
                if r.status in (400, 401):
                    raise AuthenticationError(
                        "The refresh token was rejected. Authorize this tool again."
                    )
                r.raise_for_status()
                fresh = await r.json()
        except aiohttp.ClientError as e:
            raise AuthenticationError(f"Token refresh failed: {e}") from e

        updated = {**token, "access_token": fresh["access_token"]}
        if expires_in := fresh.get("expires_in"):
            expiry = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))
            updated["expiry"] = expiry.isoformat()
        if fresh.get("refresh_token"):
            updated["refresh_token"] = fresh["refresh_token"]
        await asyncio.to_thread(self._save_token, updated)
        return updated

    def _save_token(self, token: dict[str, Any]) -> None:
        try:
            with open(self.token_file, "w", encoding="utf-8") as f:
                json.dump(token, f)
        except OSError as e:
            log.warning(f"[yellow]Could not save refreshed token:[/] {e}")

    async def get_access_token(self, session: aiohttp.ClientSession) -> str:
        """Returns a valid access token, refreshing the stored one if needed."""
        async with self._lock:
            if self._token is None:
                self._token = self._read_json(self.token_file, "OAuth token file")
            if not self._token.get("access_token") or self.is_expired(self._token):
                self._token = await self._refresh(session, self._token)
            return self._token["access_token"]
