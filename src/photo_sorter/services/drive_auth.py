"""Per-user Google Drive access backed by stored tokens."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

import httpx

from photo_sorter.adapters.google_drive_client import (
    DEFAULT_BASE_URL,
    DriveClient,
    HttpxGoogleDriveClient,
)
from photo_sorter.adapters.google_oauth_client import GoogleOAuthClient
from photo_sorter.domain.errors import DriveNotConnected
from photo_sorter.domain.formats import SUPPORTED_EXTENSIONS
from photo_sorter.domain.tokens import DriveToken

logger = logging.getLogger(__name__)


class TokenRepository(Protocol):
    """Persistence interface for Google Drive tokens."""

    def get_token(self, owner_id: UUID) -> DriveToken | None:
        """Return the stored token for a user, if present."""

    def save_token(self, token: DriveToken) -> None:
        """Insert or replace the token for token.owner_id."""

    def delete_token(self, owner_id: UUID) -> None:
        """Remove the stored token for a user."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class DriveClientProvider:
    """Builds Drive clients from stored tokens, refreshing expired ones."""

    token_repository: TokenRepository
    oauth_client: GoogleOAuthClient
    http_client: httpx.AsyncClient
    base_url: str = DEFAULT_BASE_URL
    extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def for_user(self, owner_id: UUID) -> DriveClient:
        """Return a Drive client for the user's current access token."""
        token = self.token_repository.get_token(owner_id)
        if token is None:
            raise DriveNotConnected()
        if token.is_expired(self.clock()) and token.refresh_token:
            token = await self._refresh(token)
        return HttpxGoogleDriveClient(
            access_token=token.access_token,
            http_client=self.http_client,
            base_url=self.base_url,
            extensions=self.extensions,
        )

    def connection_status(self, owner_id: UUID) -> dict[str, object]:
        """Report whether the user has connected Google Drive."""
        token = self.token_repository.get_token(owner_id)
        return {
            "connected": token is not None,
            "google_email": token.google_email if token else None,
        }

    def disconnect(self, owner_id: UUID) -> None:
        """Forget the user's Drive credentials."""
        self.token_repository.delete_token(owner_id)
        logger.info("Disconnected Google Drive for user %s", owner_id)

    async def close(self) -> None:
        """Close the shared HTTP session."""
        await self.http_client.aclose()

    async def _refresh(self, token: DriveToken) -> DriveToken:
        payload = await self.oauth_client.refresh_access_token(
            token.refresh_token or ""
        )
        expires_in = payload.get("expires_in")
        expires_at = (
            self.clock() + timedelta(seconds=int(expires_in))  # type: ignore[arg-type]
            if expires_in
            else None
        )
        refreshed = replace(
            token,
            access_token=str(payload["access_token"]),
            refresh_token=str(payload.get("refresh_token") or token.refresh_token),
            token_type=str(payload.get("token_type") or token.token_type),
            expires_at=expires_at,
        )
        self.token_repository.save_token(refreshed)
        logger.info("Refreshed Google Drive token for user %s", token.owner_id)
        return refreshed
