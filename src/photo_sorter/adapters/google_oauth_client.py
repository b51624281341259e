"""Google OAuth token refresh client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from photo_sorter.domain.errors import ExternalServiceError


class GoogleOAuthClient(Protocol):
    """Interface for refreshing Google access tokens."""

    async def refresh_access_token(self, refresh_token: str) -> dict[str, object]:
        """Exchange a refresh token for a new access token payload."""


@dataclass
class HttpxGoogleOAuthClient(GoogleOAuthClient):
    """Google OAuth client using httpx."""

    client_id: str
    client_secret: str
    token_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, client_id: str, client_secret: str, token_url: str
    ) -> "HttpxGoogleOAuthClient":
        """Create an OAuth client with a managed httpx session."""
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            token_url=token_url,
            http_client=httpx.AsyncClient(),
        )

    async def refresh_access_token(self, refresh_token: str) -> dict[str, object]:
        """Refresh an access token using the refresh_token grant."""
        try:
            response = await self.http_client.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=10,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Google token refresh failed: {exc}") from exc
        payload = response.json()
        if not payload.get("access_token"):
            raise ExternalServiceError("Google token refresh returned no access token")
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
