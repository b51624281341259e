"""Domain models for stored Google Drive credentials."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID


@dataclass(frozen=True)
class DriveToken:
    """OAuth token granting Drive access for one user."""

    owner_id: UUID
    access_token: str
    refresh_token: str | None
    token_type: str = "Bearer"
    expires_at: datetime | None = None
    google_email: str | None = None

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        # Naive expiries are stored in UTC.
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= now
