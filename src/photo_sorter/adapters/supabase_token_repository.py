"""Supabase-backed Google Drive token repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from photo_sorter.domain.tokens import DriveToken
from photo_sorter.services.drive_auth import TokenRepository

_TABLE = "google_drive_tokens"


@dataclass
class SupabaseTokenRepository(TokenRepository):
    """Stores one Drive token row per user."""

    client: Client

    def get_token(self, owner_id: UUID) -> DriveToken | None:
        """Return the user's token, if present."""
        response = (
            self.client.table(_TABLE)
            .select(
                "user_id, access_token, refresh_token, token_type, expires_at, "
                "google_email"
            )
            .eq("user_id", str(owner_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return DriveToken(
            owner_id=UUID(row["user_id"]),
            access_token=row["access_token"],
            refresh_token=row.get("refresh_token"),
            token_type=row.get("token_type") or "Bearer",
            expires_at=_parse_datetime(row.get("expires_at")),
            google_email=row.get("google_email"),
        )

    def save_token(self, token: DriveToken) -> None:
        """Upsert the token row keyed by user_id."""
        self.client.table(_TABLE).upsert(
            {
                "user_id": str(token.owner_id),
                "access_token": token.access_token,
                "refresh_token": token.refresh_token,
                "token_type": token.token_type,
                "expires_at": (
                    token.expires_at.isoformat() if token.expires_at else None
                ),
                "google_email": token.google_email,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()

    def delete_token(self, owner_id: UUID) -> None:
        """Delete the user's token row."""
        self.client.table(_TABLE).delete().eq("user_id", str(owner_id)).execute()


def _parse_datetime(value: object) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
