"""Request dependencies shared by the API routers."""

from uuid import UUID

from fastapi import Header, HTTPException, status


async def current_user_id(x_user_id: str | None = Header(default=None)) -> UUID:
    """Identity of the caller as asserted by the upstream auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
