"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

if TYPE_CHECKING:
    from photo_sorter.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/previews/prune", dependencies=[Depends(require_admin)])
async def prune_previews(
    request: Request, days: int | None = Query(default=None, ge=0)
) -> dict[str, object]:
    """Delete cached previews older than the given number of days."""
    container: AppContainer = request.app.state.container
    max_age = container.settings.preview_max_age_days if days is None else days
    removed = container.preview_service.clear_old_cache(max_age)
    return {"success": True, "removed": removed, "days": max_age}


@router.delete("/previews/{file_id}", dependencies=[Depends(require_admin)])
async def delete_preview(file_id: str, request: Request) -> dict[str, object]:
    """Drop the cached preview for one Drive file."""
    container: AppContainer = request.app.state.container
    try:
        container.preview_service.clear_cache(file_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return {"success": True}
