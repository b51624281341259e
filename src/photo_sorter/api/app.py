"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from photo_sorter.adapters.local_preview_cache import LocalPreviewCache
from photo_sorter.api.admin import router as admin_router
from photo_sorter.api.drive import router as drive_router
from photo_sorter.api.sorting import router as sorting_router
from photo_sorter.app_logging import configure_logging
from photo_sorter.containers import AppContainer
from photo_sorter.domain.errors import SortingError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)
    app.include_router(drive_router)
    app.include_router(sorting_router)

    cache = container.preview_service.cache
    if isinstance(cache, LocalPreviewCache):
        app.mount(cache.base_url, StaticFiles(directory=cache.directory), "previews")

    @app.exception_handler(SortingError)
    async def sorting_error_handler(
        request: Request, exc: SortingError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
