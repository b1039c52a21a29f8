"""FastAPI application instance and startup hooks."""
from __future__ import annotations

import asyncio

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from salarymap.core import get_logger, get_settings
from salarymap.core.logger import init_logging
from salarymap.domain import DatasetLoadError
from salarymap.routers import api_router, dashboard_router
from salarymap.services import DatasetStore

LOGGER = get_logger(__name__)


def create_app(store: DatasetStore | None = None, *, autoload: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    With ``autoload`` the datasets are read in the background once the server
    starts; pages answer with a loading placeholder until they are ready.
    """

    settings = get_settings()
    init_logging(level=settings.log_level, log_dir=settings.log_dir)

    app = FastAPI(title="H-1B Salary Map", version="0.1.0")
    app.state.dataset_store = store or DatasetStore.from_settings(settings)
    app.include_router(dashboard_router)
    app.include_router(api_router)

    @app.on_event("startup")
    async def start_dataset_load() -> None:
        if not autoload:
            return
        LOGGER.info("Loading datasets from %s", settings.sources.data_dir)

        async def _load() -> None:
            try:
                await app.state.dataset_store.load()
            except DatasetLoadError as exc:
                # Kept on the store for the loading page; no automatic retry.
                LOGGER.debug("Background dataset load ended with %s", type(exc).__name__)

        app.state.load_task = asyncio.create_task(_load())

    @app.get("/", include_in_schema=False)
    async def root_redirect() -> RedirectResponse:
        return RedirectResponse(url="/dashboard/", status_code=302)

    LOGGER.info("FastAPI application initialised")
    return app


app = create_app()
