"""
App Center backend: FastAPI application factory.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from appcenter.api.v1 import (
    applications,
    auth,
    automation,
    download,
    files,
    health,
    users,
    versions,
)
from appcenter.core.config import AppSettings, settings as default_settings
from appcenter.core.logging_setup import configure_logging
from appcenter.core.request_logging import RequestLogMiddleware
from appcenter.database.db_setup import Database
from appcenter.database.initialize_db import init_db
from appcenter.exceptions.handlers import register_exception_handlers
from appcenter.infrastructure.binary_parser import BinaryMetadataExtractor, PackageMetadataExtractor
from appcenter.infrastructure.storage.local_fs import LocalFileSystemStorage
from appcenter.services.superuser_seeder import seed_default_admin, seed_superuser
from appcenter.services.temp_cleanup import run_temp_cleanup_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: AppSettings = app.state.settings
    configure_logging(settings)
    settings.validate_security()

    database = Database(settings)
    app.state.database = database
    init_db(database)
    with database.session() as session:
        seed_superuser(session, settings)
        seed_default_admin(session, settings)
    logger.info("[startup] %s ready, storage root=%s", settings.APP_NAME, app.state.storage.root)

    stop_event = asyncio.Event()
    cleanup_task = None
    if settings.TEMP_CLEANUP_ENABLED:
        cleanup_task = asyncio.create_task(
            run_temp_cleanup_loop(stop_event, database, app.state.storage, settings)
        )

    try:
        yield
    finally:
        stop_event.set()
        if cleanup_task is not None:
            cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup_task
        database.dispose()
        logger.info("[shutdown] %s stopped", settings.APP_NAME)


def create_app(
    settings: AppSettings | None = None,
    extractor: BinaryMetadataExtractor | None = None,
) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        description="Upload, version and distribute iOS and Android builds",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.storage = LocalFileSystemStorage(Path(settings.UPLOAD_ROOT))
    app.state.extractor = extractor or PackageMetadataExtractor(aapt2_path=settings.AAPT2_PATH)

    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(applications.router)
    app.include_router(versions.router)
    app.include_router(files.router)
    app.include_router(automation.router)
    app.include_router(download.router)
    app.include_router(health.router)

    # Confirmed binaries are served straight from the storage root
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=str(app.state.storage.root)),
        name="uploads",
    )
    return app


app = create_app()
