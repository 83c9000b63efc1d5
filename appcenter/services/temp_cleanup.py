import asyncio
import logging

from appcenter.core.config import AppSettings
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import Database
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.services.staged_file_service import StagedFileStore


async def sweep_expired_uploads_once(database: Database, storage: StorageBackend, expire_minutes: int) -> int:
    db = database.session()
    try:
        store = StagedFileStore(UnitOfWork(db), storage)
        return await store.expire_older_than(expire_minutes)
    finally:
        db.close()


async def run_temp_cleanup_loop(
    stop_event: asyncio.Event,
    database: Database,
    storage: StorageBackend,
    settings: AppSettings,
) -> None:
    startup_wait = max(0, settings.TEMP_CLEANUP_STARTUP_DELAY_SECONDS)
    if startup_wait:
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=startup_wait)
            return
        except asyncio.TimeoutError:
            pass

    while not stop_event.is_set():
        try:
            await sweep_expired_uploads_once(database, storage, settings.TEMP_FILE_EXPIRE_MINUTES)
        except Exception as exc:
            logging.exception("[cleanup] Temp upload sweep iteration failed: %s", exc)

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=settings.TEMP_CLEANUP_INTERVAL_SECONDS)
        except asyncio.TimeoutError:
            continue
