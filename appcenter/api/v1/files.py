from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile

from appcenter.api.v1.dependencies import get_settings, get_storage, get_uow, upload_file_chunk_stream
from appcenter.api.v1.versions import get_upload_service
from appcenter.core.config import AppSettings
from appcenter.core.security import admin_access
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.exceptions.exceptions import NotFoundError
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.schemas.staged_file import CleanupResponse, StagedFileRead, StageResponse
from appcenter.services.staged_file_service import StagedFileStore
from appcenter.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/files", tags=["Files"])


def get_store(
    uow: UnitOfWork = Depends(get_uow),
    storage: StorageBackend = Depends(get_storage),
) -> StagedFileStore:
    return StagedFileStore(uow=uow, storage=storage)


@router.post("/upload", response_model=StageResponse, status_code=200)
async def upload_file(
    file: UploadFile = File(...),
    uploads: UploadService = Depends(get_upload_service),
    settings: AppSettings = Depends(get_settings),
    current_user: dict = Depends(admin_access),
):
    started = time.perf_counter()
    result = await uploads.stage_upload(
        file_name=file.filename or "upload.bin",
        content_type=file.content_type,
        chunk_stream=upload_file_chunk_stream(file, settings.UPLOAD_CHUNK_SIZE_BYTES),
    )
    logger.info(
        "[file_upload] user_id=%s file_id=%s elapsed_ms=%s",
        current_user["user_id"],
        result.file_id,
        int((time.perf_counter() - started) * 1000),
    )
    return StageResponse(file_id=result.file_id, app_info=result.app_info)


@router.post("/cleanup/temp", response_model=CleanupResponse)
async def cleanup_temp_files(
    store: StagedFileStore = Depends(get_store),
    settings: AppSettings = Depends(get_settings),
    _admin: dict = Depends(admin_access),
):
    cleaned = await store.expire_older_than(settings.TEMP_FILE_EXPIRE_MINUTES)
    return CleanupResponse(cleaned_count=cleaned)


@router.get("/{file_id}", response_model=StagedFileRead)
def get_file(
    file_id: str,
    store: StagedFileStore = Depends(get_store),
    _admin: dict = Depends(admin_access),
):
    record = store.get(file_id)
    if record is None:
        raise NotFoundError("File not found")
    return record


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    store: StagedFileStore = Depends(get_store),
    _admin: dict = Depends(admin_access),
):
    if not await store.delete(file_id):
        raise NotFoundError("File not found")
    return Response(status_code=204)
