from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Header, Request, UploadFile

from appcenter.api.v1.dependencies import get_settings, public_base_url, upload_file_chunk_stream
from appcenter.api.v1.versions import get_upload_service
from appcenter.core.config import AppSettings
from appcenter.exceptions.exceptions import AuthenticationError
from appcenter.schemas.version import VersionRead
from appcenter.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/automation", tags=["Automation"])


@router.post("/upload", response_model=VersionRead, status_code=201)
async def automation_upload(
    request: Request,
    file: UploadFile = File(...),
    version: str | None = Form(None),
    build_number: str | None = Form(None),
    release_notes: str | None = Form(None),
    x_app_key: str | None = Header(None, alias="X-App-Key"),
    uploads: UploadService = Depends(get_upload_service),
    settings: AppSettings = Depends(get_settings),
):
    if not x_app_key:
        raise AuthenticationError("X-App-Key header is required")
    return await uploads.automation_upload(
        app_key=x_app_key,
        file_name=file.filename or "upload.bin",
        content_type=file.content_type,
        chunk_stream=upload_file_chunk_stream(file, settings.UPLOAD_CHUNK_SIZE_BYTES),
        base_url=public_base_url(request),
        version=version,
        build_number=build_number,
        release_notes=release_notes,
    )
