from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from appcenter.api.v1.dependencies import get_settings, get_storage, get_uow, public_base_url
from appcenter.core.config import AppSettings
from appcenter.core.security import admin_access
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.domain.application import ConfirmRequest, VersionUpdate
from appcenter.exceptions.exceptions import NotFoundError
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.schemas.version import (
    VersionConfirmRequest,
    VersionPreview,
    VersionRead,
    VersionUpdateRequest,
)
from appcenter.services.application_service import ApplicationService
from appcenter.services.upload_service import UploadService
from appcenter.services.version_service import VersionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/apps", tags=["Versions"])


def get_version_service(
    uow: UnitOfWork = Depends(get_uow),
    storage: StorageBackend = Depends(get_storage),
) -> VersionService:
    return VersionService(uow=uow, storage=storage)


def get_application_service(
    uow: UnitOfWork = Depends(get_uow),
    storage: StorageBackend = Depends(get_storage),
) -> ApplicationService:
    return ApplicationService(uow=uow, storage=storage)


def get_upload_service(
    request: Request,
    uow: UnitOfWork = Depends(get_uow),
    storage: StorageBackend = Depends(get_storage),
    settings: AppSettings = Depends(get_settings),
) -> UploadService:
    return UploadService(
        uow=uow,
        storage=storage,
        extractor=request.app.state.extractor,
        max_file_size_bytes=settings.MAX_FILE_SIZE_BYTES,
        url_prefix=settings.UPLOAD_URL_PREFIX,
    )


@router.get("/{application_id}/versions", response_model=list[VersionRead])
def list_versions(
    application_id: str,
    service: VersionService = Depends(get_version_service),
    applications: ApplicationService = Depends(get_application_service),
    current_user: dict = Depends(admin_access),
):
    applications.get_for_user(application_id, current_user)
    return service.list_by_application(application_id)


@router.post("/{application_id}/versions", response_model=VersionRead | VersionPreview)
async def create_version(
    application_id: str,
    payload: VersionConfirmRequest,
    request: Request,
    uploads: UploadService = Depends(get_upload_service),
    applications: ApplicationService = Depends(get_application_service),
    current_user: dict = Depends(admin_access),
):
    applications.get_for_user(application_id, current_user)
    result = await uploads.confirm_version(
        application_id,
        ConfirmRequest(
            file_id=payload.file_id,
            confirm=payload.confirm,
            version=payload.version,
            build_number=None if payload.build_number is None else str(payload.build_number),
            release_notes=payload.release_notes,
        ),
        base_url=public_base_url(request),
    )
    if isinstance(result, dict):
        return VersionPreview(**result)
    return VersionRead.model_validate(result)


@router.get("/{application_id}/versions/{version_id}", response_model=VersionRead)
def get_version(
    application_id: str,
    version_id: str,
    service: VersionService = Depends(get_version_service),
    applications: ApplicationService = Depends(get_application_service),
    current_user: dict = Depends(admin_access),
):
    applications.get_for_user(application_id, current_user)
    return service.get(application_id, version_id)


@router.patch("/{application_id}/versions/{version_id}", response_model=VersionRead)
def update_version(
    application_id: str,
    version_id: str,
    payload: VersionUpdateRequest,
    service: VersionService = Depends(get_version_service),
    applications: ApplicationService = Depends(get_application_service),
    current_user: dict = Depends(admin_access),
):
    applications.get_for_user(application_id, current_user)
    values = payload.model_dump(exclude_unset=True)
    if values.get("build_number") is not None:
        values["build_number"] = str(values["build_number"])
    version = service.update(application_id, version_id, VersionUpdate(**values))
    if version is None:
        raise NotFoundError("Version not found")
    return version


@router.delete("/{application_id}/versions/{version_id}", status_code=204)
async def delete_version(
    application_id: str,
    version_id: str,
    service: VersionService = Depends(get_version_service),
    applications: ApplicationService = Depends(get_application_service),
    current_user: dict = Depends(admin_access),
):
    applications.get_for_user(application_id, current_user)
    if not await service.delete_with_file(application_id, version_id):
        raise NotFoundError("Version not found")
    return Response(status_code=204)
