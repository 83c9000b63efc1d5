from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response

from appcenter.api.v1.dependencies import get_storage, get_uow
from appcenter.core.security import admin_access, super_admin_access
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.domain.application import ApplicationDraft, ApplicationUpdate
from appcenter.exceptions.exceptions import NotFoundError
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.schemas.application import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationUpdateRequest,
    DeleteAllResponse,
)
from appcenter.services.application_service import ApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/apps", tags=["Applications"])


def get_service(
    uow: UnitOfWork = Depends(get_uow),
    storage: StorageBackend = Depends(get_storage),
) -> ApplicationService:
    return ApplicationService(uow=uow, storage=storage)


@router.get("", response_model=list[ApplicationRead])
def list_applications(
    service: ApplicationService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    return service.list_for_user(current_user)


@router.post("", response_model=ApplicationRead, status_code=201)
def create_application(
    payload: ApplicationCreate,
    service: ApplicationService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    draft = ApplicationDraft(**payload.model_dump())
    return service.create(draft, owner_id=current_user["user_id"])


@router.post("/delete-all", response_model=DeleteAllResponse)
async def delete_all_applications(
    service: ApplicationService = Depends(get_service),
    current_user: dict = Depends(super_admin_access),
):
    deleted = await service.clear_all()
    logger.warning("[app_delete_all] user_id=%s deleted=%s", current_user["user_id"], deleted)
    return DeleteAllResponse(deleted_count=deleted)


@router.get("/{application_id}", response_model=ApplicationRead)
def get_application(
    application_id: str,
    service: ApplicationService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    return service.get_for_user(application_id, current_user)


@router.patch("/{application_id}", response_model=ApplicationRead)
def update_application(
    application_id: str,
    payload: ApplicationUpdateRequest,
    service: ApplicationService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    service.get_for_user(application_id, current_user)
    changes = ApplicationUpdate(**payload.model_dump(exclude_unset=True))
    return service.update(application_id, changes)


@router.delete("/{application_id}", status_code=204)
async def delete_application(
    application_id: str,
    service: ApplicationService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    service.get_for_user(application_id, current_user)
    if not await service.delete(application_id):
        raise NotFoundError("Application not found")
    return Response(status_code=204)
