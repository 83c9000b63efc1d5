from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from appcenter.api.v1.dependencies import get_uow, public_base_url
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.models.enums import PlatformEnum
from appcenter.schemas.application import DownloadInfoRead
from appcenter.schemas.version import VersionRead
from appcenter.services.download_service import DownloadService

router = APIRouter(prefix="/api/v1/download", tags=["Download"])


def get_service(uow: UnitOfWork = Depends(get_uow)) -> DownloadService:
    return DownloadService(uow=uow)


@router.get("/{download_key}", response_model=DownloadInfoRead)
def get_download_info(
    download_key: str,
    request: Request,
    service: DownloadService = Depends(get_service),
):
    application = service.resolve_by_download_key(download_key)
    info = DownloadInfoRead.model_validate(application)
    if application.platform == PlatformEnum.IOS.value:
        manifest_url = f"{public_base_url(request)}/api/v1/download/{quote(download_key)}/plist"
        info.manifest_url = manifest_url
        info.install_url = service.install_url(manifest_url)
    return info


@router.get("/{download_key}/plist")
def get_manifest(
    download_key: str,
    request: Request,
    version: str | None = Query(None, max_length=36),
    service: DownloadService = Depends(get_service),
):
    body, filename = service.build_plist(
        download_key,
        version_id=version,
        request_host=request.headers.get("host"),
    )
    return Response(
        content=body,
        media_type="application/x-plist",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.get("/{download_key}/versions", response_model=list[VersionRead])
def get_version_history(
    download_key: str,
    service: DownloadService = Depends(get_service),
):
    return service.list_version_history(download_key)
