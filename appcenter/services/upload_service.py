from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterable

import anyio

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import utcnow
from appcenter.domain.application import ConfirmRequest, VersionDraft, format_size
from appcenter.exceptions.exceptions import (
    AuthenticationError,
    ConflictError,
    FileNotFoundOrNotStaged,
    FileSystemError,
    FileTooLarge,
    NotFoundError,
    UnsupportedFileType,
    UpstreamParseError,
    ValidationError,
)
from appcenter.infrastructure import icons
from appcenter.infrastructure.binary_parser import (
    BinaryMetadata,
    BinaryMetadataExtractor,
    platform_for_filename,
)
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.models.enums import PlatformEnum, StagedFileStatus
from appcenter.models.version import Version
from appcenter.services.staged_file_service import StagedFileStore
from appcenter.services.version_service import VersionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageResult:
    file_id: str
    app_info: dict


def build_parsed_info(metadata: BinaryMetadata, platform: PlatformEnum) -> dict:
    """Shape extractor output into the stored ``parsed_info`` document."""
    icon_error = None
    icon_url = None
    if metadata.icon:
        result = icons.to_data_url(metadata.icon)
        icon_url, icon_error = result.data_url, result.error
    else:
        icon_error = "No icon found in package"

    platform_key = "ios" if platform == PlatformEnum.IOS else "android"
    if not icon_url:
        icon_url = icons.fallback_icon(platform_key)

    try:
        version_code = str(int(str(metadata.version_code or "1").strip()))
    except ValueError:
        version_code = "1"

    return {
        "name": metadata.name or "Unknown App",
        "bundleId": metadata.bundle_id or "unknown.bundle.id",
        "versionName": metadata.version_name or "1.0.0",
        "versionCode": version_code,
        "platform": platform_key,
        "icon": icon_url,
        "iconError": icon_error,
    }


class UploadService:
    """Two-phase upload: stage and parse a binary, then confirm it into a version."""

    def __init__(
        self,
        uow: UnitOfWork,
        storage: StorageBackend,
        extractor: BinaryMetadataExtractor,
        *,
        max_file_size_bytes: int,
        url_prefix: str = "/uploads",
    ):
        self.uow = uow
        self.storage = storage
        self.extractor = extractor
        self.max_file_size_bytes = max_file_size_bytes
        self.url_prefix = url_prefix
        self.staged_files = StagedFileStore(uow, storage)
        self.versions = VersionService(uow, storage)

    async def stage_upload(
        self,
        *,
        file_name: str,
        content_type: str | None,
        chunk_stream: AsyncIterable[bytes],
    ) -> StageResult:
        """
        Stream an upload into the temp area, parse it and record it as staged.

        :param file_name: Client supplied file name; the extension picks the platform
        :param content_type: Client supplied MIME type
        :param chunk_stream: Async iterable of body chunks
        :return: The staged file id plus the parsed application info
        :rtype: StageResult
        """
        platform = platform_for_filename(file_name)
        if platform is None:
            raise UnsupportedFileType()

        started = time.perf_counter()
        temp_path = self.storage.new_temp_path(file_name)
        size = await self._write_stream(temp_path, chunk_stream)

        try:
            metadata = await anyio.to_thread.run_sync(self.extractor.extract, temp_path, platform)
        except UpstreamParseError as exc:
            logger.warning("[upload] parse failed name=%s path=%s: %s", file_name, temp_path, exc)
            await self._discard(temp_path)
            raise

        parsed_info = build_parsed_info(metadata, platform)
        if parsed_info["iconError"]:
            logger.info("[upload] icon fallback used for %s: %s", file_name, parsed_info["iconError"])

        try:
            staged = self.staged_files.stage(
                original_name=file_name,
                temp_path=temp_path,
                size=size,
                mime_type=content_type,
                parsed_info=parsed_info,
            )
        except Exception:
            # The expiry sweep only sees recorded files
            await self._discard(temp_path)
            raise
        logger.info(
            "[upload] staged file_id=%s name=%s size=%s bundle=%s elapsed_ms=%s",
            staged.id,
            file_name,
            size,
            parsed_info["bundleId"],
            int((time.perf_counter() - started) * 1000),
        )
        return StageResult(file_id=staged.id, app_info=parsed_info)

    async def _write_stream(self, temp_path: Path, chunk_stream: AsyncIterable[bytes]) -> int:
        await self.storage.init_file(temp_path)
        written = 0
        try:
            async for chunk in chunk_stream:
                if not chunk:
                    continue
                written += len(chunk)
                if written > self.max_file_size_bytes:
                    raise FileTooLarge(
                        f"File exceeds the maximum allowed size of {self.max_file_size_bytes} bytes"
                    )
                await self.storage.append_chunk(temp_path, chunk)
        except Exception:
            await self._discard(temp_path)
            raise
        if written == 0:
            await self._discard(temp_path)
            raise ValidationError("Uploaded file is empty")
        return written

    async def _discard(self, path: str | Path) -> None:
        try:
            await self.storage.delete_file(path)
        except (OSError, ValueError) as exc:
            logger.warning("[upload] failed to discard %s: %s", path, exc)

    async def _release(self, file_id: str, final_path: Path, temp_path: str) -> None:
        """Put a claimed file back in the temp area after a failed version insert."""
        try:
            await self.storage.move(final_path, temp_path)
        except (OSError, ValueError) as exc:
            logger.error("[version_create] could not restore file_id=%s to temp: %s", file_id, exc)
            await self._discard(final_path)
            return
        with self.uow:
            self.uow.staged_file_repo.revert_confirmation(file_id)

    async def confirm_version(
        self,
        application_id: str,
        request: ConfirmRequest,
        base_url: str,
    ) -> Version | dict:
        """
        Turn a staged file into a version of an application.

        With ``confirm`` false nothing changes and the stored parsed info is
        returned as a preview.
        """
        with self.uow.read_only():
            application = self.uow.application_repo.get_application_by_id(application_id)
            if not application:
                raise NotFoundError("Application not found")
            staged = self.uow.staged_file_repo.get_staged_file(request.file_id)
            if not staged or staged.status != StagedFileStatus.TEMPORARY:
                raise FileNotFoundOrNotStaged()

        if not request.confirm:
            return {"app_info": staged.parsed_info}

        request = request.validated()
        if self.versions.exists(application_id, request.version, request.build_number):
            raise ConflictError(
                f"Version {request.version} ({request.build_number}) already exists for this application"
            )

        final_path = self.storage.new_final_path(application_id, staged.original_name)
        if not await self.staged_files.confirm(staged.id, final_path):
            with self.uow.read_only():
                current = self.uow.staged_file_repo.get_staged_file(staged.id)
            if current is None or current.status != StagedFileStatus.TEMPORARY:
                raise FileNotFoundOrNotStaged()
            raise FileSystemError(f"Could not move staged file {staged.id} to {final_path}")

        download_url = f"{base_url.rstrip('/')}{self.url_prefix}/{self.storage.relative_key(final_path)}"
        parsed_info = staged.parsed_info or {}
        platform = PlatformEnum.IOS if Path(staged.original_name).suffix.lower() == ".ipa" else PlatformEnum.ANDROID
        now = utcnow()

        try:
            with self.uow:
                version = self.versions.add_in_transaction(
                    VersionDraft(
                        application_id=application_id,
                        version=request.version,
                        build_number=request.build_number,
                        release_notes=request.release_notes or "",
                        size=format_size(staged.size),
                        file_name=staged.original_name,
                        file_path=str(final_path),
                        download_url=download_url,
                        platform=platform.value,
                        upload_date=now,
                    )
                )
                application = self.uow.application_repo.get_application_by_id(application_id)
                if not application:
                    raise NotFoundError("Application not found")
                application.version = request.version
                application.build_number = request.build_number
                application.upload_date = now
                application.download_url = download_url
                application.app_name = parsed_info.get("name") or application.app_name
                application.bundle_id = parsed_info.get("bundleId") or application.bundle_id
                application.icon = parsed_info.get("icon") or application.icon
                application.platform = platform.value
        except Exception:
            await self._release(staged.id, final_path, staged.temp_path)
            raise

        logger.info(
            "[version_create] app_id=%s version_id=%s version=%s build=%s",
            application_id,
            version.id,
            version.version,
            version.build_number,
        )
        return version

    async def automation_upload(
        self,
        *,
        app_key: str,
        file_name: str,
        content_type: str | None,
        chunk_stream: AsyncIterable[bytes],
        base_url: str,
        version: str | None = None,
        build_number: str | None = None,
        release_notes: str | None = None,
    ) -> Version:
        """Stage and confirm in one call, authenticated by the application's automation key."""
        with self.uow.read_only():
            application = self.uow.application_repo.get_application_by_app_key(app_key or "")
            if not application:
                raise AuthenticationError("Invalid application key")
            application_id = application.id

        staged = await self.stage_upload(file_name=file_name, content_type=content_type, chunk_stream=chunk_stream)
        request = ConfirmRequest(
            file_id=staged.file_id,
            confirm=True,
            version=version or staged.app_info.get("versionName"),
            build_number=build_number or staged.app_info.get("versionCode"),
            release_notes=release_notes,
        )
        try:
            result = await self.confirm_version(application_id, request, base_url)
        except Exception:
            await self.staged_files.delete(staged.file_id)
            raise
        logger.info("[automation] app_id=%s file_id=%s", application_id, staged.file_id)
        return result
