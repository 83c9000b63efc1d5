from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import utcnow
from appcenter.domain.application import VersionDraft, VersionUpdate
from appcenter.exceptions.exceptions import ConflictError, NotFoundError
from appcenter.infrastructure.keys import new_id
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.models.version import Version

logger = logging.getLogger(__name__)


class VersionService:
    def __init__(self, uow: UnitOfWork, storage: StorageBackend | None = None):
        self.uow = uow
        self.storage = storage

    def _require_application(self, application_id: str) -> None:
        if not self.uow.application_repo.get_application_by_id(application_id):
            raise NotFoundError("Application not found")

    def create(self, draft: VersionDraft) -> Version:
        with self.uow:
            self._require_application(draft.application_id)
            return self.add_in_transaction(draft)

    def add_in_transaction(self, draft: VersionDraft) -> Version:
        """Insert a version inside an already open unit of work."""
        repo = self.uow.version_repo
        if repo.version_exists(draft.application_id, draft.version, draft.build_number):
            raise ConflictError(
                f"Version {draft.version} ({draft.build_number}) already exists for this application"
            )
        version = Version(
            id=new_id(),
            application_id=draft.application_id,
            version=draft.version,
            build_number=draft.build_number,
            release_notes=draft.release_notes or "",
            upload_date=draft.upload_date or utcnow(),
            size=draft.size,
            status=draft.status,
            file_name=draft.file_name,
            file_path=draft.file_path,
            download_url=draft.download_url,
            platform=draft.platform,
        )
        try:
            return repo.add_version(version)
        except IntegrityError as exc:
            raise ConflictError("Version already exists for this application") from exc

    def get(self, application_id: str, version_id: str) -> Version:
        with self.uow.read_only():
            version = self.uow.version_repo.get_version(application_id, version_id)
            if not version:
                raise NotFoundError("Version not found")
            return version

    def list_by_application(self, application_id: str) -> list[Version]:
        with self.uow.read_only():
            self._require_application(application_id)
            return self.uow.version_repo.list_versions(application_id)

    def exists(self, application_id: str, version: str, build_number: str, exclude_id: str | None = None) -> bool:
        with self.uow.read_only():
            return self.uow.version_repo.version_exists(application_id, version, build_number, exclude_id)

    def update(self, application_id: str, version_id: str, changes: VersionUpdate) -> Version | None:
        changes = changes.validate()
        with self.uow:
            repo = self.uow.version_repo
            version = repo.get_version(application_id, version_id)
            if not version:
                return None

            values = changes.changes()
            new_version = values.get("version", version.version)
            new_build = values.get("build_number", version.build_number)
            if (new_version, new_build) != (version.version, version.build_number) and repo.version_exists(
                application_id, new_version, new_build, exclude_id=version_id
            ):
                raise ConflictError(f"Version {new_version} ({new_build}) already exists for this application")

            dirty = False
            for key, value in values.items():
                if getattr(version, key) != value:
                    setattr(version, key, value)
                    dirty = True
            if dirty:
                try:
                    self.uow.session.flush()
                except IntegrityError as exc:
                    raise ConflictError("Version already exists for this application") from exc
                self._sync_application_current_version(application_id)
            return version

    def delete(self, application_id: str, version_id: str) -> bool:
        """Remove the row only; stored bytes are left to the caller."""
        with self.uow:
            version = self.uow.version_repo.get_version(application_id, version_id)
            if not version:
                return False
            self.uow.version_repo.delete_version(version)
            self.uow.session.flush()
            self._sync_application_current_version(application_id)
            return True

    async def delete_with_file(self, application_id: str, version_id: str) -> bool:
        with self.uow.read_only():
            version = self.uow.version_repo.get_version(application_id, version_id)
            file_path = version.file_path if version else None
        if not self.delete(application_id, version_id):
            return False
        if file_path and self.storage is not None:
            try:
                await self.storage.delete_file(file_path)
            except (OSError, ValueError) as exc:
                logger.warning("[version_delete] failed to delete file version_id=%s path=%s: %s", version_id, file_path, exc)
        logger.info("[version_delete] app_id=%s version_id=%s", application_id, version_id)
        return True

    def _sync_application_current_version(self, application_id: str) -> None:
        """Point the application's current-version fields at its newest remaining version."""
        application = self.uow.application_repo.get_application_by_id(application_id)
        if not application:
            return
        latest = self.uow.version_repo.get_latest_version(application_id)
        if latest is None:
            application.version = None
            application.build_number = None
            application.upload_date = None
            application.download_url = None
            return
        application.version = latest.version
        application.build_number = latest.build_number
        application.upload_date = latest.upload_date
        application.download_url = latest.download_url
