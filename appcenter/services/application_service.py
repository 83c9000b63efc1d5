from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.domain.application import ApplicationDraft, ApplicationUpdate
from appcenter.exceptions.exceptions import (
    ConflictError,
    DuplicateDownloadKey,
    NotFoundError,
    PermissionError,
)
from appcenter.infrastructure.keys import (
    APP_KEY_LENGTH,
    DOWNLOAD_KEY_LENGTH,
    generate_unique_key,
    new_id,
)
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.models.application import Application
from appcenter.models.enums import RoleEnum

logger = logging.getLogger(__name__)


class ApplicationService:
    def __init__(self, uow: UnitOfWork, storage: StorageBackend):
        self.uow = uow
        self.storage = storage

    # Access

    @staticmethod
    def ensure_can_manage(current_user: dict) -> None:
        if RoleEnum(current_user["role"]) == RoleEnum.USER:
            raise PermissionError("Only administrators can manage applications")

    @staticmethod
    def _can_access(application: Application, current_user: dict) -> bool:
        role = RoleEnum(current_user["role"])
        if role == RoleEnum.SUPER_ADMIN:
            return True
        if role == RoleEnum.ADMIN:
            return application.owner_id == current_user["user_id"]
        return False

    def get_for_user(self, application_id: str, current_user: dict) -> Application:
        self.ensure_can_manage(current_user)
        application = self.get(application_id)
        if not self._can_access(application, current_user):
            raise PermissionError("You do not have access to this application")
        return application

    # Reads

    def get(self, application_id: str) -> Application:
        with self.uow.read_only():
            application = self.uow.application_repo.get_application_by_id(application_id)
            if not application:
                raise NotFoundError("Application not found")
            return application

    def get_by_app_key(self, app_key: str) -> Application | None:
        with self.uow.read_only():
            return self.uow.application_repo.get_application_by_app_key(app_key)

    def get_by_download_key(self, download_key: str) -> Application | None:
        with self.uow.read_only():
            return self.uow.application_repo.get_application_by_download_key(download_key)

    def list_for_user(self, current_user: dict) -> list[Application]:
        self.ensure_can_manage(current_user)
        owner_id = None
        if RoleEnum(current_user["role"]) != RoleEnum.SUPER_ADMIN:
            owner_id = current_user["user_id"]
        with self.uow.read_only():
            return self.uow.application_repo.list_applications(owner_id=owner_id)

    # Writes

    def create(self, draft: ApplicationDraft, owner_id: str) -> Application:
        draft = draft.validate()
        with self.uow:
            repo = self.uow.application_repo
            if draft.download_key:
                if repo.download_key_taken(draft.download_key):
                    raise DuplicateDownloadKey()
                download_key = draft.download_key
            else:
                download_key = generate_unique_key(DOWNLOAD_KEY_LENGTH, repo.download_key_taken)
            app_key = generate_unique_key(APP_KEY_LENGTH, repo.app_key_taken)

            application = Application(
                id=new_id(),
                owner_id=owner_id,
                name=draft.name,
                app_name=draft.name,
                app_key=app_key,
                download_key=download_key,
                platform=draft.platform,
                bundle_id=draft.bundle_id,
                icon=draft.icon,
                description=draft.description,
            )
            try:
                application = repo.add_application(application)
            except IntegrityError as exc:
                raise self._map_integrity_error(exc) from exc
            logger.info(
                "[app_create] id=%s owner_id=%s download_key=%s", application.id, owner_id, download_key
            )
            return application

    def update(self, application_id: str, changes: ApplicationUpdate) -> Application:
        changes = changes.validate()
        with self.uow:
            repo = self.uow.application_repo
            application = repo.get_application_by_id(application_id)
            if not application:
                raise NotFoundError("Application not found")

            values = changes.changes()
            if "download_key" in values and repo.download_key_taken(values["download_key"], exclude_id=application_id):
                raise DuplicateDownloadKey()

            dirty = False
            for key, value in values.items():
                if getattr(application, key) != value:
                    setattr(application, key, value)
                    dirty = True
            if not dirty:
                return application
            try:
                self.uow.session.flush()
            except IntegrityError as exc:
                raise self._map_integrity_error(exc) from exc
            return application

    async def delete(self, application_id: str) -> bool:
        with self.uow:
            repo = self.uow.application_repo
            application = repo.get_application_by_id(application_id)
            if not application:
                return False
            file_paths = self.uow.version_repo.list_file_paths(application_id)
            repo.delete_application(application)

        await self._remove_application_files(application_id, file_paths)
        logger.info("[app_delete] id=%s versions=%s", application_id, len(file_paths))
        return True

    async def clear_all(self) -> int:
        with self.uow:
            applications = self.uow.application_repo.list_applications()
            doomed = [
                (application.id, self.uow.version_repo.list_file_paths(application.id))
                for application in applications
            ]
            for application in applications:
                self.uow.application_repo.delete_application(application)

        for application_id, file_paths in doomed:
            await self._remove_application_files(application_id, file_paths)
        logger.warning("[app_delete_all] removed %s application(s)", len(doomed))
        return len(doomed)

    async def _remove_application_files(self, application_id: str, file_paths: list[str]) -> None:
        for path in file_paths:
            try:
                await self.storage.delete_file(path)
            except (OSError, ValueError) as exc:
                logger.warning("[app_delete] failed to delete file app_id=%s path=%s: %s", application_id, path, exc)
        try:
            await self.storage.remove_application_dir(application_id)
        except (OSError, ValueError) as exc:
            logger.warning("[app_delete] failed to remove directory app_id=%s: %s", application_id, exc)

    def _map_integrity_error(self, exc: IntegrityError) -> ConflictError:
        message = str(getattr(exc, "orig", exc)).lower()
        if "download_key" in message:
            return DuplicateDownloadKey()
        return ConflictError("Application conflicts with an existing record")
