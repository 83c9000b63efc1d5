from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import utcnow
from appcenter.infrastructure.keys import new_id
from appcenter.infrastructure.storage.base import StorageBackend
from appcenter.models.enums import StagedFileStatus
from appcenter.models.staged_file import StagedFile

logger = logging.getLogger(__name__)


class StagedFileStore:
    """Tracks uploaded binaries between parse and confirmation."""

    def __init__(self, uow: UnitOfWork, storage: StorageBackend):
        self.uow = uow
        self.storage = storage

    def stage(
        self,
        *,
        original_name: str,
        temp_path: str | Path,
        size: int,
        mime_type: str | None,
        parsed_info: dict | None,
    ) -> StagedFile:
        with self.uow:
            return self.uow.staged_file_repo.add_staged_file(
                StagedFile(
                    id=new_id(),
                    original_name=original_name,
                    temp_path=str(temp_path),
                    size=size,
                    mime_type=mime_type,
                    status=StagedFileStatus.TEMPORARY,
                    parsed_info=parsed_info,
                )
            )

    def get(self, file_id: str) -> StagedFile | None:
        with self.uow.read_only():
            return self.uow.staged_file_repo.get_staged_file(file_id)

    def list_temporary(self) -> list[StagedFile]:
        with self.uow.read_only():
            return self.uow.staged_file_repo.list_by_status(StagedFileStatus.TEMPORARY)

    async def confirm(self, file_id: str, final_path: str | Path) -> bool:
        """
        Move a staged file to its permanent location.

        :param file_id: Staged file identifier
        :param final_path: Destination path inside the storage root
        :return: True when the file was claimed and moved; False when it is
            missing, already processed or the move failed (the claim is then
            released so the record stays temporary)
        :rtype: bool
        """
        with self.uow:
            record = self.uow.staged_file_repo.get_staged_file(file_id)
            if record is None or record.status != StagedFileStatus.TEMPORARY:
                return False
            temp_path = record.temp_path
            if not self.uow.staged_file_repo.claim_for_confirmation(file_id, str(final_path)):
                return False

        try:
            await self.storage.move(temp_path, final_path)
        except (OSError, ValueError) as exc:
            logger.error("[confirm] move failed file_id=%s src=%s dst=%s: %s", file_id, temp_path, final_path, exc)
            with self.uow:
                self.uow.staged_file_repo.revert_confirmation(file_id)
            return False

        logger.info("[confirm] file_id=%s moved to %s", file_id, final_path)
        return True

    async def expire_older_than(self, minutes: int = 30) -> int:
        cutoff = utcnow() - timedelta(minutes=minutes)
        with self.uow.read_only():
            candidates = [
                (record.id, record.temp_path)
                for record in self.uow.staged_file_repo.list_expired(cutoff)
            ]

        if not candidates:
            return 0

        for file_id, temp_path in candidates:
            try:
                await self.storage.delete_file(temp_path)
            except (OSError, ValueError) as exc:
                logger.warning("[cleanup] failed to remove temp file file_id=%s path=%s: %s", file_id, temp_path, exc)

        with self.uow:
            expired = self.uow.staged_file_repo.mark_expired([file_id for file_id, _ in candidates])
        logger.info("[cleanup] expired %s staged file(s) older than %s minute(s)", expired, minutes)
        return expired

    async def delete(self, file_id: str) -> bool:
        with self.uow.read_only():
            record = self.uow.staged_file_repo.get_staged_file(file_id)
            if record is None:
                return False
            path = record.final_path or record.temp_path

        try:
            await self.storage.delete_file(path)
        except (OSError, ValueError) as exc:
            logger.warning("[file_delete] failed to remove file_id=%s path=%s: %s", file_id, path, exc)

        with self.uow:
            self.uow.staged_file_repo.delete_staged_file(file_id)
        return True
