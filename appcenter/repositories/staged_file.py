from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.orm import Session

from appcenter.database.db_setup import utcnow
from appcenter.models.enums import StagedFileStatus
from appcenter.models.staged_file import StagedFile


class StagedFileRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_staged_file(self, staged_file: StagedFile) -> StagedFile:
        self.db.add(staged_file)
        self.db.flush()
        self.db.refresh(staged_file)
        return staged_file

    def get_staged_file(self, file_id: str) -> Optional[StagedFile]:
        return self.db.get(StagedFile, file_id)

    def claim_for_confirmation(self, file_id: str, final_path: str) -> bool:
        """
        Flip a temporary record to confirmed in a single conditional update.

        :param file_id: Staged file identifier
        :type file_id: str
        :param final_path: Path the payload is about to be moved to
        :type final_path: str
        :return: True when this call won the transition, False when the record
            is missing or no longer temporary
        :rtype: bool
        """
        stmt = (
            update(StagedFile)
            .where(and_(StagedFile.id == file_id, StagedFile.status == StagedFileStatus.TEMPORARY))
            .values(status=StagedFileStatus.CONFIRMED, final_path=final_path, updated_at=utcnow())
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def revert_confirmation(self, file_id: str) -> None:
        stmt = (
            update(StagedFile)
            .where(and_(StagedFile.id == file_id, StagedFile.status == StagedFileStatus.CONFIRMED))
            .values(status=StagedFileStatus.TEMPORARY, final_path=None, updated_at=utcnow())
        )
        self.db.execute(stmt)

    def list_expired(self, cutoff: datetime) -> list[StagedFile]:
        stmt = select(StagedFile).where(
            and_(StagedFile.status == StagedFileStatus.TEMPORARY, StagedFile.uploaded_at < cutoff)
        )
        return self.db.execute(stmt).scalars().all()

    def mark_expired(self, file_ids: list[str]) -> int:
        if not file_ids:
            return 0
        stmt = (
            update(StagedFile)
            .where(and_(StagedFile.id.in_(file_ids), StagedFile.status == StagedFileStatus.TEMPORARY))
            .values(status=StagedFileStatus.EXPIRED, updated_at=utcnow())
        )
        return int(self.db.execute(stmt).rowcount or 0)

    def list_by_status(self, status: StagedFileStatus) -> list[StagedFile]:
        stmt = select(StagedFile).where(StagedFile.status == status).order_by(StagedFile.uploaded_at.asc())
        return self.db.execute(stmt).scalars().all()

    def delete_staged_file(self, file_id: str) -> int:
        stmt = delete(StagedFile).where(StagedFile.id == file_id)
        return int(self.db.execute(stmt).rowcount or 0)
