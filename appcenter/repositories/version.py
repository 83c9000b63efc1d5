from __future__ import annotations

from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from appcenter.models.version import Version


class VersionRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_version(self, version: Version) -> Version:
        self.db.add(version)
        self.db.flush()
        self.db.refresh(version)
        return version

    def get_version(self, application_id: str, version_id: str) -> Optional[Version]:
        stmt = select(Version).where(
            and_(Version.id == version_id, Version.application_id == application_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_versions(self, application_id: str) -> list[Version]:
        """Newest first, by creation time."""
        stmt = (
            select(Version)
            .where(Version.application_id == application_id)
            .order_by(Version.created_at.desc(), Version.upload_date.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def get_latest_version(self, application_id: str) -> Optional[Version]:
        stmt = (
            select(Version)
            .where(Version.application_id == application_id)
            .order_by(Version.created_at.desc(), Version.upload_date.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def version_exists(
        self,
        application_id: str,
        version: str,
        build_number: str,
        exclude_id: str | None = None,
    ) -> bool:
        stmt = select(func.count(Version.id)).where(
            and_(
                Version.application_id == application_id,
                Version.version == version,
                Version.build_number == build_number,
            )
        )
        if exclude_id:
            stmt = stmt.where(Version.id != exclude_id)
        return int(self.db.execute(stmt).scalar_one()) > 0

    def list_file_paths(self, application_id: str) -> list[str]:
        stmt = select(Version.file_path).where(Version.application_id == application_id)
        return [path for path in self.db.execute(stmt).scalars().all() if path]

    def count_versions(self) -> int:
        return int(self.db.execute(select(func.count(Version.id))).scalar_one())

    def delete_version(self, version: Version) -> None:
        self.db.delete(version)
