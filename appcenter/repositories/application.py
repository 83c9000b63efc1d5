from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from appcenter.models.application import Application


class ApplicationRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_application(self, application: Application) -> Application:
        self.db.add(application)
        self.db.flush()
        self.db.refresh(application)
        return application

    def get_application_by_id(self, application_id: str) -> Optional[Application]:
        return self.db.get(Application, application_id)

    def get_application_by_app_key(self, app_key: str) -> Optional[Application]:
        stmt = select(Application).where(Application.app_key == app_key)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_application_by_download_key(self, download_key: str) -> Optional[Application]:
        stmt = select(Application).where(Application.download_key == download_key)
        return self.db.execute(stmt).scalar_one_or_none()

    def app_key_taken(self, app_key: str) -> bool:
        stmt = select(func.count(Application.id)).where(Application.app_key == app_key)
        return int(self.db.execute(stmt).scalar_one()) > 0

    def download_key_taken(self, download_key: str, exclude_id: str | None = None) -> bool:
        stmt = select(func.count(Application.id)).where(Application.download_key == download_key)
        if exclude_id:
            stmt = stmt.where(Application.id != exclude_id)
        return int(self.db.execute(stmt).scalar_one()) > 0

    def list_applications(self, owner_id: str | None = None) -> list[Application]:
        stmt = select(Application)
        if owner_id is not None:
            stmt = stmt.where(Application.owner_id == owner_id)
        stmt = stmt.order_by(Application.created_at.desc())
        return self.db.execute(stmt).scalars().all()

    def count_applications(self) -> int:
        return int(self.db.execute(select(func.count(Application.id))).scalar_one())

    def delete_application(self, application: Application) -> None:
        self.db.delete(application)
