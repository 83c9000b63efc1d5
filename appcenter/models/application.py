from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from appcenter.database.db_setup import Base, utcnow


class Application(Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    app_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    app_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    download_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    platform: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    bundle_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Mirrors the latest confirmed version
    version: Mapped[str | None] = mapped_column(String(64), nullable=True)
    build_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    upload_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    download_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    versions = relationship(
        "Version",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
