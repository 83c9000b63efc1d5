from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from datetime import datetime

from appcenter.database.db_setup import Base, utcnow
from appcenter.models.enums import RoleEnum



class User(Base):

     __tablename__ = "users"

     id: Mapped[str] = mapped_column(String(36), primary_key=True)
     username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
     email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
     password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
     role: Mapped[RoleEnum] = mapped_column(nullable=False, default=RoleEnum.USER)
     is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
     created_by: Mapped[str | None] = mapped_column(
          ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
     )
     last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

     created_at: Mapped[datetime] = mapped_column(
          DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
     )
     updated_at: Mapped[datetime] = mapped_column(
          DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
     )

     def __repr__(self)->str:
          return f"<User id={self.id} username={self.username!r} role={self.role}>"
