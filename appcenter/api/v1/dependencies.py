from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, Request, UploadFile
from sqlalchemy.orm import Session

from appcenter.core.config import AppSettings
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import get_db
from appcenter.infrastructure.storage.base import StorageBackend


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage


def get_uow(db: Session = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(session=db)


def public_base_url(request: Request) -> str:
    """Origin used when building download URLs."""
    configured = request.app.state.settings.PUBLIC_BASE_URL
    if configured:
        return configured
    return str(request.base_url).rstrip("/")


async def upload_file_chunk_stream(upload_file: UploadFile, chunk_size: int) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload_file.read(chunk_size)
        if not chunk:
            break
        yield chunk
