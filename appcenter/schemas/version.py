from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from appcenter.models.enums import VersionStatus


class VersionConfirmRequest(BaseModel):
    file_id: str = Field(min_length=1, max_length=36)
    confirm: bool = False
    version: str | None = Field(default=None, max_length=64)
    build_number: str | int | None = None
    release_notes: str | None = Field(default=None, max_length=5000)


class VersionUpdateRequest(BaseModel):
    version: str | None = Field(default=None, min_length=1, max_length=64)
    build_number: str | int | None = None
    release_notes: str | None = Field(default=None, max_length=5000)
    status: VersionStatus | None = None


class VersionRead(BaseModel):
    id: str
    application_id: str
    version: str
    build_number: str
    release_notes: str
    upload_date: datetime
    size: str
    status: VersionStatus
    file_name: str
    download_url: str | None
    platform: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VersionPreview(BaseModel):
    app_info: dict | None
