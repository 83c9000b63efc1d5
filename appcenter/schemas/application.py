from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from appcenter.models.enums import PlatformEnum


class ApplicationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    download_key: str | None = Field(default=None, max_length=64)
    icon: str | None = None
    platform: PlatformEnum | None = None
    bundle_id: str | None = Field(default=None, max_length=255)


class ApplicationUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    download_key: str | None = Field(default=None, max_length=64)
    icon: str | None = None


class ApplicationPublicRead(BaseModel):
    id: str
    name: str
    app_name: str | None
    download_key: str
    platform: str | None
    bundle_id: str | None
    icon: str | None
    description: str | None
    version: str | None
    build_number: str | None
    upload_date: datetime | None
    download_url: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationRead(ApplicationPublicRead):
    owner_id: str
    app_key: str


class DownloadInfoRead(ApplicationPublicRead):
    manifest_url: str | None = None
    install_url: str | None = None


class DeleteAllResponse(BaseModel):
    deleted_count: int
