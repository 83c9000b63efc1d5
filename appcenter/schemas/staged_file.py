from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from appcenter.models.enums import StagedFileStatus


class ParsedAppInfo(BaseModel):
    name: str
    bundleId: str
    versionName: str
    versionCode: str
    platform: str
    icon: str | None = None
    iconError: str | None = None


class StageResponse(BaseModel):
    file_id: str
    app_info: ParsedAppInfo


class StagedFileRead(BaseModel):
    id: str
    original_name: str
    size: int
    mime_type: str | None
    uploaded_at: datetime
    status: StagedFileStatus
    parsed_info: dict | None

    model_config = ConfigDict(from_attributes=True)


class CleanupResponse(BaseModel):
    cleaned_count: int
