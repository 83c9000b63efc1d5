from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

from appcenter.exceptions.exceptions import MissingRequiredField, ValidationError
from appcenter.models.enums import PlatformEnum, VersionStatus

VERSION_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)*(-[a-zA-Z0-9.-]+)?$")
DOWNLOAD_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{4,64}$")
MAX_BUILD_NUMBER = 999_999_999
APP_NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000
RELEASE_NOTES_MAX_LENGTH = 5000


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def sanitize_text(value: str | None, max_length: int) -> str:
    if not value:
        return ""
    return value.strip().replace("<", "").replace(">", "")[:max_length]


def validate_app_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Application name is required")
    if len(cleaned) > APP_NAME_MAX_LENGTH:
        raise ValidationError(f"Application name must be at most {APP_NAME_MAX_LENGTH} characters")
    return cleaned


def validate_download_key(key: str) -> str:
    cleaned = (key or "").strip()
    if not DOWNLOAD_KEY_PATTERN.match(cleaned):
        raise ValidationError("Download key must be 4-64 letters, digits, '-' or '_'")
    return cleaned


def validate_platform(platform: str | None) -> str | None:
    if platform is None or platform == "":
        return None
    try:
        return PlatformEnum(platform).value
    except ValueError as exc:
        raise ValidationError("Platform must be iOS or Android") from exc


def validate_version_string(version: str) -> str:
    cleaned = (version or "").strip()
    if not cleaned:
        raise MissingRequiredField("Version is required")
    if not VERSION_PATTERN.match(cleaned):
        raise ValidationError("Invalid version format, use e.g. 1.0.0 or 1.0.0-beta")
    return cleaned


def validate_build_number(build_number: str | int) -> str:
    raw = str(build_number).strip() if build_number is not None else ""
    if not raw:
        raise MissingRequiredField("Build number is required")
    if not raw.isdigit() or int(raw) <= 0:
        raise ValidationError("Build number must be a positive integer")
    if int(raw) > MAX_BUILD_NUMBER:
        raise ValidationError("Build number is too large")
    return str(int(raw))


@dataclass(frozen=True)
class ApplicationDraft:
    name: str
    description: str | None = None
    download_key: str | None = None
    icon: str | None = None
    platform: str | None = None
    bundle_id: str | None = None

    def validate(self) -> "ApplicationDraft":
        return ApplicationDraft(
            name=validate_app_name(self.name),
            description=sanitize_text(self.description, DESCRIPTION_MAX_LENGTH) or None,
            download_key=validate_download_key(self.download_key) if self.download_key else None,
            icon=self.icon,
            platform=validate_platform(self.platform),
            bundle_id=(self.bundle_id or "").strip()[:255] or None,
        )


@dataclass
class _PartialUpdate:
    """Base for update structs: only fields not left as UNSET are applied."""

    def changes(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass
class ApplicationUpdate(_PartialUpdate):
    name: Any = UNSET
    description: Any = UNSET
    download_key: Any = UNSET
    icon: Any = UNSET

    def validate(self) -> "ApplicationUpdate":
        if self.name is not UNSET:
            self.name = validate_app_name(self.name)
        if self.description is not UNSET:
            self.description = sanitize_text(self.description, DESCRIPTION_MAX_LENGTH) or None
        if self.download_key is not UNSET:
            if self.download_key is None:
                raise ValidationError("Download key cannot be cleared")
            self.download_key = validate_download_key(self.download_key)
        return self


@dataclass
class VersionUpdate(_PartialUpdate):
    version: Any = UNSET
    build_number: Any = UNSET
    release_notes: Any = UNSET
    status: Any = UNSET

    def validate(self) -> "VersionUpdate":
        if self.version is not UNSET:
            self.version = validate_version_string(self.version)
        if self.build_number is not UNSET:
            self.build_number = validate_build_number(self.build_number)
        if self.release_notes is not UNSET:
            self.release_notes = sanitize_text(self.release_notes, RELEASE_NOTES_MAX_LENGTH)
        if self.status is not UNSET:
            try:
                self.status = VersionStatus(self.status)
            except ValueError as exc:
                raise ValidationError(f"Unknown version status: {self.status}") from exc
        return self


@dataclass(frozen=True)
class VersionDraft:
    application_id: str
    version: str
    build_number: str
    release_notes: str
    size: str
    file_name: str
    file_path: str
    download_url: str | None
    platform: str | None
    status: VersionStatus = VersionStatus.ACTIVE
    upload_date: datetime | None = field(default=None)


@dataclass(frozen=True)
class ConfirmRequest:
    """What the client sends to turn a staged file into a version."""

    file_id: str
    confirm: bool = True
    version: str | None = None
    build_number: str | None = None
    release_notes: str | None = None

    def validated(self) -> "ConfirmRequest":
        if not (self.version or "").strip() or not str(self.build_number or "").strip():
            raise MissingRequiredField()
        return ConfirmRequest(
            file_id=self.file_id,
            confirm=self.confirm,
            version=validate_version_string(self.version),
            build_number=validate_build_number(self.build_number),
            release_notes=sanitize_text(self.release_notes, RELEASE_NOTES_MAX_LENGTH),
        )


def format_size(size_bytes: int) -> str:
    return f"{size_bytes / (1024 * 1024):.2f} MB"
