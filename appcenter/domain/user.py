from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from appcenter.domain.application import UNSET, _PartialUpdate
from appcenter.exceptions.exceptions import ValidationError
from appcenter.models.enums import RoleEnum

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MAX_LENGTH = 128


def validate_username(username: str | None) -> str:
    cleaned = (username or "").strip()
    if len(cleaned) < USERNAME_MIN_LENGTH:
        raise ValidationError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
    if len(cleaned) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters")
    if not USERNAME_PATTERN.match(cleaned):
        raise ValidationError("Username may only contain letters, digits, '_' and '-'")
    return cleaned


def validate_password(password: str | None, min_length: int) -> str:
    if not password or len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_LENGTH} characters")
    return password


@dataclass(frozen=True)
class UserDraft:
    username: str
    email: str
    password: str
    role: RoleEnum = RoleEnum.USER


@dataclass
class UserUpdate(_PartialUpdate):
    username: Any = UNSET
    email: Any = UNSET
    password: Any = UNSET
    role: Any = UNSET
    is_active: Any = UNSET
