from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from appcenter.core.config import AppSettings
from appcenter.database.db_setup import get_db
from appcenter.exceptions.exceptions import AuthenticationError, PermissionError
from appcenter.models.enums import RoleEnum
from appcenter.repositories.user import UserRepo

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def password_needs_rehash(hashed_password: str) -> bool:
    return pwd_context.needs_update(hashed_password)


def create_access_token(
    data: dict[str, Any],
    settings: AppSettings,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed JWT access token.

    :param data: Claims to encode
    :param settings: Settings holding the signing key and algorithm
    :param expires_delta: Optional lifetime override
    :return: Encoded token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str, settings: AppSettings) -> dict[str, Any] | None:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        logger.info("[auth] rejected token: %s", exc)
        return None


def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> dict:
    if not token:
        raise AuthenticationError("Not authenticated")

    payload = decode_token(token, request.app.state.settings)
    if payload is None or not payload.get("user_id"):
        raise AuthenticationError("Could not validate credentials")

    user = UserRepo(db).get_user_by_id(str(payload["user_id"]))
    if user is None:
        raise AuthenticationError("Could not validate credentials")
    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    return {
        "user_id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
    }


def require_roles(*roles: RoleEnum):
    allowed = {RoleEnum(role) for role in roles}

    def _checker(current_user: dict = Depends(get_current_user)) -> dict:
        if RoleEnum(current_user["role"]) not in allowed:
            raise PermissionError("Insufficient permissions")
        return current_user

    return _checker


admin_access = require_roles(RoleEnum.ADMIN, RoleEnum.SUPER_ADMIN)
super_admin_access = require_roles(RoleEnum.SUPER_ADMIN)
