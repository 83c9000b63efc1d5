from appcenter.core.config import AppSettings
from appcenter.core.security import (
    create_access_token,
    hash_password,
    password_needs_rehash,
    verify_password,
)
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import utcnow
from appcenter.exceptions.exceptions import AuthenticationError, DomainError, ValidationError

from sqlalchemy.exc import SQLAlchemyError


class AuthService:
    def __init__(self, uow: UnitOfWork, settings: AppSettings):
        self.uow = uow # Context manager
        self.settings = settings

    # Authenticate user and return a user and a token
    def authenticate_user(self, identifier: str, password: str):
        normalized = (identifier or "").strip()
        if not normalized:
            raise ValidationError("Username or email is required")
        if not isinstance(password, str) or password == "":
            raise ValidationError("Password is required")

        try:
            with self.uow:
                # Username first, then email
                repo = self.uow.user_repo
                user = repo.get_user_by_username(normalized) or repo.get_user_by_email(normalized.lower())
                if not user or not verify_password(password, user.password_hash):
                    raise AuthenticationError("Invalid username or password")

                if not user.is_active:
                    raise AuthenticationError("Account is disabled")

                # Opportunistically upgrade hash parameters on successful login.
                if password_needs_rehash(user.password_hash):
                    user.password_hash = hash_password(password)

                user.last_login = utcnow()
                payload = {
                    "user_id": user.id,
                    "username": user.username,
                    "role": user.role.value if hasattr(user.role, "value") else str(user.role),
                }
                token = create_access_token(data=payload, settings=self.settings)
        except SQLAlchemyError as e:
            raise DomainError("Database error") from e
        return user, token
