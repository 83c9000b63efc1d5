import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from appcenter.core.config import AppSettings
from appcenter.core.security import hash_password
from appcenter.infrastructure.keys import new_id
from appcenter.models.enums import RoleEnum
from appcenter.models.user import User
from appcenter.repositories.user import UserRepo


logger = logging.getLogger(__name__)


def seed_superuser(session: Session, settings: AppSettings) -> None:
    if not settings.SUPERUSER_SEED_ENABLED:
        logger.info("[startup] Superuser seeding disabled")
        return

    required = [settings.SUPERUSER_USERNAME, settings.SUPERUSER_EMAIL, settings.SUPERUSER_PASSWORD]
    if not all(item and item.strip() for item in required):
        logger.warning(
            "[startup] Superuser not seeded. Missing one of SUPERUSER_USERNAME, "
            "SUPERUSER_EMAIL, SUPERUSER_PASSWORD."
        )
        return

    repo = UserRepo(session)

    username = settings.SUPERUSER_USERNAME.strip()
    email = settings.SUPERUSER_EMAIL.strip().lower()

    try:
        user_by_username = repo.get_user_by_username(username)
        user_by_email = repo.get_user_by_email(email)

        if (
            user_by_username
            and user_by_email
            and user_by_username.id != user_by_email.id
        ):
            logger.error(
                "[startup] Superuser seed conflict: username %s and email %s "
                "belong to different users.",
                username,
                email,
            )
            return

        user = user_by_username or user_by_email

        if user is None:
            user = User(
                id=new_id(),
                username=username,
                email=email,
                password_hash=hash_password(settings.SUPERUSER_PASSWORD),
                role=RoleEnum.SUPER_ADMIN,
                is_active=True,
            )
            repo.add_user(user)
            session.commit()
            logger.info("[startup] Seeded superuser account: %s", username)
            return

        dirty = False
        if user.role != RoleEnum.SUPER_ADMIN:
            user.role = RoleEnum.SUPER_ADMIN
            dirty = True
        if not user.is_active:
            user.is_active = True
            dirty = True
        if settings.SUPERUSER_UPDATE_PASSWORD_ON_STARTUP:
            user.password_hash = hash_password(settings.SUPERUSER_PASSWORD)
            dirty = True

        if dirty:
            session.commit()
            logger.info("[startup] Updated existing superuser account: %s", user.username)
        else:
            logger.info("[startup] Superuser already present: %s", user.username)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("[startup] Superuser seeding failed: %s", exc)


def seed_default_admin(session: Session, settings: AppSettings) -> None:
    required = [settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_EMAIL, settings.DEFAULT_ADMIN_PASSWORD]
    if not all(item and item.strip() for item in required):
        return

    repo = UserRepo(session)
    username = settings.DEFAULT_ADMIN_USERNAME.strip()
    email = settings.DEFAULT_ADMIN_EMAIL.strip().lower()

    try:
        if repo.get_user_by_username(username) or repo.get_user_by_email(email):
            logger.info("[startup] Default admin already present: %s", username)
            return
        superuser = repo.get_first_user_with_role(RoleEnum.SUPER_ADMIN)
        repo.add_user(
            User(
                id=new_id(),
                username=username,
                email=email,
                password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
                role=RoleEnum.ADMIN,
                is_active=True,
                created_by=superuser.id if superuser else None,
            )
        )
        session.commit()
        logger.info("[startup] Seeded default admin account: %s", username)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("[startup] Default admin seeding failed: %s", exc)
