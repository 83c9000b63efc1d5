from appcenter.models.user import User
from appcenter.models.application import Application
from appcenter.models.enums import RoleEnum
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, case, func, select


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_user(self, user: User)->User:
        """
        Docstring for add_user

        :param self: References class instance
        :param user: A user object to be saved
        :type user: User
        :return: Returns a user object that has been saved
        :rtype: User
        """
        self.db.add(user)
        self.db.flush()
        self.db.refresh(user)
        return user

    def get_user_by_id(self, id: str)->Optional[User]:
        """
        Docstring for get_user

        :param self: References class instance
        :param id: The user identifier
        :type id: str
        :return: Returns a user object
        :rtype: User | None
        """
        return self.db.get(User, id)

    def get_user_by_username(self, username: str)->Optional[User]:
        stmt = select(User).where(User.username == username)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_user_by_email(self, email: str)-> Optional[User]:
        stmt = select(User).where(User.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def username_taken(self, username: str, exclude_id: str | None = None) -> bool:
        stmt = select(func.count(User.id)).where(User.username == username)
        if exclude_id:
            stmt = stmt.where(User.id != exclude_id)
        return int(self.db.execute(stmt).scalar_one()) > 0

    def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        stmt = select(func.count(User.id)).where(User.email == email)
        if exclude_id:
            stmt = stmt.where(User.id != exclude_id)
        return int(self.db.execute(stmt).scalar_one()) > 0

    def list_users(self) -> list[User]:
        stmt = select(User).order_by(User.created_at.desc())
        return self.db.execute(stmt).scalars().all()

    def list_users_created_by(self, creator_id: str) -> list[User]:
        stmt = select(User).where(User.created_by == creator_id).order_by(User.created_at.desc())
        return self.db.execute(stmt).scalars().all()

    def get_first_user_with_role(self, role: RoleEnum) -> Optional[User]:
        stmt = select(User).where(User.role == role).order_by(User.created_at.asc()).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()

    def count_owned_applications(self, user_id: str) -> int:
        stmt = select(func.count(Application.id)).where(Application.owner_id == user_id)
        return int(self.db.execute(stmt).scalar_one())

    def get_user_stats(self) -> dict[str, int]:
        stmt = select(
            func.count(User.id),
            func.coalesce(func.sum(case((User.role == RoleEnum.SUPER_ADMIN, 1), else_=0)), 0),
            func.coalesce(func.sum(case((User.role == RoleEnum.ADMIN, 1), else_=0)), 0),
            func.coalesce(func.sum(case((User.role == RoleEnum.USER, 1), else_=0)), 0),
            func.coalesce(func.sum(case((and_(User.is_active.is_(True)), 1), else_=0)), 0),
        )
        total, super_admins, admins, users, active = self.db.execute(stmt).one()
        return {
            "total": int(total),
            "super_admins": int(super_admins),
            "admins": int(admins),
            "users": int(users),
            "active": int(active),
            "inactive": int(total) - int(active),
        }

    def delete_user(self, user: User) -> None:
        self.db.delete(user)
