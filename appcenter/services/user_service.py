import logging

from appcenter.domain.user import UserDraft, UserUpdate, validate_password, validate_username
from appcenter.exceptions.exceptions import ConflictError, NotFoundError, PermissionError, ValidationError
from appcenter.core.security import hash_password
from appcenter.infrastructure.keys import new_id
from appcenter.models.enums import RoleEnum
from appcenter.models.user import User
from appcenter.core.unit_of_work import UnitOfWork

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, uow: UnitOfWork, password_min_length: int = 6):
        self.uow = uow
        self.password_min_length = password_min_length

    # Create user
    def create_user(self, draft: UserDraft, creator: dict | None = None) -> User:
        """
        Docstring for create_user

        :param draft: Validated account fields
        :type draft: UserDraft
        :param creator: The acting user, or None for self registration
        :type creator: dict | None
        :return: The persisted user
        :rtype: User
        """
        role = RoleEnum(draft.role)
        if creator is not None and not RoleEnum(creator["role"]).outranks(role):
            raise PermissionError(f"You cannot create users with role {role.value}")
        if creator is None and role != RoleEnum.USER:
            raise PermissionError("Self registration only creates regular users")

        username = validate_username(draft.username)
        email = (draft.email or "").strip().lower()
        if not email:
            raise ValidationError("Email is required")
        password = validate_password(draft.password, self.password_min_length)

        with self.uow:
            repo = self.uow.user_repo
            if repo.username_taken(username):
                raise ConflictError("Username already exists.")
            if repo.email_taken(email):
                raise ConflictError("Email already exists.")

            user = User(
                id=new_id(),
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=role,
                is_active=True,
                created_by=creator["user_id"] if creator else None,
            )
            try:
                user = repo.add_user(user)
            except IntegrityError as exc:
                raise self._map_user_integrity_error(exc) from exc
            logger.info(
                "[user_create] id=%s username=%s role=%s created_by=%s",
                user.id,
                user.username,
                role.value,
                user.created_by,
            )
            return user

    # List users
    def list_users(self, current_user: dict) -> list[User]:
        role = RoleEnum(current_user["role"])
        with self.uow.read_only():
            if role == RoleEnum.SUPER_ADMIN:
                return self.uow.user_repo.list_users()
            if role == RoleEnum.ADMIN:
                return self.uow.user_repo.list_users_created_by(current_user["user_id"])
        raise PermissionError("Insufficient permissions")

    def list_created_by(self, current_user: dict) -> list[User]:
        with self.uow.read_only():
            return self.uow.user_repo.list_users_created_by(current_user["user_id"])

    # Get user by id
    def get_user_by_id(self, user_id: str) -> User:
        with self.uow.read_only():
            user = self.uow.user_repo.get_user_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            return user

    def get_user_for(self, user_id: str, current_user: dict) -> User:
        user = self.get_user_by_id(user_id)
        if user.id != current_user["user_id"]:
            self._ensure_manages(current_user, user)
        return user

    def update_user(self, user_id: str, changes: UserUpdate, current_user: dict) -> User:
        values = changes.changes()
        if not values:
            raise ValidationError("No fields to update")

        with self.uow:
            repo = self.uow.user_repo
            user = repo.get_user_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            is_self = user.id == current_user["user_id"]
            if not is_self:
                self._ensure_manages(current_user, user)

            if "username" in values:
                username = validate_username(values["username"])
                if repo.username_taken(username, exclude_id=user.id):
                    raise ConflictError("Username already exists.")
                user.username = username
            if "email" in values:
                email = (values["email"] or "").strip().lower()
                if not email:
                    raise ValidationError("Email is required")
                if repo.email_taken(email, exclude_id=user.id):
                    raise ConflictError("Email already exists.")
                user.email = email
            if "password" in values:
                user.password_hash = hash_password(validate_password(values["password"], self.password_min_length))
            if "role" in values:
                new_role = RoleEnum(values["role"])
                if new_role != user.role:
                    if RoleEnum(current_user["role"]) != RoleEnum.SUPER_ADMIN:
                        raise PermissionError("Only a super admin can change roles")
                    if is_self or user.role == RoleEnum.SUPER_ADMIN or new_role == RoleEnum.SUPER_ADMIN:
                        raise PermissionError("Super admin roles cannot be granted or revoked")
                    user.role = new_role
            if "is_active" in values and bool(values["is_active"]) != user.is_active:
                self._ensure_can_deactivate(user, current_user)
                user.is_active = bool(values["is_active"])

            try:
                repo.db.flush()
            except IntegrityError as exc:
                raise self._map_user_integrity_error(exc) from exc
            logger.info("[user_update] id=%s by=%s fields=%s", user.id, current_user["user_id"], sorted(values))
            return user

    def toggle_status(self, user_id: str, current_user: dict) -> User:
        with self.uow:
            user = self.uow.user_repo.get_user_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            self._ensure_can_deactivate(user, current_user)
            self._ensure_manages(current_user, user)
            user.is_active = not user.is_active
            logger.info("[user_status] id=%s active=%s by=%s", user.id, user.is_active, current_user["user_id"])
            return user

    def delete_user(self, user_id: str, current_user: dict) -> None:
        with self.uow:
            repo = self.uow.user_repo
            user = repo.get_user_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            if user.id == current_user["user_id"]:
                raise PermissionError("You cannot delete your own account")
            if user.role == RoleEnum.SUPER_ADMIN:
                raise PermissionError("Super admin accounts cannot be deleted")
            self._ensure_manages(current_user, user)
            if repo.count_owned_applications(user.id) > 0:
                raise ConflictError("User owns applications; transfer or delete them first")
            repo.delete_user(user)
            logger.info("[user_delete] id=%s by=%s", user_id, current_user["user_id"])

    def get_stats(self) -> dict[str, int]:
        with self.uow.read_only():
            return self.uow.user_repo.get_user_stats()

    @staticmethod
    def _ensure_manages(current_user: dict, target: User) -> None:
        role = RoleEnum(current_user["role"])
        if role == RoleEnum.SUPER_ADMIN:
            return
        if role == RoleEnum.ADMIN and target.created_by == current_user["user_id"]:
            return
        raise PermissionError("You do not have permission to manage this user")

    @staticmethod
    def _ensure_can_deactivate(target: User, current_user: dict) -> None:
        if target.id == current_user["user_id"]:
            raise PermissionError("You cannot disable your own account")
        if target.role == RoleEnum.SUPER_ADMIN:
            raise PermissionError("Super admin accounts cannot be disabled")

    def _map_user_integrity_error(self, exc: IntegrityError) -> ConflictError:
        message = str(getattr(exc, "orig", exc)).lower()
        if "username" in message:
            return ConflictError("Username already exists.")
        if "email" in message:
            return ConflictError("Email already exists.")
        return ConflictError("Username or email already exists.")
