from enum import Enum


class RoleEnum(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    USER = "user"

    @property
    def rank(self) -> int:
        return _ROLE_RANKS[self]

    def outranks(self, other: "RoleEnum") -> bool:
        return self.rank > RoleEnum(other).rank


_ROLE_RANKS = {
    RoleEnum.USER: 0,
    RoleEnum.ADMIN: 1,
    RoleEnum.SUPER_ADMIN: 2,
}


class PlatformEnum(str, Enum):
    IOS = "iOS"
    ANDROID = "Android"


class VersionStatus(str, Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


class StagedFileStatus(str, Enum):
    TEMPORARY = "temporary"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"
