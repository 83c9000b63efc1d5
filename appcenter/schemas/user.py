from pydantic import BaseModel, EmailStr, Field, ConfigDict
from datetime import datetime
from appcenter.models.enums import RoleEnum
from typing import Optional

class UserBase(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr

class UserCreate(UserBase):
    password: str = Field(min_length=1, max_length=128)
    role: RoleEnum = Field(default=RoleEnum.USER)


class UserRegister(UserBase):
    password: str = Field(min_length=1, max_length=128)


class UserUpdateRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=1, max_length=128)
    role: Optional[RoleEnum] = None
    is_active: Optional[bool] = None


class UserRead(BaseModel):
    id: str
    username: str
    email: str
    role: RoleEnum
    is_active: bool
    created_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    last_login: Optional[datetime]

    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore"
    )


class UserStats(BaseModel):
    total: int
    super_admins: int
    admins: int
    users: int
    active: int
    inactive: int
