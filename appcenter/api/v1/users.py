from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
import logging

from appcenter.api.v1.dependencies import get_settings
from appcenter.core.config import AppSettings
from appcenter.schemas.user import UserCreate, UserRead, UserStats, UserUpdateRequest
from appcenter.services.user_service import UserService
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import get_db
from appcenter.domain.user import UserDraft, UserUpdate
from appcenter.core.security import admin_access, super_admin_access

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["Users"]
)


# Get User Service
def get_service(db: Session = Depends(get_db), settings: AppSettings = Depends(get_settings))->UserService:
    uow = UnitOfWork(session=db)
    return UserService(uow=uow, password_min_length=settings.PASSWORD_MIN_LENGTH)


# Create a user below the caller's role
@router.post("/users", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_service),
    current_user: dict = Depends(admin_access),
    ):
    return service.create_user(
        UserDraft(
            username=payload.username,
            email=payload.email,
            password=payload.password,
            role=payload.role,
        ),
        creator=current_user,
    )


# List users
@router.get("/users", response_model=list[UserRead], status_code=200)
def list_users(
    service: UserService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    return service.list_users(current_user)


# Users created by the caller
@router.get("/users/mine", response_model=list[UserRead], status_code=200)
def list_my_users(
    service: UserService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    return service.list_created_by(current_user)


@router.get("/users/stats", response_model=UserStats, status_code=200)
def get_user_stats(
    service: UserService = Depends(get_service),
    _super_admin: dict = Depends(super_admin_access),
):
    return service.get_stats()


# Get user by id
@router.get("/users/{user_id}", response_model=UserRead, status_code=200)
def get_user(
    user_id: str,
    service: UserService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    return service.get_user_for(user_id, current_user)


@router.patch("/users/{user_id}", response_model=UserRead, status_code=200)
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    service: UserService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    changes = UserUpdate(**payload.model_dump(exclude_unset=True))
    return service.update_user(user_id, changes, current_user)


@router.post("/users/{user_id}/toggle-status", response_model=UserRead, status_code=200)
def toggle_user_status(
    user_id: str,
    service: UserService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    return service.toggle_status(user_id, current_user)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    service: UserService = Depends(get_service),
    current_user: dict = Depends(admin_access),
):
    service.delete_user(user_id, current_user)
    return Response(status_code=204)
