import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from appcenter.api.v1.dependencies import get_settings
from appcenter.core.config import AppSettings
from appcenter.core.security import get_current_user
from appcenter.core.unit_of_work import UnitOfWork
from appcenter.database.db_setup import get_db
from appcenter.domain.user import UserDraft
from appcenter.exceptions.exceptions import PermissionError
from appcenter.models.enums import RoleEnum
from appcenter.schemas.auth import LoginRequest, TokenResponse
from appcenter.schemas.user import UserRead, UserRegister
from appcenter.services.auth_service import AuthService
from appcenter.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["Auth"]
)


def get_auth_service(db: Session = Depends(get_db), settings: AppSettings = Depends(get_settings)) -> AuthService:
    return AuthService(UnitOfWork(session=db), settings)


def get_user_service(db: Session = Depends(get_db), settings: AppSettings = Depends(get_settings)) -> UserService:
    return UserService(UnitOfWork(session=db), password_min_length=settings.PASSWORD_MIN_LENGTH)


# Login with username or email
@router.post("/login", response_model=TokenResponse, status_code=200)
def login(
    payload: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    user, token = service.authenticate_user(payload.identifier, payload.password)
    logger.info("[auth] login user_id=%s from %s", user.id, request.client.host if request.client else "-")
    return TokenResponse(access_token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead, status_code=200)
def get_me(
    service: UserService = Depends(get_user_service),
    current_user: dict = Depends(get_current_user),
):
    return service.get_user_by_id(current_user["user_id"])


@router.post("/register", response_model=UserRead, status_code=201)
def register(
    payload: UserRegister,
    service: UserService = Depends(get_user_service),
    settings: AppSettings = Depends(get_settings),
):
    if not settings.ALLOW_REGISTRATION:
        raise PermissionError("Registration is disabled")
    return service.create_user(
        UserDraft(
            username=payload.username,
            email=payload.email,
            password=payload.password,
            role=RoleEnum.USER,
        )
    )
