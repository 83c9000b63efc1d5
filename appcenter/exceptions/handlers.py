import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


from appcenter.exceptions.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainError,
    FileSystemError,
    NotFoundError,
    PermissionError,
    UpstreamParseError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, exc: DomainError, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail or str(exc), "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(ConflictError)
    async def _conflict_handler(_request: Request, exc: ConflictError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, exc)

    @app.exception_handler(ValidationError)
    async def _validation_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)

    @app.exception_handler(PermissionError)
    async def _permission_handler(_request: Request, exc: PermissionError) -> JSONResponse:
        return _error_response(status.HTTP_403_FORBIDDEN, exc)

    @app.exception_handler(AuthenticationError)
    async def _authentication_handler(_request: Request, exc: AuthenticationError) -> JSONResponse:
        response = _error_response(status.HTTP_401_UNAUTHORIZED, exc)
        response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(UpstreamParseError)
    async def _parse_error_handler(_request: Request, exc: UpstreamParseError) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(FileSystemError)
    async def _filesystem_handler(request: Request, exc: FileSystemError) -> JSONResponse:
        logger.error("[filesystem] %s %s failed: %s", request.method, request.url.path, exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, detail=FileSystemError.default_message)

    @app.exception_handler(DomainError)
    async def _domain_handler(_request: Request, exc: DomainError) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)
