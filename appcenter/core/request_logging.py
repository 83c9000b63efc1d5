from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from appcenter.core.logging_setup import request_id_var

logger = logging.getLogger("appcenter.requests")


class RequestLogMiddleware(BaseHTTPMiddleware):
    _SKIP_PREFIXES = ("/docs", "/openapi", "/redoc", "/favicon.ico")

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started_at = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            if request.app.state.settings.REQUEST_LOG_ENABLED and not self._should_skip(request.url.path):
                duration_ms = int((time.perf_counter() - started_at) * 1000)
                level = logging.WARNING if status_code >= 500 else logging.INFO
                logger.log(
                    level,
                    "[request] id=%s %s %s status=%s duration_ms=%s ip=%s",
                    request_id,
                    request.method,
                    request.url.path,
                    status_code,
                    duration_ms,
                    request.client.host if request.client else "-",
                )
            request_id_var.reset(token)

    def _should_skip(self, path: str) -> bool:
        if not path.startswith("/api/"):
            return True
        return path.startswith(self._SKIP_PREFIXES)
