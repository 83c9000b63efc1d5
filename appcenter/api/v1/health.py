import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/health", tags=["Health"])


@router.get("")
def health(request: Request):
    return {
        "status": "ok",
        "service": request.app.state.settings.APP_NAME,
        "uptime_seconds": int(time.monotonic() - request.app.state.started_at),
    }


@router.get("/detailed")
async def detailed_health(request: Request):
    checks: dict[str, dict] = {}

    started = time.perf_counter()
    try:
        with request.app.state.database.session() as db:
            db.execute(text("SELECT 1"))
        checks["database"] = {"status": "ok", "latency_ms": int((time.perf_counter() - started) * 1000)}
    except SQLAlchemyError as exc:
        logger.error("[health] database check failed: %s", exc)
        checks["database"] = {"status": "error", "error": "database unreachable"}

    storage = request.app.state.storage
    try:
        writable = await storage.check_writable()
        checks["storage"] = {"status": "ok" if writable else "error", "writable": writable}
    except OSError as exc:
        logger.error("[health] storage check failed: %s", exc)
        checks["storage"] = {"status": "error", "writable": False}

    healthy = all(check["status"] == "ok" for check in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )
