from __future__ import annotations

import logging
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path

from appcenter.core.config import AppSettings, settings as default_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [rid=%(request_id)s] %(message)s"

# Set per request by RequestLogMiddleware; "-" outside a request
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Stamps every record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def _build_handler(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())
    return handler


def configure_logging(settings: AppSettings | None = None) -> None:
    """Attach the rotating file and console handlers to the root logger, once per process."""
    settings = settings or default_settings
    root_logger = logging.getLogger()
    if getattr(root_logger, "_appcenter_configured", False):
        return

    log_file = Path(settings.LOG_FILE_PATH)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, "%Y-%m-%d %H:%M:%S")

    root_logger.setLevel(settings.LOG_LEVEL)
    root_logger.addHandler(
        _build_handler(
            RotatingFileHandler(
                filename=log_file,
                maxBytes=settings.LOG_MAX_BYTES,
                backupCount=settings.LOG_BACKUP_COUNT,
                encoding="utf-8",
            ),
            formatter,
        )
    )
    root_logger.addHandler(_build_handler(logging.StreamHandler(), formatter))
    setattr(root_logger, "_appcenter_configured", True)
