"""
Structured logging configuration.

JSON lines for the deployed API, plain text while developing. Analytics
modules under `services.` log through their own level so their per-call
debug output (plateau skips, period transitions) can be turned up without
flooding the request log.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from core.config import settings

SERVICE_NAME = "fyra-progress-api"
ANALYTICS_LOGGER = "services"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, tagged with the service and environment."""

    def __init__(self, environment: Optional[str] = None):
        super().__init__()
        self.environment = environment or settings.ENVIRONMENT

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "environment": self.environment,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Request middleware passes structured context via extra={"extra_fields": {...}}
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def _level(name: Optional[str], fallback: int) -> int:
    if not name:
        return fallback
    return getattr(logging, name.upper(), fallback)


def setup_logging():
    """
    Configure the root logger once at startup.

    LOG_FORMAT=json (or ENVIRONMENT=production) selects JSONFormatter.
    SERVICES_LOG_LEVEL overrides the level of the analytics loggers only.
    """
    log_level = _level(settings.LOG_LEVEL, logging.INFO)

    if settings.LOG_FORMAT == "json" or settings.ENVIRONMENT == "production":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger(ANALYTICS_LOGGER).setLevel(_level(settings.SERVICES_LOG_LEVEL, log_level))

    # SQL echo and per-request access lines duplicate the request middleware
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return root_logger
