"""Logging configuration for the Knowledge Assistant service."""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional

from knowledge_assistant.config import get_settings

ROOT_LOGGER = "knowledge_assistant"

# Set per request by the middleware and the auth dependency
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

_configured = False

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "googleapiclient.discovery_cache", "openai", "LiteLLM")


class RequestContextFilter(logging.Filter):
    """Stamp every record with the current request and user IDs."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.user_id = user_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, used in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "user_id": getattr(record, "user_id", "-"),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        log_data.update(getattr(record, "extra_fields", {}))
        return json.dumps(log_data, default=str)


def setup_logging() -> logging.Logger:
    """Configure the service logger once; JSON in production, plain text elsewhere."""
    global _configured
    logger = logging.getLogger(ROOT_LOGGER)
    if _configured:
        return logger

    settings = get_settings()
    level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    if settings.is_production:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s %(user_id)s] - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if settings.debug else logging.WARNING)

    _configured = True
    logger.info(f"Logging configured: level={settings.log_level}, environment={settings.environment.value}")
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a child of the service logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def set_user_id(user_id: Optional[str]) -> None:
    user_id_var.set(user_id)


def log_request(method: str, path: str, status_code: int, duration_ms: float, **kwargs: Any) -> None:
    """Log a completed HTTP request. Health checks are logged at DEBUG."""
    level = logging.DEBUG if path == "/health" else logging.INFO
    get_logger("http").log(
        level,
        f"{method} {path} - {status_code} - {duration_ms:.2f}ms",
        extra={
            "extra_fields": {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs,
            }
        },
    )


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with its traceback and request context."""
    get_logger("error").error(
        f"{type(error).__name__}: {error}",
        exc_info=error,
        extra={
            "extra_fields": {
                "error_type": type(error).__name__,
                "context": context or {},
            }
        },
    )
