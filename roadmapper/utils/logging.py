"""
Logging Configuration

Text logs in development, one JSON object per line in production.

Every record carries the id of the request it was written for (set by the
request middleware in main.py through a context variable). Tenant and user
ids travel through `extra=`, so a single request or a single tenant can be
followed through the log aggregator.
"""
import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes copied from the record into the JSON payload when present
CONTEXT_FIELDS = (
    "request_id",
    "tenant_id",
    "tenant_source",
    "user_id",
    "path",
    "method",
    "entity",
    "record_id",
)

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "passlib": logging.ERROR,
}


def bind_request_id(request_id: str) -> Token:
    """Attach request_id to every record logged from the current task."""
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def current_request_id() -> Optional[str]:
    return _request_id.get()


class RequestContextFilter(logging.Filter):
    """Fill record.request_id from the context variable unless extra= set it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = current_request_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update({
            field: getattr(record, field)
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) not in (None, "-")
        })

        if getattr(record, "security_event", False):
            payload["security_event"] = {
                "type": getattr(record, "event_type", None),
                "details": getattr(record, "details", {}),
            }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure the root logger.

    NOTE: Replaces existing root handlers, so calling it twice (tests,
    reloads) does not duplicate output.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_security_event(event_type: str, details: Dict[str, Any], logger: logging.Logger) -> None:
    """
    Record a security-relevant event at WARNING.

    Event types in use:
    - failed_login: login or password change rejected
    - invalid_token: bearer token present but unusable
    - cross_tenant_access: a row of another tenant was requested
    - plan_tier_changed: an admin changed the tenant's plan
    - user_role_changed: an admin changed another user's role
    """
    # details stays nested so keys like "message" cannot collide with LogRecord attributes
    logger.warning(
        f"SECURITY EVENT: {event_type}",
        extra={
            "security_event": True,
            "event_type": event_type,
            "details": details,
            "tenant_id": details.get("tenant_id"),
            "user_id": details.get("user_id"),
        }
    )
