"""
Logging setup with automatic masking of sensitive data

Contact phone numbers, emails and credentials are masked before any record
reaches a handler.
"""

import logging
import re
import json
from typing import Any
from datetime import datetime
import os


# Attributes present on every LogRecord; anything else came from `extra=`
_RESERVED_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class SensitiveDataFilter(logging.Filter):
    """
    Masks sensitive values in log messages and arguments
    """

    SENSITIVE_PATTERNS = {
        # "password": "secret" -> "password": "***"
        "password": (
            r'"password"\s*:\s*"[^"]*"',
            '"password": "***"',
        ),
        # "token": "eyJ..." -> "token": "***"
        "token": (
            r'"(token|access_token|refresh_token)"\s*:\s*"[^"]*"',
            r'"\1": "***"',
        ),
        # Authorization: Bearer eyJ... -> Bearer ***
        "bearer": (
            r"(Bearer)\s+[A-Za-z0-9\-_\.]+",
            r"\1 ***",
        ),
        # user@example.com -> u***@example.com
        "email": (
            r"\b([a-zA-Z0-9._%+-])[a-zA-Z0-9._%+-]*@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b",
            r"\1***@\2",
        ),
        # 9876543210 -> 98******10
        "phone": (
            r"\b([6-9]\d)\d{6}(\d{2})\b",
            r"\1******\2",
        ),
    }

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Mask the record in place

        Returns:
            bool: always True
        """
        if isinstance(record.msg, str):
            record.msg = self.mask_sensitive_data(record.msg)

        if record.args:
            record.args = tuple(
                self.mask_sensitive_data(str(arg)) for arg in record.args
            )

        return True

    def mask_sensitive_data(self, text: str) -> str:
        for pattern, replacement in self.SENSITIVE_PATTERNS.values():
            text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)

        return text


class JSONFormatter(logging.Formatter):
    """
    Structured JSON log formatter
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Context passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(
    log_level: str = None,
    log_format: str = None,
    log_file: str = None,
) -> None:
    """
    Configure the root logger

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_format: "json" or "text"
        log_file: optional log file path (console only when None)
    """
    log_level = log_level or os.getenv("LOG_LEVEL", "INFO")
    log_format = log_format or os.getenv("LOG_FORMAT", "json")
    log_file = log_file or os.getenv("LOG_FILE")

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SensitiveDataFilter())
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Return a module logger

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Address created", extra={"address_id": "..."})
        ```
    """
    return logging.getLogger(name)


class RequestLogger:
    """
    Logs every API request with its status and latency
    """

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or get_logger("api.requests")

    async def log_request(self, request: Any, response_time: float, status_code: int):
        self.logger.info(
            f"{request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
                "response_time_ms": round(response_time * 1000, 2),
                "status_code": status_code,
            },
        )


class AuditLogger:
    """
    Audit log for business events (address created, default changed, ...)
    """

    def __init__(self):
        self.logger = get_logger("audit")

    def log_event(
        self,
        event_type: str,
        user_id: str = None,
        resource_type: str = None,
        resource_id: str = None,
        action: str = None,
        actor_id: str = None,
        details: dict = None,
    ):
        """
        Record an audit event

        Args:
            event_type: event name (address.created, address.deleted, ...)
            user_id: owner of the affected resource
            resource_type: resource kind (address, state, ...)
            resource_id: resource ID
            action: create, update, delete, ...
            actor_id: user who performed the action
            details: extra context
        """
        self.logger.info(
            f"[AUDIT] {event_type}",
            extra={
                "event_type": event_type,
                "user_id": user_id,
                "resource_type": resource_type,
                "resource_id": resource_id,
                "action": action,
                "actor_id": actor_id,
                "details": details or {},
            },
        )


audit_logger = AuditLogger()
