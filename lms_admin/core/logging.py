import json
import logging
import os
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

_context_fields: ContextVar[Dict[str, Any]] = ContextVar("log_context_fields", default={})

_RESERVED_EXTRA = ("request_id", "admin_id", "http", "error", "cleanup")


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in _RESERVED_EXTRA:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        log_data.update(_context_fields.get())

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # ObjectIds and datetimes show up in extras from document lookups
        return json.dumps(log_data, default=str)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper()))

    return logger


class LogContext:
    """Attach ``fields`` to records formatted inside the block.

    Fields live in a ContextVar, so each request thread (or task) sees only
    its own block.
    """

    def __init__(self, **fields):
        self.fields = fields
        self._token: Optional[Token] = None

    def __enter__(self):
        self._token = _context_fields.set({**_context_fields.get(), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _context_fields.reset(self._token)
        self._token = None
        return False


class RequestLogger:
    def __init__(self, logger_name: str = "admin_api"):
        self.logger = get_logger(logger_name)

    def log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        request_id: Optional[str] = None,
        admin_id: Optional[str] = None,
        **extra,
    ):
        self.logger.info(
            f"{method} {path} {status_code}",
            extra={
                "request_id": request_id or str(uuid4()),
                "admin_id": admin_id,
                "http": {
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "duration_ms": round(duration_ms, 2),
                },
                **extra,
            },
        )

    def log_error(
        self,
        error: Exception,
        context: Dict[str, Any],
        request_id: Optional[str] = None,
    ):
        self.logger.error(
            str(error),
            extra={
                "request_id": request_id or str(uuid4()),
                "error": {
                    "type": type(error).__name__,
                    "message": str(error),
                    "context": context,
                },
            },
            exc_info=True,
        )


api_logger = RequestLogger("admin_api")
