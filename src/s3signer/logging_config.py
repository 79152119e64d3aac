"""Structured logging configuration for s3signer."""

import json
import logging
import sys
from datetime import datetime, timezone

SERVICE_NAME = "s3signer"

# Extras attached by the request middleware and the sign handler.
_EXTRA_FIELDS = (
    "method",
    "path",
    "status",
    "duration_ms",
    "request_id",
    "category",
    "bucket",
)

# AWS SDK loggers emit request-signing internals at DEBUG/INFO.
_LIBRARY_LOGGERS = ("botocore", "aiobotocore", "urllib3")


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Fields: timestamp, level, service, logger, message, plus any of the
    request/sign extras present on the record.
    """

    def __init__(self, service: str = SERVICE_NAME) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, default=str)


def _resolve_level(level: str) -> int:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return numeric_level


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure root logging for the signer process.

    Replaces any existing root handlers with a single stderr handler.
    Unless ``level`` is DEBUG, the AWS SDK loggers are held at WARNING so
    that presign calls do not log their canonical requests.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: 'text' for human-readable, 'json' for structured.

    Raises:
        ValueError: If ``level`` or ``fmt`` is not recognised.
    """
    if fmt not in ("text", "json"):
        raise ValueError(f"Unknown log format: {fmt!r}")
    numeric_level = _resolve_level(level)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(f"%(asctime)s %(levelname)s {SERVICE_NAME} %(name)s: %(message)s")
        )
    root.addHandler(handler)

    library_level = numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(max(library_level, numeric_level))
