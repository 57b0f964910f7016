"""Structured logging configuration for the Object Storage Operator."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from .utils.errors import sanitize_dict, sanitize_error_message

# Attribute carrying structured fields from log_resource_event to the formatter
FIELDS_ATTR = "resource_fields"


class JsonFormatter(logging.Formatter):
    """Render every record as one JSON object per line.

    Records from ``log_resource_event`` carry their fields already; plain records
    from adapter loggers are wrapped with level, logger name and message.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname.lower(),
            "logger": record.name,
        }
        fields = getattr(record, FIELDS_ATTR, None)
        if fields:
            data.update(fields)
        else:
            data["message"] = sanitize_error_message(record.getMessage())
        if record.exc_info:
            data["exception"] = sanitize_error_message(self.formatException(record.exc_info))
        return json.dumps(data, default=str)


def setup_structured_logging(level: int | str = logging.INFO) -> None:
    """Configure structured JSON logging on the root logger.

    Args:
        level: Logging level, as a number or a name such as ``"DEBUG"``
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured event about one resource.

    Extra keyword fields are merged in after sensitive values are redacted.
    """
    fields = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    fields.update(sanitize_dict(kwargs))
    logger.log(level, message, extra={FIELDS_ATTR: fields})
