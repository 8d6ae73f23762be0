"""
Structured logging setup (CloudWatch-friendly).
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO, Union

# boto3 logs every credential lookup and endpoint resolution at INFO/DEBUG
_NOISY_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3")


class JsonFormatter(logging.Formatter):
    """JSON log formatter with stable keys."""

    context_keys = ("stage", "bucket", "key", "destination_type", "outcome", "kind", "status", "latency_ms")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        for k in self.context_keys:
            if k in record.__dict__:
                payload[k] = record.__dict__[k]
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[Union[str, int]] = None, stream: Optional[TextIO] = None) -> None:
    """Initialize root logger with JSON formatting; third-party AWS loggers capped at WARNING."""
    root = logging.getLogger()
    if not level:
        level = os.getenv("LOG_LEVEL", "INFO")
    root.setLevel(level)
    # Warm Lambda starts re-import the handler module
    root.handlers.clear()
    h = logging.StreamHandler(stream)
    h.setFormatter(JsonFormatter())
    root.addHandler(h)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
