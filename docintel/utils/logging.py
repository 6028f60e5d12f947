"""Structured JSON logging for the pipeline.

Every record goes to stdout as one JSON object. Extra fields passed via
``logger.info(..., extra={...})`` are merged into the object, which is how the
document processor emits its per-document completion record.

Security notes:
- Never log API keys or document contents
- Log sizes, model names, sources and timings only
"""

import json
import logging
import sys
import time
from typing import Any, Dict, Optional, TextIO

_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Serialize log records to a single-line JSON string."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            log_data[key] = value

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Install the JSON formatter on a stream handler (stdout by default) of the root logger."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
