"""Logging setup for the API process."""

import json
import logging
from typing import Optional


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extra={} fields included."""

    _skip = {
        "name", "msg", "args", "created", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
        "processName", "relativeCreated", "thread", "threadName", "exc_info",
        "exc_text", "stack_info", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in self._skip and not key.startswith("_"):
                data[key] = value
        return json.dumps(data, default=str, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    # re-running setup (tests, reload) must not stack handlers
    for handler in list(root.handlers):
        if getattr(handler, "_transport_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._transport_handler = True
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root.addHandler(handler)

    # passlib's bcrypt backend detection is noisy at WARNING
    logging.getLogger("passlib").setLevel(logging.ERROR)
