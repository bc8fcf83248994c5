# Path: jsl/observability/logging.py
from __future__ import annotations
import logging
import json
import time
import os
from typing import Optional, Dict, Any, List

PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line. A CGI process handles a single request, so the
    pid identifies the request in aggregated logs.
    Module and route context passed through `extra=` is kept.
    """

    CONTEXT_FIELDS = ("module_id", "route", "method", "path")

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": time.time(),
            "pid": record.process,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({f: getattr(record, f) for f in self.CONTEXT_FIELDS if hasattr(record, f)})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    level: int | str = logging.INFO,
    log_to_file: Optional[str] = None,
    json_output: bool = True,
    extra_modules: Optional[Dict[str, int]] = None,
) -> None:
    """
    Configure the root logger for a kernel process.
    - stderr only: stdout carries the CGI response
    - JSON lines, or plain text with json_output=False
    - optional file handler
    - per-logger level overrides
    """
    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_to_file:
        os.makedirs(os.path.dirname(log_to_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(log_to_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name, lvl in (extra_modules or {}).items():
        logging.getLogger(name).setLevel(lvl)

    logging.getLogger(__name__).debug("Logging configured (json=%s, file=%s)", json_output, log_to_file)
