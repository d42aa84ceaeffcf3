"""JSON-lines logging for the settlement service.

Modules log a dotted event name as the message and pass the same name plus
any identifiers through ``extra``; the formatter flattens those into the
emitted object.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from settlement.core.config import get_config

_STANDARD_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}
_HANDLER_NAME = "settlement.json"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, value)
            for name, value in vars(record).items()
            if name not in _STANDARD_RECORD_FIELDS and name not in entry
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _json_handler(handler: logging.Handler) -> logging.Handler:
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonFormatter())
    return handler


def configure_logging() -> None:
    """Attach JSON handlers to the root logger; repeated calls are no-ops."""
    cfg = get_config()
    root = logging.getLogger()
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    root.setLevel(cfg.LOG_LEVEL)
    root.addHandler(_json_handler(logging.StreamHandler(sys.stdout)))
    if cfg.LOG_FILE:
        root.addHandler(_json_handler(logging.FileHandler(cfg.LOG_FILE, encoding="utf-8")))

    # SQL echo and per-request access lines are noise outside development.
    if cfg.is_production:
        for noisy in ("sqlalchemy.engine", "uvicorn.access"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
