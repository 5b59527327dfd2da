"""
Structured logging for the analytics engine.

Engine modules log events with log_event(); the event name and its data
travel on the LogRecord as extras. JSONFormatter lifts them to top-level
keys, while a plain handler still gets a readable "event key=value" line.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from migration_analytics.core.config import LOG_LEVEL

# LogRecord attributes promoted to top-level JSON keys
EXTRA_FIELDS = ("event", "group_key", "data")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # logger.info("msg", extra={"group_key": "pattern=abc"})
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Logger with its own JSON stdout handler. It does not propagate, so
    basicConfig on the root logger does not print each line twice.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level or LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def log_event(logger: logging.Logger, event: str, data: Dict[str, Any], level=logging.INFO):
    pairs = " ".join(f"{k}={v}" for k, v in data.items())
    logger.log(level, f"{event} {pairs}".rstrip(), extra={"event": event, "data": data})
