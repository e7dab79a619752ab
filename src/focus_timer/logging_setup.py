"""Logging for the tray process: JSON lines on disk, short lines on stderr.

Structured fields travel as ``extra={"_json_<name>": value}`` and land as
``<name>`` in the JSON record; the console only shows the message.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE = Path("logs") / "focus_timer.log"
LEVEL_ENV = "FOCUS_TIMER_LOG_LEVEL"
EXTRA_PREFIX = "_json_"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (k[len(EXTRA_PREFIX):], v) for k, v in vars(record).items() if k.startswith(EXTRA_PREFIX)
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _level_from_env(default: int) -> int:
    name = os.environ.get(LEVEL_ENV, "").upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def configure_logging(data_dir: Path, level: int = logging.INFO) -> Path:
    logfile = data_dir / LOG_FILE
    logfile.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(logfile, maxBytes=512_000, backupCount=5, encoding="utf-8")
    file_handler.setFormatter(JsonFormatter())
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_level_from_env(level))
    root.addHandler(file_handler)
    root.addHandler(console)
    logging.getLogger(__name__).info("logging to %s", logfile, extra={"_json_phase": "startup"})
    return logfile


__all__ = ["configure_logging", "JsonFormatter"]
