"""TelepollLogger -- process-wide JSON logging to the console and a rotating file.

All records end up as one JSON object per line, on stdout and in
``<LOG_DIR>/telepoll.log``.  ``LOG_DIR`` (default ``logs``) and ``LOG_LEVEL``
(default ``INFO``) are read from the environment when the logger is first
requested.  Library loggers such as ``sdk`` can be routed through the same
handlers with :meth:`TelepollLogger.attach`.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, List, Optional

LOGGER_NAME = "telepoll"

_LOG_FILE = "telepoll.log"
_ROTATE_BYTES = 5 * 1024 * 1024  # 5 MB
_ROTATE_KEEP = 5

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(
    vars(logging.makeLogRecord({})).keys()
) | {"message", "asctime", "taskName"}


class _JsonFormatter(logging.Formatter):
    """Render a record as ``{"timestamp", "level", "logger", "message", ...}``.

    Context passed with ``extra=`` is appended as top-level keys::

        logger.warning("getUpdates failed, retrying", extra={"delay": 5.0, "offset": 17})

    Exceptions are rendered into an ``exc_info`` string.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in entry
        )
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _level_from_env() -> int:
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handlers(level: int) -> List[logging.Handler]:
    log_dir = os.environ.get("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    handlers: List[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        RotatingFileHandler(
            os.path.join(log_dir, _LOG_FILE),
            maxBytes=_ROTATE_BYTES,
            backupCount=_ROTATE_KEEP,
            encoding="utf-8",
        ),
    ]
    formatter = _JsonFormatter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


class TelepollLogger:
    """Singleton owner of the ``telepoll`` logger and its handlers.

    Usage::

        from core.logger import TelepollLogger

        logger = TelepollLogger.get_logger()
        logger.info("Long polling started", extra={"offset": 0})
    """

    _instance: Optional["TelepollLogger"] = None

    def __new__(cls, level: Optional[int] = None) -> "TelepollLogger":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance.logger = instance._configure(level if level is not None else _level_from_env())
            cls._instance = instance
        return cls._instance

    @staticmethod
    def _configure(level: int) -> logging.Logger:
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(level)
        # A re-imported module must not stack a second set of handlers.
        if not logger.handlers:
            for handler in _build_handlers(level):
                logger.addHandler(handler)
        return logger

    @classmethod
    def get_logger(cls, level: Optional[int] = None) -> logging.Logger:
        """Return the shared logger; *level* only matters on the very first call."""
        return cls(level).logger

    @classmethod
    def attach(cls, name: str) -> logging.Logger:
        """Send records of the library logger *name* to the shared handlers."""
        shared = cls.get_logger()
        library = logging.getLogger(name)
        library.setLevel(shared.level)
        for handler in shared.handlers:
            if handler not in library.handlers:
                library.addHandler(handler)
        library.propagate = False
        return library

    def cleanup(self) -> None:
        """Flush, close and detach every handler of the shared logger."""
        for handler in list(self.logger.handlers):
            handler.flush()
            handler.close()
            self.logger.removeHandler(handler)
