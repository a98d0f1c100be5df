"""Application-wide logger writing to platformdirs user_log_dir."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "twotab_todo"
_LOG_FILE = "twotab.log"
_MAX_BYTES = 2 * 1024 * 1024  # 2 MB
_BACKUP_COUNT = 3

_configured = False


def configure_logging(level: str | int = "INFO", log_dir: Path | None = None) -> logging.Logger:
    """Attach the rotating file handler to the application logger.

    Safe to call more than once; only the level changes after the first call.
    """
    global _configured
    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(level if isinstance(level, int) else level.upper())
    if _configured:
        return logger

    log_dir = Path(log_dir) if log_dir is not None else Path(user_log_dir(_APP_NAME))
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            log_dir / _LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        # read-only home directories still get a working app
        handler = logging.NullHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False

    _configured = True
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger or one of its children.

    Args:
        name: Dotted suffix, e.g. "sync" for "twotab_todo.sync"
    """
    if not name:
        return logging.getLogger(_APP_NAME)
    if name.startswith(_APP_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{_APP_NAME}.{name}")
