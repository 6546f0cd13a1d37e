# Rev 0.1.1

# sitedash – logging setup (Rev 0.1.1)
"""Root logging for the dashboard: a rotating logfile, stdout, and Qt's own messages.

setup_logging() may run more than once (tests, a re-launched context); the handlers
it owns are swapped out each time instead of piling up on the root logger.
"""
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

from .paths import APP_NAME, LOGS_DIR

LEVEL_ENV = "SITEDASH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 5_000_000
LOG_BACKUPS = 7

_QT_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}

# Marker attribute on handlers installed by setup_logging
_OWNED = "_sitedash_handler"


def _qt_handler(msg_type, context, message):
    logging.getLogger("qt").log(_QT_LEVELS.get(msg_type, logging.INFO), message)


def _log_uncaught(exctype, value, tb):
    logging.getLogger("unhandled").error("Uncaught exception", exc_info=(exctype, value, tb))
    sys.__excepthook__(exctype, value, tb)


def _level_from_env() -> tuple[str, int]:
    name = os.environ.get(LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        return "INFO", logging.INFO
    return name, level


def _build_handlers(logfile: Path, level: int) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    handlers: List[logging.Handler] = [
        RotatingFileHandler(logfile, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"),
        logging.StreamHandler(sys.stdout),
    ]
    for h in handlers:
        h.setFormatter(formatter)
        h.setLevel(level)
        setattr(h, _OWNED, True)
    return handlers


def _drop_owned_handlers(root: logging.Logger) -> None:
    for h in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(h)
        h.close()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{APP_NAME}.{name}")


def setup_logging(app_name: str = APP_NAME, log_dir: Path | None = None) -> Path:
    """Configure the root logger and return the logfile path."""
    level_name, level = _level_from_env()
    log_dir = log_dir or LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / f"{app_name}.log"

    root = logging.getLogger()
    root.setLevel(level)
    _drop_owned_handlers(root)
    for h in _build_handlers(logfile, level):
        root.addHandler(h)

    sys.excepthook = _log_uncaught
    qInstallMessageHandler(_qt_handler)

    get_logger("logging").info("Logging at %s to %s", level_name, logfile)
    return logfile
