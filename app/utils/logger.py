# app/utils/logger.py
"""
Logging setup shared by every module.

Two destinations:
- the application log (console + rotating LOG_FILE) for everything;
- the audit log (rotating AUDIT_LOG_FILE) for the "fleet.audit" logger only,
  which records who changed what: activity entries, booking conflicts and
  overlap rejections. Audit records also reach the application log.

Set LOG_TO_FILE=false to keep everything on the console (tests, containers).
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs"
)
AUDIT_LOGGER = "fleet.audit"

_FORMAT = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
_configured = False


def _rotating(filename: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, filename),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(_FORMAT)
    return handler


def _configure():
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)

    console = logging.StreamHandler()
    console.setFormatter(_FORMAT)
    root.addHandler(console)

    if not settings.LOG_TO_FILE:
        return

    os.makedirs(LOG_DIR, exist_ok=True)
    root.addHandler(_rotating(settings.LOG_FILE))

    audit = logging.getLogger(AUDIT_LOGGER)
    audit.setLevel(logging.INFO)
    audit.addHandler(_rotating(settings.AUDIT_LOG_FILE))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure()
    return logging.getLogger(name)


def get_audit_logger() -> logging.Logger:
    """Logger whose records also land in the audit file."""
    _configure()
    return logging.getLogger(AUDIT_LOGGER)
