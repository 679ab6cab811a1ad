# backend/trip_planner/core/logger.py

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from trip_planner.core.config_loader import settings


# -------------------------------------------------------------------
# LOG DIRECTORY
# -------------------------------------------------------------------
LOG_DIR = Path(settings.log_dir) if settings.log_dir else Path(__file__).resolve().parents[2] / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = LOG_DIR / "app.log"
SECURITY_LOG_FILE = LOG_DIR / "security.log"

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
)

formatter = logging.Formatter(LOG_FORMAT)


def _rotating(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=5 * 1024 * 1024,   # 5 MB
        backupCount=5,
        encoding="utf-8"
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


# -------------------------------------------------------------------
# HANDLERS
# -------------------------------------------------------------------
file_handler = _rotating(LOG_FILE, logging.INFO)

console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
console_handler.setLevel(settings.log_level.upper())

# Suspicious prompt input is also kept apart for review.
security_handler = _rotating(SECURITY_LOG_FILE, logging.WARNING)


# -------------------------------------------------------------------
# LOGGERS
# -------------------------------------------------------------------
logger = logging.getLogger("trip_planner")
logger.setLevel(logging.DEBUG)

security_logger = logger.getChild("security")

# Reload-safe: uvicorn --reload re-imports this module
if not logger.handlers:
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    security_logger.addHandler(security_handler)


def get_logger(component: str) -> logging.Logger:
    """Child logger, e.g. ``trip_planner.transport``; shares the handlers above."""
    return logger.getChild(component)


logger.debug(f"Logging to {LOG_DIR} (console level {settings.log_level.upper()})")
