from __future__ import annotations

import logging

from videohub.core.settings import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers and the level each gets outside debug mode.
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "multipart": logging.WARNING,
    "passlib": logging.ERROR,
}


def resolve_log_level(settings: Settings) -> int:
    if settings.log_level:
        return logging.getLevelName(settings.log_level)
    return logging.DEBUG if settings.debug else logging.INFO


def configure_logging(settings: Settings) -> None:
    level = resolve_log_level(settings)
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    for name in ("uvicorn.error", "uvicorn.access", "videohub"):
        logging.getLogger(name).setLevel(level)
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(logging.INFO if settings.debug and quiet_level < logging.ERROR else quiet_level)

    logging.getLogger(__name__).info(
        "Logging configured level=%s debug=%s", logging.getLevelName(level), settings.debug
    )
