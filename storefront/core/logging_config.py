# storefront/core/logging_config.py

from logging.config import dictConfig
from typing import Optional

from storefront.core.config import settings

# HTTP client internals log every request at INFO; keep them quiet
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def build_logging_config(
    level: str = settings.LOG_LEVEL,
    client_level: Optional[str] = settings.SUPABASE_LOG_LEVEL,
) -> dict:
    level = level.upper()
    client_level = (client_level or level).upper()
    loggers = {
        "uvicorn": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "fastapi": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "storefront": {"handlers": ["console"], "level": level, "propagate": False},
        "storefront.clients.supabase": {"level": client_level},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"handlers": ["console"], "level": "WARNING", "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def setup_logging(level: str = settings.LOG_LEVEL, client_level: Optional[str] = settings.SUPABASE_LOG_LEVEL):
    """Applies the logging configuration."""
    dictConfig(build_logging_config(level, client_level))
