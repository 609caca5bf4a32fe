# portal_messaging/config/logging_config.py
from logging.config import dictConfig

from portal_messaging.config.settings import settings


def configure_logging() -> None:
    level = settings.log_level.upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "loggers": {
                "portal_messaging": {"level": level, "handlers": ["console"], "propagate": False},
                "sqlalchemy.engine": {"level": "INFO" if settings.sql_echo else "WARNING"},
            },
            "root": {"level": "WARNING", "handlers": ["console"]},
        }
    )
