"""Centralized logging configuration for admin-guard.

Provides environment-based control over log level and format. Call
``setup_logging()`` once at application startup.
"""

import logging
import logging.config
import os
from enum import Enum


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


FORMAT_STRINGS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


class LoggingConfig:
    """Centralized logging configuration manager."""

    # Modules that should only log errors
    ERROR_ONLY_MODULES = [
        "asyncpg",
        "httpx",
        "httpcore",
        "asyncio",
    ]

    @classmethod
    def configure(cls) -> None:
        """Configure logging based on environment variables."""
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if log_level not in logging.getLevelNamesMapping():
            log_level = "INFO"

        try:
            log_format = LogFormat(os.getenv("LOG_FORMAT", "simple").lower())
        except ValueError:
            log_format = LogFormat.SIMPLE

        logging_config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": FORMAT_STRINGS[log_format],
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "admin_guard": {
                    "level": log_level,
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }

        for module in cls.ERROR_ONLY_MODULES:
            logging_config["loggers"][module] = {
                "level": "ERROR",
                "handlers": ["console"],
                "propagate": False,
            }

        logging.config.dictConfig(logging_config)

        logger = logging.getLogger(__name__)
        if log_level == "DEBUG":
            logger.debug(f"Logging configured: level={log_level}, format={log_format.value}")

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for a specific module."""
        logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))


def setup_logging() -> None:
    """Setup logging configuration from environment variables.

    This is the main entry point for configuring logging in the application.
    It should be called once at application startup.
    """
    LoggingConfig.configure()
