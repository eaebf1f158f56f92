"""Logging configuration for the fleet tracker."""

import logging.config


def setup_logging(log_level: str = "INFO") -> None:
    """Send log records to stderr with a standard format."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
                },
            },
            "handlers": {
                "default": {
                    "level": log_level,
                    "formatter": "standard",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {"handlers": ["default"], "level": log_level},
            "loggers": {
                # Request lines from the HTTP client are noise at INFO
                "httpx": {"level": "WARNING"},
            },
        }
    )
