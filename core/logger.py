"""Central logging configuration for the redis brain."""

import logging
import sys
from typing import Optional

from .config import settings

# Application loggers follow the configured base level.
APP_LOGGERS = [
    "core",
    "infrastructure",
    "services",
    "dependencies",
    "routers",
]

# Third-party loggers are pinned at WARNING.
THIRD_PARTY_LOGGERS = [
    "redis",
    "uvicorn.access",
    "fastapi",
    "httpx",
]


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    include_timestamp: bool = True
) -> None:
    """
    Setup application-wide logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the LOG_LEVEL setting.
        format_string: Custom format string for log messages
        include_timestamp: Whether to include timestamp in log format
    """
    level = level or settings.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if format_string is None:
        if include_timestamp:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_string = "%(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=numeric_level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True  # Override any existing configuration
    )

    configure_specific_loggers(numeric_level)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured with level: %s", level)


def configure_specific_loggers(base_level: int) -> None:
    """
    Configure specific loggers with appropriate levels.

    Args:
        base_level: Base logging level to use
    """
    for logger_name in APP_LOGGERS:
        logging.getLogger(logger_name).setLevel(base_level)

    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    # Keep uvicorn.error at INFO for important server messages
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
