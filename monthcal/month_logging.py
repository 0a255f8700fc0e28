"""
Central logging configuration for monthcal.

Installs a colorized console handler and keeps third-party libraries quiet
while monthcal's own modules log at the requested level.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

MONTHCAL_MODULES = [
    "monthcal",
    "monthcal.event_classifier",
    "monthcal.recurrence_resolver",
    "monthcal.span_builder",
    "monthcal.lane_allocator",
    "monthcal.month_pipeline",
]


def configure_logging(level_name: Optional[str] = None, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging for monthcal.

    Args:
        level_name: Level for monthcal modules (DEBUG, INFO, WARNING, ERROR)
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        MONTHCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        MONTHCAL_LOG_LEVEL: Override the level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("MONTHCAL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("MONTHCAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    else:
        final_debug = env_debug

    level = logging.DEBUG if final_debug else getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Only add a handler if none exist to avoid duplicate output
    if not root_logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
        root_logger.addHandler(handler)

    logger_config: dict[str, int] = {
        # rrule parsing goes through dateutil's parser
        "dateutil": logging.WARNING,
        "pydantic": logging.WARNING,
    }
    for module in MONTHCAL_MODULES:
        logger_config[module] = level

    for logger_name, logger_level in logger_config.items():
        logging.getLogger(logger_name).setLevel(logger_level)

    root_logger.debug("Logging initialized at level %s", logging.getLevelName(level))


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ["monthcal", "dateutil"]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
