"""
Central logging configuration for agenda_lite.

Quiets chatty third-party loggers and stamps every record with the request
correlation ID.
"""

import logging
import os
from typing import Optional


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        from agenda_lite.api.middleware.correlation_id import get_request_id

        record.request_id = get_request_id()
        return True


def configure_lite_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for agenda_lite.

    Args:
        debug_mode: Whether to enable debug logging for agenda_lite modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        AGENDA_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        AGENDA_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("AGENDA_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("AGENDA_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()

    # Preserve the console handler installed by agenda_lite._init_logging
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(request_id)s] %(levelname)s - %(name)s - %(message)s")
        )
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    logger_config: dict[str, int] = {
        "aiohttp.access": logging.WARNING,
        "aiohttp.server": logging.WARNING,
        "aiohttp.web": logging.INFO,
        "httpx": logging.WARNING,
        "httpcore": logging.WARNING,
        "asyncio": logging.WARNING,
    }

    lite_level = logging.DEBUG if final_debug else logging.INFO
    for module in (
        "agenda_lite",
        "agenda_lite.api.server",
        "agenda_lite.calendar.lite_parser",
        "agenda_lite.calendar.lite_fetcher",
        "agenda_lite.calendar.lite_rrule_expander",
    ):
        logger_config[module] = lite_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    root_logger.debug(
        "Logging configured (debug=%s, root=%s)", final_debug, logging.getLevelName(root_level)
    )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("agenda_lite", "aiohttp.access", "httpx", "asyncio"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
