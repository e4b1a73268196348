"""agenda_lite - calendar-events collector for the member-care web app.

This package fetches a public iCalendar feed, expands recurring events and
serves the upcoming occurrences as JSON. Top-level imports are kept light so the
package can be inspected without pulling in aiohttp or httpx.
"""

__version__ = "0.1.0"

from typing import Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the AGENDA_DEBUG environment variable (truthy values: "1", "true",
    "yes", "on") which forces DEBUG verbosity so parser and fetcher debug logs
    surface without code changes.
    """
    import logging
    import os
    import sys

    debug_env = os.environ.get("AGENDA_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        try:
            from colorlog import ColoredFormatter  # type: ignore[import-not-found]

            # HH:MM:SS  LEVEL   logger.name: message
            fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
            log_colors = {
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            }
            formatter = ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors)
        except ImportError:
            fmt = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
            formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")

        handler.setFormatter(formatter)
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def run_server(args: Optional[object] = None) -> None:
    """Start the agenda_lite HTTP server.

    Configuration is built from the environment (and an optional .env file),
    then command line overrides from ``args`` are applied before delegating to
    ``agenda_lite.api.server.start_server``.

    Args:
        args: Optional argparse namespace carrying ``port`` and ``host``.
    """
    import logging
    import os

    _init_logging(os.environ.get("AGENDA_LOG_LEVEL"))

    from agenda_lite.api import server

    logger = logging.getLogger(__name__)

    cfg = server._build_default_config_from_env()

    if args is not None:
        port = getattr(args, "port", None)
        if port is not None:
            cfg["server_port"] = int(port)
            logger.debug("Applied command line port override: %d", cfg["server_port"])
        host = getattr(args, "host", None)
        if host:
            cfg["server_bind"] = host
            logger.debug("Applied command line host override: %s", host)

    cfg_level = cfg.get("log_level")
    if isinstance(cfg_level, str):
        logging.getLogger().setLevel(getattr(logging, cfg_level.upper(), logging.INFO))

    logger.debug(
        "Resolved configuration (diagnostic): %s",
        {k: cfg.get(k) for k in ("ics_url", "server_bind", "server_port", "route_path")},
    )

    server.start_server(cfg)
