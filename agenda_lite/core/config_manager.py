"""Configuration management for the agenda_lite server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Public Google Calendar export consumed by the member-care agenda page
DEFAULT_ICS_URL = (
    "https://calendar.google.com/calendar/ical/"
    "19f330717a76f1f8da42a1c44123c52da4f51da0ddb07dfd61aff43b48d4f62e"
    "%40group.calendar.google.com/public/basic.ics"
)

DEFAULT_SERVER_BIND = "0.0.0.0"  # nosec B104 - server bind default, override via env
DEFAULT_SERVER_PORT = 8080
DEFAULT_REQUEST_TIMEOUT = 10
DEFAULT_MAX_EVENTS = 20
DEFAULT_HORIZON_MONTHS = 3
DEFAULT_MAX_OCCURRENCES_PER_RULE = 200
DEFAULT_MAX_ICS_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_ROUTE_PATH = "/calendar-events"

# env var name(s) -> (config key, converter)
_ENV_MAPPING: list[tuple[tuple[str, ...], str, type]] = [
    (("AGENDA_ICS_URL",), "ics_url", str),
    (("AGENDA_SERVER_BIND", "AGENDA_WEB_HOST"), "server_bind", str),
    (("AGENDA_SERVER_PORT", "AGENDA_WEB_PORT"), "server_port", int),
    (("AGENDA_REQUEST_TIMEOUT",), "request_timeout", int),
    (("AGENDA_MAX_EVENTS",), "max_events", int),
    (("AGENDA_HORIZON_MONTHS",), "horizon_months", int),
    (("AGENDA_ROUTE_PATH",), "route_path", str),
    (("AGENDA_LOG_LEVEL",), "log_level", str),
]

_TRUTHY = ("1", "true", "yes", "on")


def parse_env_file(path: Path) -> dict[str, str]:
    """Read ``KEY=VALUE`` pairs from a dotenv file.

    Blank lines, ``#`` comments and lines without ``=`` are ignored, and one
    layer of surrounding quotes is removed from values. A missing or unreadable
    file yields ``{}``.
    """
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Could not read %s, ignoring it", path, exc_info=True)
        return {}

    pairs: dict[str, str] = {}
    for line in (raw.strip() for raw in text.splitlines()):
        if not line or line.startswith("#") or "=" not in line:
            continue
        name, value = (part.strip() for part in line.split("=", 1))
        if name:
            pairs[name] = value.strip('"').strip("'")
    return pairs


class ConfigManager:
    """Builds the server configuration from AGENDA_* variables and an optional .env."""

    def __init__(self, env_file_path: Path | None = None):
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Export .env entries that are not already set in the process environment.

        Returns:
            Names of the variables that were exported
        """
        if not self.env_file_path.exists():
            logger.debug("No .env at %s; using process environment only", self.env_file_path)
            return []

        exported = []
        for name, value in parse_env_file(self.env_file_path).items():
            if name not in os.environ:
                os.environ[name] = value
                exported.append(name)

        if exported:
            logger.debug("Exported from .env: %s", ", ".join(exported))
        return exported

    def build_config_from_env(self) -> dict[str, Any]:
        """Translate AGENDA_* variables into a config dict for ``start_server``.

        Only variables that are set appear in the result; consumers fall back to
        the ``DEFAULT_*`` constants. When a primary name and its alias are both
        set (``AGENDA_SERVER_PORT``/``AGENDA_WEB_PORT``), the primary wins.
        Values that fail integer conversion are logged and skipped.
        ``AGENDA_DEBUG`` becomes the boolean ``debug_logging``.
        """
        cfg: dict[str, Any] = {}

        for env_names, key, converter in _ENV_MAPPING:
            raw = next((os.environ[name] for name in env_names if os.environ.get(name)), None)
            if raw is None:
                continue
            try:
                cfg[key] = converter(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_names[0], raw)

        debug = os.environ.get("AGENDA_DEBUG", "")
        if debug:
            cfg["debug_logging"] = debug.strip().lower() in _TRUTHY

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """``load_env_file`` followed by ``build_config_from_env``."""
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a dict config or an attribute-style settings object."""
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
