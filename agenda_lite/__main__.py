"""Command-line entry for agenda_lite."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from . import run_server


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the agenda_lite CLI."""
    parser = argparse.ArgumentParser(
        prog="agenda_lite",
        description="Agenda Lite - upcoming church calendar events as JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m agenda_lite                    # Serve on default port (8080)
  python -m agenda_lite --port 3000        # Serve on port 3000
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or from AGENDA_SERVER_PORT env var)",
    )
    parser.add_argument(
        "--host",
        metavar="HOST",
        help="Interface to bind (default: 0.0.0.0, or from AGENDA_SERVER_BIND env var)",
    )

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Run the agenda_lite CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    run_server(args)
    sys.exit(0)


if __name__ == "__main__":
    main()
