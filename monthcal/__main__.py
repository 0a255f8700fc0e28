"""Command-line entry for monthcal.

Reads a provider response saved as JSON and prints the computed month layout
as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

from .config_loader import load_config
from .month_exceptions import ConfigError, DataUnavailableError
from .month_logging import configure_logging
from .month_models import VisibleMonth
from .month_pipeline import MonthCalendar

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for monthcal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="monthcal",
        description="Lay out one month of a calendar feed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m monthcal events.json                  # Current month
  python -m monthcal events.json --month 2024-03  # March 2024
        """,
    )
    parser.add_argument("snapshot", help="Provider response saved as JSON (items + timeZone)")
    parser.add_argument("--month", metavar="YYYY-MM", help="Month to lay out (default: current)")
    parser.add_argument("--config", metavar="PATH", help="YAML config file (default: ./monthcal.yaml)")
    parser.add_argument(
        "--local-timezone",
        action="store_true",
        help="Convert times to the viewer's zone instead of the calendar's",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _read_response(path: Path) -> Optional[Any]:
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read calendar snapshot %s: %s", path, e)
        return None


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the monthcal CLI."""
    args = _create_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    if args.local_timezone:
        config.use_calendar_timezone = False

    configure_logging(config.log_level, force_debug=True if args.debug else None)

    try:
        month = VisibleMonth.parse(args.month) if args.month else None
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    calendar = MonthCalendar(config, month=month)
    response = _read_response(Path(args.snapshot))
    if response is None:
        calendar.mark_unavailable(DataUnavailableError(f"Snapshot {args.snapshot} is unreadable"))
    else:
        calendar.load_response(response)

    print(calendar.layout().model_dump_json(indent=2))
    sys.exit(0)


if __name__ == "__main__":
    main()
