"""
River Data CLI

Entry point for the scheduled pipeline commands.

Usage:
    river-data fetch
    river-data datasets --day-offset -1
    river-data minimize-gauges
"""
import argparse
import logging
import sys
from typing import List, Optional

from .datasets import generate_datasets
from .datasets.minimize_gauges import minimize_gauge_locations
from .exceptions import RiverDataError
from .fetch import run_fetch_cycle
from .structured_logger import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="river-data",
        description="BOM river heights: fetch bulletins and generate daily datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch every catalog bulletin into the record store
  river-data fetch

  # Generate today's per-region datasets
  river-data datasets

  # Regenerate yesterday's datasets
  river-data datasets --day-offset -1
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser("fetch", help="Fetch river height data from BOM FTP")
    fetch_parser.add_argument('--verbose', action='store_true',
                              help='Enable verbose logging (DEBUG level)')

    datasets_parser = subparsers.add_parser(
        "datasets", help="Generate per-region datasets for one day"
    )
    datasets_parser.add_argument(
        '-d', '--day-offset',
        type=int,
        default=0,
        help='Day relative to today (0, -1, -2, etc.; default: 0)'
    )
    datasets_parser.add_argument('--verbose', action='store_true',
                                 help='Enable verbose logging (DEBUG level)')

    minimize_parser = subparsers.add_parser(
        "minimize-gauges", help="Write the minimised gauge locations GeoJSON"
    )
    minimize_parser.add_argument('--verbose', action='store_true',
                                 help='Enable verbose logging (DEBUG level)')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code"""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, name=f"river_{args.command.replace('-', '_')}")

    try:
        if args.command == "fetch":
            summary = run_fetch_cycle()
            return 0 if summary.success else 1

        if args.command == "datasets":
            summary = generate_datasets(day_offset=args.day_offset)
            return 0 if summary.success else 1

        minimize_gauge_locations()
        return 0

    except RiverDataError as e:
        logger.error(f"[FAIL] {args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
