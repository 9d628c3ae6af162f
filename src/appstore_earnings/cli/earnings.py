#!/usr/bin/env python3
"""
Show App Store earnings for a calendar month.

Downloads (or reads from cache) Apple's consolidated financial report,
converts proceeds into one currency and prints them grouped by app.
"""

import sys
import logging
import argparse
from typing import List, Optional

from ..config.settings import Settings, get_settings
from ..exceptions import ConfigurationError
from ..models.enums import ReportStatus
from ..services.factory import initialize_services
from ..utils.fiscal_calendar import CalendarMonth, get_recent_calendar_months, parse_calendar_month
from .render import render_report

logger = logging.getLogger(__name__)

DEFAULT_MONTH_COUNT = 24
DEBUG_PREVIEW_CHARS = 500


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="appstore-earnings",
        description="Show App Store earnings per app for a calendar month",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  appstore-earnings                      # most recent complete month
  appstore-earnings --month 2025-09
  appstore-earnings --month 2025-09 --no-cache --refresh-mapping
  appstore-earnings --list-months 6
  appstore-earnings --status
        """
    )
    parser.add_argument("--month", metavar="YYYY-MM",
                        help="Calendar month to report (default: most recent complete month)")
    parser.add_argument("--list-months", nargs="?", type=int, const=DEFAULT_MONTH_COUNT, metavar="N",
                        help=f"List the last N selectable months (default {DEFAULT_MONTH_COUNT})")
    parser.add_argument("--no-cache", action="store_true",
                        help="Always download the report and do not cache it")
    parser.add_argument("--refresh-mapping", action="store_true",
                        help="Rebuild the product to app mapping")
    parser.add_argument("--status", action="store_true",
                        help="Show configuration status and exit")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable verbose logging")
    parser.add_argument("--debug", action="store_true",
                        help=f"Preview the first {DEBUG_PREVIEW_CHARS} characters of the raw report")
    return parser


def display_status(settings: Settings) -> None:
    print("Configuration status")
    print("=" * 40)
    for key, value in settings.describe().items():
        print(f"  {key:<34} {value}")

    missing = settings.finance.missing()
    if missing:
        print(f"\n❌ Missing finance settings: {', '.join(missing)}")
    else:
        print("\n✅ Finance credentials configured")

    if settings.app_manager_config() is None:
        print("ℹ️  App Manager credentials not configured; products are shown ungrouped")
    else:
        print("✅ App Manager credentials configured")


def display_months(count: int) -> None:
    for month in get_recent_calendar_months(count):
        period = month.fiscal_period
        print(f"  {month.cache_key}  {month.display_name:<16} "
              f"(fiscal report {month.report_date}, {period.date_range})")


def resolve_month(value: Optional[str]) -> CalendarMonth:
    if value:
        return parse_calendar_month(value)
    return get_recent_calendar_months(1)[0]


def print_lines(lines: List[str]) -> None:
    for line in lines:
        print(line)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    settings = get_settings()
    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.status:
        display_status(settings)
        return 0

    if args.list_months is not None:
        display_months(max(1, args.list_months))
        return 0

    try:
        month = resolve_month(args.month)
    except ValueError as e:
        parser.error(str(e))

    try:
        settings.require_finance()
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        print("Run with --status to see which settings were found.", file=sys.stderr)
        return 1

    container = initialize_services(settings)
    service = container.get("earnings_service")

    print(f"\nFetching financial report for {month.display_name}...")
    report = service.build_report(month, use_cache=not args.no_cache, refresh_mapping=args.refresh_mapping)

    if (args.debug or settings.debug) and report.raw_report is not None:
        print(f"\n--- Report Preview (first {DEBUG_PREVIEW_CHARS} chars) ---")
        print(report.raw_report[:DEBUG_PREVIEW_CHARS])
        print("---\n")

    if report.status in (ReportStatus.NOT_FOUND, ReportStatus.FETCH_FAILED):
        print(f"\n❌ {report.message}\n", file=sys.stderr)
        return 1

    if report.status is ReportStatus.EMPTY_REPORT:
        print(f"\n{report.message}\n")
        print("Hint: Run with --debug to see the raw report content.")
        return 0

    if report.status is ReportStatus.NO_EARNINGS:
        print(f"\n{report.message}\n")
        return 0

    print_lines(render_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
