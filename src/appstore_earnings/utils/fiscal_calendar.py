"""
Fiscal calendar utilities for Apple's Financial Reports.

The Finance Reports API identifies a period as 'YYYY-MM' in *fiscal*
numbering, where fiscal month 1 is October of the previous calendar year:

    Calendar month -> Fiscal month
    October (10)   -> 1
    November (11)  -> 2
    December (12)  -> 3
    January (1)    -> 4
    ...
    September (9)  -> 12

Apple's fiscal year itself is a 52/53-week year that starts on the last
Sunday of September. Each quarter has 13 weeks split 5-4-4, so the exact
date range of a fiscal month is computed separately from the numbering.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

SHORT_MONTH_NAMES = [name[:3] for name in MONTH_NAMES]

# Weeks per fiscal month, fiscal month 1 = October
WEEKS_PER_FISCAL_MONTH = [5, 4, 4, 5, 4, 4, 5, 4, 4, 5, 4, 4]

# Reports for the previous month are usually published by the 5th;
# before this day the previous month is not offered.
REPORT_READY_DAY = 10

_MONTH_ARG_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


@dataclass(frozen=True)
class CalendarMonth:
    """A selectable calendar month and the fiscal period id used to request it."""
    year: int
    month: int  # 1-12
    display_name: str  # e.g. "August 2025"
    report_date: str  # fiscal 'YYYY-MM' for the API

    @property
    def fiscal_year(self) -> int:
        return fiscal_year_for(self.year, self.month)

    @property
    def fiscal_month(self) -> int:
        return calendar_to_fiscal_month(self.month)

    @property
    def fiscal_period(self) -> "FiscalMonth":
        """The 4-4-5 fiscal month this calendar month is reported under."""
        return create_fiscal_month(self.fiscal_year, self.fiscal_month)

    @property
    def cache_key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def cache_filename(self) -> str:
        return f"{self.cache_key}.tsv"


@dataclass(frozen=True)
class FiscalMonth:
    """A fiscal month with its 4-4-5 week date range."""
    year: int  # fiscal year
    month: int  # fiscal month 1-12
    start_date: date
    end_date: date
    display_name: str  # e.g. "December 2024 (Dec 1 - Dec 28)"
    report_date: str

    @property
    def date_range(self) -> str:
        return f"{_short(self.start_date)} - {_short(self.end_date)}"


def _validate_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")


def calendar_to_fiscal_month(calendar_month: int) -> int:
    """Convert a calendar month (1-12) to Apple's fiscal month (1-12)."""
    _validate_month(calendar_month)
    if calendar_month >= 10:
        return calendar_month - 9
    return calendar_month + 3


def fiscal_year_for(calendar_year: int, calendar_month: int) -> int:
    """Oct-Dec belong to the next fiscal year."""
    _validate_month(calendar_month)
    if calendar_month >= 10:
        return calendar_year + 1
    return calendar_year


def fiscal_to_calendar(fiscal_year: int, fiscal_month: int) -> Tuple[int, int]:
    """
    Convert a fiscal (year, month) back to a calendar (year, month).

    Examples:
    - (2025, 1)  -> (2024, 10)
    - (2025, 12) -> (2025, 9)
    """
    _validate_month(fiscal_month)
    if fiscal_month <= 3:
        return fiscal_year - 1, fiscal_month + 9
    return fiscal_year, fiscal_month - 3


def create_calendar_month(year: int, month: int) -> CalendarMonth:
    """Create a CalendarMonth with its fiscal report id."""
    fiscal_month = calendar_to_fiscal_month(month)
    fiscal_year = fiscal_year_for(year, month)
    return CalendarMonth(
        year=year,
        month=month,
        display_name=f"{MONTH_NAMES[month - 1]} {year}",
        report_date=f"{fiscal_year}-{fiscal_month:02d}",
    )


def parse_calendar_month(value: str) -> CalendarMonth:
    """
    Parse a 'YYYY-MM' calendar month argument.

    Raises:
        ValueError: If the value is not a valid calendar month
    """
    match = _MONTH_ARG_RE.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM (e.g. 2025-08)")
    return create_calendar_month(int(match.group(1)), int(match.group(2)))


def _previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def get_recent_calendar_months(count: int = 24, today: Optional[date] = None) -> List[CalendarMonth]:
    """
    List recent calendar months, most recent likely-complete month first.

    The current month is never complete. Early in a month the previous
    month's report is usually not published yet, so it is skipped too.
    """
    if today is None:
        today = date.today()

    year, month = _previous_month(today.year, today.month)
    if today.day < REPORT_READY_DAY:
        year, month = _previous_month(year, month)

    months = []
    for _ in range(count):
        months.append(create_calendar_month(year, month))
        year, month = _previous_month(year, month)
    return months


# -------------------------- 4-4-5 fiscal month ranges --------------------------


def last_sunday_of_september(year: int) -> date:
    """Start of Apple's fiscal year `year + 1`."""
    day = date(year, 9, 30)
    # date.weekday(): Monday=0 ... Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def fiscal_year_start(fiscal_year: int) -> date:
    return last_sunday_of_september(fiscal_year - 1)


def fiscal_month_dates(fiscal_year: int, fiscal_month: int) -> Tuple[date, date]:
    """
    Return (start, end) inclusive dates of a fiscal month.

    In 53-week years the last month runs up to the start of the next
    fiscal year, so it absorbs the extra week.
    """
    _validate_month(fiscal_month)
    weeks_offset = sum(WEEKS_PER_FISCAL_MONTH[:fiscal_month - 1])
    start = fiscal_year_start(fiscal_year) + timedelta(weeks=weeks_offset)
    if fiscal_month == 12:
        return start, fiscal_year_start(fiscal_year + 1) - timedelta(days=1)
    end = start + timedelta(days=WEEKS_PER_FISCAL_MONTH[fiscal_month - 1] * 7 - 1)
    return start, end


def _short(value: date) -> str:
    return f"{SHORT_MONTH_NAMES[value.month - 1]} {value.day}"


def create_fiscal_month(fiscal_year: int, fiscal_month: int) -> FiscalMonth:
    """Create a FiscalMonth with its exact date range."""
    start, end = fiscal_month_dates(fiscal_year, fiscal_month)
    display_year, calendar_month = fiscal_to_calendar(fiscal_year, fiscal_month)
    return FiscalMonth(
        year=fiscal_year,
        month=fiscal_month,
        start_date=start,
        end_date=end,
        display_name=(
            f"{MONTH_NAMES[calendar_month - 1]} {display_year} "
            f"({_short(start)} - {_short(end)})"
        ),
        report_date=f"{fiscal_year}-{fiscal_month:02d}",
    )

