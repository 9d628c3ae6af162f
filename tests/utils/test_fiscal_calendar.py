import pytest
from datetime import date

from appstore_earnings.utils.fiscal_calendar import (
    CalendarMonth,
    calendar_to_fiscal_month,
    create_calendar_month,
    create_fiscal_month,
    fiscal_month_dates,
    fiscal_to_calendar,
    fiscal_year_for,
    get_recent_calendar_months,
    last_sunday_of_september,
    parse_calendar_month,
)


class TestFiscalMonthNumbering:
    """Calendar <-> fiscal month numbering."""

    @pytest.mark.parametrize("calendar_month,fiscal_month", [
        (10, 1), (11, 2), (12, 3), (1, 4), (6, 9), (9, 12),
    ])
    def test_calendar_to_fiscal(self, calendar_month, fiscal_month):
        assert calendar_to_fiscal_month(calendar_month) == fiscal_month

    def test_fiscal_year_rolls_over_in_october(self):
        assert fiscal_year_for(2024, 9) == 2024
        assert fiscal_year_for(2024, 10) == 2025
        assert fiscal_year_for(2024, 12) == 2025

    def test_round_trip_covers_every_month(self):
        seen = set()
        for month in range(1, 13):
            fiscal_year = fiscal_year_for(2025, month)
            fiscal_month = calendar_to_fiscal_month(month)
            assert fiscal_to_calendar(fiscal_year, fiscal_month) == (2025, month)
            seen.add(fiscal_month)
        assert seen == set(range(1, 13))

    def test_invalid_month_rejected(self):
        with pytest.raises(ValueError):
            calendar_to_fiscal_month(13)
        with pytest.raises(ValueError):
            fiscal_to_calendar(2025, 0)


class TestCalendarMonth:

    def test_august_maps_to_fiscal_eleven(self):
        month = create_calendar_month(2025, 8)
        assert month.display_name == "August 2025"
        assert month.report_date == "2025-11"
        assert month.cache_key == "2025-08"
        assert month.cache_filename == "2025-08.tsv"

    def test_october_belongs_to_next_fiscal_year(self):
        month = create_calendar_month(2024, 10)
        assert month.report_date == "2025-01"
        assert month.fiscal_year == 2025
        assert month.fiscal_month == 1

    def test_parse_calendar_month(self):
        assert parse_calendar_month("2025-09") == create_calendar_month(2025, 9)
        assert parse_calendar_month(" 2025-9 ").month == 9

    @pytest.mark.parametrize("value", ["", "2025", "2025-13", "09-2025", "abcd-ef"])
    def test_parse_calendar_month_rejects_bad_input(self, value):
        with pytest.raises(ValueError):
            parse_calendar_month(value)


class TestRecentCalendarMonths:

    def test_skips_previous_month_early_in_month(self):
        months = get_recent_calendar_months(3, today=date(2025, 10, 4))
        assert [m.cache_key for m in months] == ["2025-08", "2025-07", "2025-06"]

    def test_offers_previous_month_from_report_ready_day(self):
        months = get_recent_calendar_months(2, today=date(2025, 10, 10))
        assert [m.cache_key for m in months] == ["2025-09", "2025-08"]

    def test_crosses_year_boundary(self):
        months = get_recent_calendar_months(3, today=date(2025, 2, 15))
        assert [m.cache_key for m in months] == ["2025-01", "2024-12", "2024-11"]
        assert all(isinstance(m, CalendarMonth) for m in months)

    def test_default_count(self):
        assert len(get_recent_calendar_months(today=date(2025, 6, 20))) == 24


class TestFiscalMonthRanges:
    """4-4-5 week fiscal months starting on the last Sunday of September."""

    def test_last_sunday_of_september(self):
        assert last_sunday_of_september(2024) == date(2024, 9, 29)
        assert last_sunday_of_september(2025) == date(2025, 9, 28)

    def test_first_month_is_five_weeks(self):
        start, end = fiscal_month_dates(2025, 1)
        assert start == date(2024, 9, 29)
        assert end == date(2024, 11, 2)

    def test_december_display_name(self):
        month = create_fiscal_month(2025, 3)
        assert month.start_date == date(2024, 12, 1)
        assert month.end_date == date(2024, 12, 28)
        assert month.display_name == "December 2024 (Dec 1 - Dec 28)"
        assert month.report_date == "2025-03"
        assert month.date_range == "Dec 1 - Dec 28"

    def test_months_are_contiguous(self):
        previous_end = None
        for fiscal_month in range(1, 13):
            start, end = fiscal_month_dates(2025, fiscal_month)
            if previous_end is not None:
                assert (start - previous_end).days == 1
            previous_end = end
        assert previous_end == date(2025, 9, 27)

    def test_extra_week_goes_to_last_month(self):
        # FY2024 ran Sep 24, 2023 - Sep 28, 2024 (53 weeks)
        start, end = fiscal_month_dates(2024, 12)
        assert start == date(2024, 8, 25)
        assert end == date(2024, 9, 28)

    def test_calendar_month_fiscal_period(self):
        period = create_calendar_month(2025, 9).fiscal_period
        assert (period.year, period.month) == (2025, 12)
        assert period.date_range == "Aug 31 - Sep 27"
