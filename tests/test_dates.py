"""
Tests for date parsing and day arithmetic.
"""

from datetime import date, datetime

from scm_dashboard.constants import OrderStatus
from scm_dashboard.ingest.dates import add_days, days_between, format_date, get_stage_date, parse_date
from scm_dashboard.models import StageHistoryItem


class TestParseDate:
    """Tests for parse_date."""

    def test_iso_date_is_local_calendar_day(self):
        parsed = parse_date('2024-03-05')
        assert (parsed.year, parsed.month, parsed.day) == (2024, 3, 5)
        assert (parsed.hour, parsed.minute) == (0, 0)
        assert parsed.tzinfo is None

    def test_iso_datetime(self):
        assert parse_date('2024-03-05T10:30:00') == datetime(2024, 3, 5, 10, 30)

    def test_iso_with_zulu_offset_is_naive(self):
        parsed = parse_date('2024-03-05T10:30:00Z')
        assert parsed is not None
        assert parsed.tzinfo is None

    def test_month_first_wins_when_ambiguous(self):
        assert parse_date('05/06/2024') == datetime(2024, 5, 6)

    def test_day_first_when_month_invalid(self):
        assert parse_date('13/05/2024') == datetime(2024, 5, 13)
        assert parse_date('25-12-2024') == datetime(2024, 12, 25)

    def test_sheet_datetime_cells(self):
        assert parse_date('3/5/2024 10:30:00') == datetime(2024, 3, 5, 10, 30)
        assert parse_date('3/5/2024 9:05') == datetime(2024, 3, 5, 9, 5)
        assert parse_date('13/05/2024 08:00:15') == datetime(2024, 5, 13, 8, 0, 15)

    def test_sheet_datetime_with_impossible_time(self):
        assert parse_date('3/5/2024 25:00:00') is None

    def test_impossible_calendar_date(self):
        assert parse_date('2024-02-30') is None
        assert parse_date('31/31/2024') is None

    def test_timestamps(self):
        expected = datetime.fromtimestamp(1700000000)
        assert parse_date(1700000000) == expected
        assert parse_date('1700000000') == expected
        assert parse_date('1700000000000') == expected

    def test_textual_month(self):
        assert parse_date('Mar 5, 2024') == datetime(2024, 3, 5)
        assert parse_date('5 March 2024') == datetime(2024, 3, 5)

    def test_date_and_datetime_objects(self):
        assert parse_date(date(2024, 3, 5)) == datetime(2024, 3, 5)
        assert parse_date(datetime(2024, 3, 5, 8)) == datetime(2024, 3, 5, 8)

    def test_unparseable(self):
        assert parse_date(None) is None
        assert parse_date('') is None
        assert parse_date('not a date') is None
        assert parse_date(True) is None


class TestDateHelpers:
    """Tests for format_date, days_between, add_days and get_stage_date."""

    def test_days_between(self):
        assert days_between('2024-01-01', '2024-01-03') == 2
        assert days_between('2024-01-03', '2024-01-01') == -2

    def test_days_between_ignores_time_of_day(self):
        assert days_between(datetime(2024, 1, 1, 23, 0), datetime(2024, 1, 2, 1, 0)) == 1

    def test_days_between_missing(self):
        assert days_between(None, '2024-01-03') is None
        assert days_between('2024-01-01', '') is None
        assert days_between('2024-01-01', 'garbage') is None

    def test_format_date(self):
        assert format_date(datetime(2024, 3, 5)) == 'Mar 05, 2024'
        assert format_date('2024-03-05') == 'Mar 05, 2024'
        assert format_date(None) == 'N/A'
        assert format_date('garbage') == 'Invalid Date'

    def test_add_days(self):
        assert add_days('2024-01-30', 3) == datetime(2024, 2, 2)
        assert add_days('garbage', 3) is None

    def test_get_stage_date(self):
        history = [
            StageHistoryItem(OrderStatus.FRESH_ORDER, datetime(2024, 1, 1), datetime(2024, 1, 2)),
            StageHistoryItem(OrderStatus.PRODUCTION, datetime(2024, 1, 3)),
        ]
        assert get_stage_date(history, OrderStatus.FRESH_ORDER, 'end') == datetime(2024, 1, 2)
        assert get_stage_date(history, OrderStatus.PRODUCTION) == datetime(2024, 1, 3)
        assert get_stage_date(history, OrderStatus.DELIVERED) is None
