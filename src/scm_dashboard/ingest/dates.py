"""
Best-effort date handling for sheet data.

Spreadsheet exports mix ISO dates, US and European day/month orders and raw
Unix timestamps. ``parse_date`` tries them in a fixed order and returns
``None`` instead of raising; callers decide whether a failure is an error.

Parse order:
    1. Numbers and digit-only strings are Unix timestamps. Values below
       3e9 are seconds, anything larger is milliseconds.
    2. ``YYYY-M-D`` is built from local calendar components so it never
       shifts a day through UTC. Other ISO-8601 strings go through
       ``datetime.fromisoformat``; aware results are converted to local time.
       A few textual forms ("Mar 5, 2024", "5 March 2024") are accepted too.
    3. ``P1/P2/YYYY`` or ``P1-P2-YYYY``, optionally followed by ``H:MM`` or
       ``H:MM:SS`` as in sheet datetime cells: month/day/year first, then
       day/month/year. A reading is only accepted if the calendar date
       round-trips exactly, so "13/05/2024" is 13 May while "05/06/2024"
       is 6 May (MM/DD wins when both readings are valid).

All returned datetimes are naive and in local time.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

# Values below this are treated as seconds since the epoch
TIMESTAMP_SECONDS_CUTOFF = 3_000_000_000

_DIGITS_RE = re.compile(r'^\d+$')
_YMD_RE = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})$')
_DAY_MONTH_YEAR_RE = re.compile(
    r'^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})'
    r'(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?$'
)

_TEXT_FORMATS = [
    '%Y/%m/%d',
    '%b %d, %Y',
    '%B %d, %Y',
    '%b %d %Y',
    '%B %d %Y',
    '%d %b %Y',
    '%d %B %Y',
]


def _to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def _from_timestamp(value: float) -> Optional[datetime]:
    try:
        if value < TIMESTAMP_SECONDS_CUTOFF:
            return datetime.fromtimestamp(value)
        return datetime.fromtimestamp(value / 1000.0)
    except (OverflowError, OSError, ValueError):
        return None


def _calendar_date(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0,
) -> Optional[datetime]:
    """Build a local datetime, or None if the components are not a real moment."""
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a date from a string, number, date or datetime.

    Args:
        value: Raw cell value

    Returns:
        Naive local datetime, or None if the value cannot be parsed
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _to_local_naive(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, (int, float)):
        parsed = _from_timestamp(value)
        if parsed is not None:
            return parsed
        text = str(value)
    else:
        text = str(value).strip()

    if not text:
        return None

    # 1. Stringified timestamps
    if _DIGITS_RE.match(text):
        parsed = _from_timestamp(int(text))
        if parsed is not None:
            return parsed

    # 2. Date-only ISO strings as local calendar dates
    match = _YMD_RE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _calendar_date(year, month, day)

    # 2b. Remaining ISO-8601 forms (with time and/or offset)
    try:
        iso_text = text[:-1] + '+00:00' if text.endswith('Z') else text
        return _to_local_naive(datetime.fromisoformat(iso_text))
    except ValueError:
        pass

    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    # 3. Month/day/year, then day/month/year, with an optional time
    match = _DAY_MONTH_YEAR_RE.match(text)
    if match:
        p1, p2, year, hour, minute, second = (int(g or 0) for g in match.groups())
        clock = (hour, minute, second)
        if 1 <= p1 <= 12 and 1 <= p2 <= 31:
            parsed = _calendar_date(year, p1, p2, *clock)
            if parsed is not None:
                return parsed
        if 1 <= p1 <= 31 and 1 <= p2 <= 12:
            parsed = _calendar_date(year, p2, p1, *clock)
            if parsed is not None:
                return parsed

    logger.debug(f"Could not parse date value: {value!r}")
    return None


def format_date(value: Any) -> str:
    """Short display form such as 'Mar 05, 2024'."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 'N/A'

    parsed = parse_date(value)
    if parsed is None:
        return 'Invalid Date'
    return parsed.strftime('%b %d, %Y')


def days_between(start: Any, end: Any) -> Optional[int]:
    """
    Whole days from ``start`` to ``end``.

    Both values are normalized to local midnight first, so the result is a
    calendar-day difference. It is negative when ``end`` precedes ``start``.

    Returns:
        Number of days, or None if either value is missing or unparseable
    """
    if start is None or end is None or start == '' or end == '':
        return None

    d1 = parse_date(start)
    d2 = parse_date(end)
    if d1 is None or d2 is None:
        return None

    return (d2.date() - d1.date()).days


def add_days(value: Any, days: float) -> Optional[datetime]:
    """Shift a date by a (possibly fractional) number of days."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed + timedelta(days=days)


def get_stage_date(history: Iterable, stage, which: str = 'start') -> Optional[datetime]:
    """
    Start or end date of the first history entry for ``stage``.

    Args:
        history: Iterable of StageHistoryItem
        stage: OrderStatus to look up
        which: 'start' or 'end'
    """
    for item in history:
        if item.stage == stage:
            return item.start_date if which == 'start' else item.end_date
    return None
