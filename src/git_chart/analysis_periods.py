from __future__ import annotations

import calendar
import datetime as dt

from .errors import InvalidDateFormat, InvalidDateRange
from .models import TimeRange

UTC = dt.timezone.utc
ONE_SECOND = dt.timedelta(seconds=1)
ONE_MICROSECOND = dt.timedelta(microseconds=1)

# Fixed English abbreviations; strftime("%b") follows the process locale.
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def parse_month_token(token: str | None) -> dt.date:
    s = token if isinstance(token, str) else ""
    if len(s) != 6 or not (s.isascii() and s.isdigit()):
        raise InvalidDateFormat(f"Invalid month: {token!r} (expected 6 characters, YYYYMM)")
    year = int(s[:4])
    month = int(s[4:])
    if year < 1 or not 1 <= month <= 12:
        raise InvalidDateFormat(f"Invalid month: {token!r} (expected YYYYMM with month 01-12)")
    return dt.date(year, month, 1)


def add_months(value: dt.datetime, months: int) -> dt.datetime:
    """Shift `value` by whole calendar months, clamping the day to the target month's length.

    Raises ValueError when the result falls outside the years datetime can represent.
    """
    idx = value.year * 12 + (value.month - 1) + months
    year, month0 = divmod(idx, 12)
    if not dt.MINYEAR <= year <= dt.MAXYEAR:
        raise ValueError(f"year {year} is out of range")
    day = min(value.day, calendar.monthrange(year, month0 + 1)[1])
    return value.replace(year=year, month=month0 + 1, day=day)


def _cursor_before(origin: dt.datetime, steps: int, target: dt.datetime) -> bool:
    try:
        return add_months(origin, steps) < target
    except ValueError:
        # past datetime.max, so never before any representable target
        return False


def bucket_offset(origin: dt.datetime, target: dt.datetime) -> int:
    """Count month steps from `origin` while the cursor is still strictly before `target`.

    Equivalent to walking `origin, origin+1 month, ...` and counting every cursor that is
    before `target`. Returns 0 for `target <= origin`. The walk starts from the calendar
    month difference and corrects by at most a step or two, so large gaps stay cheap.
    """
    if target <= origin:
        return 0
    steps = max(0, (target.year - origin.year) * 12 + (target.month - origin.month))
    while steps > 0 and not _cursor_before(origin, steps - 1, target):
        steps -= 1
    while _cursor_before(origin, steps, target):
        steps += 1
    return steps


def bucket_slot(origin: dt.datetime, target: dt.datetime) -> int:
    """1-based month slot of `target` relative to `origin` (0 = before origin).

    An instant exactly on a month boundary belongs to the month it opens.
    """
    if target < origin:
        return 0
    return bucket_offset(origin, target + ONE_MICROSECOND)


def month_start(month: dt.date) -> dt.datetime:
    return dt.datetime(month.year, month.month, 1, tzinfo=UTC)


def resolve_time_range(start_token: str, end_token: str | None = None, *, today: dt.date | None = None) -> TimeRange:
    start_month = parse_month_token(start_token)
    if end_token is None or end_token == "":
        if today is None:
            today = dt.date.today()
        end_month = dt.date(today.year, today.month, 1)
    else:
        end_month = parse_month_token(end_token)

    start = month_start(start_month)
    try:
        after_end = add_months(month_start(end_month), 1)
    except ValueError as e:
        raise InvalidDateFormat(f"Invalid month: {end_token!r} ({e})") from e
    end = after_end - ONE_SECOND

    if end < start:
        raise InvalidDateRange(
            f"End month {end_month.strftime('%Y%m')} is before start month {start_month.strftime('%Y%m')}"
        )
    return TimeRange(start=start, end=end)


def months_spanned(time_range: TimeRange) -> int:
    return bucket_offset(time_range.start, time_range.end)


def bucket_month(time_range: TimeRange, index: int) -> dt.date:
    """Calendar month of the 0-based bucket `index`."""
    return add_months(time_range.start, index).date()


def month_label(month: dt.date) -> str:
    return f"{MONTH_ABBR[month.month - 1]}-{month.year % 100:02d}"


def month_labels(time_range: TimeRange) -> list[str]:
    return [month_label(bucket_month(time_range, i)) for i in range(months_spanned(time_range))]
