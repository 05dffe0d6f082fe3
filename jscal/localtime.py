# jscal
# Copyright (C) 2026 Jelmer Vernooĳ <jelmer@jelmer.uk>, et al.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; version 3
# of the License or (at your option) any later version of
# the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston,
# MA  02110-1301, USA.

"""Local date-time handling and calendar arithmetic.

A LocalDateTime is a wall-clock date-time without UTC offset, serialized as
``YYYY-MM-DDTHH:MM:SS``. Internally these are represented as naive
:class:`datetime.datetime` objects.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

FREQ_YEARLY = "yearly"
FREQ_MONTHLY = "monthly"
FREQ_WEEKLY = "weekly"
FREQ_DAILY = "daily"
FREQ_HOURLY = "hourly"
FREQ_MINUTELY = "minutely"
FREQ_SECONDLY = "secondly"
FREQUENCIES = (
    FREQ_YEARLY,
    FREQ_MONTHLY,
    FREQ_WEEKLY,
    FREQ_DAILY,
    FREQ_HOURLY,
    FREQ_MINUTELY,
    FREQ_SECONDLY,
)

# Indexed like datetime.weekday()
WEEKDAYS = ("mo", "tu", "we", "th", "fr", "sa", "su")

_LOCAL_DATETIME_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.\d+)?$"
)


class InvalidLocalDateTime(ValueError):
    def __init__(self, value) -> None:
        super().__init__(f"Invalid LocalDateTime: {value!r}")
        self.value = value


class UnknownTimeZone(ValueError):
    def __init__(self, tzid) -> None:
        super().__init__(f"Unknown time zone {tzid!r}")
        self.tzid = tzid


def parse_local_datetime(value: str) -> datetime:
    """Parse a LocalDateTime string.

    Args:
      value: String in ``YYYY-MM-DDTHH:MM:SS`` form
    Raises:
      InvalidLocalDateTime: if the string does not match the grammar or
        names a date that does not exist
    Returns: naive datetime
    """
    if not isinstance(value, str):
        raise InvalidLocalDateTime(value)
    m = _LOCAL_DATETIME_RE.match(value)
    if not m:
        raise InvalidLocalDateTime(value)
    try:
        return datetime(*(int(part) for part in m.groups()))
    except ValueError as exc:
        raise InvalidLocalDateTime(value) from exc


def format_local_datetime(dt: datetime) -> str:
    return "%04d-%02d-%02dT%02d:%02d:%02d" % (
        dt.year,
        dt.month,
        dt.day,
        dt.hour,
        dt.minute,
        dt.second,
    )


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def add_hours(dt: datetime, hours: int) -> datetime:
    return dt + timedelta(hours=hours)


def add_minutes(dt: datetime, minutes: int) -> datetime:
    return dt + timedelta(minutes=minutes)


def add_seconds(dt: datetime, seconds: int) -> datetime:
    return dt + timedelta(seconds=seconds)


def add_months(dt: datetime, months: int) -> datetime:
    """Add months, clamping the day to the length of the target month."""
    return dt + relativedelta(months=months)


def day_of_week(dt: Union[date, datetime]) -> str:
    return WEEKDAYS[dt.weekday()]


def day_of_year(dt: Union[date, datetime]) -> int:
    return dt.timetuple().tm_yday


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def start_of_week(dt: datetime, first_day: str) -> datetime:
    """Return the first day of the week containing dt, keeping the time."""
    offset = (dt.weekday() - WEEKDAYS.index(first_day)) % 7
    return dt - timedelta(days=offset)


def _first_week_start(year: int, first_day: str) -> date:
    # Week 1 is the first week with at least four days in the year.
    year_start = datetime(year, 1, 1)
    week_start = start_of_week(year_start, first_day)
    if 7 - (year_start - week_start).days >= 4:
        return week_start.date()
    return week_start.date() + timedelta(days=7)


def week_number(dt: Union[date, datetime], first_day: str) -> int:
    """Return the ISO 8601 style week number of dt.

    Days before week 1 of their year belong to the last week of the previous
    year; days on or after week 1 of the next year are in week 1.
    """
    d = dt.date() if isinstance(dt, datetime) else dt
    if d >= _first_week_start(d.year + 1, first_day):
        return 1
    week1 = _first_week_start(d.year, first_day)
    if d < week1:
        return total_weeks_in_year(d.year - 1, first_day)
    return (d - week1).days // 7 + 1


def total_weeks_in_year(year: int, first_day: str) -> int:
    return (
        _first_week_start(year + 1, first_day) - _first_week_start(year, first_day)
    ).days // 7


def period_start(dt: datetime, frequency: str, first_day: str) -> datetime:
    """Align dt to the start of the recurrence period containing it."""
    if frequency == FREQ_YEARLY:
        return datetime(dt.year, 1, 1)
    if frequency == FREQ_MONTHLY:
        return datetime(dt.year, dt.month, 1)
    if frequency == FREQ_WEEKLY:
        return start_of_week(dt, first_day)
    return dt


def add_interval(period: datetime, frequency: str, amount: int, first_day: str):
    """Step a period start forward by amount periods of the given frequency.

    Raises:
      OverflowError: when the result would fall outside the datetime range
    """
    if frequency == FREQ_YEARLY:
        year = period.year + amount
        if year > datetime.max.year:
            raise OverflowError("year %d is out of range" % year)
        return datetime(year, 1, 1)
    if frequency == FREQ_MONTHLY:
        return add_months(datetime(period.year, period.month, 1), amount)
    if frequency == FREQ_WEEKLY:
        return add_days(start_of_week(period, first_day), amount * 7)
    if frequency == FREQ_DAILY:
        return add_days(period, amount)
    if frequency == FREQ_HOURLY:
        return add_hours(period, amount)
    if frequency == FREQ_MINUTELY:
        return add_minutes(period, amount)
    return add_seconds(period, amount)


def get_timezone(tzid: str) -> tzinfo:
    try:
        return ZoneInfo(tzid)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
        raise UnknownTimeZone(tzid) from exc


def as_tz_aware_ts(
    dt: Union[datetime, date], default_timezone: Union[str, tzinfo]
) -> datetime:
    if not getattr(dt, "time", None):
        _dt = datetime.combine(dt, time())
    else:
        _dt = dt  # type: ignore
    if _dt.tzinfo is None:
        if isinstance(default_timezone, str):
            _dt = _dt.replace(tzinfo=get_timezone(default_timezone))
        else:
            _dt = _dt.replace(tzinfo=default_timezone)
    assert _dt.tzinfo
    return _dt


def local_to_utc(value: Union[str, datetime], tz: Union[str, tzinfo]) -> datetime:
    """Interpret a LocalDateTime in a time zone and return the UTC instant."""
    if isinstance(value, str):
        value = parse_local_datetime(value)
    if isinstance(tz, str):
        tz = get_timezone(tz)
    return value.replace(tzinfo=tz).astimezone(timezone.utc)


def utc_to_local(instant: datetime, tz: Union[str, tzinfo]) -> datetime:
    """Return the naive wall-clock time of an instant in a time zone."""
    if isinstance(tz, str):
        tz = get_timezone(tz)
    return instant.astimezone(tz).replace(tzinfo=None)
