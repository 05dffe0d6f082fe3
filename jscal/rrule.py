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

"""Recurrence rule expansion.

Turns a JSCalendar RecurrenceRule (RFC 8984, section 4.3.3) into the
LocalDateTime keys it produces. See RFC 5545, section 3.3.10 for the
semantics of the BY* parts.
"""

import collections
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Union

from .localtime import (
    FREQ_DAILY,
    FREQ_HOURLY,
    FREQ_MINUTELY,
    FREQ_MONTHLY,
    FREQ_SECONDLY,
    FREQ_WEEKLY,
    FREQ_YEARLY,
    FREQUENCIES,
    WEEKDAYS,
    add_days,
    add_interval,
    add_months,
    as_tz_aware_ts,
    day_of_week,
    day_of_year,
    days_in_month,
    days_in_year,
    format_local_datetime,
    local_to_utc,
    parse_local_datetime,
    period_start,
    start_of_week,
    total_weeks_in_year,
    utc_to_local,
    week_number,
)

logger = logging.getLogger(__name__)

RSCALE_GREGORIAN = "gregorian"

SKIP_OMIT = "omit"
SKIP_FORWARD = "forward"
SKIP_BACKWARD = "backward"
SKIP_VALUES = (SKIP_OMIT, SKIP_FORWARD, SKIP_BACKWARD)

DEFAULT_MAX_PERIODS = 100000

DateCandidate = collections.namedtuple(
    "DateCandidate", ["year", "month", "day", "valid"]
)


class UnsupportedFeature(NotImplementedError):
    """A recurrence feature that is well-formed but not supported."""

    def __init__(self, feature, value) -> None:
        super().__init__(f"Unsupported {feature}: {value!r}")
        self.feature = feature
        self.value = value


class InvalidRecurrenceRule(ValueError):
    def __init__(self, field, message) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class NormalizedRule:
    """A recurrence rule with all implicit BY* values filled in.

    All BY* members are tuples (possibly empty), so that the filter pipeline
    never has to check whether a part was specified.
    """

    def __init__(
        self,
        frequency: str,
        interval: int = 1,
        count: Optional[int] = None,
        until: Optional[datetime] = None,
        skip: str = SKIP_OMIT,
        first_day_of_week: str = "mo",
        by_month=(),
        by_week_no=(),
        by_year_day=(),
        by_month_day=(),
        by_day=(),
        by_hour=(),
        by_minute=(),
        by_second=(),
        by_set_position=(),
    ) -> None:
        self.frequency = frequency
        self.interval = interval
        self.count = count
        self.until = until
        self.skip = skip
        self.first_day_of_week = first_day_of_week
        self.by_month = tuple(by_month)
        self.by_week_no = tuple(by_week_no)
        self.by_year_day = tuple(by_year_day)
        self.by_month_day = tuple(by_month_day)
        # (weekday, nth-of-period or None) pairs
        self.by_day = tuple(by_day)
        self.by_hour = tuple(by_hour)
        self.by_minute = tuple(by_minute)
        self.by_second = tuple(by_second)
        self.by_set_position = tuple(by_set_position)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.as_dict()!r})"

    def __eq__(self, other):
        if not isinstance(other, NormalizedRule):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def as_dict(self) -> dict:
        """Render this rule as a JSCalendar RecurrenceRule object."""
        ret = {
            "@type": "RecurrenceRule",
            "frequency": self.frequency,
            "interval": self.interval,
            "skip": self.skip,
            "firstDayOfWeek": self.first_day_of_week,
            "rscale": RSCALE_GREGORIAN,
        }
        if self.count is not None:
            ret["count"] = self.count
        if self.until is not None:
            ret["until"] = format_local_datetime(self.until)
        if self.by_day:
            ret["byDay"] = []
            for day, nth in self.by_day:
                nday = {"@type": "NDay", "day": day}
                if nth is not None:
                    nday["nthOfPeriod"] = nth
                ret["byDay"].append(nday)
        if self.by_month:
            ret["byMonth"] = [str(m) for m in self.by_month]
        for key, values in [
            ("byMonthDay", self.by_month_day),
            ("byYearDay", self.by_year_day),
            ("byWeekNo", self.by_week_no),
            ("byHour", self.by_hour),
            ("byMinute", self.by_minute),
            ("bySecond", self.by_second),
            ("bySetPosition", self.by_set_position),
        ]:
            if values:
                ret[key] = list(values)
        return ret


def _int_values(rule, name, low, high, allow_zero=True):
    ret = []
    for value in rule.get(name) or ():
        if (
            isinstance(value, bool)
            or not isinstance(value, int)
            or value < low
            or value > high
            or (value == 0 and not allow_zero)
        ):
            raise InvalidRecurrenceRule(name, f"invalid value {value!r}")
        ret.append(value)
    return ret


def _month_values(rule):
    ret = []
    for value in rule.get("byMonth") or ():
        try:
            month = int(value)
        except (TypeError, ValueError) as exc:
            raise InvalidRecurrenceRule("byMonth", f"invalid month {value!r}") from exc
        if month < 1 or month > 12:
            raise InvalidRecurrenceRule("byMonth", f"invalid month {value!r}")
        ret.append(month)
    return ret


def _nday_values(rule):
    ret = []
    for entry in rule.get("byDay") or ():
        day = entry.get("day") if isinstance(entry, dict) else None
        if day not in WEEKDAYS:
            raise InvalidRecurrenceRule("byDay", f"invalid day {entry!r}")
        nth = entry.get("nthOfPeriod")
        if nth is not None and (isinstance(nth, bool) or not isinstance(nth, int)):
            raise InvalidRecurrenceRule("byDay", f"invalid nthOfPeriod {nth!r}")
        ret.append((day, nth))
    return ret


def normalize_rule(rule: dict, anchor: datetime) -> NormalizedRule:
    """Fill in the BY* values a rule leaves implicit, based on its anchor.

    Args:
      rule: JSCalendar RecurrenceRule object
      anchor: Start of the recurring series
    Raises:
      UnsupportedFeature: for a non-gregorian rscale
      InvalidRecurrenceRule: for malformed rule members
      InvalidLocalDateTime: for a malformed until
    Returns: NormalizedRule
    """
    rscale = rule.get("rscale")
    if rscale is not None and str(rscale).lower() != RSCALE_GREGORIAN:
        raise UnsupportedFeature("rscale", rscale)

    frequency = rule.get("frequency")
    if frequency not in FREQUENCIES:
        raise InvalidRecurrenceRule("frequency", f"invalid frequency {frequency!r}")
    interval = rule.get("interval", 1)
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise InvalidRecurrenceRule("interval", f"invalid interval {interval!r}")
    count = rule.get("count")
    if count is not None and (
        isinstance(count, bool) or not isinstance(count, int) or count < 0
    ):
        raise InvalidRecurrenceRule("count", f"invalid count {count!r}")
    skip = rule.get("skip") or SKIP_OMIT
    if skip not in SKIP_VALUES:
        raise InvalidRecurrenceRule("skip", f"invalid skip {skip!r}")
    first_day = rule.get("firstDayOfWeek") or "mo"
    if first_day not in WEEKDAYS:
        raise InvalidRecurrenceRule(
            "firstDayOfWeek", f"invalid day of week {first_day!r}"
        )
    until = rule.get("until")
    if until is not None:
        until = parse_local_datetime(until)

    by_second = _int_values(rule, "bySecond", 0, 59)
    by_minute = _int_values(rule, "byMinute", 0, 59)
    by_hour = _int_values(rule, "byHour", 0, 23)
    by_day = _nday_values(rule)
    by_month_day = _int_values(rule, "byMonthDay", -31, 31, allow_zero=False)
    by_month = _month_values(rule)
    by_year_day = _int_values(rule, "byYearDay", -366, 366, allow_zero=False)
    by_week_no = _int_values(rule, "byWeekNo", -53, 53, allow_zero=False)
    by_set_position = _int_values(
        rule, "bySetPosition", -(2**31), 2**31, allow_zero=False
    )

    if frequency != FREQ_SECONDLY and not by_second:
        by_second = [anchor.second]
    if frequency not in (FREQ_SECONDLY, FREQ_MINUTELY) and not by_minute:
        by_minute = [anchor.minute]
    if frequency not in (FREQ_SECONDLY, FREQ_MINUTELY, FREQ_HOURLY) and not by_hour:
        by_hour = [anchor.hour]

    if frequency == FREQ_WEEKLY and not by_day:
        by_day = [(day_of_week(anchor), None)]

    if frequency == FREQ_MONTHLY and not by_day and not by_month_day:
        by_month_day = [anchor.day]

    if frequency == FREQ_YEARLY and not by_year_day:
        has_by_month = bool(by_month)
        has_by_week_no = bool(by_week_no)
        has_by_month_day = bool(by_month_day)
        has_by_day = bool(by_day)
        if not has_by_month and not has_by_week_no and (
            has_by_month_day or not has_by_day
        ):
            by_month = [anchor.month]
        if not has_by_month_day and not has_by_week_no and not has_by_day:
            by_month_day = [anchor.day]
        if has_by_week_no and not has_by_month_day and not has_by_day:
            by_day = [(day_of_week(anchor), None)]

    return NormalizedRule(
        frequency,
        interval=interval,
        count=count,
        until=until,
        skip=skip,
        first_day_of_week=first_day,
        by_month=by_month,
        by_week_no=by_week_no,
        by_year_day=by_year_day,
        by_month_day=by_month_day,
        by_day=by_day,
        by_hour=by_hour,
        by_minute=by_minute,
        by_second=by_second,
        by_set_position=by_set_position,
    )


def period_candidates(period: datetime, rule: NormalizedRule) -> list[DateCandidate]:
    """List the calendar dates a single recurrence period may produce.

    When a skip policy other than omit is in effect and BYMONTHDAY is set,
    months are padded to 31 days, with the padding marked invalid.
    """
    wants_invalid = rule.skip != SKIP_OMIT and bool(rule.by_month_day)

    def month_days(year, month):
        dim = days_in_month(year, month)
        last = 31 if wants_invalid else dim
        return [DateCandidate(year, month, day, day <= dim) for day in range(1, last + 1)]

    if rule.frequency == FREQ_YEARLY:
        ret = []
        for month in range(1, 13):
            ret.extend(month_days(period.year, month))
        return ret
    if rule.frequency == FREQ_MONTHLY:
        return month_days(period.year, period.month)
    if rule.frequency == FREQ_WEEKLY:
        week_start = start_of_week(period, rule.first_day_of_week)
        ret = []
        for i in range(7):
            d = add_days(week_start, i)
            ret.append(DateCandidate(d.year, d.month, d.day, True))
        return ret
    return [DateCandidate(period.year, period.month, period.day, True)]


def _candidate_date(candidate):
    return datetime(candidate.year, candidate.month, candidate.day)


def _matches_signed(value, values, total):
    for v in values:
        if v > 0 and value == v:
            return True
        if v < 0 and value == total + v + 1:
            return True
    return False


def _matches_week_no(candidate, values, first_day):
    d = _candidate_date(candidate)
    return _matches_signed(
        week_number(d, first_day), values, total_weeks_in_year(d.year, first_day)
    )


def _matches_year_day(candidate, values):
    d = _candidate_date(candidate)
    return _matches_signed(day_of_year(d), values, days_in_year(d.year))


def _matches_month_day(candidate, values):
    return _matches_signed(
        candidate.day, values, days_in_month(candidate.year, candidate.month)
    )


def _remediate_invalid(candidates, skip):
    adjusted = []
    for candidate in candidates:
        if candidate.valid:
            adjusted.append(candidate)
        elif skip == SKIP_FORWARD:
            d = add_months(datetime(candidate.year, candidate.month, 1), 1)
            adjusted.append(DateCandidate(d.year, d.month, 1, True))
        elif skip == SKIP_BACKWARD:
            adjusted.append(
                DateCandidate(
                    candidate.year,
                    candidate.month,
                    days_in_month(candidate.year, candidate.month),
                    True,
                )
            )
    seen = set()
    ret = []
    for candidate in adjusted:
        key = (candidate.year, candidate.month, candidate.day)
        if key not in seen:
            seen.add(key)
            ret.append(candidate)
    return ret


def _period_dates(period, frequency):
    if frequency == FREQ_YEARLY:
        return [
            datetime(period.year, month, day)
            for month in range(1, 13)
            for day in range(1, days_in_month(period.year, month) + 1)
        ]
    return [
        datetime(period.year, period.month, day)
        for day in range(1, days_in_month(period.year, period.month) + 1)
    ]


def _matches_by_day(candidate, rule, period, nth_cache):
    weekday = day_of_week(_candidate_date(candidate))
    for day, nth in rule.by_day:
        if nth is None:
            if day == weekday:
                return True
            continue
        # nthOfPeriod is only meaningful for monthly and yearly rules
        if rule.frequency not in (FREQ_MONTHLY, FREQ_YEARLY):
            continue
        try:
            matches = nth_cache[day]
        except KeyError:
            matches = nth_cache[day] = [
                d for d in _period_dates(period, rule.frequency) if day_of_week(d) == day
            ]
        index = nth - 1 if nth > 0 else len(matches) + nth
        if 0 <= index < len(matches):
            target = matches[index]
            if (target.year, target.month, target.day) == (
                candidate.year,
                candidate.month,
                candidate.day,
            ):
                return True
    return False


def filter_candidates(
    candidates: list[DateCandidate], rule: NormalizedRule, period: datetime
) -> list[DateCandidate]:
    """Narrow down period candidates using the BY* date parts of a rule.

    The parts are applied in a fixed order: BYMONTH, BYWEEKNO, BYYEARDAY,
    BYMONTHDAY (with skip remediation), BYDAY.
    """
    ret = candidates
    if rule.by_month:
        ret = [c for c in ret if c.month in rule.by_month]
    if rule.by_week_no:
        ret = [
            c
            for c in ret
            if c.valid
            and _matches_week_no(c, rule.by_week_no, rule.first_day_of_week)
        ]
    if rule.by_year_day:
        ret = [c for c in ret if c.valid and _matches_year_day(c, rule.by_year_day)]
    remediated = False
    if rule.by_month_day:
        ret = [c for c in ret if _matches_month_day(c, rule.by_month_day)]
        if rule.skip != SKIP_OMIT:
            ret = _remediate_invalid(ret, rule.skip)
            remediated = True
        else:
            ret = [c for c in ret if c.valid]
    if rule.by_day:
        nth_cache: dict[str, list[datetime]] = {}
        ret = [c for c in ret if _matches_by_day(c, rule, period, nth_cache)]
    if not remediated:
        ret = [c for c in ret if c.valid]
    return ret


def _time_values(values, current, limiting):
    if limiting:
        if not values or current in values:
            return [current]
        return []
    if values:
        return sorted(set(values))
    return [current]


def materialize(
    dates: list[DateCandidate], rule: NormalizedRule, period: datetime
) -> list[str]:
    """Combine dates with the time-of-day parts of a rule.

    For hourly, minutely and secondly rules the parts that are at least as
    coarse as the frequency limit the period instead of expanding it.
    Returns: sorted LocalDateTime strings
    """
    hours = _time_values(
        rule.by_hour,
        period.hour,
        rule.frequency in (FREQ_HOURLY, FREQ_MINUTELY, FREQ_SECONDLY),
    )
    minutes = _time_values(
        rule.by_minute, period.minute, rule.frequency in (FREQ_MINUTELY, FREQ_SECONDLY)
    )
    seconds = _time_values(
        rule.by_second, period.second, rule.frequency == FREQ_SECONDLY
    )
    ret = set()
    for d in dates:
        for hour in hours:
            for minute in minutes:
                for second in seconds:
                    ret.add(
                        format_local_datetime(
                            datetime(d.year, d.month, d.day, hour, minute, second)
                        )
                    )
    return sorted(ret)


def apply_set_position(instants: list[str], positions) -> list[str]:
    """Select instants by their 1-based (or negative) position in the set."""
    ordered = sorted(instants)
    total = len(ordered)
    selected = set()
    for pos in positions:
        index = pos - 1 if pos > 0 else total + pos
        if 0 <= index < total:
            selected.add(ordered[index])
    return sorted(selected)


def period_instants(period: datetime, rule: NormalizedRule) -> list[str]:
    """Return the sorted instants a single period of a rule produces."""
    dates = filter_candidates(period_candidates(period, rule), rule, period)
    instants = materialize(dates, rule, period)
    if rule.by_set_position:
        instants = apply_set_position(instants, rule.by_set_position)
    return instants


class ExpansionWindow:
    """The range an expansion is restricted to.

    Args:
      start: Lower bound (inclusive), as an instant
      end: Upper bound (inclusive), as an instant
      tzid: Time zone of the series, or None for floating date-times
      default_timezone: Zone used for naive bounds, and to express the bounds
        as wall-clock times for floating series
    """

    def __init__(
        self,
        start: datetime,
        end: datetime,
        tzid: Optional[str] = None,
        default_timezone: Union[str, tzinfo] = timezone.utc,
    ) -> None:
        self.start = as_tz_aware_ts(start, default_timezone)
        self.end = as_tz_aware_ts(end, default_timezone)
        self.tzid = tzid
        local_zone = tzid if tzid else default_timezone
        self.start_local = utc_to_local(self.start, local_zone)
        self.end_local = utc_to_local(self.end, local_zone)
        self._start_key = format_local_datetime(self.start_local)
        self._end_key = format_local_datetime(self.end_local)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.start!r}, {self.end!r}, "
            f"tzid={self.tzid!r})"
        )

    def sort_key(self, key: str):
        if self.tzid:
            return (local_to_utc(key, self.tzid), key)
        return (parse_local_datetime(key), key)

    def compare(self, a: str, b: str) -> int:
        ka = self.sort_key(a)
        kb = self.sort_key(b)
        return (ka > kb) - (ka < kb)

    def contains(self, key: str) -> bool:
        if self.tzid:
            return self.start <= local_to_utc(key, self.tzid) <= self.end
        parse_local_datetime(key)
        return self._start_key <= key <= self._end_key


class RuleExpansion:
    """Iterator over the LocalDateTime keys one rule produces in a window.

    With ``include_anchor`` set (the default) the anchor is always the first
    instance of the series and counts towards ``count``. Without it, the
    anchor is only produced when the rule itself generates it, as for
    excluded recurrence rules. Instants before the anchor are never produced.
    Expansion stops when ``until`` or ``count`` is exhausted, or when the
    period start passes the end of the window.

    Rules without ``count`` start at the last period that can still reach
    the window, so ``max_periods`` only bounds the periods inside it.
    """

    def __init__(
        self,
        anchor: datetime,
        rule: Union[dict, NormalizedRule],
        window: ExpansionWindow,
        max_periods: int = DEFAULT_MAX_PERIODS,
        include_anchor: bool = True,
    ) -> None:
        if not isinstance(rule, NormalizedRule):
            rule = normalize_rule(rule, anchor)
        self.anchor = anchor
        self.rule = rule
        self.window = window
        self.max_periods = max_periods
        self.include_anchor = include_anchor
        self._anchor_key = format_local_datetime(anchor)
        self._until_key = (
            format_local_datetime(rule.until) if rule.until is not None else None
        )
        self._cursor: Optional[datetime] = period_start(
            anchor, rule.frequency, rule.first_day_of_week
        )
        if rule.count is None:
            self._cursor = self._skip_to_window(self._cursor)
        self._generated = 0
        self._periods = 0
        self._pending: collections.deque[str] = collections.deque()
        self._anchor_done = not include_anchor
        self._exhausted = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._anchor_key!r}, {self.rule!r})"

    def __iter__(self):
        return self

    def __next__(self) -> str:
        while not self._exhausted:
            if not self._anchor_done:
                self._anchor_done = True
                key = self._accept(self._anchor_key)
            elif self._pending:
                instant = self._pending.popleft()
                cmp = self.window.compare(instant, self._anchor_key)
                if cmp < 0 or (cmp == 0 and self.include_anchor):
                    continue
                key = self._accept(instant)
            else:
                self._advance()
                continue
            if key is not None:
                return key
        raise StopIteration

    def _accept(self, instant: str) -> Optional[str]:
        if self._until_key is not None and (
            self.window.compare(instant, self._until_key) > 0
        ):
            self._exhausted = True
            return None
        self._generated += 1
        if self.rule.count is not None and self._generated > self.rule.count:
            self._exhausted = True
            return None
        if self.window.contains(instant):
            return instant
        return None

    def _skip_to_window(self, period: datetime) -> datetime:
        start = self.window.start_local
        frequency = self.rule.frequency
        if frequency == FREQ_YEARLY:
            periods = start.year - period.year
        elif frequency == FREQ_MONTHLY:
            periods = (start.year - period.year) * 12 + start.month - period.month
        elif frequency == FREQ_WEEKLY:
            periods = (start.date() - period.date()).days // 7
        elif frequency == FREQ_DAILY:
            periods = (start.date() - period.date()).days
        else:
            unit = {
                FREQ_HOURLY: timedelta(hours=1),
                FREQ_MINUTELY: timedelta(minutes=1),
                FREQ_SECONDLY: timedelta(seconds=1),
            }[frequency]
            periods = (start - period) // unit
        # Keep one interval in hand so the period holding the window start
        # is never skipped.
        steps = periods // self.rule.interval - 1
        if steps <= 0:
            return period
        logger.debug("Skipping %d periods of %r before the window", steps, self)
        return add_interval(
            period,
            frequency,
            steps * self.rule.interval,
            self.rule.first_day_of_week,
        )

    def _past_window(self, period: datetime) -> bool:
        frequency = self.rule.frequency
        end = self.window.end_local
        if frequency == FREQ_HOURLY:
            return period.replace(minute=0, second=0) > end
        if frequency == FREQ_MINUTELY:
            return period.replace(second=0) > end
        if frequency == FREQ_SECONDLY:
            return period > end
        return period.date() > end.date()

    def _advance(self) -> None:
        period = self._cursor
        if period is None or self._past_window(period):
            self._exhausted = True
            return
        if self._periods >= self.max_periods:
            logger.warning(
                "Stopping expansion of %r after %d periods", self, self._periods
            )
            self._exhausted = True
            return
        self._periods += 1
        self._pending.extend(period_instants(period, self.rule))
        try:
            self._cursor = add_interval(
                period,
                self.rule.frequency,
                self.rule.interval,
                self.rule.first_day_of_week,
            )
        except (OverflowError, ValueError):
            # Stepped past the last representable date.
            self._cursor = None


def expand_rule(
    anchor: Union[str, datetime],
    rule: dict,
    window: ExpansionWindow,
    max_periods: int = DEFAULT_MAX_PERIODS,
) -> list[str]:
    """Expand a single rule into the sorted keys it produces in a window."""
    if isinstance(anchor, str):
        anchor = parse_local_datetime(anchor)
    keys = list(RuleExpansion(anchor, rule, window, max_periods=max_periods))
    logger.debug("Rule %r expanded to %d instances", rule, len(keys))
    return keys
