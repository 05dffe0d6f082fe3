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

"""Validation of JSCalendar objects."""

import re

from .localtime import (
    FREQUENCIES,
    WEEKDAYS,
    InvalidLocalDateTime,
    UnknownTimeZone,
    get_timezone,
    parse_local_datetime,
)
from .rrule import RSCALE_GREGORIAN, SKIP_VALUES

TYPE_EVENT = "Event"
TYPE_TASK = "Task"
TYPE_GROUP = "Group"
TYPE_RECURRENCE_RULE = "RecurrenceRule"
TYPE_NDAY = "NDay"

_UTC_DATETIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d*[1-9])?Z$"
)
_DURATION_RE = re.compile(
    r"^P(?:(\d+)W(?:(\d+)D)?|(\d+)D)?"
    r"(?:T(?=\d)(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)(?:\.(\d+))?S)?)?$"
)

_TASK_PROGRESS = ("needs-action", "in-process", "completed", "failed", "cancelled")

# name -> (low, high, zero allowed)
_RULE_RANGES = {
    "byMonthDay": (-31, 31, False),
    "byYearDay": (-366, 366, False),
    "byWeekNo": (-53, 53, False),
    "byHour": (0, 23, True),
    "byMinute": (0, 59, True),
    "bySecond": (0, 59, True),
    "bySetPosition": (None, None, False),
}


class ValidationError(ValueError):
    """A JSCalendar object is not valid."""

    def __init__(self, path, message) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _check_local_datetime(value, path):
    try:
        parse_local_datetime(value)
    except InvalidLocalDateTime:
        yield path, "must be a LocalDateTime (YYYY-MM-DDTHH:MM:SS)"


def _check_utc_datetime(value, path):
    if not isinstance(value, str) or not _UTC_DATETIME_RE.match(value):
        yield path, "must be a UTCDateTime (YYYY-MM-DDTHH:MM:SSZ)"
        return
    try:
        parse_local_datetime(value[:-1])
    except InvalidLocalDateTime:
        yield path, "must be a valid UTCDateTime"


def is_duration(value) -> bool:
    """Check whether value is a (non-negative) RFC 8984 Duration."""
    if not isinstance(value, str) or value == "P":
        return False
    return _DURATION_RE.match(value) is not None


def _check_nday(nday, path):
    if not isinstance(nday, dict):
        yield path, "must be an NDay object"
        return
    if nday.get("@type", TYPE_NDAY) != TYPE_NDAY:
        yield path + "/@type", f"must be {TYPE_NDAY}"
    if nday.get("day") not in WEEKDAYS:
        yield path + "/day", "must be a day of the week"
    nth = nday.get("nthOfPeriod")
    if nth is not None and (not _is_int(nth) or nth == 0):
        yield path + "/nthOfPeriod", "must be a non-zero integer"


def validate_recurrence_rule(rule, path="recurrenceRule"):
    """Validate a RecurrenceRule object.

    Returns: iterator over (path, message) tuples
    """
    if not isinstance(rule, dict):
        yield path, "must be a RecurrenceRule object"
        return
    if rule.get("@type", TYPE_RECURRENCE_RULE) != TYPE_RECURRENCE_RULE:
        yield path + "/@type", f"must be {TYPE_RECURRENCE_RULE}"
    if rule.get("frequency") not in FREQUENCIES:
        yield path + "/frequency", "must be a recurrence frequency"
    interval = rule.get("interval")
    if interval is not None and (not _is_int(interval) or interval < 1):
        yield path + "/interval", "must be a positive integer"
    count = rule.get("count")
    if count is not None and (not _is_int(count) or count < 0):
        yield path + "/count", "must be a non-negative integer"
    if "count" in rule and "until" in rule:
        yield path, "must not have both count and until"
    if "until" in rule:
        yield from _check_local_datetime(rule["until"], path + "/until")
    rscale = rule.get("rscale")
    if rscale is not None and (
        not isinstance(rscale, str) or rscale.lower() != RSCALE_GREGORIAN
    ):
        yield path + "/rscale", "only gregorian is supported"
    skip = rule.get("skip")
    if skip is not None and skip not in SKIP_VALUES:
        yield path + "/skip", "must be one of " + ", ".join(SKIP_VALUES)
    first_day = rule.get("firstDayOfWeek")
    if first_day is not None and first_day not in WEEKDAYS:
        yield path + "/firstDayOfWeek", "must be a day of the week"
    by_day = rule.get("byDay")
    if by_day is not None:
        if not isinstance(by_day, list):
            yield path + "/byDay", "must be a list"
        else:
            for i, nday in enumerate(by_day):
                yield from _check_nday(nday, f"{path}/byDay/{i}")
    by_month = rule.get("byMonth")
    if by_month is not None:
        if not isinstance(by_month, list):
            yield path + "/byMonth", "must be a list"
        else:
            for i, month in enumerate(by_month):
                if not isinstance(month, str) or not re.match(
                    r"^(?:[1-9]|1[0-2])$", month
                ):
                    yield f"{path}/byMonth/{i}", "must be a month (1-12)"
    for name, (low, high, zero_ok) in _RULE_RANGES.items():
        values = rule.get(name)
        if values is None:
            continue
        if not isinstance(values, list):
            yield f"{path}/{name}", "must be a list"
            continue
        for i, value in enumerate(values):
            if (
                not _is_int(value)
                or (low is not None and not low <= value <= high)
                or (value == 0 and not zero_ok)
            ):
                yield f"{path}/{name}/{i}", "is out of range"


def _check_rules(obj, name):
    rules = obj.get(name)
    if rules is None:
        return
    if not isinstance(rules, list):
        yield name, "must be a list of RecurrenceRule objects"
        return
    for i, rule in enumerate(rules):
        yield from validate_recurrence_rule(rule, f"{name}/{i}")


def _check_common(obj):
    uid = obj.get("uid")
    if not isinstance(uid, str) or not uid:
        yield "uid", "must be a non-empty string"
    if "updated" in obj:
        yield from _check_utc_datetime(obj["updated"], "updated")
    if "created" in obj:
        yield from _check_utc_datetime(obj["created"], "created")
    for name in ("title", "description"):
        if name in obj and not isinstance(obj[name], str):
            yield name, "must be a string"
    sequence = obj.get("sequence")
    if sequence is not None and (not _is_int(sequence) or sequence < 0):
        yield "sequence", "must be a non-negative integer"
    tzid = obj.get("timeZone")
    if tzid is not None:
        try:
            get_timezone(tzid)
        except UnknownTimeZone:
            yield "timeZone", f"unknown time zone {tzid!r}"
    if "recurrenceId" in obj:
        yield from _check_local_datetime(obj["recurrenceId"], "recurrenceId")
    yield from _check_rules(obj, "recurrenceRules")
    yield from _check_rules(obj, "excludedRecurrenceRules")
    overrides = obj.get("recurrenceOverrides")
    if overrides is not None:
        if not isinstance(overrides, dict):
            yield "recurrenceOverrides", "must be an object"
        else:
            for key, patch in overrides.items():
                yield from _check_local_datetime(key, f"recurrenceOverrides/{key}")
                if not isinstance(patch, dict):
                    yield f"recurrenceOverrides/{key}", "must be a patch object"


def _check_event(obj):
    if "start" not in obj:
        yield "start", "is required"
    else:
        yield from _check_local_datetime(obj["start"], "start")
    if "duration" in obj and not is_duration(obj["duration"]):
        yield "duration", "must be a Duration"


def _check_task(obj):
    for name in ("start", "due"):
        if name in obj:
            yield from _check_local_datetime(obj[name], name)
    if "estimatedDuration" in obj and not is_duration(obj["estimatedDuration"]):
        yield "estimatedDuration", "must be a Duration"
    percent = obj.get("percentComplete")
    if percent is not None and (not _is_int(percent) or not 0 <= percent <= 100):
        yield "percentComplete", "must be an integer between 0 and 100"
    progress = obj.get("progress")
    if progress is not None and progress not in _TASK_PROGRESS:
        yield "progress", "must be one of " + ", ".join(_TASK_PROGRESS)


def _check_group(obj):
    entries = obj.get("entries")
    if not isinstance(entries, list):
        yield "entries", "must be a list"
        return
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict) or entry.get("@type") not in (
            TYPE_EVENT,
            TYPE_TASK,
        ):
            yield f"entries/{i}", "must be an Event or Task"
            continue
        for path, message in _iter_errors(entry):
            yield f"entries/{i}/{path}", message


def _iter_errors(obj):
    if not isinstance(obj, dict):
        yield "", "must be an object"
        return
    kind = obj.get("@type")
    if kind not in (TYPE_EVENT, TYPE_TASK, TYPE_GROUP):
        yield "@type", "must be Event, Task or Group"
        return
    yield from _check_common(obj)
    if kind == TYPE_EVENT:
        yield from _check_event(obj)
    elif kind == TYPE_TASK:
        yield from _check_task(obj)
    else:
        yield from _check_group(obj)


def validate_object(obj):
    """Validate a JSCalendar object.

    Args:
      obj: Event, Task or Group
    Returns: iterator over error messages
    """
    for path, message in _iter_errors(obj):
        yield f"{path}: {message}"


def check_object(obj) -> None:
    """Check a JSCalendar object, raising on the first problem found.

    Raises:
      ValidationError: if the object is not valid
    """
    for path, message in _iter_errors(obj):
        raise ValidationError(path, message)
