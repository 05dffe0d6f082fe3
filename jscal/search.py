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

"""Searching and filtering of JSCalendar objects."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union

from icalendar.prop import vDuration

from .localtime import (
    InvalidLocalDateTime,
    as_tz_aware_ts,
    format_local_datetime,
    local_to_utc,
    parse_local_datetime,
)
from .objects import TYPE_EVENT, TYPE_GROUP, TYPE_TASK

RangeBound = Union[str, datetime, None]


def find_by_uid(items: Iterable[dict], uid: str) -> Optional[dict]:
    for item in items:
        if item.get("uid") == uid:
            return item
    return None


def filter_by_type(items: Iterable[dict], kind: str) -> list[dict]:
    return [item for item in items if item.get("@type") == kind]


def group_by_type(items: Iterable[dict]) -> dict[str, list[dict]]:
    ret: dict[str, list[dict]] = {}
    for item in items:
        ret.setdefault(item.get("@type"), []).append(item)
    return ret


def _collect_text(item):
    parts = [item.get("title"), item.get("description")]
    for location in (item.get("locations") or {}).values():
        parts.extend([location.get("name"), location.get("description")])
    for vloc in (item.get("virtualLocations") or {}).values():
        parts.extend([vloc.get("name"), vloc.get("description"), vloc.get("uri")])
    for participant in (item.get("participants") or {}).values():
        parts.extend(
            [
                participant.get("name"),
                participant.get("email"),
                participant.get("description"),
            ]
        )
    return " ".join(p for p in parts if isinstance(p, str)).lower()


def filter_by_text(items: Iterable[dict], query: str) -> list[dict]:
    """Return the items that mention query (case-insensitively).

    Titles, descriptions, locations and participants are searched. An
    empty query matches everything.
    """
    needle = query.strip().lower()
    if not needle:
        return list(items)
    return [item for item in items if needle in _collect_text(item)]


def parse_duration(value) -> Optional[timedelta]:
    if not value:
        return None
    try:
        return vDuration.from_ical(value)
    except ValueError:
        return None


def _local_span(item):
    """Return the (start, end) of an item as naive local datetimes."""
    kind = item.get("@type")
    if kind == TYPE_GROUP:
        spans = [_local_span(entry) for entry in item.get("entries") or []]
        spans = [span for span in spans if span is not None]
        if not spans:
            return None
        return (min(s for s, e in spans), max(e for s, e in spans))
    if kind == TYPE_EVENT:
        value = item.get("start")
    elif kind == TYPE_TASK:
        value = item.get("start") or item.get("due")
    else:
        return None
    try:
        start = parse_local_datetime(value)
    except InvalidLocalDateTime:
        return None
    end = start
    if kind == TYPE_EVENT:
        duration = parse_duration(item.get("duration"))
        if duration is not None:
            end = start + duration
    return (start, end)


def _instant_span(item):
    if item.get("@type") == TYPE_GROUP:
        spans = [_instant_span(entry) for entry in item.get("entries") or []]
        spans = [span for span in spans if span is not None]
        if not spans:
            return None
        return (min(s for s, e in spans), max(e for s, e in spans))
    tzid = item.get("timeZone")
    span = _local_span(item)
    if span is None or not tzid:
        return None
    return (local_to_utc(span[0], tzid), local_to_utc(span[1], tzid))


def _as_instant(value):
    if value is None:
        return None
    if isinstance(value, str):
        value = parse_local_datetime(value)
    return as_tz_aware_ts(value, timezone.utc)


def filter_by_date_range(
    items: Iterable[dict],
    start: RangeBound = None,
    end: RangeBound = None,
    include_incomparable: bool = False,
) -> list[dict]:
    """Return the items that overlap a date range.

    Args:
      items: JSCalendar objects
      start: Lower bound, as LocalDateTime string or datetime
      end: Upper bound, as LocalDateTime string or datetime
      include_incomparable: Whether to include items that can not be
        compared against the bounds, e.g. floating items when the bounds
        are datetimes
    Returns: list of matching items
    """
    by_instant = isinstance(start, datetime) or isinstance(end, datetime)
    if by_instant:
        lower = _as_instant(start)
        upper = _as_instant(end)
    else:
        lower = format_local_datetime(parse_local_datetime(start)) if start else None
        upper = format_local_datetime(parse_local_datetime(end)) if end else None
    ret = []
    for item in items:
        if by_instant:
            span = _instant_span(item)
        else:
            span = _local_span(item)
            if span is not None:
                span = tuple(format_local_datetime(v) for v in span)
        if span is None:
            if include_incomparable:
                ret.append(item)
            continue
        if lower is not None and span[1] < lower:
            continue
        if upper is not None and span[0] > upper:
            continue
        ret.append(item)
    return ret
