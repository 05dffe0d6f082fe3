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

"""Expansion of recurring JSCalendar objects into occurrences."""

import collections
import copy
import heapq
import itertools
import logging
from datetime import datetime
from typing import Iterable, Iterator, Optional

from .config import ExpansionConfig, default_config
from .localtime import parse_local_datetime
from .objects import TYPE_EVENT, TYPE_TASK, occurrence_key
from .patch import apply_patch
from .rrule import ExpansionWindow, RuleExpansion

logger = logging.getLogger(__name__)

RECURRENCE_PROPERTIES = (
    "recurrenceRules",
    "excludedRecurrenceRules",
    "recurrenceOverrides",
)

Page = collections.namedtuple("Page", ["items", "next_cursor"])


class RecurrenceRange:
    """Range of instants (inclusive on both ends) to expand into.

    Args:
      start: Lower bound
      end: Upper bound
    """

    def __init__(self, start: datetime, end: datetime) -> None:
        if (start.tzinfo is None) == (end.tzinfo is None) and start > end:
            raise ValueError(f"Range start {start} is after end {end}")
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.start!r}, {self.end!r})"

    def __eq__(self, other):
        if not isinstance(other, RecurrenceRange):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    @classmethod
    def coerce(cls, value) -> "RecurrenceRange":
        """Accept a RecurrenceRange, a (start, end) pair or a from/to dict."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls(value["from"], value["to"])
        start, end = value
        return cls(start, end)

    def window(
        self, tzid: Optional[str], config: ExpansionConfig
    ) -> ExpansionWindow:
        return ExpansionWindow(
            self.start,
            self.end,
            tzid=tzid,
            default_timezone=config.get_default_timezone(),
        )


def _anchor_field(obj: dict) -> Optional[str]:
    if obj.get("@type") == TYPE_EVENT:
        return "start"
    if obj.get("start"):
        return "start"
    if obj.get("due"):
        return "due"
    return None


def _patch_sets(patch, name):
    return bool(patch) and (name in patch or "/" + name in patch)


def _materialize(base, key, field, tzid, patch):
    if patch:
        instance = apply_patch(base, patch)
    else:
        instance = copy.deepcopy(base)
    if instance.get("excluded") is True:
        return None
    if not _patch_sets(patch, field):
        instance[field] = key
    for name in RECURRENCE_PROPERTIES:
        instance.pop(name, None)
    instance["recurrenceId"] = key
    if tzid:
        instance["recurrenceIdTimeZone"] = tzid
    return instance


def _expand_keys(obj, field, window, max_periods):
    anchor = parse_local_datetime(obj.get(field))
    overrides = obj.get("recurrenceOverrides") or {}
    override_keys = set()
    for key in overrides:
        parse_local_datetime(key)
        if window.contains(key):
            override_keys.add(key)
    rules = obj.get("recurrenceRules") or []
    if not rules:
        base_in_range = window.contains(obj[field])
        return base_in_range, sorted(override_keys, key=window.sort_key)
    included = set()
    for rule in rules:
        included.update(RuleExpansion(anchor, rule, window, max_periods=max_periods))
    excluded = set()
    for rule in obj.get("excludedRecurrenceRules") or []:
        excluded.update(
            RuleExpansion(
                anchor, rule, window, max_periods=max_periods, include_anchor=False
            )
        )
    keys = (included - excluded) | override_keys
    return False, sorted(keys, key=window.sort_key)


def expand_object(
    obj: dict,
    time_range,
    config: Optional[ExpansionConfig] = None,
) -> Iterator[dict]:
    """Expand a single Event or Task into its occurrences within a range.

    The set of occurrence keys is computed immediately, so malformed
    anchors, unsupported rules and bad override keys raise from this call.
    The occurrences themselves are materialized as the result is consumed.

    Groups and other objects are passed through unchanged. A Task without
    ``start`` or ``due`` has no occurrences.

    Args:
      obj: JSCalendar object
      time_range: RecurrenceRange, (start, end) pair or from/to dict
      config: ExpansionConfig to use; defaults to the module default
    Raises:
      InvalidLocalDateTime: for malformed anchors, until values or
        override keys
      UnsupportedFeature: for unsupported rule scales
      PatchError: when an override patch does not apply
    Returns: iterator over occurrence objects, sorted by recurrence id
    """
    if config is None:
        config = default_config
    time_range = RecurrenceRange.coerce(time_range)
    if obj.get("@type") not in (TYPE_EVENT, TYPE_TASK):
        return iter([obj])
    field = _anchor_field(obj)
    if field is None:
        return iter([])
    tzid = obj.get("timeZone") or None
    window = time_range.window(tzid, config)
    base_in_range, keys = _expand_keys(
        obj, field, window, config.get_max_periods()
    )
    logger.debug("Expanded %s to %d keys", obj.get("uid"), len(keys))
    if not obj.get("recurrenceRules"):
        return _iter_base_with_overrides(
            obj, base_in_range, keys, field, tzid, window
        )
    return _iter_occurrences(obj, keys, field, tzid)


def _iter_occurrences(obj, keys, field, tzid):
    overrides = obj.get("recurrenceOverrides") or {}
    for key in keys:
        instance = _materialize(obj, key, field, tzid, overrides.get(key))
        if instance is not None:
            yield instance


def _iter_base_with_overrides(obj, base_in_range, keys, field, tzid, window):
    overrides = obj.get("recurrenceOverrides") or {}
    entries = []
    if base_in_range:
        entries.append((obj[field], True))
    entries.extend((key, False) for key in keys)
    entries.sort(key=lambda entry: window.sort_key(entry[0]))
    for key, is_base in entries:
        if is_base:
            yield obj
            continue
        instance = _materialize(obj, key, field, tzid, overrides.get(key))
        if instance is not None:
            yield instance


def _merge_key(obj):
    key = occurrence_key(obj)
    return (key is None, key or "")


def expand(
    items: Iterable[dict],
    time_range,
    config: Optional[ExpansionConfig] = None,
) -> Iterator[dict]:
    """Expand a list of JSCalendar objects into their occurrences.

    Occurrences of all objects are merged by recurrence id (or start/due),
    with ties resolved by input order; objects without such a key come last.
    The result is lazy; call again to start over.

    Args:
      items: JSCalendar objects
      time_range: RecurrenceRange, (start, end) pair or from/to dict
      config: ExpansionConfig to use
    Returns: iterator over occurrences
    """
    time_range = RecurrenceRange.coerce(time_range)
    streams = [expand_object(item, time_range, config) for item in items]
    yield from heapq.merge(*streams, key=_merge_key)


def expand_paged(
    items: Iterable[dict],
    time_range,
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
    config: Optional[ExpansionConfig] = None,
) -> Page:
    """Return one page of the expansion of items.

    Args:
      items: JSCalendar objects
      time_range: RecurrenceRange, (start, end) pair or from/to dict
      limit: Maximum number of occurrences on the page; defaults to the
        configured page limit
      cursor: next_cursor of the previous page, if any
      config: ExpansionConfig to use
    Returns: Page with the occurrences and the cursor for the next page,
      which is None when there are no further occurrences
    """
    if config is None:
        config = default_config
    if limit is None:
        limit = config.get_page_limit()
    if limit < 0:
        raise ValueError(f"Invalid page limit {limit}")

    def eligible(obj):
        if cursor is None:
            return True
        key = occurrence_key(obj)
        return key is not None and key > cursor

    stream = filter(eligible, expand(items, time_range, config))
    page = list(itertools.islice(stream, limit))
    next_cursor = None
    if page and next(stream, None) is not None:
        for obj in reversed(page):
            next_cursor = occurrence_key(obj)
            if next_cursor is not None:
                break
    return Page(page, next_cursor)

