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

"""iCalendar (RFC 5545) export of JSCalendar objects."""

import json
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from icalendar.cal import Calendar, Component, Event, Todo
from icalendar.prop import vDuration, vRecur

from .config import default_config
from .localtime import get_timezone, local_to_utc, parse_local_datetime
from .objects import TYPE_EVENT, TYPE_GROUP, TYPE_TASK
from .rrule import SKIP_OMIT

logger = logging.getLogger(__name__)

# VTODO STATUS for each task progress value
TASK_STATUS = {
    "needs-action": "NEEDS-ACTION",
    "in-process": "IN-PROCESS",
    "completed": "COMPLETED",
    "failed": "CANCELLED",
    "cancelled": "CANCELLED",
}

_RULE_LISTS = [
    ("byMonthDay", "BYMONTHDAY"),
    ("byYearDay", "BYYEARDAY"),
    ("byWeekNo", "BYWEEKNO"),
    ("byHour", "BYHOUR"),
    ("byMinute", "BYMINUTE"),
    ("bySecond", "BYSECOND"),
    ("bySetPosition", "BYSETPOS"),
]


def _local_datetime(value, tzid):
    dt = parse_local_datetime(value)
    if tzid:
        return dt.replace(tzinfo=get_timezone(tzid))
    return dt


def _utc_datetime(value):
    if not value:
        return datetime.now(timezone.utc).replace(microsecond=0)
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(
        microsecond=0
    )


def rrule_from_rule(rule: dict, tzid: Optional[str] = None) -> vRecur:
    """Convert a JSCalendar RecurrenceRule into an iCalendar RECUR value.

    Args:
      rule: RecurrenceRule object
      tzid: Time zone of the series; UNTIL is converted to UTC when set
    Returns: vRecur instance
    """
    recur = vRecur()
    recur["FREQ"] = rule["frequency"].upper()
    if rule.get("interval", 1) != 1:
        recur["INTERVAL"] = rule["interval"]
    if rule.get("count") is not None:
        recur["COUNT"] = rule["count"]
    if rule.get("until"):
        until = parse_local_datetime(rule["until"])
        if tzid:
            until = local_to_utc(until, tzid)
        recur["UNTIL"] = until
    if rule.get("byDay"):
        recur["BYDAY"] = [
            "%s%s" % (nday.get("nthOfPeriod") or "", nday["day"].upper())
            for nday in rule["byDay"]
        ]
    if rule.get("byMonth"):
        recur["BYMONTH"] = [int(m) for m in rule["byMonth"]]
    for name, ical_name in _RULE_LISTS:
        if rule.get(name):
            recur[ical_name] = list(rule[name])
    if rule.get("firstDayOfWeek", "mo") != "mo":
        recur["WKST"] = rule["firstDayOfWeek"].upper()
    if rule.get("skip", SKIP_OMIT) != SKIP_OMIT:
        # SKIP is only valid in combination with RSCALE (RFC 7529)
        recur["RSCALE"] = (rule.get("rscale") or "gregorian").upper()
        recur["SKIP"] = rule["skip"].upper()
    return recur


def _add_common(comp: Component, obj: dict, include_jscalendar: bool) -> None:
    comp.add("uid", obj["uid"])
    comp.add("dtstamp", _utc_datetime(obj.get("updated")))
    if obj.get("sequence") is not None:
        comp.add("sequence", obj["sequence"])
    if obj.get("title"):
        comp.add("summary", obj["title"])
    if obj.get("description"):
        comp.add("description", obj["description"])
    tzid = obj.get("timeZone")
    if obj.get("recurrenceId"):
        comp.add(
            "recurrence-id",
            _local_datetime(
                obj["recurrenceId"], obj.get("recurrenceIdTimeZone") or tzid
            ),
        )
    for rule in obj.get("recurrenceRules") or []:
        comp.add("rrule", rrule_from_rule(rule, tzid))
    for rule in obj.get("excludedRecurrenceRules") or []:
        comp.add("exrule", rrule_from_rule(rule, tzid))
    if include_jscalendar:
        comp.add("x-jscalendar", json.dumps(obj, sort_keys=True))


def event_to_vevent(event: dict, include_jscalendar: bool = True) -> Event:
    vevent = Event()
    tzid = event.get("timeZone")
    _add_common(vevent, event, include_jscalendar)
    vevent.add("dtstart", _local_datetime(event["start"], tzid))
    if event.get("duration"):
        vevent.add("duration", vDuration.from_ical(event["duration"]))
    if event.get("status"):
        vevent.add("status", event["status"].upper())
    return vevent


def task_to_vtodo(task: dict, include_jscalendar: bool = True) -> Todo:
    vtodo = Todo()
    tzid = task.get("timeZone")
    _add_common(vtodo, task, include_jscalendar)
    if task.get("start"):
        vtodo.add("dtstart", _local_datetime(task["start"], tzid))
    if task.get("due"):
        vtodo.add("due", _local_datetime(task["due"], tzid))
    if task.get("percentComplete") is not None:
        vtodo.add("percent-complete", task["percentComplete"])
    if task.get("progress") in TASK_STATUS:
        vtodo.add("status", TASK_STATUS[task["progress"]])
    return vtodo


def _components(obj, include_jscalendar):
    kind = obj.get("@type")
    if kind == TYPE_EVENT:
        yield event_to_vevent(obj, include_jscalendar)
    elif kind == TYPE_TASK:
        yield task_to_vtodo(obj, include_jscalendar)
    elif kind == TYPE_GROUP:
        for entry in obj.get("entries") or []:
            yield from _components(entry, include_jscalendar)
    else:
        logger.warning("Skipping object of unknown type %r", kind)


def to_calendar(
    objects: Iterable[dict],
    prodid: Optional[str] = None,
    method: Optional[str] = None,
    include_jscalendar: bool = True,
) -> Calendar:
    """Build an iCalendar VCALENDAR from JSCalendar objects.

    Groups are flattened into their entries.

    Args:
      objects: Events, Tasks and Groups
      prodid: PRODID to use; defaults to the configured one
      method: iTIP METHOD; defaults to the first ``method`` member found
      include_jscalendar: Whether to embed the original objects as
        X-JSCALENDAR properties
    Returns: Calendar
    """
    objects = list(objects)
    cal = Calendar()
    cal.add("version", "2.0")
    cal.add("prodid", prodid or default_config.get_prodid())
    if method is None:
        for obj in objects:
            if obj.get("method"):
                method = obj["method"]
                break
    if method:
        cal.add("method", method.upper())
    for obj in objects:
        if obj.get("@type") == TYPE_GROUP and include_jscalendar:
            group = {k: v for k, v in obj.items() if k != "entries"}
            cal.add("x-jscalendar-group", json.dumps(group, sort_keys=True))
        for comp in _components(obj, include_jscalendar):
            cal.add_component(comp)
    return cal


def to_ical(
    objects: Iterable[dict],
    prodid: Optional[str] = None,
    method: Optional[str] = None,
    include_jscalendar: bool = True,
) -> bytes:
    """Serialize JSCalendar objects as iCalendar text."""
    return to_calendar(
        objects,
        prodid=prodid,
        method=method,
        include_jscalendar=include_jscalendar,
    ).to_ical()
