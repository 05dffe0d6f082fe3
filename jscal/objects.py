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

"""Construction of JSCalendar objects with RFC 8984 defaults."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from .localtime import WEEKDAYS
from .validate import (
    TYPE_EVENT,
    TYPE_GROUP,
    TYPE_NDAY,
    TYPE_RECURRENCE_RULE,
    TYPE_TASK,
    ValidationError,
    check_object,
    validate_recurrence_rule,
)

COMMON_DEFAULTS = {
    "sequence": 0,
    "title": "",
    "description": "",
    "descriptionContentType": "text/plain",
    "showWithoutTime": False,
    "excluded": False,
    "priority": 0,
    "freeBusyStatus": "busy",
    "privacy": "public",
    "useDefaultAlerts": False,
}

EVENT_DEFAULTS = {
    "duration": "PT0S",
    "status": "confirmed",
}


def create_uid() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _base_object(kind, fields):
    obj = dict(fields)
    given = obj.pop("@type", kind)
    if given != kind:
        raise ValidationError("@type", f"must be {kind}")
    obj["@type"] = kind
    obj.setdefault("uid", create_uid())
    obj.setdefault("updated", utc_now())
    return obj


def _apply_defaults(obj, defaults):
    for name, value in defaults.items():
        obj.setdefault(name, value)


def _task_progress(participants):
    """Derive the overall progress of a task from its participants."""
    progress = [p.get("progress") for p in (participants or {}).values()]
    if not progress:
        return "needs-action"
    if all(p == "completed" for p in progress):
        return "completed"
    if "failed" in progress:
        return "failed"
    if "in-process" in progress:
        return "in-process"
    return "needs-action"


def create_event(**fields) -> dict:
    """Create an Event.

    Args:
      fields: Event members, keyed by their JSCalendar names
    Raises:
      ValidationError: if the resulting event is not valid
    Returns: new Event object
    """
    event = _base_object(TYPE_EVENT, fields)
    _apply_defaults(event, COMMON_DEFAULTS)
    _apply_defaults(event, EVENT_DEFAULTS)
    check_object(event)
    return event


def create_task(**fields) -> dict:
    """Create a Task.

    Unless given, ``progress`` is derived from the participants.
    """
    task = _base_object(TYPE_TASK, fields)
    _apply_defaults(task, COMMON_DEFAULTS)
    if "progress" not in task:
        task["progress"] = _task_progress(task.get("participants"))
    check_object(task)
    return task


def create_group(entries, **fields) -> dict:
    group = _base_object(TYPE_GROUP, fields)
    group["entries"] = list(entries)
    group.setdefault("title", "")
    check_object(group)
    return group


def create_recurrence_rule(frequency: str, **fields) -> dict:
    """Create a RecurrenceRule.

    Raises:
      ValidationError: if the rule is not valid
    """
    rule = {"@type": TYPE_RECURRENCE_RULE, "frequency": frequency}
    rule.update(fields)
    for path, message in validate_recurrence_rule(rule):
        raise ValidationError(path, message)
    return rule


def create_nday(day: str, nth: Optional[int] = None) -> dict:
    if day not in WEEKDAYS:
        raise ValidationError("day", "must be a day of the week")
    nday = {"@type": TYPE_NDAY, "day": day}
    if nth is not None:
        if isinstance(nth, bool) or not isinstance(nth, int) or nth == 0:
            raise ValidationError("nthOfPeriod", "must be a non-zero integer")
        nday["nthOfPeriod"] = nth
    return nday


def occurrence_key(obj: dict) -> Optional[str]:
    """Return the LocalDateTime an object sorts by, if any.

    This is the recurrence id for occurrences, and otherwise the start of an
    event or the start (or due) of a task.
    """
    if obj.get("recurrenceId"):
        return obj["recurrenceId"]
    kind = obj.get("@type")
    if kind == TYPE_EVENT:
        return obj.get("start")
    if kind == TYPE_TASK:
        return obj.get("start") or obj.get("due")
    return None
