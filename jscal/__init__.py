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

"""JSCalendar (RFC 8984) data model toolkit."""

__version__ = (0, 1, 0)
version_string = ".".join(map(str, __version__))

from .localtime import InvalidLocalDateTime, UnknownTimeZone  # noqa: E402
from .objects import (  # noqa: E402
    create_event,
    create_group,
    create_nday,
    create_recurrence_rule,
    create_task,
    occurrence_key,
)
from .patch import PatchError, apply_patch  # noqa: E402
from .recurrence import Page, RecurrenceRange, expand, expand_paged  # noqa: E402
from .rrule import UnsupportedFeature  # noqa: E402
from .validate import ValidationError, check_object, validate_object  # noqa: E402

__all__ = [
    "InvalidLocalDateTime",
    "Page",
    "PatchError",
    "RecurrenceRange",
    "UnknownTimeZone",
    "UnsupportedFeature",
    "ValidationError",
    "apply_patch",
    "check_object",
    "create_event",
    "create_group",
    "create_nday",
    "create_recurrence_rule",
    "create_task",
    "expand",
    "expand_paged",
    "occurrence_key",
    "validate_object",
]
