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

"""Expansion configuration file.
"""

import configparser
from typing import Optional

SECTION = "expansion"

DEFAULT_TIMEZONE = "UTC"
DEFAULT_MAX_PERIODS = 100000
DEFAULT_PAGE_LIMIT = 50
DEFAULT_PRODID = "-//jscal//jscal//EN"


class ExpansionConfig:
    """Settings that influence recurrence expansion and export.

    Args:
      cp: ConfigParser to read settings from; empty if not specified
    """

    def __init__(self, cp: Optional[configparser.ConfigParser] = None) -> None:
        if cp is None:
            cp = configparser.ConfigParser()
        self._configparser = cp

    @classmethod
    def from_file(cls, f):
        cp = configparser.ConfigParser()
        cp.read_file(f)
        return cls(cp)

    @classmethod
    def from_path(cls, path):
        with open(path) as f:
            return cls.from_file(f)

    def _get(self, name, fallback):
        if not self._configparser.has_section(SECTION):
            return self._configparser["DEFAULT"].get(name, fallback)
        return self._configparser[SECTION].get(name, fallback)

    def _set(self, name, value):
        if not self._configparser.has_section(SECTION):
            self._configparser.add_section(SECTION)
        if value is None:
            self._configparser.remove_option(SECTION, name)
        else:
            self._configparser[SECTION][name] = str(value)

    def _get_positive_int(self, name, fallback):
        value = self._get(name, None)
        if value is None:
            return fallback
        try:
            ret = int(value)
        except ValueError as exc:
            raise ValueError(f"{name}: invalid integer {value!r}") from exc
        if ret < 1:
            raise ValueError(f"{name}: must be positive, got {ret}")
        return ret

    def get_default_timezone(self) -> str:
        """Zone used to interpret naive range bounds and floating times."""
        return self._get("default-timezone", DEFAULT_TIMEZONE)

    def set_default_timezone(self, tzid):
        self._set("default-timezone", tzid)

    def get_max_periods(self) -> int:
        """Number of periods a single rule may step through before giving up."""
        return self._get_positive_int("max-periods", DEFAULT_MAX_PERIODS)

    def set_max_periods(self, max_periods):
        self._set("max-periods", max_periods)

    def get_page_limit(self) -> int:
        return self._get_positive_int("page-limit", DEFAULT_PAGE_LIMIT)

    def set_page_limit(self, limit):
        self._set("page-limit", limit)

    def get_prodid(self) -> str:
        return self._get("prodid", DEFAULT_PRODID)

    def set_prodid(self, prodid):
        self._set("prodid", prodid)

    def write(self, f):
        self._configparser.write(f)


default_config = ExpansionConfig()
