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

"""jscal command-line handling."""

import argparse
import contextlib
import json
import logging
import sys

from dateutil.parser import isoparse

from . import version_string
from .config import ExpansionConfig, default_config
from .icalendar import to_ical
from .recurrence import RecurrenceRange, expand, expand_paged

logger = logging.getLogger(__name__)


def load_objects(f):
    data = json.load(f)
    if isinstance(data, dict):
        return [data]
    return data


def _open_input(path):
    if path == "-":
        return contextlib.nullcontext(sys.stdin)
    return open(path)


def add_expand_parser(parser):
    parser.add_argument(
        "--from",
        dest="start",
        type=isoparse,
        required=True,
        help="Start of the range (ISO 8601).",
    )
    parser.add_argument(
        "--to",
        dest="end",
        type=isoparse,
        required=True,
        help="End of the range (ISO 8601).",
    )
    parser.add_argument(
        "--limit", type=int, default=None, help="Return a single page of results."
    )
    parser.add_argument("--cursor", type=str, default=None, help="Page cursor.")
    parser.add_argument("input", nargs="?", default="-", help="JSCalendar JSON file.")


def add_ical_parser(parser):
    parser.add_argument("--prodid", type=str, default=None, help="PRODID to use.")
    parser.add_argument("--method", type=str, default=None, help="iTIP method.")
    parser.add_argument(
        "--no-jscalendar",
        dest="include_jscalendar",
        action="store_false",
        help="Do not embed X-JSCALENDAR properties.",
    )
    parser.add_argument("input", nargs="?", default="-", help="JSCalendar JSON file.")


def run_expand(args, config, out):
    with _open_input(args.input) as f:
        objects = load_objects(f)
    time_range = RecurrenceRange(args.start, args.end)
    if args.limit is not None or args.cursor is not None:
        page = expand_paged(
            objects, time_range, limit=args.limit, cursor=args.cursor, config=config
        )
        json.dump({"items": page.items, "nextCursor": page.next_cursor}, out)
        out.write("\n")
    else:
        for occurrence in expand(objects, time_range, config):
            json.dump(occurrence, out)
            out.write("\n")
    return 0


def run_ical(args, config, out):
    with _open_input(args.input) as f:
        objects = load_objects(f)
    data = to_ical(
        objects,
        prodid=args.prodid or config.get_prodid(),
        method=args.method,
        include_jscalendar=args.include_jscalendar,
    )
    out.write(data.decode("utf-8"))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="jscal")
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s " + version_string,
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path to configuration file."
    )
    parser.add_argument(
        "--debug", action="store_true", help="Print debug messages."
    )
    subparsers = parser.add_subparsers(help="Subcommands", dest="subcommand")
    add_expand_parser(
        subparsers.add_parser("expand", help="Expand recurring objects")
    )
    add_ical_parser(subparsers.add_parser("ical", help="Export as iCalendar"))

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO, stream=sys.stderr
    )

    if args.config:
        config = ExpansionConfig.from_path(args.config)
    else:
        config = default_config

    if args.subcommand == "expand":
        run = run_expand
    elif args.subcommand == "ical":
        run = run_ical
    else:
        parser.print_help()
        return 1

    try:
        return run(args, config, sys.stdout)
    except (ValueError, NotImplementedError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
