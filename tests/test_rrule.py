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

"""Tests for jscal.rrule."""

import itertools
import unittest
from datetime import datetime, timezone

from dateutil import rrule as du_rrule

from jscal.localtime import InvalidLocalDateTime, format_local_datetime
from jscal.rrule import (
    DateCandidate,
    ExpansionWindow,
    InvalidRecurrenceRule,
    RuleExpansion,
    UnsupportedFeature,
    apply_set_position,
    expand_rule,
    filter_candidates,
    materialize,
    normalize_rule,
    period_candidates,
)

ANCHOR = datetime(2026, 2, 4, 9, 30, 15)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def wide_window(tzid=None):
    return ExpansionWindow(utc(2000, 1, 1), utc(2100, 1, 1), tzid=tzid)


class NormalizeRuleTests(unittest.TestCase):
    def test_daily_time_defaults(self):
        rule = normalize_rule({"frequency": "daily"}, ANCHOR)
        self.assertEqual((9,), rule.by_hour)
        self.assertEqual((30,), rule.by_minute)
        self.assertEqual((15,), rule.by_second)
        self.assertEqual(1, rule.interval)
        self.assertEqual("omit", rule.skip)
        self.assertEqual("mo", rule.first_day_of_week)
        self.assertIsNone(rule.count)
        self.assertIsNone(rule.until)

    def test_hourly_time_defaults(self):
        rule = normalize_rule({"frequency": "hourly"}, ANCHOR)
        self.assertEqual((), rule.by_hour)
        self.assertEqual((30,), rule.by_minute)
        self.assertEqual((15,), rule.by_second)

    def test_minutely_time_defaults(self):
        rule = normalize_rule({"frequency": "minutely"}, ANCHOR)
        self.assertEqual((), rule.by_hour)
        self.assertEqual((), rule.by_minute)
        self.assertEqual((15,), rule.by_second)

    def test_secondly_time_defaults(self):
        rule = normalize_rule({"frequency": "secondly"}, ANCHOR)
        self.assertEqual((), rule.by_hour)
        self.assertEqual((), rule.by_minute)
        self.assertEqual((), rule.by_second)

    def test_explicit_time_kept(self):
        rule = normalize_rule({"frequency": "daily", "byHour": [7, 8]}, ANCHOR)
        self.assertEqual((7, 8), rule.by_hour)

    def test_weekly_by_day(self):
        rule = normalize_rule({"frequency": "weekly"}, ANCHOR)
        self.assertEqual((("we", None),), rule.by_day)

    def test_monthly_by_month_day(self):
        rule = normalize_rule({"frequency": "monthly"}, ANCHOR)
        self.assertEqual((4,), rule.by_month_day)
        self.assertEqual((), rule.by_day)

    def test_monthly_with_by_day(self):
        rule = normalize_rule(
            {"frequency": "monthly", "byDay": [{"day": "mo", "nthOfPeriod": 1}]},
            ANCHOR,
        )
        self.assertEqual((), rule.by_month_day)
        self.assertEqual((("mo", 1),), rule.by_day)

    def test_yearly_plain(self):
        rule = normalize_rule({"frequency": "yearly"}, ANCHOR)
        self.assertEqual((2,), rule.by_month)
        self.assertEqual((4,), rule.by_month_day)
        self.assertEqual((), rule.by_day)

    def test_yearly_by_day(self):
        rule = normalize_rule(
            {"frequency": "yearly", "byDay": [{"day": "su", "nthOfPeriod": -1}]},
            ANCHOR,
        )
        self.assertEqual((), rule.by_month)
        self.assertEqual((), rule.by_month_day)

    def test_yearly_by_month_day(self):
        rule = normalize_rule({"frequency": "yearly", "byMonthDay": [1]}, ANCHOR)
        self.assertEqual((2,), rule.by_month)
        self.assertEqual((1,), rule.by_month_day)

    def test_yearly_by_month(self):
        rule = normalize_rule({"frequency": "yearly", "byMonth": ["6"]}, ANCHOR)
        self.assertEqual((6,), rule.by_month)
        self.assertEqual((4,), rule.by_month_day)

    def test_yearly_by_week_no(self):
        rule = normalize_rule({"frequency": "yearly", "byWeekNo": [20]}, ANCHOR)
        self.assertEqual((), rule.by_month)
        self.assertEqual((), rule.by_month_day)
        self.assertEqual((("we", None),), rule.by_day)

    def test_yearly_by_year_day(self):
        rule = normalize_rule({"frequency": "yearly", "byYearDay": [100]}, ANCHOR)
        self.assertEqual((), rule.by_month)
        self.assertEqual((), rule.by_month_day)
        self.assertEqual((), rule.by_day)
        self.assertEqual((100,), rule.by_year_day)

    def test_rscale(self):
        normalize_rule({"frequency": "daily", "rscale": "GREGORIAN"}, ANCHOR)
        with self.assertRaises(UnsupportedFeature) as cm:
            normalize_rule({"frequency": "daily", "rscale": "hebrew"}, ANCHOR)
        self.assertEqual("rscale", cm.exception.feature)
        self.assertIsInstance(cm.exception, NotImplementedError)
        self.assertNotIsInstance(cm.exception, ValueError)

    def test_invalid(self):
        for rule, field in [
            ({"frequency": "fortnightly"}, "frequency"),
            ({"frequency": "daily", "interval": 0}, "interval"),
            ({"frequency": "daily", "skip": "sideways"}, "skip"),
            ({"frequency": "daily", "firstDayOfWeek": "xx"}, "firstDayOfWeek"),
            ({"frequency": "daily", "byHour": [24]}, "byHour"),
            ({"frequency": "daily", "byMonth": ["13"]}, "byMonth"),
            ({"frequency": "daily", "byDay": [{"day": "xx"}]}, "byDay"),
        ]:
            with self.assertRaises(InvalidRecurrenceRule) as cm:
                normalize_rule(rule, ANCHOR)
            self.assertEqual(field, cm.exception.field)

    def test_until(self):
        rule = normalize_rule(
            {"frequency": "daily", "until": "2026-03-01T00:00:00"}, ANCHOR
        )
        self.assertEqual(datetime(2026, 3, 1), rule.until)
        self.assertRaises(
            InvalidLocalDateTime,
            normalize_rule,
            {"frequency": "daily", "until": "2026-03-01"},
            ANCHOR,
        )

    def test_fixed_point(self):
        for rule in [
            {"frequency": "yearly"},
            {"frequency": "yearly", "byWeekNo": [1, -1]},
            {"frequency": "yearly", "byDay": [{"day": "su", "nthOfPeriod": -1}]},
            {"frequency": "monthly", "byMonthDay": [31], "skip": "forward"},
            {"frequency": "weekly", "interval": 2, "count": 5},
            {"frequency": "daily", "until": "2026-03-01T00:00:00"},
            {"frequency": "hourly", "byHour": [9, 10]},
            {"frequency": "secondly", "bySetPosition": [1]},
        ]:
            once = normalize_rule(rule, ANCHOR)
            twice = normalize_rule(once.as_dict(), ANCHOR)
            self.assertEqual(once, twice)
            self.assertEqual(once.as_dict(), twice.as_dict())


class PeriodCandidatesTests(unittest.TestCase):
    def test_monthly(self):
        rule = normalize_rule({"frequency": "monthly"}, ANCHOR)
        candidates = period_candidates(datetime(2026, 2, 1), rule)
        self.assertEqual(28, len(candidates))
        self.assertTrue(all(c.valid for c in candidates))

    def test_monthly_skip_pads_month(self):
        rule = normalize_rule(
            {"frequency": "monthly", "byMonthDay": [31], "skip": "forward"}, ANCHOR
        )
        candidates = period_candidates(datetime(2026, 2, 1), rule)
        self.assertEqual(31, len(candidates))
        self.assertEqual(
            [29, 30, 31], [c.day for c in candidates if not c.valid]
        )

    def test_yearly(self):
        rule = normalize_rule({"frequency": "yearly"}, ANCHOR)
        self.assertEqual(366, len(period_candidates(datetime(2024, 1, 1), rule)))

    def test_weekly(self):
        rule = normalize_rule({"frequency": "weekly", "firstDayOfWeek": "su"}, ANCHOR)
        candidates = period_candidates(datetime(2026, 2, 1, 9, 30, 15), rule)
        self.assertEqual(DateCandidate(2026, 2, 1, True), candidates[0])
        self.assertEqual(DateCandidate(2026, 2, 7, True), candidates[-1])
        self.assertEqual(7, len(candidates))

    def test_daily(self):
        rule = normalize_rule({"frequency": "hourly"}, ANCHOR)
        self.assertEqual(
            [DateCandidate(2026, 2, 4, True)],
            period_candidates(datetime(2026, 2, 4, 13, 30, 15), rule),
        )


class FilterCandidatesTests(unittest.TestCase):
    def _filter(self, rule, period):
        rule = normalize_rule(rule, ANCHOR)
        return [
            (c.year, c.month, c.day)
            for c in filter_candidates(period_candidates(period, rule), rule, period)
        ]

    def test_skip_forward(self):
        self.assertEqual(
            [(2026, 3, 1)],
            self._filter(
                {"frequency": "monthly", "byMonthDay": [31], "skip": "forward"},
                datetime(2026, 2, 1),
            ),
        )

    def test_skip_backward(self):
        self.assertEqual(
            [(2026, 2, 28)],
            self._filter(
                {"frequency": "monthly", "byMonthDay": [31], "skip": "backward"},
                datetime(2026, 2, 1),
            ),
        )

    def test_skip_backward_dedups(self):
        self.assertEqual(
            [(2026, 2, 28)],
            self._filter(
                {
                    "frequency": "monthly",
                    "byMonthDay": [28, 30, 31],
                    "skip": "backward",
                },
                datetime(2026, 2, 1),
            ),
        )

    def test_skip_omit(self):
        self.assertEqual(
            [],
            self._filter(
                {"frequency": "monthly", "byMonthDay": [31]}, datetime(2026, 2, 1)
            ),
        )

    def test_negative_month_day(self):
        self.assertEqual(
            [(2026, 2, 28)],
            self._filter(
                {"frequency": "monthly", "byMonthDay": [-1]}, datetime(2026, 2, 1)
            ),
        )

    def test_remediation_before_by_day(self):
        # 2026-03-01 is a Sunday.
        rule = {
            "frequency": "monthly",
            "byMonthDay": [31],
            "skip": "forward",
            "byDay": [{"day": "su"}],
        }
        self.assertEqual([(2026, 3, 1)], self._filter(rule, datetime(2026, 2, 1)))
        rule["byDay"] = [{"day": "mo"}]
        self.assertEqual([], self._filter(rule, datetime(2026, 2, 1)))

    def test_nth_of_period(self):
        self.assertEqual(
            [(2026, 2, 9)],
            self._filter(
                {"frequency": "monthly", "byDay": [{"day": "mo", "nthOfPeriod": 2}]},
                datetime(2026, 2, 1),
            ),
        )
        self.assertEqual(
            [(2026, 2, 23)],
            self._filter(
                {"frequency": "monthly", "byDay": [{"day": "mo", "nthOfPeriod": -1}]},
                datetime(2026, 2, 1),
            ),
        )

    def test_nth_of_period_out_of_range(self):
        self.assertEqual(
            [],
            self._filter(
                {"frequency": "monthly", "byDay": [{"day": "mo", "nthOfPeriod": 5}]},
                datetime(2026, 2, 1),
            ),
        )

    def test_nth_ignored_for_weekly(self):
        self.assertEqual(
            [],
            self._filter(
                {"frequency": "weekly", "byDay": [{"day": "mo", "nthOfPeriod": 1}]},
                datetime(2026, 2, 2),
            ),
        )

    def test_year_day(self):
        self.assertEqual(
            [(2024, 12, 31)],
            self._filter(
                {"frequency": "yearly", "byYearDay": [-1]}, datetime(2024, 1, 1)
            ),
        )

    def test_week_no(self):
        self.assertEqual(
            [(2026, 1, 1)],
            self._filter(
                {"frequency": "yearly", "byWeekNo": [1], "byDay": [{"day": "th"}]},
                datetime(2026, 1, 1),
            ),
        )
        self.assertEqual(
            [(2026, 12, 31)],
            self._filter(
                {"frequency": "yearly", "byWeekNo": [-1], "byDay": [{"day": "th"}]},
                datetime(2026, 1, 1),
            ),
        )

    def test_by_month(self):
        self.assertEqual(
            [(2026, 6, 4)],
            self._filter(
                {"frequency": "yearly", "byMonth": ["6"]}, datetime(2026, 1, 1)
            ),
        )


class MaterializeTests(unittest.TestCase):
    def test_cross_product(self):
        rule = normalize_rule(
            {"frequency": "daily", "byHour": [17, 9], "byMinute": [0]}, ANCHOR
        )
        self.assertEqual(
            ["2026-02-04T09:00:15", "2026-02-04T17:00:15"],
            materialize([DateCandidate(2026, 2, 4, True)], rule, ANCHOR),
        )

    def test_hourly_limit(self):
        rule = normalize_rule({"frequency": "hourly", "byHour": [9]}, ANCHOR)
        dates = [DateCandidate(2026, 2, 4, True)]
        self.assertEqual([], materialize(dates, rule, datetime(2026, 2, 4, 10, 30, 15)))
        self.assertEqual(
            ["2026-02-04T09:30:15"],
            materialize(dates, rule, datetime(2026, 2, 4, 9, 30, 15)),
        )

    def test_hourly_expands_minutes(self):
        rule = normalize_rule(
            {"frequency": "hourly", "byMinute": [45, 0], "bySecond": [0]}, ANCHOR
        )
        self.assertEqual(
            ["2026-02-04T10:00:00", "2026-02-04T10:45:00"],
            materialize(
                [DateCandidate(2026, 2, 4, True)],
                rule,
                datetime(2026, 2, 4, 10, 30, 15),
            ),
        )

    def test_set_position(self):
        instants = ["2026-01-03", "2026-01-01", "2026-01-02"]
        self.assertEqual(
            ["2026-01-01", "2026-01-03"], apply_set_position(instants, [1, -1])
        )
        self.assertEqual([], apply_set_position(instants, [4, -4]))
        self.assertEqual(["2026-01-02"], apply_set_position(instants, [2, -2]))


class RuleExpansionTests(unittest.TestCase):
    def test_count_includes_anchor(self):
        self.assertEqual(
            ["2026-02-02T09:00:00", "2026-02-09T09:00:00"],
            expand_rule(
                "2026-02-02T09:00:00",
                {"frequency": "weekly", "count": 2},
                wide_window(),
            ),
        )

    def test_anchor_not_matching_rule(self):
        self.assertEqual(
            ["2026-02-02T09:00:00", "2026-02-04T09:00:00"],
            expand_rule(
                "2026-02-02T09:00:00",
                {"frequency": "weekly", "byDay": [{"day": "we"}], "count": 2},
                wide_window(),
            ),
        )

    def test_count_zero(self):
        self.assertEqual(
            [],
            expand_rule(
                "2026-02-02T09:00:00", {"frequency": "daily", "count": 0}, wide_window()
            ),
        )

    def test_weekly_by_day(self):
        window = ExpansionWindow(utc(2026, 2, 1), utc(2026, 2, 28, 23, 59, 59))
        self.assertEqual(
            [
                "2026-02-04T09:00:00",
                "2026-02-11T09:00:00",
                "2026-02-18T09:00:00",
                "2026-02-25T09:00:00",
            ],
            expand_rule(
                "2026-02-04T09:00:00",
                {"frequency": "weekly", "byDay": [{"day": "we"}]},
                window,
            ),
        )

    def test_last_day_of_month(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(2026, 4, 30, 23, 59, 59))
        self.assertEqual(
            [
                "2026-01-31T09:00:00",
                "2026-02-28T09:00:00",
                "2026-03-31T09:00:00",
                "2026-04-30T09:00:00",
            ],
            expand_rule(
                "2026-01-31T09:00:00",
                {"frequency": "monthly", "byMonthDay": [-1]},
                window,
            ),
        )

    def test_skip(self):
        window = ExpansionWindow(utc(2026, 2, 1), utc(2026, 3, 31, 23, 59, 59))
        rule = {"frequency": "monthly", "byMonthDay": [31], "skip": "forward"}
        self.assertEqual(
            ["2026-03-01T09:00:00", "2026-03-31T09:00:00"],
            expand_rule("2026-01-31T09:00:00", rule, window),
        )
        rule["skip"] = "backward"
        self.assertEqual(
            ["2026-02-28T09:00:00", "2026-03-31T09:00:00"],
            expand_rule("2026-01-31T09:00:00", rule, window),
        )

    def test_hourly_count(self):
        self.assertEqual(
            ["2026-02-01T10:15:30", "2026-02-01T11:15:30", "2026-02-01T12:15:30"],
            expand_rule(
                "2026-02-01T10:15:30",
                {"frequency": "hourly", "count": 3},
                wide_window(),
            ),
        )

    def test_year_day(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(2026, 12, 31))
        self.assertEqual(
            ["2026-02-01T09:00:00"],
            expand_rule(
                "2026-02-01T09:00:00",
                {"frequency": "yearly", "byYearDay": [32]},
                window,
            ),
        )

    def test_week_no(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(2026, 12, 31, 23, 59, 59))
        self.assertEqual(
            ["2026-01-01T09:00:00"],
            expand_rule(
                "2026-01-01T09:00:00",
                {"frequency": "yearly", "byWeekNo": [1], "byDay": [{"day": "th"}]},
                window,
            ),
        )

    def test_nth_monthly(self):
        window = ExpansionWindow(utc(2026, 2, 1), utc(2026, 4, 30))
        self.assertEqual(
            ["2026-02-09T09:00:00", "2026-03-09T09:00:00", "2026-04-13T09:00:00"],
            expand_rule(
                "2026-02-09T09:00:00",
                {"frequency": "monthly", "byDay": [{"day": "mo", "nthOfPeriod": 2}]},
                window,
            ),
        )

    def test_last_sunday_of_year(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(2027, 12, 31))
        self.assertEqual(
            ["2026-12-27T09:00:00", "2027-12-26T09:00:00"],
            expand_rule(
                "2026-12-27T09:00:00",
                {"frequency": "yearly", "byDay": [{"day": "su", "nthOfPeriod": -1}]},
                window,
            ),
        )

    def test_set_position(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(2026, 3, 31, 23, 59, 59))
        self.assertEqual(
            ["2026-01-07T10:00:00", "2026-02-04T10:00:00", "2026-03-04T10:00:00"],
            expand_rule(
                "2026-01-07T10:00:00",
                {
                    "frequency": "monthly",
                    "byDay": [{"day": "we"}],
                    "bySetPosition": [1],
                },
                window,
            ),
        )

    def test_negative_set_position(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(2026, 3, 31, 23, 59, 59))
        self.assertEqual(
            [
                "2026-01-07T10:00:00",
                "2026-01-28T10:00:00",
                "2026-02-25T10:00:00",
                "2026-03-25T10:00:00",
            ],
            expand_rule(
                "2026-01-07T10:00:00",
                {
                    "frequency": "monthly",
                    "byDay": [{"day": "we"}],
                    "bySetPosition": [-1],
                },
                window,
            ),
        )

    def test_until_inclusive(self):
        self.assertEqual(
            ["2026-02-01T09:00:00", "2026-02-02T09:00:00", "2026-02-03T09:00:00"],
            expand_rule(
                "2026-02-01T09:00:00",
                {"frequency": "daily", "until": "2026-02-03T09:00:00"},
                wide_window(),
            ),
        )

    def test_until_before_anchor(self):
        self.assertEqual(
            [],
            expand_rule(
                "2026-02-01T09:00:00",
                {"frequency": "daily", "until": "2026-01-01T00:00:00"},
                wide_window(),
            ),
        )

    def test_window_bounds_infinite_rule(self):
        window = ExpansionWindow(utc(2026, 2, 10), utc(2026, 2, 12, 12))
        self.assertEqual(
            ["2026-02-10T09:00:00", "2026-02-11T09:00:00", "2026-02-12T09:00:00"],
            expand_rule("2026-02-01T09:00:00", {"frequency": "daily"}, window),
        )

    def test_count_spent_before_window(self):
        window = ExpansionWindow(utc(2026, 3, 1), utc(2026, 3, 31))
        self.assertEqual(
            [],
            expand_rule(
                "2026-02-01T09:00:00", {"frequency": "daily", "count": 5}, window
            ),
        )

    def test_time_zone_window(self):
        window = ExpansionWindow(
            utc(2026, 2, 1, 1), utc(2026, 2, 1, 2), tzid="Asia/Tokyo"
        )
        self.assertEqual(
            ["2026-02-01T10:00:00"],
            expand_rule("2026-02-01T10:00:00", {"frequency": "daily"}, window),
        )

    def test_floating_window_uses_default_zone(self):
        window = ExpansionWindow(
            datetime(2026, 2, 1, 10), datetime(2026, 2, 1, 11),
            default_timezone="Asia/Tokyo",
        )
        self.assertEqual(
            ["2026-02-01T10:00:00"],
            expand_rule("2026-02-01T10:00:00", {"frequency": "daily"}, window),
        )

    def test_lazy(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(9999, 12, 31))
        expansion = RuleExpansion(
            datetime(2026, 2, 1, 9), {"frequency": "daily"}, window
        )
        self.assertEqual(
            ["2026-02-01T09:00:00", "2026-02-02T09:00:00", "2026-02-03T09:00:00"],
            list(itertools.islice(expansion, 3)),
        )

    def test_last_representable_year(self):
        window = ExpansionWindow(utc(9990, 1, 1), utc(9999, 12, 31))
        self.assertEqual(
            ["9998-06-01T09:00:00", "9999-06-01T09:00:00"],
            expand_rule("9998-06-01T09:00:00", {"frequency": "yearly"}, window),
        )

    def test_max_periods(self):
        expansion = RuleExpansion(
            datetime(2026, 2, 1, 9), {"frequency": "daily"}, wide_window(),
            max_periods=5,
        )
        with self.assertLogs("jscal.rrule", level="WARNING"):
            keys = list(expansion)
        self.assertEqual(5, len(keys))

    def test_without_anchor(self):
        expansion = RuleExpansion(
            datetime(2026, 2, 9, 9),
            {"frequency": "monthly", "byMonthDay": [1], "count": 2},
            wide_window(),
            include_anchor=False,
        )
        self.assertEqual(
            ["2026-03-01T09:00:00", "2026-04-01T09:00:00"], list(expansion)
        )

    def test_without_anchor_matching_rule(self):
        expansion = RuleExpansion(
            datetime(2026, 2, 2, 9),
            {"frequency": "weekly", "count": 2},
            wide_window(),
            include_anchor=False,
        )
        self.assertEqual(
            ["2026-02-02T09:00:00", "2026-02-09T09:00:00"], list(expansion)
        )

    def test_old_anchor_hourly(self):
        window = ExpansionWindow(utc(2026, 1, 1), utc(2026, 1, 1, 3))
        self.assertEqual(
            [
                "2026-01-01T00:00:00",
                "2026-01-01T01:00:00",
                "2026-01-01T02:00:00",
                "2026-01-01T03:00:00",
            ],
            expand_rule("2014-01-01T00:00:00", {"frequency": "hourly"}, window),
        )

    def test_old_anchor_keeps_interval(self):
        anchor = datetime(1990, 3, 7, 9, 30)
        window = ExpansionWindow(utc(2026, 2, 1), utc(2026, 3, 1))
        for frequency, du_freq in [
            ("daily", du_rrule.DAILY),
            ("hourly", du_rrule.HOURLY),
        ]:
            expected = [
                format_local_datetime(dt)
                for dt in du_rrule.rrule(du_freq, dtstart=anchor, interval=7).between(
                    datetime(2026, 2, 1), datetime(2026, 3, 1), inc=True
                )
            ]
            self.assertEqual(
                expected,
                expand_rule(
                    anchor, {"frequency": frequency, "interval": 7}, window
                ),
                frequency,
            )

    def test_old_anchor_weekly_interval(self):
        window = ExpansionWindow(utc(2026, 2, 1), utc(2026, 3, 1))
        self.assertEqual(
            ["2026-02-12T09:00:00", "2026-02-26T09:00:00"],
            expand_rule(
                "1970-01-01T09:00:00", {"frequency": "weekly", "interval": 2}, window
            ),
        )

    def test_unsupported_rscale(self):
        self.assertRaises(
            UnsupportedFeature,
            expand_rule,
            "2026-02-01T09:00:00",
            {"frequency": "daily", "rscale": "hebrew"},
            wide_window(),
        )


class DateutilComparisonTests(unittest.TestCase):
    """Compare expansions with those of dateutil.rrule."""

    def assertSameAsDateutil(self, anchor, rule, **kwargs):
        expected = [
            format_local_datetime(dt)
            for dt in du_rrule.rrule(dtstart=anchor, count=rule["count"], **kwargs)
        ]
        window = ExpansionWindow(utc(2000, 1, 1), utc(2060, 1, 1))
        self.assertEqual(expected, expand_rule(anchor, rule, window))

    def test_weekly_interval(self):
        self.assertSameAsDateutil(
            datetime(2026, 2, 2, 9),
            {
                "frequency": "weekly",
                "interval": 2,
                "count": 10,
                "byDay": [{"day": "mo"}, {"day": "we"}, {"day": "fr"}],
            },
            freq=du_rrule.WEEKLY,
            interval=2,
            byweekday=(du_rrule.MO, du_rrule.WE, du_rrule.FR),
        )

    def test_monthly_days(self):
        self.assertSameAsDateutil(
            datetime(2026, 1, 1, 8),
            {"frequency": "monthly", "count": 8, "byMonthDay": [1, 15]},
            freq=du_rrule.MONTHLY,
            bymonthday=(1, 15),
        )

    def test_last_sunday_of_march(self):
        self.assertSameAsDateutil(
            datetime(2026, 3, 29, 2),
            {
                "frequency": "yearly",
                "count": 5,
                "byMonth": ["3"],
                "byDay": [{"day": "su"}],
                "bySetPosition": [-1],
            },
            freq=du_rrule.YEARLY,
            bymonth=3,
            byweekday=du_rrule.SU,
            bysetpos=-1,
        )

    def test_daily_hours(self):
        self.assertSameAsDateutil(
            datetime(2026, 2, 1, 8),
            {"frequency": "daily", "interval": 3, "count": 9, "byHour": [8, 20]},
            freq=du_rrule.DAILY,
            interval=3,
            byhour=(8, 20),
            byminute=0,
            bysecond=0,
        )

    def test_week_no(self):
        self.assertSameAsDateutil(
            datetime(2026, 5, 11, 9),
            {"frequency": "yearly", "count": 4, "byWeekNo": [20]},
            freq=du_rrule.YEARLY,
            byweekno=20,
            byweekday=du_rrule.MO,
        )

    def test_hourly_interval(self):
        self.assertSameAsDateutil(
            datetime(2026, 2, 1, 22, 10),
            {"frequency": "hourly", "interval": 5, "count": 10},
            freq=du_rrule.HOURLY,
            interval=5,
        )

    def test_leap_day(self):
        self.assertSameAsDateutil(
            datetime(2024, 2, 29, 12),
            {"frequency": "yearly", "count": 3},
            freq=du_rrule.YEARLY,
        )


if __name__ == "__main__":
    unittest.main()
