import unittest
from datetime import date, datetime, timedelta

from app.domain.scheduling.schemas import Weekday
from app.domain.scheduling.time_calculator import (
    as_utc,
    end_of_local_day,
    is_past_time_slot,
    iso_week_number,
    local_date_key,
    local_time_string,
    local_weekday_name,
    start_of_local_day,
    week_date_range,
    week_dates_for,
)
from tests.fixtures import MONDAY, local, utc


class TestLocalCalendar(unittest.TestCase):
    def test_late_utc_evening_is_next_local_day(self):
        # 23:30 UTC on Monday is 00:30 Tuesday in Stockholm (UTC+1)
        self.assertEqual(local_date_key(utc(2030, 3, 4, 23, 30)), "2030-03-05")
        self.assertEqual(local_weekday_name(utc(2030, 3, 4, 23, 30)), Weekday.TUESDAY)

    def test_naive_datetime_is_treated_as_utc(self):
        self.assertEqual(local_date_key(datetime(2030, 3, 4, 23, 30)), "2030-03-05")

    def test_plain_date_keeps_its_calendar_day(self):
        self.assertEqual(local_date_key(MONDAY), "2030-03-04")
        self.assertEqual(local_weekday_name(MONDAY), Weekday.MONDAY)

    def test_local_time_string_follows_dst(self):
        self.assertEqual(local_time_string(utc(2030, 3, 4, 9, 0)), "10:00")
        self.assertEqual(local_time_string(utc(2030, 6, 3, 8, 0)), "10:00")

    def test_day_bounds_on_spring_forward_day(self):
        # 2030-03-31 only has 23 hours in Stockholm
        day = date(2030, 3, 31)
        length = as_utc(end_of_local_day(day)) - as_utc(start_of_local_day(day))
        self.assertEqual(length, timedelta(hours=23) - timedelta(microseconds=1))

    def test_instants_across_dst_switch_share_local_day(self):
        # Clocks jump at 01:00 UTC on both switch days in 2030
        for before, after in (
            (utc(2030, 3, 31, 0, 30), utc(2030, 3, 31, 1, 30)),
            (utc(2030, 10, 27, 0, 30), utc(2030, 10, 27, 1, 30)),
        ):
            with self.subTest(before=before):
                self.assertEqual(local_date_key(before), local_date_key(after))
                self.assertEqual(local_date_key(before), before.date().isoformat())
                self.assertEqual(local_weekday_name(before), Weekday.SUNDAY)
                self.assertEqual(local_weekday_name(after), Weekday.SUNDAY)

    def test_start_of_local_day_is_local_midnight(self):
        start = as_utc(start_of_local_day(utc(2030, 3, 4, 15, 0)))
        self.assertEqual(start, utc(2030, 3, 3, 23, 0))


class TestIsoWeeks(unittest.TestCase):
    def test_week_one_can_start_in_previous_year(self):
        week = week_date_range(2030, 1)
        self.assertEqual(week.start_date.date(), date(2029, 12, 31))
        self.assertEqual(week.end_date.date(), date(2030, 1, 6))
        self.assertEqual(iso_week_number(date(2029, 12, 31)), 1)

    def test_range_round_trips_through_week_number(self):
        for week in (1, 10, 13, 27, 52):
            week_range = week_date_range(2030, week)
            self.assertEqual(iso_week_number(week_range.start_date), week)
            self.assertEqual(iso_week_number(week_range.end_date), week)

    def test_every_week_of_twenty_years(self):
        for year in range(2020, 2040):
            for week in range(1, 53):
                with self.subTest(year=year, week=week):
                    week_range = week_date_range(year, week)
                    self.assertEqual(iso_week_number(week_range.start_date), week)
                    self.assertEqual(
                        (week_range.end_date.date() - week_range.start_date.date()).days, 6
                    )

    def test_week_range_spans_monday_to_sunday_end(self):
        week = week_date_range(2030, 10)
        self.assertEqual(week.start_date, local(MONDAY, 0))
        self.assertEqual(week.end_date.date(), date(2030, 3, 10))
        self.assertEqual((week.end_date.hour, week.end_date.minute, week.end_date.second), (23, 59, 59))

    def test_week_53_only_in_long_years(self):
        # 2026 starts on a Thursday and has 53 ISO weeks, 2030 has 52
        self.assertEqual(week_date_range(2026, 53).start_date.date(), date(2026, 12, 28))
        with self.assertRaises(ValueError):
            week_date_range(2030, 53)

    def test_out_of_range_week_raises(self):
        for week in (0, 54, -1):
            with self.assertRaises(ValueError):
                week_date_range(2030, week)

    def test_week_dates_for_midweek_date(self):
        week = week_dates_for(date(2030, 3, 6))
        self.assertEqual(week.start_date.date(), MONDAY)
        self.assertEqual(week.end_date.date(), date(2030, 3, 10))


class TestPastTimeSlot(unittest.TestCase):
    def test_compares_local_wall_clock(self):
        now = local(MONDAY, 10, 30)
        self.assertTrue(is_past_time_slot(MONDAY, "10:00", now))
        self.assertFalse(is_past_time_slot(MONDAY, "11:00", now))

    def test_invalid_time_raises(self):
        with self.assertRaises(ValueError):
            is_past_time_slot(MONDAY, "24:00", local(MONDAY, 10))


if __name__ == "__main__":
    unittest.main(verbosity=2)
