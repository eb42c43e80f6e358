import unittest
from datetime import date

from app.domain.scheduling.schedule_validation import (
    ScheduleOverlapError,
    build_location_schedules_map,
    do_date_ranges_overlap,
    find_overlapping_schedule,
    get_week_numbers_in_range,
    validate_week_selection,
)
from app.domain.scheduling.schemas import Weekday, WeekSelection
from tests.fixtures import window


class TestOverlap(unittest.TestCase):
    def test_touching_ranges_overlap(self):
        spring = window(start=date(2030, 3, 1), end=date(2030, 5, 31), schedule_id="a")
        summer = window(start=date(2030, 5, 31), end=date(2030, 8, 31), schedule_id="b")
        self.assertTrue(do_date_ranges_overlap(spring, summer))

    def test_adjacent_ranges_do_not_overlap(self):
        spring = window(start=date(2030, 3, 1), end=date(2030, 5, 31), schedule_id="a")
        summer = window(start=date(2030, 6, 1), end=date(2030, 8, 31), schedule_id="b")
        self.assertFalse(do_date_ranges_overlap(spring, summer))

    def test_window_never_overlaps_itself(self):
        spring = window(schedule_id="a")
        edited = window(schedule_id="a", hours=("10:00", "12:00"))
        self.assertFalse(do_date_ranges_overlap(spring, edited))
        self.assertIsNone(find_overlapping_schedule(edited, [spring]))

    def test_find_returns_conflict(self):
        spring = window(name="Spring", schedule_id="a")
        new = window(name="Extra", start=date(2030, 4, 1), end=date(2030, 4, 30))
        self.assertEqual(find_overlapping_schedule(new, [spring]).name, "Spring")

    def test_overlap_error_message(self):
        error = ScheduleOverlapError(window(name="Spring"))
        self.assertIsInstance(error, ValueError)
        self.assertIn('"Spring"', str(error))
        self.assertIn("2030-03-01 - 2030-06-30", str(error))


class TestWeeks(unittest.TestCase):
    def test_weeks_across_year_boundary_stay_chronological(self):
        self.assertEqual(get_week_numbers_in_range(date(2029, 12, 24), date(2030, 1, 10)), [52, 1, 2])

    def test_single_day(self):
        self.assertEqual(get_week_numbers_in_range(date(2030, 3, 4), date(2030, 3, 4)), [10])

    def test_reversed_range_is_empty(self):
        self.assertEqual(get_week_numbers_in_range(date(2030, 3, 10), date(2030, 3, 4)), [])

    def test_week_selection(self):
        start = WeekSelection(year=2030, week=10)
        end = WeekSelection(year=2030, week=12)
        self.assertTrue(validate_week_selection(start, end).valid)
        self.assertFalse(validate_week_selection(end, start).valid)
        self.assertFalse(validate_week_selection(None, end).valid)
        self.assertTrue(
            validate_week_selection(WeekSelection(year=2029, week=52), WeekSelection(year=2030, week=1)).valid
        )


class TestBuildLocationSchedulesMap(unittest.TestCase):
    def rows(self, location_id, schedule_id, closed=(Weekday.SUNDAY,)):
        return [
            {
                "location_id": location_id,
                "schedule_id": schedule_id,
                "schedule_name": f"Schedule {schedule_id}",
                "start_date": date(2030, 3, 1),
                "end_date": date(2030, 6, 30),
                "weekday": weekday.value,
                "is_open": weekday not in closed,
                "opening_time": None if weekday in closed else "09:00",
                "closing_time": None if weekday in closed else "17:00",
            }
            for weekday in Weekday
        ]

    def test_groups_rows_per_location(self):
        rows = self.rows("loc-1", "a") + self.rows("loc-1", "b") + self.rows("loc-2", "c")
        result = build_location_schedules_map(rows)

        self.assertEqual(sorted(result), ["loc-1", "loc-2"])
        self.assertEqual([s.id for s in result["loc-1"].schedules], ["a", "b"])
        sunday = result["loc-2"].schedules[0].rule_for(Weekday.SUNDAY)
        self.assertFalse(sunday.is_open)

    def test_no_rows(self):
        self.assertEqual(build_location_schedules_map([]), {})


if __name__ == "__main__":
    unittest.main(verbosity=2)
