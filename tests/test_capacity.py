import unittest

from app.domain.parcels.capacity import (
    capacity_range,
    capacity_result,
    count_by_local_date,
    count_for_local_date,
)
from tests.fixtures import MONDAY, TUESDAY, local, utc


class TestCapacityResult(unittest.TestCase):
    def test_below_limit_is_available(self):
        result = capacity_result(2, 3)
        self.assertTrue(result.is_available)
        self.assertEqual(result.message, "2 of 3 booked")

    def test_at_limit_is_full(self):
        result = capacity_result(3, 3)
        self.assertFalse(result.is_available)
        self.assertEqual(result.max_count, 3)
        self.assertIn("(3)", result.message)

    def test_no_limit_is_always_available(self):
        result = capacity_result(500, None)
        self.assertTrue(result.is_available)
        self.assertIsNone(result.max_count)

    def test_zero_limit_blocks_everything(self):
        self.assertFalse(capacity_result(0, 0).is_available)

    def test_negative_limit_raises(self):
        with self.assertRaises(ValueError):
            capacity_result(0, -1)


class TestDailyCounts(unittest.TestCase):
    def test_counts_group_by_local_day(self):
        times = [
            local(MONDAY, 10),
            local(MONDAY, 16),
            utc(2030, 3, 4, 23, 30),  # 00:30 Tuesday local
        ]
        self.assertEqual(count_by_local_date(times), {"2030-03-04": 2, "2030-03-05": 1})
        self.assertEqual(count_for_local_date(times, TUESDAY), 1)

    def test_range_without_limit_has_no_counts(self):
        result = capacity_range([local(MONDAY, 10)], None)
        self.assertFalse(result.has_limit)
        self.assertEqual(result.date_capacities, {})

    def test_range_omits_empty_days(self):
        result = capacity_range([local(MONDAY, 10)], 5)
        self.assertTrue(result.has_limit)
        self.assertEqual(result.date_capacities, {"2030-03-04": 1})
        self.assertNotIn("2030-03-05", result.date_capacities)


if __name__ == "__main__":
    unittest.main(verbosity=2)
