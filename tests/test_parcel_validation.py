import unittest

from app.domain.parcels.schemas import DesiredExistingParcel, DesiredNewParcel
from app.domain.parcels.validation import (
    ParcelValidationError,
    ValidationErrorCodes,
    format_validation_error,
    validate_desired_parcels,
)
from tests.fixtures import MONDAY, NOW, SUNDAY, TUESDAY, local, schedule_set, window


def desired(day, start=(10, 0), end=(10, 30)):
    return DesiredNewParcel(
        pickup_earliest_time=local(day, *start), pickup_latest_time=local(day, *end)
    )


class TestValidateDesiredParcels(unittest.TestCase):
    def setUp(self):
        self.schedules = schedule_set(window())

    def validate(self, parcels, **kwargs):
        kwargs.setdefault("now", NOW)
        return validate_desired_parcels(parcels, "loc-1", self.schedules, **kwargs)

    def codes(self, errors):
        return [e.code for e in errors]

    def test_valid_plan(self):
        self.assertEqual(self.validate([desired(MONDAY), desired(TUESDAY)]), [])

    def test_empty_plan_is_valid(self):
        self.assertEqual(self.validate([]), [])

    def test_latest_before_earliest(self):
        errors = self.validate([desired(MONDAY, (11, 0), (10, 0))])
        self.assertEqual(self.codes(errors), [ValidationErrorCodes.INVALID_TIME_SLOT])
        self.assertEqual(errors[0].field, "parcels[0].pickupLatestTime")

    def test_past_slot(self):
        errors = self.validate([desired(MONDAY)], now=local(MONDAY, 10, 15))
        self.assertEqual(self.codes(errors), [ValidationErrorCodes.PAST_TIME_SLOT])

    def test_slot_starting_exactly_now_is_past(self):
        errors = self.validate([desired(MONDAY)], now=local(MONDAY, 10))
        self.assertIn(ValidationErrorCodes.PAST_TIME_SLOT, self.codes(errors))

    def test_outside_opening_hours(self):
        errors = self.validate([desired(MONDAY), desired(TUESDAY, (16, 45), (17, 30))])
        self.assertEqual(self.codes(errors), [ValidationErrorCodes.OUTSIDE_OPERATING_HOURS])
        self.assertEqual(errors[0].field, "parcels[1].pickupLatestTime")
        self.assertIn("09:00 to 17:00", errors[0].message)

    def test_closed_day(self):
        errors = self.validate([desired(SUNDAY)])
        self.assertEqual(self.codes(errors), [ValidationErrorCodes.OUTSIDE_OPERATING_HOURS])
        self.assertEqual(errors[0].field, "parcels[0].pickupEarliestTime")

    def test_two_parcels_on_the_same_day(self):
        errors = self.validate([desired(MONDAY), desired(MONDAY, (14, 0), (14, 30))])
        self.assertEqual(self.codes(errors), [ValidationErrorCodes.HOUSEHOLD_DOUBLE_BOOKING])
        self.assertEqual(errors[0].field, "parcels[1]")

    def test_same_day_parcel_with_reversed_times_reports_both(self):
        errors = self.validate([desired(MONDAY), desired(MONDAY, (11, 0), (10, 0))])
        self.assertEqual(
            self.codes(errors),
            [ValidationErrorCodes.HOUSEHOLD_DOUBLE_BOOKING, ValidationErrorCodes.INVALID_TIME_SLOT],
        )
        self.assertEqual([e.field for e in errors], ["parcels[1]", "parcels[1].pickupLatestTime"])

    def test_capacity_counts_other_households_and_plan(self):
        full = self.validate(
            [desired(MONDAY)], max_per_day=2, other_household_counts={"2030-03-04": 2}
        )
        self.assertEqual(self.codes(full), [ValidationErrorCodes.MAX_DAILY_CAPACITY_REACHED])
        self.assertEqual(full[0].details["current"], 2)
        self.assertEqual(full[0].details["date"], "2030-03-04")

        room = self.validate(
            [desired(MONDAY)], max_per_day=2, other_household_counts={"2030-03-04": 1}
        )
        self.assertEqual(room, [])

    def test_no_limit_ignores_counts(self):
        errors = self.validate(
            [desired(MONDAY)], max_per_day=None, other_household_counts={"2030-03-04": 99}
        )
        self.assertEqual(errors, [])

    def test_unknown_parcel_id(self):
        parcel = DesiredExistingParcel(
            id="someone-elses",
            pickup_earliest_time=local(MONDAY, 10),
            pickup_latest_time=local(MONDAY, 10, 30),
        )
        errors = self.validate([parcel], known_parcel_ids={"p1"})
        self.assertEqual(self.codes(errors), [ValidationErrorCodes.PARCEL_NOT_FOUND])
        self.assertEqual(errors[0].field, "parcels[0].id")

        known = DesiredExistingParcel(
            id="p1",
            pickup_earliest_time=local(MONDAY, 10),
            pickup_latest_time=local(MONDAY, 10, 30),
        )
        self.assertEqual(self.validate([known], known_parcel_ids={"p1"}), [])


class TestFormatValidationError(unittest.TestCase):
    def test_capacity_message_names_location(self):
        error = ParcelValidationError(
            field="capacity",
            code=ValidationErrorCodes.MAX_DAILY_CAPACITY_REACHED,
            message="full",
            details={"maximum": 2, "date": "2030-03-04"},
        )
        text = format_validation_error(error, "Centrum")
        self.assertIn("Centrum", text)
        self.assertIn("2030-03-04", text)

    def test_unknown_code_falls_back_to_message(self):
        error = ParcelValidationError(field="x", code="SOMETHING_ELSE", message="Plain message")
        self.assertEqual(format_validation_error(error), "Plain message")


if __name__ == "__main__":
    unittest.main(verbosity=2)
