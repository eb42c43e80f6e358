"""Parcel service - Business logic for capacity, household parcel edits and soft delete"""

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import PARCEL_WARNING_THRESHOLD_KEY
from ...models import FoodParcel, Household, PickupLocation
from ...shared.validators import validate_positive_threshold
from ..scheduling.repository import ScheduleRepository
from ..scheduling.time_calculator import as_utc, local_calendar_date
from .capacity import capacity_range, capacity_result, count_by_local_date
from .reconciliation import calculate_parcel_operations
from .repository import ParcelRepository, to_existing_parcel
from .schemas import CapacityRange, CapacityResult, DesiredParcel, ParcelOperations, ParcelWarning
from .validation import ParcelValidationError, ValidationErrorCodes, validate_desired_parcels

logger = logging.getLogger(__name__)


class ParcelService:
    """Service layer for food parcel operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ParcelRepository()

    def get_location(self, location_id: str) -> PickupLocation:
        location = self.repo.get_location(self.db, location_id)
        if not location:
            raise HTTPException(status_code=404, detail="Pickup location not found")
        return location

    def get_household(self, household_id: str) -> Household:
        household = self.repo.get_household(self.db, household_id)
        if not household:
            raise HTTPException(status_code=404, detail="Household not found")
        return household

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    def check_pickup_location_capacity(
        self, location_id: str, day: date, exclude_household_id: Optional[str] = None
    ) -> CapacityResult:
        """
        Check whether a location can take one more parcel on a local date.

        Args:
            location_id: Pickup location
            day: Local calendar date
            exclude_household_id: Household whose own parcels are not counted
                (used when re-validating that household's edit)
        """
        location = self.get_location(location_id)
        if location.parcels_max_per_day is None:
            return capacity_result(0, None)

        current = self.repo.count_for_date(self.db, location_id, day, exclude_household_id)
        return capacity_result(current, location.parcels_max_per_day)

    def get_pickup_location_capacity_for_range(
        self, location_id: str, start_date: date, end_date: date
    ) -> CapacityRange:
        if start_date > end_date:
            raise ValueError(f"Start date {start_date} is after end date {end_date}")

        location = self.get_location(location_id)
        if location.parcels_max_per_day is None:
            return capacity_range([], None)

        pickup_times = self.repo.get_pickup_times_in_range(
            self.db, location_id, start_date, end_date
        )
        return capacity_range(pickup_times, location.parcels_max_per_day)

    # ------------------------------------------------------------------
    # Household parcel edits
    # ------------------------------------------------------------------

    def _other_household_counts(
        self, location_id: str, household_id: str, desired: Sequence[DesiredParcel]
    ) -> dict[str, int]:
        days = [local_calendar_date(as_utc(p.pickup_earliest_time)) for p in desired]
        if not days:
            return {}
        pickup_times = self.repo.get_pickup_times_in_range(
            self.db, location_id, min(days), max(days), exclude_household_id=household_id
        )
        return count_by_local_date(pickup_times)

    def update_household_parcels(
        self,
        household_id: str,
        location_id: str,
        desired: Sequence[DesiredParcel],
        now: datetime,
        user_id: Optional[str] = None,
    ) -> tuple[Optional[ParcelOperations], list[ParcelValidationError]]:
        """
        Replace a household's future parcel plan.

        Validates the desired parcels, reconciles them against the household's
        existing future parcels and applies the diff in one transaction.

        Returns:
            ``(operations, [])`` on success, ``(None, errors)`` when validation
            failed; nothing is written in the latter case.
        """
        self.get_household(household_id)

        location = self.repo.get_location(self.db, location_id)
        if not location:
            return None, [
                ParcelValidationError(
                    field="locationId",
                    code=ValidationErrorCodes.LOCATION_NOT_FOUND,
                    message="Pickup location not found",
                    details={"locationId": location_id},
                )
            ]

        existing_rows = self.repo.get_existing_future_parcels(self.db, household_id, now)
        existing = [to_existing_parcel(p) for p in existing_rows]

        errors = validate_desired_parcels(
            desired,
            location_id,
            ScheduleRepository.get_schedule_set(self.db, location_id, local_calendar_date(now)),
            now,
            max_per_day=location.parcels_max_per_day,
            other_household_counts=self._other_household_counts(location_id, household_id, desired),
            known_parcel_ids={p.id for p in existing},
        )
        if errors:
            logger.warning(
                f"⚠️ Rejected parcel update for household {household_id}: "
                f"{', '.join(e.code for e in errors)}"
            )
            return None, errors

        operations = calculate_parcel_operations(existing, desired, location_id, household_id)
        if operations.is_empty:
            logger.info(f"✅ Parcels for household {household_id} already up to date")
            return operations, []

        try:
            self.repo.apply_operations(self.db, operations, user_id, now)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update parcels for household {household_id}: {e}")
            raise

        logger.info(
            f"✅ Updated parcels for household {household_id}: "
            f"{len(operations.to_create)} created, {len(operations.to_update)} updated, "
            f"{len(operations.to_delete)} deleted"
        )
        return operations, []

    def soft_delete_parcel(
        self, parcel_id: str, user_id: Optional[str], now: datetime
    ) -> FoodParcel:
        """
        Cancel a parcel by marking it deleted.

        Picked-up parcels and parcels whose pickup window has already ended
        are kept as history and cannot be cancelled.
        """
        parcel = self.repo.get_parcel(self.db, parcel_id)
        if not parcel or parcel.deleted_at is not None:
            raise HTTPException(
                status_code=404,
                detail={"code": "PARCEL_NOT_FOUND", "message": "Parcel not found"},
            )
        if parcel.is_picked_up:
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "ALREADY_PICKED_UP",
                    "message": "Cannot cancel a parcel that has already been picked up",
                },
            )
        if as_utc(parcel.pickup_date_time_latest) < as_utc(now):
            raise HTTPException(
                status_code=409,
                detail={"code": "PAST_PARCEL", "message": "Cannot cancel a parcel from the past"},
            )

        try:
            parcel = self.repo.soft_delete(self.db, parcel, user_id, now)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to soft delete parcel {parcel_id}: {e}")
            raise

        logger.info(f"🗑️ Parcel {parcel_id} cancelled by {user_id or 'unknown user'}")
        return parcel

    # ------------------------------------------------------------------
    # Parcel count warning
    # ------------------------------------------------------------------

    def get_parcel_warning_threshold(self) -> Optional[int]:
        """Stored threshold, or None when unset or not a positive integer"""
        raw = self.repo.get_setting(self.db, PARCEL_WARNING_THRESHOLD_KEY)
        if raw is None:
            return None
        try:
            threshold = int(raw)
        except ValueError:
            logger.warning(f"⚠️ Ignoring invalid parcel warning threshold: {raw!r}")
            return None
        return threshold if threshold > 0 else None

    def set_parcel_warning_threshold(self, value: Optional[int]) -> Optional[int]:
        threshold = validate_positive_threshold(value)
        self.repo.set_setting(
            self.db,
            PARCEL_WARNING_THRESHOLD_KEY,
            str(threshold) if threshold is not None else None,
        )
        logger.info(f"✅ Parcel warning threshold set to {threshold}")
        return threshold

    def get_household_parcel_count(self, household_id: str) -> int:
        return self.repo.household_parcel_count(self.db, household_id)

    def get_parcel_warning(self, household_id: str) -> ParcelWarning:
        self.get_household(household_id)
        count = self.get_household_parcel_count(household_id)
        threshold = self.get_parcel_warning_threshold()
        return ParcelWarning(
            should_warn=threshold is not None and count > threshold,
            parcel_count=count,
            threshold=threshold,
        )

    def should_show_parcel_warning(self, household_id: str) -> bool:
        return self.get_parcel_warning(household_id).should_warn
