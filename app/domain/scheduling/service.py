"""Schedule service - Business logic for location schedules and availability"""

import logging
from datetime import date, datetime
from typing import Optional, Union

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import FoodParcel, PickupLocation, PickupLocationSchedule
from .availability_service import get_available_time_range, is_date_available, is_time_available
from .outside_hours import count_parcels_affected_by_schedule_change, filter_outside_hours_parcels
from .repository import ScheduleRepository, to_parcel_time_info, to_window
from .schedule_validation import (
    ScheduleOverlapError,
    build_location_schedules_map,
    find_overlapping_schedule,
)
from .schemas import (
    DateAvailability,
    LocationScheduleSet,
    TimeAvailability,
    TimeRange,
    WeeklyScheduleWindow,
)
from .time_calculator import local_calendar_date

logger = logging.getLogger(__name__)


class ScheduleService:
    """Service layer for schedule windows, availability and schedule-change impact"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRepository()

    def get_location(self, location_id: str) -> PickupLocation:
        location = self.repo.get_location(self.db, location_id)
        if not location:
            raise HTTPException(status_code=404, detail="Pickup location not found")
        return location

    def get_schedule(self, schedule_id: str) -> PickupLocationSchedule:
        schedule = self.repo.get_schedule(self.db, schedule_id)
        if not schedule:
            raise HTTPException(status_code=404, detail="Schedule not found")
        return schedule

    def get_schedule_set(self, location_id: str, now: datetime) -> LocationScheduleSet:
        """Schedules still running today or later"""
        self.get_location(location_id)
        return self.repo.get_schedule_set(self.db, location_id, local_calendar_date(now))

    def get_location_schedules_map(self) -> dict[str, LocationScheduleSet]:
        """Every location's schedule windows in a single joined query"""
        return build_location_schedules_map(self.repo.get_schedule_rows(self.db))

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def check_date_availability(
        self, location_id: str, when: Union[datetime, date], now: datetime
    ) -> DateAvailability:
        return is_date_available(when, self.get_schedule_set(location_id, now))

    def check_time_availability(
        self, location_id: str, when: Union[datetime, date], hhmm: str, now: datetime
    ) -> TimeAvailability:
        return is_time_available(when, hhmm, self.get_schedule_set(location_id, now))

    def get_time_range(
        self, location_id: str, when: Union[datetime, date], now: datetime
    ) -> TimeRange:
        return get_available_time_range(when, self.get_schedule_set(location_id, now))

    # ------------------------------------------------------------------
    # Schedule CRUD
    # ------------------------------------------------------------------

    def _check_overlap(self, location_id: str, window: WeeklyScheduleWindow) -> None:
        existing = [
            to_window(s) for s in self.repo.get_schedules_for_location(self.db, location_id)
        ]
        conflict = find_overlapping_schedule(window, existing)
        if conflict:
            logger.warning(
                f"⚠️ Schedule '{window.name}' for location {location_id} overlaps '{conflict.name}'"
            )
            raise ScheduleOverlapError(conflict)

    def create_schedule(
        self, location_id: str, window: WeeklyScheduleWindow
    ) -> PickupLocationSchedule:
        self.get_location(location_id)
        self._check_overlap(location_id, window)

        schedule = self.repo.create_schedule(self.db, location_id, window)
        logger.info(
            f"✅ Created schedule {schedule.id} '{schedule.name}' for location {location_id} "
            f"({schedule.start_date} - {schedule.end_date})"
        )
        return schedule

    def update_schedule(
        self, schedule_id: str, window: WeeklyScheduleWindow
    ) -> PickupLocationSchedule:
        schedule = self.get_schedule(schedule_id)
        window = window.model_copy(update={"id": schedule.id})
        self._check_overlap(schedule.pickup_location_id, window)

        schedule = self.repo.replace_schedule(self.db, schedule, window)
        logger.info(f"✅ Updated schedule {schedule.id} '{schedule.name}'")
        return schedule

    def delete_schedule(self, schedule_id: str) -> dict:
        schedule = self.get_schedule(schedule_id)
        self.repo.delete_schedule(self.db, schedule)
        logger.info(f"🗑️ Deleted schedule {schedule_id}")
        return {"message": "Schedule deleted"}

    # ------------------------------------------------------------------
    # Impact of schedule changes on booked parcels
    # ------------------------------------------------------------------

    def _active_parcels(self, location_id: str, now: datetime):
        return [
            to_parcel_time_info(p)
            for p in self.repo.get_active_location_parcels(self.db, location_id, now)
        ]

    def count_parcels_affected_by_schedule_change(
        self,
        location_id: str,
        proposed: WeeklyScheduleWindow,
        now: datetime,
        edited_schedule_id: Optional[str] = None,
    ) -> int:
        """
        Count active parcels that would fall outside opening hours if the
        proposed window were saved.

        Current state is every running window. Proposed state replaces the
        edited window (if any) with the proposal, or adds it for a new window.
        """
        current = self.get_schedule_set(location_id, now)
        parcels = self._active_parcels(location_id, now)
        if not parcels:
            return 0

        others = [w for w in current.schedules if w.id != edited_schedule_id]
        proposed_set = LocationScheduleSet(schedules=others + [proposed])

        count = count_parcels_affected_by_schedule_change(parcels, current, proposed_set, now)
        logger.info(f"📊 Schedule change at location {location_id} affects {count} parcel(s)")
        return count

    def count_parcels_affected_by_schedule_deletion(self, schedule_id: str, now: datetime) -> int:
        schedule = self.get_schedule(schedule_id)
        location_id = schedule.pickup_location_id

        current = self.get_schedule_set(location_id, now)
        parcels = self._active_parcels(location_id, now)
        if not parcels:
            return 0

        remaining = LocationScheduleSet(
            schedules=[w for w in current.schedules if w.id != schedule_id]
        )
        return count_parcels_affected_by_schedule_change(parcels, current, remaining, now)

    def get_outside_hours_parcels_for_location(
        self, location_id: str, now: datetime
    ) -> list[FoodParcel]:
        schedule_set = self.get_schedule_set(location_id, now)
        rows = self.repo.get_active_location_parcels(self.db, location_id, now)
        by_id = {p.id: p for p in rows}

        outside = filter_outside_hours_parcels(
            [to_parcel_time_info(p) for p in rows], schedule_set, now
        )
        return [by_id[p.id] for p in outside]
