"""Schedule repository - Database operations for pickup location schedules"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import FoodParcel, PickupLocation, PickupLocationSchedule, PickupLocationScheduleDay
from .schemas import LocationScheduleSet, ParcelTimeInfo, WeeklyScheduleWindow
from .time_calculator import as_utc


def to_window(schedule: PickupLocationSchedule) -> WeeklyScheduleWindow:
    return WeeklyScheduleWindow.model_validate(schedule)


def to_parcel_time_info(parcel: FoodParcel) -> ParcelTimeInfo:
    return ParcelTimeInfo(
        id=parcel.id,
        pickup_earliest_time=as_utc(parcel.pickup_date_time_earliest),
        pickup_latest_time=as_utc(parcel.pickup_date_time_latest),
        is_picked_up=parcel.is_picked_up,
    )


class ScheduleRepository:
    """Repository for schedule database operations"""

    @staticmethod
    def get_location(db: Session, location_id: str) -> Optional[PickupLocation]:
        return db.query(PickupLocation).filter(PickupLocation.id == location_id).first()

    @staticmethod
    def get_schedule(db: Session, schedule_id: str) -> Optional[PickupLocationSchedule]:
        return (
            db.query(PickupLocationSchedule)
            .options(selectinload(PickupLocationSchedule.days))
            .filter(PickupLocationSchedule.id == schedule_id)
            .first()
        )

    @staticmethod
    def get_schedules_for_location(
        db: Session, location_id: str, ending_on_or_after: Optional[date] = None
    ) -> list[PickupLocationSchedule]:
        """Get a location's schedules, optionally only those still running on a date"""
        query = (
            db.query(PickupLocationSchedule)
            .options(selectinload(PickupLocationSchedule.days))
            .filter(PickupLocationSchedule.pickup_location_id == location_id)
        )
        if ending_on_or_after is not None:
            query = query.filter(PickupLocationSchedule.end_date >= ending_on_or_after)
        return query.order_by(PickupLocationSchedule.start_date.asc()).all()

    @staticmethod
    def get_schedule_set(
        db: Session, location_id: str, ending_on_or_after: Optional[date] = None
    ) -> LocationScheduleSet:
        schedules = ScheduleRepository.get_schedules_for_location(
            db, location_id, ending_on_or_after
        )
        return LocationScheduleSet(schedules=[to_window(s) for s in schedules])

    @staticmethod
    def get_schedule_rows(db: Session) -> list[dict]:
        """Flat schedule/day rows for every location (left join on days)"""
        rows = (
            db.query(
                PickupLocationSchedule.pickup_location_id,
                PickupLocationSchedule.id,
                PickupLocationSchedule.name,
                PickupLocationSchedule.start_date,
                PickupLocationSchedule.end_date,
                PickupLocationScheduleDay.weekday,
                PickupLocationScheduleDay.is_open,
                PickupLocationScheduleDay.opening_time,
                PickupLocationScheduleDay.closing_time,
            )
            .outerjoin(
                PickupLocationScheduleDay,
                PickupLocationScheduleDay.schedule_id == PickupLocationSchedule.id,
            )
            .all()
        )
        return [
            {
                "location_id": r[0],
                "schedule_id": r[1],
                "schedule_name": r[2],
                "start_date": r[3],
                "end_date": r[4],
                "weekday": r[5],
                "is_open": r[6],
                "opening_time": r[7],
                "closing_time": r[8],
            }
            for r in rows
        ]

    @staticmethod
    def create_schedule(
        db: Session, location_id: str, window: WeeklyScheduleWindow
    ) -> PickupLocationSchedule:
        schedule = PickupLocationSchedule(
            pickup_location_id=location_id,
            name=window.name,
            start_date=window.start_date,
            end_date=window.end_date,
            days=[
                PickupLocationScheduleDay(
                    weekday=rule.weekday.value,
                    is_open=rule.is_open,
                    opening_time=rule.opening_time,
                    closing_time=rule.closing_time,
                )
                for rule in window.days
            ],
        )
        db.add(schedule)
        db.commit()
        db.refresh(schedule)
        return schedule

    @staticmethod
    def replace_schedule(
        db: Session, schedule: PickupLocationSchedule, window: WeeklyScheduleWindow
    ) -> PickupLocationSchedule:
        """Overwrite a schedule's dates, name and day rules"""
        schedule.name = window.name
        schedule.start_date = window.start_date
        schedule.end_date = window.end_date

        rules = {rule.weekday.value: rule for rule in window.days}
        for day in schedule.days:
            rule = rules.pop(day.weekday)
            day.is_open = rule.is_open
            day.opening_time = rule.opening_time
            day.closing_time = rule.closing_time
        for weekday, rule in rules.items():
            schedule.days.append(
                PickupLocationScheduleDay(
                    weekday=weekday,
                    is_open=rule.is_open,
                    opening_time=rule.opening_time,
                    closing_time=rule.closing_time,
                )
            )

        db.commit()
        db.refresh(schedule)
        return schedule

    @staticmethod
    def delete_schedule(db: Session, schedule: PickupLocationSchedule) -> None:
        db.delete(schedule)
        db.commit()

    @staticmethod
    def get_active_location_parcels(
        db: Session, location_id: str, now: datetime
    ) -> list[FoodParcel]:
        """Future, not picked up, non-deleted parcels at a location"""
        return (
            db.query(FoodParcel)
            .filter(
                FoodParcel.pickup_location_id == location_id,
                FoodParcel.is_picked_up.is_(False),
                FoodParcel.deleted_at.is_(None),
                FoodParcel.pickup_date_time_earliest > as_utc(now),
            )
            .order_by(FoodParcel.pickup_date_time_earliest.asc())
            .all()
        )
