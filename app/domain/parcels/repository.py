"""Parcel repository - Database operations for food parcels"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import FoodParcel, GlobalSetting, Household, PickupLocation
from ..scheduling.time_calculator import as_utc, end_of_local_day, start_of_local_day
from .schemas import ExistingParcel, ParcelOperations


def to_existing_parcel(parcel: FoodParcel) -> ExistingParcel:
    return ExistingParcel(
        id=parcel.id,
        location_id=parcel.pickup_location_id,
        earliest=as_utc(parcel.pickup_date_time_earliest),
        latest=as_utc(parcel.pickup_date_time_latest),
    )


class ParcelRepository:
    """Repository for food parcel database operations"""

    @staticmethod
    def get_location(db: Session, location_id: str) -> Optional[PickupLocation]:
        return db.query(PickupLocation).filter(PickupLocation.id == location_id).first()

    @staticmethod
    def get_household(db: Session, household_id: str) -> Optional[Household]:
        return db.query(Household).filter(Household.id == household_id).first()

    @staticmethod
    def get_parcel(db: Session, parcel_id: str) -> Optional[FoodParcel]:
        return db.query(FoodParcel).filter(FoodParcel.id == parcel_id).first()

    @staticmethod
    def get_existing_future_parcels(
        db: Session, household_id: str, now: datetime
    ) -> list[FoodParcel]:
        """Household's non-deleted, not picked up parcels starting after now, at any location"""
        return (
            db.query(FoodParcel)
            .filter(
                FoodParcel.household_id == household_id,
                FoodParcel.is_picked_up.is_(False),
                FoodParcel.deleted_at.is_(None),
                FoodParcel.pickup_date_time_earliest > as_utc(now),
            )
            .order_by(FoodParcel.pickup_date_time_earliest.asc())
            .all()
        )

    @staticmethod
    def get_pickup_times_in_range(
        db: Session,
        location_id: str,
        start: date,
        end: date,
        exclude_household_id: Optional[str] = None,
    ) -> list[datetime]:
        """
        Earliest pickup times of non-deleted parcels at a location between
        local midnight of ``start`` and the last instant of ``end``.
        """
        query = db.query(FoodParcel.pickup_date_time_earliest).filter(
            FoodParcel.pickup_location_id == location_id,
            FoodParcel.deleted_at.is_(None),
            FoodParcel.pickup_date_time_earliest >= as_utc(start_of_local_day(start)),
            FoodParcel.pickup_date_time_earliest <= as_utc(end_of_local_day(end)),
        )
        if exclude_household_id:
            query = query.filter(FoodParcel.household_id != exclude_household_id)
        return [as_utc(row[0]) for row in query.all()]

    @staticmethod
    def count_for_date(
        db: Session, location_id: str, day: date, exclude_household_id: Optional[str] = None
    ) -> int:
        """Non-deleted parcels at a location on one local calendar day"""
        query = db.query(func.count(FoodParcel.id)).filter(
            FoodParcel.pickup_location_id == location_id,
            FoodParcel.deleted_at.is_(None),
            FoodParcel.pickup_date_time_earliest >= as_utc(start_of_local_day(day)),
            FoodParcel.pickup_date_time_earliest <= as_utc(end_of_local_day(day)),
        )
        if exclude_household_id:
            query = query.filter(FoodParcel.household_id != exclude_household_id)
        return query.scalar() or 0

    @staticmethod
    def household_parcel_count(db: Session, household_id: str) -> int:
        return (
            db.query(func.count(FoodParcel.id))
            .filter(FoodParcel.household_id == household_id, FoodParcel.deleted_at.is_(None))
            .scalar()
            or 0
        )

    @staticmethod
    def apply_operations(db: Session, operations: ParcelOperations, user_id: str, now: datetime):
        """
        Stage a reconciliation diff on the session without committing.

        Soft deletes go first so a location at its daily limit never holds
        more parcels than allowed mid-transaction.
        """
        deleted_at = as_utc(now)
        if operations.to_delete:
            (
                db.query(FoodParcel)
                .filter(FoodParcel.id.in_(operations.to_delete), FoodParcel.deleted_at.is_(None))
                .update(
                    {
                        FoodParcel.deleted_at: deleted_at,
                        FoodParcel.deleted_by_user_id: user_id,
                    },
                    synchronize_session=False,
                )
            )

        for update in operations.to_update:
            (
                db.query(FoodParcel)
                .filter(FoodParcel.id == update.id)
                .update(
                    {
                        FoodParcel.pickup_date_time_earliest: as_utc(update.pickup_date_time_earliest),
                        FoodParcel.pickup_date_time_latest: as_utc(update.pickup_date_time_latest),
                    },
                    synchronize_session=False,
                )
            )

        for create in operations.to_create:
            db.add(
                FoodParcel(
                    id=create.id,
                    household_id=create.household_id,
                    pickup_location_id=create.pickup_location_id,
                    pickup_date_time_earliest=as_utc(create.pickup_date_time_earliest),
                    pickup_date_time_latest=as_utc(create.pickup_date_time_latest),
                    is_picked_up=create.is_picked_up,
                )
            )
        db.flush()

    @staticmethod
    def soft_delete(db: Session, parcel: FoodParcel, user_id: Optional[str], now: datetime) -> FoodParcel:
        parcel.deleted_at = as_utc(now)
        parcel.deleted_by_user_id = user_id
        db.commit()
        db.refresh(parcel)
        return parcel

    @staticmethod
    def get_setting(db: Session, key: str) -> Optional[str]:
        setting = db.query(GlobalSetting).filter(GlobalSetting.key == key).first()
        return setting.value if setting else None

    @staticmethod
    def set_setting(db: Session, key: str, value: Optional[str]) -> None:
        setting = db.query(GlobalSetting).filter(GlobalSetting.key == key).first()
        if setting:
            setting.value = value
        else:
            db.add(GlobalSetting(key=key, value=value))
        db.commit()
