import secrets
import string

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import DEFAULT_ID_LENGTH, PARCEL_ID_LENGTH
from .database import Base

ID_ALPHABET = string.ascii_letters + string.digits + "_-"

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def generate_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """Generate a short random URL-safe identifier"""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def generate_parcel_id() -> str:
    """Generate an identifier for a new food parcel"""
    return generate_id(PARCEL_ID_LENGTH)


class Household(Base):
    __tablename__ = "households"

    id = Column(String(14), primary_key=True, default=generate_id)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=False)
    locale = Column(String(2), default="sv", nullable=False)
    postal_code = Column(String(5), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    parcels = relationship("FoodParcel", back_populates="household")


class PickupLocation(Base):
    __tablename__ = "pickup_locations"

    id = Column(String(14), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    street_address = Column(String(255), nullable=False)
    postal_code = Column(String(5), nullable=False)
    parcels_max_per_day = Column(Integer, nullable=True)  # None means unlimited
    contact_name = Column(String(50), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone_number = Column(String(20), nullable=True)
    default_slot_duration_minutes = Column(Integer, default=15, nullable=False)

    schedules = relationship(
        "PickupLocationSchedule", back_populates="location", cascade="all, delete-orphan"
    )
    parcels = relationship("FoodParcel", back_populates="location")

    __table_args__ = (
        CheckConstraint(
            "parcels_max_per_day IS NULL OR parcels_max_per_day >= 0",
            name="pickup_locations_max_per_day_check",
        ),
    )


class PickupLocationSchedule(Base):
    """A named, date-bounded weekly opening-hours template for a location"""

    __tablename__ = "pickup_location_schedules"

    id = Column(String(14), primary_key=True, default=generate_id)
    pickup_location_id = Column(
        String(14), ForeignKey("pickup_locations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)  # First day the schedule is valid
    end_date = Column(Date, nullable=False)  # Last day the schedule is valid (inclusive)

    location = relationship("PickupLocation", back_populates="schedules")
    days = relationship(
        "PickupLocationScheduleDay", back_populates="schedule", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="schedule_date_range_check"),
    )


class PickupLocationScheduleDay(Base):
    __tablename__ = "pickup_location_schedule_days"

    id = Column(String(14), primary_key=True, default=generate_id)
    schedule_id = Column(
        String(14),
        ForeignKey("pickup_location_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    weekday = Column(Enum(*WEEKDAY_NAMES, name="weekday"), nullable=False)
    is_open = Column(Boolean, default=True, nullable=False)
    opening_time = Column(String(5), nullable=True)  # HH:MM, null when closed
    closing_time = Column(String(5), nullable=True)  # HH:MM, null when closed

    schedule = relationship("PickupLocationSchedule", back_populates="days")

    __table_args__ = (
        CheckConstraint(
            "NOT is_open OR (opening_time IS NOT NULL AND closing_time IS NOT NULL "
            "AND opening_time <= closing_time)",
            name="opening_hours_check",
        ),
    )


class FoodParcel(Base):
    """A household's single pickup commitment. Soft-deleted, never hard-deleted."""

    __tablename__ = "food_parcels"

    id = Column(String(14), primary_key=True, default=generate_parcel_id)
    household_id = Column(
        String(14), ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pickup_location_id = Column(
        String(14), ForeignKey("pickup_locations.id"), nullable=False, index=True
    )
    # Stored as UTC
    pickup_date_time_earliest = Column(DateTime(timezone=True), nullable=False, index=True)
    pickup_date_time_latest = Column(DateTime(timezone=True), nullable=False)
    is_picked_up = Column(Boolean, default=False, nullable=False)

    # Soft delete (audit trail + excluded from capacity counts)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by_user_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    household = relationship("Household", back_populates="parcels")
    location = relationship("PickupLocation", back_populates="parcels")

    __table_args__ = (
        CheckConstraint(
            "pickup_date_time_earliest <= pickup_date_time_latest",
            name="pickup_time_range_check",
        ),
    )


class GlobalSetting(Base):
    __tablename__ = "global_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
