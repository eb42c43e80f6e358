"""Shared test fixtures and utilities.

Schedule builders, local-time helpers and an in-memory database wired into
the FastAPI app for service and router tests.
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.domain.scheduling.schemas import DayRule, LocationScheduleSet, Weekday, WeeklyScheduleWindow
from app.domain.scheduling.time_calculator import LOCAL_TZ
from app.models import FoodParcel, Household, PickupLocation

# Fixed clock well before every schedule used in the tests
NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

# 2030-03-04 is a Monday; Stockholm is UTC+1 until 2030-03-31
MONDAY = date(2030, 3, 4)
TUESDAY = date(2030, 3, 5)
SUNDAY = date(2030, 3, 10)


# -----------------------------------------------------------------------------
# Time helpers
# -----------------------------------------------------------------------------


def local(day: date, hour: int, minute: int = 0) -> datetime:
    """Aware Europe/Stockholm datetime"""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=LOCAL_TZ)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


# -----------------------------------------------------------------------------
# Schedule builders
# -----------------------------------------------------------------------------


def window(
    name: str = "Spring",
    start: date = date(2030, 3, 1),
    end: date = date(2030, 6, 30),
    hours: tuple[str, str] = ("09:00", "17:00"),
    overrides: Optional[dict[Weekday, Optional[tuple[str, str]]]] = None,
    closed: tuple[Weekday, ...] = (Weekday.SUNDAY,),
    schedule_id: Optional[str] = None,
) -> WeeklyScheduleWindow:
    """
    Build a window open ``hours`` every weekday except ``closed``.

    ``overrides`` maps a weekday to its own (opening, closing) pair, or None
    to close it.
    """
    overrides = overrides or {}
    days = []
    for weekday in Weekday:
        times = overrides[weekday] if weekday in overrides else (None if weekday in closed else hours)
        if times is None:
            days.append(DayRule(weekday=weekday, is_open=False))
        else:
            days.append(
                DayRule(weekday=weekday, is_open=True, opening_time=times[0], closing_time=times[1])
            )
    return WeeklyScheduleWindow(id=schedule_id, name=name, start_date=start, end_date=end, days=days)


def schedule_set(*windows: WeeklyScheduleWindow) -> LocationScheduleSet:
    return LocationScheduleSet(schedules=list(windows))


def schedule_payload(
    name: str = "Spring",
    start: str = "2030-03-01",
    end: str = "2030-06-30",
    hours: tuple[str, str] = ("09:00", "17:00"),
) -> dict:
    """JSON body for the schedule endpoints (open every day but Sunday)"""
    days = []
    for weekday in Weekday:
        if weekday == Weekday.SUNDAY:
            days.append({"weekday": weekday.value, "isOpen": False})
        else:
            days.append(
                {
                    "weekday": weekday.value,
                    "isOpen": True,
                    "openingTime": hours[0],
                    "closingTime": hours[1],
                }
            )
    return {"name": name, "startDate": start, "endDate": end, "days": days}


# -----------------------------------------------------------------------------
# Database helpers
# -----------------------------------------------------------------------------


def make_session():
    """Fresh in-memory SQLite session with all tables created"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def seed_basics(db, max_per_day: Optional[int] = 2):
    """Two households and one pickup location"""
    db.add_all(
        [
            Household(id="hh-1", first_name="Anna", last_name="Berg", phone_number="+46700000001"),
            Household(id="hh-2", first_name="Omar", last_name="Ali", phone_number="+46700000002"),
            PickupLocation(
                id="loc-1",
                name="Centrum",
                street_address="Storgatan 1",
                postal_code="41101",
                parcels_max_per_day=max_per_day,
            ),
            PickupLocation(
                id="loc-2",
                name="Hisingen",
                street_address="Hamngatan 2",
                postal_code="41705",
            ),
        ]
    )
    db.commit()


def add_parcel(
    db,
    parcel_id: str,
    earliest: datetime,
    latest: datetime,
    household_id: str = "hh-1",
    location_id: str = "loc-1",
    is_picked_up: bool = False,
) -> FoodParcel:
    parcel = FoodParcel(
        id=parcel_id,
        household_id=household_id,
        pickup_location_id=location_id,
        pickup_date_time_earliest=earliest.astimezone(timezone.utc),
        pickup_date_time_latest=latest.astimezone(timezone.utc),
        is_picked_up=is_picked_up,
    )
    db.add(parcel)
    db.commit()
    return parcel


def make_client(db, now: datetime = NOW):
    """TestClient bound to ``db`` with the request clock pinned to ``now``"""
    from fastapi.testclient import TestClient

    from app.database import get_db
    from app.domain.scheduling.router import get_now
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: now
    return TestClient(app)


def clear_overrides():
    from app.main import app

    app.dependency_overrides.clear()
