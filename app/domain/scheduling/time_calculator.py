"""
Timezone-correct calendar primitives.

Every function interprets a datetime by its UTC instant converted into the
fixed local timezone (Europe/Stockholm), never the server's own timezone.
Naive datetimes are treated as UTC, which is how the database hands back
timestamps when the driver drops tzinfo.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Union

from dateutil import tz

from ...config import LOCAL_TIMEZONE
from ...shared.validators import validate_time_string
from .schemas import WEEKDAYS, DateRange, Weekday

LOCAL_TZ = tz.gettz(LOCAL_TIMEZONE)

DateLike = Union[datetime, date]


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime (naive input is taken to already be UTC)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: DateLike) -> datetime:
    """
    Convert an instant to local wall-clock time.

    A plain ``date`` is taken as local midnight of that calendar day.
    """
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=LOCAL_TZ)
    return as_utc(value).astimezone(LOCAL_TZ)


def local_calendar_date(value: DateLike) -> date:
    """The local calendar day an instant falls on"""
    if not isinstance(value, datetime):
        return value
    return to_local(value).date()


def local_midnight(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=LOCAL_TZ)


def start_of_local_day(value: DateLike) -> datetime:
    """00:00:00.000000 local time on the day of ``value``"""
    return local_midnight(local_calendar_date(value))


def end_of_local_day(value: DateLike) -> datetime:
    """23:59:59.999999 local time on the day of ``value``"""
    day = local_calendar_date(value)
    return datetime.combine(day, time.max).replace(tzinfo=LOCAL_TZ)


def local_weekday_name(value: DateLike) -> Weekday:
    return WEEKDAYS[local_calendar_date(value).weekday()]


def local_date_key(value: DateLike) -> str:
    """Canonical YYYY-MM-DD key of the local calendar day"""
    return local_calendar_date(value).isoformat()


def local_time_string(value: datetime) -> str:
    """Local wall-clock time as HH:MM (seconds are dropped)"""
    return to_local(value).strftime("%H:%M")


def iso_week_number(value: DateLike) -> int:
    return local_calendar_date(value).isocalendar()[1]


def week_date_range(year: int, iso_week: int) -> DateRange:
    """
    Monday 00:00 through Sunday 23:59:59 local time for an ISO week.

    Raises:
        ValueError: If the week does not exist in that ISO week-year
    """
    if not 1 <= iso_week <= 53:
        raise ValueError(f"ISO week must be between 1 and 53, got {iso_week}")
    # fromisocalendar also rejects week 53 in 52-week years
    monday = date.fromisocalendar(year, iso_week, 1)
    sunday = monday + timedelta(days=6)
    return DateRange(start_date=start_of_local_day(monday), end_date=end_of_local_day(sunday))


def week_dates_for(value: DateLike) -> DateRange:
    """Start and end of the Monday-Sunday week containing ``value``"""
    day = local_calendar_date(value)
    monday = day - timedelta(days=day.weekday())
    return DateRange(
        start_date=start_of_local_day(monday),
        end_date=end_of_local_day(monday + timedelta(days=6)),
    )


def local_datetime(day: date, hhmm: str) -> datetime:
    """Combine a local calendar day and an HH:MM wall-clock time into an aware datetime"""
    validate_time_string(hhmm)
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes, tzinfo=LOCAL_TZ)


def is_past_time_slot(value: DateLike, hhmm: str, now: datetime) -> bool:
    """True if the HH:MM slot on the local day of ``value`` lies before ``now``"""
    slot = local_datetime(local_calendar_date(value), hhmm)
    return slot < as_utc(now)
