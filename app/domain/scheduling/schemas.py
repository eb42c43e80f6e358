"""Scheduling domain schemas - Pydantic models for schedules and availability"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator, model_validator

from ...shared.validators import time_to_minutes, validate_time_string


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


# Indexed by date.weekday() (Monday == 0)
WEEKDAYS = tuple(Weekday)


class DayRule(BaseModel):
    """Opening hours for one weekday of a schedule window"""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    weekday: Weekday
    is_open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None

    @field_validator("opening_time", "closing_time")
    @classmethod
    def validate_times(cls, v):
        if v is not None:
            return validate_time_string(v)
        return v

    @model_validator(mode="after")
    def check_open_hours(self):
        if not self.is_open:
            if self.opening_time is not None or self.closing_time is not None:
                raise ValueError(f"Closed day {self.weekday.value} must not have opening hours")
            return self
        if self.opening_time is None or self.closing_time is None:
            raise ValueError(f"Open day {self.weekday.value} requires opening and closing times")
        if time_to_minutes(self.opening_time) > time_to_minutes(self.closing_time):
            raise ValueError(
                f"Opening time {self.opening_time} is after closing time {self.closing_time} "
                f"on {self.weekday.value}"
            )
        return self


class WeeklyScheduleWindow(BaseModel):
    """
    A named weekly opening-hours template valid for [start_date, end_date].

    Exactly one DayRule per weekday is required; rules are looked up by
    Weekday through ``rule_for``.
    """

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    name: str
    start_date: date
    end_date: date
    days: list[DayRule]

    _rules: dict = PrivateAttr(default_factory=dict)

    @field_validator("days")
    @classmethod
    def validate_weekdays(cls, v):
        seen = [rule.weekday for rule in v]
        duplicated = {w.value for w in seen if seen.count(w) > 1}
        if duplicated:
            raise ValueError(f"Weekday listed more than once: {', '.join(sorted(duplicated))}")
        missing = [w.value for w in Weekday if w not in seen]
        if missing:
            raise ValueError(f"Missing day rule for: {', '.join(missing)}")
        return v

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date > self.end_date:
            raise ValueError(f"Schedule start date {self.start_date} is after end date {self.end_date}")
        return self

    def model_post_init(self, __context) -> None:
        self._rules = {rule.weekday: rule for rule in self.days}

    def rule_for(self, weekday: Weekday) -> DayRule:
        return self._rules[weekday]


class LocationScheduleSet(BaseModel):
    """All schedule windows belonging to one pickup location"""

    model_config = ConfigDict(from_attributes=True)

    schedules: list[WeeklyScheduleWindow] = []


class ParcelTimeInfo(BaseModel):
    """The slice of a parcel the opening-hours checks need"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    pickup_earliest_time: datetime
    pickup_latest_time: datetime
    is_picked_up: bool = False


class DateAvailability(BaseModel):
    is_available: bool
    reason: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None


class TimeAvailability(BaseModel):
    is_available: bool
    reason: Optional[str] = None


class TimeRange(BaseModel):
    earliest_time: Optional[str] = None
    latest_time: Optional[str] = None


class DateRange(BaseModel):
    start_date: datetime
    end_date: datetime


class WeekSelection(BaseModel):
    year: int
    week: int


class WeekSelectionResult(BaseModel):
    valid: bool
    error: Optional[str] = None


# ============================================================================
# API SCHEMAS
# ============================================================================


class ScheduleDayInput(BaseModel):
    weekday: Weekday
    isOpen: bool
    openingTime: Optional[str] = None
    closingTime: Optional[str] = None


class ScheduleCreate(BaseModel):
    """Schema for creating or replacing a schedule window"""

    name: str
    startDate: date
    endDate: date
    days: list[ScheduleDayInput]

    @model_validator(mode="after")
    def check_window(self):
        # Surface day-rule problems as request validation errors
        try:
            self.to_window()
        except ValueError as e:
            raise ValueError(str(e)) from e
        return self

    def to_window(self, schedule_id: Optional[str] = None) -> WeeklyScheduleWindow:
        return WeeklyScheduleWindow(
            id=schedule_id,
            name=self.name,
            start_date=self.startDate,
            end_date=self.endDate,
            days=[
                DayRule(
                    weekday=d.weekday,
                    is_open=d.isOpen,
                    opening_time=d.openingTime,
                    closing_time=d.closingTime,
                )
                for d in self.days
            ],
        )


class ScheduleResponse(BaseModel):
    id: str
    locationId: str
    name: str
    startDate: date
    endDate: date
    days: list[ScheduleDayInput]


class AvailabilityResponse(BaseModel):
    isAvailable: bool
    reason: Optional[str] = None
    openingTime: Optional[str] = None
    closingTime: Optional[str] = None


class TimeRangeResponse(BaseModel):
    earliestTime: Optional[str] = None
    latestTime: Optional[str] = None


class ScheduleImpactResponse(BaseModel):
    affectedParcels: int


class WeekRangeResponse(BaseModel):
    year: int
    week: int
    startDate: datetime
    endDate: datetime
