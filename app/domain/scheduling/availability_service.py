"""
Location availability evaluation against time-boxed weekly schedules.

Overlapping windows are resolved optimistically: if any window covering a
date has that weekday open, the date is open. ``is_date_available`` reports
the first open window's hours, while ``get_available_time_range`` merges
every open window into the widest possible range.
"""

from datetime import date as date_type
from datetime import datetime
from typing import Iterator, Optional, Union

from ...shared.validators import time_to_minutes, validate_time_string
from .schemas import (
    DateAvailability,
    DayRule,
    LocationScheduleSet,
    TimeAvailability,
    TimeRange,
    WeeklyScheduleWindow,
)
from .time_calculator import (
    end_of_local_day,
    local_midnight,
    local_weekday_name,
    start_of_local_day,
)

CLOSED_REASON = "Closed on this day"
NO_SCHEDULE_REASON = "No scheduled hours"


def _covering_rules(
    when: Union[datetime, date_type], schedule_set: LocationScheduleSet
) -> Iterator[tuple[WeeklyScheduleWindow, DayRule]]:
    """Yield (window, day rule) for every window whose date interval covers ``when``"""
    day_start = start_of_local_day(when)
    weekday = local_weekday_name(when)

    for window in schedule_set.schedules:
        window_start = local_midnight(window.start_date)
        window_end = end_of_local_day(window.end_date)
        if window_start <= day_start <= window_end:
            yield window, window.rule_for(weekday)


def _first_open_window(
    when: Union[datetime, date_type], schedule_set: LocationScheduleSet
) -> tuple[Optional[WeeklyScheduleWindow], Optional[DayRule], Optional[DayRule]]:
    """Return (open window, its rule, last closed rule seen)"""
    last_closed = None
    for window, rule in _covering_rules(when, schedule_set):
        if rule.is_open:
            return window, rule, last_closed
        last_closed = rule
    return None, None, last_closed


def is_date_available(
    when: Union[datetime, date_type], schedule_set: LocationScheduleSet
) -> DateAvailability:
    """Check whether the location is open at all on the local day of ``when``"""
    _, open_rule, last_closed = _first_open_window(when, schedule_set)

    if open_rule is not None:
        return DateAvailability(
            is_available=True,
            opening_time=open_rule.opening_time,
            closing_time=open_rule.closing_time,
        )

    if last_closed is not None:
        return DateAvailability(
            is_available=False,
            reason=CLOSED_REASON,
            opening_time=last_closed.opening_time,
            closing_time=last_closed.closing_time,
        )

    return DateAvailability(is_available=False, reason=NO_SCHEDULE_REASON)


def is_time_available(
    when: Union[datetime, date_type], hhmm: str, schedule_set: LocationScheduleSet
) -> TimeAvailability:
    """
    Check an HH:MM wall-clock time on the local day of ``when``.

    The closing time is inclusive: a pickup ending exactly at closing is valid.

    Raises:
        ValueError: If ``hhmm`` is not a valid HH:MM string
    """
    validate_time_string(hhmm)

    window, rule, _ = _first_open_window(when, schedule_set)
    if rule is None:
        closed = is_date_available(when, schedule_set)
        return TimeAvailability(is_available=False, reason=closed.reason)

    value = time_to_minutes(hhmm)
    if time_to_minutes(rule.opening_time) <= value <= time_to_minutes(rule.closing_time):
        return TimeAvailability(is_available=True)

    return TimeAvailability(
        is_available=False,
        reason=(
            f"This location is only open from {rule.opening_time} to {rule.closing_time} "
            f"on {rule.weekday.value}s (schedule '{window.name}')"
        ),
    )


def get_available_time_range(
    when: Union[datetime, date_type], schedule_set: LocationScheduleSet
) -> TimeRange:
    """Widest opening range across all open windows covering the day"""
    earliest = None
    latest = None

    for _, rule in _covering_rules(when, schedule_set):
        if not rule.is_open:
            continue
        if earliest is None or time_to_minutes(rule.opening_time) < time_to_minutes(earliest):
            earliest = rule.opening_time
        if latest is None or time_to_minutes(rule.closing_time) > time_to_minutes(latest):
            latest = rule.closing_time

    return TimeRange(earliest_time=earliest, latest_time=latest)
