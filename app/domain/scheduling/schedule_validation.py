"""Schedule window validation helpers: overlaps, week selections, row grouping"""

from datetime import date, timedelta
from typing import Iterable, Mapping, Optional

from .schemas import LocationScheduleSet, WeekSelection, WeekSelectionResult, WeeklyScheduleWindow


class ScheduleOverlapError(ValueError):
    """Raised when a schedule window overlaps another window of the same location"""

    def __init__(self, conflicting: WeeklyScheduleWindow):
        self.conflicting = conflicting
        super().__init__(
            f'Schedule overlaps with existing schedule "{conflicting.name}" '
            f"({conflicting.start_date.isoformat()} - {conflicting.end_date.isoformat()})"
        )


def do_date_ranges_overlap(first: WeeklyScheduleWindow, second: WeeklyScheduleWindow) -> bool:
    """Inclusive overlap of two windows' date ranges; a window never overlaps itself"""
    if first.id and second.id and first.id == second.id:
        return False
    return first.start_date <= second.end_date and first.end_date >= second.start_date


def find_overlapping_schedule(
    candidate: WeeklyScheduleWindow, existing: Iterable[WeeklyScheduleWindow]
) -> Optional[WeeklyScheduleWindow]:
    for window in existing:
        if candidate.id and window.id == candidate.id:
            continue
        if do_date_ranges_overlap(candidate, window):
            return window
    return None


def get_week_numbers_in_range(start: date, end: date) -> list[int]:
    """ISO week numbers touched by [start, end], in chronological order"""
    weeks: list[int] = []
    seen: set[tuple[int, int]] = set()
    current = start
    while current <= end:
        iso_year, week, _ = current.isocalendar()
        if (iso_year, week) not in seen:
            seen.add((iso_year, week))
            weeks.append(week)
        current += timedelta(days=1)
    return weeks


def validate_week_selection(
    start_week: Optional[WeekSelection], end_week: Optional[WeekSelection]
) -> WeekSelectionResult:
    if start_week is None or end_week is None:
        return WeekSelectionResult(valid=False, error="Start and end weeks are required")

    if (start_week.year, start_week.week) > (end_week.year, end_week.week):
        return WeekSelectionResult(valid=False, error="Start week cannot be after end week")

    return WeekSelectionResult(valid=True)


def build_location_schedules_map(rows: Iterable[Mapping]) -> dict[str, LocationScheduleSet]:
    """
    Group flat schedule/day join rows into one LocationScheduleSet per location.

    Each row carries location_id, schedule_id, schedule_name, start_date,
    end_date, weekday, is_open, opening_time and closing_time. Rows from a
    left join with no day (weekday None) only register the schedule.
    """
    grouped: dict[str, dict[str, dict]] = {}

    for row in rows:
        schedules = grouped.setdefault(row["location_id"], {})
        schedule = schedules.setdefault(
            row["schedule_id"],
            {
                "id": row["schedule_id"],
                "name": row["schedule_name"],
                "start_date": row["start_date"],
                "end_date": row["end_date"],
                "days": [],
            },
        )
        if row.get("weekday"):
            schedule["days"].append(
                {
                    "weekday": row["weekday"],
                    "is_open": bool(row.get("is_open")),
                    "opening_time": row.get("opening_time"),
                    "closing_time": row.get("closing_time"),
                }
            )

    return {
        location_id: LocationScheduleSet(
            schedules=[WeeklyScheduleWindow(**s) for s in schedules.values()]
        )
        for location_id, schedules in grouped.items()
    }
