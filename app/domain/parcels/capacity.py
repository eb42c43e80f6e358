"""
Per-location daily capacity.

Counts here only ever see non-deleted parcels: a soft-deleted parcel frees
its slot immediately. The check is advisory; two households booking the
last slot at the same time can both pass it.
"""

from collections import Counter
from datetime import date, datetime
from typing import Iterable, Optional, Union

from ..scheduling.time_calculator import local_date_key
from .schemas import CapacityRange, CapacityResult


def capacity_result(current_count: int, max_per_day: Optional[int]) -> CapacityResult:
    """Build the capacity verdict for one location/day (None max means unlimited)"""
    if max_per_day is None:
        return CapacityResult(
            is_available=True,
            current_count=current_count,
            max_count=None,
            message="No parcel limit for this pickup location",
        )

    if max_per_day < 0:
        raise ValueError(f"Maximum parcels per day cannot be negative, got {max_per_day}")

    is_available = current_count < max_per_day
    return CapacityResult(
        is_available=is_available,
        current_count=current_count,
        max_count=max_per_day,
        message=(
            f"{current_count} of {max_per_day} booked"
            if is_available
            else f"Maximum number of parcels ({max_per_day}) booked for this date"
        ),
    )


def count_by_local_date(pickup_times: Iterable[datetime]) -> dict[str, int]:
    """Group pickup timestamps by local YYYY-MM-DD key"""
    return dict(Counter(local_date_key(t) for t in pickup_times))


def count_for_local_date(pickup_times: Iterable[datetime], day: Union[date, datetime]) -> int:
    key = local_date_key(day)
    return sum(1 for t in pickup_times if local_date_key(t) == key)


def capacity_range(
    pickup_times: Iterable[datetime], max_per_day: Optional[int]
) -> CapacityRange:
    if max_per_day is None:
        return CapacityRange(has_limit=False, max_per_day=None, date_capacities={})
    return CapacityRange(
        has_limit=True,
        max_per_day=max_per_day,
        date_capacities=count_by_local_date(pickup_times),
    )
