"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_time_string(value: str) -> str:
    """
    Validate a 24-hour wall-clock time.

    Args:
        value: Time string in HH:MM format (e.g. "09:00", "17:30")

    Returns:
        The unchanged time string

    Raises:
        ValueError: If the value is not a valid HH:MM time
    """
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time format: {value!r} (expected HH:MM)")
    return value


def time_to_minutes(value: str) -> int:
    """Convert an HH:MM string to minutes since midnight"""
    match = TIME_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time format: {value!r} (expected HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def validate_positive_threshold(value: Optional[int]) -> Optional[int]:
    """
    Validate a count threshold (e.g. parcel warning threshold).

    None means "disabled". Zero and negative values are rejected: a zero
    threshold would warn for every household.

    Raises:
        ValueError: If the threshold is not a positive integer
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Threshold must be an integer, got {value!r}")
    if value < 1:
        raise ValueError(f"Threshold must be at least 1, got {value}")
    return value
