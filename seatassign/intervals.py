"""Time-interval overlap math for seatassign."""

from datetime import datetime, timedelta
from typing import Literal

IntervalRelation = Literal["overlap", "disjoint", "non_comparable"]


def is_valid_window(start: datetime | None, end: datetime | None) -> bool:
    """Return True if both ends are present and the window has positive length."""
    if start is None or end is None:
        return False
    try:
        return end > start
    except TypeError:
        # naive vs aware
        return False


def interval_relation(
    start_a: datetime | None,
    end_a: datetime | None,
    start_b: datetime | None,
    end_b: datetime | None,
    buffer_minutes: int = 0,
) -> IntervalRelation:
    """
    Classify interval A against interval B padded by buffer_minutes.

    The padding is applied to B only, on both ends, so two bookings are never
    padded twice. Missing or empty windows are "non_comparable".
    """
    if not is_valid_window(start_a, end_a) or not is_valid_window(start_b, end_b):
        return "non_comparable"

    pad = timedelta(minutes=max(buffer_minutes or 0, 0))
    try:
        if start_a < end_b + pad and end_a > start_b - pad:
            return "overlap"
    except TypeError:
        return "non_comparable"
    return "disjoint"


def overlaps(
    start_a: datetime | None,
    end_a: datetime | None,
    start_b: datetime | None,
    end_b: datetime | None,
    buffer_minutes: int = 0,
) -> bool:
    """Return True if A overlaps B once B is padded by buffer_minutes."""
    return interval_relation(start_a, end_a, start_b, end_b, buffer_minutes) == "overlap"
