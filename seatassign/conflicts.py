"""Conflict detection between bookings holding the same tables."""

from collections.abc import Iterable
from datetime import datetime

from seatassign.intervals import interval_relation
from seatassign.models import Booking, ConflictEntry


def _clock(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def _holding_others(target: Booking, others: Iterable[Booking], buffer_minutes: int):
    """Yield other bookings that hold tables at a time overlapping the target."""
    for other in others:
        if other.id == target.id or other.status == "cancelled":
            continue
        if not other.assigned_table_ids:
            continue
        relation = interval_relation(
            target.start_time,
            target.end_time,
            other.start_time,
            other.end_time,
            buffer_minutes,
        )
        if relation == "overlap":
            yield other


def occupied_table_ids(
    target: Booking,
    others: Iterable[Booking],
    buffer_minutes: int,
) -> set[str]:
    """Tables held by other bookings whose buffered window overlaps the target."""
    taken: set[str] = set()
    for other in _holding_others(target, others, buffer_minutes):
        taken.update(other.assigned_table_ids)
    return taken


def detect_conflicts(
    target: Booking,
    candidate_table_ids: Iterable[str],
    same_day_bookings: Iterable[Booking],
    buffer_minutes: int,
) -> list[ConflictEntry]:
    """
    List other bookings that share a candidate table at an overlapping time.

    Bookings with a missing or empty window are not comparable and never
    conflict. Sorted by the other booking's start time, then name.
    """
    candidates = set(candidate_table_ids)
    if not candidates:
        return []

    found: list[tuple[datetime, str, ConflictEntry]] = []
    for other in _holding_others(target, same_day_bookings, buffer_minutes):
        shared = tuple(tid for tid in other.assigned_table_ids if tid in candidates)
        if not shared:
            continue
        entry = ConflictEntry(
            booking_id=other.id,
            booking_name=other.display_name,
            overlap_label=f"{_clock(other.start_time)}-{_clock(other.end_time)}",
            shared_table_ids=shared,
        )
        found.append((other.start_time, other.display_name, entry))

    found.sort(key=lambda item: (item[0], item[1], item[2].booking_id))
    return [entry for _, _, entry in found]


def conflict_warning(entry: ConflictEntry) -> str:
    return f"CONFLICT:{entry.booking_id}:{','.join(entry.shared_table_ids)}"
