"""Interactive, single-booking seating proposals."""

from collections.abc import Iterable
from dataclasses import dataclass

from seatassign.catalog import ResourceCatalog
from seatassign.conflicts import occupied_table_ids
from seatassign.models import AllocationOverride, Booking, SeatingSettings, Suggestion
from seatassign.resolver import Resolution, resolve


@dataclass(frozen=True)
class SeatingProposal:
    """What an operator sees for one booking before saving."""

    booking_id: str
    resolution: Resolution
    occupied_table_ids: frozenset[str]

    @property
    def suggestion(self) -> Suggestion | None:
        return self.resolution.suggestion

    @property
    def has_suggestion(self) -> bool:
        return self.suggestion is not None and self.suggestion.has_fit


def propose_seating(
    booking: Booking,
    catalog: ResourceCatalog,
    settings: SeatingSettings,
    same_day_bookings: Iterable[Booking] = (),
    override: AllocationOverride | None = None,
) -> SeatingProposal:
    """
    Suggest seating for one booking against the rest of its day.

    Tables held by overlapping bookings are unavailable to the suggester; an
    override may still name them, in which case the conflicts are reported.
    Nothing is committed.
    """
    others = [b for b in same_day_bookings if b.id != booking.id]
    taken = occupied_table_ids(booking, others, settings.buffer_minutes)
    resolution = resolve(
        booking,
        catalog.with_occupied(taken),
        settings,
        same_day_bookings=others,
        override=override,
        commit=False,
    )
    return SeatingProposal(booking.id, resolution, frozenset(taken))


def describe_suggestion(proposal: SeatingProposal, catalog: ResourceCatalog) -> str:
    """One-line, user-facing summary of a proposal."""
    resolution = proposal.resolution
    if resolution.reason == "LOCKED":
        return "Allocation is locked"
    if not proposal.has_suggestion:
        return f"No suggestion available ({resolution.reason})"

    suggestion = proposal.suggestion
    tables = ", ".join(catalog.table_name(tid) for tid in suggestion.table_ids)
    text = f"{catalog.zone_name(suggestion.zone_id)}: {tables or 'any table'}"
    if resolution.conflicts:
        text += f" ({len(resolution.conflicts)} conflict(s))"
    return text
