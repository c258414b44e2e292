"""Batch day allocation: every booking of a day, in a fixed order."""

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from seatassign.catalog import ResourceCatalog
from seatassign.conflicts import occupied_table_ids
from seatassign.intervals import is_valid_window
from seatassign.models import (
    AllocationOverride,
    AllocationUpdate,
    Booking,
    DayResult,
    DayTotals,
    ItemResult,
    RunMode,
    SeatingSettings,
)
from seatassign.resolver import resolve
from seatassign.suggester import ALLOCATION_DISABLED, INVALID_PARTY_SIZE, NO_FIT

logger = logging.getLogger(__name__)


class AllocationSink(Protocol):
    """Persistence collaborator, called in apply mode only."""

    def write(self, update: AllocationUpdate) -> None: ...


class OverrideStore(Protocol):
    """Read access to administrator overrides keyed by booking id."""

    def get(self, booking_id: str) -> AllocationOverride | None: ...


class MappingOverrideStore:
    """OverrideStore over a plain dict."""

    def __init__(self, overrides: dict[str, AllocationOverride] | None = None):
        self._overrides = dict(overrides or {})

    def get(self, booking_id: str) -> AllocationOverride | None:
        return self._overrides.get(booking_id)


def processing_order(bookings: Iterable[Booking]) -> list[Booking]:
    """
    Sort bookings by (start time, id).

    Bookings without a usable start time go last, by id.
    """

    def key(booking: Booking):
        if booking.start_time is None:
            return (1, 0.0, booking.id)
        return (0, booking.start_time.timestamp(), booking.id)

    return sorted(bookings, key=key)


def _skip_reason(booking: Booking) -> str | None:
    if booking.status == "cancelled":
        return "CANCELLED"
    if not is_valid_window(booking.start_time, booking.end_time):
        return "INVALID_TIME_WINDOW"
    if booking.party_size <= 0:
        return INVALID_PARTY_SIZE
    return None


def run_day(
    date_key: str,
    mode: RunMode,
    bookings: Iterable[Booking],
    catalog: ResourceCatalog,
    settings: SeatingSettings,
    sink: AllocationSink | None = None,
    override_store: OverrideStore | None = None,
) -> DayResult:
    """
    Allocate all bookings of a day.

    Bookings are processed strictly in processing_order. Tables chosen earlier
    in the run count as occupied for later bookings, whether or not they are
    persisted. In "apply" mode each decision is handed to ``sink``; in
    "dryRun" nothing leaves this function except the returned DayResult.
    A failure while handling one booking is recorded as an "error" item and
    the run continues.
    """
    if mode not in ("dryRun", "apply"):
        raise ValueError(f"unknown mode: {mode!r}")
    commit = mode == "apply"

    ordered = processing_order(bookings)
    # Working view of the day: persisted state, updated as the run decides
    current: dict[str, Booking] = {b.id: b for b in ordered}

    totals = DayTotals(scanned=len(ordered))
    items: list[ItemResult] = []
    updates: list[AllocationUpdate] = []
    conflict_pairs: set[frozenset[str]] = set()

    for booking in ordered:
        skip = _skip_reason(booking)
        if skip is not None:
            totals.skipped_invalid += 1
            items.append(ItemResult(booking_id=booking.id, status="skipped_invalid", reason=skip))
            continue
        if booking.is_locked:
            totals.skipped_locked += 1
            items.append(
                ItemResult(
                    booking_id=booking.id,
                    status="skipped_locked",
                    reason="LOCKED",
                    zone_id=booking.assigned_zone_id,
                    table_ids=booking.assigned_table_ids,
                )
            )
            continue

        totals.processed += 1
        try:
            others = [b for bid, b in current.items() if bid != booking.id]
            taken = occupied_table_ids(booking, others, settings.buffer_minutes)
            view = catalog.with_occupied(taken)
            override = booking.override
            if override_store is not None:
                override = override_store.get(booking.id)
            resolution = resolve(
                booking,
                view,
                settings,
                same_day_bookings=others,
                override=override,
                commit=commit,
            )

            update = AllocationUpdate(
                booking_id=booking.id,
                final=resolution.final,
                allocated=resolution.allocated,
                diagnostics=resolution.diagnostics,
            )
            if commit:
                if sink is not None:
                    sink.write(update)
                updates.append(update)
            current[booking.id] = replace(
                booking,
                final=resolution.final,
                allocated=resolution.allocated,
                diagnostics=resolution.diagnostics,
            )
        except Exception as e:
            logger.exception("Allocation failed for booking %s", booking.id)
            totals.error += 1
            items.append(ItemResult(booking_id=booking.id, status="error", reason=str(e)))
            continue

        if not resolution.final.table_ids and resolution.reason in (NO_FIT, ALLOCATION_DISABLED):
            status = "no_fit"
            totals.no_fit += 1
        elif resolution.conflicts:
            status = "conflict"
            totals.conflict += 1
            for entry in resolution.conflicts:
                conflict_pairs.add(frozenset((booking.id, entry.booking_id)))
        else:
            status = "updated"
            totals.updated += 1

        items.append(
            ItemResult(
                booking_id=booking.id,
                status=status,
                reason=resolution.reason,
                zone_id=resolution.final.zone_id,
                table_ids=resolution.final.table_ids,
                conflicts=list(resolution.conflicts),
                diagnostics=resolution.diagnostics,
            )
        )

    totals.distinct_conflicts = len(conflict_pairs)
    logger.info(
        "Day %s (%s): %d scanned, %d updated, %d no fit, %d conflict, %d error",
        date_key,
        mode,
        totals.scanned,
        totals.updated,
        totals.no_fit,
        totals.conflict,
        totals.error,
    )
    return DayResult(
        date_key=date_key,
        mode=mode,
        totals=totals,
        items=items,
        updates=updates,
    )
