"""
Decision chain: guest intent, administrative override and suggestion.

Each booking moves through explicit states::

    Unresolved -> Suggested -> (Overridden) -> Finalized
    Locked  (terminal until the caller unlocks)

The state classes below replace checking the intent/override/final fields in
priority order; ``resolve`` drives a booking through them.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from seatassign.catalog import ResourceCatalog
from seatassign.conflicts import conflict_warning, detect_conflicts
from seatassign.models import (
    Allocated,
    AllocationDiagnostics,
    AllocationFinal,
    AllocationOverride,
    Booking,
    ConflictEntry,
    FinalSource,
    IntentQuality,
    SeatingSettings,
    Suggestion,
)
from seatassign.suggester import (
    OVERRIDE_APPLIED,
    check_override,
    is_usable_override,
    suggest,
    suggestion_from_override,
)

logger = logging.getLogger(__name__)

LOCKED = "LOCKED"
MANUAL_ASSIGNMENT = "MANUAL_ASSIGNMENT"


@dataclass(frozen=True)
class Unresolved:
    booking: Booking


@dataclass(frozen=True)
class Suggested:
    booking: Booking
    suggestion: Suggestion


@dataclass(frozen=True)
class Overridden:
    booking: Booking
    suggestion: Suggestion
    override: AllocationOverride
    automatic: Suggestion  # what the suggester would have picked


@dataclass(frozen=True)
class Finalized:
    booking: Booking
    final: AllocationFinal
    allocated: Allocated | None


@dataclass(frozen=True)
class Locked:
    booking: Booking


ResolutionState = Unresolved | Suggested | Overridden | Finalized | Locked


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one booking."""

    booking_id: str
    state: ResolutionState
    reason: str
    final: AllocationFinal | None
    allocated: Allocated | None
    diagnostics: AllocationDiagnostics
    suggestion: Suggestion | None = None
    conflicts: tuple[ConflictEntry, ...] = ()

    @property
    def changed(self) -> bool:
        return not isinstance(self.state, Locked)


def begin(booking: Booking) -> Unresolved | Locked:
    if booking.is_locked:
        return Locked(booking)
    return Unresolved(booking)


def run_suggester(
    state: ResolutionState,
    catalog: ResourceCatalog,
    settings: SeatingSettings,
) -> Suggested | Locked:
    """Unresolved -> Suggested. The override is applied in a separate step."""
    if isinstance(state, Locked):
        return state
    if not isinstance(state, Unresolved):
        raise TypeError(f"cannot suggest from {type(state).__name__}")
    booking = state.booking
    suggestion = suggest(booking.party_size, booking.start_time, catalog, settings)
    return Suggested(booking, suggestion)


def merge_override(
    state: ResolutionState,
    override: AllocationOverride | None,
    catalog: ResourceCatalog,
) -> Suggested | Overridden | Locked:
    """
    Suggested -> Overridden when a usable override exists.

    Unusable overrides leave the state Suggested and add their warnings to
    the working suggestion.
    """
    if isinstance(state, Locked):
        return state
    if not isinstance(state, Suggested):
        raise TypeError(f"cannot merge override into {type(state).__name__}")
    if is_usable_override(override, catalog):
        return Overridden(
            state.booking,
            suggestion_from_override(override, catalog),
            override,
            automatic=state.suggestion,
        )
    warnings = check_override(override, catalog)
    if warnings:
        logger.warning(
            "Booking %s: override ignored (%s)", state.booking.id, ", ".join(warnings)
        )
        suggestion = replace(
            state.suggestion, warnings=tuple(warnings) + state.suggestion.warnings
        )
        return Suggested(state.booking, suggestion)
    return state


def intent_quality(
    booking: Booking,
    zone_id: str | None,
    table_group: str | None,
) -> IntentQuality:
    intent = booking.intent
    if intent is None or intent.is_empty:
        return "none"
    if intent.zone_id and intent.zone_id == zone_id:
        return "good"
    if intent.table_group and intent.table_group == table_group:
        return "good"
    return "weak"


def _final_source(state: Suggested | Overridden, quality: IntentQuality) -> FinalSource:
    if isinstance(state, Overridden):
        return "override"
    if quality == "good" and state.suggestion.table_ids:
        return "intent"
    return "auto"


def finalize(
    state: ResolutionState,
    catalog: ResourceCatalog,
    conflicts: Iterable[ConflictEntry] = (),
    commit: bool = False,
) -> tuple[Finalized | Locked, AllocationDiagnostics]:
    """
    Write the working candidate to an AllocationFinal.

    Conflicts are advisory: they become warnings, never a refusal. The
    Allocated record is produced only when commit is set.
    """
    if isinstance(state, Locked):
        return state, state.booking.diagnostics or AllocationDiagnostics(reasons=(LOCKED,))
    if not isinstance(state, (Suggested, Overridden)):
        raise TypeError(f"cannot finalize from {type(state).__name__}")

    booking = state.booking
    suggestion = state.suggestion
    if isinstance(state, Overridden) and state.override.table_group:
        table_group = state.override.table_group
    else:
        table_group = catalog.table_group_of(suggestion.table_ids)

    quality = intent_quality(booking, suggestion.zone_id, table_group)
    reasons = [suggestion.reason]
    if isinstance(state, Overridden) and state.automatic.reason != OVERRIDE_APPLIED:
        reasons.append(f"AUTO:{state.automatic.reason}")
    warnings = list(suggestion.warnings)
    warnings.extend(conflict_warning(entry) for entry in conflicts)

    diagnostics = AllocationDiagnostics(
        intent_quality=quality,
        reasons=tuple(reasons),
        warnings=tuple(warnings),
        matched_zone_id=suggestion.zone_id if quality == "good" else None,
    )
    final = AllocationFinal(
        source=_final_source(state, quality),
        zone_id=suggestion.zone_id,
        table_group=table_group,
        table_ids=suggestion.table_ids,
        locked=False,
    )
    allocated = None
    if commit:
        allocated = Allocated(
            zone_id=suggestion.zone_id,
            table_ids=suggestion.table_ids,
            strategy="override" if isinstance(state, Overridden) else "tightest_fit",
            diagnostics_summary=suggestion.reason,
        )
    return Finalized(booking, final, allocated), diagnostics


def _locked_resolution(booking: Booking) -> Resolution:
    logger.debug("Booking %s is locked; leaving allocation untouched", booking.id)
    return Resolution(
        booking_id=booking.id,
        state=Locked(booking),
        reason=LOCKED,
        final=booking.final,
        allocated=booking.allocated,
        diagnostics=booking.diagnostics or AllocationDiagnostics(reasons=(LOCKED,)),
    )


def resolve(
    booking: Booking,
    catalog: ResourceCatalog,
    settings: SeatingSettings,
    same_day_bookings: Iterable[Booking] = (),
    override: AllocationOverride | None = None,
    commit: bool = False,
) -> Resolution:
    """
    Drive a booking through the decision chain.

    ``override`` defaults to the booking's own override record. Locked
    bookings come back unchanged with reason LOCKED.
    """
    state = begin(booking)
    if isinstance(state, Locked):
        return _locked_resolution(booking)

    if override is None:
        override = booking.override
    state = merge_override(run_suggester(state, catalog, settings), override, catalog)
    suggestion = state.suggestion

    conflicts = detect_conflicts(
        booking, suggestion.table_ids, same_day_bookings, settings.buffer_minutes
    )
    finalized, diagnostics = finalize(state, catalog, conflicts, commit=commit)
    return Resolution(
        booking_id=booking.id,
        state=finalized,
        reason=suggestion.reason,
        final=finalized.final,
        allocated=finalized.allocated,
        diagnostics=diagnostics,
        suggestion=suggestion,
        conflicts=tuple(conflicts),
    )


def manual_assign(
    booking: Booking,
    zone_id: str | None,
    table_ids: Iterable[str],
    catalog: ResourceCatalog,
    settings: SeatingSettings,
    same_day_bookings: Iterable[Booking] = (),
    lock: bool = False,
    commit: bool = True,
) -> Resolution:
    """
    Record a seating chosen by a person, saved even if it conflicts.

    Locked bookings must be unlocked first.
    """
    if booking.is_locked:
        return _locked_resolution(booking)

    table_ids = tuple(table_ids)
    if zone_id is None:
        zone_id = catalog.zone_of_tables(table_ids)
    conflicts = detect_conflicts(booking, table_ids, same_day_bookings, settings.buffer_minutes)
    table_group = catalog.table_group_of(table_ids)
    quality = intent_quality(booking, zone_id, table_group)
    warnings = [f"UNKNOWN_TABLE:{tid}" for tid in table_ids if catalog.table(tid) is None]
    warnings.extend(conflict_warning(entry) for entry in conflicts)
    diagnostics = AllocationDiagnostics(
        intent_quality=quality,
        reasons=(MANUAL_ASSIGNMENT,),
        warnings=tuple(warnings),
        matched_zone_id=zone_id if quality == "good" else None,
    )
    final = AllocationFinal(
        source="manual",
        zone_id=zone_id,
        table_group=table_group,
        table_ids=table_ids,
        locked=lock,
    )
    allocated = None
    if commit:
        allocated = Allocated(
            zone_id=zone_id,
            table_ids=table_ids,
            strategy="manual",
            diagnostics_summary=MANUAL_ASSIGNMENT,
        )
    return Resolution(
        booking_id=booking.id,
        state=Finalized(booking, final, allocated),
        reason=MANUAL_ASSIGNMENT,
        final=final,
        allocated=allocated,
        diagnostics=diagnostics,
        conflicts=tuple(conflicts),
    )


def lock(booking: Booking) -> Booking:
    """Freeze the booking's current final assignment."""
    if booking.final is None:
        raise ValueError(f"booking {booking.id} has no final assignment to lock")
    return replace(booking, final=replace(booking.final, locked=True))


def unlock(booking: Booking) -> Booking:
    """Explicit manual unlock; the only way out of the Locked state."""
    if booking.final is None or not booking.final.locked:
        return booking
    return replace(booking, final=replace(booking.final, locked=False))

