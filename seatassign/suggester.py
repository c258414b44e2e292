"""Greedy, zone-priority-ordered, tightest-fit table suggestion."""

import logging
from dataclasses import dataclass
from datetime import datetime

from seatassign.catalog import ResourceCatalog
from seatassign.models import AllocationOverride, SeatingSettings, Suggestion, Zone

logger = logging.getLogger(__name__)

OVERRIDE_APPLIED = "OVERRIDE_APPLIED"
INVALID_PARTY_SIZE = "INVALID_PARTY_SIZE"
SINGLE_TABLE_FIT = "SINGLE_TABLE_FIT"
COMBINATION_FIT = "COMBINATION_FIT"
NO_FIT = "NO_FIT"
ALLOCATION_DISABLED = "ALLOCATION_DISABLED"

OVERRIDE_INCONSISTENT = "OVERRIDE_INCONSISTENT"
EMERGENCY_ZONE = "EMERGENCY_ZONE"


@dataclass(frozen=True)
class _Candidate:
    zone_id: str
    table_ids: tuple[str, ...]
    total_min: int
    total_max: int


def check_override(
    override: AllocationOverride | None,
    catalog: ResourceCatalog,
) -> list[str]:
    """
    Validate a forcing override against the catalog.

    Returns a list of warnings; an empty list means a forcing override is
    usable. Absent or disabled overrides produce no warnings.
    """
    if override is None or not override.is_forcing:
        return []

    warnings: list[str] = []
    if override.zone_id and catalog.zone(override.zone_id) is None:
        warnings.append(f"OVERRIDE_UNKNOWN_ZONE:{override.zone_id}")
    for tid in override.table_ids:
        if catalog.table(tid) is None:
            warnings.append(f"OVERRIDE_UNKNOWN_TABLE:{tid}")
    if warnings:
        return warnings

    if override.zone_id and override.table_ids:
        stray = [tid for tid in override.table_ids if catalog.table(tid).zone_id != override.zone_id]
        if stray:
            warnings.append(OVERRIDE_INCONSISTENT)
    return warnings


def is_usable_override(override: AllocationOverride | None, catalog: ResourceCatalog) -> bool:
    return override is not None and override.is_forcing and not check_override(override, catalog)


def suggestion_from_override(
    override: AllocationOverride,
    catalog: ResourceCatalog,
) -> Suggestion:
    """Return an override verbatim as a suggestion. The override must be usable."""
    zone_id = override.zone_id or catalog.zone_of_tables(override.table_ids)
    return Suggestion(
        zone_id=zone_id,
        table_ids=tuple(override.table_ids),
        reason=OVERRIDE_APPLIED,
        confidence=1.0,
    )


def emergency_zone_ids(catalog: ResourceCatalog, settings: SeatingSettings) -> set[str]:
    """Zones reserved for emergency overflow: policy ids plus zones flagged as emergency."""
    ids = set(settings.emergency_zones.zone_ids)
    ids.update(z.id for z in catalog.active_zones() if z.is_emergency)
    return ids


def ordered_zones(
    catalog: ResourceCatalog,
    settings: SeatingSettings,
    booking_time: datetime | None,
) -> tuple[list[Zone], set[str]]:
    """
    Return zones in search order and the set of emergency zone ids.

    Base order is the catalog's (priority, name). An explicit
    settings.zone_priority list moves its zones to the front; without one,
    settings.default_zone_id goes first. Overflow zones go after all others.
    Emergency zones come first while the emergency policy is active and are
    left out entirely otherwise.
    """
    zones = catalog.active_zones()
    if settings.zone_priority:
        rank = {zone_id: idx for idx, zone_id in enumerate(settings.zone_priority)}
        # sorted() is stable, so unranked zones keep catalog order
        zones = sorted(zones, key=lambda z: rank.get(z.id, len(rank)))
    elif settings.default_zone_id:
        zones = sorted(zones, key=lambda z: z.id != settings.default_zone_id)

    overflow = settings.overflow_zone_ids
    zones = [z for z in zones if z.id not in overflow] + [z for z in zones if z.id in overflow]

    emergency_ids = emergency_zone_ids(catalog, settings)
    emergency = [z for z in zones if z.id in emergency_ids]
    normal = [z for z in zones if z.id not in emergency_ids]
    if settings.emergency_zones.is_active_on(booking_time):
        return emergency + normal, emergency_ids
    return normal, emergency_ids


def _single_table_fit(
    party_size: int,
    zone_id: str,
    catalog: ResourceCatalog,
    settings: SeatingSettings,
) -> _Candidate | None:
    fits = []
    solo_fits = []
    for table in catalog.available_tables_in_zone(zone_id):
        if party_size > table.max_capacity:
            continue
        if table.min_capacity <= party_size:
            fits.append(table)
        elif party_size == 1 and (
            table.can_seat_solo or table.id in settings.solo_allowed_table_ids
        ):
            solo_fits.append(table)
    # Solo seating below min capacity only when no table fits outright
    fits = fits or solo_fits
    if not fits:
        return None
    # Tightest fit first; name then id keep ties deterministic
    best = min(fits, key=lambda t: (t.max_capacity, t.name, t.id))
    return _Candidate(zone_id, (best.id,), best.min_capacity, best.max_capacity)


def _combination_fit(
    party_size: int,
    zone_id: str,
    catalog: ResourceCatalog,
    settings: SeatingSettings,
) -> _Candidate | None:
    fits = []
    combos = catalog.available_combinations_in_zone(
        zone_id, allow_cross_zone=settings.allow_cross_zone_combinations
    )
    for combo in combos:
        if len(combo.table_ids) > settings.max_combine_count:
            continue
        total_min, total_max = catalog.capacity_of(combo.id)
        if total_min <= party_size <= total_max:
            fits.append(_Candidate(zone_id, combo.table_ids, total_min, total_max))
    if not fits:
        return None
    return min(fits, key=lambda c: (len(c.table_ids), c.total_max, ",".join(c.table_ids)))


def confidence_for(party_size: int, max_capacity: int) -> float:
    """Linear score of how tightly max_capacity matches party_size, in [0, 1]."""
    if max_capacity <= 0:
        return 0.0
    slack = max_capacity - party_size
    return round(max(0.0, min(1.0, 1 - slack / max_capacity)), 4)


def suggest(
    party_size: int,
    booking_time: datetime | None,
    catalog: ResourceCatalog,
    settings: SeatingSettings,
    override: AllocationOverride | None = None,
) -> Suggestion:
    """
    Propose a zone and tables for a party.

    A usable override is returned verbatim. With allocation disabled in the
    settings nothing else is proposed (reason ALLOCATION_DISABLED). Otherwise
    zones are searched in order (see ordered_zones); inside each zone the
    tightest single table wins, then the combination with the fewest tables
    and smallest capacity. The first zone with any fit is used.
    """
    warnings = check_override(override, catalog)
    if is_usable_override(override, catalog):
        return suggestion_from_override(override, catalog)
    if warnings:
        logger.warning("Ignoring unusable override: %s", ", ".join(warnings))

    if not settings.allocation_enabled:
        return Suggestion(
            zone_id=None,
            table_ids=(),
            reason=ALLOCATION_DISABLED,
            confidence=0.0,
            warnings=tuple(warnings),
        )

    if party_size <= 0:
        return Suggestion(
            zone_id=None,
            table_ids=(),
            reason=INVALID_PARTY_SIZE,
            confidence=0.0,
            warnings=tuple(warnings),
        )

    zones, emergency_ids = ordered_zones(catalog, settings, booking_time)
    for zone in zones:
        candidate = _single_table_fit(party_size, zone.id, catalog, settings)
        reason = SINGLE_TABLE_FIT
        if candidate is None:
            candidate = _combination_fit(party_size, zone.id, catalog, settings)
            reason = COMBINATION_FIT
        if candidate is None:
            continue

        result_warnings = list(warnings)
        if zone.id in emergency_ids:
            result_warnings.append(EMERGENCY_ZONE)
            logger.info(
                "Emergency zone %s selected for party of %d (%s)",
                zone.id,
                party_size,
                ",".join(candidate.table_ids),
            )
        return Suggestion(
            zone_id=zone.id,
            table_ids=candidate.table_ids,
            reason=reason,
            confidence=confidence_for(party_size, candidate.total_max),
            warnings=tuple(result_warnings),
        )

    return Suggestion(
        zone_id=None,
        table_ids=(),
        reason=NO_FIT,
        confidence=0.0,
        warnings=tuple(warnings),
    )
