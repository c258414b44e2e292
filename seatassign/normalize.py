"""Normalization of raw snapshot records into seatassign models."""

from datetime import datetime
from typing import Any

from seatassign.models import (
    UNPRIORITIZED,
    Allocated,
    AllocationDiagnostics,
    AllocationFinal,
    AllocationIntent,
    AllocationOverride,
    Booking,
    EmergencyZonePolicy,
    SeatingSettings,
    Table,
    TableCombination,
    Zone,
)

ZONE_TYPES = {"bar", "outdoor", "table", "other"}
BOOKING_STATUSES = {"pending", "confirmed", "cancelled"}
FINAL_SOURCES = {"intent", "override", "auto", "manual"}
INTENT_QUALITIES = {"none", "weak", "good"}


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _int(value: Any, default: int) -> int:
    # bool is an int subclass; never treat it as a number here
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


def _ids(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v).strip() for v in value if v is not None and str(v).strip())


def normalize_tags(value: Any) -> frozenset[str]:
    """Trim and lower-case tags, dropping empties and non-strings."""
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(t.strip().lower() for t in value if isinstance(t, str) and t.strip())


def parse_datetime(value: Any) -> datetime | None:
    """Accept datetime objects (YAML timestamps) and ISO-8601 strings."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def normalize_zone(raw: dict[str, Any]) -> Zone:
    zone_type = raw.get("type")
    return Zone(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        priority=_int(raw.get("priority"), UNPRIORITIZED),
        is_active=_bool(raw.get("is_active"), True),
        is_emergency=_bool(raw.get("is_emergency"), False),
        type=zone_type if zone_type in ZONE_TYPES else "other",
        tags=normalize_tags(raw.get("tags")),
    )


def normalize_table(raw: dict[str, Any]) -> Table:
    geometry = raw.get("geometry")
    return Table(
        id=str(raw["id"]),
        zone_id=str(raw["zone_id"]),
        name=str(raw.get("name") or ""),
        min_capacity=_int(raw.get("min_capacity"), 1),
        max_capacity=_int(raw.get("max_capacity"), 2),
        is_active=_bool(raw.get("is_active"), True),
        can_combine=_bool(raw.get("can_combine"), True),
        can_seat_solo=_bool(raw.get("can_seat_solo"), False),
        table_group=_str_or_none(raw.get("table_group")),
        tags=normalize_tags(raw.get("tags")),
        geometry=dict(geometry) if isinstance(geometry, dict) else None,
    )


def normalize_combination(raw: dict[str, Any]) -> TableCombination:
    return TableCombination(
        id=str(raw["id"]),
        table_ids=_ids(raw.get("table_ids")),
        is_active=_bool(raw.get("is_active"), True),
    )


def normalize_settings(raw: dict[str, Any] | None) -> SeatingSettings:
    """Build settings, keeping defaults for anything missing or malformed."""
    raw = raw or {}
    defaults = SeatingSettings()
    emergency_raw = raw.get("emergency_zones") or {}
    rule = emergency_raw.get("active_rule")
    weekdays = emergency_raw.get("weekdays") or []
    emergency = EmergencyZonePolicy(
        enabled=_bool(emergency_raw.get("enabled"), False),
        zone_ids=frozenset(_ids(emergency_raw.get("zone_ids"))),
        active_rule=rule if rule in ("always", "by_weekday") else "always",
        weekdays=frozenset(d for d in weekdays if isinstance(d, int) and 0 <= d <= 6),
    )
    return SeatingSettings(
        allocation_enabled=_bool(raw.get("allocation_enabled"), defaults.allocation_enabled),
        buffer_minutes=max(_int(raw.get("buffer_minutes"), defaults.buffer_minutes), 0),
        default_duration_minutes=_int(
            raw.get("default_duration_minutes"), defaults.default_duration_minutes
        ),
        vip_enabled=_bool(raw.get("vip_enabled"), defaults.vip_enabled),
        emergency_zones=emergency,
        active_floorplan_id=_str_or_none(raw.get("active_floorplan_id")),
        max_combine_count=_int(raw.get("max_combine_count"), defaults.max_combine_count),
        allow_cross_zone_combinations=_bool(
            raw.get("allow_cross_zone_combinations"), defaults.allow_cross_zone_combinations
        ),
        solo_allowed_table_ids=frozenset(_ids(raw.get("solo_allowed_table_ids"))),
        zone_priority=_ids(raw.get("zone_priority")),
        default_zone_id=_str_or_none(raw.get("default_zone_id")),
        overflow_zone_ids=frozenset(_ids(raw.get("overflow_zone_ids"))),
    )


def _intent(raw: Any) -> AllocationIntent | None:
    if not isinstance(raw, dict):
        return None
    return AllocationIntent(
        time_slot=_str_or_none(raw.get("time_slot")),
        zone_id=_str_or_none(raw.get("zone_id")),
        table_group=_str_or_none(raw.get("table_group")),
    )


def _override(raw: Any) -> AllocationOverride | None:
    if not isinstance(raw, dict):
        return None
    return AllocationOverride(
        enabled=_bool(raw.get("enabled"), False),
        zone_id=_str_or_none(raw.get("zone_id")),
        table_ids=_ids(raw.get("table_ids")),
        table_group=_str_or_none(raw.get("table_group")),
        note=_str_or_none(raw.get("note")),
    )


def _final(raw: Any) -> AllocationFinal | None:
    if not isinstance(raw, dict):
        return None
    source = raw.get("source")
    return AllocationFinal(
        source=source if source in FINAL_SOURCES else "auto",
        zone_id=_str_or_none(raw.get("zone_id")),
        table_group=_str_or_none(raw.get("table_group")),
        table_ids=_ids(raw.get("table_ids")),
        locked=_bool(raw.get("locked"), False),
    )


def _allocated(raw: Any) -> Allocated | None:
    if not isinstance(raw, dict):
        return None
    return Allocated(
        zone_id=_str_or_none(raw.get("zone_id")),
        table_ids=_ids(raw.get("table_ids")),
        strategy=_str_or_none(raw.get("strategy")),
        diagnostics_summary=_str_or_none(raw.get("diagnostics_summary")),
    )


def _diagnostics(raw: Any) -> AllocationDiagnostics | None:
    if not isinstance(raw, dict):
        return None
    quality = raw.get("intent_quality")
    return AllocationDiagnostics(
        intent_quality=quality if quality in INTENT_QUALITIES else "none",
        reasons=_ids(raw.get("reasons")),
        warnings=_ids(raw.get("warnings")),
        matched_zone_id=_str_or_none(raw.get("matched_zone_id")),
    )


def normalize_booking(raw: dict[str, Any]) -> Booking:
    """
    Build a Booking from a raw record.

    Unparseable times become None (the engine then skips the booking rather
    than failing). Unknown statuses are read as "pending".
    """
    status = raw.get("status")
    return Booking(
        id=str(raw["id"]),
        party_size=_int(raw.get("party_size"), 0),
        start_time=parse_datetime(raw.get("start_time")),
        end_time=parse_datetime(raw.get("end_time")),
        status=status if status in BOOKING_STATUSES else "pending",
        name=str(raw.get("name") or ""),
        intent=_intent(raw.get("intent")),
        override=_override(raw.get("override")),
        final=_final(raw.get("final")),
        allocated=_allocated(raw.get("allocated")),
        diagnostics=_diagnostics(raw.get("diagnostics")),
    )
