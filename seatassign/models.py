"""Data models for seatassign."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

# Zones without a priority sort after every prioritized zone
UNPRIORITIZED = 1_000_000

MIN_COMBINATION_SIZE = 2
MAX_COMBINATION_SIZE = 3

ZoneType = Literal["bar", "outdoor", "table", "other"]
BookingStatus = Literal["pending", "confirmed", "cancelled"]
FinalSource = Literal["intent", "override", "auto", "manual"]
IntentQuality = Literal["none", "weak", "good"]
EmergencyRule = Literal["always", "by_weekday"]
RunMode = Literal["dryRun", "apply"]
ItemStatus = Literal[
    "updated",
    "no_fit",
    "conflict",
    "skipped_invalid",
    "skipped_locked",
    "error",
]


@dataclass(frozen=True)
class Zone:
    """A named seating area."""

    id: str
    name: str = ""
    priority: int = UNPRIORITIZED  # lower = preferred
    is_active: bool = True
    is_emergency: bool = False
    type: ZoneType = "other"
    tags: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Table:
    """A single seating unit belonging to exactly one zone."""

    id: str
    zone_id: str
    name: str = ""
    min_capacity: int = 1
    max_capacity: int = 2
    is_active: bool = True
    can_combine: bool = True
    can_seat_solo: bool = False
    table_group: str | None = None
    tags: frozenset[str] = frozenset()
    # Floorplan geometry is carried through untouched
    geometry: dict[str, Any] | None = field(default=None, compare=False, hash=False)

    def __post_init__(self):
        if self.min_capacity < 0:
            raise ValueError(f"table {self.id}: min capacity must not be negative")
        if self.min_capacity > self.max_capacity:
            raise ValueError(
                f"table {self.id}: min capacity {self.min_capacity} "
                f"exceeds max capacity {self.max_capacity}"
            )


@dataclass(frozen=True)
class TableCombination:
    """A fixed group of tables usable as one larger seating unit."""

    id: str
    table_ids: tuple[str, ...]
    is_active: bool = True

    def __post_init__(self):
        size = len(self.table_ids)
        if not MIN_COMBINATION_SIZE <= size <= MAX_COMBINATION_SIZE:
            raise ValueError(
                f"combination {self.id}: expected {MIN_COMBINATION_SIZE}-"
                f"{MAX_COMBINATION_SIZE} tables, got {size}"
            )
        if len(set(self.table_ids)) != size:
            raise ValueError(f"combination {self.id}: duplicate table ids")


@dataclass(frozen=True)
class EmergencyZonePolicy:
    """When emergency zones may take bookings."""

    enabled: bool = False
    zone_ids: frozenset[str] = frozenset()
    active_rule: EmergencyRule = "always"
    weekdays: frozenset[int] = frozenset()  # datetime.weekday(): Monday = 0

    def is_active_on(self, moment: datetime | None) -> bool:
        if not self.enabled:
            return False
        if self.active_rule == "by_weekday":
            if moment is None:
                return False
            return moment.weekday() in self.weekdays
        return True


@dataclass(frozen=True)
class SeatingSettings:
    """Venue-wide seating configuration."""

    allocation_enabled: bool = True
    buffer_minutes: int = 15
    default_duration_minutes: int = 120
    vip_enabled: bool = True
    emergency_zones: EmergencyZonePolicy = field(default_factory=EmergencyZonePolicy)
    active_floorplan_id: str | None = None
    max_combine_count: int = MAX_COMBINATION_SIZE
    allow_cross_zone_combinations: bool = False
    solo_allowed_table_ids: frozenset[str] = frozenset()
    zone_priority: tuple[str, ...] = ()  # explicit order, wins over Zone.priority
    default_zone_id: str | None = None  # searched first when zone_priority is empty
    overflow_zone_ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class AllocationIntent:
    """What the guest (or booking channel) asked for. Never authoritative."""

    time_slot: str | None = None
    zone_id: str | None = None
    table_group: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.time_slot or self.zone_id or self.table_group)


@dataclass(frozen=True)
class AllocationOverride:
    """An administrator-forced zone and/or table set."""

    enabled: bool = False
    zone_id: str | None = None
    table_ids: tuple[str, ...] = ()
    table_group: str | None = None
    note: str | None = None

    @property
    def is_forcing(self) -> bool:
        return self.enabled and bool(self.zone_id or self.table_ids)


@dataclass(frozen=True)
class AllocationFinal:
    """The resolved assignment for a booking."""

    source: FinalSource
    zone_id: str | None = None
    table_group: str | None = None
    table_ids: tuple[str, ...] = ()
    locked: bool = False


@dataclass(frozen=True)
class Allocated:
    """What was actually seated."""

    zone_id: str | None = None
    table_ids: tuple[str, ...] = ()
    strategy: str | None = None
    diagnostics_summary: str | None = None


@dataclass(frozen=True)
class AllocationDiagnostics:
    """Audit trail produced while suggesting and resolving."""

    intent_quality: IntentQuality = "none"
    reasons: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    matched_zone_id: str | None = None


@dataclass(frozen=True)
class Booking:
    """A timed reservation request and its allocation records."""

    id: str
    party_size: int
    start_time: datetime | None
    end_time: datetime | None
    status: BookingStatus = "pending"
    name: str = ""
    intent: AllocationIntent | None = None
    override: AllocationOverride | None = None
    final: AllocationFinal | None = None
    allocated: Allocated | None = None
    diagnostics: AllocationDiagnostics | None = None

    @property
    def is_locked(self) -> bool:
        return self.final is not None and self.final.locked

    @property
    def assigned_table_ids(self) -> tuple[str, ...]:
        """Tables this booking currently holds: seated first, then decided."""
        if self.allocated is not None and self.allocated.table_ids:
            return self.allocated.table_ids
        if self.final is not None:
            return self.final.table_ids
        return ()

    @property
    def assigned_zone_id(self) -> str | None:
        if self.allocated is not None and self.allocated.zone_id:
            return self.allocated.zone_id
        if self.final is not None:
            return self.final.zone_id
        return None

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class Suggestion:
    """Output of the allocation suggester."""

    zone_id: str | None
    table_ids: tuple[str, ...]
    reason: str
    confidence: float = 0.0
    warnings: tuple[str, ...] = ()

    @property
    def has_fit(self) -> bool:
        return bool(self.table_ids) or (self.reason == "OVERRIDE_APPLIED" and bool(self.zone_id))


@dataclass(frozen=True)
class ConflictEntry:
    """Another booking sharing at least one candidate table at an overlapping time."""

    booking_id: str
    booking_name: str
    overlap_label: str  # the other booking's window, "HH:MM-HH:MM"
    shared_table_ids: tuple[str, ...]


@dataclass(frozen=True)
class AllocationUpdate:
    """An update command for the caller's persistence layer."""

    booking_id: str
    final: AllocationFinal
    allocated: Allocated | None
    diagnostics: AllocationDiagnostics


@dataclass
class ItemResult:
    """Outcome of one booking in a day run."""

    booking_id: str
    status: ItemStatus
    reason: str | None = None
    zone_id: str | None = None
    table_ids: tuple[str, ...] = ()
    conflicts: list[ConflictEntry] = field(default_factory=list)
    diagnostics: AllocationDiagnostics | None = None


@dataclass
class DayTotals:
    """Aggregate counts of a day run."""

    scanned: int = 0
    processed: int = 0
    updated: int = 0
    no_fit: int = 0
    conflict: int = 0
    skipped_invalid: int = 0
    skipped_locked: int = 0
    error: int = 0
    distinct_conflicts: int = 0


@dataclass
class DayResult:
    """Result of a batch day allocation."""

    date_key: str
    mode: RunMode
    totals: DayTotals
    items: list[ItemResult]
    updates: list[AllocationUpdate] = field(default_factory=list)
