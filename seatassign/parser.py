"""YAML snapshot loading and update writing for seatassign."""

from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any

import yaml

from seatassign.catalog import ResourceCatalog
from seatassign.models import AllocationUpdate, Booking, SeatingSettings
from seatassign.normalize import (
    normalize_booking,
    normalize_combination,
    normalize_settings,
    normalize_table,
    normalize_zone,
)


class SnapshotError(ValueError):
    """A snapshot file is missing, malformed or violates a record invariant."""


@dataclass
class Snapshot:
    """Everything the engine needs for one venue, as loaded from disk."""

    settings: SeatingSettings
    catalog: ResourceCatalog
    bookings: list[Booking]

    def booking(self, booking_id: str) -> Booking | None:
        for booking in self.bookings:
            if booking.id == booking_id:
                return booking
        return None


def _records(data: dict[str, Any], key: str, normalizer):
    entries = data.get(key) or []
    if not isinstance(entries, list):
        raise SnapshotError(f"'{key}' must be a list")
    records = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise SnapshotError(f"{key}[{idx}]: expected a mapping")
        try:
            records.append(normalizer(entry))
        except KeyError as e:
            raise SnapshotError(f"{key}[{idx}]: missing field {e}") from e
        except ValueError as e:
            raise SnapshotError(f"{key}[{idx}]: {e}") from e
    return records


def parse_snapshot(data: dict[str, Any] | None) -> Snapshot:
    """Build a Snapshot from an already-parsed document."""
    if not data:
        data = {}
    if not isinstance(data, dict):
        raise SnapshotError("snapshot must be a mapping")

    zones = _records(data, "zones", normalize_zone)
    tables = _records(data, "tables", normalize_table)
    combinations = _records(data, "combinations", normalize_combination)
    bookings = _records(data, "bookings", normalize_booking)

    known_zones = {z.id for z in zones}
    for table in tables:
        if table.zone_id not in known_zones:
            raise SnapshotError(f"table {table.id}: unknown zone {table.zone_id}")
    known_tables = {t.id for t in tables}
    for combo in combinations:
        missing = [tid for tid in combo.table_ids if tid not in known_tables]
        if missing:
            raise SnapshotError(f"combination {combo.id}: unknown tables {', '.join(missing)}")

    return Snapshot(
        settings=normalize_settings(data.get("settings")),
        catalog=ResourceCatalog(zones, tables, combinations),
        bookings=bookings,
    )


def load_snapshot(yaml_path: Path) -> Snapshot:
    """Parse a snapshot YAML file."""
    try:
        with yaml_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SnapshotError(f"invalid YAML in {yaml_path}: {e}") from e
    return parse_snapshot(data)


def bookings_for_day(bookings: list[Booking], day: date) -> list[Booking]:
    """
    Bookings whose window touches the given calendar day.

    Bookings without a start time are kept so the day run can report them as
    invalid.
    """
    selected = []
    for booking in bookings:
        start, end = booking.start_time, booking.end_time
        if start is None:
            selected.append(booking)
            continue
        day_start = datetime.combine(day, time.min, tzinfo=start.tzinfo)
        day_end = day_start + timedelta(days=1)
        if start < day_end and (end or start) >= day_start:
            selected.append(booking)
    return selected


def _plain(value: Any) -> Any:
    """Convert dataclass output into YAML-friendly builtins."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_plain(v) for v in value)
    return value


def update_to_dict(update: AllocationUpdate) -> dict[str, Any]:
    return _plain(asdict(update))


class YamlUpdateSink:
    """
    Persistence sink that collects updates and writes them to a YAML file.

    Updates are held in memory until ``flush`` is called, so a dry run that
    never reaches the sink leaves no file behind.
    """

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self.updates: list[AllocationUpdate] = []

    def write(self, update: AllocationUpdate) -> None:
        self.updates.append(update)

    def flush(self, date_key: str) -> None:
        document = {
            "date": date_key,
            "updates": [update_to_dict(u) for u in self.updates],
        }
        with self.output_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)


def create_snapshot_template(output_path: Path, day: date | None = None):
    """Create an example snapshot YAML file."""
    day = day or date.today()
    evening = datetime.combine(day, time(18, 0))
    template = {
        "settings": {
            "allocation_enabled": True,
            "buffer_minutes": 15,
            "default_duration_minutes": 120,
            "max_combine_count": 3,
            "emergency_zones": {
                "enabled": False,
                "zone_ids": ["terrace"],
                "active_rule": "by_weekday",
                "weekdays": [4, 5],
            },
        },
        "zones": [
            {"id": "main", "name": "Main room", "priority": 1, "type": "table"},
            {"id": "bar", "name": "Bar", "priority": 2, "type": "bar"},
            {"id": "terrace", "name": "Terrace", "priority": 3, "type": "outdoor"},
        ],
        "tables": [
            {"id": "T1", "name": "T1", "zone_id": "main", "min_capacity": 2, "max_capacity": 4},
            {"id": "T2", "name": "T2", "zone_id": "main", "min_capacity": 2, "max_capacity": 4},
            {"id": "B1", "name": "B1", "zone_id": "bar", "min_capacity": 1, "max_capacity": 2},
            {"id": "X1", "name": "X1", "zone_id": "terrace", "min_capacity": 2, "max_capacity": 6},
        ],
        "combinations": [
            {"id": "T1+T2", "table_ids": ["T1", "T2"]},
        ],
        "bookings": [
            {
                "id": "b-001",
                "name": "Example Guest",
                "party_size": 4,
                "status": "confirmed",
                "start_time": evening.isoformat(),
                "end_time": (evening + timedelta(hours=2)).isoformat(),
                "intent": {"zone_id": "main"},
            }
        ],
    }

    header = f"""\
# Seating snapshot for seatassign
# Describe the venue (zones, tables, combinations), its settings and the
# bookings to allocate.
#
# Zones: lower priority = preferred. Tables belong to exactly one zone.
# Combinations join 2-3 tables; their capacity is the sum of the members.
# Emergency weekdays: 0 = Monday ... 6 = Sunday.
#
# Run:
#   seatassign run-day {output_path.name} --date {day.isoformat()}

"""

    with output_path.open("w", encoding="utf-8") as f:
        f.write(header)
        yaml.safe_dump(template, f, default_flow_style=False, sort_keys=False)
