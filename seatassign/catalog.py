"""Resource catalog: typed lookups over zones, tables and combinations."""

from collections.abc import Iterable

from seatassign.models import Table, TableCombination, Zone


class ResourceCatalog:
    """
    Read-only view over a snapshot of zones, tables and combinations.

    Inactive zones and tables are filtered out here and nowhere else: a table
    is visible only if it and its zone are active, and a combination only if
    it is active and every member table is visible.

    Tables passed as ``occupied`` stay visible (so overrides can still name
    them) but are not *available* to the suggester.
    """

    def __init__(
        self,
        zones: Iterable[Zone],
        tables: Iterable[Table],
        combinations: Iterable[TableCombination] = (),
        occupied: Iterable[str] = (),
    ):
        self._all_zones = tuple(zones)
        self._all_tables = tuple(tables)
        self._all_combinations = tuple(combinations)
        self.occupied: frozenset[str] = frozenset(occupied)

        self._zones: dict[str, Zone] = {z.id: z for z in self._all_zones if z.is_active}
        self._tables: dict[str, Table] = {
            t.id: t for t in self._all_tables if t.is_active and t.zone_id in self._zones
        }
        self._combinations: dict[str, TableCombination] = {
            c.id: c
            for c in self._all_combinations
            if c.is_active and all(tid in self._tables for tid in c.table_ids)
        }

        self._tables_by_zone: dict[str, list[Table]] = {zone_id: [] for zone_id in self._zones}
        for table in self._tables.values():
            self._tables_by_zone[table.zone_id].append(table)
        for zone_tables in self._tables_by_zone.values():
            zone_tables.sort(key=lambda t: (t.name, t.id))

        self._combinations_by_table: dict[str, list[TableCombination]] = {}
        for combo in sorted(self._combinations.values(), key=lambda c: c.id):
            for tid in combo.table_ids:
                self._combinations_by_table.setdefault(tid, []).append(combo)

    def with_occupied(self, table_ids: Iterable[str]) -> "ResourceCatalog":
        """Return a copy where table_ids are additionally held by other bookings."""
        return ResourceCatalog(
            self._all_zones,
            self._all_tables,
            self._all_combinations,
            occupied=self.occupied | frozenset(table_ids),
        )

    # Lookups

    def zone(self, zone_id: str | None) -> Zone | None:
        if zone_id is None:
            return None
        return self._zones.get(zone_id)

    def table(self, table_id: str) -> Table | None:
        return self._tables.get(table_id)

    def combination(self, combination_id: str) -> TableCombination | None:
        return self._combinations.get(combination_id)

    def zone_name(self, zone_id: str | None) -> str:
        """Display name for a zone, falling back to its id (also for inactive zones)."""
        if zone_id is None:
            return ""
        for zone in self._all_zones:
            if zone.id == zone_id:
                return zone.name or zone.id
        return zone_id

    def table_name(self, table_id: str) -> str:
        for table in self._all_tables:
            if table.id == table_id:
                return table.name or table.id
        return table_id

    def zone_of_tables(self, table_ids: Iterable[str]) -> str | None:
        """Return the single zone all given tables belong to, or None."""
        zone_ids = set()
        for tid in table_ids:
            table = self.table(tid)
            if table is None:
                return None
            zone_ids.add(table.zone_id)
        if len(zone_ids) == 1:
            return zone_ids.pop()
        return None

    def table_group_of(self, table_ids: Iterable[str]) -> str | None:
        """Return the table-group label shared by all given tables, or None."""
        groups = set()
        for tid in table_ids:
            table = self.table(tid)
            if table is None or not table.table_group:
                return None
            groups.add(table.table_group)
        if len(groups) == 1:
            return groups.pop()
        return None

    # Ordered views

    def active_zones(self) -> list[Zone]:
        """Active zones by (priority, name, id)."""
        return sorted(self._zones.values(), key=lambda z: (z.priority, z.name, z.id))

    def active_tables_in_zone(self, zone_id: str) -> list[Table]:
        """Active tables of a zone by name."""
        return list(self._tables_by_zone.get(zone_id, []))

    def combinations_covering(self, table_id: str) -> list[TableCombination]:
        """Active combinations that contain table_id."""
        return list(self._combinations_by_table.get(table_id, []))

    def capacity_of(self, resource_id: str) -> tuple[int, int]:
        """
        Return (min, max) capacity of a table or a combination.

        A combination's capacity is the sum of its members' capacities.
        Raises KeyError for unknown or inactive ids.
        """
        table = self._tables.get(resource_id)
        if table is not None:
            return table.min_capacity, table.max_capacity
        combo = self._combinations.get(resource_id)
        if combo is not None:
            members = [self._tables[tid] for tid in combo.table_ids]
            return (
                sum(t.min_capacity for t in members),
                sum(t.max_capacity for t in members),
            )
        raise KeyError(resource_id)

    def combination_zone_ids(self, combo: TableCombination) -> set[str]:
        return {self._tables[tid].zone_id for tid in combo.table_ids}

    # Availability (active and not occupied)

    def is_available(self, table_id: str) -> bool:
        return table_id in self._tables and table_id not in self.occupied

    def available_tables_in_zone(self, zone_id: str) -> list[Table]:
        return [t for t in self.active_tables_in_zone(zone_id) if t.id not in self.occupied]

    def available_combinations_in_zone(
        self,
        zone_id: str,
        allow_cross_zone: bool = False,
    ) -> list[TableCombination]:
        """
        Active, unoccupied combinations anchored in zone_id.

        A combination is anchored to the zone of its first table. Combinations
        spanning several zones are only returned when allow_cross_zone is set.
        """
        result = []
        for combo in sorted(self._combinations.values(), key=lambda c: c.id):
            if self._tables[combo.table_ids[0]].zone_id != zone_id:
                continue
            if not allow_cross_zone and len(self.combination_zone_ids(combo)) != 1:
                continue
            if any(tid in self.occupied for tid in combo.table_ids):
                continue
            result.append(combo)
        return result
