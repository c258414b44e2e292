"""Tests for the allocation suggester."""

from dataclasses import replace

from conftest import at

from seatassign.catalog import ResourceCatalog
from seatassign.models import (
    AllocationOverride,
    EmergencyZonePolicy,
    SeatingSettings,
    Table,
    TableCombination,
    Zone,
)
from seatassign.suggester import confidence_for, ordered_zones, suggest


class TestGreedySearch:
    """Zone-priority ordered, tightest-fit search."""

    def test_combination_in_lower_priority_zone(self, two_zone_catalog, settings):
        """Z1's only table cannot seat 6, so Z2's combination wins."""
        result = suggest(6, at(19), two_zone_catalog, settings)
        assert result.zone_id == "Z2"
        assert result.table_ids == ("T2", "T3")
        assert result.reason == "COMBINATION_FIT"
        assert result.confidence == 0.75

    def test_higher_priority_zone_wins_when_it_fits(self, two_zone_catalog, settings):
        result = suggest(3, at(19), two_zone_catalog, settings)
        assert result.zone_id == "Z1"
        assert result.table_ids == ("T1",)
        assert result.reason == "SINGLE_TABLE_FIT"

    def test_tightest_single_table(self, venue, settings):
        # M4 (2-4) and M6 (4-6) both seat 4; the smaller one is kept free of waste
        result = suggest(4, at(19), venue, settings)
        assert result.table_ids == ("M4",)
        assert result.confidence == 1.0

    def test_single_table_preferred_over_combination(self, venue, settings):
        result = suggest(5, at(19), venue, settings)
        assert result.table_ids == ("M6",)
        assert result.reason == "SINGLE_TABLE_FIT"

    def test_capacity_bounds_are_never_violated(self, venue, settings):
        for party_size in range(1, 13):
            result = suggest(party_size, at(19), venue, settings)
            if not result.table_ids:
                assert result.reason == "NO_FIT"
                continue
            if len(result.table_ids) == 1:
                low, high = venue.capacity_of(result.table_ids[0])
            else:
                members = [venue.capacity_of(tid) for tid in result.table_ids]
                low, high = sum(m[0] for m in members), sum(m[1] for m in members)
            assert low <= party_size <= high

    def test_no_fit(self, venue, settings):
        result = suggest(11, at(19), venue, settings)
        assert result.zone_id is None
        assert result.table_ids == ()
        assert result.reason == "NO_FIT"
        assert result.confidence == 0

    def test_invalid_party_size(self, venue, settings):
        for party_size in (0, -3):
            result = suggest(party_size, at(19), venue, settings)
            assert result.reason == "INVALID_PARTY_SIZE"
            assert result.table_ids == ()
            assert result.confidence == 0

    def test_deterministic(self, venue, settings):
        first = suggest(7, at(19), venue, settings)
        second = suggest(7, at(19), venue, settings)
        assert first == second
        assert first.table_ids == ("M4", "M6")

    def test_occupied_tables_are_skipped(self, venue, settings):
        result = suggest(2, at(19), venue.with_occupied({"M2"}), settings)
        assert result.table_ids == ("M4",)

    def test_occupied_member_disables_combination(self, venue, settings):
        result = suggest(7, at(19), venue.with_occupied({"M6"}), settings)
        assert result.zone_id == "terrace"
        assert result.table_ids == ("X8",)


class TestCombinationRules:
    """Combination filters from settings."""

    def _three_table_catalog(self):
        return ResourceCatalog(
            zones=[Zone("z", priority=1)],
            tables=[
                Table("a", zone_id="z", name="a", min_capacity=2, max_capacity=4),
                Table("b", zone_id="z", name="b", min_capacity=2, max_capacity=4),
                Table("c", zone_id="z", name="c", min_capacity=2, max_capacity=4),
            ],
            combinations=[
                TableCombination("abc", ("a", "b", "c")),
                TableCombination("ab", ("a", "b")),
            ],
        )

    def test_fewest_tables_first(self, settings):
        result = suggest(7, at(19), self._three_table_catalog(), settings)
        assert result.table_ids == ("a", "b")

    def test_max_combine_count(self, settings):
        catalog = self._three_table_catalog()
        assert suggest(10, at(19), catalog, settings).table_ids == ("a", "b", "c")
        limited = replace(settings, max_combine_count=2)
        assert suggest(10, at(19), catalog, limited).reason == "NO_FIT"

    def test_solo_tables(self, settings):
        catalog = ResourceCatalog(
            zones=[Zone("z", priority=1)],
            tables=[Table("t", zone_id="z", min_capacity=2, max_capacity=4)],
        )
        assert suggest(1, at(19), catalog, settings).reason == "NO_FIT"
        solo = replace(settings, solo_allowed_table_ids=frozenset({"t"}))
        assert suggest(1, at(19), catalog, solo).table_ids == ("t",)

    def test_solo_table_only_when_nothing_fits_outright(self, settings):
        catalog = ResourceCatalog(
            zones=[Zone("z", priority=1)],
            tables=[
                Table("S", zone_id="z", name="S", min_capacity=2, max_capacity=2, can_seat_solo=True),
                Table("A", zone_id="z", name="A", min_capacity=1, max_capacity=4),
            ],
        )
        result = suggest(1, at(19), catalog, settings)
        assert result.table_ids == ("A",)
        # with A taken the solo table is still usable
        assert suggest(1, at(19), catalog.with_occupied({"A"}), settings).table_ids == ("S",)


class TestZoneOrdering:
    """Explicit priority lists, overflow and emergency zones."""

    def test_explicit_zone_priority(self, venue, settings):
        ordered = replace(settings, zone_priority=("bar",))
        assert suggest(2, at(19), venue, ordered).zone_id == "bar"

    def test_overflow_zone_goes_last(self, venue, settings):
        overflow = replace(settings, overflow_zone_ids=frozenset({"main"}))
        assert suggest(2, at(19), venue, overflow).zone_id == "bar"

    def test_active_emergency_zone_searched_first(self, venue, settings):
        emergency = replace(
            settings,
            emergency_zones=EmergencyZonePolicy(enabled=True, zone_ids=frozenset({"terrace"})),
        )
        result = suggest(2, at(19), venue, emergency)
        assert result.zone_id == "terrace"
        assert "EMERGENCY_ZONE" in result.warnings

    def test_emergency_falls_back_to_normal_zones(self, venue, settings):
        emergency = replace(
            settings,
            emergency_zones=EmergencyZonePolicy(enabled=True, zone_ids=frozenset({"bar"})),
        )
        # bar cannot seat 4
        result = suggest(4, at(19), venue, emergency)
        assert result.zone_id == "main"
        assert result.warnings == ()

    def test_weekday_rule_not_matching(self, venue, settings):
        monday_only = replace(
            settings,
            emergency_zones=EmergencyZonePolicy(
                enabled=True,
                zone_ids=frozenset({"terrace"}),
                active_rule="by_weekday",
                weekdays=frozenset({0}),
            ),
        )
        assert suggest(2, at(19), venue, monday_only).zone_id == "main"

    def test_inactive_emergency_zone_is_never_used(self, settings):
        catalog = ResourceCatalog(
            zones=[Zone("main", priority=5), Zone("tent", priority=1, is_emergency=True)],
            tables=[
                Table("M", zone_id="main", min_capacity=2, max_capacity=4),
                Table("X", zone_id="tent", min_capacity=2, max_capacity=8),
            ],
        )
        zones, emergency_ids = ordered_zones(catalog, settings, at(19))
        assert [z.id for z in zones] == ["main"]
        assert emergency_ids == {"tent"}
        assert suggest(3, at(19), catalog, settings).zone_id == "main"
        assert suggest(6, at(19), catalog, settings).reason == "NO_FIT"

    def test_disabled_policy_keeps_listed_zone_out(self, venue, settings):
        disabled = replace(
            settings,
            emergency_zones=EmergencyZonePolicy(enabled=False, zone_ids=frozenset({"terrace"})),
        )
        # with M6 taken only the terrace could seat 8
        view = venue.with_occupied({"M6"})
        assert suggest(8, at(19), view, disabled).reason == "NO_FIT"
        assert suggest(8, at(19), view, settings).zone_id == "terrace"
        assert "terrace" not in [z.id for z in ordered_zones(venue, disabled, at(19))[0]]

    def test_default_zone_goes_first(self, venue, settings):
        preferred = replace(settings, default_zone_id="terrace")
        assert [z.id for z in ordered_zones(venue, preferred, at(19))[0]] == [
            "terrace",
            "main",
            "bar",
        ]
        assert suggest(2, at(19), venue, preferred).zone_id == "terrace"

    def test_explicit_priority_wins_over_default_zone(self, venue, settings):
        both = replace(settings, zone_priority=("bar",), default_zone_id="terrace")
        assert suggest(2, at(19), venue, both).zone_id == "bar"


class TestAllocationSwitch:
    """Allocation can be switched off for a venue."""

    def test_disabled_allocation_proposes_nothing(self, venue, settings):
        off = replace(settings, allocation_enabled=False)
        result = suggest(2, at(19), venue, off)
        assert result.reason == "ALLOCATION_DISABLED"
        assert result.table_ids == ()
        assert result.zone_id is None

    def test_override_still_applies_when_disabled(self, venue, settings):
        off = replace(settings, allocation_enabled=False)
        override = AllocationOverride(enabled=True, table_ids=("B1",))
        assert suggest(2, at(19), venue, off, override=override).table_ids == ("B1",)


class TestOverride:
    """Administrator overrides short-circuit the search."""

    def test_consistent_override_returned_verbatim(self, venue, settings):
        override = AllocationOverride(enabled=True, zone_id="bar", table_ids=("B1",))
        result = suggest(40, at(19), venue, settings, override=override)
        assert result.zone_id == "bar"
        assert result.table_ids == ("B1",)
        assert result.reason == "OVERRIDE_APPLIED"
        assert result.confidence == 1.0

    def test_tables_only_override_takes_their_zone(self, venue, settings):
        override = AllocationOverride(enabled=True, table_ids=("X8",))
        result = suggest(2, at(19), venue, settings, override=override)
        assert result.zone_id == "terrace"
        assert result.table_ids == ("X8",)

    def test_zone_only_override(self, venue, settings):
        override = AllocationOverride(enabled=True, zone_id="terrace")
        result = suggest(2, at(19), venue, settings, override=override)
        assert result.zone_id == "terrace"
        assert result.table_ids == ()
        assert result.reason == "OVERRIDE_APPLIED"

    def test_inconsistent_override_falls_through(self, venue, settings):
        override = AllocationOverride(enabled=True, zone_id="bar", table_ids=("M4",))
        result = suggest(2, at(19), venue, settings, override=override)
        assert result.reason == "SINGLE_TABLE_FIT"
        assert result.table_ids == ("M2",)
        assert "OVERRIDE_INCONSISTENT" in result.warnings

    def test_unknown_table_falls_through(self, venue, settings):
        override = AllocationOverride(enabled=True, table_ids=("Z99",))
        result = suggest(2, at(19), venue, settings, override=override)
        assert result.reason == "SINGLE_TABLE_FIT"
        assert "OVERRIDE_UNKNOWN_TABLE:Z99" in result.warnings

    def test_disabled_override_is_ignored(self, venue, settings):
        override = AllocationOverride(enabled=False, zone_id="bar", table_ids=("B1",))
        result = suggest(2, at(19), venue, settings, override=override)
        assert result.zone_id == "main"
        assert result.warnings == ()

    def test_occupied_table_can_still_be_forced(self, venue, settings):
        override = AllocationOverride(enabled=True, table_ids=("M2",))
        result = suggest(2, at(19), venue.with_occupied({"M2"}), settings, override=override)
        assert result.table_ids == ("M2",)


class TestConfidence:
    """Linear confidence scaling."""

    def test_confidence_for(self):
        assert confidence_for(4, 4) == 1.0
        assert confidence_for(2, 4) == 0.5
        assert confidence_for(6, 8) == 0.75
        assert confidence_for(1, 0) == 0.0
