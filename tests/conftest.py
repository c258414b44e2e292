"""Shared fixtures for seatassign tests."""

import datetime as dt

import pytest

from seatassign.catalog import ResourceCatalog
from seatassign.models import Booking, SeatingSettings, Table, TableCombination, Zone

# A Friday: datetime.weekday() == 4
DAY = dt.date(2026, 10, 16)


def at(hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime.combine(DAY, dt.time(hour, minute))


@pytest.fixture
def make_booking():
    """Factory for bookings on DAY; times are (hour, minute) tuples or None."""

    def _make(booking_id, party_size=2, start=(18, 0), end=(20, 0), **kwargs):
        return Booking(
            id=booking_id,
            party_size=party_size,
            start_time=at(*start) if start else None,
            end_time=at(*end) if end else None,
            **kwargs,
        )

    return _make


@pytest.fixture
def settings():
    return SeatingSettings(buffer_minutes=15)


@pytest.fixture
def two_zone_catalog():
    """Z1 holds one 2-4 table; Z2 holds two 2-4 tables joined as C1."""
    return ResourceCatalog(
        zones=[Zone("Z1", name="Z1", priority=1), Zone("Z2", name="Z2", priority=2)],
        tables=[
            Table("T1", zone_id="Z1", name="T1", min_capacity=2, max_capacity=4),
            Table("T2", zone_id="Z2", name="T2", min_capacity=2, max_capacity=4),
            Table("T3", zone_id="Z2", name="T3", min_capacity=2, max_capacity=4),
        ],
        combinations=[TableCombination("C1", ("T2", "T3"))],
    )


@pytest.fixture
def venue():
    """
    main (1): M2 1-2, M4 2-4, M6 4-6, combination MC = M4+M6 (6-10)
    bar (2): B1 1-2
    terrace (3): X8 2-8
    """
    return ResourceCatalog(
        zones=[
            Zone("main", name="Main", priority=1, type="table"),
            Zone("bar", name="Bar", priority=2, type="bar"),
            Zone("terrace", name="Terrace", priority=3, type="outdoor"),
        ],
        tables=[
            Table("M2", zone_id="main", name="M2", min_capacity=1, max_capacity=2),
            Table(
                "M4", zone_id="main", name="M4", min_capacity=2, max_capacity=4, table_group="window"
            ),
            Table(
                "M6", zone_id="main", name="M6", min_capacity=4, max_capacity=6, table_group="window"
            ),
            Table("B1", zone_id="bar", name="B1", min_capacity=1, max_capacity=2),
            Table("X8", zone_id="terrace", name="X8", min_capacity=2, max_capacity=8),
        ],
        combinations=[TableCombination("MC", ("M4", "M6"))],
    )


@pytest.fixture
def single_table_catalog():
    """One zone with one 2-4 table."""
    return ResourceCatalog(
        zones=[Zone("Z1", name="Z1", priority=1)],
        tables=[Table("T1", zone_id="Z1", name="T1", min_capacity=2, max_capacity=4)],
    )
