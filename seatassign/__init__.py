"""Zone and table allocation for timed reservations."""

__version__ = "0.1.0"
