"""Waiter service: bootstrap and JSON rendering of lazily loaded entity graphs."""

__version__ = "1.0.0"
