"""Recurring order execution core."""

__version__ = "0.1.0"
