"""Reminder scheduling, recurrence and cross-surface sync engine."""

__version__ = "1.0.0"
