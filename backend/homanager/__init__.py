"""Homanager backend: household tasks, important dates and notifications."""

__version__ = "0.1.0"
