"""Validate and reconcile site work-day schedules kept in two spreadsheets."""

__version__ = "0.1.0"
