"""Toggl Track to Tempo worklog synchronizer."""

__version__ = "0.1.0"
